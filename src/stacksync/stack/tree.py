"""Tree building, traversal and formatting for stacksync stacks."""

from typing import Dict, Generator, List, Optional

from stacksync.git.branch import get_trunk_branches
from stacksync.git.refs import rev_parse
from stacksync.stack import store
from stacksync.stack.models import Branch, TreeNode
from stacksync.utils.logging import NotFoundError, StructuralError, fmt
from stacksync.utils.types import TREE_INDENT, BranchName


def build_forest(records: Optional[List[Branch]] = None) -> List[TreeNode]:
    """Assemble all tracked branches into trees.

    A branch whose parent is not tracked (usually a trunk such as main) hangs
    off a node for that parent, which becomes a root. Children keep the order
    in which their records were created.
    """
    if records is None:
        records = store.load_all()

    nodes: Dict[BranchName, TreeNode] = {r.name: TreeNode(r) for r in records}
    roots: List[TreeNode] = []
    untracked_roots: Dict[BranchName, TreeNode] = {}
    for r in records:
        node = nodes[r.name]
        if r.parent is None:
            roots.append(node)
        elif r.parent in nodes:
            nodes[r.parent].children.append(node)
        else:
            root = untracked_roots.get(r.parent)
            if root is None:
                root = TreeNode(Branch(r.parent))
                untracked_roots[r.parent] = root
                roots.append(root)
            root.children.append(node)

    reachable = set(b.name for root in roots for b in depth_first(root))
    unreachable = [r.name for r in records if r.name not in reachable]
    if unreachable:
        raise StructuralError("Branches {} form a cycle", ", ".join(unreachable))
    return roots


def depth_first(tree: TreeNode) -> Generator[Branch, None, None]:
    """Iterate over a tree in pre-order (parents before children)."""
    yield tree.branch
    for c in tree.children:
        yield from depth_first(c)


def find_node(tree: TreeNode, name: BranchName) -> Optional[TreeNode]:
    if tree.name == name:
        return tree
    for c in tree.children:
        n = find_node(c, name)
        if n is not None:
            return n
    return None


def get_current_root(current_branch: BranchName, forest: Optional[List[TreeNode]] = None) -> TreeNode:
    """Return the root of the tree that contains ``current_branch``."""
    if forest is None:
        forest = build_forest()
    for root in forest:
        if find_node(root, current_branch) is not None:
            return root
    if current_branch in get_trunk_branches():
        return TreeNode(Branch(current_branch))
    raise NotFoundError("Current branch {} is not tracked in any stack", current_branch)


def render(tree: TreeNode, depth: int = 0) -> str:
    """Render a tree as text, one branch per line indented by depth."""
    lines = [TREE_INDENT * depth + tree.name]
    for c in tree.children:
        lines.append(render(c, depth + 1))
    return "\n".join(lines)


def is_synced_with_parent(b: Branch) -> bool:
    if b.parent is None:
        return True
    return b.parent_commit is not None and b.parent_commit == rev_parse("refs/heads/{}".format(b.parent))


def format_name(b: Branch, current_branch: Optional[BranchName], *, colorize: bool) -> str:
    """Format a branch name with status indicators."""
    prefix = ""
    severity = 0
    if not is_synced_with_parent(b):
        prefix += fmt("!", color=colorize, fg="yellow")
        severity = max(severity, 2)
    if b.name == current_branch:
        prefix += fmt("*", color=colorize, fg="cyan")
    else:
        severity = max(severity, 1)
    if prefix:
        prefix += " "
    fg = ["cyan", "green", "yellow"][severity]
    return prefix + fmt("{}", b.name, color=colorize, fg=fg)


def format_tree(tree: TreeNode, current_branch: Optional[BranchName], *, colorize: bool = False):
    """Format a tree as the nested dicts asciitree expects."""
    children = {}
    for c in tree.children:
        children.update(format_tree(c, current_branch, colorize=colorize))
    return {format_name(tree.branch, current_branch, colorize=colorize): children}


def print_tree(tree: TreeNode, current_branch: Optional[BranchName]):
    """Print a tree (upside down, the root at the bottom)."""
    from stacksync.utils.logging import COLOR_STDOUT
    from stacksync.utils.ui import ASCII_TREE
    s = ASCII_TREE(format_tree(tree, current_branch, colorize=COLOR_STDOUT))
    lines = s.split("\n")
    print("\n".join(reversed(lines)))


def print_forest(trees: List[TreeNode], current_branch: Optional[BranchName]):
    for i, t in enumerate(trees):
        if i != 0:
            print()
        print_tree(t, current_branch)
