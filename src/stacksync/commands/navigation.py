"""Navigation commands - next, prev."""

from typing import Callable, List

from stacksync.commands.stack import _finish_sync
from stacksync.git.branch import checkout, require_current_branch
from stacksync.stack.models import SyncOptions, TreeNode
from stacksync.stack.operations import check_clean_working_tree, sync_stack
from stacksync.stack.tree import find_node, get_current_root
from stacksync.utils.logging import ValidationError, info
from stacksync.utils.types import BranchName
from stacksync.utils.ui import menu_choose_branch


def check_count(n: int):
    if n < 1:
        raise ValidationError("Invalid number {} (must be >= 1)", n)


def get_next_branch(
    root: TreeNode,
    current: BranchName,
    n: int,
    choose: Callable[[List[BranchName], str], BranchName] = menu_choose_branch,
) -> BranchName:
    """Walk ``n`` branches up the stack, asking which child to follow when there are several."""
    check_count(n)
    node = find_node(root, current)
    assert node is not None
    for _ in range(n):
        if not node.children:
            info("Branch {} is already at the top of the stack", node.name)
            break
        if len(node.children) > 1:
            name = choose([c.name for c in node.children], "Branch {} has several children".format(node.name))
            node = next(c for c in node.children if c.name == name)
        else:
            node = node.children[0]
    return node.name


def get_prev_branch(root: TreeNode, current: BranchName, n: int) -> BranchName:
    """Walk ``n`` branches down the stack, stopping at its root."""
    check_count(n)
    name = current
    for _ in range(n):
        node = find_node(root, name)
        assert node is not None
        if node.branch.parent is None:
            info("Branch {} is already at the bottom of the stack", name)
            break
        name = node.branch.parent
    return name


def cmd_next(args):
    """Check out the branch n positions up the stack."""
    check_count(args.n)
    current = require_current_branch()
    if args.sync:
        check_clean_working_tree()
    target = get_next_branch(get_current_root(current), current, args.n)
    if target != current:
        checkout(target)
    if args.sync:
        _finish_sync(sync_stack(target, SyncOptions(current_only=True, no_push=args.no_push)))


def cmd_prev(args):
    """Check out the branch n positions down the stack."""
    check_count(args.n)
    current = require_current_branch()
    target = get_prev_branch(get_current_root(current), current, args.n)
    if target != current:
        checkout(target)
