"""Git ref and config operations for stacksync.

Two pieces of data are stored per stacked branch:

* the parent branch, in git config as ``branch.<name>.merge`` with
  ``branch.<name>.remote`` set to ``.`` (the same layout ``git checkout
  --track`` produces for a local upstream);
* the parent commit the branch was last synced against, in the ref
  ``refs/stack-parent/<name>``.
"""

from typing import List, Optional, Tuple

from stacksync.utils.shell import remove_prefix, run, run_multiline
from stacksync.utils.types import STACK_PARENT_REF_PREFIX, BranchName, CmdArgs, Commit


def rev_parse(rev: str) -> Optional[Commit]:
    """Resolve any revision to a commit id, None if it does not exist."""
    c = run(CmdArgs(["git", "rev-parse", "--verify", "--quiet", "{}^{{commit}}".format(rev)]), check=False)
    if c:
        return Commit(c)
    return None


def get_commit(branch: BranchName) -> Commit:
    """Get the current commit of a branch."""
    c = rev_parse("refs/heads/{}".format(branch))
    assert c is not None, "branch {} does not exist".format(branch)
    return c


def get_stack_parent_commit(branch: BranchName) -> Optional[Commit]:
    """Get the parent commit a branch was last synced against."""
    return rev_parse(STACK_PARENT_REF_PREFIX + branch)


def set_parent_commit(branch: BranchName, new_commit: Commit, prev_commit: Optional[str] = None):
    """Set the parent commit ref for a branch.

    When ``prev_commit`` is given git refuses the update unless the ref still
    holds that value; an empty string means the ref must not exist yet.
    """
    cmd = [
        "git",
        "update-ref",
        STACK_PARENT_REF_PREFIX + branch,
        new_commit,
    ]
    if prev_commit is not None:
        cmd.append(prev_commit)
    run(CmdArgs(cmd))


def delete_parent_commit(branch: BranchName):
    run(CmdArgs(["git", "update-ref", "-d", STACK_PARENT_REF_PREFIX + branch]))


def get_parent_branch(branch: BranchName) -> Optional[BranchName]:
    """Get the recorded parent of a branch, None if it is not stacked."""
    remote = run(CmdArgs(["git", "config", "branch.{}.remote".format(branch)]), check=False)
    if remote != ".":
        return None
    p = run(CmdArgs(["git", "config", "branch.{}.merge".format(branch)]), check=False)
    if not p:
        return None
    parent = BranchName(remove_prefix(p, "refs/heads/"))
    if parent == branch:
        return None
    return parent


def set_parent_branch(branch: BranchName, parent: BranchName):
    """Record ``parent`` as the stack parent of ``branch``."""
    run(CmdArgs(["git", "config", "branch.{}.remote".format(branch), "."]))
    run(CmdArgs(["git", "config", "branch.{}.merge".format(branch), "refs/heads/{}".format(parent)]))


def unset_parent_branch(branch: BranchName):
    run(CmdArgs(["git", "config", "--unset", "branch.{}.merge".format(branch)]), check=False)
    run(CmdArgs(["git", "config", "--unset", "branch.{}.remote".format(branch)]), check=False)


def _split_branch_key(key: str, suffix: str) -> BranchName:
    # Keys look like branch.<name>.<suffix>, <name> may contain dots
    return BranchName(key[len("branch."):-len(suffix)])


def list_parent_branches() -> List[Tuple[BranchName, BranchName]]:
    """List (branch, parent) pairs in the order they were first recorded.

    ``git config --get-regexp`` reports entries in file order, and updating a
    value keeps its position, so the result is stable across calls.
    """
    out = run_multiline(
        CmdArgs(["git", "config", "--get-regexp", r"^branch\..*\.(remote|merge)$"]),
        check=False,
    )
    if not out:
        return []

    local_remote = set()
    merges: List[Tuple[BranchName, str]] = []
    for line in out.split("\n"):
        if not line:
            continue
        key, _, value = line.partition(" ")
        if key.endswith(".remote"):
            if value == ".":
                local_remote.add(_split_branch_key(key, ".remote"))
        elif key.endswith(".merge") and value.startswith("refs/heads/"):
            merges.append((_split_branch_key(key, ".merge"), value))

    result = []
    for branch, value in merges:
        parent = BranchName(value[len("refs/heads/"):])
        if branch in local_remote and parent != branch:
            result.append((branch, parent))
    return result


def get_all_stack_parent_refs() -> List[BranchName]:
    """Get all branches that have stack-parent refs."""
    out = run_multiline(CmdArgs(["git", "for-each-ref", "--format", "%(refname)", "refs/stack-parent"]))
    if out:
        return [BranchName(remove_prefix(r, STACK_PARENT_REF_PREFIX)) for r in out.split("\n") if r]
    return []


def get_merge_base(b1: str, b2: str) -> Optional[Commit]:
    """Get the merge base of two revisions."""
    c = run(CmdArgs(["git", "merge-base", str(b1), str(b2)]), check=False)
    if c:
        return Commit(c)
    return None


def is_ancestor(ancestor: str, descendant: str) -> bool:
    """Check whether ``ancestor`` is reachable from ``descendant``."""
    r = run(CmdArgs(["git", "merge-base", "--is-ancestor", str(ancestor), str(descendant)]), check=False)
    return r is not None


def update_branch_ref(branch: BranchName, new_commit: Commit, prev_commit: Commit):
    """Move a branch to ``new_commit`` provided it still points at ``prev_commit``."""
    run(CmdArgs(["git", "update-ref", "refs/heads/{}".format(branch), new_commit, prev_commit]))
