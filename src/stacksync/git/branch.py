"""Branch operations for stacksync."""

from typing import FrozenSet, List, Optional

from stacksync.utils.config import get_config
from stacksync.utils.logging import NotFoundError, info
from stacksync.utils.shell import remove_prefix, run, run_always_return, run_multiline
from stacksync.utils.types import DEFAULT_TRUNK_BRANCHES, BranchName, CmdArgs, PathName


def get_current_branch() -> Optional[BranchName]:
    """Get the current branch from git, None when HEAD is detached."""
    s = run(CmdArgs(["git", "symbolic-ref", "-q", "HEAD"]), check=False)
    if s:
        return BranchName(remove_prefix(s, "refs/heads/"))
    return None


def get_all_branches() -> List[BranchName]:
    """Get all local branches."""
    branches = run_multiline(CmdArgs(["git", "for-each-ref", "--format", "%(refname:short)", "refs/heads"]))
    assert branches is not None
    return [BranchName(b) for b in branches.split("\n") if b]


def branch_exists(branch: BranchName) -> bool:
    """Check whether a local branch exists."""
    r = run(
        CmdArgs(["git", "show-ref", "--verify", "--quiet", "refs/heads/{}".format(branch)]),
        check=False,
    )
    return r is not None


def branch_name_completer(prefix, parsed_args, **kwargs):
    """Argcomplete completer function for branch names."""
    try:
        branches = get_all_branches()
        return [branch for branch in branches if branch.startswith(prefix)]
    except Exception:
        return []


def get_trunk_branches() -> FrozenSet[BranchName]:
    """Return the names that are always treated as stack roots."""
    return DEFAULT_TRUNK_BRANCHES | frozenset(BranchName(b) for b in get_config().trunk_branches)


def get_top_level_dir() -> PathName:
    """Get the top-level directory of the git repository."""
    p = run_always_return(CmdArgs(["git", "rev-parse", "--show-toplevel"]))
    return PathName(p)


def get_git_dir() -> PathName:
    """Get the absolute path of the .git directory."""
    p = run_always_return(CmdArgs(["git", "rev-parse", "--absolute-git-dir"]))
    return PathName(p)


def working_tree_clean() -> bool:
    """Check that there are no staged or unstaged changes to tracked files."""
    status = run_multiline(CmdArgs(["git", "status", "--porcelain", "--untracked-files=no"]))
    assert status is not None
    return status.strip() == ""


def checkout(branch: BranchName):
    """Checkout a branch."""
    info("Checking out branch {}", branch)
    run(CmdArgs(["git", "checkout", branch]))


def create_branch(branch: BranchName):
    """Create a new branch at HEAD and check it out."""
    run(CmdArgs(["git", "checkout", "-b", branch]))


def require_current_branch() -> BranchName:
    """Get the current branch, failing when HEAD is detached."""
    current = get_current_branch()
    if current is None:
        raise NotFoundError("HEAD is detached, check out a branch first")
    return current


def reset_working_tree():
    """Make the working tree match HEAD after the current branch was moved."""
    run(CmdArgs(["git", "reset", "--hard", "HEAD"]))
