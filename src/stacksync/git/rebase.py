"""Rebase operations for stacksync."""

import os
from typing import List

from stacksync.utils.logging import GitOperationError
from stacksync.utils.shell import run, run_always_return, run_multiline
from stacksync.utils.types import BranchName, CmdArgs, Commit


def rebase_in_progress() -> bool:
    """Check whether a rebase has been started and not finished or aborted."""
    for name in ("rebase-merge", "rebase-apply"):
        path = run_always_return(CmdArgs(["git", "rev-parse", "--git-path", name]))
        if os.path.exists(path):
            return True
    return False


def unmerged_paths() -> List[str]:
    """List paths that still have unresolved conflicts."""
    out = run_multiline(CmdArgs(["git", "diff", "--name-only", "--diff-filter=U"]))
    if not out:
        return []
    return [p for p in out.split("\n") if p]


def rebase_onto(branch: BranchName, onto: Commit, upstream: Commit) -> bool:
    """Replay the commits of ``branch`` after ``upstream`` on top of ``onto``.

    Returns True when the rebase completed, False when it stopped on conflicts
    (the repository is left mid-rebase).
    """
    r = run(
        CmdArgs(["git", "rebase", "--onto", onto, upstream, branch]),
        out=True, check=False,
    )
    if r is not None:
        return True
    if rebase_in_progress():
        return False
    raise GitOperationError("git rebase of branch {} onto {} failed", branch, onto)
