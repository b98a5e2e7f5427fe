"""Remote operations for stacksync."""

from stacksync.git.refs import rev_parse
from stacksync.utils.config import get_config
from stacksync.utils.logging import GitOperationError, info
from stacksync.utils.shell import run
from stacksync.utils.types import BranchName, CmdArgs, Commit


def has_remote(remote: str) -> bool:
    """Check whether a remote is configured."""
    url = run(CmdArgs(["git", "config", "remote.{}.url".format(remote)]), check=False)
    return bool(url)


def fetch(remote: str, branch: BranchName):
    info("Fetching {} from {}", branch, remote)
    run(CmdArgs(["git", "fetch", remote, branch]))


def resolve_upstream_base_tip(branch: BranchName, remote: str) -> Commit:
    """Fetch ``branch`` from ``remote`` and return its latest commit."""
    fetch(remote, branch)
    c = rev_parse("refs/remotes/{}/{}".format(remote, branch))
    if c is None:
        raise GitOperationError("Branch {} does not exist on remote {}", branch, remote)
    return c


def force_push(branch: BranchName, remote: str):
    """Push a rewritten branch to the same name on ``remote``."""
    cmd_args = ["git", "push"]
    if get_config().use_force_push:
        cmd_args.append("-f")
    cmd_args.extend([remote, "{}:{}".format(branch, branch)])
    run(CmdArgs(cmd_args), out=True)
