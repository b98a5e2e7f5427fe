"""Stack operations for stacksync - creating and syncing stacked branches."""

import contextlib
import json
import os
from typing import Callable, Iterator, List, Optional

from stacksync.git.branch import (
    branch_exists, checkout, create_branch, get_current_branch, get_git_dir,
    reset_working_tree, working_tree_clean
)
from stacksync.git.rebase import rebase_in_progress, rebase_onto, unmerged_paths
from stacksync.git.refs import get_commit, get_merge_base, is_ancestor, rev_parse, update_branch_ref
from stacksync.git.remote import force_push, has_remote, resolve_upstream_base_tip
from stacksync.stack import store
from stacksync.stack.models import (
    Branch, PendingSync, SyncOptions, SyncResult, SyncStatus, TreeNode
)
from stacksync.stack.tree import build_forest, depth_first, find_node, get_current_root, render
from stacksync.utils.config import get_config
from stacksync.utils.logging import (
    ExitException, GitOperationError, NotFoundError, PreconditionError,
    ValidationError, cout, info, warning
)
from stacksync.utils.shell import CommandError
from stacksync.utils.types import STATE_FILE_NAME, BranchName, Commit

ResultCallback = Callable[[SyncResult], None]


def create_stacked_branch(name: BranchName, parent: Optional[BranchName] = None) -> Branch:
    """Create ``name`` at the current commit, stacked on ``parent``.

    ``parent`` defaults to the current branch. The new branch is checked out.
    """
    current = get_current_branch()
    if parent is None:
        if current is None:
            raise ValidationError("HEAD is detached, use --parent to choose the parent branch")
        parent = current
    if branch_exists(name):
        raise ValidationError("Branch {} already exists", name)
    if store.get(name) is not None:
        raise ValidationError("Branch {} is already tracked", name)
    if not branch_exists(parent):
        raise NotFoundError("Parent branch {} does not exist", parent)

    if parent == current:
        parent_commit = get_commit(parent)
    else:
        parent_commit = get_merge_base(parent, "HEAD")

    create_branch(name)
    store.set_parent(name, parent)
    if parent_commit is not None:
        store.record_synced_parent_commit(name, parent_commit)
    info("Created branch {} on top of {}", name, parent)
    return Branch(name, parent, parent_commit)


def report_result(r: SyncResult):
    """Default reporter, prints one line per synced branch."""
    if r.status == SyncStatus.UP_TO_DATE:
        cout("✓ Branch {} is already up to date with {}\n", r.branch, r.parent, fg="green")
    elif r.status == SyncStatus.UPDATED:
        cout("✓ Branch {} synchronized with {}\n", r.branch, r.parent, fg="green")
    else:
        cout("✗ Branch {} has a merge conflict with {}\n", r.branch, r.parent, fg="red")


def get_state_file() -> str:
    return os.path.join(get_git_dir(), STATE_FILE_NAME)


def save_pending_sync(pending: PendingSync):
    state_file = get_state_file()
    tmp_state_file = state_file + ".tmp"
    with open(tmp_state_file, "w") as f:
        json.dump(pending.to_json(), f)
    os.replace(tmp_state_file, state_file)


def load_pending_sync() -> Optional[PendingSync]:
    try:
        with open(get_state_file()) as f:
            return PendingSync.from_json(json.load(f))
    except FileNotFoundError:
        return None


def clear_pending_sync():
    try:
        os.remove(get_state_file())
    except FileNotFoundError:
        pass


def check_clean_working_tree():
    if rebase_in_progress():
        raise PreconditionError(
            "A rebase is in progress, finish it and run `stacksync sync --continue`"
        )
    if not working_tree_clean():
        raise PreconditionError("Refusing to sync: there are uncommitted changes in the working tree")


class _RestoreGuard:
    def __init__(self, branch: BranchName):
        self.branch = branch
        self.armed = True

    def cancel(self):
        self.armed = False


@contextlib.contextmanager
def restore_branch(branch: BranchName) -> Iterator[_RestoreGuard]:
    """Check ``branch`` out again on exit unless the guard was cancelled."""
    guard = _RestoreGuard(branch)
    try:
        yield guard
    finally:
        if guard.armed:
            try:
                checkout(branch)
            except ExitException as e:
                warning("Failed to check out original branch {}: {}", branch, e.args[0])


@contextlib.contextmanager
def _git_step(action: str, branch: BranchName) -> Iterator[None]:
    try:
        yield
    except CommandError as e:
        raise GitOperationError("Failed to {} branch {}: {}", action, branch, e.args[0]) from e


def sync_branch(b: Branch, onto: Commit, *, resumed: bool = False) -> SyncResult:
    """Rebase ``b`` (already checked out) onto ``onto``, its parent's tip.

    ``resumed`` marks a branch whose rebase the user finished by hand; it is
    reported as updated rather than up to date.
    """
    assert b.parent is not None
    watermark = b.parent_commit
    if watermark == onto:
        return SyncResult(b.name, b.parent, SyncStatus.UP_TO_DATE)

    if is_ancestor(onto, b.name):
        store.record_synced_parent_commit(b.name, onto, watermark)
        b.parent_commit = onto
        status = SyncStatus.UPDATED if resumed else SyncStatus.UP_TO_DATE
        return SyncResult(b.name, b.parent, status)

    upstream = watermark
    if upstream is None:
        upstream = get_merge_base(onto, b.name)
        if upstream is None:
            raise GitOperationError("Branch {} has no common history with {}", b.name, b.parent)

    info("Rebasing {} on top of {}", b.name, b.parent)
    if not rebase_onto(b.name, onto, upstream):
        return SyncResult(b.name, b.parent, SyncStatus.CONFLICT)

    store.record_synced_parent_commit(b.name, onto, watermark)
    b.parent_commit = onto
    return SyncResult(b.name, b.parent, SyncStatus.UPDATED)


def push_branch(branch: BranchName, remote: str):
    if not has_remote(remote):
        info("No remote {}, not pushing {}", remote, branch)
        return
    cout("Pushing {}\n", branch, fg="green")
    force_push(branch, remote)


def pull_trunk(trunk: BranchName, current_branch: BranchName) -> Commit:
    """Fetch the latest ``trunk`` and fast-forward the local branch if possible."""
    remote = get_config().remote
    upstream = resolve_upstream_base_tip(trunk, remote)
    local = rev_parse("refs/heads/{}".format(trunk))
    if local is None or local == upstream:
        return upstream
    if is_ancestor(local, upstream):
        info("Fast-forwarding {} to {}/{}", trunk, remote, trunk)
        update_branch_ref(trunk, upstream, local)
        if trunk == current_branch:
            reset_working_tree()
    else:
        warning(
            "{} has commits that are not on {}/{}, syncing onto {}/{} instead",
            trunk, remote, trunk, remote, trunk,
        )
    return upstream


def inner_do_sync(
    branches: List[Branch],
    options: SyncOptions,
    *,
    root: BranchName,
    original_branch: BranchName,
    upstream_commit: Optional[Commit] = None,
    resumed: Optional[BranchName] = None,
    on_result: ResultCallback = report_result,
) -> List[SyncResult]:
    """Sync ``branches`` in order, each onto the current tip of its parent.

    Parents must come before their children. Stops at the first conflict,
    recording the rest of the walk as a pending sync and leaving the
    conflicted branch checked out. Otherwise ``original_branch`` is checked
    out again on the way out.
    """
    push = not options.no_push and get_config().push
    remote = get_config().remote
    results: List[SyncResult] = []
    with restore_branch(original_branch) as guard:
        for i, b in enumerate(branches):
            assert b.parent is not None
            with _git_step("check out", b.name):
                checkout(b.name)
            with _git_step("sync", b.name):
                if upstream_commit is not None and b.parent == root:
                    onto = upstream_commit
                else:
                    onto = get_commit(b.parent)
                result = sync_branch(b, onto, resumed=(b.name == resumed))
            on_result(result)
            results.append(result)

            if result.status == SyncStatus.CONFLICT:
                save_pending_sync(PendingSync(
                    original_branch=original_branch,
                    conflict=b.name,
                    remaining=[r.name for r in branches[i + 1:]],
                    options=options,
                    root=root,
                    upstream_commit=upstream_commit,
                ))
                guard.cancel()
                return results

            if result.status == SyncStatus.UPDATED and push:
                with _git_step("push", b.name):
                    push_branch(b.name, remote)
    return results


def do_sync(
    root: TreeNode,
    options: SyncOptions,
    *,
    current_branch: BranchName,
    on_result: ResultCallback = report_result,
) -> List[SyncResult]:
    """Sync the stack rooted at ``root``.

    Every branch below the root is synced in pre-order, or only
    ``current_branch`` with ``options.current_only``. With ``options.parent``
    the tree must already show ``current_branch`` under its new parent; the
    new parent is only recorded once every check has passed.
    """
    check_clean_working_tree()

    if options.current_only:
        node = find_node(root, current_branch)
        if node is None or node is root:
            raise PreconditionError("Nothing to sync: {} is the root of its stack", current_branch)
        branches = [node.branch]
    else:
        branches = list(depth_first(root))[1:]
    if not branches:
        raise PreconditionError("Nothing to sync: no branches are stacked on {}", root.name)

    upstream_commit = None
    if options.trunk:
        if branches[0].parent != root.name:
            raise ValidationError("--trunk is only valid when syncing from the root of a stack")
        upstream_commit = pull_trunk(root.name, current_branch)

    if options.parent is not None:
        store.set_parent(current_branch, options.parent)

    return inner_do_sync(
        branches,
        options,
        root=root.name,
        original_branch=current_branch,
        upstream_commit=upstream_commit,
        on_result=on_result,
    )


def reparented_records(name: BranchName, parent: BranchName) -> List[Branch]:
    """All records as they will be once ``parent`` is the parent of ``name``."""
    records = store.load_all()
    for r in records:
        if r.name == name:
            r.parent = parent
            break
    else:
        records.append(Branch(name, parent))
    return records


def sync_stack(
    current_branch: BranchName,
    options: SyncOptions,
    *,
    on_result: ResultCallback = report_result,
) -> List[SyncResult]:
    """Sync the stack that contains ``current_branch``."""
    check_clean_working_tree()
    if load_pending_sync() is not None:
        warning("Discarding the previously interrupted sync")
        clear_pending_sync()

    forest = None
    if options.parent is not None:
        if not branch_exists(options.parent):
            raise NotFoundError("Parent branch {} does not exist", options.parent)
        store.check_parent(current_branch, options.parent)
        forest = build_forest(reparented_records(current_branch, options.parent))

    root = get_current_root(current_branch, forest)
    cout("{}\n", render(root))
    return do_sync(root, options, current_branch=current_branch, on_result=on_result)


def continue_sync(*, no_push: bool = False, on_result: ResultCallback = report_result) -> List[SyncResult]:
    """Resume a sync that stopped on a conflict the user has since resolved."""
    pending = load_pending_sync()
    if pending is None:
        raise NotFoundError("No sync in progress")
    if no_push:
        pending.options.no_push = True
    if rebase_in_progress():
        raise PreconditionError(
            "Branch {} is still being rebased: resolve the conflicts and run `git rebase --continue`",
            pending.conflict,
        )
    paths = unmerged_paths()
    if paths:
        raise PreconditionError("Unresolved conflicts in: {}", ", ".join(paths))
    check_clean_working_tree()

    branches = []
    for name in [pending.conflict] + pending.remaining:
        b = store.get(name)
        if b is None:
            warning("Branch {} is no longer tracked, skipping it", name)
            continue
        branches.append(b)

    results = inner_do_sync(
        branches,
        pending.options,
        root=pending.root,
        original_branch=pending.original_branch,
        upstream_commit=pending.upstream_commit,
        resumed=pending.conflict,
        on_result=on_result,
    )
    if not results or results[-1].status != SyncStatus.CONFLICT:
        clear_pending_sync()
    return results
