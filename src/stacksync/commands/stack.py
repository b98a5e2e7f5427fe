"""Stack commands - sync, tree, info."""

from typing import List

from stacksync.git.branch import get_current_branch, require_current_branch
from stacksync.stack.models import SyncOptions, SyncResult, SyncStatus
from stacksync.stack.operations import continue_sync, sync_stack
from stacksync.stack.tree import build_forest, print_forest, render
from stacksync.utils.logging import ValidationError, cout, die
from stacksync.utils.types import BranchName


def _finish_sync(results: List[SyncResult]):
    if results and results[-1].status == SyncStatus.CONFLICT:
        last = results[-1]
        print()
        die(
            "Automatic rebase of {} onto {} stopped on conflicts. Please resolve them "
            "(`git rebase --continue`), then run `stacksync sync --continue`",
            last.branch, last.parent,
        )


def cmd_stack_sync(args):
    """Sync the current stack, or resume an interrupted sync."""
    if args.cont:
        if args.current or args.trunk or args.parent:
            raise ValidationError("--continue can not be combined with --current, --trunk or --parent")
        _finish_sync(continue_sync(no_push=args.no_push))
        return

    options = SyncOptions(
        current_only=args.current,
        trunk=args.trunk,
        no_push=args.no_push,
        parent=BranchName(args.parent) if args.parent else None,
    )
    _finish_sync(sync_stack(require_current_branch(), options))


def cmd_stack_tree(args):
    """Print every stack as an indented tree."""
    forest = build_forest()
    if not forest:
        cout("No stacked branches\n")
        return
    for tree in forest:
        cout("{}\n", render(tree))


def cmd_info(args):
    """Print every stack with sync status markers."""
    forest = build_forest()
    if not forest:
        cout("No stacked branches\n")
        return
    print_forest(forest, get_current_branch())
