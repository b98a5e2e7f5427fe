"""Branch commands - create a stacked branch."""

from stacksync.stack.operations import create_stacked_branch
from stacksync.utils.logging import cout
from stacksync.utils.types import BranchName


def cmd_branch_new(args):
    """Create a new branch on top of the current (or given) branch."""
    parent = BranchName(args.parent) if args.parent else None
    b = create_stacked_branch(BranchName(args.name), parent)
    cout("Created branch {} on top of {}\n", b.name, b.parent, fg="green")
