"""Main entry point for stacksync."""

import sys
from argparse import ArgumentParser

import argcomplete  # type: ignore

from stacksync.commands.branch import cmd_branch_new
from stacksync.commands.navigation import cmd_next, cmd_prev
from stacksync.commands.stack import cmd_info, cmd_stack_sync, cmd_stack_tree
from stacksync.git.branch import branch_name_completer
from stacksync.utils.config import get_config
from stacksync.utils.logging import ExitException, error, set_color_mode, setup_logging
from stacksync.utils.types import LOGLEVELS


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Keep stacked git branches in sync")
    parser.add_argument(
        "--log-level", default="info", choices=LOGLEVELS.keys(),
        help="Set the log level",
    )
    parser.add_argument(
        "--color", default="auto", choices=["always", "auto", "never"],
        help="Colorize output and error",
    )
    parser.add_argument(
        "--remote-name", "-r", default=None,
        help="name of the git remote where branches will be pushed",
    )

    subparsers = parser.add_subparsers(required=True, dest="command")

    # branch
    branch_parser = subparsers.add_parser("branch", aliases=["b", "create"], help="Create a new stacked branch")
    branch_parser.add_argument("name", help="Branch name")
    branch_parser.add_argument(
        "--parent", help="Parent branch to stack on (default: the current branch)",
    ).completer = branch_name_completer
    branch_parser.set_defaults(func=cmd_branch_new)

    # sync
    sync_parser = subparsers.add_parser("sync", help="Synchronize stacked branches with their parents")
    sync_parser.add_argument(
        "--current", action="store_true",
        help="Only sync the current branch (don't recurse into descendant branches)",
    )
    sync_parser.add_argument(
        "--parent", help="Set the stack parent of the current branch to this branch",
    ).completer = branch_name_completer
    sync_parser.add_argument(
        "--trunk", action="store_true",
        help="Rebase the stack on the latest commit of its base branch from the remote",
    )
    sync_parser.add_argument("--no-push", action="store_true", help="Do not force-push updated branches")
    sync_parser.add_argument(
        "--continue", action="store_true", dest="cont",
        help="Continue a sync that stopped on a conflict",
    )
    sync_parser.set_defaults(func=cmd_stack_sync)

    # tree / info
    tree_parser = subparsers.add_parser("tree", help="Show the tree of stacked branches")
    tree_parser.set_defaults(func=cmd_stack_tree)
    info_parser = subparsers.add_parser("info", help="Show stacks with their sync status")
    info_parser.set_defaults(func=cmd_info)

    # next / prev
    next_parser = subparsers.add_parser("next", help="Check out the next branch in the stack")
    next_parser.add_argument("n", nargs="?", type=int, default=1, help="Number of branches to move")
    next_parser.add_argument("--sync", action="store_true", help="Sync the new branch with its parent")
    next_parser.add_argument("--no-push", action="store_true", help="Do not force-push with --sync")
    next_parser.set_defaults(func=cmd_next)
    prev_parser = subparsers.add_parser("prev", help="Check out the previous branch in the stack")
    prev_parser.add_argument("n", nargs="?", type=int, default=1, help="Number of branches to move")
    prev_parser.set_defaults(func=cmd_prev)

    return parser


def main(argv=None):
    """Main entry point for stacksync."""
    setup_logging()
    try:
        parser = build_parser()
        argcomplete.autocomplete(parser)
        args = parser.parse_args(argv)
        setup_logging(LOGLEVELS[args.log_level])
        set_color_mode(args.color)

        if args.remote_name is not None:
            get_config().remote = args.remote_name

        args.func(args)
    except ExitException as e:
        error("{}", e.args[0])
        sys.exit(1)
