#!/usr/bin/env python3
"""Tests for stacksync.commands.stack module."""

import io
import unittest
from argparse import Namespace
from unittest.mock import patch

from stacksync.commands.stack import _finish_sync, cmd_stack_sync, cmd_stack_tree
from stacksync.main import build_parser
from stacksync.stack.models import Branch, SyncOptions, SyncResult, SyncStatus
from stacksync.utils.logging import ExitException, ValidationError
from stacksync.utils.types import BranchName


def _args(**kwargs):
    defaults = dict(cont=False, current=False, trunk=False, parent=None, no_push=False)
    defaults.update(kwargs)
    return Namespace(**defaults)


class TestFinishSync(unittest.TestCase):

    def test_success(self):
        _finish_sync([SyncResult(BranchName("a"), BranchName("main"), SyncStatus.UPDATED)])
        _finish_sync([])

    def test_conflict_exits(self):
        with self.assertRaises(ExitException) as ctx:
            _finish_sync([
                SyncResult(BranchName("a"), BranchName("main"), SyncStatus.UPDATED),
                SyncResult(BranchName("b"), BranchName("a"), SyncStatus.CONFLICT),
            ])
        self.assertIn("stacksync sync --continue", ctx.exception.args[0])
        self.assertIn("b onto a", ctx.exception.args[0])


class TestCmdStackSync(unittest.TestCase):

    @patch("stacksync.commands.stack.sync_stack")
    @patch("stacksync.commands.stack.require_current_branch")
    def test_options(self, mock_current, mock_sync):
        mock_current.return_value = BranchName("feature")
        mock_sync.return_value = []
        cmd_stack_sync(_args(current=True, no_push=True, parent="main"))
        mock_sync.assert_called_once_with(
            "feature", SyncOptions(current_only=True, no_push=True, parent=BranchName("main"))
        )

    @patch("stacksync.commands.stack.continue_sync")
    def test_continue(self, mock_continue):
        mock_continue.return_value = []
        cmd_stack_sync(_args(cont=True, no_push=True))
        mock_continue.assert_called_once_with(no_push=True)

    @patch("stacksync.commands.stack.continue_sync")
    def test_continue_with_other_options(self, mock_continue):
        with self.assertRaises(ValidationError):
            cmd_stack_sync(_args(cont=True, trunk=True))
        mock_continue.assert_not_called()


class TestCmdStackTree(unittest.TestCase):

    @patch("sys.stdout", new_callable=io.StringIO)
    @patch("stacksync.stack.tree.store.load_all")
    def test_prints_each_stack(self, mock_load, mock_stdout):
        mock_load.return_value = [
            Branch(BranchName("a"), BranchName("main")),
            Branch(BranchName("b"), BranchName("a")),
            Branch(BranchName("x"), BranchName("master")),
        ]
        cmd_stack_tree(Namespace())
        self.assertEqual(mock_stdout.getvalue(), "main\n    a\n        b\nmaster\n    x\n")

    @patch("sys.stdout", new_callable=io.StringIO)
    @patch("stacksync.stack.tree.store.load_all")
    def test_no_stacks(self, mock_load, mock_stdout):
        mock_load.return_value = []
        cmd_stack_tree(Namespace())
        self.assertEqual(mock_stdout.getvalue(), "No stacked branches\n")


class TestParser(unittest.TestCase):

    def test_sync_continue(self):
        args = build_parser().parse_args(["sync", "--continue"])
        self.assertTrue(args.cont)
        self.assertEqual(args.func, cmd_stack_sync)

    def test_branch_alias(self):
        args = build_parser().parse_args(["create", "feature-x", "--parent", "main"])
        self.assertEqual(args.name, "feature-x")
        self.assertEqual(args.parent, "main")

    def test_next_default_count(self):
        args = build_parser().parse_args(["next"])
        self.assertEqual(args.n, 1)
        self.assertFalse(args.sync)


if __name__ == "__main__":
    unittest.main()
