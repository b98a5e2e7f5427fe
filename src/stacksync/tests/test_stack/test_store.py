#!/usr/bin/env python3
"""Tests for stacksync.stack.store module."""

import random
import unittest
from typing import Dict, Optional
from unittest.mock import patch

from stacksync.stack import store
from stacksync.stack.models import Branch
from stacksync.utils.logging import StructuralError, ValidationError
from stacksync.utils.types import BranchName, Commit


class FakeRefs:
    """Parent pointers and watermarks kept in dicts instead of git."""

    def __init__(self):
        self.parents: Dict[BranchName, BranchName] = {}
        self.commits: Dict[BranchName, Commit] = {}

    def get_parent_branch(self, branch) -> Optional[BranchName]:
        return self.parents.get(branch)

    def set_parent_branch(self, branch, parent):
        self.parents[branch] = parent

    def unset_parent_branch(self, branch):
        self.parents.pop(branch, None)

    def list_parent_branches(self):
        return list(self.parents.items())

    def get_stack_parent_commit(self, branch) -> Optional[Commit]:
        return self.commits.get(branch)

    def set_parent_commit(self, branch, commit, prev_commit=None):
        if prev_commit is not None:
            assert self.commits.get(branch, "") == prev_commit, "concurrent update"
        self.commits[branch] = commit

    def delete_parent_commit(self, branch):
        self.commits.pop(branch, None)

    def get_all_stack_parent_refs(self):
        return list(self.commits)

    def patches(self, all_branches=()):
        return dict(
            get_parent_branch=self.get_parent_branch,
            set_parent_branch=self.set_parent_branch,
            unset_parent_branch=self.unset_parent_branch,
            list_parent_branches=self.list_parent_branches,
            get_stack_parent_commit=self.get_stack_parent_commit,
            set_parent_commit=self.set_parent_commit,
            delete_parent_commit=self.delete_parent_commit,
            get_all_stack_parent_refs=self.get_all_stack_parent_refs,
            get_all_branches=lambda: list(all_branches),
            get_trunk_branches=lambda: frozenset([BranchName("main"), BranchName("master")]),
        )


class StoreTestCase(unittest.TestCase):

    def setUp(self):
        self.refs = FakeRefs()
        self.existing = ["main", "feature-1", "feature-2"]
        patcher = patch.multiple("stacksync.stack.store", **self.refs.patches(self.existing))
        patcher.start()
        self.addCleanup(patcher.stop)


class TestGetAndSetParent(StoreTestCase):
    """Tests for get and set_parent."""

    def test_untracked_branch(self):
        self.assertIsNone(store.get(BranchName("feature-1")))

    def test_set_parent_then_get(self):
        store.set_parent(BranchName("feature-1"), BranchName("main"))
        store.record_synced_parent_commit(BranchName("feature-1"), Commit("abc123"))
        self.assertEqual(
            store.get(BranchName("feature-1")),
            Branch(BranchName("feature-1"), BranchName("main"), Commit("abc123")),
        )

    def test_update_parent(self):
        store.set_parent(BranchName("feature-1"), BranchName("main"))
        store.set_parent(BranchName("feature-2"), BranchName("main"))
        store.set_parent(BranchName("feature-2"), BranchName("feature-1"))
        self.assertEqual(store.get(BranchName("feature-2")).parent, "feature-1")

    def test_trunk_is_never_tracked(self):
        with self.assertRaises(ValidationError):
            store.set_parent(BranchName("main"), BranchName("feature-1"))
        self.assertIsNone(store.get(BranchName("main")))

    def test_own_parent_rejected(self):
        with self.assertRaises(StructuralError):
            store.set_parent(BranchName("feature-1"), BranchName("feature-1"))

    def test_cycle_rejected(self):
        store.set_parent(BranchName("a"), BranchName("main"))
        store.set_parent(BranchName("b"), BranchName("a"))
        store.set_parent(BranchName("c"), BranchName("b"))
        with self.assertRaises(StructuralError):
            store.set_parent(BranchName("a"), BranchName("c"))
        self.assertEqual(store.get(BranchName("a")).parent, "main")

    def test_check_parent_does_not_write(self):
        store.set_parent(BranchName("a"), BranchName("main"))
        store.set_parent(BranchName("b"), BranchName("a"))
        store.check_parent(BranchName("b"), BranchName("main"))
        self.assertEqual(store.get(BranchName("b")).parent, "a")
        with self.assertRaises(StructuralError):
            store.check_parent(BranchName("a"), BranchName("b"))
        with self.assertRaises(ValidationError):
            store.check_parent(BranchName("main"), BranchName("a"))

    def test_random_updates_stay_acyclic(self):
        names = [BranchName(n) for n in ["a", "b", "c", "d", "e", "f"]]
        rng = random.Random(1234)
        for _ in range(300):
            branch = rng.choice(names)
            parent = rng.choice(names + [BranchName("main")])
            try:
                store.set_parent(branch, parent)
            except StructuralError:
                pass
            for name in self.refs.parents:
                seen = set()
                p: Optional[BranchName] = name
                while p is not None:
                    self.assertNotIn(p, seen)
                    seen.add(p)
                    p = self.refs.parents.get(p)


class TestListing(StoreTestCase):
    """Tests for list_all and load_all."""

    def test_insertion_order(self):
        for name in ["zeta", "alpha", "mid"]:
            store.set_parent(BranchName(name), BranchName("main"))
        self.assertEqual(store.list_all(), ["zeta", "alpha", "mid"])
        self.assertEqual([b.name for b in store.load_all()], ["zeta", "alpha", "mid"])

    def test_watermark_compare_and_swap(self):
        store.set_parent(BranchName("feature-1"), BranchName("main"))
        store.record_synced_parent_commit(BranchName("feature-1"), Commit("c1"))
        store.record_synced_parent_commit(BranchName("feature-1"), Commit("c2"), Commit("c1"))
        self.assertEqual(store.get(BranchName("feature-1")).parent_commit, "c2")
        with self.assertRaises(AssertionError):
            store.record_synced_parent_commit(BranchName("feature-1"), Commit("c3"), Commit("c1"))


class TestCleanup(StoreTestCase):
    """Tests for remove and cleanup_unused_records."""

    def test_cleanup_drops_deleted_branches(self):
        store.set_parent(BranchName("feature-1"), BranchName("main"))
        store.set_parent(BranchName("gone"), BranchName("feature-1"))
        store.record_synced_parent_commit(BranchName("gone"), Commit("c1"))
        store.cleanup_unused_records()
        self.assertEqual(store.list_all(), ["feature-1"])
        self.assertNotIn("gone", self.refs.commits)


if __name__ == "__main__":
    unittest.main()
