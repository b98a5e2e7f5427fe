"""Persistent parent/child relationships between stacked branches."""

from typing import List, Optional

from stacksync.git.branch import get_all_branches, get_trunk_branches
from stacksync.git.refs import (
    delete_parent_commit, get_all_stack_parent_refs, get_parent_branch,
    get_stack_parent_commit, list_parent_branches, set_parent_branch,
    set_parent_commit, unset_parent_branch
)
from stacksync.stack.models import Branch
from stacksync.utils.logging import StructuralError, ValidationError, debug, info
from stacksync.utils.types import BranchName, Commit


def get(name: BranchName) -> Optional[Branch]:
    """Return the record of a tracked branch, None if it is not tracked."""
    if name in get_trunk_branches():
        return None
    parent = get_parent_branch(name)
    if parent is None:
        return None
    return Branch(name, parent, get_stack_parent_commit(name))


def list_all() -> List[BranchName]:
    """Return all tracked branch names in the order they were recorded."""
    trunks = get_trunk_branches()
    return [b for b, _ in list_parent_branches() if b not in trunks]


def load_all() -> List[Branch]:
    """Return all tracked branch records in the order they were recorded."""
    trunks = get_trunk_branches()
    return [
        Branch(b, p, get_stack_parent_commit(b))
        for b, p in list_parent_branches()
        if b not in trunks
    ]


def check_parent(name: BranchName, parent: BranchName):
    """Fail if ``parent`` can not become the parent of ``name``.

    That is when ``name`` is a trunk or would become its own ancestor.
    """
    if name in get_trunk_branches():
        raise ValidationError("Branch {} is a trunk branch and can not be stacked", name)
    seen = set()
    p: Optional[BranchName] = parent
    while p is not None:
        if p == name:
            raise StructuralError("Setting the parent of {} to {} would create a cycle", name, parent)
        if p in seen:
            raise StructuralError("Stack containing {} already has a cycle", p)
        seen.add(p)
        record = get(p)
        p = record.parent if record else None


def set_parent(name: BranchName, parent: BranchName):
    """Record ``parent`` as the parent of ``name``, see check_parent."""
    check_parent(name, parent)
    debug("Setting parent of {} to {}", name, parent)
    set_parent_branch(name, parent)


def record_synced_parent_commit(name: BranchName, commit: Commit, prev_commit: Optional[Commit] = None):
    """Remember that ``name`` now contains ``commit`` of its parent.

    The update is refused by git if another writer changed the watermark
    since ``prev_commit`` was read.
    """
    set_parent_commit(name, commit, prev_commit)


def remove(name: BranchName):
    """Forget a tracked branch, its own branch is left untouched."""
    unset_parent_branch(name)
    if get_stack_parent_commit(name) is not None:
        delete_parent_commit(name)


def cleanup_unused_records():
    """Drop the records of branches that no longer exist."""
    existing = set(get_all_branches())
    for b in list_all():
        if b not in existing:
            info("Forgetting branch {} (it no longer exists)", b)
            remove(b)
    for b in get_all_stack_parent_refs():
        if b not in existing:
            info("Deleting ref refs/stack-parent/{} (branch {} no longer exists)", b, b)
            delete_parent_commit(b)
