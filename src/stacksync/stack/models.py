"""Stack data models for stacksync."""

import dataclasses
import enum
from typing import Any, Dict, List, Optional

from stacksync.utils.types import BranchName, Commit


@dataclasses.dataclass
class Branch:
    """A tracked branch and its position in a stack.

    ``parent`` is None for a stack root. ``parent_commit`` is the commit of
    the parent that this branch was last synced on top of.
    """
    name: BranchName
    parent: Optional[BranchName] = None
    parent_commit: Optional[Commit] = None


@dataclasses.dataclass
class TreeNode:
    """A branch and the branches stacked directly on top of it."""
    branch: Branch
    children: List["TreeNode"] = dataclasses.field(default_factory=list)

    @property
    def name(self) -> BranchName:
        return self.branch.name

    def __repr__(self):
        return f"TreeNode: {self.name} {[c.name for c in self.children]}"


class SyncStatus(enum.Enum):
    UP_TO_DATE = "up-to-date"
    UPDATED = "updated"
    CONFLICT = "conflict"


@dataclasses.dataclass
class SyncResult:
    branch: BranchName
    parent: BranchName
    status: SyncStatus


@dataclasses.dataclass
class SyncOptions:
    """Options for a single sync run."""
    current_only: bool = False
    trunk: bool = False
    no_push: bool = False
    parent: Optional[BranchName] = None


@dataclasses.dataclass
class PendingSync:
    """A sync that stopped on a conflict and can be resumed.

    ``remaining`` lists, in walk order, the branches still to sync after
    ``conflict``.
    """
    original_branch: BranchName
    conflict: BranchName
    remaining: List[BranchName]
    options: SyncOptions
    root: BranchName
    upstream_commit: Optional[Commit] = None

    def to_json(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_json(cls, d: Dict[str, Any]) -> "PendingSync":
        return cls(
            original_branch=BranchName(d["original_branch"]),
            conflict=BranchName(d["conflict"]),
            remaining=[BranchName(b) for b in d["remaining"]],
            options=SyncOptions(**d["options"]),
            root=BranchName(d["root"]),
            upstream_commit=Commit(d["upstream_commit"]) if d.get("upstream_commit") else None,
        )
