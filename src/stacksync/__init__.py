"""stacksync - keep stacked git branches in sync."""

from .main import main

from .utils.logging import (
    die, cout, debug, info, warning, error, fmt, ExitException, GitOperationError,
    NotFoundError, PreconditionError, StructuralError, ValidationError
)
from .utils.types import BranchName, Commit, CmdArgs
from .utils.config import StackSyncConfig, get_config, read_config

from .stack.models import Branch, PendingSync, SyncOptions, SyncResult, SyncStatus, TreeNode
from .stack.tree import build_forest, get_current_root, render
from .stack.operations import continue_sync, create_stacked_branch, do_sync, sync_stack


def runner():
    main()
