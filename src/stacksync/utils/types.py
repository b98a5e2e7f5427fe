"""Type aliases and constants for stacksync."""

import logging
from typing import FrozenSet, List, NewType

# Type aliases
BranchName = NewType("BranchName", str)
PathName = NewType("PathName", str)
Commit = NewType("Commit", str)
CmdArgs = NewType("CmdArgs", List[str])

# Constants
STATE_FILE_NAME = "stacksync.state"
STACK_PARENT_REF_PREFIX = "refs/stack-parent/"
TREE_INDENT = "    "

# Branches that are always treated as trunks, more can be configured
DEFAULT_TRUNK_BRANCHES: FrozenSet[BranchName] = frozenset([BranchName("master"), BranchName("main")])

# Log levels
LOGLEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}
