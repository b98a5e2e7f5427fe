"""User interface utilities for stacksync."""

from typing import List

import asciitree  # type: ignore
from simple_term_menu import TerminalMenu  # type: ignore

from stacksync.utils.logging import IS_TERMINAL, ValidationError, die
from stacksync.utils.types import BranchName

# Print upside down, the trunk ends up at the bottom
_ASCII_TREE_BOX = {
    "UP_AND_RIGHT": "┌",
    "HORIZONTAL": "─",
    "VERTICAL": "│",
    "VERTICAL_AND_RIGHT": "├",
}
_ASCII_TREE_STYLE = asciitree.drawing.BoxStyle(gfx=_ASCII_TREE_BOX)
ASCII_TREE = asciitree.LeftAligned(draw=_ASCII_TREE_STYLE)


def menu_choose_branch(branches: List[BranchName], title: str = "") -> BranchName:
    """Let the user pick one of ``branches`` from a terminal menu."""
    if not IS_TERMINAL:
        raise ValidationError(
            "Several branches to choose from ({}), a terminal is required", ", ".join(branches)
        )

    menu = TerminalMenu([str(b) for b in branches], title=title or None)
    idx = menu.show()
    if idx is None:
        die("Aborted")
    return branches[idx]
