"""Running git (and other) commands for stacksync."""

import shlex
import subprocess
import sys
from typing import Optional

from stacksync.utils.logging import ExitException, debug, die
from stacksync.utils.types import CmdArgs


class CommandError(ExitException):
    """A command exited with a non-zero status or was killed by a signal."""

    def __init__(self, cmd: CmdArgs, returncode: int, stderr: str):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        if returncode < 0:
            super().__init__("Killed by signal {}: {}. Stderr was:\n{}", -returncode, shlex.join(cmd), stderr)
        else:
            super().__init__("Exited with status {}: {}. Stderr was:\n{}", returncode, shlex.join(cmd), stderr)


def _check_returncode(sp: subprocess.CompletedProcess, cmd: CmdArgs):
    if sp.returncode != 0:
        raise CommandError(cmd, sp.returncode, sp.stderr.decode("UTF-8", errors="replace").rstrip())


def run_multiline(cmd: CmdArgs, *, check: bool = True, out: bool = False) -> Optional[str]:
    """Run a command and return its output (with newlines preserved).

    A failing command raises CommandError, or returns None when ``check`` is
    False. With ``out`` the command writes straight to our stdout (progress
    of a rebase or a push) and "" is returned.
    """
    debug("Running: {}", shlex.join(cmd))
    # Keep our own output ordered with the command's
    sys.stdout.flush()
    sys.stderr.flush()
    sp = subprocess.run(
        cmd,
        stdout=1 if out else subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    if sp.returncode != 0:
        if check:
            _check_returncode(sp, cmd)
        return None
    if sp.stdout is None:
        return ""
    return sp.stdout.decode("UTF-8")


def run_always_return(cmd: CmdArgs, **kwargs) -> str:
    """Like run, for commands that must produce output."""
    out = run(cmd, **kwargs)
    assert out is not None
    return out


def run(cmd: CmdArgs, **kwargs) -> Optional[str]:
    """Run a command and return its output with surrounding whitespace stripped."""
    out = run_multiline(cmd, **kwargs)
    return None if out is None else out.strip()


def remove_prefix(s: str, prefix: str) -> str:
    if not s.startswith(prefix):
        die('Invalid string "{}": expected prefix "{}"', s, prefix)
    return s[len(prefix):]
