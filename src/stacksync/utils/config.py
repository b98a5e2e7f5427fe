"""Configuration management for stacksync."""

import configparser
import dataclasses
import os
from typing import List, Optional

from stacksync.utils.logging import ExitException, debug


@dataclasses.dataclass
class StackSyncConfig:
    """Configuration options for stacksync."""
    remote: str = "origin"
    use_force_push: bool = True
    trunk_branches: List[str] = dataclasses.field(default_factory=list)
    push: bool = True

    def read_one_config(self, config_path: str):
        """Read configuration from a single file."""
        rawconfig = configparser.ConfigParser()
        rawconfig.read(config_path)
        if rawconfig.has_section("GIT"):
            self.remote = rawconfig.get("GIT", "remote", fallback=self.remote)
            self.use_force_push = rawconfig.getboolean("GIT", "use_force_push", fallback=self.use_force_push)
            trunks = rawconfig.get("GIT", "trunk_branches", fallback=None)
            if trunks is not None:
                self.trunk_branches = [t.strip() for t in trunks.split(",") if t.strip()]

        if rawconfig.has_section("SYNC"):
            self.push = rawconfig.getboolean("SYNC", "push", fallback=self.push)


# Global config singleton
CONFIG: Optional[StackSyncConfig] = None


def get_config() -> StackSyncConfig:
    """Get the global configuration, loading it if necessary."""
    global CONFIG
    if CONFIG is None:
        CONFIG = read_config()
    return CONFIG


def read_config() -> StackSyncConfig:
    """Read configuration from config files."""
    config = StackSyncConfig()
    config_paths = [os.path.expanduser("~/.stacksyncconfig")]

    try:
        from stacksync.git.branch import get_top_level_dir
        root_dir = get_top_level_dir()
        config_paths.append(f"{root_dir}/.stacksyncconfig")
    except ExitException:
        debug("Not in a git repository, skipping repo-level config")

    for p in config_paths:
        # Root dir config overwrites home directory config
        if os.path.exists(p):
            config.read_one_config(p)

    return config
