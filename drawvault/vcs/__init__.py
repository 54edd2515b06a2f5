"""Version-control backends for drawvault."""

from pathlib import Path

from drawvault.config.models import VCSConfig
from drawvault.vcs.base import ALL_PATHS, VersionControlBridge
from drawvault.vcs.git import GitBridge
from drawvault.vcs.models import HistoryEntry, KeyPair


def create_bridge(config: VCSConfig, repo_path: Path) -> VersionControlBridge:
    """Create a version-control bridge rooted at ``repo_path`` from config."""
    if config.provider != "git":
        raise ValueError(
            f"Unsupported VCS provider: {config.provider!r}. "
            "Currently only 'git' is supported."
        )
    return GitBridge(repo_path, config)


__all__ = [
    "ALL_PATHS",
    "GitBridge",
    "HistoryEntry",
    "KeyPair",
    "VersionControlBridge",
    "create_bridge",
]
