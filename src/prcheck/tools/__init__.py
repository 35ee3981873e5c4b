"""External collaborators used by the driver: shell, git and glob matching."""

from .exec import CommandExecutor, CommandFailed, CommandResult
from .globs import match_path, matches_any
from .vcs import GitError, GitRepository

__all__ = [
    "CommandExecutor",
    "CommandFailed",
    "CommandResult",
    "GitError",
    "GitRepository",
    "match_path",
    "matches_any",
]
