"""Minimal git helpers
The helpers below provide just enough structure to list the files a pull
request changes, summarise the change, and spot uncommitted local edits.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence

LOGGER = logging.getLogger(__name__)


class GitError(RuntimeError):
    """Raised when a git command fails or the repository cannot be used."""


class GitRepository:
    """Lightweight wrapper around ``git`` commands."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()
        if not (self.root / ".git").exists():
            raise GitError(f"Not a git repository: {self.root}")

    @classmethod
    def discover(cls, start: Path | str | None = None) -> "GitRepository":
        """Locate the nearest git repository starting from ``start``."""

        path = Path(start or Path.cwd()).resolve()
        for candidate in (path, *path.parents):
            if (candidate / ".git").exists():
                return cls(candidate)
        raise GitError(f"Unable to locate a git repository from {path}")

    # ------------------------------------------------------------------ git IO
    def _run_git(self, args: Sequence[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
        command = ["git", *args]
        LOGGER.debug("git %s", " ".join(args))
        process = subprocess.run(
            command,
            cwd=self.root,
            capture_output=True,
            text=False,
            check=False,
        )
        stdout = process.stdout.decode("utf-8", errors="replace") if process.stdout else ""
        stderr = process.stderr.decode("utf-8", errors="replace") if process.stderr else ""
        result = subprocess.CompletedProcess(process.args, process.returncode, stdout, stderr)
        if check and result.returncode != 0:
            message = result.stderr.strip() or result.stdout.strip() or "unknown git error"
            raise GitError(f"git {' '.join(args)} failed: {message}")
        return result

    def git(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        """Execute ``git`` with ``args`` relative to the repository root."""

        return self._run_git(list(args), check=check)

    # --------------------------------------------------------------- history
    def merge_base(self, base: str) -> str:
        """Return the commit where ``HEAD`` branched off ``base``."""

        result = self._run_git(["merge-base", base, "HEAD"], check=True)
        baseline = result.stdout.strip()
        if not baseline:
            raise GitError(f"No merge base between {base} and HEAD")
        return baseline

    # ----------------------------------------------------------- diff helpers
    def changed_files(self, base: str = "master") -> List[str]:
        """Return paths changed on this branch since it diverged from ``base``."""

        baseline = self.merge_base(base)
        result = self._run_git(["diff", "--name-only", baseline], check=True)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def diff_stat(self, base: str = "master") -> str:
        """Return a human readable change-size summary relative to ``base``."""

        baseline = self.merge_base(base)
        result = self._run_git(["-c", "color.ui=always", "diff", "--stat", baseline], check=True)
        return result.stdout.rstrip()

    def local_changes(self) -> str:
        """Return the coloured diff of uncommitted changes to tracked files."""

        result = self._run_git(["-c", "color.ui=always", "diff", "-U1"], check=True)
        return result.stdout


__all__ = ["GitError", "GitRepository"]
