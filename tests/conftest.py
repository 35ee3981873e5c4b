from __future__ import annotations

import subprocess
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from prcheck.console import Console  # noqa: E402
from prcheck.tools.exec import CommandExecutor, CommandResult  # noqa: E402


@dataclass(slots=True)
class RecordedCall:
    command: str
    env: Dict[str, str]
    capture: bool


class RecordingExecutor(CommandExecutor):
    """Executor double that records commands instead of running them."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: List[RecordedCall] = []
        self.exit_codes: Dict[str, int] = {}
        self.outputs: Dict[str, tuple[str, str]] = {}

    def fail(self, command: str, exit_code: int = 1) -> None:
        self.exit_codes[command] = exit_code

    def respond(self, command: str, *, stdout: str = "", stderr: str = "") -> None:
        self.outputs[command] = (stdout, stderr)

    @property
    def commands(self) -> List[str]:
        return [call.command for call in self.calls]

    def run(
        self,
        command: str,
        *,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        self.calls.append(RecordedCall(command=command, env=dict(env or {}), capture=capture))
        stdout, stderr = self.outputs.get(command, ("", ""))
        return CommandResult(
            command=command,
            exit_code=self.exit_codes.get(command, 0),
            stdout=stdout,
            stderr=stderr,
        )


@pytest.fixture()
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def console() -> Console:
    return Console()


@dataclass(slots=True)
class TinyRepo:
    """Git repository with a ``master`` branch and a feature branch checked out."""

    root: Path
    files: List[str] = field(default_factory=list)

    def git(self, *args: str) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            ["git", *args],
            cwd=self.root,
            check=True,
            capture_output=True,
            text=True,
        )

    def write(self, relative: str, content: str = "content\n") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def commit(self, *relatives: str, message: str = "change") -> None:
        for relative in relatives:
            self.write(relative, f"{relative}\n")
        self.git("add", ".")
        self.git("commit", "-m", message)


@pytest.fixture()
def tiny_repo(tmp_path: Path) -> TinyRepo:
    """Create a git repository whose ``feature`` branch forks from ``master``."""

    repo = TinyRepo(root=tmp_path / "tiny-repo")
    repo.root.mkdir()
    repo.git("init")
    repo.git("symbolic-ref", "HEAD", "refs/heads/master")
    repo.git("config", "user.email", "ci@example.com")
    repo.git("config", "user.name", "PR Check")
    repo.commit("README.md", "src/runtime.js", "yarn.lock", message="Initial state")
    repo.git("checkout", "-b", "feature")
    return repo
