"""Synchronous execution of external commands."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

LOGGER = logging.getLogger(__name__)

MISSING_EXECUTABLE_STATUS = 127


@dataclass(slots=True)
class CommandResult:
    """Exit status and captured output of one command."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandFailed(RuntimeError):
    """Raised by :meth:`CommandExecutor.run_or_die` on a non-zero exit status."""

    def __init__(self, result: CommandResult) -> None:
        self.result = result
        super().__init__(f"Command exited with status {result.exit_code}: {result.command}")

    @property
    def exit_code(self) -> int:
        return self.result.exit_code


class CommandExecutor:
    """Run command strings to completion, one at a time.

    Output streams are inherited unless :meth:`capture` is used.  Extra
    environment variables apply to the child process only; the current
    process environment is never modified.
    """

    def __init__(self, cwd: Path | str | None = None) -> None:
        self.cwd = Path(cwd) if cwd is not None else None

    @staticmethod
    def _merge_env(extra: Mapping[str, str] | None) -> Dict[str, str]:
        env: Dict[str, str] = os.environ.copy()
        if extra:
            env.update({str(key): str(value) for key, value in extra.items()})
        return env

    def run(
        self,
        command: str,
        *,
        env: Mapping[str, str] | None = None,
        capture: bool = False,
    ) -> CommandResult:
        """Run ``command`` and return its result regardless of exit status."""

        args = shlex.split(command)
        if env:
            LOGGER.debug("Running %s with extra environment %s", command, sorted(env))
        try:
            process = subprocess.run(  # noqa: S603  # commands come from the action catalogue
                args,
                cwd=self.cwd,
                env=self._merge_env(env),
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            return CommandResult(
                command=command,
                exit_code=MISSING_EXECUTABLE_STATUS,
                stderr=f"Executable not available: {args[0] if args else command}",
            )
        return CommandResult(
            command=command,
            exit_code=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )

    def capture(self, command: str, *, env: Mapping[str, str] | None = None) -> CommandResult:
        """Run ``command`` capturing stdout and stderr."""

        return self.run(command, env=env, capture=True)

    def run_or_die(self, command: str, *, env: Mapping[str, str] | None = None) -> CommandResult:
        """Run ``command`` and raise :class:`CommandFailed` unless it succeeds."""

        result = self.run(command, env=env)
        if not result.ok:
            raise CommandFailed(result)
        return result


__all__ = ["CommandExecutor", "CommandFailed", "CommandResult", "MISSING_EXECUTABLE_STATUS"]
