from __future__ import annotations

import os
import shlex
import sys

import pytest

from prcheck.console import format_duration
from prcheck.tools.exec import MISSING_EXECUTABLE_STATUS, CommandExecutor, CommandFailed

PYTHON = shlex.quote(sys.executable)


def _script(code: str) -> str:
    return f"{PYTHON} -c {shlex.quote(code)}"


def test_capture_returns_output_and_status() -> None:
    result = CommandExecutor().capture(_script("import sys; print('out'); sys.exit(3)"))
    assert result.exit_code == 3
    assert result.stdout.strip() == "out"
    assert not result.ok


def test_extra_environment_reaches_child_only(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PR_CHECK_PROBE", raising=False)
    code = "import os; print(os.environ['PR_CHECK_PROBE'])"
    result = CommandExecutor().capture(_script(code), env={"PR_CHECK_PROBE": "yes"})
    assert result.stdout.strip() == "yes"
    assert "PR_CHECK_PROBE" not in os.environ


def test_missing_executable_reports_status_127() -> None:
    result = CommandExecutor().run("definitely-not-a-real-binary --flag", capture=True)
    assert result.exit_code == MISSING_EXECUTABLE_STATUS
    assert "definitely-not-a-real-binary" in result.stderr


def test_run_or_die_raises_on_failure() -> None:
    with pytest.raises(CommandFailed) as excinfo:
        CommandExecutor().run_or_die(_script("raise SystemExit(4)"))
    assert excinfo.value.exit_code == 4


def test_cwd_is_respected(tmp_path) -> None:
    result = CommandExecutor(cwd=tmp_path).capture(_script("import os; print(os.getcwd())"))
    assert result.stdout.strip() == str(tmp_path.resolve())


@pytest.mark.parametrize(("seconds", "expected"), [(0, "0m 0s"), (59.9, "0m 59s"), (61, "1m 1s"), (-3, "0m 0s")])
def test_format_duration(seconds: float, expected: str) -> None:
    assert format_duration(seconds) == expected
