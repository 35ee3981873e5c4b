"""Prefixed, coloured progress output for the driver."""

from __future__ import annotations

import time

import typer

LOG_PREFIX = "pr-check:"


def format_duration(seconds: float) -> str:
    """Render ``seconds`` as ``<minutes>m <seconds>s``."""
    total = max(int(seconds), 0)
    minutes, secs = divmod(total, 60)
    return f"{minutes}m {secs}s"


def cyan(text: object) -> str:
    return typer.style(str(text), fg=typer.colors.CYAN)


def green(text: object) -> str:
    return typer.style(str(text), fg=typer.colors.GREEN)


class Console:
    """Writes progress lines tagged with the driver prefix."""

    def __init__(self, prefix: str = LOG_PREFIX) -> None:
        self.prefix = prefix

    @property
    def tag(self) -> str:
        return typer.style(self.prefix, fg=typer.colors.YELLOW, bold=True)

    def _line(self, parts: tuple[object, ...]) -> str:
        return " ".join([self.tag, *(str(part) for part in parts)])

    def info(self, *parts: object, spaced: bool = False) -> None:
        line = self._line(parts)
        typer.echo(f"\n{line}" if spaced else line)

    def note(self, *parts: object) -> None:
        self.info(typer.style("NOTE:", fg=typer.colors.YELLOW), *parts)

    def error(self, *parts: object) -> None:
        typer.echo(self._line((typer.style("ERROR:", fg=typer.colors.RED), *parts)), err=True)

    def raw(self, text: str) -> None:
        if text:
            typer.echo(text)

    def start_timer(self, name: str) -> float:
        self.info("Running", cyan(name) + "...", spaced=True)
        return time.monotonic()

    def stop_timer(self, name: str, started: float) -> float:
        elapsed = time.monotonic() - started
        self.info("Done running", cyan(name), "Total time:", green(format_duration(elapsed)))
        return elapsed


__all__ = ["Console", "LOG_PREFIX", "cyan", "format_duration", "green"]
