"""Rejection of target mixes that must not be tested together."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import List

from .targets import ChangedFile, FileClassifier, TargetLabel, TargetSet

FLAG_CONFIG_ISSUE = "#8188"


class ConflictError(RuntimeError):
    """Raised when flag config changes are mixed with runtime changes."""

    def __init__(self, files_to_move: Iterable[str]) -> None:
        self.files_to_move: tuple[str, ...] = tuple(files_to_move)
        super().__init__(
            "Flag config files cannot be combined with other changes; move these files to a "
            "separate PR: " + ", ".join(self.files_to_move)
        )

    def diagnostic_lines(self) -> List[str]:
        return [
            "Looks like your PR contains {prod|canary}-config.json in addition to some other "
            "files.  Config and code are not kept in sync, and config needs to be backwards "
            f"compatible with code for at least two weeks.  See {FLAG_CONFIG_ISSUE}",
            "Please move these files to a separate PR: " + ", ".join(self.files_to_move),
        ]


def guard(
    targets: TargetSet,
    files: Sequence[str | ChangedFile],
    classifier: FileClassifier,
) -> None:
    """Raise :class:`ConflictError` when ``targets`` mixes flag config and runtime.

    Without changed files the targets are the fail-open full set, which no
    author produced, so there is nothing to reject.
    """

    if not files:
        return
    if TargetLabel.FLAG_CONFIG not in targets or TargetLabel.RUNTIME not in targets:
        return

    offending = [
        ChangedFile.of(path).path
        for path in files
        if classifier.classify(path) is not TargetLabel.FLAG_CONFIG
    ]
    raise ConflictError(offending)


__all__ = ["ConflictError", "guard"]
