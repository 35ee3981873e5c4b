"""Classification of changed files into build targets.

Every changed path maps to exactly one :class:`TargetLabel`.  The mapping is
an explicit, ordered list of :class:`ClassificationRule` entries evaluated
first-match-wins; a path matching no rule is runtime code.  Aggregating the
labels of a change yields a :class:`TargetSet`, which drives the planner.

An empty change list means the diff could not be determined, so the
aggregate falls back to every label rather than to none.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Dict, List

from .tools.globs import matches_any

if TYPE_CHECKING:
    from .config import PrCheckConfig


class TargetLabel(str, Enum):
    """Categories of work implied by a changed file."""

    BUILD_SYSTEM = "BUILD_SYSTEM"
    VALIDATOR_WEBUI = "VALIDATOR_WEBUI"
    VALIDATOR = "VALIDATOR"
    RUNTIME = "RUNTIME"
    UNIT_TEST = "UNIT_TEST"
    DEV_DASHBOARD = "DEV_DASHBOARD"
    INTEGRATION_TEST = "INTEGRATION_TEST"
    DOCS = "DOCS"
    FLAG_CONFIG = "FLAG_CONFIG"
    VISUAL_DIFF = "VISUAL_DIFF"


BUILD_SYSTEM_ROOT = "build-system"
SCHEMA_EXTENSIONS = frozenset({".textproto"})
OWNERS_FILENAME = "OWNERS.yaml"

VALIDATOR_WEBUI_ROOT = "validator/webui"
VALIDATOR_ROOT = "validator/"
EXTENSIONS_ROOT = "extensions/"
VALIDATOR_FILE_PREFIX = "validator-"
VALIDATOR_FILE_SUFFIXES = (".out", ".html", ".protoascii")

DOC_EXTENSIONS = frozenset({".md"})
EXAMPLES_ROOT = "examples/"

FLAG_CONFIG_FILENAMES = frozenset({"prod-config.json", "canary-config.json"})

DEV_DASHBOARD_ENTRY = "build-system/app.js"
DEV_DASHBOARD_INDEX_ROOT = "build-system/app-index/"

VISUAL_DIFF_FILENAMES = frozenset({"visual-diff.js", "visual-tests"})
VISUAL_TESTS_ROOT = "examples/visual-tests/"


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """A repository-relative path reported by version control."""

    path: str

    @classmethod
    def of(cls, value: "str | ChangedFile") -> "ChangedFile":
        if isinstance(value, ChangedFile):
            return value
        return cls(path=value.replace("\\", "/"))

    @property
    def _pure(self) -> PurePosixPath:
        return PurePosixPath(self.path)

    @property
    def extension(self) -> str:
        return self._pure.suffix

    @property
    def basename(self) -> str:
        return self._pure.name

    @property
    def segments(self) -> tuple[str, ...]:
        """Ordered directory segments leading to the file."""
        return self._pure.parent.parts

    def is_under(self, prefix: str) -> bool:
        return self.path.startswith(prefix)


def is_owners_file(changed: ChangedFile) -> bool:
    return changed.basename == OWNERS_FILENAME


def is_flag_config(changed: ChangedFile) -> bool:
    """Return ``True`` for the well-known prod and canary flag config files."""
    return changed.basename in FLAG_CONFIG_FILENAMES


def is_dev_dashboard_file(changed: ChangedFile) -> bool:
    return changed.path == DEV_DASHBOARD_ENTRY or changed.is_under(DEV_DASHBOARD_INDEX_ROOT)


def is_visual_diff_file(changed: ChangedFile) -> bool:
    return changed.basename in VISUAL_DIFF_FILENAMES or changed.is_under(VISUAL_TESTS_ROOT)


def is_build_system_file(changed: ChangedFile) -> bool:
    """Return ``True`` for build tooling changes.

    Schema protos, flag configs, the dev dashboard and visual diff files live
    under the build-system tree but are excluded so they trigger their own
    checks.  ``OWNERS.yaml`` files anywhere in the tree always count as build
    system changes, including under the excluded paths.
    """

    in_build_system = (
        changed.is_under(BUILD_SYSTEM_ROOT)
        and changed.extension not in SCHEMA_EXTENSIONS
        and not is_flag_config(changed)
        and not is_dev_dashboard_file(changed)
        and not is_visual_diff_file(changed)
    )
    return in_build_system or is_owners_file(changed)


def is_validator_webui_file(changed: ChangedFile) -> bool:
    return changed.is_under(VALIDATOR_WEBUI_ROOT)


def is_validator_file(changed: ChangedFile) -> bool:
    """Return ``True`` for validator sources and per-extension validator files.

    Assumes the web UI rule has already been evaluated.
    """

    if changed.is_under(VALIDATOR_ROOT):
        return True
    if not changed.is_under(EXTENSIONS_ROOT):
        return False
    # At least ``extensions/<name>``.
    if len(changed.segments) < 2:
        return False
    name = changed.basename
    return name.startswith(VALIDATOR_FILE_PREFIX) and name.endswith(VALIDATOR_FILE_SUFFIXES)


def is_doc_file(changed: ChangedFile) -> bool:
    return changed.extension in DOC_EXTENSIONS and not changed.is_under(EXAMPLES_ROOT)


Predicate = Callable[[ChangedFile], bool]


@dataclass(frozen=True, slots=True)
class ClassificationRule:
    """Pairing of a target label with the predicate that selects it."""

    label: TargetLabel
    predicate: Predicate

    def matches(self, changed: ChangedFile) -> bool:
        return self.predicate(changed)


@dataclass(frozen=True, slots=True)
class TargetSet:
    """Distinct target labels detected for a change."""

    labels: frozenset[TargetLabel]

    @classmethod
    def full(cls) -> "TargetSet":
        return cls(frozenset(TargetLabel))

    @classmethod
    def of(cls, *labels: TargetLabel) -> "TargetSet":
        return cls(frozenset(labels))

    def __contains__(self, label: object) -> bool:
        return label in self.labels

    def __iter__(self) -> Iterator[TargetLabel]:
        return iter(self.ordered())

    def __len__(self) -> int:
        return len(self.labels)

    def has_any(self, *labels: TargetLabel) -> bool:
        return any(label in self.labels for label in labels)

    def ordered(self) -> List[TargetLabel]:
        """Labels sorted by name, for display."""
        return sorted(self.labels, key=lambda label: label.value)

    def describe(self) -> str:
        return ", ".join(label.value for label in self.ordered())


class FileClassifier:
    """Map changed paths to target labels using a fixed rule precedence."""

    def __init__(
        self,
        unit_test_globs: Sequence[str] = (),
        integration_test_globs: Sequence[str] = (),
    ) -> None:
        self.unit_test_globs = tuple(unit_test_globs)
        self.integration_test_globs = tuple(integration_test_globs)
        self.rules: tuple[ClassificationRule, ...] = (
            ClassificationRule(TargetLabel.BUILD_SYSTEM, is_build_system_file),
            ClassificationRule(TargetLabel.VALIDATOR_WEBUI, is_validator_webui_file),
            ClassificationRule(TargetLabel.VALIDATOR, is_validator_file),
            ClassificationRule(TargetLabel.DOCS, is_doc_file),
            ClassificationRule(TargetLabel.FLAG_CONFIG, is_flag_config),
            ClassificationRule(TargetLabel.UNIT_TEST, self.is_unit_test),
            ClassificationRule(TargetLabel.DEV_DASHBOARD, is_dev_dashboard_file),
            ClassificationRule(TargetLabel.INTEGRATION_TEST, self.is_integration_test),
            ClassificationRule(TargetLabel.VISUAL_DIFF, is_visual_diff_file),
        )

    @classmethod
    def from_config(cls, config: "PrCheckConfig") -> "FileClassifier":
        return cls(
            unit_test_globs=config.tests.unit_paths,
            integration_test_globs=config.tests.integration_paths,
        )

    def is_unit_test(self, changed: ChangedFile) -> bool:
        return matches_any(changed.path, self.unit_test_globs)

    def is_integration_test(self, changed: ChangedFile) -> bool:
        return matches_any(changed.path, self.integration_test_globs)

    def classify(self, path: str | ChangedFile) -> TargetLabel:
        """Return the label of the first rule matching ``path``."""

        changed = ChangedFile.of(path)
        for rule in self.rules:
            if rule.matches(changed):
                return rule.label
        return TargetLabel.RUNTIME

    def classify_all(self, paths: Iterable[str | ChangedFile]) -> Dict[str, TargetLabel]:
        """Return the label of every path, keyed by path in input order."""

        labels: Dict[str, TargetLabel] = {}
        for path in paths:
            changed = ChangedFile.of(path)
            labels[changed.path] = self.classify(changed)
        return labels

    def aggregate(self, paths: Iterable[str | ChangedFile]) -> TargetSet:
        """Return the distinct labels of ``paths``; all labels when empty."""

        labels = frozenset(self.classify(path) for path in paths)
        if not labels:
            return TargetSet.full()
        return TargetSet(labels)


__all__ = [
    "ChangedFile",
    "ClassificationRule",
    "FileClassifier",
    "TargetLabel",
    "TargetSet",
    "is_build_system_file",
    "is_dev_dashboard_file",
    "is_doc_file",
    "is_flag_config",
    "is_owners_file",
    "is_validator_file",
    "is_validator_webui_file",
    "is_visual_diff_file",
]
