"""Typed units of external build and test work."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .context import RunContext
from .targets import TargetSet


class FailurePolicy(str, Enum):
    """How a failing action affects the rest of the run."""

    MUST_SUCCEED = "must_succeed"
    BEST_EFFORT = "best_effort"


class VisualDiffMode(str, Enum):
    DEFAULT = "default"
    EMPTY = "empty"
    MASTER = "master"


class ActionName(str, Enum):
    UPDATE_PACKAGES = "update-packages"
    TEST_BUILD_SYSTEM = "test-build-system"
    CHECK_DOC_LINKS = "check-doc-links"
    CLEAN_BUILD = "clean-build"
    LINT = "lint"
    JSON_CHECK = "json-check"
    BUILD_CSS = "build-css"
    BUILD_RUNTIME = "build-runtime"
    BUILD_RUNTIME_MINIFIED = "build-runtime-minified"
    BUNDLE_SIZE = "bundle-size"
    DEP_AND_TYPE_CHECK = "dep-and-type-check"
    UNIT_TESTS = "unit-tests"
    UNIT_TESTS_LOCAL_CHANGES = "unit-tests-local-changes"
    DEV_DASHBOARD_TESTS = "dev-dashboard-tests"
    INTEGRATION_TESTS = "integration-tests"
    SINGLE_PASS_INTEGRATION_TESTS = "single-pass-integration-tests"
    VISUAL_DIFF = "visual-diff"
    VERIFY_VISUAL_DIFF = "verify-visual-diff"
    PRESUBMIT = "presubmit"
    VALIDATOR_WEBUI = "validator-webui"
    VALIDATOR = "validator"


@dataclass(frozen=True, slots=True)
class Action:
    """Named unit of work plus the parameters that shape its commands."""

    name: ActionName
    policy: FailurePolicy = FailurePolicy.MUST_SUCCEED
    compiled: bool = False
    coverage: bool = False
    extensions: bool = False
    store_bundle_size: bool = False
    visual_diff_mode: VisualDiffMode = VisualDiffMode.DEFAULT

    @property
    def best_effort(self) -> bool:
        return self.policy is FailurePolicy.BEST_EFFORT

    def describe(self) -> str:
        """Return the action name annotated with its non-default parameters."""

        flags: List[str] = []
        for attribute in ("compiled", "coverage", "extensions", "store_bundle_size"):
            if getattr(self, attribute):
                flags.append(attribute)
        if self.visual_diff_mode is not VisualDiffMode.DEFAULT:
            flags.append(f"mode={self.visual_diff_mode.value}")
        if not flags:
            return self.name.value
        return f"{self.name.value}({', '.join(flags)})"


def visual_diff(mode: VisualDiffMode = VisualDiffMode.DEFAULT) -> Action:
    return Action(ActionName.VISUAL_DIFF, policy=FailurePolicy.BEST_EFFORT, visual_diff_mode=mode)


def verify_visual_diff() -> Action:
    return Action(ActionName.VERIFY_VISUAL_DIFF, policy=FailurePolicy.BEST_EFFORT)


def integration_tests(*, compiled: bool, coverage: bool) -> Action:
    return Action(ActionName.INTEGRATION_TESTS, compiled=compiled, coverage=coverage)


@dataclass(frozen=True, slots=True)
class ActionPlan:
    """Ordered actions selected for one run."""

    context: RunContext
    targets: TargetSet
    actions: tuple[Action, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Action]:
        return iter(self.actions)

    def __len__(self) -> int:
        return len(self.actions)

    def names(self) -> List[ActionName]:
        return [action.name for action in self.actions]


__all__ = [
    "Action",
    "ActionName",
    "ActionPlan",
    "FailurePolicy",
    "VisualDiffMode",
    "integration_tests",
    "verify_visual_diff",
    "visual_diff",
]
