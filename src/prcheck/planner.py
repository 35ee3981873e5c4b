"""Selection of the ordered actions to run for a change.

Planning is a lookup in :data:`ACTION_TABLE`, keyed by run mode and shard.
Each entry pairs an :class:`~prcheck.actions.Action` with a condition over the
run context and detected targets; the plan is the entries whose condition
holds, in table order.  Planning has no side effects and never fails.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict

from .actions import (
    Action,
    ActionName,
    ActionPlan,
    VisualDiffMode,
    integration_tests,
    verify_visual_diff,
    visual_diff,
)
from .context import RunContext, RunMode, Shard
from .targets import TargetLabel, TargetSet

Condition = Callable[[RunContext, TargetSet], bool]


def always(context: RunContext, targets: TargetSet) -> bool:
    return True


def on_main_branch(context: RunContext, targets: TargetSet) -> bool:
    return context.on_main_branch


def building(context: RunContext, targets: TargetSet) -> bool:
    return not context.nobuild


def any_target(*labels: TargetLabel) -> Condition:
    """Condition holding when at least one of ``labels`` was detected."""

    def _condition(context: RunContext, targets: TargetSet) -> bool:
        return targets.has_any(*labels)

    return _condition


def no_target(*labels: TargetLabel) -> Condition:
    """Condition holding when none of ``labels`` was detected."""

    def _condition(context: RunContext, targets: TargetSet) -> bool:
        return not targets.has_any(*labels)

    return _condition


@dataclass(frozen=True, slots=True)
class PlanEntry:
    action: Action
    condition: Condition = always

    def applies(self, context: RunContext, targets: TargetSet) -> bool:
        return self.condition(context, targets)


def _step(name: ActionName, **params: bool) -> Action:
    return Action(name, **params)


BUILD_OR_RUNTIME = (TargetLabel.BUILD_SYSTEM, TargetLabel.RUNTIME)
COMPILE_TRIGGERS = (
    TargetLabel.RUNTIME,
    TargetLabel.UNIT_TEST,
    TargetLabel.INTEGRATION_TEST,
    TargetLabel.BUILD_SYSTEM,
)
UNIT_TEST_TRIGGERS = (TargetLabel.RUNTIME, TargetLabel.BUILD_SYSTEM, TargetLabel.UNIT_TEST)
INTEGRATION_TRIGGERS = (
    TargetLabel.INTEGRATION_TEST,
    TargetLabel.RUNTIME,
    TargetLabel.BUILD_SYSTEM,
)
VISUAL_DIFF_TRIGGERS = (
    TargetLabel.INTEGRATION_TEST,
    TargetLabel.RUNTIME,
    TargetLabel.VISUAL_DIFF,
    TargetLabel.FLAG_CONFIG,
    TargetLabel.BUILD_SYSTEM,
)


LOCAL_PLAN: tuple[PlanEntry, ...] = (
    # No build needed; fail early.
    PlanEntry(_step(ActionName.TEST_BUILD_SYSTEM)),
    PlanEntry(_step(ActionName.LINT)),
    PlanEntry(_step(ActionName.JSON_CHECK)),
    PlanEntry(_step(ActionName.DEP_AND_TYPE_CHECK)),
    PlanEntry(_step(ActionName.CHECK_DOC_LINKS)),
    PlanEntry(_step(ActionName.CLEAN_BUILD), building),
    PlanEntry(_step(ActionName.BUILD_RUNTIME), building),
    PlanEntry(_step(ActionName.BUILD_RUNTIME_MINIFIED, extensions=False), building),
    PlanEntry(_step(ActionName.BUNDLE_SIZE), building),
    PlanEntry(_step(ActionName.PRESUBMIT)),
    PlanEntry(visual_diff()),
    PlanEntry(_step(ActionName.UNIT_TESTS)),
    PlanEntry(integration_tests(compiled=False, coverage=False)),
    PlanEntry(verify_visual_diff()),
    PlanEntry(_step(ActionName.VALIDATOR_WEBUI)),
    PlanEntry(_step(ActionName.VALIDATOR)),
)

PUSH_UNIT_PLAN: tuple[PlanEntry, ...] = (
    PlanEntry(_step(ActionName.UPDATE_PACKAGES)),
    PlanEntry(_step(ActionName.TEST_BUILD_SYSTEM)),
    PlanEntry(_step(ActionName.CLEAN_BUILD)),
    PlanEntry(_step(ActionName.BUILD_RUNTIME)),
    PlanEntry(visual_diff(VisualDiffMode.MASTER)),
    PlanEntry(_step(ActionName.LINT)),
    PlanEntry(_step(ActionName.JSON_CHECK)),
    PlanEntry(_step(ActionName.DEP_AND_TYPE_CHECK)),
    PlanEntry(_step(ActionName.UNIT_TESTS)),
    PlanEntry(_step(ActionName.DEV_DASHBOARD_TESTS)),
    PlanEntry(integration_tests(compiled=False, coverage=True)),
    PlanEntry(verify_visual_diff()),
    # Doc link checks are skipped on push builds.
    PlanEntry(_step(ActionName.VALIDATOR_WEBUI)),
    PlanEntry(_step(ActionName.VALIDATOR)),
)

PUSH_INTEGRATION_PLAN: tuple[PlanEntry, ...] = (
    PlanEntry(_step(ActionName.UPDATE_PACKAGES)),
    PlanEntry(_step(ActionName.CLEAN_BUILD)),
    PlanEntry(_step(ActionName.BUILD_RUNTIME_MINIFIED, extensions=True)),
    # Release branch builds do not record bundle sizes.
    PlanEntry(_step(ActionName.BUNDLE_SIZE, store_bundle_size=True), on_main_branch),
    PlanEntry(_step(ActionName.PRESUBMIT)),
    PlanEntry(integration_tests(compiled=True, coverage=False)),
    PlanEntry(_step(ActionName.SINGLE_PASS_INTEGRATION_TESTS)),
)

PR_UNIT_PLAN: tuple[PlanEntry, ...] = (
    PlanEntry(_step(ActionName.UPDATE_PACKAGES)),
    PlanEntry(_step(ActionName.TEST_BUILD_SYSTEM), any_target(*BUILD_OR_RUNTIME)),
    PlanEntry(_step(ActionName.LINT)),
    PlanEntry(_step(ActionName.CHECK_DOC_LINKS), any_target(TargetLabel.DOCS)),
    PlanEntry(_step(ActionName.DEV_DASHBOARD_TESTS), any_target(TargetLabel.DEV_DASHBOARD)),
    PlanEntry(_step(ActionName.CLEAN_BUILD), any_target(*COMPILE_TRIGGERS)),
    PlanEntry(_step(ActionName.BUILD_CSS), any_target(*COMPILE_TRIGGERS)),
    PlanEntry(_step(ActionName.JSON_CHECK), any_target(*COMPILE_TRIGGERS)),
    PlanEntry(_step(ActionName.DEP_AND_TYPE_CHECK), any_target(*COMPILE_TRIGGERS)),
    # Tests touched by the PR run first; the full suite only for code changes.
    PlanEntry(_step(ActionName.UNIT_TESTS_LOCAL_CHANGES), any_target(*UNIT_TEST_TRIGGERS)),
    PlanEntry(_step(ActionName.UNIT_TESTS), any_target(*BUILD_OR_RUNTIME)),
)

PR_INTEGRATION_PLAN: tuple[PlanEntry, ...] = (
    PlanEntry(_step(ActionName.UPDATE_PACKAGES)),
    PlanEntry(_step(ActionName.CLEAN_BUILD), any_target(*VISUAL_DIFF_TRIGGERS)),
    PlanEntry(_step(ActionName.BUILD_RUNTIME), any_target(*VISUAL_DIFF_TRIGGERS)),
    PlanEntry(visual_diff(), any_target(*VISUAL_DIFF_TRIGGERS)),
    PlanEntry(
        _step(ActionName.BUILD_RUNTIME_MINIFIED, extensions=False),
        any_target(TargetLabel.RUNTIME),
    ),
    PlanEntry(_step(ActionName.BUNDLE_SIZE), any_target(TargetLabel.RUNTIME)),
    # A blank visual diff build satisfies the required status check.
    PlanEntry(visual_diff(VisualDiffMode.EMPTY), no_target(*VISUAL_DIFF_TRIGGERS)),
    PlanEntry(_step(ActionName.PRESUBMIT)),
    PlanEntry(integration_tests(compiled=False, coverage=True), any_target(*INTEGRATION_TRIGGERS)),
    PlanEntry(integration_tests(compiled=False, coverage=False), any_target(*INTEGRATION_TRIGGERS)),
    PlanEntry(verify_visual_diff(), any_target(*VISUAL_DIFF_TRIGGERS)),
    PlanEntry(_step(ActionName.VALIDATOR_WEBUI), any_target(TargetLabel.VALIDATOR_WEBUI)),
    PlanEntry(_step(ActionName.VALIDATOR), any_target(TargetLabel.VALIDATOR)),
    PlanEntry(
        _step(ActionName.SINGLE_PASS_INTEGRATION_TESTS),
        any_target(*INTEGRATION_TRIGGERS),
    ),
)


ACTION_TABLE: Dict[tuple[RunMode, Shard], tuple[PlanEntry, ...]] = {
    (RunMode.LOCAL, Shard.NONE): LOCAL_PLAN,
    (RunMode.PUSH, Shard.UNIT_TESTS): PUSH_UNIT_PLAN,
    (RunMode.PUSH, Shard.INTEGRATION_TESTS): PUSH_INTEGRATION_PLAN,
    (RunMode.PR, Shard.UNIT_TESTS): PR_UNIT_PLAN,
    (RunMode.PR, Shard.INTEGRATION_TESTS): PR_INTEGRATION_PLAN,
}


def _table_key(context: RunContext) -> tuple[RunMode, Shard]:
    # Local runs are never sharded.
    if context.mode is RunMode.LOCAL:
        return (RunMode.LOCAL, Shard.NONE)
    return (context.mode, context.shard)


def plan(context: RunContext, targets: TargetSet | None = None) -> ActionPlan:
    """Build the ordered action plan for ``context`` and ``targets``.

    ``targets`` only influences pull-request plans; it defaults to the full
    label set.  A CI run without a known shard gets an empty plan.
    """

    selected = targets if targets is not None else TargetSet.full()
    entries = ACTION_TABLE.get(_table_key(context), ())
    actions = tuple(entry.action for entry in entries if entry.applies(context, selected))
    return ActionPlan(context=context, targets=selected, actions=actions)


__all__ = [
    "ACTION_TABLE",
    "Condition",
    "PlanEntry",
    "always",
    "any_target",
    "building",
    "no_target",
    "on_main_branch",
    "plan",
]
