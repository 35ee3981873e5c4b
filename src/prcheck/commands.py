"""Concrete commands behind each action."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Dict

from .actions import Action, ActionName, VisualDiffMode
from .context import RunContext


@dataclass(frozen=True, slots=True)
class CommandStep:
    """One command line plus the credentials it depends on."""

    command: str
    needs_proxy: bool = False
    needs_visual_diff: bool = False


def _steps(*commands: str) -> tuple[CommandStep, ...]:
    return tuple(CommandStep(command) for command in commands)


class CommandCatalog:
    """Expand actions into command steps for a given run context.

    On CI, browser test runs go through the cross-browser proxy; locally
    everything runs in headless Chrome.
    """

    def __init__(self, context: RunContext) -> None:
        self.context = context
        self._builders: Dict[ActionName, Callable[[Action], tuple[CommandStep, ...]]] = {
            ActionName.UPDATE_PACKAGES: lambda action: _steps("gulp update-packages"),
            ActionName.TEST_BUILD_SYSTEM: lambda action: _steps(
                "gulp ava", "node node_modules/jest/bin/jest.js"
            ),
            ActionName.CHECK_DOC_LINKS: lambda action: _steps("gulp check-links"),
            ActionName.CLEAN_BUILD: lambda action: _steps("gulp clean"),
            ActionName.LINT: lambda action: _steps("gulp lint"),
            ActionName.JSON_CHECK: lambda action: _steps("gulp caches-json", "gulp json-syntax"),
            ActionName.BUILD_CSS: lambda action: _steps("gulp css"),
            ActionName.BUILD_RUNTIME: lambda action: _steps("gulp build"),
            ActionName.BUILD_RUNTIME_MINIFIED: self._minified_build,
            ActionName.BUNDLE_SIZE: self._bundle_size,
            ActionName.DEP_AND_TYPE_CHECK: lambda action: _steps("gulp dep-check", "gulp check-types"),
            ActionName.UNIT_TESTS: self._unit_tests,
            ActionName.UNIT_TESTS_LOCAL_CHANGES: lambda action: _steps(
                "gulp test --nobuild --headless --local-changes"
            ),
            ActionName.DEV_DASHBOARD_TESTS: lambda action: _steps("gulp test --dev_dashboard --nobuild"),
            ActionName.INTEGRATION_TESTS: self._integration_tests,
            ActionName.SINGLE_PASS_INTEGRATION_TESTS: lambda action: _steps(
                "rm -R dist",
                "gulp dist --fortesting --single_pass --pseudo_names",
                "gulp test --integration --nobuild --headless --compiled --single_pass",
                "rm -R dist",
            ),
            ActionName.VISUAL_DIFF: self._visual_diff,
            ActionName.VERIFY_VISUAL_DIFF: lambda action: (
                CommandStep("gulp visual-diff --verify_status", needs_visual_diff=True),
            ),
            ActionName.PRESUBMIT: lambda action: _steps("gulp presubmit"),
            ActionName.VALIDATOR_WEBUI: lambda action: _steps("gulp validator-webui"),
            ActionName.VALIDATOR: lambda action: _steps("gulp validator"),
        }

    def expand(self, action: Action) -> tuple[CommandStep, ...]:
        """Return the ordered command steps implementing ``action``."""

        return self._builders[action.name](action)

    def _with_files(self, command: str) -> str:
        if self.context.files:
            return f"{command} --files {self.context.files}"
        return command

    def _minified_build(self, action: Action) -> tuple[CommandStep, ...]:
        command = "gulp dist --fortesting"
        if not action.extensions:
            command += " --noextensions"
        return _steps(command)

    def _bundle_size(self, action: Action) -> tuple[CommandStep, ...]:
        command = "gulp bundle-size"
        if action.store_bundle_size:
            command += " --store"
        return _steps(command)

    def _unit_tests(self, action: Action) -> tuple[CommandStep, ...]:
        command = self._with_files("gulp test --unit --nobuild")
        steps = [CommandStep(f"{command} --headless --coverage")]
        if self.context.is_ci:
            # A subset of the unit tests on other browsers.
            steps.append(CommandStep(f"{command} --saucelabs_lite", needs_proxy=True))
        return tuple(steps)

    def _integration_tests(self, action: Action) -> tuple[CommandStep, ...]:
        command = self._with_files("gulp test --integration --nobuild")
        if action.compiled:
            command += " --compiled"
        if not self.context.is_ci:
            return _steps(f"{command} --headless")
        if action.coverage:
            return _steps(f"{command} --headless --coverage")
        return (CommandStep(f"{command} --saucelabs", needs_proxy=True),)

    def _visual_diff(self, action: Action) -> tuple[CommandStep, ...]:
        command = "gulp visual-diff --nobuild"
        if action.visual_diff_mode is VisualDiffMode.EMPTY:
            command += " --empty"
        elif action.visual_diff_mode is VisualDiffMode.MASTER:
            command += " --master"
        return (CommandStep(command, needs_visual_diff=True),)


__all__ = ["CommandCatalog", "CommandStep"]
