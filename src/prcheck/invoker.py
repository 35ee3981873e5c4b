"""Sequential execution of an action plan with fail-fast semantics.

Actions run one after another in plan order.  A failing ``MUST_SUCCEED``
action raises :class:`ActionFailed`, which ends the run with the failing
command's exit status; nothing already done is rolled back.  Best-effort
actions (the visual diff service) are skipped when their credentials are
missing and only report their failures.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Dict, List, Literal

from .actions import Action, ActionPlan, FailurePolicy
from .commands import CommandCatalog, CommandStep
from .console import Console, cyan
from .context import RunContext
from .credentials import PERCY_PROJECT_ENV, PERCY_TOKEN_ENV, ProxyCredentialProvider, VisualDiffCredentials
from .tools.exec import CommandExecutor, CommandResult

LOGGER = logging.getLogger(__name__)

OutcomeStatus = Literal["passed", "failed", "skipped"]


@dataclass(slots=True)
class Outcome:
    """Result of invoking a single action."""

    action: Action
    status: OutcomeStatus
    duration: float = 0.0
    exit_code: int | None = None
    commands: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.status == "failed"


class ActionFailed(RuntimeError):
    """Raised when a ``MUST_SUCCEED`` action exits with a non-zero status."""

    def __init__(self, action: Action, result: CommandResult) -> None:
        self.action = action
        self.result = result
        super().__init__(
            f"{action.describe()} failed: {result.command} exited with status {result.exit_code}"
        )

    @property
    def exit_code(self) -> int:
        return self.result.exit_code if self.result.exit_code > 0 else 1


class CommandInvoker:
    """Run actions through the command executor and apply their failure policy."""

    def __init__(
        self,
        context: RunContext,
        executor: CommandExecutor,
        *,
        console: Console,
        proxy: ProxyCredentialProvider,
        visual_diff: VisualDiffCredentials,
        catalog: CommandCatalog | None = None,
    ) -> None:
        self.context = context
        self.executor = executor
        self.console = console
        self.proxy = proxy
        self.visual_diff = visual_diff
        self.catalog = catalog or CommandCatalog(context)

    def execute(self, plan: ActionPlan) -> List[Outcome]:
        """Invoke every action of ``plan`` in order, stopping at the first fatal failure."""

        outcomes: List[Outcome] = []
        for action in plan:
            outcomes.append(self.invoke(action))
        return outcomes

    def invoke(self, action: Action) -> Outcome:
        """Run the commands of ``action`` and return its outcome."""

        steps = self.catalog.expand(action)
        if any(step.needs_visual_diff for step in steps) and not self.visual_diff.available:
            self.console.info(
                "Could not find environment variables",
                cyan(PERCY_PROJECT_ENV),
                "and",
                cyan(PERCY_TOKEN_ENV) + ".",
                f"Skipping {action.describe()}.",
                spaced=True,
            )
            return Outcome(action=action, status="skipped")

        started = time.monotonic()
        outcome = Outcome(action=action, status="passed")
        for step in steps:
            result = self._run_step(step)
            outcome.commands.append(step.command)
            outcome.exit_code = result.exit_code
            if result.ok:
                continue
            if action.policy is FailurePolicy.MUST_SUCCEED:
                raise ActionFailed(action, result)
            self.console.error("Found errors while running", cyan(step.command))
            outcome.status = "failed"
            break
        outcome.duration = time.monotonic() - started
        return outcome

    def _step_environment(self, step: CommandStep) -> Dict[str, str]:
        env = self.context.child_environment()
        if step.needs_visual_diff:
            env.update(self.visual_diff.environment())
        return env

    def _run_step(self, step: CommandStep) -> CommandResult:
        env = self._step_environment(step)
        with ExitStack() as stack:
            if step.needs_proxy:
                credentials = stack.enter_context(self.proxy.session())
                env.update(credentials.environment())
            started = self.console.start_timer(step.command)
            result = self.executor.run(step.command, env=env)
            self.console.stop_timer(step.command, started)
        LOGGER.debug("%s exited with status %s", step.command, result.exit_code)
        return result


__all__ = ["ActionFailed", "CommandInvoker", "Outcome", "OutcomeStatus"]
