"""Run context derived from the CI environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Dict

CI_ENV = "TRAVIS"
EVENT_TYPE_ENV = "TRAVIS_EVENT_TYPE"
SHARD_ENV = "BUILD_SHARD"
BRANCH_ENV = "TRAVIS_BRANCH"
COMMIT_ENV = "TRAVIS_PULL_REQUEST_SHA"
LOCAL_CHECK_ENV = "LOCAL_PR_CHECK"

PUSH_EVENT = "push"


class RunMode(str, Enum):
    """Top-level regime selecting which plan applies."""

    LOCAL = "local"
    PUSH = "push"
    PR = "pr"


class Shard(str, Enum):
    """CI worker lane this process runs as."""

    UNIT_TESTS = "unit_tests"
    INTEGRATION_TESTS = "integration_tests"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class RunContext:
    """Immutable facts about the current run."""

    mode: RunMode
    shard: Shard = Shard.NONE
    branch: str | None = None
    main_branch: str = "master"
    commit: str | None = None
    files: str | None = None
    nobuild: bool = False

    @property
    def is_ci(self) -> bool:
        return self.mode is not RunMode.LOCAL

    @property
    def on_main_branch(self) -> bool:
        return self.branch == self.main_branch

    def child_environment(self) -> Dict[str, str]:
        """Variables every command launched during this run should see."""
        if self.mode is RunMode.LOCAL:
            return {LOCAL_CHECK_ENV: "true"}
        return {}


def _resolve_shard(value: str | None) -> Shard:
    try:
        return Shard(value or "")
    except ValueError:
        return Shard.NONE


def resolve_context(
    env: Mapping[str, str] | None = None,
    *,
    main_branch: str = "master",
    files: str | None = None,
    nobuild: bool = False,
) -> RunContext:
    """Derive the :class:`RunContext` from environment variables.

    Without a CI indicator the run is local and unsharded, since both plan
    segments then run as one sequence.  On CI a ``push`` event selects the
    push regime and every other event the pull-request regime.
    """

    environ = os.environ if env is None else env
    if not environ.get(CI_ENV):
        return RunContext(
            mode=RunMode.LOCAL,
            shard=Shard.NONE,
            main_branch=main_branch,
            files=files,
            nobuild=nobuild,
        )

    mode = RunMode.PUSH if environ.get(EVENT_TYPE_ENV) == PUSH_EVENT else RunMode.PR
    return RunContext(
        mode=mode,
        shard=_resolve_shard(environ.get(SHARD_ENV)),
        branch=environ.get(BRANCH_ENV) or None,
        main_branch=main_branch,
        commit=environ.get(COMMIT_ENV) or None,
        files=files,
        nobuild=nobuild,
    )


__all__ = [
    "CI_ENV",
    "LOCAL_CHECK_ENV",
    "RunContext",
    "RunMode",
    "Shard",
    "resolve_context",
]
