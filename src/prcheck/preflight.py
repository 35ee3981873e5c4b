"""Package manifest checks that run before any build or test action.

Both checks guard against a ``package.json`` / ``yarn.lock`` pair that is out
of sync: either ``yarn`` reports an integrity error, or running the package
update leaves uncommitted changes to the lockfile.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .tools.exec import CommandExecutor
from .tools.vcs import GitRepository

MANIFEST = "package.json"
LOCKFILE = "yarn.lock"
INTEGRITY_COMMAND = "yarn check --integrity"


@dataclass(slots=True)
class PreflightIssue:
    """Problem detected by a pre-flight check, with the fix the author should apply."""

    check: str
    message: str
    remediation: str
    details: str = ""


@dataclass(slots=True)
class PreflightReport:
    issues: List[PreflightIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues

    def format_summary(self) -> str:
        if self.ok:
            return "Pre-flight checks passed."
        lines: List[str] = []
        for issue in self.issues:
            lines.append(f"- {issue.check}: {issue.message}")
            lines.append(f"  {issue.remediation}")
        return "\n".join(lines)

    def raise_for_issues(self) -> None:
        if self.issues:
            raise PreflightError(self)


class PreflightError(RuntimeError):
    """Raised when the manifest and lockfile are out of sync."""

    def __init__(self, report: PreflightReport) -> None:
        self.report = report
        super().__init__(report.format_summary())


def check_manifest_integrity(executor: CommandExecutor) -> List[PreflightIssue]:
    """Flag manifest changes that were not reflected in the lockfile."""

    result = executor.capture(INTEGRITY_COMMAND)
    output = result.stderr.strip()
    if "error" not in output:
        return []
    return [
        PreflightIssue(
            check="manifest-integrity",
            message=(
                f"Found the following yarn errors:\n{output}\n"
                f"Updates to {MANIFEST} must be accompanied by a corresponding update to {LOCKFILE}"
            ),
            remediation=(
                f'To update {LOCKFILE} after changing {MANIFEST}, run "yarn install" and include '
                f"the updated {LOCKFILE} in your PR."
            ),
        )
    ]


def check_lockfile_updated(repo: GitRepository) -> List[PreflightIssue]:
    """Flag a lockfile left modified by the package update."""

    changes = repo.local_changes()
    if LOCKFILE not in changes:
        return []
    return [
        PreflightIssue(
            check="lockfile-updated",
            message=f"This PR did not properly update {LOCKFILE}.",
            remediation=(
                "To fix this, sync your branch to upstream/master, run gulp update-packages, "
                "and push a new commit containing the changes."
            ),
            details=changes,
        )
    ]


def run_preflight(executor: CommandExecutor, repo: GitRepository) -> PreflightReport:
    """Run the integrity and lockfile checks and collect their issues."""

    report = PreflightReport()
    report.issues.extend(check_manifest_integrity(executor))
    report.issues.extend(check_lockfile_updated(repo))
    return report


__all__ = [
    "PreflightError",
    "PreflightIssue",
    "PreflightReport",
    "check_lockfile_updated",
    "check_manifest_integrity",
    "run_preflight",
]
