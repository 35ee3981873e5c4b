"""CLI commands for running change-aware CI checks."""

from __future__ import annotations

import dataclasses
import logging
import os
from pathlib import Path
from typing import List, Optional

import typer

from .actions import ActionPlan
from .commands import CommandCatalog
from .config import DEFAULT_CONFIG_NAME, ConfigError, PrCheckConfig, load_config
from .console import Console, cyan
from .context import RunContext, RunMode, Shard, resolve_context
from .credentials import ProxyCredentialProvider, VisualDiffCredentials
from .guard import ConflictError, guard
from .invoker import ActionFailed, CommandInvoker
from .planner import plan as build_plan
from .preflight import PreflightError, run_preflight
from .targets import FileClassifier, TargetSet
from .tools.exec import CommandExecutor, CommandFailed
from .tools.vcs import GitError, GitRepository

APP_HELP = "Plan and run the build and test checks a change needs."
DRIVER_NAME = "pr-check"

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help=APP_HELP)

CONFIG_OPTION_HELP = f"Path to the YAML configuration (defaults to ./{DEFAULT_CONFIG_NAME} when present)."


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _exit_status(code: int) -> int:
    return code if code > 0 else 1


def _load_settings(config: Optional[str]) -> PrCheckConfig:
    """Load configuration, exiting with status 1 when it is unusable."""
    try:
        return load_config(Path(config) if config else None, required=config is not None)
    except ConfigError as error:
        typer.echo(str(error), err=True)
        raise typer.Exit(code=1) from error


def _discover_repository(console: Console) -> GitRepository:
    try:
        return GitRepository.discover()
    except GitError as error:
        console.error(str(error))
        raise typer.Exit(code=1) from error


def _files_in_pr(repo: GitRepository, base: str, commit: str | None, console: Console) -> List[str]:
    """Return the files changed by the PR, or ``[]`` when git cannot tell."""

    try:
        files = repo.changed_files(base)
        summary = repo.diff_stat(base)
    except GitError as error:
        LOGGER.warning("Unable to determine changed files: %s", error)
        console.note("Could not determine the files changed by this PR; running every check.")
        return []
    console.info("Testing the following changes at commit", cyan(commit or "HEAD"))
    console.raw(summary)
    return files


def _detect_targets(files: List[str], classifier: FileClassifier, console: Console) -> TargetSet:
    """Aggregate and guard the targets of ``files``; exits with status 1 on conflict."""

    targets = classifier.aggregate(files)
    try:
        guard(targets, files, classifier)
    except ConflictError as error:
        for line in error.diagnostic_lines():
            console.error(line)
        raise typer.Exit(code=1) from error
    console.info("Detected build targets:", cyan(targets.describe()))
    return targets


def _report_preflight(console: Console, error: PreflightError) -> None:
    for issue in error.report.issues:
        console.error(issue.message)
        console.note(issue.remediation)
        if issue.details:
            console.error("Expected changes:")
            console.raw(issue.details)


def _build_invoker(
    context: RunContext,
    executor: CommandExecutor,
    console: Console,
    settings: PrCheckConfig,
) -> CommandInvoker:
    return CommandInvoker(
        context,
        executor,
        console=console,
        proxy=ProxyCredentialProvider(settings.proxy, executor, console),
        visual_diff=VisualDiffCredentials.from_environment(os.environ, ci=context.is_ci),
    )


def _render_plan(action_plan: ActionPlan) -> None:
    context = action_plan.context
    typer.echo(
        f"Plan for {context.mode.value}/{context.shard.value} "
        f"(targets: {action_plan.targets.describe()})"
    )
    if not action_plan:
        typer.echo("No actions selected.")
        return
    catalog = CommandCatalog(context)
    for index, action in enumerate(action_plan, start=1):
        typer.echo(f"{index:2d}. {action.describe()} [{action.policy.value}]")
        for step in catalog.expand(action):
            marker = " (proxy)" if step.needs_proxy else ""
            typer.echo(f"      {step.command}{marker}")


@app.command()
def run(
    files: Optional[str] = typer.Option(
        None,
        "--files",
        help="File filter passed through to the unit and integration test actions.",
    ),
    nobuild: bool = typer.Option(
        False,
        "--nobuild",
        help="Skip the build stages when running locally.",
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Run the checks relevant to the current change, stopping at the first failure."""

    _configure_logging(verbose)
    settings = _load_settings(config)
    console = Console()
    context = resolve_context(
        os.environ,
        main_branch=settings.ci.main_branch,
        files=files,
        nobuild=nobuild,
    )
    started = console.start_timer(DRIVER_NAME)

    executor = CommandExecutor()
    repo = _discover_repository(console)
    try:
        run_preflight(executor, repo).raise_for_issues()
    except PreflightError as error:
        _report_preflight(console, error)
        raise typer.Exit(code=1) from error
    except GitError as error:
        console.error(str(error))
        raise typer.Exit(code=1) from error

    detected = TargetSet.full()
    if context.mode is RunMode.LOCAL:
        console.info("Running all pr-check commands locally.")
    else:
        console.info("Running build shard", cyan(context.shard.value))
        if context.mode is RunMode.PUSH:
            console.info("Running all commands on push build.")
        else:
            changed = _files_in_pr(repo, settings.git.base_branch, context.commit, console)
            try:
                detected = _detect_targets(changed, FileClassifier.from_config(settings), console)
            except typer.Exit:
                console.stop_timer(DRIVER_NAME, started)
                raise

    action_plan = build_plan(context, detected)
    if not action_plan:
        console.note("No actions selected for build shard", cyan(context.shard.value))

    invoker = _build_invoker(context, executor, console, settings)
    try:
        invoker.execute(action_plan)
    except ActionFailed as error:
        console.error(str(error))
        raise typer.Exit(code=error.exit_code) from error
    except CommandFailed as error:
        console.error(str(error))
        raise typer.Exit(code=_exit_status(error.exit_code)) from error

    console.stop_timer(DRIVER_NAME, started)


@app.command()
def targets(
    paths: Optional[List[str]] = typer.Argument(
        None,
        help="Changed files to classify; defaults to the files changed by the current PR.",
    ),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show the target label of each changed file and the detected targets."""

    _configure_logging(verbose)
    settings = _load_settings(config)
    console = Console()
    changed = list(paths or [])
    if not changed:
        repo = _discover_repository(console)
        changed = _files_in_pr(repo, settings.git.base_branch, None, console)

    classifier = FileClassifier.from_config(settings)
    for path, label in classifier.classify_all(changed).items():
        typer.echo(f"{path} -> {label.value}")
    _detect_targets(changed, classifier, console)


@app.command("plan")
def show_plan(
    paths: Optional[List[str]] = typer.Argument(
        None,
        help="Changed files used to select pull-request actions; all targets when omitted.",
    ),
    mode: Optional[RunMode] = typer.Option(None, "--mode", help="Override the run mode."),
    shard: Optional[Shard] = typer.Option(None, "--shard", help="Override the build shard."),
    branch: Optional[str] = typer.Option(None, "--branch", help="Override the target branch."),
    files: Optional[str] = typer.Option(None, "--files", help="File filter for test actions."),
    nobuild: bool = typer.Option(False, "--nobuild", help="Skip the build stages locally."),
    config: Optional[str] = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Print the actions a run would execute, without running anything."""

    settings = _load_settings(config)
    console = Console()
    resolved = resolve_context(
        os.environ,
        main_branch=settings.ci.main_branch,
        files=files,
        nobuild=nobuild,
    )
    context = dataclasses.replace(
        resolved,
        mode=mode or resolved.mode,
        shard=shard or resolved.shard,
        branch=branch or resolved.branch,
    )

    selected = TargetSet.full()
    if context.mode is RunMode.PR:
        classifier = FileClassifier.from_config(settings)
        selected = _detect_targets(list(paths or []), classifier, console)
    _render_plan(build_plan(context, selected))


if __name__ == "__main__":
    app()
