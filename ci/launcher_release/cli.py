"""Launcher Release CLI - build, package and ship the launcher."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from launcher_release.core.config import load_settings
from launcher_release.errors import ReleaseError
from launcher_release.models.lane import DeployOutcome, RunReport
from launcher_release.models.release import BuildTarget
from launcher_release.pipeline.fanout import run_pipeline
from launcher_release.pipeline.resolve_env import resolve_pipeline_run, resolve_release_config
from launcher_release.pipeline.secret_gate import (
    NOTIFY_CREDENTIALS,
    PUBLISH_CREDENTIALS,
    CredentialKind,
    Credentials,
    SecretAvailability,
    deploy_decision,
)

app = typer.Typer(
    name="launcher-release",
    help="Multi-target release pipeline for the launcher.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)
console = Console()

_OUTCOME_STYLE = {
    DeployOutcome.SUCCESS: "[green]success[/green]",
    DeployOutcome.SKIPPED: "[yellow]skipped[/yellow]",
    DeployOutcome.FAILURE: "[red]failure[/red]",
    DeployOutcome.NOT_RUN: "[dim]not run[/dim]",
}


def _parse_targets(values: list[str] | None, run_all: bool) -> list[BuildTarget]:
    if run_all:
        return list(BuildTarget)
    if not values:
        return [BuildTarget.host()]
    return [BuildTarget.parse(value) for value in values]


def _render_report(report: RunReport) -> None:
    table = Table(title="Release lanes")
    table.add_column("Target", style="cyan")
    table.add_column("Status")
    table.add_column("Publish")
    table.add_column("Notify")
    table.add_column("Artifacts")

    for lane in report.lanes:
        status = "[green]ok[/green]" if lane.succeeded else f"[red]failed ({lane.failed_state.value if lane.failed_state else '?'})[/red]"
        table.add_row(
            lane.target.value,
            status,
            _OUTCOME_STYLE[lane.publish],
            _OUTCOME_STYLE[lane.notify],
            "\n".join(a.name for a in lane.artifacts) or "-",
        )
    console.print(table)

    for lane in report.lanes:
        if lane.error:
            console.print(f"[red]✗ {lane.target.value}: {lane.error.get('message')}[/red]")
            if lane.error.get("suggestion"):
                console.print(f"  [dim]{lane.error['suggestion']}[/dim]")
        for warning in lane.warnings:
            console.print(f"[yellow]! {lane.target.value}: {warning}[/yellow]")


@app.command("run")
def run_command(
    target: Annotated[
        list[str] | None,
        typer.Option("--target", "-t", help="Target OS lane (windows, linux, macos). Repeatable."),
    ] = None,
    run_all: Annotated[bool, typer.Option("--all", help="Run every target lane.")] = False,
) -> None:
    """Build, package and (on the release branch) publish the selected lanes."""
    try:
        targets = _parse_targets(target, run_all)
    except ReleaseError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(2) from exc

    report = asyncio.run(run_pipeline(targets, load_settings()))
    _render_report(report)
    raise typer.Exit(report.exit_code)


@app.command("resolve")
def resolve_command() -> None:
    """Show the resolved release parameters."""
    run = resolve_pipeline_run()
    config = resolve_release_config()

    table = Table(title="Release parameters")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    table.add_row("branch", run.branch or "-")
    table.add_row("version", config.version)
    table.add_row("upstream", run.upstream_outcome.value)
    table.add_row("product_name", config.product_name)
    table.add_row("display_name", config.display_name)
    table.add_row("data_name", config.data_name)
    table.add_row("version_manifest_url", config.version_manifest_url or "-")
    table.add_row("server_base", config.server_base or "-")
    table.add_row("auto_update_base", config.auto_update_base or "-")
    for key in sorted(config.feature_flags):
        table.add_row(key, "set")
    console.print(table)


@app.command("gate")
def gate_command() -> None:
    """Show which credentials are present and whether deploy steps would run."""
    settings = load_settings()
    run = resolve_pipeline_run()
    availability = SecretAvailability.from_credentials(Credentials.from_environ())

    table = Table(title="Credentials")
    table.add_column("Credential", style="cyan")
    table.add_column("Present")
    for kind in CredentialKind:
        present = availability.is_present(kind)
        table.add_row(kind.value, "[green]yes[/green]" if present else "[yellow]no[/yellow]")
    console.print(table)

    for label, required in (("publish", PUBLISH_CREDENTIALS), ("notify", NOTIFY_CREDENTIALS)):
        decision = deploy_decision(run, settings.release_branch, availability, required)
        if decision.allowed:
            console.print(f"[green]✓ {label} would run[/green]")
        else:
            console.print(f"[yellow]⊘ {label} skipped: {decision.reason}[/yellow]")


if __name__ == "__main__":
    app()
