"""
Launcher Release — Lane fan-out.

Each build target gets its own lane with its own collaborators and
output directory. Lanes run concurrently and a failure in one never
cancels or touches another; isolation is at the task-result level.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Iterable, Mapping

from launcher_release.core.config import PipelineSettings
from launcher_release.deploy.notifier import PostDeployNotifier
from launcher_release.deploy.publisher import ArtifactPublisher
from launcher_release.deploy.verify import ReleaseVerifier
from launcher_release.models.lane import LaneResult, LaneState, RunReport
from launcher_release.models.release import BuildTarget
from launcher_release.pipeline.compiler import CargoCompiler
from launcher_release.pipeline.executor import ToolRunner
from launcher_release.pipeline.lane import LaneOrchestrator
from launcher_release.pipeline.packagers.base import TargetPackager
from launcher_release.pipeline.packagers.desktop import LinuxPackager, WindowsPackager
from launcher_release.pipeline.packagers.macos import MacOSPackager
from launcher_release.pipeline.reporter import RunReporter
from launcher_release.pipeline.resolve_env import resolve_pipeline_run, resolve_release_config
from launcher_release.pipeline.secret_gate import Credentials
from launcher_release.utils.logging import logger

PACKAGERS: dict[BuildTarget, type[TargetPackager]] = {
    BuildTarget.WINDOWS: WindowsPackager,
    BuildTarget.LINUX: LinuxPackager,
    BuildTarget.MACOS: MacOSPackager,
}

LaneFactory = Callable[[BuildTarget, Mapping[str, str], PipelineSettings], LaneOrchestrator]


def build_lane(
    target: BuildTarget,
    environ: Mapping[str, str],
    settings: PipelineSettings,
    runner: ToolRunner | None = None,
) -> LaneOrchestrator:
    """Wire one lane against the real toolchain."""
    runner = runner or ToolRunner()
    run = resolve_pipeline_run(environ)
    config = resolve_release_config(environ)
    credentials = Credentials.from_environ(environ)

    compiler = CargoCompiler(runner, settings.project_dir, settings.binary_name, settings.bundle_name)
    verifier = None
    if config.auto_update_base:
        verifier = ReleaseVerifier(config.auto_update_base, timeout=settings.verify_timeout)

    return LaneOrchestrator(
        target=target,
        environ=environ,
        packager=PACKAGERS[target](compiler, runner, settings),
        publisher=ArtifactPublisher(runner, run, settings.release_branch, credentials),
        notifier=PostDeployNotifier(runner, run, settings.release_branch, credentials),
        reporter=RunReporter(settings.report_dir),
        verifier=verifier,
    )


async def run_pipeline(
    targets: Iterable[BuildTarget],
    settings: PipelineSettings,
    environ: Mapping[str, str] | None = None,
    lane_factory: LaneFactory = build_lane,
) -> RunReport:
    """Run one lane per target concurrently and collect every lane's result."""
    snapshot = dict(os.environ if environ is None else environ)
    ordered = list(dict.fromkeys(targets))
    logger.info("=" * 60)
    logger.info("Release run: %s", ", ".join(t.value for t in ordered))
    logger.info("=" * 60)

    async def _run_lane(target: BuildTarget) -> LaneResult:
        lane = lane_factory(target, snapshot, settings)
        return await lane.run()

    outcomes = await asyncio.gather(
        *(_run_lane(target) for target in ordered), return_exceptions=True,
    )

    report = RunReport()
    for target, outcome in zip(ordered, outcomes):
        if isinstance(outcome, BaseException):
            # The lane could not even be built; report it without touching siblings.
            logger.error("[%s] Lane could not start: %s", target.value, outcome)
            outcome = LaneResult(
                target=target,
                state=LaneState.FAILED,
                failed_state=LaneState.PENDING,
                error={"error_code": "LANE_SETUP_FAILED", "message": str(outcome) or type(outcome).__name__},
            )
        report.lanes.append(outcome)

    failed = [lane.target.value for lane in report.lanes if not lane.succeeded]
    logger.info("=" * 60)
    logger.info(
        "Release run complete — %d lane(s), failed: %s",
        len(report.lanes), ", ".join(failed) or "none",
    )
    logger.info("=" * 60)
    return report
