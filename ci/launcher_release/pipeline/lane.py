"""
Launcher Release — Lane orchestrator.

Runs one build target's lane as a state machine:

  PENDING → RESOLVED → PACKAGED → GATED → PUBLISHED → NOTIFIED → REPORTED

Every step is timed, logged, and recorded in the LaneResult. A closed
gate skips the deploy steps; a failure stops the lane, but the reporter
still runs and keeps whatever was produced.
"""

from __future__ import annotations

import time
from collections.abc import Mapping

from launcher_release.deploy.notifier import PostDeployNotifier
from launcher_release.deploy.publisher import ArtifactPublisher
from launcher_release.deploy.verify import ReleaseVerifier
from launcher_release.errors import ReleaseError
from launcher_release.models.lane import (
    Artifact,
    DeployOutcome,
    LaneResult,
    LaneState,
    StepStatus,
    StepTiming,
)
from launcher_release.models.release import BuildTarget, PipelineRun, ReleaseConfig
from launcher_release.pipeline.packagers.base import TargetPackager
from launcher_release.pipeline.reporter import RunReporter
from launcher_release.pipeline.resolve_env import resolve_pipeline_run, resolve_release_config
from launcher_release.utils.logging import logger

_SYMBOLS = {
    StepStatus.OK: "✓",
    StepStatus.SKIPPED: "⊘",
    StepStatus.WARNING: "!",
    StepStatus.FAILED: "✗",
}


class LaneContext:
    """Mutable context passed through lane steps."""

    def __init__(self):
        self.run: PipelineRun | None = None
        self.config: ReleaseConfig | None = None
        self.artifacts: list[Artifact] = []


class LaneOrchestrator:
    """
    State-machine orchestrator for one target's lane.

    Collaborators are injected so the whole flow runs against fakes in
    tests; the lane itself never touches the environment except through
    the resolver snapshot it was given.
    """

    def __init__(
        self,
        target: BuildTarget,
        environ: Mapping[str, str],
        packager: TargetPackager,
        publisher: ArtifactPublisher,
        notifier: PostDeployNotifier,
        reporter: RunReporter,
        verifier: ReleaseVerifier | None = None,
    ):
        self.target = target
        self.environ = dict(environ)
        self.packager = packager
        self.publisher = publisher
        self.notifier = notifier
        self.reporter = reporter
        self.verifier = verifier
        self.state = LaneState.PENDING
        self.ctx = LaneContext()
        self.result = LaneResult(target=target)

    def _record_step(self, name: str, start: float, status: StepStatus = StepStatus.OK, detail: str = ""):
        ms = int((time.perf_counter() - start) * 1000)
        self.result.timings.append(StepTiming(step=name, duration_ms=ms, status=status, detail=detail))
        logger.info("  [%s] %s %s — %dms %s", self.target.value, _SYMBOLS[status], name, ms, detail)

    def _transition(self, state: LaneState) -> None:
        self.state = state
        self.result.state = state

    async def run(self) -> LaneResult:
        """Execute the lane. Never raises; failures land in LaneResult.error."""
        logger.info("[%s] Lane starting", self.target.value)
        lane_start = time.perf_counter()

        try:
            self._step_resolve()
            await self._step_package()
            self._step_gate()
            await self._step_publish()
            await self._step_notify()
            await self._step_verify()
        except ReleaseError as exc:
            self._fail(exc.to_dict())
        except Exception as exc:
            logger.exception("[%s] Unexpected lane error", self.target.value)
            self._fail({"error_code": "INTERNAL_ERROR", "message": str(exc) or type(exc).__name__})
        finally:
            self._step_report()

        total_ms = int((time.perf_counter() - lane_start) * 1000)
        logger.info(
            "[%s] Lane %s — publish=%s notify=%s, %d artifact(s), %dms",
            self.target.value,
            "succeeded" if self.result.succeeded else "FAILED",
            self.result.publish.value,
            self.result.notify.value,
            len(self.result.artifacts),
            total_ms,
        )
        return self.result

    def _fail(self, error: dict) -> None:
        self.result.failed_state = self.state
        self.result.error = error
        self._transition(LaneState.FAILED)
        logger.error("[%s] Lane failed: %s", self.target.value, error.get("message"))

    def _step_resolve(self):
        t = time.perf_counter()
        self.ctx.run = resolve_pipeline_run(self.environ)
        self.ctx.config = resolve_release_config(self.environ)
        self.result.version = self.ctx.config.version
        self._transition(LaneState.RESOLVED)
        self._record_step(
            "resolve", t,
            detail=f"{self.ctx.config.display_name} @ {self.ctx.config.version} (branch={self.ctx.run.branch or '-'})",
        )

    async def _step_package(self):
        t = time.perf_counter()
        try:
            artifacts = await self.packager.package(self.ctx.config)
        except Exception as exc:
            self.result.artifacts = list(self.packager.produced)
            self._record_step("package", t, StepStatus.FAILED, getattr(exc, "message", str(exc)))
            raise
        self.ctx.artifacts = artifacts
        self.result.artifacts = list(artifacts)
        self._transition(LaneState.PACKAGED)
        self._record_step("package", t, detail=", ".join(a.name for a in artifacts))

    def _step_gate(self):
        t = time.perf_counter()
        decision = self.publisher.preconditions()
        self._transition(LaneState.GATED)
        if decision.allowed:
            self._record_step("gate", t, detail="deploy allowed")
        else:
            self._record_step("gate", t, StepStatus.SKIPPED, decision.reason)

    async def _step_publish(self):
        t = time.perf_counter()
        try:
            outcome = await self.publisher.publish(self.ctx.artifacts)
        except ReleaseError as exc:
            self.result.publish = DeployOutcome.FAILURE
            self._record_step("publish", t, StepStatus.FAILED, exc.message)
            raise
        self.result.publish = outcome
        if outcome is DeployOutcome.SKIPPED:
            reason = self.publisher.last_decision.reason if self.publisher.last_decision else ""
            self._record_step("publish", t, StepStatus.SKIPPED, reason)
            return
        self._transition(LaneState.PUBLISHED)
        self._record_step("publish", t, detail=f"{len(self.ctx.artifacts)} file(s)")

    async def _step_notify(self):
        t = time.perf_counter()
        try:
            outcome = await self.notifier.notify(self.result.publish)
        except ReleaseError as exc:
            self.result.notify = DeployOutcome.FAILURE
            self._record_step("notify", t, StepStatus.FAILED, exc.message)
            raise
        self.result.notify = outcome
        if outcome is DeployOutcome.SKIPPED:
            reason = self.notifier.last_decision.reason if self.notifier.last_decision else ""
            self._record_step("notify", t, StepStatus.SKIPPED, reason)
            return
        self._transition(LaneState.NOTIFIED)
        self._record_step("notify", t)

    async def _step_verify(self):
        if self.verifier is None or self.result.publish is not DeployOutcome.SUCCESS:
            return
        t = time.perf_counter()
        check = await self.verifier.verify(self.target, self.ctx.config.version)
        if check.matched:
            self._record_step("verify", t, detail=check.detail)
        else:
            self.result.warnings.append(check.detail)
            self._record_step("verify", t, StepStatus.WARNING, check.detail)

    def _step_report(self):
        t = time.perf_counter()
        if self.state is not LaneState.FAILED:
            self._transition(LaneState.REPORTED)
        try:
            copied = self.reporter.preserve(self.result)
        except Exception as exc:
            logger.exception("[%s] Reporter error", self.target.value)
            self.result.warnings.append(f"report failed: {exc}")
            self._record_step("report", t, StepStatus.WARNING, str(exc))
            return
        self._record_step("report", t, detail=f"{len(copied)} file(s) kept")
