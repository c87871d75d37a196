"""
Launcher Release — Artifact publisher.

Copies every artifact of a lane to the deploy host in one transfer.
Gated by branch, upstream outcome and the transfer credentials; a closed
gate is a skip. A failed transfer is fatal for the lane and not retried.
"""

from __future__ import annotations

from launcher_release.deploy.ssh import identity_file, scp_command, transfer_error
from launcher_release.models.lane import Artifact, DeployOutcome
from launcher_release.models.release import PipelineRun
from launcher_release.pipeline.executor import ToolRunner, run_checked
from launcher_release.pipeline.secret_gate import (
    PUBLISH_CREDENTIALS,
    Credentials,
    GateDecision,
    SecretAvailability,
    deploy_decision,
)
from launcher_release.utils.logging import logger, step_timer


class ArtifactPublisher:
    def __init__(
        self,
        runner: ToolRunner,
        run: PipelineRun,
        release_branch: str,
        credentials: Credentials,
    ):
        self.runner = runner
        self.run = run
        self.release_branch = release_branch
        self.credentials = credentials
        self.last_decision: GateDecision | None = None

    def preconditions(self) -> GateDecision:
        availability = SecretAvailability.from_credentials(self.credentials)
        return deploy_decision(self.run, self.release_branch, availability, PUBLISH_CREDENTIALS)

    async def publish(self, artifacts: list[Artifact]) -> DeployOutcome:
        decision = self.preconditions()
        self.last_decision = decision
        if not decision.allowed:
            logger.info("  Publish skipped: %s", decision.reason)
            return DeployOutcome.SKIPPED
        if not artifacts:
            return DeployOutcome.SUCCESS

        files = [artifact.path for artifact in artifacts]
        with step_timer(f"Publish {len(files)} artifact(s)"):
            with identity_file(self.credentials) as key_path:
                await run_checked(
                    self.runner,
                    scp_command(self.credentials, key_path, files),
                    step="publish",
                    error=transfer_error("publish"),
                )
        return DeployOutcome.SUCCESS
