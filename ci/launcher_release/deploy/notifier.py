"""
Launcher Release — Post-deploy notifier.

Runs one remote action (the CDN cache purge script) over SSH once the
lane's artifacts are published. Only success or failure of the call is
observed.
"""

from __future__ import annotations

from launcher_release.deploy.ssh import identity_file, ssh_command, transfer_error
from launcher_release.models.lane import DeployOutcome
from launcher_release.models.release import PipelineRun
from launcher_release.pipeline.executor import ToolRunner, run_checked
from launcher_release.pipeline.secret_gate import (
    NOTIFY_CREDENTIALS,
    Credentials,
    GateDecision,
    SecretAvailability,
    deploy_decision,
)
from launcher_release.utils.logging import logger, step_timer


class PostDeployNotifier:
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

    def preconditions(self, publish: DeployOutcome) -> GateDecision:
        if publish is not DeployOutcome.SUCCESS:
            return GateDecision(False, f"publish was {publish.value}")
        availability = SecretAvailability.from_credentials(self.credentials)
        return deploy_decision(self.run, self.release_branch, availability, NOTIFY_CREDENTIALS)

    async def notify(self, publish: DeployOutcome) -> DeployOutcome:
        decision = self.preconditions(publish)
        self.last_decision = decision
        if not decision.allowed:
            logger.info("  Post-deploy action skipped: %s", decision.reason)
            return DeployOutcome.SKIPPED

        with step_timer("Post-deploy action"):
            with identity_file(self.credentials) as key_path:
                await run_checked(
                    self.runner,
                    ssh_command(self.credentials, key_path, self.credentials.post_deploy_action),
                    step="notify",
                    error=transfer_error("notify"),
                )
        return DeployOutcome.SUCCESS
