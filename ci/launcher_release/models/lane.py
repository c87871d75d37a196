"""
Launcher Release — Lane result and artifact contracts.

Every lane returns a LaneResult with full traceability:
step timings, deploy outcomes, artifacts and the serialized error.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from launcher_release.models.release import BuildTarget


class LaneState(str, enum.Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"
    PACKAGED = "PACKAGED"
    GATED = "GATED"
    PUBLISHED = "PUBLISHED"
    NOTIFIED = "NOTIFIED"
    REPORTED = "REPORTED"
    FAILED = "FAILED"


class StepStatus(str, enum.Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"
    WARNING = "warning"


class DeployOutcome(str, enum.Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILURE = "failure"
    NOT_RUN = "not_run"


class ArtifactRole(str, enum.Enum):
    BINARY = "binary"
    VERSION_MARKER = "version_marker"
    DISK_IMAGE = "disk_image"
    ARCHIVE = "archive"
    CHECKSUM = "checksum"


class Artifact(BaseModel):
    target: BuildTarget
    path: Path
    role: ArtifactRole

    @property
    def name(self) -> str:
        return self.path.name


class StepTiming(BaseModel):
    step: str
    duration_ms: int
    status: StepStatus = StepStatus.OK
    detail: str = ""


class LaneResult(BaseModel):
    """Complete outcome of one lane. Skipped deploys are not failures."""

    target: BuildTarget
    version: str = ""
    state: LaneState = LaneState.PENDING
    failed_state: LaneState | None = None
    publish: DeployOutcome = DeployOutcome.NOT_RUN
    notify: DeployOutcome = DeployOutcome.NOT_RUN
    artifacts: list[Artifact] = Field(default_factory=list)
    timings: list[StepTiming] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: dict[str, Any] | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def artifact_name(self) -> str:
        return f"launcher-{self.target.value}"


class RunReport(BaseModel):
    lanes: list[LaneResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(lane.succeeded for lane in self.lanes)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def lane(self, target: BuildTarget) -> LaneResult | None:
        for lane in self.lanes:
            if lane.target is target:
                return lane
        return None
