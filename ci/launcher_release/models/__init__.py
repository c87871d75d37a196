"""Launcher Release data models — typed contracts for the entire pipeline."""

from launcher_release.models.release import (
    Architecture,
    BuildTarget,
    PipelineRun,
    ReleaseConfig,
    UpstreamOutcome,
    to_data_name,
)
from launcher_release.models.lane import (
    Artifact,
    ArtifactRole,
    DeployOutcome,
    LaneResult,
    LaneState,
    RunReport,
    StepStatus,
    StepTiming,
)

__all__ = [
    "Architecture",
    "BuildTarget",
    "PipelineRun",
    "ReleaseConfig",
    "UpstreamOutcome",
    "to_data_name",
    "Artifact",
    "ArtifactRole",
    "DeployOutcome",
    "LaneResult",
    "LaneState",
    "RunReport",
    "StepStatus",
    "StepTiming",
]
