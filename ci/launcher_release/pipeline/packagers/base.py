"""
Launcher Release — Common target packager contract.
"""

from __future__ import annotations

import asyncio
import hashlib
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from launcher_release.core.config import PipelineSettings
from launcher_release.models.lane import Artifact, ArtifactRole
from launcher_release.models.release import BuildTarget, ReleaseConfig
from launcher_release.pipeline.compiler import CargoCompiler
from launcher_release.pipeline.executor import ToolRunner
from launcher_release.utils.logging import logger

CHECKSUMMED_ROLES = {ArtifactRole.BINARY, ArtifactRole.DISK_IMAGE, ArtifactRole.ARCHIVE}


class TargetPackager(ABC):
    """Compiles the application for one OS and packages it natively.

    Compiler or tool failures surface as BuildFailure and are not retried.
    """

    target: BuildTarget

    def __init__(
        self,
        compiler: CargoCompiler,
        runner: ToolRunner,
        settings: PipelineSettings,
        output_dir: Path | None = None,
    ):
        self.compiler = compiler
        self.runner = runner
        self.settings = settings
        self.output_dir = Path(output_dir or settings.output_dir / self.target.value)
        self.produced: list[Artifact] = []

    @abstractmethod
    async def package(self, config: ReleaseConfig) -> list[Artifact]:
        ...

    def _artifact(self, path: Path, role: ArtifactRole) -> Artifact:
        artifact = Artifact(target=self.target, path=path, role=role)
        self.produced.append(artifact)
        return artifact

    def _prepare_output(self) -> None:
        self.produced = []
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _move_binary(self, binary: Path, filename: str) -> Artifact:
        destination = self.output_dir / filename
        shutil.move(str(binary), str(destination))
        destination.chmod(0o755)
        logger.info("  Packaged %s", destination.name)
        return self._artifact(destination, ArtifactRole.BINARY)

    def write_version_marker(self, version: str) -> Artifact:
        path = self.output_dir / self.target.version_marker_name
        path.write_text(f"{version}\n", encoding="utf-8")
        return self._artifact(path, ArtifactRole.VERSION_MARKER)

    def write_checksums(self, artifacts: list[Artifact]) -> list[Artifact]:
        """Write <file>.sha1 holding only the hex digest for each primary artifact."""
        checksums: list[Artifact] = []
        for artifact in artifacts:
            if artifact.role not in CHECKSUMMED_ROLES:
                continue
            digest = hashlib.sha1()
            with open(artifact.path, "rb") as f:
                for chunk in iter(lambda: f.read(65536), b""):
                    digest.update(chunk)
            path = artifact.path.with_name(artifact.path.name + ".sha1")
            path.write_text(f"{digest.hexdigest()}\n", encoding="utf-8")
            checksums.append(self._artifact(path, ArtifactRole.CHECKSUM))
        return checksums

    async def _finish(self, artifacts: list[Artifact], config: ReleaseConfig) -> list[Artifact]:
        if self.settings.write_checksums:
            artifacts = artifacts + await asyncio.to_thread(self.write_checksums, artifacts)
        artifacts.append(self.write_version_marker(config.version))
        return artifacts
