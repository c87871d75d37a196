"""
Launcher Release — Windows and Linux packagers.

Both compile once and rename the binary; neither signs anything.
"""

from __future__ import annotations

from launcher_release.models.lane import Artifact
from launcher_release.models.release import BuildTarget, ReleaseConfig
from launcher_release.pipeline.packagers.base import TargetPackager


class WindowsPackager(TargetPackager):
    target = BuildTarget.WINDOWS

    async def package(self, config: ReleaseConfig) -> list[Artifact]:
        self._prepare_output()
        binary = await self.compiler.compile(self.target, env=config.build_env())
        artifacts = [self._move_binary(binary, f"{config.display_name}.exe")]
        return await self._finish(artifacts, config)


class LinuxPackager(TargetPackager):
    target = BuildTarget.LINUX

    async def package(self, config: ReleaseConfig) -> list[Artifact]:
        self._prepare_output()
        binary = await self.compiler.compile(self.target, env=config.build_env())
        artifacts = [self._move_binary(binary, config.data_name)]
        return await self._finish(artifacts, config)
