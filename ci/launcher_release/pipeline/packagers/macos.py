"""
Launcher Release — macOS packager.

Builds a drag-to-install disk image and an auto-update archive:

  icon → arm64 bundle → x86_64 binary → Info.plist patch
  → lipo merge → ad-hoc codesign → Applications link
  → disk image (retried) → update archive → version marker

The arm64 bundle and the bare x86_64 binary use different minimum OS
versions on purpose; see MacOSSettings.
"""

from __future__ import annotations

import asyncio
import os
import plistlib
import shutil
import tarfile
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from launcher_release.core.config import MacOSSettings, PipelineSettings
from launcher_release.errors import BuildFailure
from launcher_release.models.lane import Artifact, ArtifactRole
from launcher_release.models.release import Architecture, BuildTarget, ReleaseConfig
from launcher_release.pipeline.compiler import CargoCompiler
from launcher_release.pipeline.executor import RetryingExecutor, ToolRunner, run_checked
from launcher_release.pipeline.macho import read_fat_architectures
from launcher_release.pipeline.packagers.base import TargetPackager
from launcher_release.utils.logging import logger, step_timer

# The client's self-updater looks for this exact bundle name inside the archive.
UPDATE_APP_NAME = "update.app"
APPLICATIONS_DIR = "/Applications"

ICONSET = [
    (16, "icon_16x16.png"),
    (32, "icon_16x16@2x.png"),
    (32, "icon_32x32.png"),
    (64, "icon_32x32@2x.png"),
    (64, "icon_64x64.png"),
    (128, "icon_64x64@2x.png"),
    (128, "icon_128x128.png"),
    (256, "icon_128x128@2x.png"),
    (256, "icon_256x256.png"),
    (512, "icon_256x256@2x.png"),
    (512, "icon_512x512.png"),
    (1024, "icon_512x512@2x.png"),
]


def info_plist_patch(macos: MacOSSettings) -> dict[str, Any]:
    """The fixed set of manifest keys written into the bundle."""
    return {
        "NSCameraUsageDescription": macos.camera_usage,
        "NSMicrophoneUsageDescription": macos.microphone_usage,
        "NSWindowAllowsAutomaticWindowTabbing": False,
        "NSAutomaticCustomizeTouchBarMenuItemEnabled": False,
    }


class MacOSPackager(TargetPackager):
    target = BuildTarget.MACOS

    def __init__(
        self,
        compiler: CargoCompiler,
        runner: ToolRunner,
        settings: PipelineSettings,
        output_dir: Path | None = None,
        work_dir: Path | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        super().__init__(compiler, runner, settings, output_dir)
        self.work_dir = Path(work_dir or self.output_dir.parent / "macos-work")
        self.staging_dir = self.work_dir / "app"
        self.executor = RetryingExecutor(
            runner,
            max_attempts=settings.retry.max_attempts,
            delay=settings.retry.delay_seconds,
            sleep=sleep,
        )

    async def package(self, config: ReleaseConfig) -> list[Artifact]:
        self._prepare_output()
        if self.work_dir.exists():
            shutil.rmtree(self.work_dir)
        self.staging_dir.mkdir(parents=True)

        env = config.build_env()
        macos = self.settings.macos

        await self.compiler.prepare_macos()
        await self.produce_icon(config)

        arm_bundle = await self.compiler.bundle(
            Architecture.ARM64,
            env={**env, "MACOSX_DEPLOYMENT_TARGET": macos.bundle_deployment_target},
        )
        app = self.staging_dir / f"{config.display_name}.app"
        await asyncio.to_thread(shutil.copytree, arm_bundle, app, symlinks=True)

        x86_binary = await self.compiler.compile(
            self.target,
            arch=Architecture.X86_64,
            env={**env, "MACOSX_DEPLOYMENT_TARGET": macos.binary_deployment_target},
        )

        self.patch_info_plist(app)
        await self.merge_universal(
            output=self._bundle_binary(app),
            x86_binary=x86_binary,
            arm_binary=self._bundle_binary(arm_bundle),
        )
        await self.sign(app)
        self.link_applications()

        disk_image = await self.create_disk_image(config)
        archive = await asyncio.to_thread(self.create_update_archive, app, config)
        return await self._finish([disk_image, archive], config)

    def _bundle_binary(self, bundle: Path) -> Path:
        return bundle / "Contents" / "MacOS" / self.compiler.binary_name

    async def produce_icon(self, config: ReleaseConfig) -> Path:
        """Render the master PNG into an .icns the bundler picks up."""
        source = self.settings.assets_dir / f"{config.product_name}.png"
        if not source.is_file():
            raise BuildFailure("icon", f"master icon image not found: {source}")

        iconset = self.work_dir / "icon.iconset"
        iconset.mkdir(parents=True, exist_ok=True)
        icns = self.settings.assets_dir / "icon.icns"

        with step_timer("Produce app icon"):
            for size, filename in ICONSET:
                await run_checked(
                    self.runner,
                    ["sips", "-z", str(size), str(size), source, "--out", iconset / filename],
                    step="sips",
                )
            await run_checked(
                self.runner, ["iconutil", "-c", "icns", iconset, "-o", icns], step="iconutil",
            )
        return icns

    def patch_info_plist(self, app: Path) -> None:
        plist_path = app / "Contents" / "Info.plist"
        try:
            with open(plist_path, "rb") as f:
                manifest = plistlib.load(f)
        except (OSError, plistlib.InvalidFileException) as exc:
            raise BuildFailure("Info.plist patch", str(exc)) from exc

        manifest.update(info_plist_patch(self.settings.macos))
        with open(plist_path, "wb") as f:
            plistlib.dump(manifest, f)
        logger.info("  Patched %s", plist_path.relative_to(self.staging_dir))

    async def merge_universal(self, output: Path, x86_binary: Path, arm_binary: Path) -> Path:
        """lipo both slices into `output`, which replaces the bundle's arm64 binary."""
        with step_timer("Merge universal binary"):
            await run_checked(
                self.runner,
                ["lipo", "-create", "-output", output, x86_binary, arm_binary],
                step="lipo",
            )

        slices = read_fat_architectures(output)
        missing = self.target.architectures - slices
        if missing:
            names = ", ".join(sorted(arch.value for arch in missing))
            raise BuildFailure("lipo", f"universal binary is missing slices: {names}")
        return output

    async def sign(self, app: Path) -> None:
        """Ad-hoc signature; no identity is needed."""
        await run_checked(
            self.runner, ["codesign", "--force", "--deep", "--sign", "-", app], step="codesign",
        )

    def link_applications(self) -> Path:
        link = self.staging_dir / "Applications"
        if link.is_symlink() or link.exists():
            link.unlink()
        os.symlink(APPLICATIONS_DIR, link)
        return link

    async def create_disk_image(self, config: ReleaseConfig) -> Artifact:
        dmg = self.output_dir / f"{config.display_name}.dmg"
        with step_timer("Create disk image"):
            outcome = await self.executor.run_with_retry(
                [
                    "hdiutil", "create", dmg,
                    "-ov",
                    "-volname", config.display_name,
                    "-fs", "HFS+",
                    "-srcfolder", self.staging_dir,
                ],
            )
        if not dmg.is_file():
            raise BuildFailure("hdiutil", f"disk image not produced: {dmg}")
        logger.info("  Disk image %s after %d attempt(s)", dmg.name, outcome.attempts)
        return self._artifact(dmg, ArtifactRole.DISK_IMAGE)

    def create_update_archive(self, app: Path, config: ReleaseConfig) -> Artifact:
        update_app = self.staging_dir / UPDATE_APP_NAME
        if update_app.exists():
            shutil.rmtree(update_app)
        app.rename(update_app)

        archive = self.output_dir / f"{config.data_name}_macos.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(update_app, arcname=UPDATE_APP_NAME)
        logger.info("  Update archive %s", archive.name)
        return self._artifact(archive, ArtifactRole.ARCHIVE)
