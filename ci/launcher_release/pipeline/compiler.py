"""
Launcher Release — Cargo compiler/bundler wrapper.

The toolchain is a black box: each call returns the path of what it
produced or raises BuildFailure. Nothing here is retried.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from pathlib import Path

from launcher_release.errors import BuildFailure
from launcher_release.models.release import Architecture, BuildTarget
from launcher_release.pipeline.executor import ToolRunner, run_checked
from launcher_release.utils.logging import logger, step_timer


class CargoCompiler:
    def __init__(
        self,
        runner: ToolRunner,
        project_dir: Path,
        binary_name: str,
        bundle_name: str,
    ):
        self.runner = runner
        self.project_dir = Path(project_dir)
        self.binary_name = binary_name
        self.bundle_name = bundle_name

    def _release_dir(self, arch: Architecture | None) -> Path:
        target_dir = self.project_dir / "target"
        if arch is None:
            return target_dir / "release"
        return target_dir / arch.rust_triple / "release"

    def binary_path(self, target: BuildTarget, arch: Architecture | None = None) -> Path:
        suffix = ".exe" if target is BuildTarget.WINDOWS else ""
        return self._release_dir(arch) / f"{self.binary_name}{suffix}"

    def bundle_path(self, arch: Architecture) -> Path:
        return self._release_dir(arch) / "bundle" / "osx" / f"{self.bundle_name}.app"

    async def prepare_macos(self) -> None:
        """Install the bundler if it is missing and add both Apple targets."""
        if shutil.which("cargo-bundle") is None:
            await run_checked(self.runner, ["cargo", "install", "cargo-bundle"], step="cargo install")
        for arch in sorted(BuildTarget.MACOS.architectures, key=lambda a: a.value):
            await run_checked(
                self.runner, ["rustup", "target", "add", arch.rust_triple], step="rustup target add",
            )

    async def compile(
        self,
        target: BuildTarget,
        *,
        arch: Architecture | None = None,
        env: Mapping[str, str] | None = None,
    ) -> Path:
        """Build a bare release binary and return its path."""
        args = ["cargo", "build", "--release"]
        if arch is not None:
            args += ["--target", arch.rust_triple]

        label = f"Compile {target.value}" + (f" ({arch.value})" if arch else "")
        with step_timer(label):
            await run_checked(self.runner, args, step="cargo build", cwd=self.project_dir, env=env)

        binary = self.binary_path(target, arch)
        if not binary.is_file():
            raise BuildFailure("cargo build", f"expected binary not found: {binary}")
        logger.info("  Built %s (%d bytes)", binary, binary.stat().st_size)
        return binary

    async def bundle(self, arch: Architecture, *, env: Mapping[str, str] | None = None) -> Path:
        """Build a macOS .app bundle for one architecture and return its path."""
        args = ["cargo", "bundle", "--release", "--target", arch.rust_triple]
        with step_timer(f"Bundle macos ({arch.value})"):
            await run_checked(self.runner, args, step="cargo bundle", cwd=self.project_dir, env=env)

        bundle = self.bundle_path(arch)
        if not bundle.is_dir():
            raise BuildFailure("cargo bundle", f"expected bundle not found: {bundle}")
        return bundle
