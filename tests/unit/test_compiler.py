"""Unit tests for the cargo compiler wrapper."""

import pytest

import launcher_release.pipeline.compiler as compiler_module
from launcher_release.errors import BuildFailure
from launcher_release.models.release import Architecture, BuildTarget
from launcher_release.pipeline.compiler import CargoCompiler

from conftest import BINARY_NAME, BUNDLE_NAME, FakeRunner


class NoOutputRunner(FakeRunner):
    def _simulate(self, argv, cwd):
        pass


@pytest.fixture
def project(tmp_path):
    path = tmp_path / "src"
    path.mkdir()
    return path


class TestCompile:
    @pytest.mark.asyncio
    async def test_linux_binary(self, project):
        runner = FakeRunner()
        compiler = CargoCompiler(runner, project, BINARY_NAME, BUNDLE_NAME)

        binary = await compiler.compile(BuildTarget.LINUX, env={"VERSION": "abc"})

        assert binary == project / "target" / "release" / BINARY_NAME
        assert runner.calls == [("cargo", "build", "--release")]
        assert runner.envs[0] == {"VERSION": "abc"}

    @pytest.mark.asyncio
    async def test_windows_binary_has_exe_suffix(self, project):
        compiler = CargoCompiler(FakeRunner(), project, BINARY_NAME, BUNDLE_NAME)
        binary = await compiler.compile(BuildTarget.WINDOWS)
        assert binary.name == f"{BINARY_NAME}.exe"

    @pytest.mark.asyncio
    async def test_cross_target(self, project):
        runner = FakeRunner()
        compiler = CargoCompiler(runner, project, BINARY_NAME, BUNDLE_NAME)

        binary = await compiler.compile(BuildTarget.MACOS, arch=Architecture.X86_64)

        assert binary == project / "target" / "x86_64-apple-darwin" / "release" / BINARY_NAME
        assert runner.calls[0][-2:] == ("--target", "x86_64-apple-darwin")

    @pytest.mark.asyncio
    async def test_compiler_error_is_build_failure(self, project):
        compiler = CargoCompiler(FakeRunner(fail_always={"cargo"}), project, BINARY_NAME, BUNDLE_NAME)
        with pytest.raises(BuildFailure):
            await compiler.compile(BuildTarget.LINUX)

    @pytest.mark.asyncio
    async def test_missing_output_is_build_failure(self, project):
        compiler = CargoCompiler(NoOutputRunner(), project, BINARY_NAME, BUNDLE_NAME)
        with pytest.raises(BuildFailure) as exc_info:
            await compiler.compile(BuildTarget.LINUX)
        assert "not found" in exc_info.value.message


class TestBundle:
    @pytest.mark.asyncio
    async def test_bundle_path(self, project):
        runner = FakeRunner()
        compiler = CargoCompiler(runner, project, BINARY_NAME, BUNDLE_NAME)

        bundle = await compiler.bundle(Architecture.ARM64, env={"MACOSX_DEPLOYMENT_TARGET": "11.0"})

        assert bundle.name == f"{BUNDLE_NAME}.app"
        assert bundle.parent == project / "target" / "aarch64-apple-darwin" / "release" / "bundle" / "osx"
        assert runner.calls == [("cargo", "bundle", "--release", "--target", "aarch64-apple-darwin")]

    @pytest.mark.asyncio
    async def test_missing_bundle_is_build_failure(self, project):
        compiler = CargoCompiler(NoOutputRunner(), project, BINARY_NAME, BUNDLE_NAME)
        with pytest.raises(BuildFailure):
            await compiler.bundle(Architecture.ARM64)


class TestPrepareMacOS:
    @pytest.mark.asyncio
    async def test_installs_bundler_when_missing(self, project, monkeypatch):
        monkeypatch.setattr(compiler_module.shutil, "which", lambda name: None)
        runner = FakeRunner()
        await CargoCompiler(runner, project, BINARY_NAME, BUNDLE_NAME).prepare_macos()

        assert runner.calls[0] == ("cargo", "install", "cargo-bundle")
        assert runner.commands("rustup") == [
            ("rustup", "target", "add", "aarch64-apple-darwin"),
            ("rustup", "target", "add", "x86_64-apple-darwin"),
        ]

    @pytest.mark.asyncio
    async def test_skips_install_when_present(self, project, monkeypatch):
        monkeypatch.setattr(compiler_module.shutil, "which", lambda name: "/usr/local/bin/cargo-bundle")
        runner = FakeRunner()
        await CargoCompiler(runner, project, BINARY_NAME, BUNDLE_NAME).prepare_macos()
        assert runner.count("cargo") == 0
        assert runner.count("rustup") == 2
