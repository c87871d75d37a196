"""
Launcher Release — Typed run and release configuration models.

Every lane, packager and deploy step works against PipelineRun and
ReleaseConfig. No raw environment lookups leak past the resolver.
"""

from __future__ import annotations

import enum
import platform

from pydantic import BaseModel, ConfigDict, Field, computed_field

from launcher_release.errors import UnsupportedTargetError


def to_data_name(name: str) -> str:
    """Lowercase the name and replace spaces with underscores."""
    return name.lower().replace(" ", "_")


class Architecture(str, enum.Enum):
    ARM64 = "arm64"
    X86_64 = "x86_64"

    @property
    def rust_triple(self) -> str:
        return {
            Architecture.ARM64: "aarch64-apple-darwin",
            Architecture.X86_64: "x86_64-apple-darwin",
        }[self]


class BuildTarget(str, enum.Enum):
    WINDOWS = "windows"
    LINUX = "linux"
    MACOS = "macos"

    @property
    def architectures(self) -> frozenset[Architecture]:
        if self is BuildTarget.MACOS:
            return frozenset({Architecture.ARM64, Architecture.X86_64})
        return frozenset()

    @property
    def version_marker_name(self) -> str:
        return f"version_{self.value}.txt"

    @classmethod
    def parse(cls, value: str) -> BuildTarget:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnsupportedTargetError(value) from None

    @classmethod
    def host(cls) -> BuildTarget:
        system = platform.system()
        mapping = {"Windows": cls.WINDOWS, "Linux": cls.LINUX, "Darwin": cls.MACOS}
        if system not in mapping:
            raise UnsupportedTargetError(system)
        return mapping[system]


class UpstreamOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


class PipelineRun(BaseModel):
    """One trigger event. The commit id is the release version, used verbatim."""

    model_config = ConfigDict(frozen=True)

    branch: str = ""
    commit: str = Field(min_length=1)
    upstream_outcome: UpstreamOutcome = UpstreamOutcome.SUCCESS


class ReleaseConfig(BaseModel):
    """
    Read-only release parameters shared by all lanes.

    Feature flags are passed through to the compiler environment as-is;
    unset flags are simply absent.
    """

    model_config = ConfigDict(frozen=True)

    product_name: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    version_manifest_url: str | None = None
    server_base: str | None = None
    auto_update_base: str | None = None
    feature_flags: dict[str, str] = Field(default_factory=dict)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def data_name(self) -> str:
        return to_data_name(self.product_name)

    def build_env(self) -> dict[str, str]:
        """Environment the application's build script reads its constants from."""
        env = {
            "LAUNCHER_NAME": self.product_name,
            "DISPLAY_LAUNCHER_NAME": self.display_name,
            "VERSION": self.version,
        }
        if self.version_manifest_url:
            env["VERSION_MANIFEST_URL"] = self.version_manifest_url
        if self.server_base:
            env["SERVER_BASE"] = self.server_base
        if self.auto_update_base:
            env["AUTO_UPDATE_BASE"] = self.auto_update_base
        env.update(self.feature_flags)
        return env
