"""
Launcher Release — Pipeline configuration.
Loads .env automatically, then reads all settings from environment variables.

Credentials are not part of the settings; see pipeline.secret_gate.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent.parent.parent
_env_path = ROOT_DIR / ".env"
load_dotenv(_env_path)

DEFAULT_CAMERA_USAGE = "The launcher needs camera access for in-game voice and video chat."
DEFAULT_MICROPHONE_USAGE = "The launcher needs microphone access for in-game voice chat."


@dataclass(frozen=True)
class RetrySettings:
    """Bound for the disk-image retry loop."""
    max_attempts: int = 5
    delay_seconds: float = 5.0


@dataclass(frozen=True)
class MacOSSettings:
    """macOS packaging knobs.

    The bundler and the plain compiler default to different minimum OS
    versions, so the two architectures keep separate deployment targets.
    """
    bundle_deployment_target: str = "11.0"
    binary_deployment_target: str = "10.8"
    camera_usage: str = DEFAULT_CAMERA_USAGE
    microphone_usage: str = DEFAULT_MICROPHONE_USAGE


@dataclass(frozen=True)
class PipelineSettings:
    """Top-level pipeline configuration."""
    release_branch: str
    project_dir: Path
    output_dir: Path
    report_dir: Path
    assets_dir: Path
    binary_name: str
    bundle_name: str
    write_checksums: bool
    verify_timeout: float
    retry: RetrySettings = field(default_factory=RetrySettings)
    macos: MacOSSettings = field(default_factory=MacOSSettings)


def _int(raw: str | None, default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value > 0 else default


def _float(raw: str | None, default: float) -> float:
    try:
        value = float(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= 0 else default


def load_settings(environ: Mapping[str, str] | None = None) -> PipelineSettings:
    env = os.environ if environ is None else environ
    project_dir = Path(env.get("RELEASE_PROJECT_DIR", str(ROOT_DIR)))
    return PipelineSettings(
        release_branch=env.get("RELEASE_BRANCH", "master"),
        project_dir=project_dir,
        output_dir=Path(env.get("RELEASE_OUTPUT_DIR", str(project_dir / "launcher"))),
        report_dir=Path(env.get("RELEASE_REPORT_DIR", str(project_dir / "reports"))),
        assets_dir=Path(env.get("RELEASE_ASSETS_DIR", str(project_dir / "assets"))),
        binary_name=env.get("RELEASE_BINARY_NAME", "potato_launcher"),
        bundle_name=env.get("RELEASE_BUNDLE_NAME", "Potato Launcher"),
        write_checksums=env.get("RELEASE_WRITE_CHECKSUMS", "false").lower() == "true",
        verify_timeout=_float(env.get("RELEASE_VERIFY_TIMEOUT"), 15.0),
        retry=RetrySettings(
            max_attempts=_int(env.get("RELEASE_DMG_MAX_ATTEMPTS"), 5),
            delay_seconds=_float(env.get("RELEASE_DMG_RETRY_DELAY"), 5.0),
        ),
        macos=MacOSSettings(
            bundle_deployment_target=env.get("MACOS_BUNDLE_DEPLOYMENT_TARGET", "11.0"),
            binary_deployment_target=env.get("MACOS_BINARY_DEPLOYMENT_TARGET", "10.8"),
            camera_usage=env.get("MACOS_CAMERA_USAGE", DEFAULT_CAMERA_USAGE),
            microphone_usage=env.get("MACOS_MICROPHONE_USAGE", DEFAULT_MICROPHONE_USAGE),
        ),
    )


settings = load_settings()
