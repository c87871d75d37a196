"""
Launcher Release — Environment resolution step.

Turns trigger-time variables into the immutable PipelineRun and
ReleaseConfig of one run. Every input is optional; nothing here raises.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from launcher_release.models.release import (
    PipelineRun,
    ReleaseConfig,
    UpstreamOutcome,
    to_data_name,
)

DEFAULT_PRODUCT_NAME = "Potato Launcher"
DEFAULT_VERSION = "dev"
BRANCH_REF_PREFIX = "refs/heads/"

# Optional build flags forwarded verbatim to the compiler environment.
PASSTHROUGH_FLAGS = ("TGAUTH_BASE", "ELYBY_APP_NAME", "ELYBY_CLIENT_ID", "ELYBY_CLIENT_SECRET")

__all__ = ["resolve_release_config", "resolve_pipeline_run", "to_data_name"]


def _get(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _normalize_branch(ref: str) -> str:
    if ref.startswith(BRANCH_REF_PREFIX):
        return ref[len(BRANCH_REF_PREFIX):]
    return ref


def _parse_outcome(raw: str | None) -> UpstreamOutcome:
    if raw is None:
        return UpstreamOutcome.SUCCESS
    try:
        return UpstreamOutcome(raw.lower())
    except ValueError:
        # Unknown outcomes never qualify for deployment.
        return UpstreamOutcome.FAILURE


def resolve_pipeline_run(environ: Mapping[str, str] | None = None) -> PipelineRun:
    env = os.environ if environ is None else environ
    ref = _get(env, "RELEASE_TRIGGER_BRANCH") or _get(env, "GITHUB_REF") or ""
    return PipelineRun(
        branch=_normalize_branch(ref),
        commit=_get(env, "VERSION") or _get(env, "GITHUB_SHA") or DEFAULT_VERSION,
        upstream_outcome=_parse_outcome(_get(env, "UPSTREAM_OUTCOME")),
    )


def resolve_release_config(environ: Mapping[str, str] | None = None) -> ReleaseConfig:
    """
    Build the ReleaseConfig for one run.

    The display name falls back to the product name and the version is the
    triggering commit id, taken verbatim.
    """
    env = os.environ if environ is None else environ
    product_name = _get(env, "LAUNCHER_NAME") or DEFAULT_PRODUCT_NAME
    run = resolve_pipeline_run(env)

    flags: dict[str, str] = {}
    for key in PASSTHROUGH_FLAGS:
        value = _get(env, key)
        if value is not None:
            flags[key] = value

    return ReleaseConfig(
        product_name=product_name,
        display_name=_get(env, "DISPLAY_LAUNCHER_NAME") or product_name,
        version=run.commit,
        version_manifest_url=_get(env, "VERSION_MANIFEST_URL"),
        server_base=_get(env, "SERVER_BASE"),
        auto_update_base=_get(env, "AUTO_UPDATE_BASE"),
        feature_flags=flags,
    )
