"""
Launcher Release — Secret gate.

Credential values live in Credentials and are only handed to the deploy
transport. Gating decisions read SecretAvailability, which carries
nothing but presence flags. Every predicate here is pure: no network,
no file access, no caching between calls.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from launcher_release.models.release import PipelineRun, UpstreamOutcome


class CredentialKind(str, enum.Enum):
    TRANSFER_IDENTITY = "transfer_identity"
    TRANSFER_DESTINATION = "transfer_destination"
    REMOTE_ACTION = "remote_action"


PUBLISH_CREDENTIALS = frozenset(
    {CredentialKind.TRANSFER_IDENTITY, CredentialKind.TRANSFER_DESTINATION}
)
NOTIFY_CREDENTIALS = PUBLISH_CREDENTIALS | {CredentialKind.REMOTE_ACTION}


@dataclass(frozen=True)
class Credentials:
    """Deploy secrets. Values are masked in repr and never logged."""
    ssh_key: str | None = field(default=None, repr=False)
    server_user: str | None = field(default=None, repr=False)
    server_addr: str | None = field(default=None, repr=False)
    server_path: str | None = field(default=None, repr=False)
    post_deploy_action: str | None = field(default=None, repr=False)

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> Credentials:
        env = os.environ if environ is None else environ

        def _secret(key: str) -> str | None:
            value = env.get(key)
            return value if value and value.strip() else None

        return cls(
            ssh_key=_secret("SSH_KEY"),
            server_user=_secret("SERVER_USER"),
            server_addr=_secret("SERVER_ADDR"),
            server_path=_secret("SERVER_PATH"),
            post_deploy_action=_secret("POST_DEPLOY_ACTION"),
        )

    @property
    def destination(self) -> str:
        return f"{self.server_user}@{self.server_addr}"


@dataclass(frozen=True)
class SecretAvailability:
    """Per-credential presence flags."""
    transfer_identity: bool = False
    transfer_destination: bool = False
    remote_action: bool = False

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> SecretAvailability:
        return cls(
            transfer_identity=credentials.ssh_key is not None,
            transfer_destination=all(
                value is not None
                for value in (
                    credentials.server_user,
                    credentials.server_addr,
                    credentials.server_path,
                )
            ),
            remote_action=credentials.post_deploy_action is not None,
        )

    def is_present(self, kind: CredentialKind) -> bool:
        return bool(getattr(self, kind.value))

    def missing(self, required: Iterable[CredentialKind]) -> list[CredentialKind]:
        return sorted(
            (kind for kind in required if not self.is_present(kind)),
            key=lambda kind: kind.value,
        )


def evaluate(availability: SecretAvailability, required: Iterable[CredentialKind]) -> bool:
    """True only if every required credential is present.

    All flags are looked up before the conjunction is taken.
    """
    flags = [availability.is_present(kind) for kind in required]
    return all(flags)


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: str = ""


def branch_qualifies(run: PipelineRun, release_branch: str) -> bool:
    return run.branch == release_branch and run.upstream_outcome is UpstreamOutcome.SUCCESS


def deploy_decision(
    run: PipelineRun,
    release_branch: str,
    availability: SecretAvailability,
    required: Iterable[CredentialKind],
) -> GateDecision:
    """Decide whether a deploy step may run. A refusal is a skip, not an error."""
    required = frozenset(required)
    if run.branch != release_branch:
        return GateDecision(False, f"branch '{run.branch}' is not the release branch '{release_branch}'")
    if run.upstream_outcome is not UpstreamOutcome.SUCCESS:
        return GateDecision(False, f"upstream outcome is {run.upstream_outcome.value}")
    if not evaluate(availability, required):
        names = ", ".join(kind.value for kind in availability.missing(required))
        return GateDecision(False, f"missing credentials: {names}")
    return GateDecision(True)
