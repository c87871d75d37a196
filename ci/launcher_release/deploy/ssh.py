"""
Launcher Release — SSH transport helpers.

The key material is written to a private temporary file for the
duration of one transfer and removed afterwards. Host keys are not
checked, matching the throwaway CI runners this executes on.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from launcher_release.errors import TransferFailure
from launcher_release.pipeline.executor import ToolResult
from launcher_release.pipeline.secret_gate import Credentials

SSH_OPTIONS = [
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "BatchMode=yes",
]


@contextmanager
def identity_file(credentials: Credentials) -> Iterator[Path]:
    """Yield a 0600 file holding the SSH private key."""
    if not credentials.ssh_key:
        raise ValueError("no SSH key available")

    with tempfile.TemporaryDirectory(prefix="launcher-release-") as tmpdir:
        path = Path(tmpdir) / "id_deploy"
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            key = credentials.ssh_key
            f.write(key if key.endswith("\n") else key + "\n")
        yield path


def scp_command(credentials: Credentials, key_path: Path, files: list[Path]) -> list[str]:
    remote = f"{credentials.destination}:{credentials.server_path.rstrip('/')}/"
    return ["scp", "-i", str(key_path), *SSH_OPTIONS, *(str(f) for f in files), remote]


def ssh_command(credentials: Credentials, key_path: Path, remote_command: str) -> list[str]:
    return ["ssh", "-i", str(key_path), *SSH_OPTIONS, credentials.destination, remote_command]


def transfer_error(operation: str):
    """Error factory for run_checked() that yields TransferFailure."""
    def build(step: str, result: ToolResult | None, message: str) -> TransferFailure:
        return TransferFailure(
            operation,
            result.returncode if result else None,
            result.output if result else message,
        )
    return build
