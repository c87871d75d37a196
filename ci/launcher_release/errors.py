"""
Launcher Release — Structured error catalog.

Errors carry a stable code plus a hint for the operator.
A lane records the serialized error instead of letting it escape.
"""

from __future__ import annotations

from typing import Any


class ReleaseError(Exception):
    """Root of every error a lane can record."""

    def __init__(self, code: str, message: str, suggestion: str = "", detail: Any = None):
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "error_code": self.code,
            "message": self.message,
        }
        if self.suggestion:
            d["suggestion"] = self.suggestion
        if self.detail:
            d["detail"] = self.detail
        return d


class BuildFailure(ReleaseError):
    """Compiler, bundler or packaging tool failed. Fatal, never retried."""

    def __init__(self, step: str, message: str, output: str = ""):
        self.step = step
        super().__init__(
            code="BUILD_FAILED",
            message=f"{step} failed: {message}",
            suggestion="Inspect the tool output; build failures are not retried.",
            detail=output[-2000:] if output else None,
        )


class TransientToolFailure(ReleaseError):
    """A known-flaky tool failed on one attempt (e.g. 'hdiutil: Resource busy')."""

    def __init__(self, command: str, attempt: int, max_attempts: int, output: str = ""):
        self.attempt = attempt
        self.max_attempts = max_attempts
        super().__init__(
            code="TRANSIENT_TOOL_FAILURE",
            message=f"{command} failed (attempt {attempt}/{max_attempts})",
            suggestion="The command will be retried after the fixed delay.",
            detail=output[-500:] if output else None,
        )


class RetryExhaustedError(BuildFailure):
    def __init__(self, command: str, attempts: int, output: str = ""):
        self.attempts = attempts
        super().__init__(
            step=command,
            message=f"gave up after {attempts} attempts",
            output=output,
        )
        self.code = "RETRY_EXHAUSTED"
        self.suggestion = "The tool kept failing; check for a stuck disk image mount on the runner."


class TransferFailure(ReleaseError):
    """Remote publish or post-deploy call failed. Fatal for the lane, not retried."""

    def __init__(self, operation: str, returncode: int | None, output: str = ""):
        self.operation = operation
        self.returncode = returncode
        status = f"exit code {returncode}" if returncode is not None else "could not start"
        super().__init__(
            code=f"{operation.upper().replace(' ', '_')}_FAILED",
            message=f"{operation} failed ({status})",
            suggestion="Check the deploy host, SERVER_* secrets and the SSH key.",
            detail=output[-500:] if output else None,
        )


class UnsupportedTargetError(ReleaseError):
    def __init__(self, target: str):
        super().__init__(
            code="UNSUPPORTED_TARGET",
            message=f"Unsupported build target: {target}",
            suggestion="Supported targets: windows, linux, macos.",
        )
