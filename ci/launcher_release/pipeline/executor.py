"""
Launcher Release — External tool execution.

ToolRunner spawns one external process and waits for it. run_checked()
turns a non-zero exit into the caller's error type. RetryingExecutor is
bound to the disk-image tool only: a non-zero exit there is a
TransientToolFailure and is retried after a fixed delay; a tool that
cannot be spawned at all is not retried.
"""

from __future__ import annotations

import asyncio
import os
import shlex
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from launcher_release.errors import (
    BuildFailure,
    ReleaseError,
    RetryExhaustedError,
    TransientToolFailure,
)
from launcher_release.utils.logging import logger

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DELAY_SECONDS = 5.0


@dataclass(frozen=True)
class ToolResult:
    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def format_command(args: Sequence[str]) -> str:
    return shlex.join(str(a) for a in args)


class ToolRunner:
    """Runs external processes without blocking the event loop."""

    async def run(
        self,
        args: Sequence[str | os.PathLike],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ToolResult:
        argv = tuple(str(a) for a in args)
        run_env = None
        if env:
            run_env = os.environ.copy()
            run_env.update(env)

        logger.debug("  Executing: %s", format_command(argv))
        proc = await asyncio.create_subprocess_exec(
            *argv,
            cwd=str(cwd) if cwd else None,
            env=run_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        return ToolResult(
            args=argv,
            returncode=proc.returncode if proc.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )


async def run_checked(
    runner: ToolRunner,
    args: Sequence[str | os.PathLike],
    *,
    step: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    error: Callable[[str, ToolResult | None, str], ReleaseError] | None = None,
) -> ToolResult:
    """Run a tool once; raise on spawn failure or non-zero exit.

    `error` builds the exception from (step, result, message); it defaults
    to BuildFailure.
    """
    if error is None:
        def error(name: str, result: ToolResult | None, message: str) -> ReleaseError:
            return BuildFailure(name, message, result.output if result else "")

    try:
        result = await runner.run(args, cwd=cwd, env=env)
    except OSError as exc:
        raise error(step, None, f"could not start {format_command([args[0]])}: {exc}") from exc

    if not result.ok:
        logger.error("  %s exited with %d: %s", step, result.returncode, result.output[-500:])
        raise error(step, result, f"exit code {result.returncode}")
    return result


@dataclass(frozen=True)
class RetryOutcome:
    result: ToolResult
    attempts: int


class RetryingExecutor:
    """Bounded retry with a fixed delay for one known-flaky command."""

    def __init__(
        self,
        runner: ToolRunner,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay: float = DEFAULT_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.runner = runner
        self.max_attempts = max_attempts
        self.delay = delay
        self._sleep = sleep

    async def run_with_retry(
        self,
        args: Sequence[str | os.PathLike],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> RetryOutcome:
        name = format_command([args[0]])
        last: ToolResult | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                result = await self.runner.run(args, cwd=cwd, env=env)
            except OSError as exc:
                raise BuildFailure(name, f"could not start: {exc}") from exc

            if result.ok:
                if attempt > 1:
                    logger.info("  %s succeeded on attempt %d/%d", name, attempt, self.max_attempts)
                return RetryOutcome(result=result, attempts=attempt)

            last = result
            failure = TransientToolFailure(name, attempt, self.max_attempts, result.output)
            if attempt < self.max_attempts:
                logger.warning("  %s, retrying in %.0fs", failure.message, self.delay)
                await self._sleep(self.delay)
            else:
                logger.error("  %s", failure.message)

        raise RetryExhaustedError(name, self.max_attempts, last.output if last else "")
