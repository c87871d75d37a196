"""
Launcher Release — Published release check.

Fetches the version marker the shipped client polls for updates and
compares it with the released commit. The result is advisory: a CDN may
still serve the previous marker for a while, so a mismatch only warns.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from launcher_release.models.release import BuildTarget
from launcher_release.utils.logging import logger


@dataclass(frozen=True)
class VerifyResult:
    url: str
    matched: bool
    served_version: str | None = None
    error: str = ""

    @property
    def detail(self) -> str:
        if self.error:
            return f"{self.url}: {self.error}"
        if self.matched:
            return f"{self.url} serves the released version"
        return f"{self.url} serves {self.served_version!r}"


class ReleaseVerifier:
    """Thin async check against the auto-update base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def marker_url(self, target: BuildTarget) -> str:
        return f"{self.base_url}/{target.version_marker_name}"

    async def verify(self, target: BuildTarget, version: str) -> VerifyResult:
        url = self.marker_url(target)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, headers={"Cache-Control": "no-cache"})
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("  Version marker check failed: %s", exc)
            return VerifyResult(url=url, matched=False, error=str(exc) or type(exc).__name__)

        served = resp.text.strip()
        return VerifyResult(url=url, matched=served == version, served_version=served)
