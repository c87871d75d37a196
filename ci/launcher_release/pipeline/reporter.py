"""
Launcher Release — Run reporter.

Keeps a copy of everything a lane produced under
<report_dir>/launcher-<os>/ together with lane.json, whatever the deploy
steps did. Problems here are logged and never fail the lane.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from launcher_release.models.lane import LaneResult
from launcher_release.utils.logging import logger


class RunReporter:
    def __init__(self, report_dir: Path):
        self.report_dir = Path(report_dir)

    def lane_dir(self, result: LaneResult) -> Path:
        return self.report_dir / result.artifact_name

    def preserve(self, result: LaneResult) -> list[Path]:
        """Copy the lane's artifacts and write lane.json. Returns copied paths."""
        destination = self.lane_dir(result)
        copied: list[Path] = []
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning("  Report directory unavailable (%s): %s", destination, exc)
            result.warnings.append(f"report not written: {exc}")
            return copied

        for artifact in result.artifacts:
            if not artifact.path.is_file():
                logger.warning("  Artifact missing, not preserved: %s", artifact.path)
                continue
            try:
                target = destination / artifact.name
                if artifact.path.resolve() != target.resolve():
                    shutil.copy2(artifact.path, target)
                copied.append(target)
            except OSError as exc:
                logger.warning("  Could not preserve %s: %s", artifact.name, exc)
                result.warnings.append(f"artifact not preserved: {artifact.name}")

        try:
            (destination / "lane.json").write_text(
                result.model_dump_json(indent=2), encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("  Could not write lane.json: %s", exc)

        logger.info("  Preserved %d artifact(s) in %s", len(copied), destination)
        return copied
