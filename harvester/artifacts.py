"""
Artifact emitter: writes one CSV per processed page and a JSON snapshot of the
remaining queue after every page. Write failures are logged and never stop a run.
"""

import csv
import io
import json
import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional

import aiofiles

from harvester.exceptions import PartialArtifactWriteFailure
from harvester.models import (
    CSV_HEADERS,
    EMPTY,
    SENTINEL_CONTENT,
    SENTINEL_PAGE_NAME,
    SKIPPED_CONTENT,
    SKIPPED_PAGE_NAME,
    Outcome,
)

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "linkedin_page"


def filename_for_url(url: str) -> str:
    """
    Artifact file name for a queue URL: its last non-empty path segment plus ".csv".

    >>> filename_for_url("https://www.linkedin.com/company/acme/")
    'acme.csv'
    """
    parts = [part for part in url.split("/") if part]
    last = parts[-1] if parts else DEFAULT_FILENAME
    return f"{last}.csv"


def render_csv(rows: Iterable[List[str]]) -> str:
    """
    Render rows under the fixed six-column header.

    Every field is quoted and embedded quotes are doubled, so content with commas,
    quotes or newlines reads back unchanged with any standard CSV parser.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    return buffer.getvalue()


def rows_for_outcome(url: str, outcome: Outcome) -> List[List[str]]:
    """Rows written for an outcome: every record, or a single placeholder row."""
    if outcome.skipped:
        return [[url, SKIPPED_PAGE_NAME, SKIPPED_CONTENT, "", "", ""]]
    if outcome.kind == EMPTY:
        return [[url, SENTINEL_PAGE_NAME, SENTINEL_CONTENT, "", "", ""]]
    return [record.as_row() for record in outcome.records]


class ArtifactEmitter:
    """Persists per-page CSV artifacts and remaining-queue snapshots."""

    def __init__(self, output_dir: str, snapshot_file: str, encoding: str = "utf-8"):
        """
        Args:
            output_dir: Directory receiving one CSV per page
            snapshot_file: Path of the remaining-queue JSON snapshot
            encoding: Text encoding for written files
        """
        self.output_dir = Path(output_dir)
        self.snapshot_path = Path(snapshot_file)
        self.encoding = encoding
        self.write_failures = 0

    async def emit(self, url: str, outcome: Outcome) -> Optional[Path]:
        """
        Write the artifact for one processed page.

        Args:
            url: Queue URL the outcome belongs to
            outcome: Terminal outcome for that URL

        Returns:
            Path of the written CSV, or None if writing failed
        """
        path = self.output_dir / filename_for_url(url)
        rows = rows_for_outcome(url, outcome)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, 'w', encoding=self.encoding, newline='') as f:
                await f.write(render_csv(rows))
        except OSError as e:
            self._log_failure(PartialArtifactWriteFailure(f"Could not write artifact {path}: {e}"))
            return None

        logger.info(f"Wrote {path} ({len(rows)} row{'s' if len(rows) != 1 else ''}, {outcome.kind})")
        return path

    async def write_snapshot(self, items: List[str]) -> Optional[Path]:
        """
        Replace the remaining-queue snapshot with the given URLs.

        Written to a temporary file first and moved into place, so readers never
        see a half-written snapshot.
        """
        tmp_path = self.snapshot_path.with_name(self.snapshot_path.name + ".tmp")
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, 'w', encoding=self.encoding) as f:
                await f.write(json.dumps(items, indent=2))
            os.replace(tmp_path, self.snapshot_path)
        except OSError as e:
            self._log_failure(PartialArtifactWriteFailure(
                f"Could not write queue snapshot {self.snapshot_path}: {e}"
            ))
            return None

        logger.debug(f"Queue snapshot updated: {len(items)} URLs remaining")
        return self.snapshot_path

    def _log_failure(self, error: PartialArtifactWriteFailure) -> None:
        self.write_failures += 1
        logger.error(str(error))
