# tcg_repricer/storage/backup_sink.py

"""Writes the pre-update catalog snapshot to disk."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from tcg_repricer.config.settings import Settings
from tcg_repricer.models.catalog import CatalogEntry
from tcg_repricer.services.errors import BackupError

logger = logging.getLogger("tcg_repricer.storage")


class BackupSink:
    """Persists one JSON snapshot of the catalog per run."""

    def __init__(
        self,
        backup_dir: Path | None = None,
        run_started_at: datetime | None = None,
    ) -> None:
        self.backup_dir: Path = backup_dir or Settings.BACKUP_DIR
        self.run_started_at = run_started_at or datetime.now(timezone.utc)

    def backup_path(self) -> Path:
        """Path named by the UTC run start, e.g. backup-20260105T090000.json."""
        timestamp = self.run_started_at.astimezone(timezone.utc).strftime(
            "%Y%m%dT%H%M%S"
        )
        return self.backup_dir / f"backup-{timestamp}.json"

    def save(self, catalog: list[CatalogEntry]) -> Path:
        """Write the products exactly as fetched; raise BackupError on failure."""
        filepath = self.backup_path()
        data = [entry.raw for entry in catalog]
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, "x", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
        except OSError as exc:
            raise BackupError(
                f"Could not write catalog backup {filepath}: {exc}"
            ) from exc

        logger.info(
            "Backed up %d products to %s", len(catalog), filepath
        )
        return filepath
