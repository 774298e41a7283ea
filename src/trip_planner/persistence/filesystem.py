"""File-based persistence for archived optimization runs."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings

logger = logging.getLogger(__name__)


class FileStorage:
    """Thin wrapper around the data root for storing JSON outputs."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = (root or settings.data_root).resolve()
        self.output_root = self.root / "outputs"
        self.output_root.mkdir(parents=True, exist_ok=True)

    def make_run_directory(self, prefix: str = "optimization") -> Path:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        path = self.output_root / f"{prefix}_{timestamp}"
        path.mkdir(parents=True, exist_ok=False)
        return path

    def write_json(self, path: Path, data: Any, *, indent: int = 2) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, ensure_ascii=False, indent=indent)


class RunArchive:
    """Keeps the request and outcome of each finished optimization attempt."""

    def __init__(self, storage: FileStorage | None = None) -> None:
        self.storage = storage or FileStorage()

    def record(self, day_id: str, request: dict, outcome: dict) -> Path:
        run_dir = self.storage.make_run_directory(prefix=f"day_{day_id}")
        self.storage.write_json(run_dir / "request.json", request)
        self.storage.write_json(run_dir / "outcome.json", outcome)
        logger.debug(f"Archived optimization run for day {day_id} in {run_dir}")
        return run_dir
