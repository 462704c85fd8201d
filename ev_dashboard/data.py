from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional, Tuple

from ev_dashboard.records import RecordSet, parse_records
from ev_dashboard.settings import DATA_PATH


logger = logging.getLogger(__name__)

DatasetStatus = Literal["ready", "error"]


class DatasetLoadError(RuntimeError):
    """The CSV snapshot could not be read."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Could not load dataset {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class DatasetState:
    status: DatasetStatus
    path: Path
    records: RecordSet = field(default_factory=RecordSet.empty)
    error: Optional[str] = None

    @property
    def ready(self) -> bool:
        return self.status == "ready"


def file_signature(path: Path) -> Tuple[str, float, int]:
    stat = path.stat()
    return (str(path), stat.st_mtime, stat.st_size)


def read_dataset_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as exc:
        raise DatasetLoadError(path, "file not found") from exc
    except UnicodeDecodeError as exc:
        raise DatasetLoadError(path, f"not UTF-8 text ({exc.reason})") from exc
    except OSError as exc:
        raise DatasetLoadError(path, exc.strerror or str(exc)) from exc


@lru_cache(maxsize=4)
def _load_records_cached(file_sig: Tuple[str, float, int]) -> RecordSet:
    path = Path(file_sig[0])
    records = parse_records(read_dataset_text(path))
    logger.info("Loaded %d vehicle record(s) from %s", len(records), path.name)
    return records


def load_records(path: Optional[Path] = None) -> RecordSet:
    """Load the snapshot once per file version; raises DatasetLoadError."""
    path = Path(path) if path is not None else DATA_PATH
    try:
        sig = file_signature(path)
    except FileNotFoundError as exc:
        raise DatasetLoadError(path, "file not found") from exc
    except OSError as exc:
        raise DatasetLoadError(path, exc.strerror or str(exc)) from exc
    return _load_records_cached(sig)


def load_dataset(path: Optional[Path] = None) -> DatasetState:
    path = Path(path) if path is not None else DATA_PATH
    try:
        records = load_records(path)
    except DatasetLoadError as exc:
        logger.error("%s", exc)
        return DatasetState(status="error", path=path, error=str(exc))
    return DatasetState(status="ready", path=path, records=records)


def reload_dataset(path: Optional[Path] = None) -> DatasetState:
    """Drop cached snapshots and load again (the retry path after an error)."""
    _load_records_cached.cache_clear()
    return load_dataset(path)
