"""Persisted hash cache keyed by file path and modification time."""

import json
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from capture_dedupe.core.models import Fingerprint, ManifestEntry, path_key
from capture_dedupe.exceptions import ManifestError
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


class HashManifest:
    """
    Maps file paths to the fingerprint computed at a given mtime.

    The cache is best-effort: a missing or unreadable manifest yields an
    empty cache. All operations are safe to call from concurrent hashing
    threads.
    """

    def __init__(self, entries: Optional[Iterable[ManifestEntry]] = None):
        self._entries: Dict[str, ManifestEntry] = {}
        self._lock = threading.Lock()
        for entry in entries or ():
            self._entries[path_key(entry.path)] = entry

    @classmethod
    def load(cls, path: Path) -> "HashManifest":
        """
        Load a manifest from disk.

        Args:
            path: Manifest file path

        Returns:
            Loaded manifest, or an empty one if the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            entries = cls._parse_records(data)
        except FileNotFoundError:
            logger.debug(f"No manifest at {path}, starting with an empty cache")
            return cls()
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ManifestError) as e:
            logger.debug(f"Ignoring unreadable manifest {path}: {e}")
            return cls()

        logger.debug(f"Loaded {len(entries)} manifest entries from {path}")
        return cls(entries)

    @staticmethod
    def _parse_records(data: object) -> List[ManifestEntry]:
        if not isinstance(data, list):
            raise ManifestError("manifest root is not a list")

        entries = []
        for record in data:
            if not isinstance(record, dict):
                raise ManifestError("manifest record is not an object")
            try:
                entries.append(ManifestEntry.from_dict(record))
            except (KeyError, TypeError, ValueError) as e:
                raise ManifestError(f"malformed manifest record: {e}") from e
        return entries

    def get(self, path: Union[str, Path], last_write_utc: datetime) -> Optional[Fingerprint]:
        """
        Return the cached fingerprint if it was computed for exactly this mtime.
        """
        with self._lock:
            entry = self._entries.get(path_key(path))
        if entry is None or entry.last_write_utc != last_write_utc:
            return None
        return entry.fingerprint

    def put(self, path: Union[str, Path], last_write_utc: datetime, fingerprint: Fingerprint) -> None:
        entry = ManifestEntry(
            path=str(path), last_write_utc=last_write_utc, fingerprint=fingerprint
        )
        with self._lock:
            self._entries[path_key(path)] = entry

    def evict_missing(self, valid_paths: Iterable[Union[str, Path]]) -> int:
        """
        Drop every entry whose path is not among valid_paths.

        Returns:
            Number of entries removed
        """
        valid = {path_key(p) for p in valid_paths}
        with self._lock:
            stale = [key for key in self._entries if key not in valid]
            for key in stale:
                del self._entries[key]

        if stale:
            logger.debug(f"Evicted {len(stale)} stale manifest entries")
        return len(stale)

    def entries(self) -> List[ManifestEntry]:
        """Entries sorted by path (case-insensitive)."""
        with self._lock:
            return sorted(self._entries.values(), key=lambda e: path_key(e.path))

    def save(self, path: Path) -> None:
        """
        Write the manifest as a JSON list sorted by path.

        The data is written to a temporary file next to the target and then
        moved into place, so a failed write leaves the previous manifest.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        records = [entry.to_dict() for entry in self.entries()]

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

        logger.debug(f"Saved {len(records)} manifest entries to {path}")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with self._lock:
            return path_key(path) in self._entries
