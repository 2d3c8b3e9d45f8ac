"""Data model shared by discovery, hashing, grouping and deletion."""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Union

DEFAULT_DISPLAY_PATTERN = "Display_*"
DEFAULT_EXTENSIONS = (".png",)
DEFAULT_MANIFEST_FILENAME = "duplicate-manifest.json"


def path_key(path: Union[str, Path]) -> str:
    """Identity of a file path: normalized and compared case-insensitively."""
    return os.path.normpath(str(path)).casefold()


def normalize_extension(extension: str) -> str:
    """Lowercase an extension and give it a leading dot."""
    extension = extension.strip().lower()
    return extension if extension.startswith(".") else f".{extension}"


class KeepStrategy(Enum):
    """Which file of a per-display duplicate set survives deletion."""

    NEWEST = "newest"
    OLDEST = "oldest"

    @classmethod
    def parse(cls, value: Union[str, "KeepStrategy"]) -> "KeepStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Keep strategy must be newest or oldest, got {value!r}"
            ) from None


@dataclass(frozen=True)
class FileCandidate:
    """A matched image file found under a display folder."""

    path: Path
    display_id: str
    length: int
    last_write_utc: datetime

    @property
    def key(self) -> str:
        return path_key(self.path)


@dataclass(frozen=True, eq=False)
class Fingerprint:
    """Content hash of an image; width and height ride along for reporting."""

    hash: str
    width: int
    height: int

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fingerprint):
            return NotImplemented
        return self.hash.casefold() == other.hash.casefold()

    def __hash__(self) -> int:
        return hash(self.hash.casefold())


@dataclass(frozen=True)
class DecodedImage:
    """Raw RGBA pixel data produced by the codec adapter."""

    width: int
    height: int
    pixels: bytes


@dataclass
class ManifestEntry:
    """A cached fingerprint and the mtime it was computed for."""

    path: str
    last_write_utc: datetime
    fingerprint: Fingerprint

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "lastWriteUtc": self.last_write_utc.isoformat(),
            "hash": self.fingerprint.hash,
            "width": self.fingerprint.width,
            "height": self.fingerprint.height,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManifestEntry":
        """
        Build an entry from a manifest record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        path = data["path"]
        hash_value = data["hash"]
        if not isinstance(path, str) or not path:
            raise ValueError("manifest record has no path")
        if not isinstance(hash_value, str) or not hash_value:
            raise ValueError(f"manifest record for {path} has no hash")

        last_write = datetime.fromisoformat(data["lastWriteUtc"])
        if last_write.tzinfo is None:
            last_write = last_write.replace(tzinfo=timezone.utc)

        return cls(
            path=path,
            last_write_utc=last_write,
            fingerprint=Fingerprint(
                hash=hash_value,
                width=int(data["width"]),
                height=int(data["height"]),
            ),
        )


@dataclass(frozen=True)
class CaptureImageInfo:
    """A member of a duplicate group."""

    path: Path
    display_id: str
    timestamp_utc: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "displayId": self.display_id,
            "timestampUtc": self.timestamp_utc.isoformat(),
        }


@dataclass(frozen=True)
class ImageDimensions:
    width: int
    height: int


@dataclass
class DuplicateGroup:
    """Two or more files sharing one fingerprint hash."""

    hash: str
    dimensions: ImageDimensions
    files: List[CaptureImageInfo]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "dimensions": {
                "width": self.dimensions.width,
                "height": self.dimensions.height,
            },
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class ScanStats:
    total_files: int = 0
    hashed_files: int = 0
    duplicate_groups: int = 0
    duplicate_files: int = 0
    deleted_files: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalFiles": self.total_files,
            "hashedFiles": self.hashed_files,
            "duplicateGroups": self.duplicate_groups,
            "duplicateFiles": self.duplicate_files,
            "deletedFiles": self.deleted_files,
        }


@dataclass
class ScanReport:
    """Everything a single scan produced."""

    stats: ScanStats = field(default_factory=ScanStats)
    groups: List[DuplicateGroup] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    planned_deletions: List[str] = field(default_factory=list)
    deleted_files: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "groups": [g.to_dict() for g in self.groups],
            "errors": list(self.errors),
            "plannedDeletions": list(self.planned_deletions),
            "deletedFiles": list(self.deleted_files),
        }


@dataclass
class ScanOptions:
    """Options recognized by a scan invocation."""

    root_path: Union[str, Path]
    display_pattern: str = DEFAULT_DISPLAY_PATTERN
    extensions: Iterable[str] = DEFAULT_EXTENSIONS
    use_manifest: bool = False
    manifest_path: Optional[Union[str, Path]] = None
    max_parallelism: Optional[int] = None
    delete_duplicates: bool = False
    keep_strategy: KeepStrategy = KeepStrategy.NEWEST
    dry_run: bool = False
    use_recycle_bin: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.root_path, str):
            self.root_path = self.root_path.strip()

    def normalized_extensions(self) -> Set[str]:
        extensions = {normalize_extension(e) for e in self.extensions or () if e.strip()}
        return extensions or set(DEFAULT_EXTENSIONS)

    def resolve_manifest_path(self) -> Path:
        if self.manifest_path:
            return Path(self.manifest_path)
        return Path(self.root_path) / DEFAULT_MANIFEST_FILENAME

    def resolve_parallelism(self) -> int:
        """
        Worker count for hashing.

        Raises:
            TypeError, ValueError: If max_parallelism is not an integer
        """
        if self.max_parallelism is None:
            return os.cpu_count() or 1
        if isinstance(self.max_parallelism, bool):
            raise TypeError(f"max_parallelism must be an integer, got {self.max_parallelism!r}")
        value = int(self.max_parallelism)
        return value if value > 0 else os.cpu_count() or 1
