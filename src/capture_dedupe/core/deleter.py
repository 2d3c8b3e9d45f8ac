"""Keep-one-per-display deletion planning and execution."""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from send2trash import send2trash

from capture_dedupe.core.models import CaptureImageInfo, DuplicateGroup, KeepStrategy
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class DeletionDecision:
    """Whether one duplicate group member is kept or removed."""

    path: Path
    display_id: str
    keep: bool


def plan_deletions(
    groups: Sequence[DuplicateGroup], keep_strategy: KeepStrategy
) -> List[DeletionDecision]:
    """
    Decide which files to keep and which to delete.

    Each group is split by display (compared case-insensitively), so every
    display keeps its own copy. Within a display the files are ordered by
    timestamp, newest first for NEWEST and oldest first for OLDEST; the first
    is kept. Sorting is stable, so equal timestamps keep group order.

    Args:
        groups: Duplicate groups with members in discovery-stable order
        keep_strategy: Which file survives

    Returns:
        One decision per group member
    """
    newest_first = keep_strategy is KeepStrategy.NEWEST
    decisions: List[DeletionDecision] = []

    for group in groups:
        by_display: Dict[str, List[CaptureImageInfo]] = {}
        for info in group.files:
            by_display.setdefault(info.display_id.casefold(), []).append(info)

        for members in by_display.values():
            ordered = sorted(members, key=lambda f: f.timestamp_utc, reverse=newest_first)
            for index, info in enumerate(ordered):
                decisions.append(
                    DeletionDecision(path=info.path, display_id=info.display_id, keep=index == 0)
                )

    return decisions


class DuplicateDeleter:
    """Removes planned duplicates, optionally through the recycle bin."""

    def __init__(self, use_recycle_bin: bool = False):
        """
        Initialize the deleter.

        Args:
            use_recycle_bin: Move files to the recycle bin instead of unlinking
        """
        self.use_recycle_bin = use_recycle_bin

    def delete(self, paths: Sequence[Path]) -> Tuple[List[str], List[str]]:
        """
        Delete each path, continuing past failures.

        Args:
            paths: Files to delete

        Returns:
            Tuple of (deleted paths, error messages)
        """
        deleted: List[str] = []
        errors: List[str] = []

        for path in paths:
            try:
                if self.use_recycle_bin:
                    send2trash(str(path))
                    logger.debug(f"Moved to recycle bin: {path}")
                else:
                    Path(path).unlink()
                    logger.debug(f"Deleted: {path}")
                deleted.append(str(path))
            except Exception as e:
                logger.error(f"Failed to delete {path}: {e}")
                errors.append(f"Failed to delete {path}: {e}")

        logger.info(
            f"Deleted {len(deleted)}/{len(paths)} duplicate file(s) "
            f"({'recycle bin' if self.use_recycle_bin else 'permanent'})"
        )
        return deleted, errors
