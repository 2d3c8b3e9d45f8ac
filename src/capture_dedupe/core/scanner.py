"""File discovery across per-display capture folders."""

import os
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Set

from tqdm import tqdm

from capture_dedupe.core.models import FileCandidate, normalize_extension
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


def matches_pattern(name: str, pattern: str) -> bool:
    """
    Case-insensitive glob match supporting only ``*`` and ``?``.

    Every other character, including ``[``, matches literally.
    """
    regex = "^" + re.escape(pattern).replace(r"\*", ".*").replace(r"\?", ".") + "$"
    return re.match(regex, name, re.IGNORECASE | re.DOTALL) is not None


class DisplayFolderScanner:
    """Finds image files under display folders with progress tracking."""

    def __init__(self, show_progress: bool = False):
        """
        Initialize the display folder scanner.

        Args:
            show_progress: Show progress bar while walking display folders
        """
        self.show_progress = show_progress

    def find_display_folders(self, root: Path, pattern: str) -> List[Path]:
        """
        Find the top-level display folders of a capture root.

        When no subfolder matches but the root's own name does, the root is
        itself treated as the single display folder.

        Args:
            root: Capture root directory
            pattern: Display folder name pattern (``*`` and ``?`` wildcards)

        Returns:
            Matching folders sorted by name
        """
        displays = sorted(
            (
                entry
                for entry in root.iterdir()
                if entry.is_dir() and matches_pattern(entry.name, pattern)
            ),
            key=lambda p: p.name.casefold(),
        )

        if not displays and matches_pattern(root.resolve().name, pattern):
            logger.debug(f"Root {root} is itself a display folder")
            displays = [root]

        return displays

    def scan(self, root: Path, pattern: str, extensions: Iterable[str]) -> List[FileCandidate]:
        """
        Scan a capture root for image files.

        Args:
            root: Capture root directory
            pattern: Display folder name pattern
            extensions: Accepted file extensions (with or without leading dot)

        Returns:
            Candidates in deterministic discovery order

        Raises:
            FileNotFoundError: If root doesn't exist
            ValueError: If root is not a directory
        """
        root = Path(root)
        if not root.exists():
            raise FileNotFoundError(f"Directory not found: {root}")
        if not root.is_dir():
            raise ValueError(f"Not a directory: {root}")

        accepted = {normalize_extension(e) for e in extensions}
        displays = self.find_display_folders(root, pattern)
        logger.info(f"Scanning {len(displays)} display folder(s) under {root}")

        if self.show_progress:
            display_iter = tqdm(displays, desc="Scanning displays", unit="display")
        else:
            display_iter = displays

        candidates: List[FileCandidate] = []
        for display in display_iter:
            candidates.extend(self._scan_display(display, accepted))

        logger.info(f"Found {len(candidates)} candidate image file(s)")
        return candidates

    def _scan_display(self, display: Path, accepted: Set[str]) -> List[FileCandidate]:
        """
        Walk one display folder's subtree.

        Args:
            display: Display folder
            accepted: Normalized extensions

        Returns:
            Candidates attributed to this display
        """
        display_id = display.resolve().name if display.name in ("", ".", "..") else display.name
        candidates: List[FileCandidate] = []

        def on_error(error: OSError) -> None:
            logger.warning(f"Cannot read directory: {error}")

        for dirpath, dirs, filenames in os.walk(display, onerror=on_error):
            dir_path = Path(dirpath)

            # Skip symlinks and junctions to avoid loops
            dirs[:] = sorted(d for d in dirs if not (dir_path / d).is_symlink())

            for filename in sorted(filenames):
                file_path = dir_path / filename
                if file_path.suffix.lower() not in accepted:
                    continue

                try:
                    stat = file_path.stat()
                except OSError as e:
                    logger.warning(f"Cannot stat {file_path}: {e}")
                    continue

                candidates.append(
                    FileCandidate(
                        path=file_path.absolute(),
                        display_id=display_id,
                        length=stat.st_size,
                        last_write_utc=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )

        return candidates
