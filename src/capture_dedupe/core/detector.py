"""Scan orchestration: discover, hash, group and delete duplicates."""

import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from capture_dedupe.core.deleter import DuplicateDeleter, plan_deletions
from capture_dedupe.core.hasher import PixelHasher
from capture_dedupe.core.manifest import HashManifest
from capture_dedupe.core.models import (
    CaptureImageInfo,
    DuplicateGroup,
    FileCandidate,
    Fingerprint,
    ImageDimensions,
    KeepStrategy,
    ScanOptions,
    ScanReport,
    ScanStats,
    path_key,
)
from capture_dedupe.core.scanner import DisplayFolderScanner
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


class DuplicateScanner:
    """Finds pixel-identical images across display folders."""

    def __init__(self, hasher: Optional[PixelHasher] = None, show_progress: bool = False):
        """
        Initialize the duplicate scanner.

        Args:
            hasher: Pixel hasher to use (default: PixelHasher())
            show_progress: Show progress bars during discovery and hashing
        """
        self.hasher = hasher or PixelHasher()
        self.show_progress = show_progress
        self.file_scanner = DisplayFolderScanner(show_progress=show_progress)

    def scan(
        self, options: ScanOptions, cancel_event: Optional[threading.Event] = None
    ) -> ScanReport:
        """
        Run one scan.

        Expected failures never raise: a missing root yields an empty report
        with one error, and per-file hash or delete failures are listed in
        ``report.errors`` while everything else proceeds.

        Args:
            options: Scan options
            cancel_event: Set to stop dispatching further hash work

        Returns:
            Scan report
        """
        report = ScanReport()
        cancel_event = cancel_event or threading.Event()

        root_text = str(options.root_path).strip() if options.root_path is not None else ""
        root = Path(root_text)
        if not root_text or not root.is_dir():
            report.errors.append(f"Root path is missing or does not exist: {root_text!r}")
            logger.error(report.errors[-1])
            return report

        try:
            keep_strategy = KeepStrategy.parse(options.keep_strategy)
            max_workers = options.resolve_parallelism()
        except (TypeError, ValueError) as e:
            report.errors.append(f"Invalid scan options: {e}")
            logger.error(report.errors[-1])
            return report

        manifest_path = options.resolve_manifest_path()
        manifest = HashManifest.load(manifest_path) if options.use_manifest else None

        try:
            candidates = self.file_scanner.scan(
                root, options.display_pattern, options.normalized_extensions()
            )
        except OSError as e:
            report.errors.append(f"Failed to scan {root}: {e}")
            logger.error(report.errors[-1])
            return report

        ambiguous = self._find_ambiguous(candidates)
        for paths in ambiguous.values():
            report.errors.append(
                "Skipped files whose paths differ only by case: "
                + ", ".join(str(p) for p in paths)
            )
            logger.warning(report.errors[-1])
        hashable = [c for c in candidates if c.key not in ambiguous]

        # Files with a unique byte length cannot have a pixel-identical twin
        length_counts = Counter(c.length for c in hashable)
        to_hash = [c for c in hashable if length_counts[c.length] > 1]
        logger.info(
            f"Hashing {len(to_hash)} of {len(candidates)} file(s) "
            f"({len(candidates) - len(to_hash)} skipped with unique size)"
        )

        results, hashed_count, errors = self._hash_candidates(
            to_hash, manifest, max_workers, cancel_event
        )
        report.errors.extend(errors)

        cancelled = cancel_event.is_set()
        if cancelled:
            missing = len(to_hash) - len(results) - len(errors)
            report.errors.append(f"Scan cancelled: {missing} file(s) were not hashed.")
            logger.warning(report.errors[-1])

        report.groups = self._build_groups(to_hash, results)
        duplicate_files = sum(len(g.files) for g in report.groups)

        deleted_keys = set()
        if options.delete_duplicates and not cancelled:
            self._delete_duplicates(report, options, keep_strategy)
            deleted_keys = {path_key(p) for p in report.deleted_files}
        elif options.delete_duplicates:
            logger.warning("Skipping deletion because the scan was cancelled")

        if manifest is not None:
            # Ambiguous paths share one cache key, so none of them may keep it
            manifest.evict_missing(
                c.path for c in hashable if c.key not in deleted_keys
            )
            try:
                manifest.save(manifest_path)
            except OSError as e:
                logger.warning(f"Could not save manifest {manifest_path}: {e}")

        report.stats = ScanStats(
            total_files=len(candidates),
            hashed_files=hashed_count,
            duplicate_groups=len(report.groups),
            duplicate_files=duplicate_files,
            deleted_files=len(report.deleted_files),
        )

        logger.info(
            f"Found {report.stats.duplicate_groups} duplicate group(s) "
            f"covering {report.stats.duplicate_files} file(s)"
        )
        return report

    def _hash_candidates(
        self,
        candidates: List[FileCandidate],
        manifest: Optional[HashManifest],
        max_workers: int,
        cancel_event: threading.Event,
    ):
        """
        Hash candidates in parallel, reusing cached fingerprints.

        Returns:
            Tuple of (fingerprints by path key, freshly hashed count, errors)
        """
        results: Dict[str, Fingerprint] = {}
        errors: List[str] = []
        lock = threading.Lock()
        hashed = [0]

        def process(candidate: FileCandidate) -> None:
            if cancel_event.is_set():
                return

            try:
                fingerprint = None
                if manifest is not None:
                    fingerprint = manifest.get(candidate.path, candidate.last_write_utc)
                    if fingerprint is not None:
                        logger.debug(f"Cache hit: {candidate.path}")

                if fingerprint is None:
                    fingerprint = self.hasher.hash_file(candidate.path)
                    with lock:
                        hashed[0] += 1
                    if manifest is not None:
                        manifest.put(candidate.path, candidate.last_write_utc, fingerprint)

                with lock:
                    results[candidate.key] = fingerprint
            except Exception as e:
                logger.warning(f"Failed to hash {candidate.path}: {e}")
                with lock:
                    errors.append(f"Failed to hash {candidate.path}: {e}")

        if not candidates:
            return results, 0, errors

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(process, c) for c in candidates]
            completed = as_completed(futures)
            if self.show_progress:
                completed = tqdm(completed, total=len(futures), desc="Hashing", unit="file")

            for _ in completed:
                if cancel_event.is_set():
                    for future in futures:
                        future.cancel()
                    break

        return results, hashed[0], errors

    @staticmethod
    def _build_groups(
        candidates: List[FileCandidate], results: Dict[str, Fingerprint]
    ) -> List[DuplicateGroup]:
        """
        Partition hashed candidates by fingerprint.

        Candidates are visited in discovery order so the stable sort keeps
        that order for equal display and timestamp.
        """
        buckets: Dict[str, List[FileCandidate]] = {}
        fingerprints: Dict[str, Fingerprint] = {}
        for candidate in candidates:
            fingerprint = results.get(candidate.key)
            if fingerprint is None:
                continue
            bucket_key = fingerprint.hash.casefold()
            buckets.setdefault(bucket_key, []).append(candidate)
            fingerprints.setdefault(bucket_key, fingerprint)

        groups = []
        for bucket_key, members in buckets.items():
            if len(members) < 2:
                continue
            ordered = sorted(members, key=lambda c: (c.display_id, c.last_write_utc))
            fingerprint = fingerprints[bucket_key]
            groups.append(
                DuplicateGroup(
                    hash=fingerprint.hash,
                    dimensions=ImageDimensions(fingerprint.width, fingerprint.height),
                    files=[
                        CaptureImageInfo(c.path, c.display_id, c.last_write_utc)
                        for c in ordered
                    ],
                )
            )

        return groups

    @staticmethod
    def _find_ambiguous(candidates: List[FileCandidate]) -> Dict[str, List[Path]]:
        """Group paths that collapse to the same identity, e.g. a.png and A.png."""
        by_key: Dict[str, List[Path]] = {}
        for candidate in candidates:
            by_key.setdefault(candidate.key, []).append(candidate.path)
        return {key: paths for key, paths in by_key.items() if len(paths) > 1}

    @staticmethod
    def _delete_duplicates(
        report: ScanReport, options: ScanOptions, keep_strategy: KeepStrategy
    ) -> None:
        decisions = plan_deletions(report.groups, keep_strategy)
        planned = [d.path for d in decisions if not d.keep]
        report.planned_deletions.extend(str(p) for p in planned)

        if options.dry_run:
            logger.info(f"Dry run: {len(planned)} file(s) would be deleted")
            return

        deleted, errors = DuplicateDeleter(options.use_recycle_bin).delete(planned)
        report.deleted_files.extend(deleted)
        report.errors.extend(errors)
