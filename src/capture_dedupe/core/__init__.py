"""Core scan, hash, cache and deletion engine."""

from capture_dedupe.core.detector import DuplicateScanner
from capture_dedupe.core.hasher import PixelHasher
from capture_dedupe.core.manifest import HashManifest
from capture_dedupe.core.scanner import DisplayFolderScanner

__all__ = ["DisplayFolderScanner", "DuplicateScanner", "HashManifest", "PixelHasher"]
