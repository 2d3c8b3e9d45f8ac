"""
capture-dedupe - Find and remove pixel-identical screenshots.

Scans per-display capture folders, groups images whose decoded pixels are
identical, and optionally deletes redundant copies while keeping one file per
display.
"""

__version__ = "0.1.0"
__author__ = "capture-dedupe Contributors"

from capture_dedupe.core.detector import DuplicateScanner
from capture_dedupe.core.models import KeepStrategy, ScanOptions, ScanReport

__all__ = ["DuplicateScanner", "KeepStrategy", "ScanOptions", "ScanReport", "__version__"]
