"""
Exception hierarchy for capture-dedupe.

Scans never raise these for expected conditions; they are caught at the
per-file or per-manifest boundary and turned into report errors or a cold
cache.
"""


class CaptureDedupeError(Exception):
    """Base exception for all capture-dedupe errors."""
    pass


class DecodeError(CaptureDedupeError):
    """Raised when an image file cannot be decoded into pixel data."""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot decode {path}: {reason}")


class ManifestError(CaptureDedupeError):
    """Raised when a manifest file cannot be parsed."""
    pass
