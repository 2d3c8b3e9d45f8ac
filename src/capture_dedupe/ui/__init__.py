"""Terminal rendering of scan results."""

from capture_dedupe.ui.report import render_report

__all__ = ["render_report"]
