"""Batch image compression: discovery, per-file compression and reporting."""

__version__ = "1.0.0"
