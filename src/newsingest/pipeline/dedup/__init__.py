"""Duplicate detection for incoming feed items."""

from newsingest.pipeline.dedup.duplicate_detector import DuplicateDetector, remove_url_duplicates

__all__ = ["DuplicateDetector", "remove_url_duplicates"]
