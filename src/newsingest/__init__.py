"""newsingest: crypto news ingestion with AI enrichment."""

from newsingest.__version__ import __version__

__all__ = ["__version__"]
