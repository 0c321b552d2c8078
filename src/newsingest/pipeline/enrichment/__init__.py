"""AI enrichment of feed items."""

from newsingest.pipeline.enrichment.ai_enricher import AIEnricher

__all__ = ["AIEnricher"]
