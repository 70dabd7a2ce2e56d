"""
Upstream clients of the feed engine.
"""

from feed.clients.catalog import CatalogClient, parse_subjects

__all__ = ["CatalogClient", "parse_subjects"]
