"""
Processing components of the feed engine.

This submodule contains query generation and the interleaving mixer.
"""

from feed.processing.mixer import MixerManager
from feed.processing.queries import HistoryQueryGenerator, QueryGenerator

__all__ = ["MixerManager", "HistoryQueryGenerator", "QueryGenerator"]
