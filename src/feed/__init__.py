"""
Personalized feed package.

This package aggregates paginated recommendation queries into one deduplicated,
interleaved feed.
"""

from utils.common_utils import get_logger

logger = get_logger(__name__)
logger.info("Feed engine package initialized")

from feed.core.engine import FeedEngine

__version__ = "0.1.0"
