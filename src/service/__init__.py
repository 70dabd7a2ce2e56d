"""
Service package for the feed engine.

This package contains the service layer components.
"""

from .app import app
from .feed_service import FeedSessionService

__all__ = ["app", "FeedSessionService"]
