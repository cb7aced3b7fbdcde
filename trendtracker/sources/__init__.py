"""Per-source adapters, each an ordered chain of fetch strategies."""

from .base import RateLimited, SourceAdapter, Strategy
from .news import NewsSource
from .reddit import RedditSource
from .trends import TrendsSource
from .twitter import TwitterSource
from .video import VideoSource

__all__ = [
    "RateLimited",
    "SourceAdapter",
    "Strategy",
    "NewsSource",
    "VideoSource",
    "TrendsSource",
    "TwitterSource",
    "RedditSource",
]
