"""TrendItem, TopicCluster and the viral-validation records."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SourceKind(str, Enum):
    NEWS = "news"
    VIDEO = "video"
    SEARCH_TREND = "search_trend"
    SOCIAL_A = "twitter"
    SOCIAL_B = "reddit"


@dataclass(frozen=True)
class TrendItem:
    """A single normalized piece of content from any source."""
    title: str
    source_name: str
    source_kind: SourceKind
    score: int = 0
    url: str | None = None
    published_at: datetime | None = None
    metrics: dict = field(default_factory=dict, hash=False)  # engagement counters, varies per kind
    keywords: tuple = ()
    is_fallback: bool = False  # curated synthetic data

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "source": self.source_name,
            "kind": self.source_kind.value,
            "score": self.score,
            "url": self.url,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "metrics": dict(self.metrics),
            "keywords": list(self.keywords),
            "is_fallback": self.is_fallback,
        }


@dataclass(frozen=True)
class TopicCluster:
    """Items from at least two distinct source kinds describing one topic."""
    representative_title: str
    source_kinds: frozenset
    items: tuple
    confidence: float
    keywords: tuple = ()
    ai_generated: bool = False
    description: str = ""

    def __post_init__(self):
        if len(self.source_kinds) < 2:
            raise ValueError("a cluster needs items from at least two source kinds")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence out of range: {self.confidence}")

    @property
    def total_score(self) -> int:
        return sum(item.score for item in self.items)

    def to_dict(self) -> dict:
        return {
            "topic": self.representative_title,
            "description": self.description,
            "kinds": sorted(k.value for k in self.source_kinds),
            "confidence": self.confidence,
            "keywords": list(self.keywords),
            "total_score": self.total_score,
            "ai_generated": self.ai_generated,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class TwitterSignal:
    count: int = 0
    average_impressions: int = 0
    total_impressions: int = 0
    total_engagement: int = 0
    verified_accounts: int = 0
    tweets: tuple = ()  # evidence for display, never exact real counts when estimated
    search_url: str = ""
    estimated: bool = True


@dataclass(frozen=True)
class RedditSignal:
    count: int = 0
    good_engagement_count: int = 0
    total_upvotes: int = 0
    total_comments: int = 0
    average_upvote_ratio: float = 0.0
    subreddits: tuple = ()
    posts: tuple = ()
    search_url: str = ""


@dataclass(frozen=True)
class ViralAssessment:
    is_viral: bool
    viral_score: int
    twitter: TwitterSignal
    reddit: RedditSignal

    @property
    def evidence_count(self) -> int:
        return self.twitter.count + self.reddit.count

    def to_dict(self) -> dict:
        return {
            "is_viral": self.is_viral,
            "viral_score": self.viral_score,
            "evidence_count": self.evidence_count,
            "twitter": {
                "count": self.twitter.count,
                "average_impressions": self.twitter.average_impressions,
                "total_engagement": self.twitter.total_engagement,
                "estimated": self.twitter.estimated,
                "search_url": self.twitter.search_url,
                "tweets": list(self.twitter.tweets),
            },
            "reddit": {
                "count": self.reddit.count,
                "good_engagement_count": self.reddit.good_engagement_count,
                "total_upvotes": self.reddit.total_upvotes,
                "total_comments": self.reddit.total_comments,
                "average_upvote_ratio": self.reddit.average_upvote_ratio,
                "subreddits": list(self.reddit.subreddits),
                "search_url": self.reddit.search_url,
                "posts": list(self.reddit.posts),
            },
        }
