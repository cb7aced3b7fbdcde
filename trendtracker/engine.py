"""TrendEngine: fans out to every source, cross-matches, ranks, validates."""

import concurrent.futures
import random
from dataclasses import dataclass, field

from .config import Credentials, load_config, load_credentials, source_options
from .crossmatch import cross_match as _cross_match
from .crossmatch import make_clusterer
from .log import get_logger, log
from .models import TopicCluster, TrendItem
from .ranking import RankedItem, make_ranker
from .ranking import rank_viral as _rank_viral
from .sources import NewsSource, RedditSource, TrendsSource, TwitterSource, VideoSource
from .sources.base import utc_now
from .viral import ViralValidator
from .viral import detect_viral_news as _detect_viral_news


@dataclass
class AggregationResult:
    news: list = field(default_factory=list)
    videos: list = field(default_factory=list)
    search_trends: list = field(default_factory=list)
    social_a: list = field(default_factory=list)
    social_b: list = field(default_factory=list)
    clusters: list = field(default_factory=list)
    ranked: list = field(default_factory=list)
    generated_at: str = ""

    @property
    def summary(self) -> dict:
        return {
            "news": len(self.news),
            "videos": len(self.videos),
            "search_trends": len(self.search_trends),
            "social_a": len(self.social_a),
            "social_b": len(self.social_b),
            "cross_matched": len(self.clusters),
            "ranked": len(self.ranked),
        }

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at,
            "summary": self.summary,
            "news": [i.to_dict() for i in self.news],
            "videos": [i.to_dict() for i in self.videos],
            "search_trends": [i.to_dict() for i in self.search_trends],
            "social_a": [i.to_dict() for i in self.social_a],
            "social_b": [i.to_dict() for i in self.social_b],
            "clusters": [c.to_dict() for c in self.clusters],
            "ranked": [i.to_dict() for i in self.ranked],
        }


class TrendEngine:
    """Builds every adapter from config and runs them concurrently."""

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now):
        self.config = load_config() if config is None else config
        self.credentials = load_credentials() if credentials is None else credentials
        self.rng = rng or random.Random()
        self.clock = clock

        common = dict(config=self.config, credentials=self.credentials, rng=self.rng, clock=clock)
        self.news = NewsSource(**common)
        self.videos = VideoSource(**common)
        self.reddit = RedditSource(**common)
        self.twitter = TwitterSource(**common)
        self.trends = TrendsSource(**common, forum=self.reddit)
        self.validator = ViralValidator(
            self.credentials, self.rng, clock,
            score_thresholds=(self.config.get("viral") or {}).get("score_thresholds"),
        )
        self.clusterer = make_clusterer(self.config, self.credentials.anthropic)
        self.ranker = make_ranker(self.config, self.credentials.anthropic)

    def _enabled(self, name: str) -> bool:
        return source_options(self.config, name).get("enabled", True)

    def fetch_news(self) -> list[TrendItem]:
        return self.news.fetch()

    def fetch_videos(self) -> list[TrendItem]:
        return self.videos.fetch()

    def fetch_search_trends(self) -> list[TrendItem]:
        return self.trends.fetch()

    def fetch_social_a(self) -> list[TrendItem]:
        return self.twitter.fetch()

    def fetch_social_b(self) -> list[TrendItem]:
        return self.reddit.fetch()

    def cross_match(self, news, videos, trends, social_a, social_b) -> list[TopicCluster]:
        return _cross_match(news, videos, trends, social_a, social_b, self.clusterer)

    def rank_viral(self, news, videos, trends, social_a, social_b) -> list[RankedItem]:
        return _rank_viral(news, videos, trends, social_a, social_b, self.ranker)

    def detect_viral_news(self) -> dict:
        return _detect_viral_news(self.news, self.validator)

    def run(self) -> AggregationResult:
        """Fetch all five sources in parallel, then cross-match and rank."""
        fetchers = {
            "news": self.fetch_news,
            "videos": self.fetch_videos,
            "google_trends": self.fetch_search_trends,
            "twitter": self.fetch_social_a,
            "reddit": self.fetch_social_b,
        }
        results = {name: [] for name in fetchers}

        with concurrent.futures.ThreadPoolExecutor(max_workers=5, thread_name_prefix="fetch") as pool:
            futures = {
                pool.submit(fn): name
                for name, fn in fetchers.items() if self._enabled(name)
            }
            for future in concurrent.futures.as_completed(futures):
                name = futures[future]
                try:
                    results[name] = future.result()
                    log(f"{name}: {len(results[name])} items")
                except Exception as e:
                    get_logger().warning("%s: failed (%s)", name, e)

        lists = (
            results["news"], results["videos"], results["google_trends"],
            results["twitter"], results["reddit"],
        )
        result = AggregationResult(
            *lists,
            clusters=self.cross_match(*lists),
            ranked=self.rank_viral(*lists),
            generated_at=self.clock().isoformat(),
        )
        log(f"Aggregated {sum(len(x) for x in lists)} items, {len(result.clusters)} cross-source topics")
        return result


# ─────────────────────────────────────────────────────
# Module-level operations on a lazily built default engine
# ─────────────────────────────────────────────────────
_default_engine = None


def default_engine() -> TrendEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = TrendEngine()
    return _default_engine


def fetch_news() -> list[TrendItem]:
    return default_engine().fetch_news()


def fetch_videos() -> list[TrendItem]:
    return default_engine().fetch_videos()


def fetch_search_trends() -> list[TrendItem]:
    return default_engine().fetch_search_trends()


def fetch_social_a() -> list[TrendItem]:
    return default_engine().fetch_social_a()


def fetch_social_b() -> list[TrendItem]:
    return default_engine().fetch_social_b()


def cross_match(news, videos, trends, social_a, social_b) -> list[TopicCluster]:
    return default_engine().cross_match(news, videos, trends, social_a, social_b)


def rank_viral(news, videos, trends, social_a, social_b) -> list[RankedItem]:
    return default_engine().rank_viral(news, videos, trends, social_a, social_b)


def detect_viral_news() -> dict:
    return default_engine().detect_viral_news()
