"""Forum source: hot feeds → alternate feed paths → JSON listings → curated.

Feeds carry no engagement counters, so feed items are scored from the
headline plus their position in the feed. Only the JSON listings report real
upvotes and comments.
"""

import random
import time
from abc import abstractmethod

import feedparser

from ..config import BOT_UA, FORUM_WINDOW_HOURS, Credentials, source_options
from ..log import get_logger
from ..models import SourceKind, TrendItem
from ..scoring import (
    FORUM_SCORE_CAP,
    engagement_rate,
    is_trending_forum_post,
    score_forum_post,
    score_headline,
    traffic_level,
)
from .base import (
    CuratedStrategy,
    SourceAdapter,
    Strategy,
    clean_headline,
    dedupe_titles,
    hours_ago,
    http_get,
    parse_timestamp,
    utc_now,
    within_window,
)
from .curated import curated_forum_items

REDDIT = "https://www.reddit.com"
OLD_REDDIT = "https://old.reddit.com"
FEED_ACCEPT = "application/rss+xml, application/atom+xml, application/xml, text/xml, */*"
JSON_ACCEPT = "application/json, text/plain, */*"

DEFAULT_COMMUNITIES = ["india", "IndianDankMemes", "indiauncensored", "IndiaNews", "IndiaSpeaks"]
ALTERNATE_COMMUNITIES = ["india", "IndianDankMemes", "IndiaSpeaks"]
DEFAULT_LISTINGS = [
    ("india", "hot"),
    ("unpopularopinion", "hot"),
    ("india", "rising"),
    ("IndianDankMemes", "hot"),
    ("indiauncensored", "hot"),
    ("IndiaNews", "hot"),
    ("IndiaSpeaks", "hot"),
]
TOP_N = 15


def _valid_feed_title(title: str) -> bool:
    return 10 < len(title) < 200


def parse_feed(text: str) -> list:
    """Entries from an RSS 2.0 or Atom document as (title, link, published) tuples."""
    feed = feedparser.parse(text)
    entries = []
    for entry in feed.entries:
        title = (entry.get("title") or "").strip()
        link = entry.get("link") or ""
        published = parse_timestamp(entry.get("published_parsed") or entry.get("updated_parsed"))
        if title and link:
            entries.append((title, link, published))
    return entries


def _fetch_feed(url: str, timeout: float) -> list:
    r = http_get(url, headers={"User-Agent": BOT_UA, "Accept": FEED_ACCEPT}, timeout=timeout)
    return parse_feed(r.text)


def _feed_item(title, link, published, community, now, position_bonus) -> TrendItem:
    return TrendItem(
        title=title,
        source_name=f"Reddit r/{community}",
        source_kind=SourceKind.SOCIAL_B,
        score=min(FORUM_SCORE_CAP, score_headline(title, "Reddit") + position_bonus),
        url=link,
        published_at=published,
        metrics={
            "subreddit": community,
            "hours_ago": hours_ago(published, now),
            "type": "reddit_post",
        },
    )


class _FeedStrategy(Strategy):
    per_feed = 3
    limit = 10

    def __init__(self, communities, clock=utc_now):
        self.communities = communities
        self.clock = clock

    def position_bonus(self, index: int) -> int:
        return (self.per_feed - index) * 10

    @abstractmethod
    def feed_entries(self, community: str) -> list:
        """Parsed entries of the community feed, newest first."""
        ...

    def attempt(self) -> list[TrendItem]:
        logger = get_logger()
        now = self.clock()
        items = []
        for community in self.communities:
            try:
                entries = self.feed_entries(community)
            except Exception as e:
                logger.debug("%s: r/%s failed: %s", self.name, community, e)
                continue
            for index, (title, link, published) in enumerate(entries[:self.per_feed]):
                if not _valid_feed_title(title) or not within_window(published, now, FORUM_WINDOW_HOURS):
                    continue
                cleaned = clean_headline(title)
                if cleaned:
                    items.append(_feed_item(cleaned, link, published, community, now,
                                            self.position_bonus(index)))

        items = dedupe_titles(items)
        items.sort(key=lambda i: i.score, reverse=True)
        return items[:self.limit]


class HotFeedStrategy(_FeedStrategy):
    """Atom 'hot' feed per community, top 3 entries each."""

    name = "hot_feeds"

    def feed_entries(self, community: str) -> list:
        return _fetch_feed(f"{REDDIT}/r/{community}/hot/.rss", timeout=10)


class AlternateFeedStrategy(_FeedStrategy):
    """Front, new and old-reddit feeds; the first that yields entries wins per community."""

    name = "alternate_feeds"
    per_feed = 4
    limit = 12

    def position_bonus(self, index: int) -> int:
        return (self.per_feed - index) * 8

    def feed_entries(self, community: str) -> list:
        logger = get_logger()
        for url in (
            f"{REDDIT}/r/{community}/.rss",
            f"{REDDIT}/r/{community}/new/.rss",
            f"{OLD_REDDIT}/r/{community}/.rss",
        ):
            try:
                entries = _fetch_feed(url, timeout=8)
            except Exception as e:
                logger.debug("alternate_feeds: %s failed: %s", url, e)
                continue
            if entries:
                return entries
        return []


class JsonListingStrategy(Strategy):
    """Hot/rising JSON listings with real engagement counters.

    Requests are sequential with a 100-200 ms pause; a failed front-page
    connectivity check skips the whole strategy.
    """

    name = "json_listings"

    def __init__(self, listings, rng: random.Random, clock=utc_now, sleep=time.sleep):
        self.listings = listings
        self.rng = rng
        self.clock = clock
        self.sleep = sleep

    def check_connectivity(self):
        http_get(f"{REDDIT}/.json", headers={"Accept": "application/json"}, timeout=5)

    def attempt(self) -> list[TrendItem]:
        logger = get_logger()
        self.check_connectivity()
        now = self.clock()
        items = []
        for index, (community, listing) in enumerate(self.listings):
            if index:
                self.sleep(self.rng.uniform(0.1, 0.2))
            try:
                r = http_get(f"{REDDIT}/r/{community}/{listing}/.json",
                             headers={"Accept": JSON_ACCEPT}, timeout=10)
                posts = r.json().get("data", {}).get("children", [])
            except Exception as e:
                logger.debug("json_listings: r/%s/%s failed: %s", community, listing, e)
                continue
            items.extend(self._items(posts, community, now))

        items = dedupe_titles(items)
        items.sort(key=lambda i: i.score, reverse=True)
        return items[:TOP_N]

    @staticmethod
    def _items(posts, community, now):
        for post in posts:
            d = post.get("data", {})
            if d.get("stickied"):
                continue
            published = parse_timestamp(d.get("created_utc"))
            if not within_window(published, now, FORUM_WINDOW_HOURS):
                continue
            title = d.get("title", "")
            upvotes = d.get("ups", 0) or 0
            comments = d.get("num_comments", 0) or 0
            ratio = d.get("upvote_ratio", 0) or 0
            if not is_trending_forum_post(title, upvotes, ratio, comments):
                continue
            cleaned = clean_headline(title)
            if not cleaned:
                continue
            yield TrendItem(
                title=cleaned,
                source_name=f"Reddit r/{community}",
                source_kind=SourceKind.SOCIAL_B,
                score=score_forum_post(cleaned, upvotes, comments, ratio, community),
                url=f"{REDDIT}{d.get('permalink', '')}",
                published_at=published,
                metrics={
                    "upvotes": upvotes,
                    "comments": comments,
                    "upvote_ratio": ratio,
                    "subreddit": community,
                    "hours_ago": hours_ago(published, now),
                    "traffic": traffic_level(upvotes, comments, ratio),
                    "engagement_rate": engagement_rate(upvotes, comments),
                    "type": "reddit_post",
                },
            )


class RedditSource(SourceAdapter):
    name = "reddit"

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now, sleep=time.sleep):
        super().__init__()
        options = source_options(config or {}, "reddit")
        communities = options.get("subreddits", DEFAULT_COMMUNITIES)
        self.rng = rng or random.Random()
        self.clock = clock
        self.strategies = [
            HotFeedStrategy(communities, clock),
            AlternateFeedStrategy(options.get("alternate_subreddits", ALTERNATE_COMMUNITIES), clock),
            JsonListingStrategy(DEFAULT_LISTINGS, self.rng, clock, sleep),
            CuratedStrategy(self._curated),
        ]

    @property
    def live_strategies(self) -> list[Strategy]:
        return [s for s in self.strategies if not s.synthetic]

    def _curated(self) -> list[TrendItem]:
        return curated_forum_items(self.clock(), self.rng)
