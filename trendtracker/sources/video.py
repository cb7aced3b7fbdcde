"""Video source: recent news Shorts via the YouTube Data API → mostPopular → curated."""

import random
from datetime import timedelta

from googleapiclient.discovery import build

from ..config import VIDEO_WINDOW_HOURS, Credentials
from ..log import get_logger
from ..models import SourceKind, TrendItem
from ..scoring import DEVANAGARI, score_headline
from .base import CuratedStrategy, SourceAdapter, Strategy, parse_timestamp, utc_now
from .curated import VIDEO_TOPICS, curated_items

WATCH_URL = "https://www.youtube.com/watch?v={}"
MIN_VIEWS = 3000
TOP_N = 10

SEARCH_QUERY = (
    "breaking news OR latest news OR viral news OR trending news OR india news "
    "OR hindi news OR politics OR government OR minister OR parliament OR election "
    "OR protest OR scam OR corruption OR arrest OR court OR crime OR police OR market "
    "OR stock OR sensex OR nifty OR business OR economy OR budget OR tax OR price "
    "OR petrol OR diesel OR gas OR electricity OR salary OR job OR scheme OR yojana "
    "OR rbi OR inflation OR ipo OR company OR startup"
)

# Children, family and lifestyle content is never news.
EXCLUDED_TERMS = [
    "kids", "children", "baby", "toddler", "cartoon", "nursery", "rhyme",
    "family", "mom", "dad", "papa", "mama", "bhai", "sister", "brother", "cute",
    "funny baby", "child", "bachcha", "बच्चा", "परिवार", "cooking", "recipe",
    "food", "kitchen", "dance", "music", "song", "comedy", "funny",
    "entertainment", "vlogs", "lifestyle", "games", "tutorial", "tech review",
    "unboxing", "reaction", "masti", "mazak", "हंसी", "मजाक", "गाना", "डांस",
    "खाना", "रेसिपी",
]

NEWS_TERMS = [
    "india", "indian", "hindi", "news", "breaking", "latest", "update",
    "politics", "government", "minister", "pm modi", "parliament", "election",
    "court", "supreme court", "high court", "judge", "legal", "law", "police",
    "crime", "arrest", "investigation", "case", "scam", "corruption", "protest",
    "rally", "strike", "controversy", "debate", "economy", "market", "stock",
    "share", "sensex", "nifty", "rupee", "dollar", "budget", "tax", "gst",
    "policy", "rbi", "reserve bank", "inflation", "gdp", "investment", "ipo",
    "trading", "crypto", "gold", "banking", "loan", "interest rate", "emi",
    "salary", "pension", "insurance", "business", "company", "startup", "ceo",
    "profit", "revenue", "merger", "adani", "ambani", "tata", "reliance",
    "infosys", "petrol", "diesel", "lpg", "gas", "electricity", "railway",
    "train", "metro", "fuel", "price", "subsidy", "scheme", "yojana",
    "welfare", "health", "education", "job", "employment", "upi", "digital",
    "technology", "delhi", "mumbai", "kolkata", "chennai", "bengaluru",
    "hyderabad", "congress", "bjp", "aap", "party", "leader", "viral",
    "trending", "exposed", "shocking", "exclusive", "समाचार", "न्यूज़",
    "राजनीति", "सरकार", "मंत्री", "अदालत", "पुलिस", "बाजार", "शेयर", "रुपया",
    "व्यापार", "नौकरी", "पेट्रोल", "डीजल", "बिजली", "ट्रेन", "योजना",
]

NEWS_CHANNEL_PATTERNS = [
    "news", "tv", "channel", "media", "press", "times", "today", "live",
    "update", "bulletin", "report", "journalist", "anchor", "bharat",
    "hindustan", "aaj tak", "zee news", "ndtv", "republic", "cnbc", "india tv",
    "abp", "news18", "business", "finance", "money", "market", "stock",
    "economic", "financial", "et now", "bloomberg", "moneycontrol", "mint",
]

VIRAL_TITLE_TERMS = [
    "viral", "trending", "breaking", "news", "exposed", "shocking", "market",
    "stock", "price", "rate", "budget", "scheme", "yojana", "salary", "job",
    "petrol", "diesel", "gas", "electricity",
]


def is_news_video(title: str, channel: str) -> bool:
    """Reject children/lifestyle content; require Hindi script, a news term, or a news channel."""
    t, c = title.lower(), channel.lower()
    if any(term in t or term in c for term in EXCLUDED_TERMS):
        return False
    if DEVANAGARI.search(title) or DEVANAGARI.search(channel):
        return True
    if any(term in t or term in c for term in NEWS_TERMS):
        return True
    return any(pattern in c for pattern in NEWS_CHANNEL_PATTERNS)


def is_viral_video(title: str, views: int) -> bool:
    lower = title.lower()
    return views >= MIN_VIEWS or any(term in lower for term in VIRAL_TITLE_TERMS)


def _views(statistics: dict) -> int:
    try:
        return int(statistics.get("viewCount", 0))
    except (TypeError, ValueError):
        return 0


def _video_item(video_id: str, snippet: dict, statistics: dict, timeframe: str) -> TrendItem:
    title = snippet.get("title", "")
    channel = snippet.get("channelTitle", "")
    return TrendItem(
        title=title,
        source_name=f"YouTube: {channel}" if channel else "YouTube",
        source_kind=SourceKind.VIDEO,
        score=score_headline(title, channel),
        url=WATCH_URL.format(video_id),
        published_at=parse_timestamp(snippet.get("publishedAt")),
        metrics={
            "views": _views(statistics),
            "channel": channel,
            "category": snippet.get("categoryId"),
            "timeframe": timeframe,
        },
    )


class _YouTubeStrategy(Strategy):
    def __init__(self, api_key: str, client=None, clock=utc_now):
        self.api_key = api_key
        self._client = client
        self.clock = clock

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    @property
    def youtube(self):
        if self._client is None:
            self._client = build("youtube", "v3", developerKey=self.api_key, cache_discovery=False)
        return self._client


class RecentShortsStrategy(_YouTubeStrategy):
    """Short news videos from the last 12 hours, enriched with view counts."""

    name = "recent_shorts"

    def attempt(self) -> list[TrendItem]:
        since = self.clock() - timedelta(hours=VIDEO_WINDOW_HOURS)
        search = self.youtube.search().list(
            part="snippet",
            type="video",
            regionCode="IN",
            relevanceLanguage="hi",
            publishedAfter=since.strftime("%Y-%m-%dT%H:%M:%SZ"),
            order="viewCount",
            videoDuration="short",
            maxResults=50,
            q=SEARCH_QUERY,
        ).execute()
        results = search.get("items") or []
        if not results:
            return []

        ids = [r["id"]["videoId"] for r in results if r.get("id", {}).get("videoId")]
        stats = self.youtube.videos().list(part="statistics", id=",".join(ids)).execute()
        stats_by_id = {v["id"]: v.get("statistics", {}) for v in stats.get("items") or []}

        items = []
        for result in results:
            video_id = result.get("id", {}).get("videoId")
            if not video_id:
                continue
            item = _video_item(video_id, result.get("snippet", {}), stats_by_id.get(video_id, {}),
                               "Last 12 Hours")
            if is_viral_video(item.title, item.metrics["views"]) and is_news_video(
                item.title, item.metrics["channel"]
            ):
                items.append(item)

        get_logger().debug("recent_shorts: %d of %d videos passed filters", len(items), len(results))
        items.sort(key=lambda i: i.metrics["views"], reverse=True)
        return items[:TOP_N]


class MostPopularStrategy(_YouTubeStrategy):
    name = "most_popular"

    def attempt(self) -> list[TrendItem]:
        response = self.youtube.videos().list(
            part="snippet,statistics",
            chart="mostPopular",
            regionCode="IN",
            maxResults=TOP_N,
        ).execute()
        return [
            _video_item(v["id"], v.get("snippet", {}), v.get("statistics", {}),
                        "Overall Popular (Fallback)")
            for v in response.get("items") or []
        ]


class VideoSource(SourceAdapter):
    """Needs YOUTUBE_API_KEY; without it the adapter returns no items at all."""

    name = "videos"

    def __init__(self, config: dict = None, credentials: Credentials = None,
                 rng: random.Random = None, clock=utc_now, client=None):
        super().__init__()
        credentials = credentials or Credentials()
        self.api_key = credentials.youtube
        self.rng = rng or random.Random()
        self.clock = clock
        self.strategies = [
            RecentShortsStrategy(self.api_key, client, clock),
            MostPopularStrategy(self.api_key, client, clock),
            CuratedStrategy(self._curated),
        ]

    @property
    def is_available(self) -> bool:
        return bool(self.api_key)

    def _curated(self) -> list[TrendItem]:
        return curated_items(VIDEO_TOPICS, SourceKind.VIDEO, "Curated Video", self.clock(), self.rng)
