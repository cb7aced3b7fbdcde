"""Viral validation: corroborate news items against two social signals.

Each item moves through collected → social_queried → scored → decided. The
composite score and the viral decision use separate threshold sets:
SCORE_THRESHOLDS normalizes the three score contributions, while the looser
DECISION_THRESHOLDS decide is_viral.
"""

import concurrent.futures
import math
import random
import time
from datetime import timedelta
from urllib.parse import quote

from .config import BOT_UA, Credentials, extract_keywords
from .log import get_logger, log
from .models import RedditSignal, TrendItem, TwitterSignal, ViralAssessment
from .sources.base import http_get, utc_now
from .state import ValidationState

SCORE_THRESHOLDS = {
    "min_tweets": 10,
    "min_tweet_impressions": 500,
    "min_reddit_posts": 3,
}
DECISION_THRESHOLDS = {
    "reddit_min_posts": 1,
    "reddit_min_upvotes": 30,
    "twitter_min_tweets": 10,
    "twitter_min_avg_impressions": 150,
}
GOOD_UPVOTE_RATIO = 0.7
MIN_REDDIT_COMMENTS = 5

VALIDATE_TOP_N = 5
# Already tried by fetch_from_apis, not re-run on the scrape fallback.
API_STRATEGIES = ("gnews", "mediastack")
MAX_EVIDENCE_TWEETS = 15
ESTIMATE_CAP = 200

TWITTER_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"
REDDIT_SEARCH_URL = "https://www.reddit.com/search.json"
POPULAR_COMMUNITIES = ["news", "worldnews", "breakingnews", "india", "IndiaSpeaks"]
FALLBACK_COMMUNITIES = ["india", "IndiaSpeaks", "unitedstatesofindia"]

NEWS_HANDLES = [
    "ANI", "ZeeNews", "TimesNow", "republic", "ndtv", "IndianExpress",
    "htTweets", "NewsX", "ABPNews", "IndiaToday", "CNNnews18",
]
VERIFIED_HANDLES = [
    "PMOIndia", "narendramodi", "AmitShah", "RahulGandhi", "ArvindKejriwal",
    "MamataOfficial", "yadavtejashwi", "BJP4India", "INCIndia",
]

# (terms, bonus) pairs for the heuristic tweet-activity estimate
ACTIVITY_BONUSES = [
    (("viral", "trending"), 50),
    (("breaking", "exclusive"), 30),
    (("arrested", "controversy"), 40),
    (("celebrity", "bollywood"), 35),
    (("india", "indian"), 25),
]


# ─────────────────────────────────────────────────────
# Score and decision
# ─────────────────────────────────────────────────────
def compute_viral_score(twitter_count: int, average_impressions: float, reddit_good_count: int,
                        thresholds: dict = None) -> int:
    """Three independently capped contributions, rounded, clamped to [0, 100]."""
    t = {**SCORE_THRESHOLDS, **(thresholds or {})}
    score = (
        min(100, 60 * twitter_count / t["min_tweets"])
        + min(20, 20 * average_impressions / t["min_tweet_impressions"])
        + min(40, 40 * reddit_good_count / t["min_reddit_posts"])
    )
    return max(0, min(100, math.floor(score + 0.5)))


def is_viral(reddit_count: int, total_upvotes: int, twitter_count: int, average_impressions: float) -> bool:
    d = DECISION_THRESHOLDS
    reddit_realistic = reddit_count >= d["reddit_min_posts"] and total_upvotes >= d["reddit_min_upvotes"]
    twitter_only = (
        twitter_count >= d["twitter_min_tweets"]
        and average_impressions >= d["twitter_min_avg_impressions"]
    )
    return reddit_realistic or twitter_only


def search_terms(item: TrendItem) -> str:
    keywords = list(item.keywords) or extract_keywords(item.title)
    return " ".join(keywords[:2])


# ─────────────────────────────────────────────────────
# Twitter-like signal
# ─────────────────────────────────────────────────────
def estimate_activity(title: str, rng: random.Random) -> int:
    """Heuristic tweet-count estimate from title lexicon plus bounded noise."""
    lower = title.lower()
    count = 20
    for terms, bonus in ACTIVITY_BONUSES:
        if any(term in lower for term in terms):
            count += bonus
    count += rng.randrange(50)
    return min(count, ESTIMATE_CAP)


def impressions_from_engagement(engagement: int) -> int:
    return min(max(engagement * 50, 100), 10000)


def _twitter_url(terms: str) -> str:
    return f"https://twitter.com/search?q={quote(terms)}&src=typed_query&f=live"


def synthesize_tweets(item: TrendItem, count: int, rng: random.Random, now) -> list[dict]:
    """Representative evidence tweets. Counters are randomized, never real."""
    keywords = list(item.keywords) or extract_keywords(item.title) or ["News"]
    tweets = []
    for i in range(min(count, MAX_EVIDENCE_TWEETS)):
        if rng.random() < 0.3:
            username = rng.choice(VERIFIED_HANDLES)
            verified = True
        elif rng.random() < 0.6:
            username = rng.choice(NEWS_HANDLES)
            verified = True
        else:
            username = f"user{rng.randrange(9999)}"
            verified = False

        text = rng.choice([
            f"Breaking: {item.title}",
            f"{keywords[0]} alert: {item.title[:80]}...",
            f"Just in: {item.title}",
            f"#Breaking #{keywords[0]} {item.title}",
            f"This is huge! {item.title[:100]}",
            f"Via @{username}: {item.title[:90]}...",
        ])
        impressions = rng.randrange(100, 1100)
        rate = 0.05 + rng.random() * 0.15
        engagement = int(impressions * rate)
        tweets.append({
            "username": username,
            "verified": verified,
            "text": text,
            "impressions": impressions,
            "retweets": int(engagement * 0.4),
            "likes": int(engagement * 0.6),
            "replies": int(engagement * 0.1),
            "engagement_rate": f"{rate * 100:.1f}%",
            "created_at": (now - timedelta(hours=rng.random() * 24)).isoformat(),
        })
    tweets.sort(key=lambda t: t["impressions"], reverse=True)
    return tweets


def _twitter_signal(tweets: list[dict], terms: str, estimated: bool) -> TwitterSignal:
    total = sum(t["impressions"] for t in tweets)
    return TwitterSignal(
        count=len(tweets),
        average_impressions=round(total / len(tweets)) if tweets else 0,
        total_impressions=total,
        total_engagement=sum(t["retweets"] + t["likes"] + t["replies"] for t in tweets),
        verified_accounts=sum(1 for t in tweets if t["verified"]),
        tweets=tuple(tweets),
        search_url=_twitter_url(terms),
        estimated=estimated,
    )


# ─────────────────────────────────────────────────────
# Reddit-like signal
# ─────────────────────────────────────────────────────
def _parse_posts(payload: dict, community: str = None) -> list[dict]:
    posts = []
    for child in (payload.get("data") or {}).get("children") or []:
        d = child.get("data") or {}
        if not d.get("title"):
            continue
        upvotes = d.get("ups", 0) or 0
        downvotes = max(0, upvotes - (d.get("score", 0) or 0))
        ratio = round(upvotes / (upvotes + downvotes), 2) if upvotes > 0 else 0.0
        posts.append({
            "id": d.get("id"),
            "title": d["title"],
            "subreddit": community or d.get("subreddit", ""),
            "upvotes": upvotes,
            "upvote_ratio": ratio,
            "comments": d.get("num_comments", 0) or 0,
            "url": f"https://reddit.com{d.get('permalink', '')}",
        })
    return posts


def _reddit_signal(posts: list[dict], terms: str) -> RedditSignal:
    seen = set()
    unique = []
    for post in posts:
        if post["id"] not in seen:
            seen.add(post["id"])
            unique.append(post)
    unique.sort(key=lambda p: p["upvotes"], reverse=True)

    good = [
        p for p in unique
        if p["upvote_ratio"] >= GOOD_UPVOTE_RATIO and p["comments"] >= MIN_REDDIT_COMMENTS
    ]
    subreddits = []
    for p in unique:
        if p["subreddit"] not in subreddits:
            subreddits.append(p["subreddit"])

    return RedditSignal(
        count=len(unique),
        good_engagement_count=len(good),
        total_upvotes=sum(p["upvotes"] for p in unique),
        total_comments=sum(p["comments"] for p in unique),
        average_upvote_ratio=round(sum(p["upvote_ratio"] for p in unique) / len(unique), 2) if unique else 0.0,
        subreddits=tuple(subreddits[:10]),
        posts=tuple(unique[:12]),
        search_url=f"https://www.reddit.com/search/?q={quote(terms)}&type=link&sort=hot&t=day",
    )


class ViralValidator:
    """Queries both social signals for one item and renders the assessment."""

    def __init__(self, credentials: Credentials = None, rng: random.Random = None,
                 clock=utc_now, sleep=time.sleep, score_thresholds: dict = None):
        credentials = credentials or Credentials()
        self.score_thresholds = score_thresholds
        self.bearer_token = credentials.twitter_bearer
        self.rng = rng or random.Random()
        self.clock = clock
        self.sleep = sleep

    # Twitter-like
    def query_twitter(self, item: TrendItem) -> TwitterSignal:
        terms = search_terms(item)
        if self.bearer_token:
            try:
                return self._search_tweets(terms)
            except Exception as e:
                get_logger().warning("Tweet search failed (%s), estimating activity", e)
        count = estimate_activity(item.title, self.rng)
        tweets = synthesize_tweets(item, count, self.rng, self.clock())
        return _twitter_signal(tweets, terms, estimated=True)

    def _search_tweets(self, terms: str) -> TwitterSignal:
        r = http_get(TWITTER_SEARCH_URL, params={
            "query": terms,
            "max_results": 10,
            "tweet.fields": "public_metrics,created_at",
            "expansions": "author_id",
            "user.fields": "verified,username",
        }, headers={"Authorization": f"Bearer {self.bearer_token}"}, timeout=10)
        body = r.json()
        users = {u["id"]: u for u in (body.get("includes") or {}).get("users", [])}

        tweets = []
        for tweet in body.get("data") or []:
            metrics = tweet.get("public_metrics") or {}
            retweets = metrics.get("retweet_count", 0)
            likes = metrics.get("like_count", 0)
            replies = metrics.get("reply_count", 0)
            user = users.get(tweet.get("author_id"), {})
            tweets.append({
                "username": user.get("username", ""),
                "verified": bool(user.get("verified")),
                "text": tweet.get("text", ""),
                "impressions": impressions_from_engagement(retweets + likes + replies),
                "retweets": retweets,
                "likes": likes,
                "replies": replies,
                "created_at": tweet.get("created_at"),
            })
        return _twitter_signal(tweets, terms, estimated=False)

    # Reddit-like
    def _search(self, url: str, params: dict, timeout: float, community: str = None) -> list[dict]:
        r = http_get(url, params=params, headers={"User-Agent": BOT_UA}, timeout=timeout)
        return _parse_posts(r.json(), community)

    def _search_community(self, community: str, terms: str) -> list[dict]:
        return self._search(
            f"https://www.reddit.com/r/{community}/search.json",
            {"q": terms, "restrict_sr": 1, "sort": "hot", "t": "day", "limit": 15},
            timeout=5, community=community,
        )

    def query_reddit(self, item: TrendItem) -> RedditSignal:
        """Global search, then two communities; on global failure up to three communities."""
        logger = get_logger()
        terms = search_terms(item)
        posts: list[dict] = []
        try:
            posts.extend(self._search(
                REDDIT_SEARCH_URL,
                {"q": terms, "sort": "hot", "t": "day", "type": "link", "limit": 25},
                timeout=8,
            ))
            communities, delay = POPULAR_COMMUNITIES[:2], 0.15
            self.sleep(0.2)
        except Exception as e:
            logger.warning("Global forum search failed (%s), searching communities", e)
            communities, delay = FALLBACK_COMMUNITIES[:3], 0.1

        for community in communities:
            try:
                posts.extend(self._search_community(community, terms))
            except Exception as e:
                logger.debug("Forum search in r/%s failed: %s", community, e)
                continue
            self.sleep(delay)

        return _reddit_signal(posts, terms)

    def assess(self, item: TrendItem, state: ValidationState = None) -> ViralAssessment:
        state = state or ValidationState(item.title)
        if not state.is_done("collected"):
            state.complete_stage("collected")

        with concurrent.futures.ThreadPoolExecutor(max_workers=2, thread_name_prefix="social") as pool:
            twitter_future = pool.submit(self.query_twitter, item)
            reddit_future = pool.submit(self.query_reddit, item)
            twitter = twitter_future.result()
            reddit = reddit_future.result()
        state.complete_stage("social_queried", {"tweets": twitter.count, "posts": reddit.count})

        score = compute_viral_score(
            twitter.count, twitter.average_impressions, reddit.good_engagement_count, self.score_thresholds,
        )
        state.complete_stage("scored", {"viral_score": score})

        viral = is_viral(reddit.count, reddit.total_upvotes, twitter.count, twitter.average_impressions)
        state.complete_stage("decided", {"is_viral": viral})

        get_logger().debug(
            "Viral check %r: %d tweets (%d avg), %d posts (%d upvotes) -> %s (%d)",
            item.title[:60], twitter.count, twitter.average_impressions,
            reddit.count, reddit.total_upvotes, viral, score,
        )
        return ViralAssessment(is_viral=viral, viral_score=score, twitter=twitter, reddit=reddit)


def detect_viral_news(news_source, validator: ViralValidator, limit: int = VALIDATE_TOP_N) -> dict:
    """Validate the top news items; return only the viral ones, best first."""
    started = time.monotonic()

    items = news_source.fetch_from_apis() or news_source.fetch(include_synthetic=False, skip=API_STRATEGIES)
    items = [i for i in items if not i.is_fallback]
    candidates = sorted(items, key=lambda i: i.score, reverse=True)[:limit]

    viral = []
    for item in candidates:
        state = ValidationState(item.title)
        state.complete_stage("collected", {"source": item.source_name})
        assessment = validator.assess(item, state)
        if assessment.is_viral:
            viral.append((item, assessment))

    viral.sort(key=lambda pair: pair[1].viral_score, reverse=True)
    elapsed = time.monotonic() - started
    log(f"Viral detection: {len(viral)}/{len(candidates)} validated items viral ({elapsed:.1f}s)")
    return {
        "total_news": len(items),
        "viral_news": len(viral),
        "items": viral,
        "analysis_time": round(elapsed, 2),
    }
