"""Tests for trendtracker/sources/: strategy chain and per-source adapters."""

import random
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import requests

from tests.conftest import FIXED_NOW, make_response
from trendtracker.config import Credentials
from trendtracker.models import SourceKind, TrendItem
from trendtracker.sources import NewsSource, RedditSource, TrendsSource, TwitterSource, VideoSource
from trendtracker.sources.base import (
    CuratedStrategy,
    RateLimited,
    SourceAdapter,
    Strategy,
    clean_headline,
    http_get,
    is_valid_headline,
    parse_timestamp,
    within_window,
)
from trendtracker.sources.news import GNEWS_URL, RegionalSectionsStrategy
from trendtracker.sources.reddit import (
    AlternateFeedStrategy,
    HotFeedStrategy,
    JsonListingStrategy,
    _FeedStrategy,
    parse_feed,
)
from trendtracker.sources.trends import TRENDS24_URL, PyTrendsStrategy, Trends24SearchStrategy
from trendtracker.sources.twitter import Trends24Strategy, clean_trend


class _Stub(Strategy):
    def __init__(self, name, result=None, error=None, available=True, synthetic=False):
        self.name = name
        self.result = result
        self.error = error
        self.available = available
        self.synthetic = synthetic
        self.calls = 0

    @property
    def is_available(self):
        return self.available

    def attempt(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class _Adapter(SourceAdapter):
    name = "stub"

    def __init__(self, strategies):
        super().__init__()
        self.strategies = strategies


def _item(title, kind=SourceKind.NEWS):
    return TrendItem(title=title, source_name="stub", source_kind=kind)


def _offline(url, **kwargs):
    raise requests.ConnectionError(f"offline: {url}")


# ─────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────
class TestHttpGet:
    @patch("trendtracker.sources.base.requests.get")
    def test_429_raises_rate_limited(self, mock_get):
        mock_get.return_value = make_response(status=429)
        with pytest.raises(RateLimited):
            http_get("https://example.com/api")

    def test_rate_limited_is_http_error(self):
        assert issubclass(RateLimited, requests.HTTPError)

    @patch("trendtracker.sources.base.requests.get")
    def test_browser_user_agent_overridable(self, mock_get):
        mock_get.return_value = make_response({"ok": True})
        http_get("https://example.com", headers={"User-Agent": "bot"}, timeout=3)
        assert mock_get.call_args.kwargs["headers"]["User-Agent"] == "bot"
        assert mock_get.call_args.kwargs["timeout"] == 3


class TestTimeHelpers:
    def test_parse_iso_z(self):
        assert parse_timestamp("2025-03-12T06:00:00Z") == datetime(2025, 3, 12, 6, tzinfo=timezone.utc)

    def test_parse_naive_as_utc(self):
        assert parse_timestamp("2025-03-12 06:00:00").tzinfo == timezone.utc

    def test_parse_epoch(self):
        assert parse_timestamp(FIXED_NOW.timestamp()) == FIXED_NOW

    def test_parse_garbage(self):
        assert parse_timestamp("yesterday") is None
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None

    def test_window(self, now):
        assert within_window(now - timedelta(hours=11), now, 12)
        assert within_window(now - timedelta(hours=12), now, 12)
        assert not within_window(now - timedelta(hours=13), now, 12)
        assert not within_window(now + timedelta(minutes=5), now, 12)
        assert not within_window(None, now, 12)


class TestHeadlineHelpers:
    def test_clean(self):
        assert clean_headline("3. Sensex rallies 500 points | NDTV") == "Sensex rallies 500 points"

    def test_clean_collapses_whitespace(self):
        assert clean_headline("  Rain   alert\n in Mumbai  ") == "Rain alert in Mumbai"

    def test_valid(self):
        assert is_valid_headline("Sensex rallies as market closes higher")

    def test_invalid(self):
        assert not is_valid_headline("Short")
        assert not is_valid_headline("Subscribe to our India newsletter")
        assert not is_valid_headline("Quiet afternoon across the valley")

    def test_clean_trend(self):
        assert clean_trend("1. #IPL2025 45.2K tweets") == "#IPL2025"
        assert clean_trend("Kejriwal arrest news") == "Kejriwal arrest news"


# ─────────────────────────────────────────────────────
# Strategy chain
# ─────────────────────────────────────────────────────
class TestStrategyChain:
    def test_first_non_empty_wins(self):
        first = _Stub("first", error=RuntimeError("boom"))
        second = _Stub("second", result=[_item("from second")])
        third = _Stub("third", result=[_item("from third")])
        items = _Adapter([first, second, third]).fetch()
        assert [i.title for i in items] == ["from second"]
        assert third.calls == 0

    def test_rate_limited_moves_on(self):
        limited = _Stub("limited", error=RateLimited("429"))
        ok = _Stub("ok", result=[_item("ok")])
        assert _Adapter([limited, ok]).fetch()[0].title == "ok"

    def test_unavailable_skipped(self):
        missing = _Stub("missing", result=[_item("never")], available=False)
        ok = _Stub("ok", result=[_item("ok")])
        assert _Adapter([missing, ok]).fetch()[0].title == "ok"
        assert missing.calls == 0

    def test_empty_and_none_move_on(self):
        chain = [_Stub("none", result=None), _Stub("empty", result=[]), _Stub("ok", result=[_item("ok")])]
        assert len(_Adapter(chain).fetch()) == 1

    def test_exhausted_returns_empty(self):
        assert _Adapter([_Stub("a", error=ValueError("x"))]).fetch() == []

    def test_synthetic_excluded_on_request(self):
        curated = CuratedStrategy(lambda: [_item("curated")])
        adapter = _Adapter([_Stub("a", result=[]), curated])
        assert adapter.fetch(include_synthetic=False) == []
        assert adapter.fetch()[0].title == "curated"

    def test_skipped_strategies_not_run(self):
        api = _Stub("api", result=[_item("from api")])
        scrape = _Stub("scrape", result=[_item("scraped")])
        items = _Adapter([api, scrape]).fetch(skip=("api",))
        assert [i.title for i in items] == ["scraped"]
        assert api.calls == 0


# ─────────────────────────────────────────────────────
# News
# ─────────────────────────────────────────────────────
MEDIASTACK_BODY = {
    "data": [
        {
            "title": "Sensex surges 900 points as markets rally",
            "description": "Banking stocks lead the rally",
            "source": "Economic Times",
            "url": "https://example.com/sensex",
            "published_at": "2025-03-12T06:00:00+00:00",
        },
        {
            "title": "Old story from last week",
            "source": "Economic Times",
            "url": "https://example.com/old",
            "published_at": "2025-03-01T06:00:00+00:00",
        },
    ]
}


class TestNewsSource:
    @patch("trendtracker.sources.base.requests.get")
    def test_everything_down_returns_curated(self, mock_get, rng, clock):
        mock_get.side_effect = _offline
        source = NewsSource(credentials=Credentials(gnews="g", mediastack="m"), rng=rng, clock=clock)
        items = source.fetch()
        assert items
        assert all(i.is_fallback for i in items)
        assert all(i.source_kind == SourceKind.NEWS for i in items)

    @patch("trendtracker.sources.base.requests.get")
    def test_gnews_429_then_mediastack(self, mock_get, rng, clock):
        def respond(url, **kwargs):
            if "gnews.io" in url:
                return make_response(status=429)
            return make_response(MEDIASTACK_BODY)

        mock_get.side_effect = respond
        source = NewsSource(credentials=Credentials(gnews="g", mediastack="m"), rng=rng, clock=clock)
        items = source.fetch()

        assert [i.title for i in items] == ["Sensex surges 900 points as markets rally"]
        assert items[0].source_name == "Economic Times"
        assert items[0].metrics["api"] == "MediaStack"
        assert not items[0].is_fallback

    @patch("trendtracker.sources.base.requests.get")
    def test_missing_key_never_calls_provider(self, mock_get, rng, clock):
        mock_get.return_value = make_response(MEDIASTACK_BODY)
        NewsSource(credentials=Credentials(mediastack="m"), rng=rng, clock=clock).fetch()
        urls = [c.args[0] for c in mock_get.call_args_list]
        assert urls
        assert not any("gnews.io" in u for u in urls)

    @patch("trendtracker.sources.base.requests.get")
    def test_fetch_from_apis_merges_and_dedupes(self, mock_get, rng, clock):
        def respond(url, **kwargs):
            if "gnews.io" in url:
                return make_response({"articles": [{
                    "title": "Sensex surges 900 points as markets rally",
                    "publishedAt": "2025-03-12T07:00:00Z",
                    "source": {"name": "NDTV", "url": "https://www.ndtv.com"},
                }]})
            return make_response(MEDIASTACK_BODY)

        mock_get.side_effect = respond
        source = NewsSource(credentials=Credentials(gnews="g", mediastack="m"), rng=rng, clock=clock)
        items = source.fetch_from_apis()
        assert len(items) == 1
        assert items[0].source_name == "NDTV"

    @patch("trendtracker.sources.base.requests.get")
    def test_regional_section_scrape(self, mock_get, clock):
        mock_get.return_value = make_response(text=(
            "<html><body>"
            '<h2><a href="/story/1">Supreme Court hearing on election bonds today</a></h2>'
            "<h3>Subscribe now</h3>"
            "</body></html>"
        ))
        strategy = RegionalSectionsStrategy(
            SourceKind.NEWS, [("https://www.ndtv.com/india-news", "NDTV")], clock=clock,
        )
        items = strategy.attempt()
        assert [i.title for i in items] == ["Supreme Court hearing on election bonds today"]
        assert items[0].url == "https://www.ndtv.com/story/1"
        assert items[0].score == 10

    @patch("trendtracker.sources.base.requests.get")
    def test_regional_sections_stop_when_enough(self, mock_get, clock):
        def respond(url, **kwargs):
            section = url[-1]
            headlines = "".join(
                f"<h2>Election rally draws crowds in district {section}{n}</h2>" for n in range(6)
            )
            return make_response(text=f"<html><body>{headlines}</body></html>")

        mock_get.side_effect = respond
        sections = [
            ("https://example.com/a", "A"),
            ("https://example.com/b", "B"),
            ("https://example.com/c", "C"),
        ]
        items = RegionalSectionsStrategy(SourceKind.NEWS, sections, enough=10, clock=clock).attempt()

        assert mock_get.call_count == 2
        assert len(items) == 10
        assert {i.source_name for i in items} == {"A", "B"}
        assert items[0].url == "https://example.com/a"

    @patch("trendtracker.sources.base.requests.get")
    def test_skip_api_strategies(self, mock_get, rng, clock):
        mock_get.side_effect = _offline
        source = NewsSource(credentials=Credentials(gnews="g", mediastack="m"), rng=rng, clock=clock)
        assert source.fetch(include_synthetic=False, skip=("gnews", "mediastack")) == []
        urls = [c.args[0] for c in mock_get.call_args_list]
        assert urls
        assert GNEWS_URL not in urls
        assert not any("mediastack" in u for u in urls)


# ─────────────────────────────────────────────────────
# Video
# ─────────────────────────────────────────────────────
def _search_result(video_id, title, channel):
    return {"id": {"videoId": video_id},
            "snippet": {"title": title, "channelTitle": channel, "publishedAt": "2025-03-12T05:00:00Z"}}


class TestVideoSource:
    def test_no_key_returns_nothing(self, rng, clock):
        client = MagicMock()
        assert VideoSource(rng=rng, clock=clock, client=client).fetch() == []
        client.search.assert_not_called()

    def test_filters_and_sorts_by_views(self, rng, clock):
        client = MagicMock()
        client.search.return_value.list.return_value.execute.return_value = {"items": [
            _search_result("v1", "दिल्ली में बड़ी खबर", "Aaj Tak"),
            _search_result("v2", "Cute baby dance", "Happy Kids"),
            _search_result("v3", "Sensex crashes 800 points", "CNBC Awaaz"),
        ]}
        client.videos.return_value.list.return_value.execute.return_value = {"items": [
            {"id": "v3", "statistics": {"viewCount": "4000"}},
            {"id": "v1", "statistics": {"viewCount": "5400"}},
            {"id": "v2", "statistics": {"viewCount": "90000"}},
        ]}

        source = VideoSource(credentials=Credentials(youtube="yt"), rng=rng, clock=clock, client=client)
        items = source.fetch()

        assert [i.url for i in items] == [
            "https://www.youtube.com/watch?v=v1",
            "https://www.youtube.com/watch?v=v3",
        ]
        assert items[0].metrics["views"] == 5400
        assert items[0].source_name == "YouTube: Aaj Tak"
        kwargs = client.search.return_value.list.call_args.kwargs
        assert kwargs["publishedAfter"] == "2025-03-11T21:30:00Z"
        assert kwargs["videoDuration"] == "short"

    def test_most_popular_when_search_empty(self, rng, clock):
        client = MagicMock()
        client.search.return_value.list.return_value.execute.return_value = {"items": []}
        client.videos.return_value.list.return_value.execute.return_value = {"items": [
            {"id": "p1", "snippet": {"title": "Budget explained", "channelTitle": "Mint"},
             "statistics": {"viewCount": "120000"}},
        ]}
        source = VideoSource(credentials=Credentials(youtube="yt"), rng=rng, clock=clock, client=client)
        items = source.fetch()
        assert len(items) == 1
        assert items[0].metrics["timeframe"] == "Overall Popular (Fallback)"


# ─────────────────────────────────────────────────────
# Forum
# ─────────────────────────────────────────────────────
ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>hot posts</title>
  <entry>
    <title>Massive protest in Delhi goes viral today</title>
    <link href="https://www.reddit.com/r/india/comments/a1/"/>
    <updated>2025-03-12T08:00:00+00:00</updated>
  </entry>
  <entry>
    <title>Yesterday's discussion thread archive</title>
    <link href="https://www.reddit.com/r/india/comments/a2/"/>
    <updated>2025-03-11T12:00:00+00:00</updated>
  </entry>
  <entry>
    <title>Metro line opening delayed again in Mumbai</title>
    <link href="https://www.reddit.com/r/india/comments/a3/"/>
    <updated>2025-03-12T07:00:00+00:00</updated>
  </entry>
  <entry>
    <title>Fourth entry is beyond the per-feed limit</title>
    <link href="https://www.reddit.com/r/india/comments/a4/"/>
    <updated>2025-03-12T09:00:00+00:00</updated>
  </entry>
</feed>
"""

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>india</title>
    <item>
      <title>Parliament passes new data protection bill</title>
      <link>https://www.reddit.com/r/india/comments/b1/</link>
      <pubDate>Wed, 12 Mar 2025 08:30:00 +0000</pubDate>
    </item>
  </channel>
</rss>
"""


def _reddit_only(url, **kwargs):
    if "reddit.com" in url:
        return make_response(text=ATOM_FEED)
    raise requests.ConnectionError(f"offline: {url}")


class TestRedditFeeds:
    def test_parse_feed(self):
        entries = parse_feed(ATOM_FEED)
        assert len(entries) == 4
        title, link, published = entries[0]
        assert link == "https://www.reddit.com/r/india/comments/a1/"
        assert published == datetime(2025, 3, 12, 8, tzinfo=timezone.utc)

    @patch("trendtracker.sources.base.requests.get")
    def test_hot_feeds(self, mock_get, clock):
        mock_get.return_value = make_response(text=ATOM_FEED)
        items = HotFeedStrategy(["india"], clock).attempt()

        assert [i.title for i in items] == [
            "Massive protest in Delhi goes viral today",
            "Metro line opening delayed again in Mumbai",
        ]
        # headline 20 + first-position bonus 30, then 0 + third-position bonus 10
        assert [i.score for i in items] == [50, 10]
        assert items[0].metrics["hours_ago"] == 1
        assert items[0].source_kind == SourceKind.SOCIAL_B
        assert "/r/india/hot/.rss" in mock_get.call_args.args[0]

    @patch("trendtracker.sources.base.requests.get")
    def test_alternate_feeds_fall_through_to_old_reddit(self, mock_get, clock):
        def respond(url, **kwargs):
            if url.startswith("https://old.reddit.com"):
                return make_response(text=RSS_FEED)
            raise requests.ConnectionError(f"blocked: {url}")

        mock_get.side_effect = respond
        items = AlternateFeedStrategy(["india"], clock).attempt()

        assert [c.args[0] for c in mock_get.call_args_list] == [
            "https://www.reddit.com/r/india/.rss",
            "https://www.reddit.com/r/india/new/.rss",
            "https://old.reddit.com/r/india/.rss",
        ]
        assert [i.title for i in items] == ["Parliament passes new data protection bill"]
        # headline 0 + first-position bonus 4 * 8
        assert items[0].score == 32
        assert items[0].metrics["hours_ago"] == 1
        assert items[0].url == "https://www.reddit.com/r/india/comments/b1/"

    def test_parse_rss(self):
        title, link, published = parse_feed(RSS_FEED)[0]
        assert title == "Parliament passes new data protection bill"
        assert published == datetime(2025, 3, 12, 8, 30, tzinfo=timezone.utc)

    def test_feed_strategy_requires_feed_entries(self):
        with pytest.raises(TypeError):
            _FeedStrategy(["india"])

    @patch("trendtracker.sources.base.requests.get")
    def test_source_dedupes_across_communities(self, mock_get, rng, clock):
        mock_get.return_value = make_response(text=ATOM_FEED)
        items = RedditSource(rng=rng, clock=clock, sleep=lambda s: None).fetch()
        assert len(items) == 2
        assert not any(i.is_fallback for i in items)

    @patch("trendtracker.sources.base.requests.get")
    def test_everything_down_returns_curated(self, mock_get, rng, clock):
        mock_get.side_effect = _offline
        items = RedditSource(rng=rng, clock=clock, sleep=lambda s: None).fetch()
        assert items
        assert all(i.is_fallback and i.source_name.startswith("Reddit r/") for i in items)


def _listing_post(title, hours_old, ups, comments, ratio, stickied=False):
    return {"data": {
        "title": title, "ups": ups, "num_comments": comments, "upvote_ratio": ratio,
        "created_utc": (FIXED_NOW - timedelta(hours=hours_old)).timestamp(),
        "permalink": "/r/india/comments/x/", "stickied": stickied,
    }}


class TestJsonListings:
    @patch("trendtracker.sources.base.requests.get")
    def test_filters_and_scores(self, mock_get, clock):
        listing = {"data": {"children": [
            _listing_post("Community rules and weekly thread", 1, 5000, 900, 0.99, stickied=True),
            _listing_post("Budget session begins with heated debate in Parliament", 1, 1200, 300, 0.92),
            _listing_post("Old news that everyone discussed already", 20, 3000, 500, 0.95),
        ]}}

        def respond(url, **kwargs):
            return make_response({} if url.endswith("reddit.com/.json") else listing)

        mock_get.side_effect = respond
        pauses = []
        strategy = JsonListingStrategy(
            [("india", "hot"), ("india", "rising")], random.Random(5), clock, pauses.append,
        )
        items = strategy.attempt()

        assert [i.title for i in items] == ["Budget session begins with heated debate in Parliament"]
        assert items[0].metrics["upvotes"] == 1200
        assert items[0].metrics["traffic"] == "Hot"
        assert items[0].score == 50
        assert len(pauses) == 1 and 0.1 <= pauses[0] <= 0.2

    @patch("trendtracker.sources.base.requests.get")
    def test_failed_connectivity_check_skips_strategy(self, mock_get, clock):
        mock_get.side_effect = _offline
        strategy = JsonListingStrategy([("india", "hot")], random.Random(5), clock, lambda s: None)
        with pytest.raises(requests.ConnectionError):
            strategy.attempt()
        assert mock_get.call_count == 1


# ─────────────────────────────────────────────────────
# Trend list (Social-A)
# ─────────────────────────────────────────────────────
TRENDS24_HTML = """
<html><body>
<ol class="trend-card__list">
  <li class="trend-card__list-item"><a href="/search?q=%23BreakingNews">#BreakingNews</a> <span>120K tweets</span></li>
  <li class="trend-card__list-item"><a href="/search?q=Weather">Weather</a></li>
  <li class="trend-card__list-item"><a href="/search?q=Kejriwal">Kejriwal arrest news</a></li>
</ol>
</body></html>
"""

GETDAYTRENDS_HTML = """
<html><body><table>
  <tr><td><a href="/india/trend/%23IPL2025/">#IPL2025</a></td><td>45.2K tweets</td></tr>
  <tr><td><a href="/india/trend/Modi/">Modi rally live</a></td></tr>
</table></body></html>
"""


class TestTwitterSource:
    @patch("trendtracker.sources.base.requests.get")
    def test_trends24(self, mock_get, clock):
        mock_get.return_value = make_response(text=TRENDS24_HTML)
        items = Trends24Strategy(clock).attempt()

        assert {i.title for i in items} == {"#BreakingNews", "Kejriwal arrest news"}
        assert items[0].title == "#BreakingNews"
        assert items[0].score == 60
        assert items[0].metrics["type"] == "hashtag"
        assert items[0].url == "https://trends24.in/search?q=%23BreakingNews"

    @patch("trendtracker.sources.base.requests.get")
    def test_getdaytrends_when_trends24_down(self, mock_get, rng, clock):
        def respond(url, **kwargs):
            if "trends24.in" in url:
                raise requests.ConnectionError("trends24 down")
            return make_response(text=GETDAYTRENDS_HTML)

        mock_get.side_effect = respond
        items = TwitterSource(rng=rng, clock=clock).fetch()

        assert [i.title for i in items] == ["Modi rally live", "#IPL2025"]
        # live 35 + modi 25; hashtag 15 + ipl 20 - short 5
        assert [i.score for i in items] == [60, 30]
        assert all(i.source_name == "getdaytrends.com" for i in items)
        assert items[0].url == "https://getdaytrends.com/india/trend/Modi/"
        assert not any(i.is_fallback for i in items)

    @patch("trendtracker.sources.base.requests.get")
    def test_everything_down_returns_curated(self, mock_get, rng, clock):
        mock_get.side_effect = _offline
        items = TwitterSource(rng=rng, clock=clock).fetch()
        assert items
        assert all(i.is_fallback and i.url.startswith("https://twitter.com/search?q=") for i in items)


# ─────────────────────────────────────────────────────
# Search trends
# ─────────────────────────────────────────────────────
class TestTrendsSource:
    @patch("pytrends.request.TrendReq")
    def test_pytrends(self, mock_cls, clock):
        mock_cls.return_value.trending_searches.return_value = pd.DataFrame(["IPL auction", "Holi 2025"])
        items = PyTrendsStrategy("IN", clock).attempt()

        assert [i.title for i in items] == ["IPL auction", "Holi 2025"]
        assert all(i.source_kind == SourceKind.SEARCH_TREND for i in items)
        mock_cls.assert_called_once_with(hl="en-US", tz=330)
        mock_cls.return_value.trending_searches.assert_called_once_with(pn="india")

    @patch("trendtracker.sources.base.requests.get")
    def test_trends24_google_block(self, mock_get, clock):
        mock_get.return_value = make_response(text=(
            '<html><body><div class="google-trends"><ol>'
            "<li><a>1. IPL auction</a></li>"
            "<li><span>#Hashtag</span></li>"
            "<li><a>Twitter trends</a></li>"
            "<li><a>Holi 2025</a></li>"
            "</ol></div></body></html>"
        ))
        items = Trends24SearchStrategy(clock).attempt()

        assert [i.title for i in items] == ["IPL auction", "Holi 2025"]
        assert all(i.source_name == "trends24.in (Google)" for i in items)
        assert all(i.source_kind == SourceKind.SEARCH_TREND for i in items)
        assert mock_get.call_args.args[0] == TRENDS24_URL

    @patch("pytrends.request.TrendReq")
    @patch("trendtracker.sources.base.requests.get")
    def test_forum_fallback_relabelled(self, mock_get, mock_cls, rng, clock):
        mock_cls.side_effect = requests.ConnectionError("trends blocked")
        mock_get.side_effect = _reddit_only
        items = TrendsSource(rng=rng, clock=clock).fetch()

        assert "Massive protest in Delhi goes viral today" in {i.title for i in items}
        assert all(i.source_kind == SourceKind.SEARCH_TREND for i in items)
        assert not any(i.is_fallback for i in items)
