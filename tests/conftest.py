"""Shared test fixtures."""

import random
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from trendtracker.models import SourceKind, TrendItem

# Wednesday morning, UTC
FIXED_NOW = datetime(2025, 3, 12, 9, 30, tzinfo=timezone.utc)


def make_response(json_data=None, text="", status=200):
    """A stand-in for requests.Response."""
    r = MagicMock()
    r.status_code = status
    r.text = text
    r.json.return_value = json_data if json_data is not None else {}
    r.raise_for_status = MagicMock()
    return r


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


def _item(title, kind, source, score=10):
    return TrendItem(title=title, source_name=source, source_kind=kind, score=score)


@pytest.fixture
def election_batch():
    """5 news, 3 video and 2 search-trend items that all mention the election."""
    news = [
        _item("Election Commission announces state election dates", SourceKind.NEWS, "GNews", 25),
        _item("Election results live updates from counting centres", SourceKind.NEWS, "GNews", 20),
        _item("Opposition alliance prepares for election campaign", SourceKind.NEWS, "MediaStack", 15),
        _item("Voter turnout record in election first phase", SourceKind.NEWS, "MediaStack", 10),
        _item("Election manifesto promises jobs and welfare", SourceKind.NEWS, "GNews", 5),
    ]
    videos = [
        _item("Election results analysis live", SourceKind.VIDEO, "YouTube: NDTV", 30),
        _item("Election commission dates announced explained", SourceKind.VIDEO, "YouTube: Aaj Tak", 12),
        _item("State election campaign rally highlights", SourceKind.VIDEO, "YouTube: ABP", 8),
    ]
    trends = [
        _item("election results", SourceKind.SEARCH_TREND, "Google Trends", 0),
        _item("election dates", SourceKind.SEARCH_TREND, "Google Trends", 0),
    ]
    return news, videos, trends
