"""Hand-curated fallback topics, time-sliced by hour of day and day of week.

The topic subset depends only on the clock bucket (morning / afternoon /
evening, weekday / weekend); ordering and synthetic metrics come from the
injected random source so tests can seed them.
"""

import random
from datetime import datetime
from urllib.parse import quote_plus

from ..models import SourceKind, TrendItem
from ..scoring import score_headline

SLICE_SIZE = 8

SEARCH_TOPICS = [
    "India vs England Test Series",
    "Indian Stock Market Hits All-Time High",
    "Delhi Air Pollution Crisis",
    "Bollywood Box Office Collections",
    "Modi Government Infrastructure Projects",
    "Indian Startup Unicorn Funding",
    "Ayodhya Tourism Boom",
    "ISRO Chandrayaan Mission Updates",
    "Indian Railway Expansion Plans",
    "Farmer Income Doubling Scheme",
    "Digital India Payment Revolution",
    "Indian IT Industry Growth",
    "Monsoon Weather Updates India",
    "IPL Tournament Auction Buzz",
    "Indian Economy Growth Rate",
    "Farmers Protest India News",
]

NEWS_TOPICS = [
    "Parliament session opens with heated debate on new bill",
    "RBI keeps repo rate unchanged amid inflation concerns",
    "Heavy rain alert issued for several states",
    "Sensex and Nifty close higher on banking rally",
    "Supreme Court hearing on electoral reform petition",
    "Petrol and diesel price revision announced",
    "Indian cricket team squad announced for upcoming series",
    "New metro line opens for commuters in Mumbai",
    "Government launches scheme for small businesses",
    "Board exam results declared for lakhs of students",
    "Festival season travel rush hits railway bookings",
    "Bollywood film crosses major box office milestone",
]

VIDEO_TOPICS = [
    "Breaking news live updates from Delhi",
    "Stock market today Sensex Nifty analysis",
    "Petrol diesel price today latest update",
    "Budget explained in one minute",
    "New government scheme yojana details",
    "Parliament debate highlights",
    "Election rally viral moment",
    "Salary hike news for employees",
    "Gold rate today market update",
    "Railway new train route announced",
]

SOCIAL_TOPICS = [
    "#BreakingNews",
    "#IndiaFirst",
    "Modi rally trending across states",
    "#Cricket India squad announcement",
    "Bollywood wedding viral photos",
    "#StockMarket record high",
    "Supreme Court verdict reaction",
    "#Monsoon heavy rain alert",
    "Kejriwal press conference live",
    "#IPL auction buzz",
    "Farmer protest major update",
    "Viral video of rescue operation",
]

FORUM_TOPICS = [
    # Tech & Startup
    "Indian startup raises funding in competitive market",
    "New IT policy changes affecting remote work culture",
    "Bangalore traffic situation sparks heated debate",
    "UPI payment system hits new milestone",
    "Tech workers discuss salary and career growth",
    # Politics & Society
    "State election results trigger political discussions",
    "Education policy implementation faces challenges",
    "Healthcare improvements in rural India discussed",
    "Women safety measures in major cities debated",
    "Environmental concerns raised by citizens",
    # Entertainment & Culture
    "Latest Bollywood movie review divides audience",
    "Regional cinema gaining national recognition",
    "Indian sports team performance analyzed",
    "Traditional festival celebrations shared",
    "Street food culture appreciation posts",
    # Economics & Business
    "Fuel price changes affect daily commuters",
    "Small business recovery stories shared",
    "Real estate trends in metropolitan areas",
    "Agricultural sector challenges discussed",
    "Digital payment adoption in rural areas",
    # Social Issues
    "Mental health awareness discussions trending",
    "Youth employment challenges highlighted",
    "Infrastructure development updates shared",
    "Climate change impact on monsoons",
    "Education accessibility initiatives discussed",
]

FORUM_COMMUNITIES = ["india", "IndianDankMemes", "indiauncensored", "IndiaNews", "IndiaSpeaks"]

WEEKEND_TERMS = ["bollywood", "food", "sports", "festival", "cinema", "cricket", "ipl"]
CULTURE_TERMS = ["entertainment", "culture", "celebration", "viral"]


def time_sliced(topics: list[str], now: datetime, size: int = SLICE_SIZE) -> list[str]:
    """Deterministic topic subset for the hour-of-day / day-of-week bucket."""
    hour = now.hour
    if 6 <= hour < 12:
        selected = [t for i, t in enumerate(topics) if i % 3 == 0 or i % 5 == 0]
    elif 12 <= hour < 18:
        selected = [t for i, t in enumerate(topics) if i % 3 == 1 or i % 4 == 0]
    else:
        selected = [t for i, t in enumerate(topics) if i % 3 == 2 or i % 7 == 0]

    if now.weekday() >= 5:
        leisure = [t for t in selected if any(w in t.lower() for w in WEEKEND_TERMS)]
        culture = [t for t in topics if any(w in t.lower() for w in CULTURE_TERMS)]
        selected = leisure + [t for t in culture if t not in leisure]

    if len(selected) < size:
        selected = topics[:size]
    return selected[:size]


def curated_topics(topics: list[str], now: datetime, rng: random.Random, size: int = SLICE_SIZE) -> list[str]:
    """Time-sliced subset in randomized order."""
    picked = list(time_sliced(topics, now, size))
    rng.shuffle(picked)
    return picked


def curated_items(topics, kind: SourceKind, source_name: str, now: datetime,
                  rng: random.Random, score_source: str = "India") -> list[TrendItem]:
    """Synthetic items scored with the headline scorer and flagged is_fallback."""
    return [
        TrendItem(
            title=topic,
            source_name=source_name,
            source_kind=kind,
            score=score_headline(topic, score_source),
            metrics={"traffic": "Rising"},
            published_at=now,
            is_fallback=True,
        )
        for topic in curated_topics(topics, now, rng)
    ]


def curated_forum_items(now: datetime, rng: random.Random) -> list[TrendItem]:
    """Forum fallback: synthetic engagement counters drawn from the random source."""
    items = []
    multiplier = 1 + (now.hour % 3) * 0.2
    for index, topic in enumerate(curated_topics(FORUM_TOPICS, now, rng)):
        community = FORUM_COMMUNITIES[index % len(FORUM_COMMUNITIES)]
        trending_bonus = 150 if index < 3 else 0
        upvotes = int((180 + rng.randrange(650) + trending_bonus) * multiplier)
        comments = int((20 + rng.randrange(100) + trending_bonus / 10) * multiplier)
        ratio = round(0.65 + rng.random() * 0.3, 2)
        items.append(TrendItem(
            title=topic,
            source_name=f"Reddit r/{community}",
            source_kind=SourceKind.SOCIAL_B,
            score=30 + (SLICE_SIZE - index) * 3 + rng.randrange(15),
            url=f"https://www.reddit.com/r/{community}/search/?q={quote_plus(topic)}",
            published_at=now,
            metrics={
                "upvotes": upvotes,
                "comments": comments,
                "upvote_ratio": ratio,
                "subreddit": community,
                "hours_ago": rng.randint(1, 12),
                "traffic": "High" if upvotes > 600 else "Medium" if upvotes > 350 else "Low",
                "engagement_rate": round(comments / upvotes, 2),
            },
            is_fallback=True,
        ))
    return items
