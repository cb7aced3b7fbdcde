"""Lexical virality scoring.

The base headline scorer is uncapped. Per-source scorers layer their own
bonuses on top of it and apply their own caps (the forum scorer caps at 50).
"""

import re

VIRAL_KEYWORDS = [
    "viral", "trending", "comeback", "surge", "trolled", "controversy",
    "backlash", "outrage", "sensation", "buzz", "breaking", "exclusive",
    "shocking", "massive", "epic", "incredible", "amazing", "stunning",
]

TIER1_SOURCES = [
    "timesofindia.indiatimes.com",
    "moneycontrol.com",
    "hindustantimes.com",
    "indianexpress.com",
    "ndtv.com",
    "economictimes.indiatimes.com",
    "business-standard.com",
    "livemint.com",
]

REGION_TOKENS = ["india", "indian"]

DEVANAGARI = re.compile(r"[ऀ-ॿ]")
LATIN = re.compile(r"[a-zA-Z]")

# ─────────────────────────────────────────────────────
# Trend-list (Social-A) lexicons
# ─────────────────────────────────────────────────────
BREAKING_TERMS = [
    "breaking", "urgent", "alert", "live", "now", "just in", "developing",
    "बड़ी खबर", "तत्काल", "अभी", "लाइव",
]
TREND_VIRAL_TERMS = [
    "viral", "trending", "shocking", "exposed", "scandal", "controversy",
    "वायरल", "ट्रेंडिंग",
]
SENSATIONAL_TERMS = [
    "massive", "huge", "major", "historic", "unprecedented", "dramatic",
    "explosive", "devastating", "stunning", "बड़ा", "भारी", "ऐतिहासिक",
]
POLITICAL_TERMS = [
    "modi", "rahul", "kejriwal", "parliament", "supreme court", "cbi", "ed",
    "मोदी", "राहुल", "केजरीवाल", "संसद",
]
CRIME_TERMS = [
    "arrest", "raid", "murder", "rape", "scam", "corruption", "fraud",
    "terror", "attack", "गिरफ्तार", "छापेमारी", "हत्या", "घोटाला",
]
ENTERTAINMENT_TERMS = [
    "bollywood", "cricket", "ipl", "wedding", "death", "accident",
    "बॉलीवुड", "क्रिकेट", "शादी", "मौत",
]
TREND_REGION_TERMS = ["india", "indian", "भारत", "hindi"]

# Broader lexicon: a candidate matching any of these is kept regardless of score.
VIRAL_LEXICON = sorted(set(
    BREAKING_TERMS + TREND_VIRAL_TERMS + SENSATIONAL_TERMS + POLITICAL_TERMS
    + CRIME_TERMS + ENTERTAINMENT_TERMS
    + [
        "तुरंत", "raid", "caught", "leaked", "exclusive", "bombshell",
        "एक्सक्लूसिव", "unbelievable", "चौंकाने वाला", "हैरान करने वाला",
        "farmer", "protest", "strike", "bandh", "riot", "violence",
        "सुप्रीम कोर्ट", "प्रदर्शन", "बलात्कार", "भ्रष्टाचार", "आतंक", "हमला",
        "दुर्घटना",
    ]
))

# ─────────────────────────────────────────────────────
# Forum (Social-B) lexicon and bands
# ─────────────────────────────────────────────────────
FORUM_TRENDING_TERMS = [
    "breaking", "viral", "trending", "happening now", "just happened",
    "watch", "see this", "can't believe", "shocking", "amazing", "india",
    "modi", "bollywood", "cricket", "election", "pandemic", "ai",
    "technology", "startup", "economy", "stock market",
]
UPVOTE_BANDS = [(5000, 25), (2000, 20), (1000, 15), (500, 10), (100, 5), (50, 2)]
COMMENT_BANDS = [(1000, 20), (500, 15), (200, 10), (100, 7), (50, 5), (20, 3)]
RATIO_BANDS = [(0.95, 15), (0.9, 10), (0.8, 7), (0.7, 5)]
ENGAGEMENT_BANDS = [(0.3, 10), (0.2, 7), (0.1, 5)]
COMMUNITY_BONUS = {"worldnews": 10, "india": 8, "unpopularopinion": 5}
FORUM_SCORE_CAP = 50


def _contains_any(text: str, terms) -> bool:
    return any(term in text for term in terms)


def _band(value, bands, strict: bool = False) -> int:
    for threshold, bonus in bands:
        if value > threshold if strict else value >= threshold:
            return bonus
    return 0


def score_headline(text: str, source: str = "") -> int:
    """Base virality score from viral keywords, tier-1 outlet, region token."""
    score = 0
    lower = (text or "").lower()

    for keyword in VIRAL_KEYWORDS:
        if keyword in lower:
            score += 10

    if source and any(tier1 in source for tier1 in TIER1_SOURCES):
        score += 10

    if _contains_any(lower, REGION_TOKENS):
        score += 5

    return score


def score_trend(text: str) -> int:
    """Trend-list score: headline score plus social-specific bonuses, floored at 0."""
    score = score_headline(text, "")
    lower = text.lower()

    if text.startswith("#"):
        score += 15
    if text.startswith("@"):
        score += 10

    if _contains_any(lower, BREAKING_TERMS):
        score += 35
    if _contains_any(lower, TREND_VIRAL_TERMS):
        score += 25
    if _contains_any(lower, SENSATIONAL_TERMS):
        score += 20
    if _contains_any(lower, POLITICAL_TERMS):
        score += 25
    if _contains_any(lower, CRIME_TERMS):
        score += 30
    if _contains_any(lower, ENTERTAINMENT_TERMS):
        score += 20
    if _contains_any(lower, TREND_REGION_TERMS):
        score += 15

    if len(text) < 10:
        score -= 5

    # Mixed scripts: proxy for cross-lingual reach
    if DEVANAGARI.search(text) and LATIN.search(text):
        score += 10

    return max(0, score)


def is_viral_trend_text(text: str) -> bool:
    return _contains_any(text.lower(), VIRAL_LEXICON)


def categorize_trend(text: str) -> str:
    lower = text.lower()
    if _contains_any(lower, ["breaking", "बड़ी खबर", "live", "लाइव"]):
        return "Breaking News"
    if _contains_any(lower, ["bollywood", "cricket", "बॉलीवुड", "क्रिकेट"]):
        return "Entertainment/Sports"
    if _contains_any(lower, ["modi", "parliament", "मोदी", "संसद"]):
        return "Politics"
    if _contains_any(lower, ["arrest", "scam", "गिरफ्तार", "घोटाला"]):
        return "Crime/Justice"
    return "General"


def trend_content_type(text: str) -> str:
    if text.startswith("#"):
        return "hashtag"
    if text.startswith("@"):
        return "mention"
    if is_viral_trend_text(text):
        return "viral_topic"
    return "trending_topic"


def engagement_rate(upvotes: int, comments: int) -> float:
    """Comments per upvote, rounded to 2 places."""
    if not upvotes:
        return 0.0
    return round(comments / upvotes, 2)


def traffic_level(upvotes: int, comments: int, upvote_ratio: float) -> str:
    if upvotes >= 2000 or comments >= 500:
        return "Viral"
    if upvotes >= 1000 or comments >= 200:
        return "Hot"
    if upvotes >= 500 or comments >= 100:
        return "Trending"
    if upvote_ratio >= 0.9:
        return "Rising"
    return "Active"


def is_trending_forum_post(title: str, upvotes: int, upvote_ratio: float, comments: int) -> bool:
    """Engagement gate for raw forum posts."""
    if not title or len(title) < 10 or len(title) > 300:
        return False

    if upvotes >= 500 or comments >= 100 or upvote_ratio >= 0.85:
        return True

    if upvotes >= 50 and upvote_ratio >= 0.7 and comments >= 10:
        return True

    has_trending_terms = _contains_any(title.lower(), FORUM_TRENDING_TERMS)
    return has_trending_terms and upvotes >= 20 and upvote_ratio >= 0.6


def score_forum_post(title: str, upvotes: int, comments: int, upvote_ratio: float, community: str) -> int:
    """Composite forum-post score, capped at 50."""
    score = score_headline(title, "Reddit")
    score += _band(upvotes, UPVOTE_BANDS)
    score += _band(comments, COMMENT_BANDS)
    score += _band(upvote_ratio, RATIO_BANDS)
    score += COMMUNITY_BONUS.get(community, 0)
    score += _band(comments / (upvotes or 1), ENGAGEMENT_BANDS, strict=True)
    return min(score, FORUM_SCORE_CAP)
