"""Key resolution, paths, constants, and source options."""

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path

# ─────────────────────────────────────────────────────
# App home directory, holds config and logs
# ─────────────────────────────────────────────────────
APP_DIR = Path.home() / ".trendtracker"
LOGS_DIR = APP_DIR / "logs"
CONFIG_FILE = APP_DIR / "config.json"

# ─────────────────────────────────────────────────────
# Fetch constants
# ─────────────────────────────────────────────────────
NEWS_WINDOW_HOURS = 72
VIDEO_WINDOW_HOURS = 12
FORUM_WINDOW_HOURS = 12

BROWSER_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
BOT_UA = "trendtracker/1.0 (viral news detection)"

STOPWORDS = {
    "the", "is", "at", "which", "on", "a", "an", "and", "or", "but", "in",
    "with", "to", "for", "of", "as", "by", "from", "that", "this", "these",
    "those", "it", "its", "will", "would", "could", "should", "have", "has",
    "been", "were", "was", "after", "over", "into", "about", "their", "them",
}

# Values shipped in sample .env files; treated as "not configured".
_PLACEHOLDER = re.compile(r"^your_.*_here$", re.I)


# ─────────────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────────────
def extract_keywords(text: str, limit: int = 5) -> list[str]:
    """Unique lowercase words longer than 3 chars, stopwords removed, in order."""
    if not text:
        return []
    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    seen = []
    for w in words:
        if len(w) > 3 and w not in STOPWORDS and w not in seen:
            seen.append(w)
    return seen[:limit]


# ─────────────────────────────────────────────────────
# API key resolution (env, then config.json)
# ─────────────────────────────────────────────────────
def _get_key(name: str) -> str:
    """Resolve an API key: environment variable first, then config.json."""
    val = os.environ.get(name)
    if val and not _PLACEHOLDER.match(val):
        return val
    if CONFIG_FILE.exists():
        try:
            cfg = json.loads(CONFIG_FILE.read_text())
            val = cfg.get(name)
            if val and not _PLACEHOLDER.match(val):
                return val
        except Exception:
            pass
    return ""


@dataclass(frozen=True)
class Credentials:
    """Process-wide credential set. Empty string means not configured."""
    gnews: str = ""
    mediastack: str = ""
    youtube: str = ""
    twitter_bearer: str = ""
    anthropic: str = ""


def load_credentials() -> Credentials:
    return Credentials(
        gnews=_get_key("GNEWS_API_KEY"),
        mediastack=_get_key("MEDIASTACK_API_KEY"),
        youtube=_get_key("YOUTUBE_API_KEY"),
        twitter_bearer=_get_key("TWITTER_BEARER_TOKEN"),
        anthropic=_get_key("ANTHROPIC_API_KEY"),
    )


def get_anthropic_client(api_key: str = ""):
    """Create an Anthropic client, or None when no key is configured."""
    import anthropic

    api_key = api_key or _get_key("ANTHROPIC_API_KEY")
    if api_key:
        return anthropic.Anthropic(api_key=api_key)

    return None


def load_config() -> dict:
    """Load the full config.json, including sources and cross_match."""
    if CONFIG_FILE.exists():
        try:
            return json.loads(CONFIG_FILE.read_text())
        except Exception:
            pass
    return {}


def source_options(config: dict, name: str) -> dict:
    """Per-source options block, e.g. config["sources"]["reddit"]."""
    return (config.get("sources") or {}).get(name) or {}
