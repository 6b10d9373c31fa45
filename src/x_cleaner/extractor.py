"""Extract Records from feed-item nodes.

An item article carries three regions the filters care about:
    text        [data-testid="tweetText"]
    media       [data-testid="tweetPhoto"], [data-testid="videoPlayer"], <video>
    action bar  [role="group"] with one [role="button"] per counter

Extraction never mutates the node. Missing regions yield empty values;
counter parsing is best-effort and falls back to 0 (unknown).
"""

import logging
import math
import re
from decimal import Decimal

from bs4 import NavigableString, Tag

from .config import Selectors
from .models import Engagement, Record

logger = logging.getLogger(__name__)

# CJK Unified Ideographs
PRIMARY_SCRIPT = re.compile(r"[\u4e00-\u9fff]")

PRIMARY_MIN_CHARS = 10  # strictly more than this is always primary
PRIMARY_MIN_RATIO = 0.4

_URL = re.compile(r"https?://\S+")
_MENTION = re.compile(r"@\w+")
_COUNT = re.compile(r"(\d[\d,]*(?:\.\d+)?)([KMB]?)", re.IGNORECASE)

_MULTIPLIERS = {"": 1, "K": 1_000, "M": 1_000_000, "B": 1_000_000_000}

# Accessible-label keywords per counter, checked in this order. Labels are
# localized by the host page ("1,234 views. View post analytics").
VIEW_KEYWORDS = ("view", "浏览")
LIKE_KEYWORDS = ("like", "喜欢")
RETWEET_KEYWORDS = ("repost", "retweet", "转帖")


def extract_record(node: Tag, selectors: Selectors = Selectors()) -> Record:
    """Extract the filterable attributes of one feed item."""
    text_node = node.select_one(selectors.text)
    text = inner_text(text_node) if text_node is not None else ""

    has_video = (
        node.select_one(selectors.video_player) is not None
        or node.select_one(selectors.video) is not None
    )
    has_image = node.select_one(selectors.photo) is not None and not has_video

    primary_count = count_primary_chars(text)

    return Record(
        text=text,
        has_image=has_image,
        has_video=has_video,
        is_primary_language=is_primary_language(text, primary_count),
        primary_char_count=primary_count,
        secondary_word_count=count_secondary_words(text),
        engagement=extract_engagement(node, selectors),
    )


def inner_text(node: Tag) -> str:
    """Text content with <br> as a line break, as the page renders it.

    Only plain text strings count; comments and script contents are skipped.
    """
    parts = []
    for child in node.descendants:
        if isinstance(child, Tag):
            if child.name == "br":
                parts.append("\n")
        elif type(child) is NavigableString:
            parts.append(str(child))
    return "".join(parts)


def count_primary_chars(text: str) -> int:
    return len(PRIMARY_SCRIPT.findall(text))


def is_primary_language(text: str, primary_count: int | None = None) -> bool:
    if primary_count is None:
        primary_count = count_primary_chars(text)
    if primary_count > PRIMARY_MIN_CHARS:
        return True
    return primary_count > 0 and primary_count / len(text) > PRIMARY_MIN_RATIO


def count_secondary_words(text: str) -> int:
    """Count whitespace-separated words with no primary-script characters.

    URLs and @mentions are not words.
    """
    stripped = _MENTION.sub("", _URL.sub("", text))
    return sum(1 for word in stripped.split() if not PRIMARY_SCRIPT.search(word))


def extract_engagement(node: Tag, selectors: Selectors = Selectors()) -> Engagement:
    """Read view/like/repost counters from the item's action bar.

    Any failure while scanning leaves every counter at 0.
    """
    views = likes = retweets = 0
    try:
        for button in node.select(selectors.action_buttons):
            label = (button.get("aria-label") or "").lower()
            text = button.get_text()

            if any(k in label for k in VIEW_KEYWORDS):
                views = parse_count(text)
            elif any(k in label for k in LIKE_KEYWORDS):
                likes = parse_count(text)
            elif any(k in label for k in RETWEET_KEYWORDS):
                retweets = parse_count(text)
    except Exception as e:
        logger.debug("Engagement scan failed, treating counters as unknown: %s", e)
        return Engagement()

    return Engagement(views=views, likes=likes, retweets=retweets)


def parse_count(text: str | None) -> int:
    """Parse a displayed counter such as "1.2K", "3,400" or "2M".

    Returns 0 when nothing numeric is found.
    """
    if not text:
        return 0

    match = _COUNT.search(text.strip())
    if not match:
        return 0

    number = Decimal(match.group(1).replace(",", ""))
    return math.floor(number * _MULTIPLIERS[match.group(2).upper()])
