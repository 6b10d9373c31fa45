"""Decide whether a feed item should be hidden.

The decision is an ordered list of independent rules; an item is hidden
when any rule fires. Every rule is a pure function of (Record, Settings).
"""

from collections.abc import Callable

from .models import LanguageFilter, Record, Settings

# Short-text thresholds
MIN_PRIMARY_CHARS = 45
MIN_SECONDARY_WORDS = 30

Rule = Callable[[Record, Settings], bool]


def short_text_rule(record: Record, settings: Settings) -> bool:
    if not settings.hide_short_text:
        return False
    if record.is_primary_language:
        return record.primary_char_count < MIN_PRIMARY_CHARS
    return record.secondary_word_count < MIN_SECONDARY_WORDS


def language_rule(record: Record, settings: Settings) -> bool:
    if settings.language_filter == LanguageFilter.TARGET_LANGUAGE:
        return not record.is_primary_language
    if settings.language_filter == LanguageFilter.OTHER_LANGUAGE:
        return record.is_primary_language
    return False


def media_rule(record: Record, settings: Settings) -> bool:
    if not settings.media_filter_enabled:
        return False
    matched = (
        (settings.show_only_image and record.has_image)
        or (settings.show_only_video and record.has_video)
        or (settings.show_image_or_video and (record.has_image or record.has_video))
    )
    return not matched


def _out_of_range(value: int, minimum: int, maximum: int) -> bool:
    # 0 is "unknown" for the value and "unset" for the bounds
    if value <= 0:
        return False
    if minimum > 0 and value < minimum:
        return True
    if maximum > 0 and value > maximum:
        return True
    return False


def engagement_rule(record: Record, settings: Settings) -> bool:
    e = record.engagement
    return (
        _out_of_range(e.views, settings.min_views, settings.max_views)
        or _out_of_range(e.likes, settings.min_likes, settings.max_likes)
        or _out_of_range(e.retweets, settings.min_retweets, settings.max_retweets)
    )


RULES: tuple[tuple[str, Rule], ...] = (
    ("short_text", short_text_rule),
    ("language", language_rule),
    ("media", media_rule),
    ("engagement", engagement_rule),
)


def should_hide(record: Record, settings: Settings) -> bool:
    """Return True if any rule hides the item."""
    return any(rule(record, settings) for _, rule in RULES)


def matching_rules(record: Record, settings: Settings) -> list[str]:
    """Names of every rule that fires for this record, in evaluation order."""
    return [name for name, rule in RULES if rule(record, settings)]
