"""Data models for filter settings and extracted feed-item data."""

from dataclasses import dataclass, field
from enum import Enum


class Mode(str, Enum):
    ORIGINAL = "original"
    FILTERING_BASIC = "filtering-basic"
    FILTERING_EXTENDED = "filtering-extended"


class LanguageFilter(str, Enum):
    ALL = "all"
    TARGET_LANGUAGE = "target-language"  # primary-script (CJK) posts only
    OTHER_LANGUAGE = "other-language"


class ItemState(str, Enum):
    UNPROCESSED = "unprocessed"
    PENDING = "pending"
    DONE = "done"


ENGAGEMENT_BOUNDS = (
    "min_views",
    "max_views",
    "min_likes",
    "max_likes",
    "min_retweets",
    "max_retweets",
)


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the user's filter configuration.

    Engagement bounds use 0 as "no bound".
    """

    mode: Mode = Mode.FILTERING_BASIC
    hide_short_text: bool = False
    show_only_image: bool = False
    show_only_video: bool = False
    show_image_or_video: bool = False
    language_filter: LanguageFilter = LanguageFilter.ALL
    min_views: int = 0
    max_views: int = 0
    min_likes: int = 0
    max_likes: int = 0
    min_retweets: int = 0
    max_retweets: int = 0
    whitelist: frozenset[str] = frozenset()
    show_only_verified: bool = False

    def __post_init__(self):
        for name in ENGAGEMENT_BOUNDS:
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @property
    def media_filter_enabled(self) -> bool:
        return self.show_only_image or self.show_only_video or self.show_image_or_video


@dataclass(frozen=True)
class Engagement:
    views: int = 0  # 0 means unknown, not literally zero
    likes: int = 0
    retweets: int = 0


@dataclass(frozen=True)
class Record:
    """Attributes extracted from a single feed item."""

    text: str = ""
    has_image: bool = False
    has_video: bool = False
    is_primary_language: bool = False
    primary_char_count: int = 0
    secondary_word_count: int = 0
    engagement: Engagement = field(default_factory=Engagement)
