"""Tests for the filter rules."""

from dataclasses import replace

import pytest

from x_cleaner.filters import (
    language_rule,
    matching_rules,
    media_rule,
    should_hide,
    short_text_rule,
)
from x_cleaner.models import Engagement, LanguageFilter, Record, Settings


def _chinese(count: int) -> Record:
    return Record(text="中" * count, is_primary_language=True, primary_char_count=count)


class TestShortText:
    def test_disabled_by_default(self):
        assert not short_text_rule(_chinese(1), Settings())

    def test_primary_language_below_threshold(self):
        settings = Settings(hide_short_text=True)
        assert should_hide(_chinese(44), settings)

    def test_primary_language_at_threshold(self):
        settings = Settings(hide_short_text=True)
        assert not should_hide(_chinese(45), settings)

    def test_secondary_language_word_threshold(self):
        settings = Settings(hide_short_text=True)
        assert short_text_rule(Record(secondary_word_count=29), settings)
        assert not short_text_rule(Record(secondary_word_count=30), settings)


class TestLanguage:
    def test_all_is_noop(self):
        assert not language_rule(_chinese(50), Settings())
        assert not language_rule(Record(), Settings())

    def test_target_language_hides_other(self):
        settings = Settings(language_filter=LanguageFilter.TARGET_LANGUAGE)
        assert language_rule(Record(), settings)
        assert not language_rule(_chinese(50), settings)

    def test_other_language_hides_primary(self):
        settings = Settings(language_filter=LanguageFilter.OTHER_LANGUAGE)
        assert language_rule(_chinese(50), settings)
        assert not language_rule(Record(), settings)


class TestMedia:
    image = Record(has_image=True)
    video = Record(has_video=True)
    plain = Record()

    def test_no_toggle_is_noop(self):
        for record in (self.image, self.video, self.plain):
            assert not media_rule(record, Settings())

    def test_only_video_hides_image(self):
        settings = Settings(show_only_video=True)
        assert should_hide(self.image, settings)
        assert not media_rule(self.video, settings)

    def test_only_image(self):
        settings = Settings(show_only_image=True)
        assert not media_rule(self.image, settings)
        assert media_rule(self.video, settings)
        assert media_rule(self.plain, settings)

    def test_image_or_video(self):
        settings = Settings(show_image_or_video=True)
        assert not media_rule(self.image, settings)
        assert not media_rule(self.video, settings)
        assert media_rule(self.plain, settings)

    def test_toggles_combine_with_or(self):
        settings = Settings(show_only_image=True, show_only_video=True)
        assert not media_rule(self.image, settings)
        assert not media_rule(self.video, settings)
        assert media_rule(self.plain, settings)


class TestEngagement:
    def _likes(self, likes: int) -> Record:
        return Record(engagement=Engagement(likes=likes))

    def test_unknown_metric_never_triggers(self):
        assert not should_hide(self._likes(0), Settings(min_likes=100))

    def test_below_min(self):
        assert should_hide(self._likes(50), Settings(min_likes=100))

    def test_above_min(self):
        assert not should_hide(self._likes(150), Settings(min_likes=100))

    def test_above_max(self):
        assert should_hide(self._likes(150), Settings(max_likes=100))

    @pytest.mark.parametrize(
        "field, engagement",
        [
            ("min_views", Engagement(views=10)),
            ("min_retweets", Engagement(retweets=10)),
        ],
    )
    def test_other_metrics_below_min(self, field, engagement):
        settings = Settings(**{field: 100})
        assert should_hide(Record(engagement=engagement), settings)

    def test_max_views(self):
        record = Record(engagement=Engagement(views=1_000_000))
        assert should_hide(record, Settings(max_views=10_000))
        assert not should_hide(record, Settings(max_views=2_000_000))

    def test_bounds_only_apply_to_their_metric(self):
        record = Record(engagement=Engagement(views=10, likes=500))
        assert not should_hide(record, Settings(min_likes=100, max_retweets=5))


class TestDecision:
    def test_default_settings_show_everything(self, long_record):
        assert not should_hide(long_record, Settings())
        assert not should_hide(Record(), Settings())

    def test_deterministic(self, long_record):
        settings = Settings(hide_short_text=True, min_likes=200, show_only_image=True)
        first = should_hide(long_record, settings)
        assert should_hide(long_record, settings) == first
        assert matching_rules(long_record, settings) == matching_rules(long_record, settings)

    def test_matching_rules_in_order(self):
        record = Record(
            secondary_word_count=2,
            engagement=Engagement(likes=3),
        )
        settings = Settings(
            hide_short_text=True,
            language_filter=LanguageFilter.TARGET_LANGUAGE,
            show_only_video=True,
            min_likes=10,
        )
        assert matching_rules(record, settings) == [
            "short_text",
            "language",
            "media",
            "engagement",
        ]

    def test_extended_fields_do_not_affect_decision(self, long_record):
        base = Settings()
        extended = replace(base, whitelist=frozenset({"someone"}), show_only_verified=True)
        assert should_hide(long_record, extended) == should_hide(long_record, base)
