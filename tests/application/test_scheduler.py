"""Tests for the Leitner-box scheduler."""

import time
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from mindcolony.application.scheduler import advance, clamp_box_level, next_review_at
from mindcolony.application.utils.time import add_days
from mindcolony.domain.models import Difficulty

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)


class TestBoxTransitions:
    @pytest.mark.parametrize("box", [1, 2, 3, 4, 5])
    @pytest.mark.parametrize("correct", [True, False])
    def test_box_stays_in_range(self, make_card, box, correct):
        result = advance(make_card(box_level=box), correct, NOW)
        assert 1 <= result.box_level <= 5

    def test_correct_promotes_one_box(self, make_card):
        assert advance(make_card(box_level=2), True, NOW).box_level == 3

    def test_incorrect_demotes_one_box(self, make_card):
        assert advance(make_card(box_level=4), False, NOW).box_level == 3

    def test_box_five_correct_stays_five(self, make_card):
        assert advance(make_card(box_level=5), True, NOW).box_level == 5

    def test_box_one_incorrect_stays_one(self, make_card):
        assert advance(make_card(box_level=1), False, NOW).box_level == 1

    def test_repeated_advance_never_leaves_range(self, make_card):
        card = make_card(box_level=5)
        for correct in [True] * 4 + [False] * 8 + [True] * 8:
            result = advance(card, correct, NOW)
            assert 1 <= result.box_level <= 5
            card = replace(card, box_level=result.box_level, difficulty=result.difficulty)
        assert card.box_level == 5

    def test_out_of_range_input_is_clamped(self, make_card):
        assert advance(make_card(box_level=9), True, NOW).box_level == 5
        assert advance(make_card(box_level=0), False, NOW).box_level == 1


class TestDifficulty:
    @pytest.mark.parametrize("difficulty", list(Difficulty))
    @pytest.mark.parametrize("box", [1, 3, 5])
    def test_incorrect_always_hard(self, make_card, difficulty, box):
        result = advance(make_card(box_level=box, difficulty=difficulty), False, NOW)
        assert result.difficulty == Difficulty.HARD

    @pytest.mark.parametrize("box", [3, 4])
    def test_correct_reaching_four_or_more_is_easy(self, make_card, box):
        result = advance(make_card(box_level=box, difficulty=Difficulty.HARD), True, NOW)
        assert result.difficulty == Difficulty.EASY

    def test_correct_reaching_three_is_medium(self, make_card):
        result = advance(make_card(box_level=2, difficulty=Difficulty.HARD), True, NOW)
        assert result.difficulty == Difficulty.MEDIUM

    @pytest.mark.parametrize("difficulty", [Difficulty.NEW, Difficulty.HARD])
    def test_correct_into_box_two_keeps_prior_difficulty(self, make_card, difficulty):
        result = advance(make_card(box_level=1, difficulty=difficulty), True, NOW)
        assert result.box_level == 2
        assert result.difficulty == difficulty


class TestNextReview:
    def test_box_three_medium_correct_lands_in_box_four_interval(self, make_card):
        card = make_card(box_level=3, difficulty=Difficulty.MEDIUM)
        result = advance(card, True, NOW)

        assert result.box_level == 4
        assert result.difficulty == Difficulty.EASY
        assert result.next_review_at == NOW + timedelta(days=14)

    def test_box_one_incorrect_due_tomorrow(self, make_card):
        result = advance(make_card(box_level=1), False, NOW)

        assert result.box_level == 1
        assert result.difficulty == Difficulty.HARD
        assert result.next_review_at == NOW + timedelta(days=1)

    @pytest.mark.parametrize(
        "box,days", [(1, 1), (2, 3), (3, 7), (4, 14), (5, 30)]
    )
    def test_interval_table(self, box, days):
        assert next_review_at(box, NOW) == NOW + timedelta(days=days)

    def test_advance_does_not_mutate_card(self, make_card):
        card = make_card(box_level=2)
        advance(card, True, NOW)
        assert card.box_level == 2
        assert card.review_count == 0


def test_clamp_box_level():
    assert clamp_box_level(-3) == 1
    assert clamp_box_level(3) == 3
    assert clamp_box_level(12) == 5


class TestCalendarDays:
    def test_zone_aware_review_keeps_wall_time_across_dst(self, make_card):
        berlin = ZoneInfo("Europe/Berlin")
        now = datetime(2026, 3, 20, 14, 30, tzinfo=berlin)

        result = advance(make_card(box_level=3, next_review_at=now), True, now)

        due = result.next_review_at
        assert (due.date(), due.hour, due.minute) == (date(2026, 4, 3), 14, 30)
        assert now.utcoffset() == timedelta(hours=1)
        assert due.utcoffset() == timedelta(hours=2)

    def test_fixed_offset_in_system_zone_is_resolved_on_target_day(self, berlin_system_zone):
        now = datetime(2026, 3, 20, 14, 30).astimezone()
        assert now.utcoffset() == timedelta(hours=1)

        due = add_days(now, 14)

        assert (due.date(), due.hour, due.minute) == (date(2026, 4, 3), 14, 30)
        assert due.utcoffset() == timedelta(hours=2)

    def test_utc_moment_moves_by_exact_days(self):
        assert add_days(NOW, 30) - NOW == timedelta(days=30)


@pytest.fixture
def berlin_system_zone(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", "Europe/Berlin")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
