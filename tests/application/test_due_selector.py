"""Tests for due-set selection."""

from datetime import datetime, timedelta, timezone

import pytest

from mindcolony.application.due_selector import (
    DueSetSelector,
    cards_due_today,
    select_due,
)
from mindcolony.application.utils.time import end_of_day
from mindcolony.domain.models import AllDue, ByBox, ByDeck

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=timezone.utc)
END_OF_TODAY = datetime(2026, 3, 10, 23, 59, 59, 999000, tzinfo=timezone.utc)


def test_end_of_day():
    assert end_of_day(NOW) == END_OF_TODAY


class TestAllDue:
    def test_includes_everything_due_by_end_of_day(self, make_card):
        past = make_card(next_review_at=NOW - timedelta(days=3))
        now = make_card(next_review_at=NOW)
        tonight = make_card(next_review_at=END_OF_TODAY)

        assert cards_due_today([past, now, tonight], NOW) == [past, now, tonight]

    def test_excludes_cards_due_after_today(self, make_card):
        tomorrow = make_card(next_review_at=END_OF_TODAY + timedelta(milliseconds=1))
        next_week = make_card(next_review_at=NOW + timedelta(days=7))

        assert cards_due_today([tomorrow, next_week], NOW) == []

    def test_boundary_does_not_depend_on_time_of_day(self, make_card):
        tonight = make_card(next_review_at=END_OF_TODAY)
        early_morning = NOW.replace(hour=0, minute=0)

        assert select_due([tonight], AllDue(), early_morning) == [tonight]


class TestByBox:
    def test_ignores_due_time(self, make_card):
        far_future = make_card(box_level=3, next_review_at=NOW + timedelta(days=30))
        other_box = make_card(box_level=2)

        assert select_due([far_future, other_box], ByBox(3), NOW) == [far_future]


class TestByDeck:
    def test_uses_strict_now(self, make_card):
        due_now = make_card(deck_id="d1", next_review_at=NOW)
        later_today = make_card(deck_id="d1", next_review_at=NOW + timedelta(hours=2))

        assert select_due([due_now, later_today], ByDeck("d1"), NOW) == [due_now]
        # The same card is part of the end-of-day query
        assert later_today in select_due([due_now, later_today], AllDue(), NOW)

    def test_filters_other_decks(self, make_card):
        mine = make_card(deck_id="d1")
        theirs = make_card(deck_id="d2")

        assert select_due([mine, theirs], ByDeck("d1"), NOW) == [mine]


def test_unknown_scope_raises(make_card):
    with pytest.raises(TypeError):
        select_due([make_card()], "all", NOW)  # type: ignore[arg-type]


class TestDueSetSelector:
    def test_keeps_insertion_order(self, store, clock, make_card, make_deck):
        cards = [
            make_card(id=f"c{i}", next_review_at=NOW - timedelta(hours=i)) for i in range(5)
        ]
        store.import_records([make_deck("deck-1")], cards)

        selector = DueSetSelector(store, clock=clock)
        assert [c.id for c in selector.list_due_cards(AllDue())] == [
            "c0",
            "c1",
            "c2",
            "c3",
            "c4",
        ]

    def test_defaults_to_all_due(self, store, clock, deck):
        store.add_card(deck.id, "Hola", "Hello")
        selector = DueSetSelector(store, clock=clock)

        assert len(selector.list_due_cards()) == 1
        assert selector.count_due_today() == 1

    def test_empty_store_returns_empty_list(self, store, clock):
        selector = DueSetSelector(store, clock=clock)
        assert selector.list_due_cards(ByDeck("nope")) == []
