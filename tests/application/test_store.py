"""Tests for the card store."""

import logging
from datetime import timedelta

import pytest

from mindcolony.application.scheduler import advance
from mindcolony.domain.constants import ALL_DECKS
from mindcolony.domain.models import Difficulty
from mindcolony.domain.ports import SnapshotRepository, StoreSnapshot


def _live_count(store, deck_id):
    return sum(1 for c in store.cards if c.deck_id == deck_id)


class TestCards:
    def test_add_card_defaults(self, store, deck, clock):
        card = store.add_card(deck.id, "Hola", "Hello", hints=["Greeting", "  "], tags=["a", "a"])

        assert card.box_level == 1
        assert card.difficulty == Difficulty.NEW
        assert card.review_count == 0
        assert card.correct_count == 0
        assert card.next_review_at == clock()
        assert card.hints == ["Greeting"]
        assert card.tags == ["a"]
        assert card.id.startswith("card-")
        assert store.get_deck(deck.id).card_count == 1

    def test_add_card_unknown_deck_is_noop(self, store, repo):
        assert store.add_card("deck-missing", "Q", "A") is None
        assert store.cards == ()
        assert repo.save_count == 0

    def test_delete_card_decrements_deck(self, store, deck):
        a = store.add_card(deck.id, "A", "1")
        store.add_card(deck.id, "B", "2")

        assert store.delete_card(a.id) is True
        assert store.get_deck(deck.id).card_count == 1
        assert store.get_card(a.id) is None

    def test_delete_unknown_card(self, store, deck):
        store.add_card(deck.id, "A", "1")
        assert store.delete_card("card-missing") is False
        assert store.get_deck(deck.id).card_count == 1

    def test_update_card_content(self, store, deck):
        card = store.add_card(deck.id, "A", "1")
        updated = store.update_card(card.id, front="B", tags=["x", "x", "y"])

        assert updated.front == "B"
        assert updated.tags == ["x", "y"]
        assert updated.id == card.id
        assert store.get_card(card.id) == updated

    def test_update_card_rejects_scheduling_fields(self, store, deck):
        card = store.add_card(deck.id, "A", "1")
        with pytest.raises(ValueError):
            store.update_card(card.id, box_level=5)

    def test_moving_card_between_decks_keeps_counts(self, store, deck):
        other = store.add_deck("Other")
        card = store.add_card(deck.id, "A", "1")

        store.update_card(card.id, deck_id=other.id)

        assert store.get_deck(deck.id).card_count == 0
        assert store.get_deck(other.id).card_count == 1

    def test_moving_card_to_unknown_deck_is_noop(self, store, deck):
        card = store.add_card(deck.id, "A", "1")
        assert store.update_card(card.id, deck_id="deck-missing") is None
        assert store.get_card(card.id).deck_id == deck.id

    def test_move_card_to_box_clamps(self, store, deck):
        card = store.add_card(deck.id, "A", "1")
        assert store.move_card_to_box(card.id, 9).box_level == 5
        assert store.move_card_to_box(card.id, 0).box_level == 1
        assert store.move_card_to_box("card-missing", 3) is None

    def test_card_count_matches_live_cards(self, store, deck):
        other = store.add_deck("Other")
        ids = [store.add_card(deck.id, f"Q{i}", "A").id for i in range(4)]
        store.add_card(other.id, "Q", "A")
        store.delete_card(ids[0])
        store.update_card(ids[1], deck_id=other.id)
        store.delete_card(ids[0])  # already gone

        for d in store.decks:
            assert d.card_count == _live_count(store, d.id)


class TestDecks:
    def test_delete_deck_cascades_only_its_cards(self, store, deck):
        other = store.add_deck("Other")
        store.add_card(deck.id, "A", "1")
        store.add_card(deck.id, "B", "2")
        keep = store.add_card(other.id, "C", "3")

        assert store.delete_deck(deck.id) is True
        assert [c.id for c in store.cards] == [keep.id]
        assert store.get_deck(deck.id) is None
        assert store.get_deck(other.id).card_count == 1

    def test_delete_unknown_deck(self, store, deck):
        assert store.delete_deck("deck-missing") is False
        assert len(store.decks) == 1

    def test_update_deck(self, store, deck):
        assert store.update_deck(deck.id, name="Renamed").name == "Renamed"
        assert store.update_deck("deck-missing", name="x") is None
        with pytest.raises(ValueError):
            store.update_deck(deck.id, card_count=10)


class TestReviews:
    def test_record_review_updates_card_session_and_daily(self, store, deck, clock):
        card = store.add_card(deck.id, "A", "1")
        store.open_session()

        updated = store.record_review(
            card.id, lambda c: advance(c, True, clock()), True, hints_used=2, elapsed_ms=1500
        )

        assert updated.box_level == 2
        assert updated.review_count == 1
        assert updated.correct_count == 1
        assert updated.next_review_at == clock() + timedelta(days=3)

        session = store.current_session
        assert (session.cards_reviewed, session.correct_answers, session.hints_used) == (1, 1, 2)

        (daily,) = store.daily_stats
        assert daily.date == "2026-03-10"
        assert daily.cards_reviewed == 1
        assert daily.time_spent_ms == 1500
        assert daily.streak == 1

    def test_record_review_unknown_card(self, store, repo, clock):
        result = store.record_review("card-missing", lambda c: advance(c, True, clock()), True)
        assert result is None
        assert repo.save_count == 0

    def test_incorrect_review_only_counts_review(self, store, deck, clock):
        card = store.add_card(deck.id, "A", "1")
        updated = store.record_review(card.id, lambda c: advance(c, False, clock()), False)

        assert updated.review_count == 1
        assert updated.correct_count == 0
        assert store.current_session is None

    def test_streak_counts_consecutive_days(self, store, deck, clock):
        card = store.add_card(deck.id, "A", "1")

        def answer():
            store.record_review(card.id, lambda c: advance(c, True, clock()), True, now=clock())

        answer()
        answer()
        clock.advance(days=1)
        answer()
        clock.advance(days=2)
        answer()

        assert [(s.date, s.cards_reviewed, s.streak) for s in store.daily_stats] == [
            ("2026-03-10", 2, 1),
            ("2026-03-11", 1, 2),
            ("2026-03-13", 1, 1),
        ]


class TestSessions:
    def test_finalize_session(self, store, deck, clock):
        store.open_session(deck.id)
        clock.advance(minutes=5)

        ended = store.finalize_session()

        assert ended.ended_at == clock()
        assert store.current_session is None
        assert store.sessions == (ended,)
        assert store.get_deck(deck.id).last_studied == clock()

    def test_finalize_without_session(self, store):
        assert store.finalize_session() is None

    def test_abandon_session_skips_history(self, store):
        opened = store.open_session()
        assert opened.deck_id == ALL_DECKS
        assert store.abandon_session() == opened
        assert store.sessions == ()
        assert store.current_session is None

    def test_reset_session_counters(self, store, deck, clock):
        card = store.add_card(deck.id, "A", "1")
        store.open_session()
        store.record_review(card.id, lambda c: advance(c, True, clock()), True, hints_used=1)

        reset = store.reset_session_counters()

        assert (reset.cards_reviewed, reset.correct_answers, reset.hints_used) == (0, 0, 0)


class _FailingRepository(SnapshotRepository):
    def load(self) -> StoreSnapshot | None:
        return None

    def save(self, snapshot: StoreSnapshot) -> None:
        raise OSError("disk full")


def test_persistence_failure_is_logged_not_raised(clock, caplog):
    from mindcolony.application.store import CardStore

    store = CardStore(repository=_FailingRepository(), clock=clock)
    with caplog.at_level(logging.WARNING):
        deck = store.add_deck("Deck")

    assert store.get_deck(deck.id) == deck
    assert "disk full" in caplog.text


def test_each_commit_is_persisted(store, repo, deck):
    store.add_card(deck.id, "A", "1")
    assert repo.save_count == 2
    assert repo.load() is store.snapshot()


def test_import_records_recounts_decks(store, make_card, make_deck):
    inserted = store.import_records(
        [make_deck("deck-1"), make_deck("deck-2")],
        [make_card(deck_id="deck-1"), make_card(deck_id="deck-1"), make_card(deck_id="x")],
    )

    assert inserted == 2
    assert store.get_deck("deck-1").card_count == 2
    assert store.get_deck("deck-2").card_count == 0


class _RecordingRepository(SnapshotRepository):
    def __init__(self):
        self.store = None
        self.saved = []
        self.lock_held = []

    def load(self) -> StoreSnapshot | None:
        return None

    def save(self, snapshot: StoreSnapshot) -> None:
        self.lock_held.append(self.store._lock.locked())
        self.saved.append(snapshot)


def test_saves_happen_under_lock_in_commit_order(clock):
    from mindcolony.application.store import CardStore

    repo = _RecordingRepository()
    store = CardStore(repository=repo, clock=clock)
    repo.store = store

    deck = store.add_deck("Deck")
    store.add_card(deck.id, "A", "1")
    store.add_card(deck.id, "B", "2")

    assert repo.lock_held == [True, True, True]
    assert [len(s.cards) for s in repo.saved] == [0, 1, 2]
    assert repo.saved[-1] is store.snapshot()


def test_open_session_scope_defaults_to_deck(store):
    assert store.open_session("deck-9").scope == "deck-9"
    store.abandon_session()
    assert store.open_session(ALL_DECKS, scope="box:2").scope == "box:2"
