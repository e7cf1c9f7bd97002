"""Starter decks and cards for a fresh store."""

from datetime import datetime

from mindcolony.application.store import CardStore
from mindcolony.domain.models import Card, Deck, Difficulty

SAMPLE_DECKS = [
    ("deck-1", "Spanish Basics", "Essential Spanish vocabulary", "#F59E0B"),
    ("deck-2", "JavaScript Fundamentals", "Core JS concepts", "#3B82F6"),
]

# (id, deck, front, back, box, difficulty, reviews, correct, hints, tags)
SAMPLE_CARDS = [
    ("card-1", "deck-1", "Hola", "Hello", 1, Difficulty.NEW, 0, 0,
     ["Common greeting", "Used any time of day"], ["greetings"]),
    ("card-2", "deck-1", "Gracias", "Thank you", 1, Difficulty.NEW, 0, 0,
     ["Express gratitude", "Very common word"], ["polite"]),
    ("card-3", "deck-1", "Buenos días", "Good morning", 2, Difficulty.HARD, 3, 1,
     ["Morning greeting", "Used until noon"], ["greetings", "time"]),
    ("card-4", "deck-1", "Por favor", "Please", 3, Difficulty.MEDIUM, 5, 4,
     ["Polite request"], ["polite"]),
    ("card-5", "deck-1", "Adiós", "Goodbye", 4, Difficulty.EASY, 8, 7,
     ["Farewell expression"], ["greetings"]),
    ("card-6", "deck-2", "What is a closure?",
     "A function that has access to variables from its outer scope",
     1, Difficulty.NEW, 0, 0,
     ["Think about scope", "Functions remember their environment"], ["functions", "scope"]),
    ("card-7", "deck-2", "What does === mean?", "Strict equality (checks both value and type)",
     2, Difficulty.HARD, 2, 1, ["Compare with ==", "Type coercion"], ["operators"]),
    ("card-8", "deck-2", "What is hoisting?",
     "JavaScript's behavior of moving declarations to the top of their scope",
     3, Difficulty.MEDIUM, 4, 3,
     ["var vs let/const", "Declaration vs initialization"], ["scope", "variables"]),
    ("card-9", "deck-2", "What is the event loop?",
     "Mechanism that handles async operations by checking the call stack and task queue",
     1, Difficulty.NEW, 0, 0, ["Async JavaScript", "Single-threaded"], ["async"]),
]  # fmt: skip


def sample_records(now: datetime) -> tuple[list[Deck], list[Card]]:
    decks = [
        Deck(id=i, name=name, description=desc, color=color, created_at=now)
        for i, name, desc, color in SAMPLE_DECKS
    ]
    cards = [
        Card(
            id=cid,
            deck_id=deck_id,
            front=front,
            back=back,
            box_level=box,
            difficulty=difficulty,
            review_count=reviews,
            correct_count=correct,
            hints=list(hints),
            tags=list(tags),
            next_review_at=now,
            created_at=now,
        )
        for cid, deck_id, front, back, box, difficulty, reviews, correct, hints, tags in (
            SAMPLE_CARDS
        )
    ]
    return decks, cards


def seed_store(store: CardStore, now: datetime) -> int:
    """
    Load the sample decks into an empty store.

    Returns:
        Number of cards inserted (0 if the store already has decks).
    """
    if store.decks:
        return 0
    decks, cards = sample_records(now)
    return store.import_records(decks, cards)
