"""Stable identifiers for cards, decks, sessions and log runs."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """Generate a sortable, unique ID using ULID."""
    return f"{prefix}-{ULID()}"


def generate_card_id() -> str:
    return generate_id("card")


def generate_deck_id() -> str:
    return generate_id("deck")


def generate_session_id() -> str:
    return generate_id("session")
