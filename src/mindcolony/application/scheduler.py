"""
Leitner-box scheduler.

Decides, for a single answer, which box a card moves to, how its
difficulty label changes and when it is next due.

This is a pure computation module with no I/O.
"""

from datetime import datetime

from mindcolony.application.utils.time import add_days
from mindcolony.domain.constants import (
    MAX_BOX_LEVEL,
    MIN_BOX_LEVEL,
    REVIEW_INTERVAL_DAYS,
)
from mindcolony.domain.models import Card, Difficulty, ScheduleResult


def clamp_box_level(level: int) -> int:
    return max(MIN_BOX_LEVEL, min(level, MAX_BOX_LEVEL))


def next_review_at(box_level: int, now: datetime) -> datetime:
    """
    Due time for a card that has just landed in `box_level`.

    Whole calendar days after `now`, at the same local time of day.
    """
    return add_days(now, REVIEW_INTERVAL_DAYS[clamp_box_level(box_level)])


def advance(card: Card, was_correct: bool, now: datetime) -> ScheduleResult:
    """
    Compute the card's next scheduling state after one answer.

    Correct answers promote the card one box (capped at 5), incorrect ones
    demote it one box (floored at 1). A miss always marks the card hard;
    a hit marks it easy from box 4 up and medium at box 3. Hits landing in
    boxes 1-2 keep the previous difficulty.

    Args:
        card: Snapshot of the card being answered.
        was_correct: Whether the answer was right.
        now: Time of the answer.

    Returns:
        ScheduleResult with the new box, difficulty and due time.
    """
    current = clamp_box_level(card.box_level)

    if was_correct:
        box_level = min(current + 1, MAX_BOX_LEVEL)
        if box_level >= 4:
            difficulty = Difficulty.EASY
        elif box_level == 3:
            difficulty = Difficulty.MEDIUM
        else:
            difficulty = card.difficulty
    else:
        box_level = max(current - 1, MIN_BOX_LEVEL)
        difficulty = Difficulty.HARD

    return ScheduleResult(
        box_level=box_level,
        difficulty=difficulty,
        next_review_at=next_review_at(box_level, now),
    )
