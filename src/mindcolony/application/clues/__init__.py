# Application Clues Package
from .generators import GENERATORS, ClueContext, generate_clues
from .ranker import ClueRanker, rank, record_clue_feedback

__all__ = [
    "ClueContext",
    "ClueRanker",
    "GENERATORS",
    "generate_clues",
    "rank",
    "record_clue_feedback",
]
