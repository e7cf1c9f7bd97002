"""Centralized constants for the MindColony application.

All magic numbers and scheduling tables live here so every layer
imports from a single source of truth.
"""

# ---------- Boxes ----------
MIN_BOX_LEVEL = 1
MAX_BOX_LEVEL = 5
MASTERED_BOX_LEVEL = 4  # Boxes at or above this count as mastered in reports

# Days until next review, indexed by the box level a card lands in.
# Index 0 is unused since box levels start at 1.
REVIEW_INTERVAL_DAYS = (0, 1, 3, 7, 14, 30)

# Display tiers shown next to each box. Not used for scheduling.
BOX_TIERS = {
    1: ("New", "Cards you just started learning", "Daily review"),
    2: ("Learning", "Cards you're actively learning", "Every 3 days"),
    3: ("Reviewing", "Cards in regular review", "Weekly"),
    4: ("Familiar", "Cards you know well", "Every 2 weeks"),
    5: ("Mastered", "Cards you've mastered", "Monthly"),
}

# ---------- Sessions ----------
ALL_DECKS = "all"

# ---------- Clues ----------
CLUE_BASE_WEIGHTS = {
    "graph": 0.7,
    "semantic": 0.6,
    "rag": 0.5,
    "difficulty": 0.4,
    "box": 0.3,
    "cluster": 0.65,
}
GRAPH_HARD_BOOST = 0.2
DIFFICULTY_NEW_BOOST = 0.15
CLUSTER_LOW_ACCURACY_BOOST = 0.25
MAX_CLUE_WEIGHT = 1.0

MAX_RELATED_CARDS = 3
WEAK_ACCURACY_THRESHOLD = 0.5
MIN_WEAK_CLUSTER_SIZE = 2
DEFAULT_CLUE_DISPLAY_LIMIT = 3

# ---------- Persistence ----------
STORAGE_KEY = "colonymind-storage"
STORAGE_VERSION = 1
