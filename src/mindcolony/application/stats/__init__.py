# Application Stats Package
from .progress_calculator import DeckProgress, ProgressCalculator, ProgressReport
from .service import ProgressService

__all__ = ["DeckProgress", "ProgressCalculator", "ProgressReport", "ProgressService"]
