"""MindColony: Leitner-box flashcard scheduling engine."""
