"""History-based pattern advice."""

from core.strategy.advisor import PatternRule, Suggestion, suggest_next

__all__ = [
    "PatternRule",
    "Suggestion",
    "suggest_next",
]
