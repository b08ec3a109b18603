"""Domain layer modules for sales reporting."""

__all__ = [
    "divisions",
    "reference",
    "executive",
]
