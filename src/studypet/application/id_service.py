"""Stable identifiers for decks and cards."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """Generate a sortable ID using ULID, e.g. ``card_01J...``."""
    return f"{prefix}_{ULID()}"
