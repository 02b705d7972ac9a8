"""Deterministic avatar colors for AI chatroom members."""

from __future__ import annotations

from typing import Final, Union

# Palette chosen for contrast against light and dark backgrounds
AI_AVATAR_COLORS: Final[tuple[str, ...]] = (
    "#10a37f",  # Teal (OpenAI green)
    "#d4a373",  # Bronze (Claude)
    "#4f46e5",  # Indigo
    "#0ea5e9",  # Sky blue
    "#8b5cf6",  # Purple
    "#ec4899",  # Pink
    "#f59e0b",  # Amber
    "#ef4444",  # Red
    "#22c55e",  # Green
    "#06b6d4",  # Cyan
)


def _string_hash(value: str) -> int:
    """31-multiplier rolling hash, wrapped to a signed 32-bit integer."""
    hash_value = 0
    for char in value:
        hash_value = (hash_value * 31 + ord(char)) & 0xFFFFFFFF
    if hash_value >= 0x80000000:
        hash_value -= 0x100000000
    return hash_value


def get_ai_color(identifier: Union[str, int]) -> str:
    """
    Get a color for a model ID or member index.

    The same model ID always maps to the same color; integer indexes cycle
    through the palette.
    """
    if isinstance(identifier, int):
        return AI_AVATAR_COLORS[identifier % len(AI_AVATAR_COLORS)]
    return AI_AVATAR_COLORS[abs(_string_hash(identifier)) % len(AI_AVATAR_COLORS)]
