"""Keyword-based mood detection for user messages.

Rules are checked in order and the first match wins, so a message that is
both "great" and "stressed" reads as happy. Matching is a case-insensitive
substring search, which keeps it cheap and predictable.
"""

import re

NEUTRAL = "neutral"

MOOD_RULES: list[tuple[str, re.Pattern]] = [
    ("happy", re.compile(r"happy|joy|excited|great|wonderful|thrilled|delighted", re.IGNORECASE)),
    ("sad", re.compile(r"sad|upset|depressed|miserable|down|blue|unhappy", re.IGNORECASE)),
    ("angry", re.compile(r"angry|mad|furious|irritated|annoyed|frustrated", re.IGNORECASE)),
    ("anxious", re.compile(r"anxious|worried|nervous|stressed|tense|concerned", re.IGNORECASE)),
    ("calm", re.compile(r"calm|peaceful|relaxed|serene|tranquil", re.IGNORECASE)),
    ("energetic", re.compile(r"energetic|active|lively|vibrant|dynamic", re.IGNORECASE)),
    ("contemplative", re.compile(r"thinking|contemplative|reflective|thoughtful", re.IGNORECASE)),
    ("joyful", re.compile(r"joyful|ecstatic|elated|gleeful", re.IGNORECASE)),
    ("melancholy", re.compile(r"melancholy|nostalgic|wistful|lonely", re.IGNORECASE)),
    ("neutral", re.compile(r"neutral|okay|fine|alright", re.IGNORECASE)),
]


def classify(text: str | None) -> str:
    """Return the mood tag of the first matching rule, else ``neutral``."""
    if not text:
        return NEUTRAL
    for mood, pattern in MOOD_RULES:
        if pattern.search(text):
            return mood
    return NEUTRAL
