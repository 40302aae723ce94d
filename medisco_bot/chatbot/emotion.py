"""Affect tagging for transcript entries."""

from __future__ import annotations

import re

HAPPY = "happy"
NEUTRAL = "neutral"
ANGRY = "angry"

URGENT_MARKER = "🚨 URGENT"
IMPORTANT_MARKER = "⚠️ IMPORTANT"

# Checked in this order; the first group with a hit wins.
_ANGRY_MARKERS = (
    URGENT_MARKER,
    IMPORTANT_MARKER,
    "Ask proper questions",
    "Sorry, I encountered an error",
)
_HAPPY_MARKERS = ("successfully", "Great", "Welcome", "Hello", "Hi", "Thank you")

_USER_ANGER = re.compile(r"(stupid|idiot|useless|hate|angry)", re.I)


def classify(text: str) -> str:
    """Map a bot message's text to happy / neutral / angry."""
    if not text:
        return NEUTRAL
    if any(m in text for m in _ANGRY_MARKERS):
        return ANGRY
    if any(m in text for m in _HAPPY_MARKERS):
        return HAPPY
    return NEUTRAL


def user_is_angry(text: str) -> bool:
    return bool(_USER_ANGER.search(text or ""))
