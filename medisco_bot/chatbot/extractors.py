"""Regex-based extractors that pull structured values out of chat input."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple, Union

from medisco_bot.common.time import to_24h

_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"

_NAME = re.compile(r"(?:my name is|i am|i'm)\s+([^\s,.]+)", re.I)

_REMINDER = re.compile(r"remind me to (.+) at ((\d{1,2}):(\d{2})\s?(am|pm)?)", re.I)

_DOCTOR_AVAILABILITY = re.compile(
    r"(?:is\s+)?(?:dr\.?|doctor)?\s*(\w+)\s+(?:available|free)\s*(today|tomorrow|" + _WEEKDAYS + r")?",
    re.I,
)

# Canonical specialization name -> spellings accepted in "best ..." queries
_SPECIALTIES = {
    "neurologist": r"neurologist",
    "cardiologist": r"cardiologist",
    "pediatrician": r"pa?ediatrician",
    "orthopedic": r"orthopa?edi(?:c|st)",
}
_SPECIALTY = re.compile("|".join(f"({p})" for p in _SPECIALTIES.values()), re.I)

# Body area keyword -> specialty suggested by symptom triage, first hit wins
_SYMPTOM_SPECIALTY = [
    ("chest", "Cardiologist"),
    ("head", "Neurologist"),
    ("stomach", "Gastroenterologist"),
]
DEFAULT_SPECIALTY = "General Physician"

SERIOUS_SYMPTOMS = ("chest pain", "difficulty breathing", "severe bleeding")


def extract_name(text: str) -> Optional[str]:
    m = _NAME.search(text)
    return m.group(1) if m else None


def extract_reminder(text: str) -> Optional[Tuple[str, str]]:
    """Return ``(task, "H:MM")`` for a reminder request, 24h normalized."""
    m = _REMINDER.search(text)
    if not m:
        return None
    task = m.group(1).strip()
    return task, to_24h(int(m.group(3)), int(m.group(4)), m.group(5))


def extract_doctor_availability(text: str) -> Optional[Tuple[str, str]]:
    """Return ``(doctor_name, day)``; day defaults to ``today``."""
    m = _DOCTOR_AVAILABILITY.search(text)
    if not m:
        return None
    day = (m.group(2) or "today").lower()
    return m.group(1), day


def extract_specialty(text: str) -> Optional[str]:
    m = _SPECIALTY.search(text)
    if not m:
        return None
    names = list(_SPECIALTIES)
    for i, grp in enumerate(m.groups()):
        if grp:
            return names[i]
    return None


def suggest_specialty(symptoms: str) -> str:
    lowered = symptoms.lower()
    for keyword, specialty in _SYMPTOM_SPECIALTY:
        if keyword in lowered:
            return specialty
    return DEFAULT_SPECIALTY


def is_serious(symptoms: str) -> bool:
    lowered = symptoms.lower()
    return any(k in lowered for k in SERIOUS_SYMPTOMS)


def split_times(value: Union[str, List[Any], None]) -> List[str]:
    """Doctor availability comes either comma-joined or as a list."""
    if not value:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    else:
        parts = [str(v) for v in value]
    return [p.strip() for p in parts if p.strip()]


def doctor_times(doctor: Dict[str, Any]) -> List[str]:
    return split_times(doctor.get("available_times") or doctor.get("availableTimes"))
