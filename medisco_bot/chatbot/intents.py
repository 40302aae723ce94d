"""Ordered keyword/regex intent rules for the hospital assistant.

``RULES`` is evaluated top to bottom and the first match wins, so the list
order is the tie-break between overlapping phrasings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from medisco_bot.chatbot.extractors import (
    extract_doctor_availability,
    extract_name,
    extract_reminder,
    extract_specialty,
)
from medisco_bot.chatbot.state import ConversationState
from medisco_bot.chatbot.teaching import is_question

INTENT_TEACH_ANSWER = "teach_answer"
INTENT_NAME = "name"
INTENT_QUESTION = "question"
INTENT_SMALL_TALK = "small_talk"
INTENT_SYMPTOM = "symptom"
INTENT_AVAILABLE_DOCTORS = "available_doctors"
INTENT_ALL_DOCTORS = "all_doctors"
INTENT_APPOINTMENT_RECALL = "appointment_recall"
INTENT_GOODBYE = "goodbye"
INTENT_DOCTOR_AVAILABILITY = "doctor_availability"
INTENT_BEST_SPECIALIST = "best_specialist"
INTENT_REMINDER = "reminder"
INTENT_BOOK = "book"
INTENT_FIND_DOCTOR = "find_doctor"
INTENT_HOURS_FAQ = "hours_faq"
INTENT_EMERGENCY_FAQ = "emergency_faq"
INTENT_BILLING_FAQ = "billing_faq"
INTENT_IRRELEVANT = "irrelevant"
INTENT_FALLBACK = "fallback"

# Intents that count as "recognized" for the irrelevant-input counter
KEYWORD_ROUTES = (
    INTENT_BOOK,
    INTENT_FIND_DOCTOR,
    INTENT_HOURS_FAQ,
    INTENT_EMERGENCY_FAQ,
    INTENT_BILLING_FAQ,
)

# Plain substring checks: "endgame" counts as "game".
IRRELEVANT_KEYWORDS = ("sports", "movie", "music", "weather", "joke", "game")

TOPIC_HOW_ARE_YOU = "how_are_you"
TOPIC_JOKE = "joke"
TOPIC_CREATOR = "creator"
TOPIC_THANKS = "thanks"
TOPIC_LOCATION = "location"
TOPIC_GREETING = "greeting"

_SMALL_TALK: List[Tuple[str, re.Pattern]] = [
    (TOPIC_HOW_ARE_YOU, re.compile(r"how are you|how're you", re.I)),
    (TOPIC_JOKE, re.compile(r"tell me a joke", re.I)),
    (TOPIC_CREATOR, re.compile(r"who (made|created) you", re.I)),
    (TOPIC_THANKS, re.compile(r"thank", re.I)),
    (TOPIC_LOCATION, re.compile(r"hospital location|location", re.I)),
    (TOPIC_GREETING, re.compile(r"\b(hi|hello|hey)\b", re.I)),
]


def small_talk_topic(message: str) -> Optional[str]:
    for topic, pat in _SMALL_TALK:
        if pat.search(message):
            return topic
    return None


def _is_irrelevant(message: str) -> bool:
    lowered = message.lower()
    return any(k in lowered for k in IRRELEVANT_KEYWORDS)


Predicate = Callable[[str, ConversationState], bool]


@dataclass
class _IntentRule:
    name: str
    patterns: List[re.Pattern] = field(default_factory=list)
    when: Optional[Predicate] = None

    def matches(self, msg: str, state: ConversationState) -> bool:
        if self.when is not None and not self.when(msg, state):
            return False
        if not self.patterns:
            return self.when is not None
        return any(p.search(msg) for p in self.patterns)


def _compile(*patterns: str) -> List[re.Pattern]:
    return [re.compile(p, re.I) for p in patterns]


RULES: List[_IntentRule] = [
    _IntentRule(INTENT_TEACH_ANSWER, when=lambda m, s: s.teaching.active),
    _IntentRule(INTENT_NAME, when=lambda m, s: not s.user_name and extract_name(m) is not None),
    _IntentRule(INTENT_QUESTION, when=lambda m, s: is_question(m)),
    _IntentRule(INTENT_SMALL_TALK, when=lambda m, s: small_talk_topic(m) is not None),
    _IntentRule(INTENT_SYMPTOM, _compile(r"(symptom|pain|feel|hurt|ache)")),
    _IntentRule(INTENT_AVAILABLE_DOCTORS, _compile(r"available doctors", r"doctors available")),
    _IntentRule(INTENT_ALL_DOCTORS, _compile(r"all doctors")),
    _IntentRule(
        INTENT_APPOINTMENT_RECALL,
        _compile(r"when is my appointment", r"my appointment details", r"do i have an appointment"),
    ),
    _IntentRule(INTENT_GOODBYE, _compile(r"\b(bye|goodbye)\b")),
    _IntentRule(
        INTENT_DOCTOR_AVAILABILITY,
        when=lambda m, s: extract_doctor_availability(m) is not None,
    ),
    _IntentRule(
        INTENT_BEST_SPECIALIST,
        when=lambda m, s: "best" in m.lower() and extract_specialty(m) is not None,
    ),
    _IntentRule(INTENT_REMINDER, when=lambda m, s: extract_reminder(m) is not None),
    _IntentRule(INTENT_BOOK, _compile(r"appointment|book|schedule")),
    _IntentRule(INTENT_FIND_DOCTOR, _compile(r"doctor|find|specialist")),
    _IntentRule(INTENT_HOURS_FAQ, _compile(r"hour|time|open")),
    _IntentRule(INTENT_EMERGENCY_FAQ, _compile(r"emergency")),
    _IntentRule(INTENT_BILLING_FAQ, _compile(r"bill|payment|insurance")),
    _IntentRule(INTENT_IRRELEVANT, when=lambda m, s: _is_irrelevant(m)),
]


def classify(message: str, state: ConversationState) -> str:
    """Return the first intent in ``RULES`` that matches *message*."""
    for rule in RULES:
        if rule.matches(message, state):
            return rule.name
    return INTENT_FALLBACK
