"""Conversation data model: messages, transcript and per-session state."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterator, List, Optional, Union

from medisco_bot.chatbot.emotion import NEUTRAL

USER = "user"
BOT = "bot"

FEATURE_NONE = "none"
FEATURE_APPOINTMENT = "appointment"

ANGRY_ASSET = "angry.gif"


@dataclass(frozen=True)
class PlainText:
    value: str
    kind: str = "plain"

    @property
    def display(self) -> str:
        return self.value


@dataclass(frozen=True)
class Alert:
    """Caption plus an illustrative asset, rendered by the front end."""

    caption: str
    asset: str = ANGRY_ASSET
    kind: str = "alert"

    @property
    def display(self) -> str:
        return self.caption


@dataclass(frozen=True)
class Message:
    text: Union[PlainText, Alert]
    sender: str = BOT

    @classmethod
    def bot(cls, text: Union[str, PlainText, Alert]) -> "Message":
        if isinstance(text, str):
            text = PlainText(text)
        return cls(text=text, sender=BOT)

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(text=PlainText(text), sender=USER)

    @property
    def display(self) -> str:
        return self.text.display

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.text, Alert):
            body = {"kind": "alert", "caption": self.text.caption, "asset": self.text.asset}
        else:
            body = {"kind": "plain", "value": self.text.value}
        return {"text": body, "sender": self.sender}


class Transcript:
    """Append-only, chronologically ordered message log.

    Turns and the reminder timer both append, so writes go through a lock.
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._lock = threading.Lock()

    def append(self, message: Message) -> Message:
        with self._lock:
            self._messages.append(message)
        return message

    def snapshot(self) -> List[Message]:
        with self._lock:
            return list(self._messages)

    def last(self) -> Optional[Message]:
        with self._lock:
            return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


@dataclass
class AppointmentDraft:
    name: str = ""
    email: str = ""
    phone: str = ""
    doctor_id: Any = ""
    doctor_name: str = ""
    date: str = ""
    time: str = ""

    REQUIRED = ("name", "email", "phone", "doctor_id", "date", "time")

    def missing(self) -> List[str]:
        return [f for f in self.REQUIRED if _blank(getattr(self, f))]

    def clear(self) -> None:
        for f in fields(self):
            setattr(self, f.name, "")

    def update(self, **values: Any) -> None:
        known = {f.name for f in fields(self)}
        for key, val in values.items():
            if key not in known:
                raise AttributeError(f"unknown draft field: {key}")
            if val is not None:
                setattr(self, key, val)


def _blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


@dataclass
class TeachingState:
    active: bool = False
    current_question: str = ""


@dataclass
class Reminder:
    message: str
    time: str


@dataclass
class ConversationState:
    """Everything that persists between turns of one session."""

    user_name: str = ""
    irrelevant_count: int = 0
    current_emotion: str = NEUTRAL
    active_feature: str = FEATURE_NONE
    teaching: TeachingState = field(default_factory=TeachingState)
    reminders: List[Reminder] = field(default_factory=list)
    draft: AppointmentDraft = field(default_factory=AppointmentDraft)
    available_times: List[str] = field(default_factory=list)
