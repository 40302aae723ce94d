"""Question -> answer lookups used by teaching mode."""

from __future__ import annotations

import re
from typing import Optional

from medisco_bot.common.errors import ServiceUnavailable, TeachingSaveError
from medisco_bot.common.logging import get_logger

log = get_logger("facts")

_TRAILING_QMARKS = re.compile(r"\?+$")


def normalize_question(question: str) -> str:
    """Lower-case, trim and strip trailing question marks."""
    return _TRAILING_QMARKS.sub("", question.strip().lower()).strip()


class FactStore:
    """Gateway to the backend's learned-facts resource."""

    def __init__(self, client) -> None:
        self.client = client

    def lookup(self, question: str) -> Optional[str]:
        """Answer for *question*, or None when unknown.

        A failed lookup counts as unknown.
        """
        key = normalize_question(question)
        try:
            return self.client.lookup_fact(key)
        except ServiceUnavailable as e:
            log.warning("fact lookup failed for %r: %s", key, e.reason)
            return None

    def record(self, question: str, answer: str) -> None:
        try:
            self.client.save_fact(question, answer)
        except ServiceUnavailable as e:
            raise TeachingSaveError(e.reason, status=e.status) from e
