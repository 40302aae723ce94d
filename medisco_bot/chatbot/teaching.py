"""Two-state sub-dialogue that learns answers to unknown questions."""

from __future__ import annotations

from medisco_bot.chatbot.facts import FactStore
from medisco_bot.chatbot.state import TeachingState
from medisco_bot.common.errors import TeachingSaveError
from medisco_bot.common.logging import get_logger

log = get_logger("teaching")

TEACH_ME = "I don't know the answer to that. Can you teach me? Please provide the answer."


def is_question(text: str) -> bool:
    return text.strip().endswith("?")


class TeachingMode:
    """Idle until a question misses; then the next input becomes its answer."""

    def __init__(self, facts: FactStore, state: TeachingState) -> None:
        self.facts = facts
        self.state = state

    @property
    def awaiting_answer(self) -> bool:
        return self.state.active

    def ask(self, question: str) -> str:
        answer = self.facts.lookup(question)
        if answer:
            return f"The answer is: {answer}"
        self.state.active = True
        self.state.current_question = question
        log.info("teaching mode: waiting for an answer to %r", question)
        return TEACH_ME

    def learn(self, answer: str) -> str:
        question = self.state.current_question
        try:
            self.facts.record(question, answer)
            reply = f'Thanks! I\'ve learned that the answer to "{question}" is "{answer}".'
        except TeachingSaveError as e:
            reply = f"I couldn't save that information. Error: {e.reason}"
        finally:
            self.state.active = False
            self.state.current_question = ""
        return reply
