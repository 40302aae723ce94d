from __future__ import annotations

import random

import pytest

from fakes import FakeHospitalClient, FakeScheduler
from medisco_bot.chatbot.engine import ChatEngine


@pytest.fixture
def backend() -> FakeHospitalClient:
    return FakeHospitalClient()


@pytest.fixture
def engine(backend) -> ChatEngine:
    eng = ChatEngine(client=backend, rng=random.Random(7), scheduler_factory=FakeScheduler)
    eng.start()
    return eng
