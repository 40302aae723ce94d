from __future__ import annotations

from typing import Any, Dict, List, Optional


from medisco_bot.chatbot.facts import normalize_question
from medisco_bot.chatbot.reminders import ReminderScheduler
from medisco_bot.common.errors import ServiceUnavailable

DOCTORS = [
    {
        "id": 1,
        "name": "Dr. Alice Perera",
        "specialization": "Cardiologist",
        "available_days": "Monday, Wednesday",
        "available_times": "9:00, 10:00, 11:00",
        "rating": 4.2,
    },
    {
        "id": 2,
        "name": "Dr. Bruno Silva",
        "specialization": "Neurologist",
        "available_days": "Tuesday",
        "available_times": ["14:00", "15:00"],
        "rating": 4.8,
    },
    {
        "id": 3,
        "name": "Dr. Chen Wei",
        "specialization": "Cardiologist",
        "available_days": "Friday",
        "available_times": "13:00",
        "rating": 4.9,
    },
]


class FakeHospitalClient:
    """In-memory stand-in for the hospital backend.

    Method names listed in ``failing`` raise ``ServiceUnavailable``.
    """

    def __init__(self) -> None:
        self.doctor_list: List[Dict[str, Any]] = [dict(d) for d in DOCTORS]
        self.departments_list = [{"id": 1, "name": "Cardiology"}]
        self.availability: List[Dict[str, Any]] = []
        self.booked: Dict[Any, List[str]] = {}
        self.facts: Dict[str, str] = {}
        self.faqs = {
            "general": [{"answer": "We are open 24/7."}],
            "billing": [{"answer": "We accept all major insurance plans."}],
            "navigation": [{"answer": "The emergency room is on the ground floor."}],
        }
        self.triage = {"recommendation": "Rest and drink water.", "urgency": "low"}
        self.latest: Optional[Dict[str, Any]] = None
        self.reminders: List[Dict[str, Any]] = []
        self.angry = "Please keep it about the hospital."
        self.failing: set = set()
        self.calls: List[tuple] = []
        self.created: List[Dict[str, Any]] = []
        self.history: List[tuple] = []
        self.closed = False

    def _call(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if name in self.failing:
            raise ServiceUnavailable(f"{name} is down")

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    def close(self) -> None:
        self.closed = True

    def doctors(self, specialization=None):
        self._call("doctors", specialization)
        if specialization:
            return [d for d in self.doctor_list if specialization.lower() in d["specialization"].lower()]
        return list(self.doctor_list)

    def departments(self):
        self._call("departments")
        return list(self.departments_list)

    def doctor_availability(self, day="today", name=None):
        self._call("doctor_availability", day, name)
        if name:
            return [d for d in self.availability if name.lower() in d["name"].lower()]
        return list(self.availability)

    def booked_times(self, doctor_id, date):
        self._call("booked_times", doctor_id, date)
        return list(self.booked.get(str(doctor_id), []))

    def create_appointment(self, payload):
        self._call("create_appointment", payload)
        self.created.append(payload)
        return dict(payload, id=len(self.created))

    def latest_appointment(self, email="", name=""):
        self._call("latest_appointment", email, name)
        return self.latest

    def appointment_reminders(self):
        self._call("appointment_reminders")
        return list(self.reminders)

    def check_symptoms(self, symptoms):
        self._call("check_symptoms", symptoms)
        return dict(self.triage)

    def lookup_fact(self, question):
        self._call("lookup_fact", question)
        return self.facts.get(question)

    def save_fact(self, question, answer):
        self._call("save_fact", question, answer)
        self.facts[normalize_question(question)] = answer
        return {"question": question, "answer": answer}

    def faq_answer(self, category):
        self._call("faq_answer", category)
        return self.faqs[category][0]["answer"]

    def angry_response(self):
        self._call("angry_response")
        return self.angry

    def save_chat_history(self, user_input, bot_response):
        self._call("save_chat_history", user_input, bot_response)
        self.history.append((user_input, bot_response))


class FakeScheduler:
    """Reminder scheduler double that never starts a background thread."""

    def __init__(self, reminders, on_fire, **kwargs):
        self._inner = ReminderScheduler(reminders, on_fire)
        self.started = False
        self.stopped = False

    @property
    def reminders(self):
        return self._inner.reminders

    def add(self, message, time):
        return self._inner.add(message, time)

    def tick(self, now=None):
        return self._inner.tick(now)

    def start(self):
        self.started = True

    def stop(self):
        self.stopped = True


def bot_texts(engine) -> List[str]:
    return [m.display for m in engine.transcript if m.sender == "bot"]
