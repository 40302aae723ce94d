"""Core chatbot engine: conversation state, intent dispatch, response formatting."""

from __future__ import annotations

import random
import threading
from typing import Any, Callable, Dict, List, Optional

from medisco_bot.chatbot import emotion
from medisco_bot.chatbot.booking import BookingSaga
from medisco_bot.chatbot.extractors import (
    doctor_times,
    extract_doctor_availability,
    extract_name,
    extract_reminder,
    extract_specialty,
    is_serious,
    suggest_specialty,
)
from medisco_bot.chatbot.facts import FactStore
from medisco_bot.chatbot.intents import (
    INTENT_ALL_DOCTORS, INTENT_APPOINTMENT_RECALL, INTENT_AVAILABLE_DOCTORS,
    INTENT_BEST_SPECIALIST, INTENT_BILLING_FAQ, INTENT_BOOK,
    INTENT_DOCTOR_AVAILABILITY, INTENT_EMERGENCY_FAQ, INTENT_FALLBACK,
    INTENT_FIND_DOCTOR, INTENT_GOODBYE, INTENT_HOURS_FAQ, INTENT_IRRELEVANT,
    INTENT_NAME, INTENT_QUESTION, INTENT_REMINDER, INTENT_SMALL_TALK,
    INTENT_SYMPTOM, INTENT_TEACH_ANSWER, KEYWORD_ROUTES,
    TOPIC_CREATOR, TOPIC_GREETING, TOPIC_HOW_ARE_YOU, TOPIC_JOKE,
    TOPIC_LOCATION, TOPIC_THANKS,
    classify, small_talk_topic,
)
from medisco_bot.chatbot.reminders import ReminderScheduler
from medisco_bot.chatbot.state import Alert, ConversationState, Message, Transcript
from medisco_bot.chatbot.teaching import TeachingMode
from medisco_bot.common.errors import BookingValidationError, ServiceUnavailable
from medisco_bot.common.logging import get_logger
from medisco_bot.data.hospital_client import HospitalClient

log = get_logger("engine")

WELCOME = "Hello! Welcome to Medisco Hospital. How can I assist you today?"
DIRECTIONS = (
    "Medisco Hospital is located at 123 Health Street, Medical City. "
    "Here are directions: https://maps.app.goo.gl/MwBnmwnMEiEzxVKu9"
)
ESCALATION = "Ask proper questions!"
ERROR_APOLOGY = "Sorry, I encountered an error. Please ask a proper question."
FALLBACK = "I am here to help with Medisco Hospital services. Try asking about doctors, appointments or visiting hours."

_SMALL_TALK_REPLIES = {
    TOPIC_HOW_ARE_YOU: "I'm just a bot, but I'm functioning well! How can I assist you today?",
    TOPIC_JOKE: "Why don't skeletons fight each other? They don't have the guts!",
    TOPIC_CREATOR: "I was created by the Medisco Hospital IT team to help patients like you!",
    TOPIC_THANKS: "You're welcome! Is there anything else I can help you with?",
    TOPIC_LOCATION: DIRECTIONS,
}

_GREETINGS = [
    "Hello there! How can I assist you today?",
    "Hi! What can I do for you today?",
    "Hey! How may I help you?",
    "Good day! How can I be of service to you?",
    "Hi there! What brings you here today?",
]

_NAMED_GREETINGS = [
    "Hello again, {name}! How can I help you today?",
    "Nice to see you back, {name}! What can I do for you?",
    "Hey {name}! Need any assistance today?",
    "Good day {name}! How can I be of service to you?",
    "Hi {name}! What brings you here today?",
]

_QUICK_ACTIONS = {
    "call": "Calling hospital reception at +94 123-4567",
    "email": "You can email our doctors at doctors@mediscohospital.com",
    "directions": DIRECTIONS,
}


def _rating(doctor: Dict[str, Any]) -> Optional[float]:
    try:
        return float(doctor.get("rating"))
    except (TypeError, ValueError):
        return None


def _rank_key(doctor: Dict[str, Any]) -> float:
    rating = _rating(doctor)
    return float("inf") if rating is None else -rating


class ChatEngine:
    """Stateful, per-session hospital assistant.

    ``respond`` is the single entry point for user input: one call is one
    turn, which appends the user's message and exactly one bot reply.
    """

    def __init__(
        self,
        client: Optional[HospitalClient] = None,
        rng: Optional[random.Random] = None,
        scheduler_factory: Callable[..., ReminderScheduler] = ReminderScheduler,
    ) -> None:
        self.client = client if client is not None else HospitalClient()
        self.rng = rng or random.Random()
        self.state = ConversationState()
        self.transcript = Transcript()
        self.doctors: List[Dict[str, Any]] = []
        self.departments: List[Dict[str, Any]] = []
        self.teaching = TeachingMode(FactStore(self.client), self.state.teaching)
        self.booking = BookingSaga(self.state, self.client, self.doctors)
        self.reminders = scheduler_factory(self.state.reminders, self._fire_reminder)
        self._processing = threading.Lock()
        self._handlers: Dict[str, Callable[[str], Optional[Message]]] = {
            INTENT_TEACH_ANSWER: self._teach_answer,
            INTENT_NAME: self._name,
            INTENT_QUESTION: self._question,
            INTENT_SMALL_TALK: self._small_talk,
            INTENT_SYMPTOM: self._symptom,
            INTENT_AVAILABLE_DOCTORS: self._available_doctors,
            INTENT_ALL_DOCTORS: self._all_doctors,
            INTENT_APPOINTMENT_RECALL: self._appointment_recall,
            INTENT_GOODBYE: self._goodbye,
            INTENT_DOCTOR_AVAILABILITY: self._doctor_availability,
            INTENT_BEST_SPECIALIST: self._best_specialist,
            INTENT_REMINDER: self._reminder,
            INTENT_BOOK: self._book,
            INTENT_FIND_DOCTOR: self._find_doctor,
            INTENT_HOURS_FAQ: lambda m: self._faq("general"),
            INTENT_EMERGENCY_FAQ: lambda m: self._faq("navigation"),
            INTENT_BILLING_FAQ: lambda m: self._faq("billing"),
            INTENT_IRRELEVANT: self._irrelevant,
            INTENT_FALLBACK: self._fallback,
        }

    # ---- Session lifecycle ----

    def start(self) -> None:
        self._reply(WELCOME)
        self.refresh_roster()
        try:
            self.departments[:] = self.client.departments()
        except ServiceUnavailable as e:
            log.error("could not load departments: %s", e.reason)
        self._appointment_reminders()
        self.reminders.start()

    def close(self) -> None:
        self.reminders.stop()
        self.client.close()

    def refresh_roster(self) -> None:
        try:
            # Mutate in place: the booking saga holds the same list
            self.doctors[:] = self.client.doctors()
        except ServiceUnavailable as e:
            log.error("could not load doctors: %s", e.reason)

    def _appointment_reminders(self) -> None:
        try:
            upcoming = self.client.appointment_reminders()
        except ServiceUnavailable as e:
            log.error("could not load appointment reminders: %s", e.reason)
            return
        if not upcoming:
            return
        r = upcoming[0]
        self._reply(
            f"Hi {r['patient_name']}! Friendly reminder: Your appointment with "
            f"{r['doctor_name']} is on {r['appointment_date']} at {r['appointment_time']}."
        )
        if not self.state.user_name:
            self.state.user_name = r["patient_name"]

    # ---- Turn handling ----

    @property
    def busy(self) -> bool:
        return self._processing.locked()

    def respond(self, message: str) -> Optional[Message]:
        """Run one turn; returns the bot reply, or None if the input was ignored."""
        if not message or not message.strip():
            return None
        if not self._processing.acquire(blocking=False):
            log.debug("turn already in progress, ignoring %r", message)
            return None
        try:
            return self._turn(message)
        finally:
            self._processing.release()

    def _turn(self, message: str) -> Message:
        if emotion.user_is_angry(message):
            self.state.current_emotion = emotion.ANGRY
        self.transcript.append(Message.user(message))

        intent = classify(message, self.state)
        log.debug("intent=%s input=%r", intent, message)
        if intent != INTENT_IRRELEVANT:
            self.state.irrelevant_count = 0
        try:
            reply = self._handlers[intent](message)
        except ServiceUnavailable as e:
            log.error("handler %s failed: %s", intent, e.reason)
            return self._reply(Alert(ERROR_APOLOGY), emotion.ANGRY)
        except (KeyError, TypeError, ValueError) as e:
            log.exception("malformed backend data in %s: %s", intent, e)
            return self._reply(Alert(ERROR_APOLOGY), emotion.ANGRY)

        if intent in KEYWORD_ROUTES or intent in (INTENT_IRRELEVANT, INTENT_FALLBACK):
            self._save_history(message, reply)
        return reply

    def _reply(self, text, mood: Optional[str] = None) -> Message:
        msg = self.transcript.append(Message.bot(text))
        self.state.current_emotion = mood or emotion.classify(msg.display)
        return msg

    def _save_history(self, user_input: str, reply: Message) -> None:
        try:
            self.client.save_chat_history(user_input, reply.display)
        except ServiceUnavailable as e:
            log.warning("chat history not saved: %s", e.reason)

    def _fire_reminder(self, text: str) -> None:
        self._reply(text)

    # ---- Intent handlers ----

    def _teach_answer(self, message: str) -> Message:
        return self._reply(self.teaching.learn(message))

    def _name(self, message: str) -> Message:
        name = extract_name(message)
        self.state.user_name = name
        return self._reply(f"Hello {name}!")

    def _question(self, message: str) -> Message:
        return self._reply(self.teaching.ask(message))

    def _small_talk(self, message: str) -> Message:
        topic = small_talk_topic(message)
        if topic == TOPIC_GREETING:
            name = self.state.user_name
            if name:
                text = self.rng.choice(_NAMED_GREETINGS).format(name=name)
            else:
                text = self.rng.choice(_GREETINGS)
            return self._reply(text)
        return self._reply(_SMALL_TALK_REPLIES[topic])

    def _symptom(self, message: str) -> Message:
        try:
            triage = self.client.check_symptoms(message)
        except ServiceUnavailable as e:
            log.error("symptom checker failed: %s", e.reason)
            return self._reply("Sorry, I encountered an error checking your symptoms. Please try again.")

        urgency = triage.get("urgency", "low")
        text = triage.get("recommendation", "")
        if urgency == "high":
            text = f"{emotion.URGENT_MARKER}: {text}"
        elif urgency == "medium":
            text = f"{emotion.IMPORTANT_MARKER}: {text}"

        if urgency == "high" or is_serious(message):
            specialty = suggest_specialty(message)
            matches = [d for d in self.doctors if specialty in d.get("specialization", "")]
            if matches:
                doctor = matches[0]
                text += f"\n\nI recommend seeing a {specialty}. "
                text += f"Would you like to book an appointment with {doctor['name']}?"
                self.booking.select_doctor(doctor["id"], doctor["name"])
        return self._reply(text)

    def _available_doctors(self, message: str) -> Message:
        try:
            records = self.client.doctor_availability(day="today")
        except ServiceUnavailable as e:
            log.error("availability lookup failed: %s", e.reason)
            return self._roster("I'm having trouble checking doctor availability. Here are all our doctors:")

        working = [d for d in records if d.get("isAvailable")]
        if not working:
            return self._roster("No doctors are available today. Here are all our doctors:")

        lines = ["Here are today's available doctors:", ""]
        for d in working:
            lines.append(f"👨‍⚕️ {d['name']}")
            lines.append(f"🏥 Specialty: {d.get('specialization', '')}")
            lines.append(f"⏰ Available times: {', '.join(doctor_times(d))}")
        lines.append("To book an appointment, say 'Book' or click the appointment button.")
        return self._reply("\n".join(lines))

    def _all_doctors(self, message: str) -> Message:
        return self._roster("Here are all our doctors:")

    def _roster(self, intro: str) -> Message:
        try:
            roster = self.client.doctors()
        except ServiceUnavailable as e:
            log.error("roster lookup failed: %s", e.reason)
            return self._reply("I'm unable to retrieve the doctor list at the moment. Please try again later.")

        lines = [intro, ""]
        for d in roster:
            lines.append(f"👨‍⚕️ {d['name']}")
            lines.append(f"🏥 {d.get('specialization', '')}")
            lines.append(f"📅 Available days: {d.get('available_days', '')}")
            times = doctor_times(d)
            if times:
                lines.append(f"⏰ Usually available at: {', '.join(times)}")
            lines.append("")
        return self._reply("\n".join(lines))

    def _appointment_recall(self, message: str) -> Message:
        email = self.state.draft.email
        name = self.state.user_name
        if not email and not name:
            return self._reply("I don't have your information.", emotion.NEUTRAL)
        try:
            appt = self.client.latest_appointment(email=email, name=name)
        except ServiceUnavailable as e:
            log.error("appointment recall failed: %s", e.reason)
            return self._reply(
                "Sorry, I couldn't retrieve your appointment details. Please try again later.",
                emotion.ANGRY,
            )
        if not appt:
            return self._reply("I couldn't find any upcoming appointments for you. Would you like to book one?")
        return self._reply(
            f"Your appointment is with {appt['doctor_name']} on "
            f"{appt['appointment_date']} at {appt['appointment_time']}."
        )

    def _goodbye(self, message: str) -> Message:
        name = self.state.user_name
        return self._reply(f"Goodbye, {name}! Have a great day." if name else "Goodbye! Have a great day.")

    def _doctor_availability(self, message: str) -> Message:
        name, day = extract_doctor_availability(message)
        try:
            records = self.client.doctor_availability(day=day, name=name)
        except ServiceUnavailable as e:
            log.error("availability lookup for %s failed: %s", name, e.reason)
            return self._reply(
                'Sorry, I encountered an error. You can try asking "Show all doctors" or try again later.'
            )
        if not records:
            return self._reply(f"Sorry, I couldn't find {name}. Would you like to see all doctors?")

        doctor = records[0]
        available = bool(doctor.get("isAvailable"))
        text = f"{doctor['name']} ({doctor.get('specialization', '')}) is "
        text += "available" if available else "not available"
        text += f" on {day}."
        if available:
            times = doctor_times(doctor)
            text += f"\nAvailable times: {', '.join(times) if times else 'Not specified'}."
            if doctor.get("id") is not None:
                self.booking.select_doctor(doctor["id"], doctor["name"])
        return self._reply(text)

    def _best_specialist(self, message: str) -> Message:
        specialty = extract_specialty(message)
        try:
            found = self.client.doctors(specialization=specialty)
        except ServiceUnavailable as e:
            log.error("specialist lookup failed: %s", e.reason)
            return self._reply(
                "Sorry, I couldn't find specialist information. Please try again later.",
                emotion.ANGRY,
            )
        if not found:
            return self._reply(f"We currently don't have any {specialty}s on our team.")

        # Rated doctors first, best rating first; unrated keep backend order
        ranked = sorted(found, key=_rank_key)
        best = ranked[0]
        text = f"Our {specialty} is {best['name']}"
        if _rating(best) is not None:
            text += f" (Rating: {best['rating']}/5)"
        text += f"\nAvailable: {best.get('available_days', '')} at {', '.join(doctor_times(best))}\n"
        self.booking.select_doctor(best["id"], best["name"])
        return self._reply(text)

    def _reminder(self, message: str) -> Message:
        task, at = extract_reminder(message)
        self.reminders.add(task, at)
        return self._reply(f"I'll remind you to {task} at {at}.")

    def _book(self, message: str) -> Message:
        self.booking.begin()
        return self._reply("Let me help you with appointment booking. Please provide the details.")

    def _find_doctor(self, message: str) -> Message:
        roster = self.client.doctors()
        lines = ["Our specialist doctors:", ""]
        lines += [f"- {d['name']} ({d.get('specialization', '')})" for d in roster]
        lines.append("")
        lines.append(
            "You can ask about a specific doctor's availability or say "
            "'available doctors' to see who's working today."
        )
        return self._reply("\n".join(lines))

    def _faq(self, category: str) -> Message:
        return self._reply(self.client.faq_answer(category))

    def _irrelevant(self, message: str) -> Message:
        previous = self.state.irrelevant_count
        self.state.irrelevant_count = previous + 1
        if previous >= 2:
            self.state.irrelevant_count = 0
            return self._reply(Alert(ESCALATION), emotion.ANGRY)
        return self._reply(self.client.angry_response())

    def _fallback(self, message: str) -> Message:
        return self._reply(FALLBACK)

    # ---- Booking & quick actions ----

    def update_appointment(self, **fields: Any) -> None:
        self.booking.update(**fields)

    def check_availability(self) -> Message:
        try:
            available = self.booking.check_availability()
        except BookingValidationError as e:
            return self._reply(str(e), emotion.ANGRY)
        except ServiceUnavailable as e:
            log.error("availability check failed: %s", e.reason)
            return self._reply("Error checking availability. Please try again.", emotion.ANGRY)
        date = self.state.draft.date
        return self._reply(f"Available times for {date}: {', '.join(available) or 'No available times'}")

    def submit_appointment(self) -> Message:
        try:
            booked = self.booking.submit()
        except BookingValidationError as e:
            return self._reply(str(e), emotion.ANGRY)
        except ServiceUnavailable as e:
            return self._reply(f"Failed to book appointment: {e.reason or 'Please try again'}", emotion.ANGRY)
        return self._reply(
            f"Appointment booked successfully for {booked['date']} at {booked['time']} with {booked['doctor']}"
        )

    def cancel_appointment(self) -> None:
        self.booking.cancel()

    def quick_action(self, action: str) -> Optional[Message]:
        text = _QUICK_ACTIONS.get(action)
        if text is None:
            return None
        return self._reply(text)
