"""Appointment booking: select doctor -> check availability -> submit."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from medisco_bot.chatbot.extractors import doctor_times
from medisco_bot.chatbot.state import FEATURE_APPOINTMENT, FEATURE_NONE, ConversationState
from medisco_bot.common.errors import BookingValidationError
from medisco_bot.common.logging import get_logger
from medisco_bot.common.time import iso_date

log = get_logger("booking")


def find_doctor(roster: List[Dict[str, Any]], doctor_id: Any) -> Optional[Dict[str, Any]]:
    for doctor in roster:
        if str(doctor.get("id")) == str(doctor_id):
            return doctor
    return None


def free_slots(all_times: List[str], booked: List[str]) -> List[str]:
    """Doctor's slots minus the booked ones, in the doctor's order."""
    taken = {t.strip() for t in booked}
    return [t for t in all_times if t.strip() not in taken]


def booking_date(value: Any) -> str:
    try:
        return iso_date(value)
    except ValueError as e:
        raise BookingValidationError("Please enter the date as YYYY-MM-DD") from e


class BookingSaga:
    """Drives the shared appointment draft through its three steps.

    Each step raises ``BookingValidationError`` when the draft is not ready
    and lets ``ServiceUnavailable`` from the backend propagate.
    """

    def __init__(self, state: ConversationState, client, roster: List[Dict[str, Any]]) -> None:
        self.state = state
        self.client = client
        self.roster = roster

    @property
    def draft(self):
        return self.state.draft

    def begin(self) -> None:
        self.state.active_feature = FEATURE_APPOINTMENT

    def select_doctor(self, doctor_id: Any, doctor_name: Optional[str] = None) -> None:
        if doctor_name is None:
            doctor = find_doctor(self.roster, doctor_id)
            doctor_name = doctor["name"] if doctor else ""
        self.draft.update(doctor_id=doctor_id, doctor_name=doctor_name)

    def update(self, **fields: Any) -> None:
        self.draft.update(**fields)

    def check_availability(self) -> List[str]:
        draft = self.draft
        if not str(draft.doctor_id).strip() or not str(draft.date).strip():
            raise BookingValidationError("Please select both a doctor and a date first")

        date = booking_date(draft.date)
        booked = self.client.booked_times(draft.doctor_id, date)

        doctor = find_doctor(self.roster, draft.doctor_id)
        if doctor is None:
            raise BookingValidationError("Doctor not found. Please try again.")

        available = free_slots(doctor_times(doctor), booked)
        self.state.available_times = available
        if available:
            draft.time = available[0]
        return available

    def submit(self) -> Dict[str, str]:
        """Persist the draft; returns the doctor, date and time that were booked."""
        draft = self.draft
        if draft.missing():
            raise BookingValidationError("Please fill in all fields before booking")

        payload = {
            "patient_name": draft.name,
            "patient_email": draft.email,
            "patient_phone": draft.phone,
            "doctor_id": draft.doctor_id,
            "appointment_date": booking_date(draft.date),
            "appointment_time": draft.time,
        }
        self.client.create_appointment(payload)
        log.info("appointment booked: doctor=%s date=%s time=%s",
                 draft.doctor_id, payload["appointment_date"], draft.time)

        doctor = find_doctor(self.roster, draft.doctor_id)
        doctor_name = doctor["name"] if doctor else draft.doctor_name
        booked = {"doctor": doctor_name, "date": payload["appointment_date"], "time": draft.time}
        if not self.state.user_name:
            self.state.user_name = draft.name
        self.cancel()
        return booked

    def cancel(self) -> None:
        self.draft.clear()
        self.state.available_times = []
        self.state.active_feature = FEATURE_NONE
