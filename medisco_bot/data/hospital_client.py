import os
from typing import Any, Dict, List, Optional

import requests

from medisco_bot.common.errors import ServiceUnavailable
from medisco_bot.common.logging import get_logger

log = get_logger("hospital_client")

API_URL = os.environ.get("MEDISCO_API_URL", "http://localhost:5000/api")
API_TIMEOUT = float(os.environ.get("MEDISCO_API_TIMEOUT", "10"))


def _reason(r: requests.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {r.status_code}"


class HospitalClient:
    """Thin wrapper over the hospital backend REST API.

    Every failure surfaces as ``ServiceUnavailable`` so callers only have one
    thing to catch.
    """

    def __init__(self, base_url: str = API_URL, timeout: float = API_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, resource: str, **kwargs) -> Any:
        url = f"{self.base_url}/{resource}"
        try:
            r = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            log.error("%s %s failed: %s", method, url, e)
            raise ServiceUnavailable(str(e)) from e
        if r.status_code >= 400:
            log.error("%s %s -> %s %s", method, url, r.status_code, r.text[:300])
            raise ServiceUnavailable(_reason(r), status=r.status_code)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ServiceUnavailable(f"invalid response from {resource}") from e

    def get(self, resource: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", resource, params=params)

    def post(self, resource: str, payload: Dict[str, Any]) -> Any:
        return self._request("POST", resource, json=payload)

    # ---- Doctors ----

    def doctors(self, specialization: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"specialization": specialization} if specialization else None
        return self.get("doctors", params) or []

    def departments(self) -> List[Dict[str, Any]]:
        return self.get("departments") or []

    def doctor_availability(self, day: str = "today", name: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"day": day}
        if name:
            params["name"] = name
        data = self.get("doctors/availability", params)
        # Single-doctor lookups may come back as a bare object
        if isinstance(data, dict):
            return [data]
        return data or []

    # ---- Appointments ----

    def booked_times(self, doctor_id: Any, date: str) -> List[str]:
        data = self.get("appointments/availability", {"doctorId": doctor_id, "date": date}) or {}
        return list(data.get("bookedTimes") or [])

    def create_appointment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.post("appointments", payload) or {}

    def latest_appointment(self, email: str = "", name: str = "") -> Optional[Dict[str, Any]]:
        return self.get("appointments/latest", {"email": email, "name": name}) or None

    def appointment_reminders(self) -> List[Dict[str, Any]]:
        return self.get("appointments/reminders") or []

    # ---- Assistant content ----

    def check_symptoms(self, symptoms: str) -> Dict[str, Any]:
        return self.post("symptom-checker", {"symptoms": symptoms}) or {}

    def lookup_fact(self, question: str) -> Optional[str]:
        data = self.get("learned-facts", {"question": question}) or {}
        return data.get("answer") or None

    def save_fact(self, question: str, answer: str) -> Dict[str, Any]:
        return self.post("learned-facts", {"question": question, "answer": answer}) or {}

    def faq_answer(self, category: str) -> str:
        entries = self.get("faqs", {"category": category}) or []
        if not entries:
            raise ServiceUnavailable(f"no FAQ entries for {category}")
        return entries[0]["answer"]

    def angry_response(self) -> str:
        data = self.get("angry-response") or {}
        return data.get("response", "")

    def save_chat_history(self, user_input: str, bot_response: str) -> None:
        self.post("chat-history", {"user_input": user_input, "bot_response": bot_response})
