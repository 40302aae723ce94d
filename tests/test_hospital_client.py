from unittest.mock import Mock

import pytest
import requests

from medisco_bot.common.errors import ServiceUnavailable
from medisco_bot.data.hospital_client import HospitalClient


def _response(status=200, body=None, content=b"x"):
    r = Mock(spec=requests.Response)
    r.status_code = status
    r.content = content
    r.text = str(body)
    if isinstance(body, Exception):
        r.json.side_effect = body
    else:
        r.json.return_value = body
    return r


@pytest.fixture
def client():
    c = HospitalClient(base_url="http://backend.test/api/", timeout=3)
    c.session.request = Mock()
    return c


def test_get_builds_url_and_params(client):
    client.session.request.return_value = _response(body=[{"id": 1}])
    assert client.doctors(specialization="cardiologist") == [{"id": 1}]
    client.session.request.assert_called_once_with(
        "GET", "http://backend.test/api/doctors",
        timeout=3, params={"specialization": "cardiologist"},
    )


def test_post_sends_json(client):
    client.session.request.return_value = _response(body={"ok": True})
    client.save_chat_history("hi", "hello")
    client.session.request.assert_called_once_with(
        "POST", "http://backend.test/api/chat-history",
        timeout=3, json={"user_input": "hi", "bot_response": "hello"},
    )


def test_http_error_uses_backend_error_field(client):
    client.session.request.return_value = _response(status=400, body={"error": "Slot already booked"})
    with pytest.raises(ServiceUnavailable) as exc:
        client.create_appointment({"doctor_id": 1})
    assert exc.value.reason == "Slot already booked"
    assert exc.value.status == 400


def test_http_error_without_body(client):
    client.session.request.return_value = _response(status=503, body=ValueError("no json"))
    with pytest.raises(ServiceUnavailable, match="HTTP 503"):
        client.departments()


def test_transport_error(client):
    client.session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(ServiceUnavailable, match="refused"):
        client.angry_response()


def test_single_doctor_availability_is_wrapped(client):
    client.session.request.return_value = _response(body={"name": "Dr. Lee", "isAvailable": True})
    assert client.doctor_availability(day="monday", name="Lee") == [{"name": "Dr. Lee", "isAvailable": True}]
    _, kwargs = client.session.request.call_args
    assert kwargs["params"] == {"day": "monday", "name": "Lee"}


def test_booked_times(client):
    client.session.request.return_value = _response(body={"bookedTimes": ["10:00"]})
    assert client.booked_times(1, "2026-10-21") == ["10:00"]


def test_lookup_fact_miss(client):
    client.session.request.return_value = _response(body={})
    assert client.lookup_fact("what is aspirin") is None


def test_latest_appointment_empty_body(client):
    client.session.request.return_value = _response(body=None, content=b"")
    assert client.latest_appointment(email="a@b.c") is None


def test_faq_answer_takes_first_entry(client):
    client.session.request.return_value = _response(body=[{"answer": "24/7"}, {"answer": "other"}])
    assert client.faq_answer("general") == "24/7"


def test_faq_answer_empty(client):
    client.session.request.return_value = _response(body=[])
    with pytest.raises(ServiceUnavailable):
        client.faq_answer("billing")
