from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = None


class MessageText(BaseModel):
    """Either plain text (``value``) or an alert (``caption`` + ``asset``)."""
    kind: Literal["plain", "alert"]
    value: Optional[str] = None
    caption: Optional[str] = None
    asset: Optional[str] = None


class MessageOut(BaseModel):
    text: MessageText
    sender: Literal["user", "bot"]


class ChatResponse(BaseModel):
    session_id: str
    reply: Optional[MessageOut] = None
    emotion: str
    ignored: bool = False


class TranscriptResponse(BaseModel):
    session_id: str
    emotion: str
    user_name: str = ""
    active_feature: str
    messages: List[MessageOut]


class AppointmentUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None


class AppointmentDraftOut(BaseModel):
    name: str
    email: str
    phone: str
    doctor_id: str
    doctor_name: str
    date: str
    time: str
    available_times: List[str] = []


class ActionResponse(BaseModel):
    session_id: str
    reply: Optional[MessageOut] = None
    emotion: str
    draft: Optional[AppointmentDraftOut] = None


class HealthResponse(BaseModel):
    status: str
    sessions: int
    backend_url: str


class DepartmentsResponse(BaseModel):
    session_id: str
    departments: List[Dict[str, Any]]
