import uuid
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException

from medisco_bot.chatbot.engine import ChatEngine
from medisco_bot.chatbot.state import Message
from medisco_bot.common.logging import get_logger
from medisco_bot.data.hospital_client import API_URL
from medisco_bot.service.schemas import (
    ActionResponse, AppointmentDraftOut, AppointmentUpdate, ChatRequest,
    ChatResponse, DepartmentsResponse, HealthResponse, MessageOut, TranscriptResponse,
)

log = get_logger("api")

app = FastAPI(title="Medisco Hospital Assistant API", version="1.0")
_chat_sessions: Dict[str, ChatEngine] = {}


def _new_engine() -> ChatEngine:
    engine = ChatEngine()
    engine.start()
    return engine


def _session(sid: str) -> ChatEngine:
    engine = _chat_sessions.get(sid)
    if engine is None:
        raise HTTPException(status_code=404, detail=f"unknown session {sid}")
    return engine


def _message_out(msg: Optional[Message]) -> Optional[MessageOut]:
    if msg is None:
        return None
    return MessageOut(**msg.to_dict())


def _draft_out(engine: ChatEngine) -> AppointmentDraftOut:
    d = engine.state.draft
    return AppointmentDraftOut(
        name=d.name,
        email=d.email,
        phone=d.phone,
        doctor_id=str(d.doctor_id),
        doctor_name=d.doctor_name,
        date=str(d.date),
        time=d.time,
        available_times=list(engine.state.available_times),
    )


def _action(sid: str, engine: ChatEngine, msg: Optional[Message]) -> ActionResponse:
    return ActionResponse(
        session_id=sid,
        reply=_message_out(msg),
        emotion=engine.state.current_emotion,
        draft=_draft_out(engine),
    )


@app.on_event("shutdown")
def close_sessions():
    for engine in _chat_sessions.values():
        engine.close()
    _chat_sessions.clear()


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok", sessions=len(_chat_sessions), backend_url=API_URL)


@app.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest):
    sid = req.session_id or str(uuid.uuid4())
    if sid not in _chat_sessions:
        log.info("new chat session %s", sid)
        _chat_sessions[sid] = _new_engine()
    engine = _chat_sessions[sid]
    reply = engine.respond(req.message)
    return ChatResponse(
        session_id=sid,
        reply=_message_out(reply),
        emotion=engine.state.current_emotion,
        ignored=reply is None,
    )


@app.get("/chat/{sid}/transcript", response_model=TranscriptResponse)
def transcript(sid: str):
    engine = _session(sid)
    return TranscriptResponse(
        session_id=sid,
        emotion=engine.state.current_emotion,
        user_name=engine.state.user_name,
        active_feature=engine.state.active_feature,
        messages=[_message_out(m) for m in engine.transcript],
    )


@app.delete("/chat/{sid}")
def end_session(sid: str):
    engine = _session(sid)
    engine.close()
    del _chat_sessions[sid]
    return {"session_id": sid, "closed": True}


@app.get("/chat/{sid}/departments", response_model=DepartmentsResponse)
def departments(sid: str):
    engine = _session(sid)
    return DepartmentsResponse(session_id=sid, departments=list(engine.departments))


@app.patch("/chat/{sid}/appointment", response_model=ActionResponse)
def update_appointment(sid: str, update: AppointmentUpdate):
    engine = _session(sid)
    engine.update_appointment(**update.model_dump(exclude_none=True))
    return _action(sid, engine, None)


@app.post("/chat/{sid}/appointment/availability", response_model=ActionResponse)
def check_availability(sid: str):
    engine = _session(sid)
    return _action(sid, engine, engine.check_availability())


@app.post("/chat/{sid}/appointment", response_model=ActionResponse)
def submit_appointment(sid: str):
    engine = _session(sid)
    return _action(sid, engine, engine.submit_appointment())


@app.delete("/chat/{sid}/appointment", response_model=ActionResponse)
def cancel_appointment(sid: str):
    engine = _session(sid)
    engine.cancel_appointment()
    return _action(sid, engine, None)


@app.post("/chat/{sid}/quick-action/{action}", response_model=ActionResponse)
def quick_action(sid: str, action: str):
    engine = _session(sid)
    msg = engine.quick_action(action)
    if msg is None:
        raise HTTPException(status_code=404, detail=f"unknown quick action {action}")
    return _action(sid, engine, msg)
