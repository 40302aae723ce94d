"""Terminal REPL for the Medisco Hospital assistant.

Usage:
    python -m medisco_bot.cli.chat_cli

Quick actions: ':call', ':email', ':directions'.
"""

from __future__ import annotations

from medisco_bot.chatbot.engine import ChatEngine
from medisco_bot.chatbot.state import BOT, FEATURE_APPOINTMENT

_FORM_FIELDS = [
    ("name", "Your name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("doctor_id", "Doctor id"),
    ("date", "Date (YYYY-MM-DD)"),
]


def _flush(engine: ChatEngine, printed: int) -> int:
    """Print bot messages appended since *printed*; reminders included."""
    messages = engine.transcript.snapshot()
    for m in messages[printed:]:
        if m.sender == BOT:
            print()
            print(m.display)
            print()
    return len(messages)


def _booking_form(engine: ChatEngine, printed: int) -> int:
    draft = engine.state.draft
    if engine.departments:
        print("Departments: " + ", ".join(d.get("name", "") for d in engine.departments))
    if engine.doctors:
        print("Doctors:")
        for d in engine.doctors:
            print(f"  {d['id']}: {d['name']} - {d.get('specialization', '')}")
    for field, label in _FORM_FIELDS:
        current = getattr(draft, field)
        hint = f" [{current}]" if current else ""
        value = input(f"{label}{hint} > ").strip()
        if value:
            engine.update_appointment(**{field: value})

    engine.check_availability()
    printed = _flush(engine, printed)
    if engine.state.available_times:
        value = input(f"Time [{draft.time}] > ").strip()
        if value:
            engine.update_appointment(time=value)

    if input("Book it? [y/N] > ").strip().lower() == "y":
        engine.submit_appointment()
    else:
        engine.cancel_appointment()
        print("Booking cancelled.")
    return _flush(engine, printed)


def main() -> None:
    engine = ChatEngine()

    print("=" * 60)
    print("  Medisco Hospital Assistant  (type 'quit' to exit)")
    print("=" * 60)
    engine.start()
    printed = _flush(engine, 0)

    try:
        while True:
            try:
                msg = input("You > ").strip()
            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break

            if not msg:
                continue
            if msg.lower() in ("quit", "exit", "q"):
                print("Goodbye!")
                break
            if msg.startswith(":"):
                if engine.quick_action(msg[1:]) is None:
                    print("Quick actions: :call, :email, :directions")
            else:
                engine.respond(msg)
            printed = _flush(engine, printed)

            if engine.state.active_feature == FEATURE_APPOINTMENT:
                try:
                    printed = _booking_form(engine, printed)
                except (KeyboardInterrupt, EOFError):
                    engine.cancel_appointment()
                    print("\nBooking cancelled.")
    finally:
        engine.close()


if __name__ == "__main__":
    main()
