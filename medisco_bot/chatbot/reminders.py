"""User reminders: storage plus a once-a-minute wall-clock check."""

from __future__ import annotations

import os
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler

from medisco_bot.chatbot.state import Reminder
from medisco_bot.common.logging import get_logger
from medisco_bot.common.time import clock_hm

log = get_logger("reminders")

REMINDER_INTERVAL_SECONDS = int(os.environ.get("REMINDER_INTERVAL_SECONDS", "60"))


class ReminderScheduler:
    """Holds reminders and fires ``on_fire(text)`` when their minute comes up.

    Reminders recur daily and fire at most once per matching minute, however
    many ticks land inside it.
    """

    def __init__(
        self,
        reminders: List[Reminder],
        on_fire: Callable[[str], None],
        interval_seconds: int = REMINDER_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.reminders = reminders
        self.on_fire = on_fire
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._fired: Dict[int, Tuple[str, str]] = {}
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    def add(self, message: str, time: str) -> Reminder:
        reminder = Reminder(message=message, time=time)
        with self._lock:
            self.reminders.append(reminder)
        log.info("reminder set for %s: %s", time, message)
        return reminder

    def tick(self, now: Optional[datetime] = None) -> List[str]:
        """Fire every reminder due at *now*; returns the emitted texts."""
        now = now or self.clock()
        current = clock_hm(now)
        stamp = (now.date().isoformat(), current)
        due: List[str] = []
        with self._lock:
            for i, reminder in enumerate(self.reminders):
                if reminder.time != current or self._fired.get(i) == stamp:
                    continue
                self._fired[i] = stamp
                due.append(f"⏰ Reminder: {reminder.message}")
        for text in due:
            self.on_fire(text)
        return due

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        if self._scheduler is not None:
            return
        scheduler = BackgroundScheduler(daemon=True)
        scheduler.add_job(self.tick, "interval", seconds=self.interval_seconds, id="reminders")
        scheduler.start()
        self._scheduler = scheduler
        log.debug("reminder check every %ss", self.interval_seconds)

    def stop(self) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
