"""Cooperative countdown and optimistic answer cache for a running attempt.

Everything runs on one thread: the timer only advances when ``tick`` is
called, either by ``run`` (one tick per second) or by a UI loop that owns the
clock. The server re-checks the deadline on every call, so the countdown here
is only for the student's benefit.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import requests

from client.api_client import QuizApiClient, QuizApiError

logger = logging.getLogger(__name__)


def format_time_remaining(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class QuizTimer:
    """One-second countdown that fires ``on_time_up`` exactly once."""

    def __init__(
        self,
        total_time: int,
        on_time_up: Callable[[], None] | None = None,
        time_remaining: int | None = None,
    ) -> None:
        self.total_time = int(total_time)
        self.time_remaining = self.total_time if time_remaining is None else max(0, int(time_remaining))
        self.on_time_up = on_time_up
        self.running = False
        self._fired = False

    @classmethod
    def from_minutes(cls, time_limit: int, on_time_up: Callable[[], None] | None = None) -> "QuizTimer":
        return cls(time_limit * 60, on_time_up=on_time_up)

    @property
    def expired(self) -> bool:
        return self._fired

    @property
    def percentage_remaining(self) -> float:
        if self.total_time <= 0:
            return 0.0
        return self.time_remaining / self.total_time * 100

    @property
    def show_warning(self) -> bool:
        return self.percentage_remaining <= 10

    def start(self) -> None:
        if self._fired:
            return
        self.running = True
        if self.time_remaining <= 0:
            self._fire()

    def stop(self) -> None:
        self.running = False

    def tick(self) -> None:
        if not self.running:
            return
        self.time_remaining = max(0, self.time_remaining - 1)
        if self.time_remaining == 0:
            self._fire()

    def run(self, sleep: Callable[[float], None] = time.sleep) -> None:
        while self.running:
            sleep(1)
            self.tick()

    def _fire(self) -> None:
        self.running = False
        if self._fired:
            return
        self._fired = True
        if self.on_time_up is not None:
            self.on_time_up()


class AnswerCache:
    """Local answer map, updated before the server hears about it."""

    def __init__(self, answers: dict[int, str] | None = None) -> None:
        self.answers: dict[int, str] = dict(answers or {})
        self.warnings: list[str] = []

    def get(self, question_id: int) -> str | None:
        return self.answers.get(question_id)

    def select(self, question_id: int, option_id: str, persist: Callable[[], None]) -> bool:
        """Record a selection locally, then persist it. Returns False if the persist failed."""
        self.answers[question_id] = option_id
        try:
            persist()
        except (QuizApiError, requests.RequestException) as error:
            # the local selection stays; the server keeps its last saved answer
            message = f"Your answer to question {question_id} was not saved: {error}"
            self.warnings.append(message)
            logger.warning(message)
            return False
        return True


class QuizSession:
    """Drives one attempt from the client side: start, answer, submit."""

    def __init__(self, api: QuizApiClient, quiz_id: int) -> None:
        self.api = api
        self.quiz_id = quiz_id
        self.attempt_id: int | None = None
        self.quiz: dict | None = None
        self.timer: QuizTimer | None = None
        self.cache = AnswerCache()
        self.result: dict | None = None
        self._submitting = False

    def start(self) -> dict:
        payload = self.api.start(self.quiz_id)
        self.attempt_id = payload["attempt_id"]
        self.quiz = payload["quiz"]
        self.cache = AnswerCache({int(k): v for k, v in payload.get("answers", {}).items()})
        self.timer = QuizTimer(
            self.quiz["settings"]["time_limit"] * 60,
            on_time_up=self._on_time_up,
            time_remaining=payload.get("time_remaining"),
        )
        self.timer.start()
        return payload

    def select_answer(self, question_id: int, option_id: str) -> bool:
        if self.attempt_id is None:
            raise RuntimeError("Attempt has not been started")
        return self.cache.select(
            question_id,
            option_id,
            lambda: self.api.save_answer(self.attempt_id, question_id, option_id),
        )

    def submit(self, auto: bool = False) -> dict | None:
        if self.result is not None or self._submitting:
            return self.result
        if self.attempt_id is None:
            raise RuntimeError("Attempt has not been started")

        self._submitting = True
        if self.timer is not None:
            self.timer.stop()
        try:
            self.result = self.api.submit(self.attempt_id, auto=auto)
        except (QuizApiError, requests.RequestException):
            if not auto and self.timer is not None:
                self.timer.start()
            raise
        finally:
            self._submitting = False
        return self.result

    def run(self, sleep: Callable[[float], None] = time.sleep) -> dict | None:
        """Block until the student submits or the timer runs out."""
        if self.timer is not None:
            self.timer.run(sleep)
        return self.result

    def _on_time_up(self) -> None:
        logger.info("Time is up! Submitting attempt %s", self.attempt_id)
        for retry in (False, True):
            try:
                self.submit(auto=True)
                return
            except (QuizApiError, requests.RequestException) as error:
                logger.warning("Auto-submit of attempt %s failed", self.attempt_id, exc_info=True)
                if retry:
                    self.cache.warnings.append(
                        f"Your quiz could not be submitted automatically: {error}. Please submit it again."
                    )
