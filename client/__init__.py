"""Client-side helpers that mirror the browser's quiz timer and answer cache."""

from client.api_client import QuizApiClient, QuizApiError
from client.quiz_timer import AnswerCache, QuizSession, QuizTimer, format_time_remaining

__all__ = [
    "AnswerCache",
    "QuizApiClient",
    "QuizApiError",
    "QuizSession",
    "QuizTimer",
    "format_time_remaining",
]
