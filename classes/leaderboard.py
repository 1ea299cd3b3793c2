import logging
import threading
import weakref

from flask import current_app

from models import db
from models.quizzes import Quiz
from models.quiz_results import QuizResult

logger = logging.getLogger(__name__)

# entries disappear once no request holds the lock
_quiz_locks = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _lock_for(quiz_id):
    with _registry_lock:
        lock = _quiz_locks.get(quiz_id)
        if lock is None:
            lock = _quiz_locks[quiz_id] = threading.Lock()
        return lock


def ranking_key(result):
    """More marks first, then faster, then whoever submitted first."""
    return (-result.marks_obtained, result.time_taken, result.submitted_at, result.id)


class LeaderboardManager:
    @staticmethod
    def assign_ranks(results):
        """Sort results and give them sequential ranks 1..N (no shared ranks)."""
        ranked = sorted(results, key=ranking_key)
        for position, result in enumerate(ranked, start=1):
            result.rank = position
        return ranked

    @staticmethod
    def recompute_ranks(quiz_id):
        """Re-rank every result of a quiz. Single writer per quiz."""
        with _lock_for(quiz_id):
            try:
                # row lock on the quiz serialises writers running in other processes
                db.session.query(Quiz.id).filter(Quiz.id == quiz_id).with_for_update().first()
                results = QuizResult.query.filter_by(quiz_id=quiz_id).all()
                ranked = LeaderboardManager.assign_ranks(results)
                db.session.commit()
            except Exception:
                db.session.rollback()
                logger.exception("Rank recomputation failed for quiz %s", quiz_id)
                raise
        logger.debug("Re-ranked %d results for quiz %s", len(ranked), quiz_id)
        return ranked

    @staticmethod
    def get_leaderboard(quiz_id, limit=None):
        if limit is None:
            limit = current_app.config.get("QUIZ_LEADERBOARD_LIMIT", 100)

        results = (
            QuizResult.query
            .filter_by(quiz_id=quiz_id)
            .order_by(
                QuizResult.marks_obtained.desc(),
                QuizResult.time_taken.asc(),
                QuizResult.submitted_at.asc(),
                QuizResult.id.asc(),
            )
            .limit(limit)
            .all()
        )

        return [
            {
                "rank": result.rank or position,
                "student_id": result.student_id,
                "student_name": result.student_name,
                "marks_obtained": result.marks_obtained,
                "total_marks": result.total_marks,
                "percentage": result.percentage,
                "time_taken": result.time_taken,
                "attempt_date": result.submitted_at.isoformat(),
            }
            for position, result in enumerate(results, start=1)
        ]
