import logging
import random
import secrets
from datetime import timedelta

from sqlalchemy.exc import IntegrityError

from classes.errors import (
    AlreadySubmitted,
    AttemptExpired,
    AttemptLimitExceeded,
    Forbidden,
    InvalidAnswer,
    NotFound,
)
from classes.leaderboard import LeaderboardManager
from classes.scoring import score_answers
from models import db
from models.courses import Course
from models.enrolments import Enrolment
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.quiz_results import QuizResult
from models.quizzes import Quiz
from utils.helpers import utc_now
from utils.notifications import notify

logger = logging.getLogger(__name__)


class AttemptManager:
    """State machine for timed quiz attempts.

    in-progress -> completed   submit before the deadline
    in-progress -> expired     deadline passed (submit, or detected on another call)
    in-progress -> abandoned   administrative cleanup of stale sessions

    Terminal states are never left. A Result is created exactly once, by
    whichever request wins the conditional status update. An abandoned
    attempt still gets a Result when it is submitted late; it stays abandoned.
    """

    # ------------------------------------------------------------------ lookups

    @staticmethod
    def get_quiz(quiz_id):
        quiz = db.session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz

    @staticmethod
    def get_attempt(attempt_id, user_id, role=None, lock=False):
        query = QuizAttempt.query.filter_by(id=attempt_id)
        if lock:
            query = query.with_for_update()
        attempt = query.first()
        if not attempt:
            raise NotFound("Attempt not found")
        if attempt.student_id != user_id and role != "admin":
            raise Forbidden("You do not have access to this attempt")
        return attempt

    @staticmethod
    def find_in_progress(quiz_id, student_id):
        return QuizAttempt.query.filter_by(
            quiz_id=quiz_id, student_id=student_id, status=QuizAttempt.STATUS_IN_PROGRESS
        ).first()

    @staticmethod
    def is_enrolled(student_id, course_id):
        course = db.session.get(Course, course_id)
        if not course:
            return False
        if course.is_free:
            return True
        return Enrolment.query.filter_by(
            student_id=student_id, course_id=course_id, status=Enrolment.STATUS_PAID
        ).first() is not None

    @staticmethod
    def graded_attempt_count(quiz_id, student_id):
        return QuizResult.query.filter_by(quiz_id=quiz_id, student_id=student_id).count()

    @staticmethod
    def can_attempt(quiz, student_id):
        graded = AttemptManager.graded_attempt_count(quiz.id, student_id)
        if not quiz.allow_retake:
            return graded == 0
        return graded < quiz.max_attempts

    @staticmethod
    def check_attempt_budget(quiz, student_id):
        graded = AttemptManager.graded_attempt_count(quiz.id, student_id)
        if not quiz.allow_retake and graded > 0:
            raise AttemptLimitExceeded("You have already attempted this quiz")
        if graded >= quiz.max_attempts:
            raise AttemptLimitExceeded(f"Maximum attempts ({quiz.max_attempts}) reached")

    @staticmethod
    def check_access(quiz, student_id):
        if not quiz.is_published:
            raise Forbidden("Quiz is not published yet")
        if not AttemptManager.is_enrolled(student_id, quiz.course_id):
            raise Forbidden("You must be enrolled in the course to access this quiz")

    # ------------------------------------------------------------------ preview

    @staticmethod
    def preview(quiz_id, student_id, now=None):
        now = now or utc_now()
        quiz = AttemptManager.get_quiz(quiz_id)
        AttemptManager.check_access(quiz, student_id)

        in_progress = AttemptManager.find_in_progress(quiz.id, student_id)
        if in_progress and in_progress.is_past_deadline(now):
            AttemptManager.finalize(in_progress, auto=True, now=now)
            in_progress = None

        attempts = QuizAttempt.query.filter_by(quiz_id=quiz.id, student_id=student_id).count()
        results = (
            QuizResult.query
            .filter_by(quiz_id=quiz.id, student_id=student_id)
            .order_by(QuizResult.submitted_at.desc())
            .all()
        )

        return {
            "quiz": quiz.to_dict(),
            "attempts": attempts,
            "completed_attempts": len(results),
            "can_attempt": in_progress is not None or AttemptManager.can_attempt(quiz, student_id),
            "in_progress_attempt_id": in_progress.id if in_progress else None,
            "previous_results": [
                result.to_dict(include_breakdown=quiz.show_results_immediately) for result in results
            ],
        }

    # ------------------------------------------------------------------ start

    @staticmethod
    def build_snapshot(quiz):
        return {
            "quiz_title": quiz.title,
            "course_id": quiz.course_id,
            "course_name": quiz.course_name,
            "settings": quiz.settings,
            "questions": [question.to_snapshot() for question in quiz.questions],
        }

    @staticmethod
    def start_attempt(quiz_id, student, ip_address=None, user_agent=None, now=None):
        """Create an attempt, or resume the open one. Returns (attempt, created)."""
        now = now or utc_now()
        quiz = AttemptManager.get_quiz(quiz_id)
        AttemptManager.check_access(quiz, student.id)

        existing = AttemptManager.find_in_progress(quiz.id, student.id)
        if existing:
            if not existing.is_past_deadline(now):
                logger.info("Resuming attempt %s for student %s", existing.id, student.id)
                return existing, False
            AttemptManager.finalize(existing, auto=True, now=now)

        AttemptManager.check_attempt_budget(quiz, student.id)

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            student_id=student.id,
            student_name=student.full_name,
            student_email=student.email,
            status=QuizAttempt.STATUS_IN_PROGRESS,
            active_key=QuizAttempt.make_active_key(quiz.id, student.id),
            started_at=now,
            shuffle_seed=secrets.randbits(48),
            questions_snapshot=AttemptManager.build_snapshot(quiz),
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
        )
        db.session.add(attempt)
        try:
            db.session.commit()
        except IntegrityError:
            # a concurrent start won the active_key; hand back its attempt
            db.session.rollback()
            existing = AttemptManager.find_in_progress(quiz.id, student.id)
            if existing is None:
                raise
            return existing, False

        logger.info("Quiz attempt %s started: quiz %s by student %s", attempt.id, quiz.id, student.id)
        return attempt, True

    @staticmethod
    def present_questions(attempt):
        """Question set for the student: correct answers withheld, shuffled per attempt."""
        settings = attempt.settings
        questions = []
        for question in attempt.snapshot_questions:
            questions.append({
                "id": question["id"],
                "question_type": question["question_type"],
                "question_text": question["question_text"],
                "question_image": question.get("question_image"),
                "question_formula": question.get("question_formula"),
                "question_diagram": question.get("question_diagram"),
                "options": [dict(option) for option in question["options"]],
                "marks": question.get("marks"),
                "order": question.get("order", 0),
            })

        if settings.get("shuffle_questions"):
            random.Random(attempt.shuffle_seed).shuffle(questions)
        if settings.get("shuffle_options"):
            for question in questions:
                random.Random(f"{attempt.shuffle_seed}:{question['id']}").shuffle(question["options"])
        return questions

    @staticmethod
    def attempt_payload(attempt, now=None):
        now = now or utc_now()
        snapshot = attempt.questions_snapshot
        return {
            "attempt_id": attempt.id,
            "status": attempt.status,
            "started_at": attempt.started_at.isoformat(),
            "expires_at": attempt.deadline.isoformat(),
            "time_remaining": attempt.seconds_remaining(now),
            "answers": {str(k): v for k, v in attempt.answer_map.items()},
            "quiz": {
                "id": attempt.quiz_id,
                "title": snapshot["quiz_title"],
                "course_id": snapshot["course_id"],
                "course_name": snapshot["course_name"],
                "settings": attempt.settings,
                "total_questions": len(attempt.snapshot_questions),
                "questions": AttemptManager.present_questions(attempt),
            },
        }

    # ------------------------------------------------------------------ answers

    @staticmethod
    def save_answer(attempt_id, user_id, question_id, option_id, now=None):
        now = now or utc_now()
        attempt = AttemptManager.get_attempt(attempt_id, user_id, lock=True)

        if attempt.status in (QuizAttempt.STATUS_EXPIRED, QuizAttempt.STATUS_ABANDONED):
            db.session.rollback()
            raise AttemptExpired("Time limit exceeded; your answer was not saved")
        if attempt.status != QuizAttempt.STATUS_IN_PROGRESS:
            db.session.rollback()
            raise AlreadySubmitted("Cannot modify a submitted attempt")

        if attempt.is_past_deadline(now):
            AttemptManager.finalize(attempt, auto=True, now=now)
            raise AttemptExpired("Time limit exceeded; your answer was not saved and the attempt was submitted")

        question = next((q for q in attempt.snapshot_questions if q["id"] == question_id), None)
        if question is None:
            db.session.rollback()
            raise NotFound("Question not found in this quiz")
        option_id = str(option_id)
        if option_id not in {str(option["id"]) for option in question["options"]}:
            db.session.rollback()
            raise InvalidAnswer("Selected option does not belong to this question")

        AttemptManager._upsert_answer(attempt, question_id, option_id)
        logger.debug("Attempt %s: question %s -> %s", attempt.id, question_id, option_id)
        return attempt

    @staticmethod
    def _upsert_answer(attempt, question_id, option_id):
        answer = QuizAttemptAnswer.query.filter_by(attempt_id=attempt.id, question_id=question_id).first()
        if answer:
            answer.selected_answer = option_id
        else:
            db.session.add(QuizAttemptAnswer(attempt_id=attempt.id, question_id=question_id, selected_answer=option_id))
        try:
            db.session.commit()
        except IntegrityError:
            # concurrent first save of the same question; last write wins
            db.session.rollback()
            QuizAttemptAnswer.query.filter_by(attempt_id=attempt.id, question_id=question_id).update(
                {"selected_answer": option_id}, synchronize_session=False
            )
            db.session.commit()

    # ------------------------------------------------------------------ submit

    @staticmethod
    def submit(attempt_id, user_id, auto=False, now=None):
        """Close the attempt and return its Result. Safe to retry."""
        attempt = AttemptManager.get_attempt(attempt_id, user_id)
        if attempt.result is not None:
            return attempt.result
        return AttemptManager.finalize(attempt, auto=auto, now=now)

    @staticmethod
    def finalize(attempt, auto=False, now=None):
        """Claim the in-progress -> terminal transition, score and persist the Result."""
        now = now or utc_now()
        expired = attempt.is_past_deadline(now)
        status = QuizAttempt.STATUS_EXPIRED if expired else QuizAttempt.STATUS_COMPLETED

        claimed = (
            QuizAttempt.query
            .filter_by(id=attempt.id, status=QuizAttempt.STATUS_IN_PROGRESS)
            .update(
                {"status": status, "submitted_at": now, "active_key": None, "auto_submitted": bool(auto)},
                synchronize_session=False,
            )
        )
        if claimed != 1:
            db.session.rollback()
            return AttemptManager._existing_result(attempt, auto=auto, now=now)
        return AttemptManager._record_result(attempt, status, auto, now)

    @staticmethod
    def _grade_abandoned(attempt, auto, now):
        """Late submit of an abandoned attempt: graded on its saved answers, status unchanged."""
        claimed = (
            QuizAttempt.query
            .filter_by(id=attempt.id, status=QuizAttempt.STATUS_ABANDONED)
            .filter(QuizAttempt.submitted_at.is_(None))
            .update({"submitted_at": now, "auto_submitted": bool(auto)}, synchronize_session=False)
        )
        if claimed != 1:
            db.session.rollback()
            return AttemptManager._existing_result(attempt)
        return AttemptManager._record_result(attempt, QuizAttempt.STATUS_ABANDONED, auto, now)

    @staticmethod
    def _record_result(attempt, status, auto, now):
        db.session.expire(attempt)
        try:
            sheet = score_answers(
                attempt.snapshot_questions,
                attempt.answer_map,
                attempt.settings,
                attempt.started_at,
                now,
            )
        except Exception:
            db.session.rollback()
            raise

        if status != QuizAttempt.STATUS_COMPLETED:
            sheet.time_taken = min(sheet.time_taken, attempt.settings["time_limit"] * 60)
        attempt.time_taken = sheet.time_taken

        snapshot = attempt.questions_snapshot
        result = QuizResult(
            attempt_id=attempt.id,
            quiz_id=attempt.quiz_id,
            quiz_title=snapshot["quiz_title"],
            course_id=snapshot["course_id"],
            course_name=snapshot["course_name"],
            student_id=attempt.student_id,
            student_name=attempt.student_name,
            student_email=attempt.student_email,
            submitted_at=now,
            evaluated_at=utc_now(),
            **sheet.to_result_fields(),
        )
        db.session.add(result)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return AttemptManager._existing_result(attempt)

        logger.info(
            "Attempt %s %s%s: %s/%s marks (%s%%)",
            attempt.id, status, " (auto)" if auto else "",
            result.marks_obtained, result.total_marks, result.percentage,
        )

        LeaderboardManager.recompute_ranks(attempt.quiz_id)
        notify(
            attempt.student_id,
            "Quiz submitted",
            f"You scored {result.marks_obtained}/{result.total_marks} ({result.percentage}%) in {result.quiz_title}.",
            link=f"/quizzes/{attempt.quiz_id}/result/{attempt.id}",
            type="success" if result.is_passed else "info",
        )
        return result

    @staticmethod
    def get_result(attempt_id, user_id, role=None):
        result = QuizResult.query.filter_by(attempt_id=attempt_id).first()
        if not result:
            raise NotFound("Result not found")
        if result.student_id != user_id and role != "admin":
            raise Forbidden("You do not have access to this result")
        return result

    @staticmethod
    def _existing_result(attempt, auto=False, now=None):
        result = QuizResult.query.filter_by(attempt_id=attempt.id).first()
        if result is not None:
            return result
        db.session.refresh(attempt)
        if attempt.status == QuizAttempt.STATUS_ABANDONED and attempt.submitted_at is None:
            return AttemptManager._grade_abandoned(attempt, auto, now or utc_now())
        raise AlreadySubmitted("Attempt already submitted")

    # ------------------------------------------------------------------ cleanup

    @staticmethod
    def abandon_stale(older_than_minutes, now=None):
        """Mark in-progress attempts whose deadline passed long ago as abandoned."""
        now = now or utc_now()
        grace = timedelta(minutes=older_than_minutes)
        candidates = (
            QuizAttempt.query
            .filter(QuizAttempt.status == QuizAttempt.STATUS_IN_PROGRESS)
            .filter(QuizAttempt.started_at < now - grace)
            .all()
        )

        abandoned = 0
        for attempt in candidates:
            if attempt.deadline + grace > now:
                continue
            abandoned += (
                QuizAttempt.query
                .filter_by(id=attempt.id, status=QuizAttempt.STATUS_IN_PROGRESS)
                .update(
                    {"status": QuizAttempt.STATUS_ABANDONED, "active_key": None},
                    synchronize_session=False,
                )
            )
        db.session.commit()
        if abandoned:
            logger.info("Marked %d stale attempts as abandoned", abandoned)
        return abandoned
