from flask import Blueprint, current_app, jsonify, request

from classes.attempt_manager import AttemptManager
from classes.errors import NotFound, ValidationError
from classes.leaderboard import LeaderboardManager
from models import db
from models.enrolments import Enrolment
from models.courses import Course
from models.quizzes import Quiz
from models.quiz_attempts import QuizAttempt
from models.quiz_results import QuizResult
from models.users import User
from utils.utils import login_required, current_user

# Students' quiz blueprint
quiz_bp = Blueprint("quizzes", __name__)


def _current_student():
    user = db.session.get(User, current_user()["id"])
    if not user:
        raise NotFound("User not found")
    return user


#                                                         QUIZZES
#_____________________________________________________________________________________________________________
#Fetch published quizzes for the student's courses
@quiz_bp.route("/available", methods=["GET"])
@login_required
def get_available_quizzes():
    student_id = current_user()["id"]

    paid_course_ids = [
        e.course_id for e in Enrolment.query.filter_by(student_id=student_id, status=Enrolment.STATUS_PAID).all()
    ]
    free_course_ids = [c.id for c in Course.query.filter_by(is_free=True).all()]
    course_ids = set(paid_course_ids) | set(free_course_ids)

    quizzes = (
        Quiz.query
        .filter(Quiz.course_id.in_(course_ids), Quiz.is_published.is_(True))
        .order_by(Quiz.created_at.desc())
        .all()
    ) if course_ids else []

    data = []
    for quiz in quizzes:
        attempts = QuizAttempt.query.filter_by(quiz_id=quiz.id, student_id=student_id).all()
        results = (
            QuizResult.query
            .filter_by(quiz_id=quiz.id, student_id=student_id)
            .order_by(QuizResult.submitted_at.asc())
            .all()
        )
        in_progress = next((a for a in attempts if a.status == QuizAttempt.STATUS_IN_PROGRESS), None)

        if in_progress:
            status = "in-progress"
        elif results:
            status = "completed"
        else:
            status = "not-attempted"

        data.append({
            **quiz.to_dict(),
            "attempt_count": len(attempts),
            "status": status,
            "last_score": results[-1].marks_obtained if results else None,
            "last_percentage": results[-1].percentage if results else None,
            "in_progress_attempt_id": in_progress.id if in_progress else None,
        })

    return jsonify({"success": True, "count": len(data), "data": data}), 200


#Preview quiz (rules, settings and previous results, no questions)
@quiz_bp.route("/<int:quiz_id>/preview", methods=["GET"])
@login_required
def preview_quiz(quiz_id):
    preview = AttemptManager.preview(quiz_id, current_user()["id"])
    return jsonify({"success": True, "data": preview}), 200


# Start (or resume) a Quiz Attempt
@quiz_bp.route("/<int:quiz_id>/start", methods=["POST"])
@login_required
def start_quiz(quiz_id):
    student = _current_student()

    attempt, created = AttemptManager.start_attempt(
        quiz_id,
        student,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )

    return jsonify({
        "success": True,
        "resumed": not created,
        "data": AttemptManager.attempt_payload(attempt),
    }), 201 if created else 200


#Save or update the answer for one question
@quiz_bp.route("/attempts/<int:attempt_id>/answer", methods=["PUT", "POST"])
@login_required
def save_answer(attempt_id):
    data = request.get_json(silent=True) or {}
    selected_answer = data.get("selected_answer", data.get("option_id"))

    try:
        question_id = int(data.get("question_id"))
    except (TypeError, ValueError):
        raise ValidationError("question_id must be an integer")
    if selected_answer is None or selected_answer == "":
        raise ValidationError("selected_answer is required")

    AttemptManager.save_answer(attempt_id, current_user()["id"], question_id, selected_answer)
    return jsonify({"success": True, "message": "Answer saved"}), 200


#Submit the attempt (manual, or auto-submit when the timer runs out)
@quiz_bp.route("/attempts/<int:attempt_id>/submit", methods=["POST"])
@login_required
def submit_quiz(attempt_id):
    data = request.get_json(silent=True) or {}
    auto = bool(data.get("auto", False))

    result = AttemptManager.submit(attempt_id, current_user()["id"], auto=auto)
    return jsonify({
        "success": True,
        "message": "Quiz submitted successfully",
        "result": result.to_dict(include_breakdown=_show_breakdown(result)),
    }), 200


#Get Quiz Result
@quiz_bp.route("/attempts/<int:attempt_id>/result", methods=["GET"])
@login_required
def get_quiz_result(attempt_id):
    user = current_user()
    result = AttemptManager.get_result(attempt_id, user["id"], user["role"])

    quiz = db.session.get(Quiz, result.quiz_id)
    show_breakdown = user["role"] == "admin" or _show_breakdown(result)

    return jsonify({
        "success": True,
        "result": result.to_dict(include_breakdown=show_breakdown),
        "quiz": {
            "title": quiz.title if quiz else result.quiz_title,
            "settings": quiz.settings if quiz else None,
        },
    }), 200


#Leaderboard for a quiz
@quiz_bp.route("/<int:quiz_id>/leaderboard", methods=["GET"])
@login_required
def get_leaderboard(quiz_id):
    AttemptManager.get_quiz(quiz_id)
    max_limit = current_app.config["QUIZ_LEADERBOARD_LIMIT"]
    limit = request.args.get("limit", max_limit, type=int)
    limit = min(max(limit, 1), max_limit)

    leaderboard = LeaderboardManager.get_leaderboard(quiz_id, limit=limit)
    return jsonify({"success": True, "count": len(leaderboard), "data": leaderboard}), 200


def _show_breakdown(result):
    quiz = db.session.get(Quiz, result.quiz_id)
    return quiz is None or quiz.show_results_immediately
