import logging

from flask import Blueprint, request, jsonify, current_app

from classes.attempt_manager import AttemptManager
from classes.errors import NotFound, ValidationError
from models import db
from models.courses import Course
from models.quizzes import Quiz
from models.quiz_questions import QuizQuestion
from models.quiz_results import QuizResult
from utils.helpers import validate_questions, validate_settings
from utils.utils import admin_required, current_user

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def _build_questions(quiz, questions):
    validate_questions(questions)
    quiz.questions = [
        QuizQuestion(
            question_type=q.get("question_type", "text"),
            question_text=q["question_text"],
            question_image=q.get("question_image"),
            question_formula=q.get("question_formula"),
            question_diagram=q.get("question_diagram"),
            options=[
                {"id": str(o["id"]), "text": o["text"], "image_url": o.get("image_url")}
                for o in q["options"]
            ],
            correct_answer=str(q["correct_answer"]),
            explanation=q.get("explanation", ""),
            marks=q.get("marks"),
            negative_marks=q.get("negative_marks"),
            order=q.get("order", index),
        )
        for index, q in enumerate(questions)
    ]


def _get_quiz(quiz_id):
    quiz = db.session.get(Quiz, quiz_id)
    if not quiz:
        raise NotFound("Quiz not found")
    return quiz


#Create a quiz
@admin_bp.route('/quizzes', methods=['POST'])
@admin_required
def create_quiz():
    data = request.get_json(silent=True) or {}

    title = (data.get("title") or "").strip()
    course_id = data.get("course_id")
    if not title or not course_id:
        raise ValidationError("title and course_id are required")

    course = db.session.get(Course, course_id)
    if not course:
        raise NotFound("Course not found")

    quiz = Quiz(
        title=title,
        description=data.get("description", ""),
        course_id=course.id,
        course_name=course.title,
        created_by=current_user()["id"],
        is_published=False,
        **validate_settings(data.get("settings", {})),
    )
    _build_questions(quiz, data.get("questions", []))

    db.session.add(quiz)
    db.session.commit()
    logger.info("Quiz %s '%s' created by admin %s", quiz.id, quiz.title, current_user()["id"])

    return jsonify({"success": True, "data": quiz.to_dict(include_questions=True, include_answers=True)}), 201


#Fetch All Quizzes
@admin_bp.route('/quizzes', methods=['GET'])
@admin_required
def get_all_quizzes():
    query = Quiz.query
    course_id = request.args.get("course_id", type=int)
    if course_id:
        query = query.filter_by(course_id=course_id)
    is_published = request.args.get("is_published")
    if is_published is not None:
        query = query.filter_by(is_published=is_published.lower() == "true")

    quizzes = query.order_by(Quiz.created_at.desc()).all()
    return jsonify({"success": True, "count": len(quizzes), "data": [q.to_dict() for q in quizzes]}), 200


#Fetch one single quiz, answers included
@admin_bp.route('/quizzes/<int:quiz_id>', methods=['GET'])
@admin_required
def get_quiz(quiz_id):
    quiz = _get_quiz(quiz_id)
    return jsonify({"success": True, "data": quiz.to_dict(include_questions=True, include_answers=True)}), 200


#Update a quiz; attempts already started keep their own snapshot
@admin_bp.route('/quizzes/<int:quiz_id>', methods=['PUT'])
@admin_required
def update_quiz(quiz_id):
    quiz = _get_quiz(quiz_id)
    data = request.get_json(silent=True) or {}

    if "title" in data:
        if not str(data["title"]).strip():
            raise ValidationError("title cannot be empty")
        quiz.title = str(data["title"]).strip()
    if "description" in data:
        quiz.description = data["description"] or ""
    for field, value in validate_settings(data.get("settings", {})).items():
        setattr(quiz, field, value)
    if "questions" in data:
        _build_questions(quiz, data["questions"])
        if quiz.is_published and not quiz.questions:
            raise ValidationError("A published quiz needs at least one question")

    db.session.commit()
    return jsonify({"success": True, "data": quiz.to_dict(include_questions=True, include_answers=True)}), 200


#Delete a quiz together with its attempts and results
@admin_bp.route('/quizzes/<int:quiz_id>', methods=['DELETE'])
@admin_required
def delete_quiz(quiz_id):
    quiz = _get_quiz(quiz_id)
    db.session.delete(quiz)
    db.session.commit()
    logger.info("Quiz %s deleted by admin %s", quiz_id, current_user()["id"])
    return jsonify({"success": True, "message": "Quiz deleted successfully"}), 200


#Publish / unpublish
@admin_bp.route('/quizzes/<int:quiz_id>/publish', methods=['POST'])
@admin_required
def publish_quiz(quiz_id):
    quiz = _get_quiz(quiz_id)
    data = request.get_json(silent=True) or {}
    is_published = bool(data.get("is_published", True))

    if is_published and not quiz.questions:
        raise ValidationError("Cannot publish quiz without questions")

    quiz.is_published = is_published
    db.session.commit()
    return jsonify({
        "success": True,
        "data": quiz.to_dict(),
        "message": f"Quiz {'published' if is_published else 'unpublished'} successfully",
    }), 200


#All student results for a quiz
@admin_bp.route('/quizzes/<int:quiz_id>/results', methods=['GET'])
@admin_required
def get_quiz_results(quiz_id):
    _get_quiz(quiz_id)
    results = (
        QuizResult.query
        .filter_by(quiz_id=quiz_id)
        .order_by(QuizResult.rank.asc(), QuizResult.id.asc())
        .all()
    )

    count = len(results)
    stats = {
        "total_attempts": count,
        "average_score": sum(r.marks_obtained for r in results) / count if count else 0,
        "average_percentage": sum(r.percentage for r in results) / count if count else 0,
        "highest_score": max((r.marks_obtained for r in results), default=0),
        "lowest_score": min((r.marks_obtained for r in results), default=0),
        "pass_rate": sum(1 for r in results if r.is_passed) / count * 100 if count else 0,
    }

    return jsonify({
        "success": True,
        "count": count,
        "stats": stats,
        "data": [r.to_dict(include_breakdown=False) for r in results],
    }), 200


#Close attempts nobody came back to
@admin_bp.route('/attempts/abandon-stale', methods=['POST'])
@admin_required
def abandon_stale_attempts():
    data = request.get_json(silent=True) or {}
    minutes = data.get("older_than_minutes", current_app.config["QUIZ_STALE_ATTEMPT_MINUTES"])
    try:
        minutes = int(minutes)
    except (TypeError, ValueError):
        raise ValidationError("older_than_minutes must be an integer")

    abandoned = AttemptManager.abandon_stale(minutes)
    return jsonify({"success": True, "abandoned": abandoned}), 200
