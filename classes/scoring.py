"""Scoring engine for quiz attempts.

Everything here is a pure function of the question set an attempt was started
with, the final answer map and the quiz settings. Nothing touches the
database, so a submit can be re-scored and will always give the same numbers.
"""

import logging
import math
from dataclasses import dataclass, field

from classes.errors import QuizDataError

logger = logging.getLogger(__name__)

DEFAULT_PASSING_PERCENTAGE = 40.0

FEEDBACK_BANDS = (
    (90, "Outstanding! You have demonstrated excellent understanding of the material."),
    (75, "Great job! You have a strong grasp of the concepts."),
    (60, "Good effort! Review the explanations to strengthen your understanding."),
    (40, "Keep practicing! Focus on the topics where you struggled."),
)
FALLBACK_FEEDBACK = "More practice needed. Please review the course material and try again."


@dataclass(slots=True)
class QuestionOutcome:
    """Graded outcome of one question."""

    question_id: int
    question_text: str
    selected_answer: str
    correct_answer: str
    is_correct: bool
    marks_awarded: float
    explanation: str

    def to_dict(self):
        return {
            "question_id": self.question_id,
            "question_text": self.question_text,
            "selected_answer": self.selected_answer,
            "correct_answer": self.correct_answer,
            "is_correct": self.is_correct,
            "marks_awarded": self.marks_awarded,
            "explanation": self.explanation,
        }


@dataclass(slots=True)
class ScoreSheet:
    """Aggregate score for one attempt."""

    total_questions: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    unanswered_questions: int = 0
    total_marks: float = 0.0
    marks_obtained: float = 0.0
    percentage: float = 0.0
    is_passed: bool = False
    time_taken: int = 0
    feedback: str = FALLBACK_FEEDBACK
    outcomes: list[QuestionOutcome] = field(default_factory=list)

    def to_result_fields(self):
        return {
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "incorrect_answers": self.incorrect_answers,
            "unanswered_questions": self.unanswered_questions,
            "total_marks": self.total_marks,
            "marks_obtained": self.marks_obtained,
            "percentage": self.percentage,
            "is_passed": self.is_passed,
            "time_taken": self.time_taken,
            "feedback": self.feedback,
            "question_results": [outcome.to_dict() for outcome in self.outcomes],
        }


def feedback_for(percentage):
    """Feedback text for a percentage; each band includes its lower edge."""
    for threshold, message in FEEDBACK_BANDS:
        if percentage >= threshold:
            return message
    return FALLBACK_FEEDBACK


def elapsed_seconds(started_at, submitted_at):
    return max(0, math.floor((submitted_at - started_at).total_seconds()))


def question_marks(question, settings):
    marks = question.get("marks")
    return float(marks if marks is not None else settings.get("marks_per_question") or 0)


def question_penalty(question, settings):
    penalty = question.get("negative_marks")
    if penalty is None:
        penalty = settings.get("negative_marking") or 0
    return abs(float(penalty))


def _check_question(question):
    option_ids = {str(option["id"]) for option in question.get("options") or []}
    if str(question.get("correct_answer")) not in option_ids:
        logger.error(
            "Question %s has correct answer %r outside its options %s",
            question.get("id"), question.get("correct_answer"), sorted(option_ids),
        )
        raise QuizDataError(f"Question {question.get('id')} has no valid correct option")
    return option_ids


def score_answers(questions, answers, settings, started_at, submitted_at):
    """Grade a final answer map against a question set snapshot."""
    sheet = ScoreSheet(total_questions=len(questions))
    marks_obtained = 0.0

    for question in questions:
        _check_question(question)
        marks = question_marks(question, settings)
        sheet.total_marks += marks

        selected = answers.get(question["id"])
        correct = str(question["correct_answer"])

        if selected is None:
            sheet.unanswered_questions += 1
            awarded = 0.0
            is_correct = False
        elif str(selected) == correct:
            sheet.correct_answers += 1
            awarded = marks
            is_correct = True
        else:
            sheet.incorrect_answers += 1
            # one flat penalty per wrong answer, never compounded
            awarded = -question_penalty(question, settings)
            is_correct = False

        marks_obtained += awarded
        sheet.outcomes.append(
            QuestionOutcome(
                question_id=question["id"],
                question_text=question.get("question_text", ""),
                selected_answer="" if selected is None else str(selected),
                correct_answer=correct,
                is_correct=is_correct,
                marks_awarded=awarded,
                explanation=question.get("explanation") or "",
            )
        )

    sheet.total_marks = round(sheet.total_marks, 4)
    sheet.marks_obtained = round(marks_obtained, 4)
    raw_percentage = marks_obtained / sheet.total_marks * 100 if sheet.total_marks > 0 else 0.0
    sheet.percentage = round(raw_percentage, 2)

    passing = settings.get("passing_percentage")
    if passing is None:
        passing = DEFAULT_PASSING_PERCENTAGE
    # pass mark and feedback band are decided before rounding
    sheet.is_passed = raw_percentage >= passing
    sheet.time_taken = elapsed_seconds(started_at, submitted_at)
    sheet.feedback = feedback_for(raw_percentage)
    return sheet
