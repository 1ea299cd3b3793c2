from models import db
from utils.helpers import format_iso


class QuizResult(db.Model):
    __tablename__ = "quiz_results"
    __table_args__ = (
        db.Index("ix_quiz_results_leaderboard", "quiz_id", "marks_obtained", "time_taken"),
    )

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey("quiz_attempts.id"), nullable=False, unique=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False, index=True)
    quiz_title = db.Column(db.String(255), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    course_name = db.Column(db.String(255), nullable=False)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    student_name = db.Column(db.String(100), nullable=False)
    student_email = db.Column(db.String(100), nullable=False)

    total_questions = db.Column(db.Integer, nullable=False)
    correct_answers = db.Column(db.Integer, nullable=False, default=0)
    incorrect_answers = db.Column(db.Integer, nullable=False, default=0)
    unanswered_questions = db.Column(db.Integer, nullable=False, default=0)
    total_marks = db.Column(db.Float, nullable=False)
    marks_obtained = db.Column(db.Float, nullable=False)
    percentage = db.Column(db.Float, nullable=False)
    is_passed = db.Column(db.Boolean, nullable=False)
    time_taken = db.Column(db.Integer, nullable=False)
    rank = db.Column(db.Integer, nullable=True)
    question_results = db.Column(db.JSON, nullable=False)
    feedback = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=False)
    evaluated_at = db.Column(db.DateTime, nullable=False)

    attempt = db.relationship("QuizAttempt", back_populates="result")

    def to_dict(self, include_breakdown=True):
        data = {
            "id": self.id,
            "attempt_id": self.attempt_id,
            "quiz_id": self.quiz_id,
            "quiz_title": self.quiz_title,
            "course_id": self.course_id,
            "course_name": self.course_name,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "incorrect_answers": self.incorrect_answers,
            "unanswered_questions": self.unanswered_questions,
            "total_marks": self.total_marks,
            "marks_obtained": self.marks_obtained,
            "percentage": self.percentage,
            "is_passed": self.is_passed,
            "time_taken": self.time_taken,
            "rank": self.rank,
            "feedback": self.feedback,
            "submitted_at": format_iso(self.submitted_at),
            "evaluated_at": format_iso(self.evaluated_at),
        }
        if include_breakdown:
            data["question_results"] = self.question_results
        return data
