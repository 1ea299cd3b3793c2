from models import db
from utils.helpers import format_iso


class Quiz(db.Model):
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    course_id = db.Column(db.Integer, db.ForeignKey("courses.id"), nullable=False)
    course_name = db.Column(db.String(255), nullable=False)

    # settings
    marks_per_question = db.Column(db.Float, nullable=False, default=1)
    negative_marking = db.Column(db.Float, nullable=False, default=0)
    time_limit = db.Column(db.Integer, nullable=False, default=30)  # minutes
    passing_percentage = db.Column(db.Float, nullable=True, default=40.0)
    shuffle_questions = db.Column(db.Boolean, nullable=False, default=False)
    shuffle_options = db.Column(db.Boolean, nullable=False, default=False)
    show_results_immediately = db.Column(db.Boolean, nullable=False, default=True)
    allow_retake = db.Column(db.Boolean, nullable=False, default=False)
    max_attempts = db.Column(db.Integer, nullable=False, default=1)

    is_published = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)
    updated_at = db.Column(db.DateTime, default=db.func.now(), onupdate=db.func.now(), nullable=False)

    course = db.relationship("Course", back_populates="quizzes")
    questions = db.relationship(
        "QuizQuestion",
        back_populates="quiz",
        cascade="all, delete-orphan",
        order_by="QuizQuestion.order, QuizQuestion.id",
    )

    SETTINGS_FIELDS = (
        "marks_per_question",
        "negative_marking",
        "time_limit",
        "passing_percentage",
        "shuffle_questions",
        "shuffle_options",
        "show_results_immediately",
        "allow_retake",
        "max_attempts",
    )

    @property
    def total_questions(self):
        """Dynamically count total questions without storing in the database"""
        return len(self.questions)

    @property
    def settings(self):
        return {field: getattr(self, field) for field in self.SETTINGS_FIELDS}

    def __repr__(self):
        return f"<Quiz {self.title}>"

    def to_dict(self, include_questions=False, include_answers=False):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "course_id": self.course_id,
            "course_name": self.course_name,
            "total_questions": self.total_questions,
            "settings": self.settings,
            "is_published": self.is_published,
            "created_by": self.created_by,
            "created_at": format_iso(self.created_at),
            "updated_at": format_iso(self.updated_at),
        }
        if include_questions:
            data["questions"] = [q.to_dict(include_answer=include_answers) for q in self.questions]
        return data

from .quiz_questions import QuizQuestion
