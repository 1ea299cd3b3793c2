from datetime import timedelta
from models import db
from utils.helpers import format_iso


class QuizAttempt(db.Model):
    __tablename__ = "quiz_attempts"

    STATUS_IN_PROGRESS = "in-progress"
    STATUS_COMPLETED = "completed"
    STATUS_ABANDONED = "abandoned"
    STATUS_EXPIRED = "expired"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    student_name = db.Column(db.String(100), nullable=False)
    student_email = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_IN_PROGRESS, index=True)
    # "<quiz_id>:<student_id>" while in progress, NULL once terminal
    active_key = db.Column(db.String(64), nullable=True, unique=True)
    started_at = db.Column(db.DateTime, nullable=False)
    submitted_at = db.Column(db.DateTime, nullable=True)
    time_taken = db.Column(db.Integer, nullable=True)  # seconds
    auto_submitted = db.Column(db.Boolean, nullable=False, default=False)
    shuffle_seed = db.Column(db.BigInteger, nullable=False, default=0)
    questions_snapshot = db.Column(db.JSON, nullable=False)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    quiz = db.relationship("Quiz", backref=db.backref("attempts", lazy=True, cascade="all, delete-orphan"))
    student = db.relationship("User", backref=db.backref("quiz_attempts", lazy=True))
    answers = db.relationship("QuizAttemptAnswer", back_populates="attempt", lazy=True, cascade="all, delete-orphan")
    result = db.relationship("QuizResult", uselist=False, back_populates="attempt", cascade="all, delete-orphan")

    @staticmethod
    def make_active_key(quiz_id, student_id):
        return f"{quiz_id}:{student_id}"

    @property
    def settings(self):
        return self.questions_snapshot["settings"]

    @property
    def snapshot_questions(self):
        return self.questions_snapshot["questions"]

    @property
    def deadline(self):
        return self.started_at + timedelta(minutes=self.settings["time_limit"])

    def is_past_deadline(self, now):
        return now >= self.deadline

    def seconds_remaining(self, now):
        return max(0, int((self.deadline - now).total_seconds()))

    @property
    def answer_map(self):
        """Sparse question_id -> selected option id map."""
        return {answer.question_id: answer.selected_answer for answer in self.answers}

    def __repr__(self):
        return f"<QuizAttempt {self.id} quiz={self.quiz_id} student={self.student_id} {self.status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "quiz_id": self.quiz_id,
            "student_id": self.student_id,
            "student_name": self.student_name,
            "status": self.status,
            "started_at": format_iso(self.started_at),
            "submitted_at": format_iso(self.submitted_at),
            "expires_at": format_iso(self.deadline),
            "time_taken": self.time_taken,
            "auto_submitted": self.auto_submitted,
            "answers": {str(k): v for k, v in self.answer_map.items()},
        }
