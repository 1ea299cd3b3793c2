from models import db


class QuizQuestion(db.Model):
    __tablename__ = "quiz_questions"

    QUESTION_TYPES = ("text", "image", "formula", "diagram")

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False)
    question_type = db.Column(db.String(20), nullable=False, default="text")
    question_text = db.Column(db.Text, nullable=False)
    question_image = db.Column(db.String(255), nullable=True)
    question_formula = db.Column(db.Text, nullable=True)
    question_diagram = db.Column(db.String(255), nullable=True)
    options = db.Column(db.JSON, nullable=False)  # [{"id": "a", "text": "...", "image_url": None}]
    correct_answer = db.Column(db.String(64), nullable=False)
    explanation = db.Column(db.Text, nullable=False, default="")
    marks = db.Column(db.Float, nullable=True)
    negative_marks = db.Column(db.Float, nullable=True)
    order = db.Column(db.Integer, nullable=False, default=0)

    quiz = db.relationship("Quiz", back_populates="questions")

    def to_snapshot(self):
        """Frozen copy stored on an attempt when it starts."""
        return {
            "id": self.id,
            "question_type": self.question_type,
            "question_text": self.question_text,
            "question_image": self.question_image,
            "question_formula": self.question_formula,
            "question_diagram": self.question_diagram,
            "options": [dict(option) for option in self.options],
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "marks": self.marks,
            "negative_marks": self.negative_marks,
            "order": self.order,
        }

    def to_dict(self, include_answer=False):
        data = self.to_snapshot()
        if not include_answer:
            for key in ("correct_answer", "explanation", "negative_marks"):
                data.pop(key)
        return data
