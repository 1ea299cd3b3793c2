from models import db


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    # free courses are open to every signed-in student
    is_free = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    enrolments = db.relationship("Enrolment", back_populates="course", cascade="all, delete-orphan")
    quizzes = db.relationship("Quiz", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course {self.title}>"

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "is_free": self.is_free,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
