from models import db


class Enrolment(db.Model):
    __tablename__ = 'enrolments'
    __table_args__ = (
        db.UniqueConstraint("student_id", "course_id", name="uq_enrolment_student_course"),
    )

    STATUS_PENDING = "pending"
    STATUS_PAID = "paid"
    STATUS_FAILED = "failed"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    course_id = db.Column(db.Integer, db.ForeignKey('courses.id'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default=STATUS_PENDING)
    enrolled_at = db.Column(db.DateTime, default=db.func.now(), nullable=False)

    student = db.relationship("User", backref="enrolments")
    course = db.relationship("Course", back_populates="enrolments")

    def __repr__(self):
        return f"<Enrolment Student {self.student_id} Course {self.course_id} ({self.status})>"
