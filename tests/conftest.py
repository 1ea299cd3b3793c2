import pytest

from app import create_app
from models import db
from models.courses import Course
from models.enrolments import Enrolment
from models.quiz_questions import QuizQuestion
from models.quizzes import Quiz
from models.users import User
from utils.tokens import get_jwt_token


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(username, role="student"):
    user = User(username=username, email=f"{username}@example.com", full_name=username.title(), role=role)
    user.set_password("password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(app):
    return _make_user


@pytest.fixture
def student(app):
    return _make_user("alice")


@pytest.fixture
def other_student(app):
    return _make_user("bob")


@pytest.fixture
def admin(app):
    return _make_user("admin", role="admin")


@pytest.fixture
def course(app):
    course = Course(title="Physics 101", description="Mechanics")
    db.session.add(course)
    db.session.commit()
    return course


@pytest.fixture
def enrol(course):
    def enrol(user, status=Enrolment.STATUS_PAID):
        db.session.add(Enrolment(student_id=user.id, course_id=course.id, status=status))
        db.session.commit()
    return enrol


def default_questions():
    return [
        QuizQuestion(
            question_text="What is the SI unit of force?",
            options=[{"id": "a", "text": "Newton"}, {"id": "b", "text": "Joule"}],
            correct_answer="a",
            explanation="Force is measured in newtons.",
            order=0,
        ),
        QuizQuestion(
            question_type="formula",
            question_text="Which expression gives kinetic energy?",
            question_formula=r"E_k = ?",
            options=[{"id": "a", "text": "mgh"}, {"id": "b", "text": "1/2 mv^2"}, {"id": "c", "text": "ma"}],
            correct_answer="b",
            explanation="Kinetic energy is half the mass times velocity squared.",
            order=1,
        ),
    ]


@pytest.fixture
def make_quiz(course):
    def make_quiz(questions=None, published=True, **settings):
        values = {
            "marks_per_question": 2,
            "negative_marking": 0.5,
            "passing_percentage": 50,
            "time_limit": 10,
            "allow_retake": False,
            "max_attempts": 1,
        }
        values.update(settings)
        quiz = Quiz(
            title="Forces and energy",
            description="Chapter 3 check",
            course_id=course.id,
            course_name=course.title,
            is_published=published,
            **values,
        )
        quiz.questions = questions if questions is not None else default_questions()
        db.session.add(quiz)
        db.session.commit()
        return quiz
    return make_quiz


@pytest.fixture
def auth_headers(app):
    def auth_headers(user):
        token = get_jwt_token({"user_id": user.id, "role": user.role, "username_or_email": user.username})
        return {"Authorization": f"Bearer {token}"}
    return auth_headers
