from flask_sqlalchemy import SQLAlchemy

# Initialize SQLAlchemy
db = SQLAlchemy()

# Import models
from models.users import User
from models.courses import Course
from models.enrolments import Enrolment

from models.quizzes import Quiz
from models.quiz_questions import QuizQuestion
from models.quiz_attempts import QuizAttempt
from models.quiz_attempts_answers import QuizAttemptAnswer
from models.quiz_results import QuizResult

from models.notifications import Notification
