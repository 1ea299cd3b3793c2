from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3f1c2b7d9e10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=50), nullable=False, unique=True),
        sa.Column('email', sa.String(length=100), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('date_created', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
    )

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_free', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
    )

    op.create_table(
        'enrolments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('enrolled_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_enrolment_student_course'),
    )

    op.create_table(
        'quizzes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('course_name', sa.String(length=255), nullable=False),
        sa.Column('marks_per_question', sa.Float(), nullable=False),
        sa.Column('negative_marking', sa.Float(), nullable=False),
        sa.Column('time_limit', sa.Integer(), nullable=False),
        sa.Column('passing_percentage', sa.Float(), nullable=True),
        sa.Column('shuffle_questions', sa.Boolean(), nullable=False),
        sa.Column('shuffle_options', sa.Boolean(), nullable=False),
        sa.Column('show_results_immediately', sa.Boolean(), nullable=False),
        sa.Column('allow_retake', sa.Boolean(), nullable=False),
        sa.Column('max_attempts', sa.Integer(), nullable=False),
        sa.Column('is_published', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
    )

    op.create_table(
        'quiz_questions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quizzes.id'), nullable=False),
        sa.Column('question_type', sa.String(length=20), nullable=False),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_image', sa.String(length=255), nullable=True),
        sa.Column('question_formula', sa.Text(), nullable=True),
        sa.Column('question_diagram', sa.String(length=255), nullable=True),
        sa.Column('options', sa.JSON(), nullable=False),
        sa.Column('correct_answer', sa.String(length=64), nullable=False),
        sa.Column('explanation', sa.Text(), nullable=False),
        sa.Column('marks', sa.Float(), nullable=True),
        sa.Column('negative_marks', sa.Float(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False),
    )

    op.create_table(
        'quiz_attempts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quizzes.id'), nullable=False, index=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('student_name', sa.String(length=100), nullable=False),
        sa.Column('student_email', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, index=True),
        sa.Column('active_key', sa.String(length=64), nullable=True, unique=True),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('time_taken', sa.Integer(), nullable=True),
        sa.Column('auto_submitted', sa.Boolean(), nullable=False),
        sa.Column('shuffle_seed', sa.BigInteger(), nullable=False),
        sa.Column('questions_snapshot', sa.JSON(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'quiz_attempt_answers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('attempt_id', sa.Integer(), sa.ForeignKey('quiz_attempts.id'), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('selected_answer', sa.String(length=64), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
        sa.UniqueConstraint('attempt_id', 'question_id', name='uq_attempt_answer_question'),
    )

    op.create_table(
        'quiz_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('attempt_id', sa.Integer(), sa.ForeignKey('quiz_attempts.id'), nullable=False, unique=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quizzes.id'), nullable=False, index=True),
        sa.Column('quiz_title', sa.String(length=255), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('course_name', sa.String(length=255), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('student_name', sa.String(length=100), nullable=False),
        sa.Column('student_email', sa.String(length=100), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False),
        sa.Column('incorrect_answers', sa.Integer(), nullable=False),
        sa.Column('unanswered_questions', sa.Integer(), nullable=False),
        sa.Column('total_marks', sa.Float(), nullable=False),
        sa.Column('marks_obtained', sa.Float(), nullable=False),
        sa.Column('percentage', sa.Float(), nullable=False),
        sa.Column('is_passed', sa.Boolean(), nullable=False),
        sa.Column('time_taken', sa.Integer(), nullable=False),
        sa.Column('rank', sa.Integer(), nullable=True),
        sa.Column('question_results', sa.JSON(), nullable=False),
        sa.Column('feedback', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
        sa.Column('evaluated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_quiz_results_leaderboard', 'quiz_results', ['quiz_id', 'marks_obtained', 'time_taken'])

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False, index=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('link', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.current_timestamp(), nullable=False),
    )


def downgrade():
    op.drop_table('notifications')
    op.drop_index('ix_quiz_results_leaderboard', table_name='quiz_results')
    op.drop_table('quiz_results')
    op.drop_table('quiz_attempt_answers')
    op.drop_table('quiz_attempts')
    op.drop_table('quiz_questions')
    op.drop_table('quizzes')
    op.drop_table('enrolments')
    op.drop_table('courses')
    op.drop_table('users')
