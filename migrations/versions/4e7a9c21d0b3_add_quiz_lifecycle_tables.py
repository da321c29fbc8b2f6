"""Add quiz lifecycle tables

Revision ID: 4e7a9c21d0b3
Revises:
Create Date: 2026-09-02 10:14:27.318402

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect
from sqlalchemy.dialects import mysql

# revision identifiers, used by Alembic.
revision = '4e7a9c21d0b3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    inspector = inspect(op.get_bind())
    tables = inspector.get_table_names()

    if 'users' not in tables:
        op.create_table('users',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('email', sa.String(length=255), nullable=False),
            sa.Column('password_hash', sa.String(length=255), nullable=False),
            sa.Column('full_name', sa.String(length=255), nullable=True),
            sa.Column('role', sa.String(length=20), nullable=False),
            sa.Column('is_verified', sa.Boolean(), nullable=False, server_default='0'),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_users_email', 'users', ['email'], unique=True)
        op.create_index('ix_users_role', 'users', ['role'], unique=False)

    # Create quizzes table
    if 'quizzes' not in tables:
        op.create_table('quizzes',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=255), nullable=False),
            sa.Column('active_name', sa.String(length=255).with_variant(mysql.VARCHAR(255, collation='utf8mb4_bin'), 'mysql'), nullable=True),
            sa.Column('creator_id', sa.Integer(), nullable=False),
            sa.Column('status', sa.String(length=20), nullable=False, server_default='DRAFT'),
            sa.Column('expires_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('active_name', name='uq_quizzes_active_name')
        )
        op.create_index('ix_quizzes_name', 'quizzes', ['name'], unique=False)
        op.create_index('ix_quizzes_creator_id', 'quizzes', ['creator_id'], unique=False)
        op.create_index('ix_quizzes_status', 'quizzes', ['status'], unique=False)
        op.create_index('ix_quizzes_created_at', 'quizzes', ['created_at'], unique=False)
        op.create_index('ix_quizzes_status_expires', 'quizzes', ['status', 'expires_at'], unique=False)

    # Create questions table
    if 'questions' not in tables:
        op.create_table('questions',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('question_text', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_questions_quiz_id', 'questions', ['quiz_id'], unique=False)

    # Create options table
    if 'options' not in tables:
        op.create_table('options',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('question_id', sa.Integer(), nullable=False),
            sa.Column('value', sa.Text(), nullable=False),
            sa.Column('is_correct', sa.Boolean(), nullable=False, server_default='0'),
            sa.ForeignKeyConstraint(['question_id'], ['questions.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_options_question_id', 'options', ['question_id'], unique=False)
        op.create_index('ix_options_is_correct', 'options', ['is_correct'], unique=False)

    # Create quiz_assignments table
    if 'quiz_assignments' not in tables:
        op.create_table('quiz_assignments',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('quiz_id', 'user_id', name='uq_quiz_assignment')
        )
        op.create_index('ix_quiz_assignments_quiz_id', 'quiz_assignments', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_assignments_user_id', 'quiz_assignments', ['user_id'], unique=False)

    # Create quiz_attempts table
    if 'quiz_attempts' not in tables:
        op.create_table('quiz_attempts',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=False),
            sa.Column('quiz_id', sa.Integer(), nullable=False),
            sa.Column('score_obtained', sa.Integer(), nullable=False),
            sa.Column('score_total', sa.Integer(), nullable=False),
            sa.Column('attempt_number', sa.Integer(), nullable=False),
            sa.Column('completed_at', sa.DateTime(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(['quiz_id'], ['quizzes.id']),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('quiz_id', 'user_id', 'attempt_number', name='uq_attempt_number')
        )
        op.create_index('ix_quiz_attempts_user_id', 'quiz_attempts', ['user_id'], unique=False)
        op.create_index('ix_quiz_attempts_quiz_id', 'quiz_attempts', ['quiz_id'], unique=False)
        op.create_index('ix_quiz_attempts_quiz_user', 'quiz_attempts', ['quiz_id', 'user_id'], unique=False)


def downgrade():
    op.drop_table('quiz_attempts')
    op.drop_table('quiz_assignments')
    op.drop_table('options')
    op.drop_table('questions')
    op.drop_table('quizzes')
    op.drop_table('users')
