"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates all database tables for the Club Portal:
- students: Registered club members (email + PRN login)
- sessions: Scheduled club sessions with check-in codes
- tests: One quiz per session
- questions: Ordered quiz questions
- attendance: One status per (student, session)
- test_scores: Latest submission per (student, session, test)

Also creates the unique constraints that guard against double check-in
and duplicate score rows.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Students Table ────────────────────────────────────────
    op.create_table(
        'students',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('first_name', sa.Text(), nullable=False),
        sa.Column('middle_name', sa.Text(), nullable=True),
        sa.Column('last_name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('roll_number', sa.Text(), nullable=False),
        sa.Column('prn_number', sa.Text(), nullable=False, unique=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('branch', sa.Text(), nullable=True),
        sa.Column('division', sa.Text(), nullable=True),
        sa.Column('gender', sa.Text(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('sgpa_sem1', sa.Text(), nullable=True),
        sa.Column('sgpa_sem2', sa.Text(), nullable=True),
        sa.Column('profile_photo', sa.Text(), nullable=True),
        sa.Column('registration_date', sa.DateTime(),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('mentor', sa.Text(), nullable=True),
    )
    op.create_index('ix_students_mentor', 'students', ['mentor'])

    # ── Sessions Table ────────────────────────────────────────
    op.create_table(
        'sessions',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Text(), nullable=False),
        sa.Column('venue', sa.Text(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='upcoming'),
        sa.Column('type', sa.Text(), nullable=False, server_default='Assessment'),
        sa.Column('duration', sa.Text(), nullable=True),
        sa.Column('test_link', sa.Text(), nullable=True),
        sa.Column('session_code', sa.Text(), nullable=True),
    )

    # ── Tests Table ───────────────────────────────────────────
    op.create_table(
        'tests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('session_id', sa.String(32),
                  sa.ForeignKey('sessions.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=True),
    )

    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('options', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
                  nullable=False),
        sa.Column('correct_answer', sa.Integer(), nullable=False),
        sa.UniqueConstraint('test_id', 'position', name='uq_questions_test_position'),
    )

    # ── Attendance Table ──────────────────────────────────────
    op.create_table(
        'attendance',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_id', sa.String(32),
                  sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='present'),
        sa.Column('marked_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('student_id', 'session_id', name='uq_attendance_student_session'),
    )

    # Per-session lookups for admin analytics
    op.create_index('ix_attendance_session_id', 'attendance', ['session_id'])

    # ── Test Scores Table ─────────────────────────────────────
    op.create_table(
        'test_scores',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('student_id', sa.String(36),
                  sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('session_id', sa.String(32),
                  sa.ForeignKey('sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answers', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'),
                  nullable=False),
        sa.Column('submitted_at', sa.DateTime(),
                  server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('student_id', 'session_id', 'test_id',
                            name='uq_test_scores_student_session_test'),
    )


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_table('test_scores')
    op.drop_index('ix_attendance_session_id', table_name='attendance')
    op.drop_table('attendance')
    op.drop_table('questions')
    op.drop_table('tests')
    op.drop_table('sessions')
    op.drop_index('ix_students_mentor', table_name='students')
    op.drop_table('students')
