"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all database tables for Testcraft:
- users: Test authors (ownership only; accounts live elsewhere)
- tests: Test settings and lifecycle status
- sections: Optional timed groups of questions
- questions: Questions, either inside a section or standalone
- options: Answer options of choice-type questions

Child rows cascade on delete so removing a test removes its whole tree.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Users Table ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    # ── Tests Table ───────────────────────────────────────────
    op.create_table(
        'tests',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('creator_id', sa.String(36),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='DRAFT'),
        sa.Column('question_order', sa.String(16), nullable=False, server_default='SEQUENTIAL'),
        sa.Column('attempt_limit', sa.Integer(), nullable=True),
        sa.Column('retake_cooldown', sa.Integer(), nullable=True),
        sa.Column('allow_back', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('result_visibility', sa.String(16), nullable=False, server_default='AFTER_TEST'),
        sa.Column('pass_percentage', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_tests_creator_id', 'tests', ['creator_id'])
    op.create_index('ix_tests_status', 'tests', ['status'])

    # ── Sections Table ────────────────────────────────────────
    op.create_table(
        'sections',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('points', sa.Float(), nullable=False, server_default='1'),
        sa.Column('negative_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_sections_test_id', 'sections', ['test_id'])

    # ── Questions Table ───────────────────────────────────────
    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('test_id', sa.String(36),
                  sa.ForeignKey('tests.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_id', sa.String(36),
                  sa.ForeignKey('sections.id', ondelete='CASCADE'), nullable=True),
        sa.Column('type', sa.String(16), nullable=False, server_default='MCQ_SINGLE'),
        sa.Column('title', sa.Text(), nullable=False, server_default=''),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('explanation', sa.Text(), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('points', sa.Float(), nullable=False, server_default='1'),
        sa.Column('negative_points', sa.Float(), nullable=False, server_default='0'),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_questions_test_id', 'questions', ['test_id'])
    op.create_index('ix_questions_section_id', 'questions', ['section_id'])

    # ── Options Table ─────────────────────────────────────────
    op.create_table(
        'options',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('question_id', sa.String(36),
                  sa.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('text', sa.Text(), nullable=False, server_default=''),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index('ix_options_question_id', 'options', ['question_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_options_question_id', table_name='options')
    op.drop_table('options')
    op.drop_index('ix_questions_section_id', table_name='questions')
    op.drop_index('ix_questions_test_id', table_name='questions')
    op.drop_table('questions')
    op.drop_index('ix_sections_test_id', table_name='sections')
    op.drop_table('sections')
    op.drop_index('ix_tests_status', table_name='tests')
    op.drop_index('ix_tests_creator_id', table_name='tests')
    op.drop_table('tests')
    op.drop_table('users')
