"""create cat tables

Revision ID: 4b1e2c7d9a10
Revises:
Create Date: 2026-10-18 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "4b1e2c7d9a10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TEST_STATUS = sa.Enum("IN_PROGRESS", "COMPLETED", "ABANDONED", name="teststatus")
QUESTION_STATUS = sa.Enum(
    "UNSEEN", "CORRECT", "INCORRECT", "MARKED", "SKIPPED", name="questionstatus"
)
CAT_SESSION_STATUS = sa.Enum(
    "IN_PROGRESS", "PASSED", "FAILED", "ABANDONED", name="catsessionstatus"
)


def upgrade() -> None:
    """Create question bank, test, result and CAT session tables."""
    op.create_table(
        "questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("topic", sa.String(length=255), nullable=False),
        sa.Column("sub_topic", sa.String(length=255), nullable=True),
        sa.Column("question_format", sa.String(length=100), nullable=True),
        sa.Column("difficulty", sa.String(length=50), nullable=True),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("use_partial_scoring", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_questions_id", "questions", ["id"])
    op.create_index("ix_questions_topic", "questions", ["topic"])

    op.create_table(
        "answers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("option_number", sa.Integer(), nullable=False),
        sa.Column("answer_text", sa.Text(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("partial_credit", sa.Float(), nullable=False),
        sa.Column("penalty_value", sa.Float(), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "question_id", "option_number", name="uq_answers_option_number"
        ),
        sa.CheckConstraint(
            "partial_credit >= 0 AND partial_credit <= 1",
            name="ck_answers_partial_credit_range",
        ),
        sa.CheckConstraint(
            "penalty_value >= 0 AND penalty_value <= 1",
            name="ck_answers_penalty_value_range",
        ),
    )
    op.create_index("ix_answers_id", "answers", ["id"])
    op.create_index("ix_answers_question_id", "answers", ["question_id"])

    op.create_table(
        "question_difficulty_parameters",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("discrimination", sa.Float(), nullable=False),
        sa.Column("difficulty", sa.Float(), nullable=False),
        sa.Column("guessing", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("question_id"),
        sa.CheckConstraint(
            "discrimination > 0", name="ck_item_parameters_discrimination"
        ),
        sa.CheckConstraint(
            "guessing >= 0 AND guessing < 1", name="ck_item_parameters_guessing"
        ),
    )
    op.create_index(
        "ix_question_difficulty_parameters_id",
        "question_difficulty_parameters",
        ["id"],
    )

    op.create_table(
        "tests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("mode", sa.String(length=50), nullable=False),
        sa.Column("topics", sa.JSON(), nullable=True),
        sa.Column("question_count", sa.Integer(), nullable=False),
        sa.Column("status", TEST_STATUS, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tests_id", "tests", ["id"])
    op.create_index("ix_tests_user_id", "tests", ["user_id"])
    op.create_index("ix_tests_user_status", "tests", ["user_id", "status"])

    op.create_table(
        "test_questions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("question_order", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "question_id", name="uq_test_question"),
    )
    op.create_index("ix_test_questions_id", "test_questions", ["id"])
    op.create_index("ix_test_questions_test_id", "test_questions", ["test_id"])

    op.create_table(
        "test_results",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("user_response", sa.JSON(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("max_score", sa.Float(), nullable=False),
        sa.Column("time_spent_seconds", sa.Integer(), nullable=False),
        sa.Column("is_flagged", sa.Boolean(), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id", "question_id", name="uq_test_result_question"),
    )
    op.create_index("ix_test_results_id", "test_results", ["id"])
    op.create_index("ix_test_results_test_id", "test_results", ["test_id"])
    op.create_index("ix_test_results_user_id", "test_results", ["user_id"])

    op.create_table(
        "user_question_status",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("status", QUESTION_STATUS, nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "question_id", name="uq_user_question_status"),
    )
    op.create_index("ix_user_question_status_id", "user_question_status", ["id"])
    op.create_index(
        "ix_user_question_status_user_id", "user_question_status", ["user_id"]
    )

    op.create_table(
        "cat_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("test_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("initial_ability", sa.Float(), nullable=False),
        sa.Column("current_ability", sa.Float(), nullable=False),
        sa.Column("ability_confidence", sa.Float(), nullable=True),
        sa.Column("passing_standard", sa.Float(), nullable=False),
        sa.Column("min_questions", sa.Integer(), nullable=False),
        sa.Column("max_questions", sa.Integer(), nullable=False),
        sa.Column("questions_answered", sa.Integer(), nullable=False),
        sa.Column("status", CAT_SESSION_STATUS, nullable=False),
        sa.Column("stop_reason", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["test_id"], ["tests.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("test_id"),
        sa.CheckConstraint(
            "questions_answered <= max_questions",
            name="ck_cat_sessions_answered_within_max",
        ),
        sa.CheckConstraint("min_questions >= 1", name="ck_cat_sessions_min_questions"),
    )
    op.create_index("ix_cat_sessions_id", "cat_sessions", ["id"])
    op.create_index("ix_cat_sessions_user_id", "cat_sessions", ["user_id"])
    op.create_index("ix_cat_sessions_status", "cat_sessions", ["status"])

    op.create_table(
        "cat_question_selections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("cat_session_id", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.Integer(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("ability_estimate_before", sa.Float(), nullable=False),
        sa.Column("ability_estimate_after", sa.Float(), nullable=True),
        sa.Column("information_value", sa.Float(), nullable=False),
        sa.Column("was_correct", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["cat_session_id"], ["cat_sessions.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["question_id"], ["questions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "cat_session_id", "position", name="uq_cat_selection_position"
        ),
        sa.UniqueConstraint(
            "cat_session_id", "question_id", name="uq_cat_selection_question"
        ),
    )
    op.create_index(
        "ix_cat_question_selections_id", "cat_question_selections", ["id"]
    )
    op.create_index(
        "ix_cat_question_selections_cat_session_id",
        "cat_question_selections",
        ["cat_session_id"],
    )


def downgrade() -> None:
    """Drop every CAT table."""
    op.drop_table("cat_question_selections")
    op.drop_table("cat_sessions")
    op.drop_table("user_question_status")
    op.drop_table("test_results")
    op.drop_table("test_questions")
    op.drop_table("tests")
    op.drop_table("question_difficulty_parameters")
    op.drop_table("answers")
    op.drop_table("questions")
    CAT_SESSION_STATUS.drop(op.get_bind(), checkfirst=True)
    QUESTION_STATUS.drop(op.get_bind(), checkfirst=True)
    TEST_STATUS.drop(op.get_bind(), checkfirst=True)
