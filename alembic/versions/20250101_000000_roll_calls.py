"""roll calls and responses

Revision ID: 20250101_000000
Revises:
Create Date: 2025-01-01 00:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20250101_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "roll_calls",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True),
        sa.Column("conversation_id", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("quiet", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_roll_calls_conversation_status", "roll_calls", ["conversation_id", "status"])
    op.create_index(
        "uq_roll_calls_one_open_per_conversation",
        "roll_calls",
        ["conversation_id"],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
        sqlite_where=sa.text("status = 'OPEN'"),
    )

    op.create_table(
        "roll_call_responses",
        sa.Column("id", sa.BigInteger().with_variant(sa.Integer(), "sqlite"), primary_key=True),
        sa.Column(
            "roll_call_id",
            sa.BigInteger(),
            sa.ForeignKey("roll_calls.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("dedup_token", sa.String(length=128), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("user_name", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("roll_call_id", "dedup_token", name="uq_roll_call_response_token"),
    )
    op.create_index("ix_roll_call_responses_roll_call_id", "roll_call_responses", ["roll_call_id"])


def downgrade() -> None:
    op.drop_index("ix_roll_call_responses_roll_call_id", table_name="roll_call_responses")
    op.drop_table("roll_call_responses")
    op.drop_index("uq_roll_calls_one_open_per_conversation", table_name="roll_calls")
    op.drop_index("ix_roll_calls_conversation_status", table_name="roll_calls")
    op.drop_table("roll_calls")
