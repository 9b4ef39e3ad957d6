"""chat_messages, chat_presence

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19

Rooms have no table: a room exists while rows in either table share its room_id.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("iv", sa.String(), nullable=False),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_chat_messages_room_id"), "chat_messages", ["room_id"], unique=False)
    op.create_index(op.f("ix_chat_messages_timestamp"), "chat_messages", ["timestamp"], unique=False)
    op.create_index("ix_chat_messages_room_id_timestamp", "chat_messages", ["room_id", "timestamp"], unique=False)

    op.create_table(
        "chat_presence",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("room_id", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("last_seen", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("room_id", "username", name="uq_chat_presence_room_user"),
    )
    op.create_index(op.f("ix_chat_presence_room_id"), "chat_presence", ["room_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_chat_presence_room_id"), table_name="chat_presence")
    op.drop_table("chat_presence")
    op.drop_index("ix_chat_messages_room_id_timestamp", table_name="chat_messages")
    op.drop_index(op.f("ix_chat_messages_timestamp"), table_name="chat_messages")
    op.drop_index(op.f("ix_chat_messages_room_id"), table_name="chat_messages")
    op.drop_table("chat_messages")
