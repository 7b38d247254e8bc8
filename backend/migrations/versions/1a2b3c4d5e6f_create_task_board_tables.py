"""Create users, board_columns, and tasks tables.

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "1a2b3c4d5e6f"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    conn = op.get_bind()
    inspector = sa.inspect(conn)
    existing_tables = inspector.get_table_names()

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("external_id", sa.String(), nullable=False),
            sa.Column("email", sa.String(), nullable=True),
            sa.Column("name", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_users_external_id", "users", ["external_id"], unique=True)
        op.create_index("ix_users_email", "users", ["email"])

    if "board_columns" not in existing_tables:
        op.create_table(
            "board_columns",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("owner_id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("order", sa.Integer(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_board_columns_owner_id", "board_columns", ["owner_id"])

    if "tasks" not in existing_tables:
        op.create_table(
            "tasks",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("owner_id", sa.Uuid(), nullable=False),
            sa.Column("column_id", sa.Uuid(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("date", sa.String(), nullable=False),
            sa.Column("due_time", sa.String(), nullable=True),
            sa.Column("duration", sa.String(), nullable=True),
            sa.Column("priority", sa.String(), nullable=False),
            sa.Column("is_completed", sa.Boolean(), nullable=False),
            sa.Column("order", sa.Integer(), nullable=False),
            sa.Column("subtasks", sa.JSON(), nullable=True),
            sa.Column("tags", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["column_id"], ["board_columns.id"]),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_tasks_owner_id", "tasks", ["owner_id"])
        op.create_index("ix_tasks_column_id", "tasks", ["column_id"])
        op.create_index("ix_tasks_date", "tasks", ["date"])
        op.create_index("ix_tasks_owner_date_priority", "tasks", ["owner_id", "date", "priority"])
        op.create_index("ix_tasks_owner_column_order", "tasks", ["owner_id", "column_id", "order"])


def downgrade() -> None:
    op.drop_table("tasks")
    op.drop_table("board_columns")
    op.drop_table("users")
