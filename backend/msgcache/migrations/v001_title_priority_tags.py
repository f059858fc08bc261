"""Add title, priority and tags to messages; start tracking the schema version.

Version: 0 -> 1

Version 0 stores had only id/time/topic/message and no schemaVersion table.
The version row itself is written by the schema manager after this step.
"""

import sqlalchemy as sa
from alembic.operations import Operations

from_version: int = 0
to_version: int = 1


def upgrade(op: Operations) -> None:
    op.add_column(
        "messages",
        sa.Column("title", sa.Text(), nullable=False, server_default=""),
    )
    op.add_column(
        "messages",
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
    )
    op.add_column(
        "messages",
        sa.Column("tags", sa.Text(), nullable=False, server_default=""),
    )
    op.create_table(
        "schemaVersion",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )
