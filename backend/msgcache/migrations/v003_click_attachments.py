"""Add click target and flattened attachment columns.

Version: 2 -> 3
"""

import sqlalchemy as sa
from alembic.operations import Operations

from_version: int = 2
to_version: int = 3

_TEXT_COLUMNS = (
    "click", "attachment_name", "attachment_type",
)
_INT_COLUMNS = ("attachment_size", "attachment_expires")


def upgrade(op: Operations) -> None:
    for name in _TEXT_COLUMNS:
        op.add_column(
            "messages",
            sa.Column(name, sa.Text(), nullable=False, server_default=""),
        )
    for name in _INT_COLUMNS:
        op.add_column(
            "messages",
            sa.Column(name, sa.Integer(), nullable=False, server_default="0"),
        )
    op.add_column(
        "messages",
        sa.Column("attachment_owner", sa.Text(), nullable=False, server_default=""),
    )
    op.add_column(
        "messages",
        sa.Column("attachment_url", sa.Text(), nullable=False, server_default=""),
    )
