"""Add the published flag so messages can be scheduled for later delivery.

Version: 1 -> 2

Every message stored before scheduling existed was delivered immediately,
so existing rows default to published.
"""

import sqlalchemy as sa
from alembic.operations import Operations

from_version: int = 1
to_version: int = 2


def upgrade(op: Operations) -> None:
    op.add_column(
        "messages",
        sa.Column("published", sa.Boolean(), nullable=False, server_default="1"),
    )
