"""Add the body encoding hint (e.g. "base64" for binary bodies).

Version: 3 -> 4
"""

import sqlalchemy as sa
from alembic.operations import Operations

from_version: int = 3
to_version: int = 4


def upgrade(op: Operations) -> None:
    op.add_column(
        "messages",
        sa.Column("encoding", sa.Text(), nullable=False, server_default=""),
    )
