"""Persist attachment presence explicitly instead of inferring it from name/url.

Version: 4 -> 5

Existing rows are backfilled with the old inference (present iff both
attachment_name and attachment_url are non-empty), so reads of migrated
rows are unchanged. New rows record presence as written.
"""

import sqlalchemy as sa
from alembic.operations import Operations

from_version: int = 4
to_version: int = 5

messages = sa.table(
    "messages",
    sa.column("attachment_name", sa.Text),
    sa.column("attachment_url", sa.Text),
    sa.column("attachment_present", sa.Boolean),
)


def upgrade(op: Operations) -> None:
    op.add_column(
        "messages",
        sa.Column(
            "attachment_present", sa.Boolean(),
            nullable=False, server_default="0",
        ),
    )
    op.execute(
        messages.update()
        .where(messages.c.attachment_name != "")
        .where(messages.c.attachment_url != "")
        .values(attachment_present=True)
    )
