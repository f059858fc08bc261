"""Migration Chain — explicit registry of schema steps, keyed by from_version.

Invariants:
    - Keys are exactly 0 .. CURRENT_SCHEMA_VERSION - 1, no gaps
    - Each step upgrades from_version -> from_version + 1 and nothing else
    - Steps only touch structure/data; the version row is written by the
      schema manager in the same transaction

Design Decisions:
    - Explicit registration, no module discovery: adding a version means
      adding one module and one line here
    - Steps receive an alembic Operations bound to the migration connection
"""

from dataclasses import dataclass
from types import ModuleType
from typing import Callable

from alembic.operations import Operations

from msgcache.migrations import (
    v001_title_priority_tags,
    v002_published,
    v003_click_attachments,
    v004_encoding,
    v005_attachment_present,
)

MigrationStep = Callable[[Operations], None]


@dataclass(frozen=True)
class Migration:
    """One version increment of the on-disk layout."""
    from_version: int
    to_version: int
    description: str
    upgrade: MigrationStep


def _from_module(module: ModuleType) -> Migration:
    return Migration(
        from_version=module.from_version,
        to_version=module.to_version,
        description=(module.__doc__ or "").strip().splitlines()[0],
        upgrade=module.upgrade,
    )


MIGRATIONS: dict[int, Migration] = {
    m.from_version: m
    for m in (
        _from_module(v001_title_priority_tags),
        _from_module(v002_published),
        _from_module(v003_click_attachments),
        _from_module(v004_encoding),
        _from_module(v005_attachment_present),
    )
}

CURRENT_SCHEMA_VERSION = 5
