from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from core.exceptions import ConcurrencyError, NotFoundError


def update_with_version_check(
    session: Session,
    orm_type: type[Any],
    row_id: str,
    expected_version: int,
    values: dict[str, Any],
    *,
    scope: Mapping[str, Any] | None = None,
    not_found_message: str,
    stale_message: str,
) -> int:
    """Compare-and-swap on the `version` column; returns the new version.

    `scope` adds equality filters (e.g. project_id) that the row must also
    match, so a row outside the scope reads as missing.
    """
    next_version = int(expected_version) + 1
    filters = [getattr(orm_type, column) == value for column, value in (scope or {}).items()]
    stmt = (
        update(orm_type)
        .where(orm_type.id == row_id, orm_type.version == expected_version, *filters)
        .values(**values, version=next_version)
        .execution_options(synchronize_session="fetch")
    )
    result = session.execute(stmt)
    if result.rowcount == 1:
        return next_version

    exists = session.execute(select(orm_type.id).where(orm_type.id == row_id, *filters)).first()
    if exists is None:
        raise NotFoundError(not_found_message, code="RECORD_NOT_FOUND")
    raise ConcurrencyError(stale_message, code="STALE_WRITE")
