"""
Sibling Reordering

Two strategies for applying a batch of ``{id, sortOrder}`` pairs:

``reorder_independent``
    Every update runs concurrently in its own session and commits on
    its own. There is no cross-record atomicity: when one id is bad,
    the other siblings keep their new positions and the failure is
    reported back. Used for sections and items.

``reorder_atomic``
    Checks that every id exists, then applies all updates inside one
    transaction. Either every sibling moves or none does. Used for
    categories.

Both invalidate the cached public menu.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence, Type

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from menuhub.schemas import ReorderEntry, ReorderedEntry
from menuhub.services.cache import invalidate_menu
from menuhub.services.errors import MissingRecordsError, NotFoundError

logger = logging.getLogger(__name__)

UPDATE_FAILED = "Update failed"


@dataclass
class ReorderOutcome:
    """Result of a non-atomic reorder."""
    updated: list[ReorderedEntry] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total: int = 0

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def success(self) -> bool:
        return not self.errors


async def _update_position(session: AsyncSession, model: Type, entry: ReorderEntry) -> Any:
    result = await session.execute(
        update(model)
        .where(model.id == entry.id)
        .values(sort_order=entry.sort_order)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"{model.__name__} {entry.id} not found")
    return await session.get(model, entry.id, populate_existing=True)


async def _update_in_own_session(
    session_maker: async_sessionmaker[AsyncSession],
    model: Type,
    entry: ReorderEntry,
) -> ReorderedEntry:
    async with session_maker() as session:
        try:
            record = await _update_position(session, model, entry)
            projected = ReorderedEntry.model_validate(record)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return projected


async def reorder_independent(
    session_maker: async_sessionmaker[AsyncSession],
    model: Type,
    entries: Sequence[ReorderEntry],
) -> ReorderOutcome:
    """Apply every position update concurrently and independently."""
    results = await asyncio.gather(
        *(_update_in_own_session(session_maker, model, entry) for entry in entries),
        return_exceptions=True,
    )

    outcome = ReorderOutcome(total=len(entries))
    for entry, result in zip(entries, results):
        if isinstance(result, NotFoundError):
            outcome.errors.append(str(result))
        elif isinstance(result, Exception):
            # Driver errors embed SQL and parameters: log only
            logger.error(f"{model.__name__} {entry.id} reorder failed", exc_info=result)
            outcome.errors.append(UPDATE_FAILED)
        else:
            outcome.updated.append(result)

    if outcome.updated:
        invalidate_menu()

    if outcome.errors:
        logger.error(
            f"{model.__name__} reorder: {outcome.failed}/{outcome.total} updates failed: "
            f"{outcome.errors}"
        )
    else:
        logger.info(f"{model.__name__} reorder: {outcome.total} positions updated")
    return outcome


async def reorder_atomic(
    session: AsyncSession,
    model: Type,
    entries: Sequence[ReorderEntry],
) -> list[ReorderedEntry]:
    """
    Apply every position update in a single transaction.

    Raises:
        MissingRecordsError: If any id does not exist (nothing is changed)
    """
    ids = [entry.id for entry in entries]

    try:
        result = await session.execute(select(model.id).where(model.id.in_(ids)))
        existing = set(result.scalars().all())
        missing = [record_id for record_id in ids if record_id not in existing]
        if missing:
            raise MissingRecordsError(model.__name__, missing)

        updated = []
        for entry in entries:
            try:
                record = await _update_position(session, model, entry)
            except NotFoundError:
                raise MissingRecordsError(model.__name__, [entry.id])
            updated.append(ReorderedEntry.model_validate(record))

        await session.commit()
    except Exception:
        await session.rollback()
        raise

    invalidate_menu()
    logger.info(f"{model.__name__} reorder: {len(updated)} positions updated atomically")
    return updated
