"""
Document Store - versioned rows with guarded partial updates

Every root entity (student, subject, project, consultation) carries a
`version` column. Transitions go through `apply()`:

    1. read the latest row (bypassing the identity map)
    2. run the caller's pure mutate function against it; it raises a guard
       error or returns only the columns it changes
    3. UPDATE ... SET <changed columns>, version = version + 1
       WHERE id = :id AND version = :read_version
    4. zero rows updated means someone else won: re-read and re-run the
       guard, up to TRANSITION_MAX_RETRIES times

Mutate functions must not assign to the row they are given; they build new
values (new lists for JSON columns) and return them.
"""

from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional, Tuple, Type
import copy

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConcurrentModificationError,
    ResourceNotFoundError,
    StorePermissionError,
    TransientStoreError,
)
from app.core.logging_config import logger


Mutation = Callable[[Any], Optional[Dict[str, Any]]]


def _is_permission_error(error: DBAPIError) -> bool:
    text = str(error.orig or error).lower()
    return "permission denied" in text or "insufficient privilege" in text


@asynccontextmanager
async def store_operation(db: AsyncSession, operation: str):
    """Translate driver failures into the store error family"""
    try:
        yield
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        await db.rollback()
        logger.warning(f"[Store] {operation} failed transiently: {type(e).__name__}")
        raise TransientStoreError() from e
    except DBAPIError as e:
        await db.rollback()
        if _is_permission_error(e):
            logger.warning(f"[Store] {operation} refused by the database")
            raise StorePermissionError() from e
        raise


def append_if_absent(items: List[Any], value: Any, key: Optional[str] = None) -> Tuple[List[Any], bool]:
    """
    Set-union append. Returns a new list and whether the value was added.

    With `key`, items are dicts and membership is decided by item[key].
    """
    if key is None:
        present = value in items
    else:
        present = any(item.get(key) == value.get(key) for item in items)
    if present:
        return list(items), False
    return list(items) + [value], True


def copy_list(items: List[Any]) -> List[Any]:
    """Deep copy of an embedded JSON list, safe to edit"""
    return copy.deepcopy(list(items or []))


async def _read_latest(db: AsyncSession, model: Type, entity_id: str):
    result = await db.execute(
        select(model)
        .where(model.id == entity_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


class DocumentStore:
    """Create/get/query plus the guarded conditional update"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, obj: Any) -> Any:
        async with store_operation(self.db, f"create {type(obj).__name__}"):
            self.db.add(obj)
            await self.db.commit()
            await self.db.refresh(obj)
        return obj

    async def get(self, model: Type, entity_id: str) -> Optional[Any]:
        async with store_operation(self.db, f"get {model.__name__}"):
            return await _read_latest(self.db, model, entity_id)

    async def require(self, model: Type, entity_id: str,
                      not_found: Callable[[str], ResourceNotFoundError]) -> Any:
        obj = await self.get(model, entity_id)
        if obj is None:
            raise not_found(entity_id)
        return obj

    async def query(self, model: Type, *criteria, order_by=None) -> List[Any]:
        stmt = select(model).where(*criteria).execution_options(populate_existing=True)
        if order_by is not None:
            stmt = stmt.order_by(order_by)
        async with store_operation(self.db, f"query {model.__name__}"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def first(self, model: Type, *criteria, order_by=None) -> Optional[Any]:
        rows = await self.query(model, *criteria, order_by=order_by)
        return rows[0] if rows else None

    async def apply(
        self,
        model: Type,
        entity_id: str,
        mutate: Mutation,
        not_found: Callable[[str], ResourceNotFoundError],
        entity_name: Optional[str] = None,
    ) -> Tuple[Any, Any]:
        """
        Apply a guarded partial update.

        Returns (before_state_row_snapshot, fresh_row). The first element is
        the row as read for the winning attempt, useful for logging the
        from-state. A mutate returning no changes is a no-op and does not
        bump the version.
        """
        entity_name = entity_name or model.__name__
        max_attempts = max(1, settings.TRANSITION_MAX_RETRIES)

        for attempt in range(1, max_attempts + 1):
            async with store_operation(self.db, f"update {entity_name} {entity_id}"):
                current = await _read_latest(self.db, model, entity_id)
                if current is None:
                    raise not_found(entity_id)

                before = {attr.key: getattr(current, attr.key) for attr in model.__mapper__.column_attrs}
                changes = mutate(current)
                if not changes:
                    return before, current

                read_version = current.version
                result = await self.db.execute(
                    update(model)
                    .where(model.id == entity_id, model.version == read_version)
                    .values(**changes, version=read_version + 1)
                    .execution_options(synchronize_session=False)
                )

                if result.rowcount == 1:
                    await self.db.commit()
                    fresh = await _read_latest(self.db, model, entity_id)
                    return before, fresh

                await self.db.rollback()

            logger.warning(
                f"[Store] {entity_name} {entity_id} changed under us "
                f"(version {read_version}), attempt {attempt}/{max_attempts}",
                extra={"event_type": "optimistic_conflict", "entity": entity_name, "entity_id": entity_id}
            )

        raise ConcurrentModificationError(entity_name, entity_id, max_attempts)


__all__ = [
    "DocumentStore",
    "store_operation",
    "append_if_absent",
    "copy_list",
]
