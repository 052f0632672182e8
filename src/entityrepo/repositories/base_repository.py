"""
Generic entity repository.

`EntityRepository[T]` gives every `Persistent` entity the same set of
operations: finders, paging, ad-hoc queries, create / update / delete (single,
list and set-based bulk), graph-scoped loads, lock and refresh.

A repository is bound at construction to:

    - the entity class it serves,
    - the entity's display name (`entity_name=` argument, else the class's
      `__entity_name__`, else the class name),
    - the default load graph "<entityName>.load" if the entity declares one,
    - the caller's `AsyncSession`.

It keeps no other state. Model-specific repositories subclass it and add their
own queries:

    class CustomerRepository(EntityRepository[Customer]):
        def __init__(self, session: AsyncSession):
            super().__init__(Customer, session)

Every operation runs inside `_operation()`: the transaction semantics of the
operation (see `database.transaction`) wrapped by error translation (see
`exceptions.mapper`). Not-found is never an error: finders return None or [].

Flushing is on demand: writes flush when `flush=True` is passed, or when the
repository was built with `auto_flush=True` (default from
REPOSITORY_AUTO_FLUSH). A write that opens its own transaction flushes on
commit anyway.
"""

import logging
import re
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, Mapping, Type, TypeVar

from sqlalchemy import Delete, Select, Update, delete, select, text, update
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncSession

from entityrepo.config.settings import Settings, get_settings
from entityrepo.database.transaction import TxType, transaction_scope
from entityrepo.exceptions.base import RepositoryError
from entityrepo.exceptions.keys import RepositoryErrorKey
from entityrepo.exceptions.mapper import translate_errors
from entityrepo.models.graphs import resolve_fetch_graph, resolve_named_query
from entityrepo.models.persistent import Persistent
from entityrepo.repositories.query_param import QueryParam

# Type variable for the entity class
ModelType = TypeVar("ModelType", bound=Persistent)

logger = logging.getLogger(__name__)

_FROM_PREFIX = re.compile(r"^\s*from\b", re.IGNORECASE)

Key = RepositoryErrorKey


class EntityRepository(Generic[ModelType]):
    """
    Generic repository providing CRUD, paging, query and load operations.

    Type Parameters:
        ModelType: the `Persistent` subclass this repository manages.
    """

    def __init__(
        self,
        entity_class: Type[ModelType],
        session: AsyncSession,
        *,
        entity_name: str | None = None,
        auto_flush: bool | None = None,
        settings: Settings | None = None,
    ):
        """
        Args:
            entity_class: the mapped entity class itself (e.g. Customer, not Customer()).
            session: the caller's async session; the repository never closes it.
            entity_name: explicit display name, used in error parameters and logs.
            auto_flush: flush after every write unless the call says otherwise.
            settings: defaults for auto_flush / stack trace logging.
        """
        settings = settings or get_settings()

        self.entity_class = entity_class
        self.session = session
        self.entity_name = (
            entity_name
            or getattr(entity_class, "__entity_name__", None)
            or entity_class.__name__
        )
        self.load_graph_name = f"{self.entity_name}.load"
        self.load_graph = resolve_fetch_graph(entity_class, self.load_graph_name)
        self.auto_flush = settings.REPOSITORY_AUTO_FLUSH if auto_flush is None else auto_flush
        self.log_stack_traces = settings.REPOSITORY_LOG_STACK_TRACES

    # =================================================================================================================
    # Plumbing
    # =================================================================================================================

    @property
    def table(self):
        return self.entity_class.__table__

    @asynccontextmanager
    async def _operation(
        self, tx_type: TxType, key: RepositoryErrorKey, *parameters: Any
    ) -> AsyncIterator[AsyncSession]:
        # translation wraps the scope so commit-time failures are translated too
        with translate_errors(
            key,
            self.entity_name,
            *parameters,
            table=self.table,
            stack_trace_log=self.log_stack_traces,
        ):
            async with transaction_scope(self.session, tx_type) as session:
                yield session

    async def _flush(self, session: AsyncSession, flush: bool | None) -> None:
        if self.auto_flush if flush is None else flush:
            await session.flush()

    def _log(self, event: str, **fields: Any) -> None:
        logger.debug(event, extra={"entity": self.entity_name, **fields})

    # =================================================================================================================
    # Criteria builders
    # =================================================================================================================

    def criteria_query(self) -> Select:
        """SELECT over the entity; add `.where(...)` and run with `find_by_criteria()`."""
        return select(self.entity_class)

    def delete_query(self) -> Delete:
        return delete(self.entity_class)

    def update_query(self) -> Update:
        return update(self.entity_class)

    async def find_by_criteria(self, stmt: Select) -> list[ModelType]:
        async with self._operation(TxType.SUPPORTS, Key.FIND_BY_QUERY_FAILED) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    # =================================================================================================================
    # Finders
    # =================================================================================================================

    async def find_all(self) -> list[ModelType]:
        async with self._operation(TxType.SUPPORTS, Key.FIND_ALL_ENTITIES_FAILED) as session:
            result = await session.execute(select(self.entity_class))
            entities = list(result.scalars().all())
        self._log("repo.find_all.success", count=len(entities))
        return entities

    async def find_by_guid(self, guid: str | None) -> ModelType | None:
        """
        Return the entity with `guid`, or None when there is none.

        Uses the session's identity map first, so two lookups of the same guid
        in one session return the same instance.
        """
        if guid is None:
            return None
        async with self._operation(TxType.SUPPORTS, Key.FIND_ENTITY_BY_ID_FAILED, guid) as session:
            return await session.get(self.entity_class, guid)

    async def find_by_guids(self, guids: Iterable[str] | None) -> list[ModelType]:
        """
        Return the entities whose guid is in `guids`, in no particular order.
        None or an empty collection returns [] without querying.
        """
        guids = list(guids) if guids else []
        if not guids:
            return []
        async with self._operation(TxType.SUPPORTS, Key.FAILED_TO_GET_ENTITY_BY_GUIDS) as session:
            result = await session.execute(
                select(self.entity_class).where(self.entity_class.guid.in_(guids))
            )
            return list(result.scalars().all())

    async def find_page(
        self,
        start: int | None = None,
        count: int | None = None,
        order_by: str | None = None,
    ) -> list[ModelType]:
        """
        Return a page of entities.

        Args:
            start: number of rows to skip.
            count: page size.
            order_by: optional column name for a stable order.

        When both are given the max-results bound is `start + count`, measured
        from the first row of the full result (so rows start .. start+count-1
        come back). SQL LIMIT counts from the offset, hence the subtraction.

        Runs outside the caller's transaction.
        """
        async with self._operation(
            TxType.NOT_SUPPORTED, Key.FAILED_TO_GET_ALL_ENTITIES, start, count
        ) as session:
            stmt = select(self.entity_class)
            if order_by is not None:
                columns = sa_inspect(self.entity_class).columns
                if order_by not in columns:
                    raise ValueError(f"{self.entity_name} has no column '{order_by}'")
                stmt = stmt.order_by(columns[order_by])
            if start is not None:
                stmt = stmt.offset(start)
            if count is not None:
                max_results = start + count if start is not None else count
                stmt = stmt.limit(max_results - (start or 0))
            result = await session.execute(stmt)
            entities = list(result.scalars().all())
        self._log("repo.find_page.success", start=start, count=count, returned=len(entities))
        return entities

    async def find_by_query(
        self,
        query: str,
        params: QueryParam | Mapping[str, Any] | None = None,
    ) -> list[ModelType]:
        """
        Run an ad-hoc SQL query returning entities.

        `query` is normally a bare predicate with named binds:

            await repo.find_by_query("email = :email", QueryParam.with_("email", e))

        which runs as `SELECT <table>.* FROM <table> WHERE email = :email`. A query
        that already starts with FROM is used as given (joins, ordering, ...);
        only the entity table's columns are selected either way.
        """
        fragment = query.strip()
        if not _FROM_PREFIX.match(fragment):
            fragment = f"FROM {self.table.name} WHERE {fragment}"
        sql = f"SELECT {self.table.name}.* {fragment}"

        if isinstance(params, QueryParam):
            bind = params.map()
        else:
            bind = dict(params or {})

        async with self._operation(TxType.SUPPORTS, Key.FIND_BY_QUERY_FAILED, query) as session:
            stmt = select(self.entity_class).from_statement(text(sql))
            result = await session.execute(stmt, bind)
            return list(result.scalars().all())

    async def find_named(
        self,
        name: str,
        params: QueryParam | Mapping[str, Any] | None = None,
    ) -> list[ModelType]:
        """Run a query fragment registered in the entity's `__named_queries__`."""
        query = resolve_named_query(self.entity_class, name)
        if query is None:
            raise RepositoryError(
                Key.FIND_BY_QUERY_FAILED,
                self.entity_name,
                name,
                named_parameters={"reason": "unknown named query"},
            )
        return await self.find_by_query(query, params)

    # =================================================================================================================
    # Create / Update
    # =================================================================================================================

    async def create(self, entity: ModelType, *, flush: bool | None = None) -> ModelType:
        """
        Persist a new entity and return it.

        The guid is generated when the entity is constructed, so it is known
        before the INSERT. `entity.persisted` turns True once the INSERT ran:
        on flush, or when this call commits its own transaction.

        Raises:
            ConstraintError: a constraint rejected the row (name in `.constraint`).
            RepositoryError: PERSIST_ENTITY_FAILED for any other failure.
        """
        start = time.perf_counter()
        async with self._operation(TxType.REQUIRED, Key.PERSIST_ENTITY_FAILED) as session:
            session.add(entity)
            await self._flush(session, flush)

        logger.info(
            "repo.create.success",
            extra={
                "entity": self.entity_name,
                "guid": entity.guid,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    async def create_many(
        self, entities: list[ModelType] | None, *, flush: bool | None = None
    ) -> list[ModelType] | None:
        if entities is None:
            return None
        async with self._operation(TxType.REQUIRED, Key.PERSIST_ENTITY_FAILED) as session:
            session.add_all(entities)
            await self._flush(session, flush)
        self._log("repo.create_many.success", count=len(entities))
        return entities

    async def update(self, entity: ModelType, *, flush: bool | None = None) -> ModelType:
        """
        Merge `entity` into the session and return the merged instance.

        The merged instance may be a different object than `entity`; use the
        return value. A `version` that no longer matches the stored row
        raises ConstraintError with constraint OPTIMISTIC_LOCK_CONSTRAINT.
        """
        async with self._operation(TxType.REQUIRED, Key.MERGE_ENTITY_FAILED) as session:
            merged = await session.merge(entity)
            await self._flush(session, flush)
        self._log("repo.update.success", guid=merged.guid)
        return merged

    async def update_many(
        self, entities: list[ModelType] | None, *, flush: bool | None = None
    ) -> list[ModelType]:
        if entities is None:
            return []
        async with self._operation(TxType.REQUIRED, Key.MERGE_ENTITY_FAILED) as session:
            merged = [await session.merge(e) for e in entities]
            await self._flush(session, flush)
        self._log("repo.update_many.success", count=len(merged))
        return merged

    # =================================================================================================================
    # Delete (per entity; ORM events fire)
    # =================================================================================================================

    async def delete(self, entity: ModelType | None, *, flush: bool | None = None) -> bool:
        """Delete one entity. Returns False (and does nothing) for None."""
        if entity is None:
            return False
        async with self._operation(TxType.REQUIRED, Key.DELETE_ENTITY_FAILED) as session:
            await session.delete(entity)
            await self._flush(session, flush)
        self._log("repo.delete.success", guid=entity.guid)
        return True

    async def delete_many(
        self, entities: Iterable[ModelType] | None, *, flush: bool | None = None
    ) -> int:
        """
        Delete each entity through `delete()` and return how many were deleted.

        The first failure aborts the call; entities deleted before it stay
        deleted in the session unless the transaction is rolled back.
        """
        entities = list(entities) if entities else []
        if not entities:
            return 0
        deleted = 0
        async with self._operation(TxType.REQUIRED, Key.FAILED_TO_DELETE_ENTITY) as session:
            for entity in entities:
                if await self.delete(entity, flush=False):
                    deleted += 1
            await self._flush(session, flush)
        self._log("repo.delete_many.success", count=deleted)
        return deleted

    async def delete_entities(
        self, entities: Iterable[ModelType] | None, *, flush: bool | None = None
    ) -> bool:
        """
        Mark all `entities` deleted in one go. Returns False when nothing was given.
        """
        entities = list(entities) if entities else []
        if not entities:
            return False
        async with self._operation(TxType.REQUIRED, Key.DELETE_ENTITIES_FAILED) as session:
            for entity in entities:
                await session.delete(entity)
            await self._flush(session, flush)
        return True

    async def delete_all(self) -> int:
        """
        Delete every entity by loading them and deleting one by one.

        Per-entity ORM events and cascades fire; costs one round trip per row.
        See `delete_query_all()` for the set-based variant.
        """
        async with self._operation(TxType.REQUIRED, Key.FAILED_TO_DELETE_ALL):
            entities = await self.find_all()
            return await self.delete_many(entities, flush=True)

    # =================================================================================================================
    # Delete (set-based; bypasses per-entity events)
    # =================================================================================================================

    async def delete_query_all(self, *, flush: bool | None = None) -> int:
        async with self._operation(TxType.REQUIRED, Key.FAILED_TO_DELETE_ALL_QUERY) as session:
            result = await session.execute(self.delete_query())
            await self._flush(session, flush)
        self._log("repo.delete_query_all.success", rowcount=result.rowcount)
        return result.rowcount

    async def delete_by_guid(self, guid: str | None, *, flush: bool | None = None) -> bool:
        """Returns True when exactly one row was removed."""
        if guid is None:
            return False
        async with self._operation(
            TxType.REQUIRED, Key.FAILED_TO_DELETE_BY_GUID_QUERY, guid
        ) as session:
            result = await session.execute(
                self.delete_query().where(self.entity_class.guid == guid)
            )
            await self._flush(session, flush)
        return result.rowcount == 1

    async def delete_by_guids(
        self, guids: Iterable[str] | None, *, flush: bool | None = None
    ) -> int:
        guids = list(guids) if guids else []
        if not guids:
            return 0
        async with self._operation(
            TxType.REQUIRED, Key.FAILED_TO_DELETE_ALL_BY_GUIDS_QUERY
        ) as session:
            result = await session.execute(
                self.delete_query().where(self.entity_class.guid.in_(guids))
            )
            await self._flush(session, flush)
        return result.rowcount

    # =================================================================================================================
    # Graph-scoped loads
    # =================================================================================================================

    def _load_options(self) -> tuple:
        return self.load_graph or ()

    @property
    def _graph_param(self) -> str | None:
        return self.load_graph_name if self.load_graph is not None else None

    async def load_all(self) -> list[ModelType]:
        async with self._operation(
            TxType.REQUIRED, Key.FAILED_TO_LOAD_ALL_ENTITIES, self._graph_param
        ) as session:
            result = await session.execute(
                select(self.entity_class).options(*self._load_options())
            )
            return list(result.scalars().all())

    async def load_by_guid(self, guid: str | None) -> ModelType | None:
        if guid is None:
            return None
        async with self._operation(
            TxType.REQUIRED, Key.FAILED_TO_LOAD_ENTITY_BY_GUID, guid, self._graph_param
        ) as session:
            result = await session.execute(
                select(self.entity_class)
                .where(self.entity_class.guid == guid)
                .options(*self._load_options())
            )
            return result.scalar_one_or_none()

    async def load_by_guids(self, guids: Iterable[str] | None) -> list[ModelType]:
        guids = list(guids) if guids else []
        if not guids:
            return []
        async with self._operation(
            TxType.REQUIRED, Key.FAILED_TO_LOAD_GUIDS_ENTITIES, self._graph_param
        ) as session:
            result = await session.execute(
                select(self.entity_class)
                .where(self.entity_class.guid.in_(guids))
                .options(*self._load_options())
            )
            return list(result.scalars().all())

    # =================================================================================================================
    # Lock / Refresh
    # =================================================================================================================

    async def refresh(self, entity: ModelType) -> ModelType:
        """Re-read the entity's state from storage."""
        async with self._operation(TxType.SUPPORTS, Key.REFRESH_ENTITY_FAILED, entity.guid) as session:
            await session.refresh(entity)
        return entity

    async def lock(self, entity: ModelType, *, read: bool = False, nowait: bool = False) -> ModelType:
        """
        Re-read the entity's row with SELECT ... FOR UPDATE (FOR SHARE when
        `read=True`). The lock lasts until the surrounding transaction ends, so
        call this inside the caller's transaction.
        """
        async with self._operation(TxType.REQUIRED, Key.LOCK_ENTITY_FAILED, entity.guid) as session:
            await session.refresh(entity, with_for_update={"read": read, "nowait": nowait})
        return entity
