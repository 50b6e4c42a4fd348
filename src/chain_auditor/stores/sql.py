"""SQL-backed chain store using the SQLAlchemy async engine.

Records live in one table, partitioned by a chain-key column and ordered by
a sequence column.  Column and table names are configurable; the defaults
match the audit writer's layout::

    audit(customer, timestamp, hash, previous_hash)

Every query runs in its own short connection and is read-only.  Rows are
fetched and converted to :class:`~chain_auditor.core.types.ChainRecord`
while the connection is open; any :class:`~sqlalchemy.exc.SQLAlchemyError`,
or a value the sequence column type or the record model rejects, is
re-raised as :class:`~chain_auditor.core.errors.StoreUnavailable`.

The sequence column is a timezone-aware ``DateTime`` unless another type
is given; :func:`sequence_column_type` maps the configured
``sequence_type`` name (``datetime``, ``integer``, ``string``) to one.
"""
from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

from pydantic import ValidationError
from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    func,
    or_,
    select,
)
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql import Select
from sqlalchemy.types import TypeEngine

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import StoreUnavailable
from chain_auditor.core.types import EMPTY_HASH, ChainRecord, Direction

logger = logging.getLogger(__name__)

_SEQUENCE_TYPES: dict[str, Callable[[], TypeEngine[Any]]] = {
    "datetime": lambda: DateTime(timezone=True),
    "integer": Integer,
    "string": String,
}


def sequence_column_type(name: str) -> TypeEngine[Any]:
    """Return the SQLAlchemy type for a configured ``sequence_type`` name."""
    try:
        factory = _SEQUENCE_TYPES[name]
    except KeyError:
        msg = f"Unknown sequence type {name!r}; expected one of {sorted(_SEQUENCE_TYPES)}"
        raise ValueError(msg) from None
    return factory()


def build_table(
    metadata: MetaData,
    *,
    table_name: str = "audit",
    chain_key_column: str = "customer",
    sequence_column: str = "timestamp",
    hash_column: str = "hash",
    previous_hash_column: str = "previous_hash",
    sequence_type: TypeEngine[Any] | None = None,
) -> Table:
    """Describe the audit table with the given column names.

    The description is only used to build queries; the verifier never
    creates or alters the table.
    """
    return Table(
        table_name,
        metadata,
        Column(chain_key_column, String, primary_key=True, key="chain_key"),
        Column(
            sequence_column,
            sequence_type if sequence_type is not None else DateTime(timezone=True),
            primary_key=True,
            key="sequence_key",
        ),
        Column(hash_column, String, nullable=False, key="record_hash"),
        Column(previous_hash_column, String, nullable=True, key="previous_hash"),
    )


class SqlChainStore:
    """:class:`~chain_auditor.core.interfaces.ChainStore` over a SQL table.

    Parameters
    ----------
    engine:
        An async SQLAlchemy engine.  The store does not own it unless
        created through :meth:`from_config`.
    table:
        Table description from :func:`build_table`.
    consistent_reads:
        Whether the database serves strongly consistent reads.  Point this
        at a primary, never at a lagging replica.
    """

    __slots__ = ("_engine", "_owns_engine", "_table", "consistent_reads")

    def __init__(
        self,
        engine: AsyncEngine,
        table: Table,
        *,
        consistent_reads: bool = True,
        owns_engine: bool = False,
    ) -> None:
        self._engine = engine
        self._table = table
        self._owns_engine = owns_engine
        self.consistent_reads = consistent_reads

    @classmethod
    def from_config(cls, config: AuditorConfig) -> SqlChainStore:
        """Create an engine and table description from *config*."""
        if not config.database_url:
            raise ValueError("database_url is required for the sql store")
        engine = create_async_engine(config.database_url)
        table = build_table(
            MetaData(),
            table_name=config.table_name,
            chain_key_column=config.chain_key_column,
            sequence_column=config.sequence_column,
            hash_column=config.hash_column,
            previous_hash_column=config.previous_hash_column,
            sequence_type=sequence_column_type(config.sequence_type),
        )
        return cls(
            engine,
            table,
            consistent_reads=config.consistent_reads,
            owns_engine=True,
        )

    @property
    def table(self) -> Table:
        return self._table

    async def close(self) -> None:
        """Dispose of the engine if this store created it."""
        if self._owns_engine:
            await self._engine.dispose()

    # -- ChainStore ---------------------------------------------------------

    async def count(self, chain_key: str) -> int:
        c = self._table.c
        stmt = select(func.count()).select_from(self._table).where(c.chain_key == chain_key)
        async with self._connect("count", chain_key) as conn:
            result = await conn.execute(stmt)
            return int(result.scalar_one())

    async def find_extreme(
        self, chain_key: str, direction: Direction
    ) -> ChainRecord | None:
        c = self._table.c
        order = c.sequence_key.asc() if direction is Direction.EARLIEST else c.sequence_key.desc()
        stmt = self._select(chain_key).order_by(order).limit(1)
        async with self._connect("find_extreme", chain_key) as conn:
            result = await conn.execute(stmt)
            row = result.mappings().first()
            return None if row is None else self._to_record(row)

    async def find_by_previous_hash(
        self, chain_key: str, previous_hash: str
    ) -> list[ChainRecord]:
        c = self._table.c
        if previous_hash == EMPTY_HASH:
            condition = or_(c.previous_hash == EMPTY_HASH, c.previous_hash.is_(None))
        else:
            condition = c.previous_hash == previous_hash
        stmt = self._select(chain_key).where(condition)
        async with self._connect("find_by_previous_hash", chain_key) as conn:
            result = await conn.execute(stmt)
            return self._to_records(result.mappings().all())

    async def list_hashes(self, chain_key: str) -> list[str]:
        c = self._table.c
        stmt = (
            select(c.record_hash)
            .where(c.chain_key == chain_key)
            .order_by(c.sequence_key.asc())
        )
        async with self._connect("list_hashes", chain_key) as conn:
            result = await conn.execute(stmt)
            return [str(h) for h in result.scalars().all()]

    # -- internals ----------------------------------------------------------

    def _select(self, chain_key: str) -> Select[Any]:
        return select(self._table).where(self._table.c.chain_key == chain_key)

    @contextlib.asynccontextmanager
    async def _connect(
        self, operation: str, chain_key: str
    ) -> AsyncIterator[AsyncConnection]:
        try:
            async with self._engine.connect() as conn:
                yield conn
        except (SQLAlchemyError, TypeError, ValueError, ValidationError) as exc:
            logger.error(
                "Store query %s failed for chain %s: %s", operation, chain_key, exc,
            )
            raise StoreUnavailable(
                details={
                    "operation": operation,
                    "chain_key": chain_key,
                    "reason": type(exc).__name__,
                },
            ) from exc

    def _to_records(self, rows: Sequence[RowMapping]) -> list[ChainRecord]:
        return [self._to_record(row) for row in rows]

    def _to_record(self, row: RowMapping) -> ChainRecord:
        c = self._table.c
        return ChainRecord(
            chain_key=row[c.chain_key],
            sequence_key=row[c.sequence_key],
            record_hash=row[c.record_hash],
            previous_hash=row[c.previous_hash] or EMPTY_HASH,
        )

