"""chain-auditor store interfaces and the in-memory implementation.

This module defines the *structural* interface (``typing.Protocol``) of the
read-only store the verifier consumes, plus a lightweight in-memory
implementation suitable for testing and local development.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

Stores MUST serve strongly consistent reads.  A store that cannot do so
declares ``consistent_reads = False`` and the verifier refuses it.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Protocol, runtime_checkable

from chain_auditor.core.types import ChainRecord, Direction

# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class ChainStore(Protocol):
    """Read-only access to hash-chained records partitioned by chain key."""

    consistent_reads: bool

    async def count(self, chain_key: str) -> int:
        """Return the number of records stored under *chain_key*."""
        ...

    async def find_extreme(
        self, chain_key: str, direction: Direction
    ) -> ChainRecord | None:
        """Return the earliest or latest record by sequence key.

        Returns ``None`` if the chain holds no records.
        """
        ...

    async def find_by_previous_hash(
        self, chain_key: str, previous_hash: str
    ) -> list[ChainRecord]:
        """Return every record of *chain_key* whose previous-hash matches.

        The result may hold zero, one or several records; the caller
        decides what each case means.
        """
        ...


@runtime_checkable
class EnumerableChainStore(ChainStore, Protocol):
    """A :class:`ChainStore` that can also list every hash in a chain."""

    async def list_hashes(self, chain_key: str) -> list[str]:
        """Return the ``record_hash`` of every record under *chain_key*."""
        ...


# ===================================================================
# In-memory implementation
# ===================================================================

class InMemoryChainStore:
    """In-memory chain store for testing and development.

    Records are kept per chain key in insertion order.  A secondary index
    on ``previous_hash`` serves successor lookups, mirroring the indexed
    query a database store would issue.  No integrity checks are performed
    on insert; that is the verifier's job.

    Not thread-safe.
    """

    consistent_reads = True

    def __init__(self, records: list[ChainRecord] | None = None) -> None:
        self._chains: dict[str, list[ChainRecord]] = defaultdict(list)
        self._by_previous: dict[tuple[str, str], list[ChainRecord]] = defaultdict(list)
        for record in records or []:
            self.add(record)

    def add(self, record: ChainRecord) -> None:
        """Store *record* under its chain key."""
        self._chains[record.chain_key].append(record)
        self._by_previous[(record.chain_key, record.previous_hash)].append(record)

    def remove(self, chain_key: str, record_hash: str) -> None:
        """Delete the record with *record_hash* from *chain_key*.

        Raises :class:`KeyError` if no such record exists.
        """
        records = self._chains.get(chain_key, [])
        for record in records:
            if record.record_hash == record_hash:
                records.remove(record)
                self._by_previous[(chain_key, record.previous_hash)].remove(record)
                return
        raise KeyError(f"No record {record_hash!r} in chain {chain_key!r}")

    def records(self, chain_key: str) -> list[ChainRecord]:
        """Return a copy of the records stored under *chain_key*."""
        return list(self._chains.get(chain_key, []))

    async def count(self, chain_key: str) -> int:
        """Return the number of records in *chain_key*."""
        return len(self._chains.get(chain_key, []))

    async def find_extreme(
        self, chain_key: str, direction: Direction
    ) -> ChainRecord | None:
        """Return the record with the smallest or largest sequence key."""
        records = self._chains.get(chain_key)
        if not records:
            return None
        pick = min if direction is Direction.EARLIEST else max
        return pick(records, key=lambda r: r.sequence_key)

    async def find_by_previous_hash(
        self, chain_key: str, previous_hash: str
    ) -> list[ChainRecord]:
        """Return the records whose previous-hash equals *previous_hash*."""
        return list(self._by_previous.get((chain_key, previous_hash), []))

    async def list_hashes(self, chain_key: str) -> list[str]:
        """Return every record hash in *chain_key*, in insertion order."""
        return [r.record_hash for r in self._chains.get(chain_key, [])]
