"""Sequential walk of a hash chain from its genesis record.

The walker resolves, one step at a time, "the record whose previous-hash
equals the current record's hash".  Each step depends on the result of the
one before it, so the walk is strictly sequential.

A :class:`ChainWalker` is an async iterator over the records it reaches::

    walker = ChainWalker(store, "acme", genesis)
    async for record in walker:
        ...
    walker.state.outcome  # -> WalkOutcome.NORMAL_END

Iteration stops at the first terminal condition: no successor, several
successors, cancellation, or more records than the chain should hold.
The terminal state is then available as :attr:`ChainWalker.state`.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass

from chain_auditor.core.interfaces import ChainStore
from chain_auditor.core.types import ChainRecord, SuccessorQuery

logger = logging.getLogger(__name__)


class WalkOutcome(enum.StrEnum):
    """How a walk terminated."""

    NORMAL_END = "normal_end"
    FORK_DETECTED = "fork_detected"
    CANCELLED = "cancelled"
    OVERRUN = "overrun"


@dataclass(frozen=True, slots=True)
class ForkPoint:
    """A record with more than one successor."""

    record_hash: str
    successors: tuple[ChainRecord, ...]


@dataclass(frozen=True, slots=True)
class WalkState:
    """Terminal state of a walk.

    Attributes
    ----------
    hops:
        Successful steps taken; the walk visited ``hops + 1`` records.
    last_record:
        The last record reached.
    outcome:
        Why the walk stopped.
    fork:
        The fork point when ``outcome`` is ``FORK_DETECTED``.
    """

    hops: int
    last_record: ChainRecord
    outcome: WalkOutcome
    fork: ForkPoint | None = None

    @property
    def records_visited(self) -> int:
        return self.hops + 1


class ChainWalker:
    """Lazy, finite, single-use walk over a chain.

    Parameters
    ----------
    store:
        The store answering successor lookups.
    chain_key:
        Chain to walk; every lookup is scoped to it.
    genesis:
        The record to start from.
    cancel_event:
        When set, the walk stops before its next lookup.
    deadline:
        A :func:`time.monotonic` value after which the walk stops before
        its next lookup.
    max_records:
        Upper bound on records visited.  Reaching a further successor ends
        the walk with ``OVERRUN``.
    """

    __slots__ = (
        "_cancel_event",
        "_chain_key",
        "_deadline",
        "_genesis",
        "_max_records",
        "_started",
        "_state",
        "_store",
        "_visited_hashes",
    )

    def __init__(
        self,
        store: ChainStore,
        chain_key: str,
        genesis: ChainRecord,
        *,
        cancel_event: asyncio.Event | None = None,
        deadline: float | None = None,
        max_records: int | None = None,
        track_visited: bool = False,
    ) -> None:
        self._store = store
        self._chain_key = chain_key
        self._genesis = genesis
        self._cancel_event = cancel_event
        self._deadline = deadline
        self._max_records = max_records
        self._started = False
        self._state: WalkState | None = None
        self._visited_hashes: list[str] | None = [] if track_visited else None

    @property
    def state(self) -> WalkState:
        """Terminal state of the walk.

        Raises :class:`RuntimeError` if the walk has not finished.
        """
        if self._state is None:
            raise RuntimeError("Walk has not finished")
        return self._state

    @property
    def visited_hashes(self) -> list[str]:
        """Hashes reached by the walk, when created with ``track_visited``."""
        return list(self._visited_hashes or [])

    def __aiter__(self) -> AsyncIterator[ChainRecord]:
        if self._started:
            raise RuntimeError("ChainWalker cannot be restarted")
        self._started = True
        return self._walk()

    async def run(self) -> WalkState:
        """Drain the walk and return its terminal state."""
        async for _ in self:
            pass
        return self.state

    def _cancelled(self) -> bool:
        if self._cancel_event is not None and self._cancel_event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def _finish(
        self,
        hops: int,
        current: ChainRecord,
        outcome: WalkOutcome,
        fork: ForkPoint | None = None,
    ) -> None:
        self._state = WalkState(
            hops=hops, last_record=current, outcome=outcome, fork=fork,
        )
        logger.debug(
            "Walk of %s ended: outcome=%s hops=%d last=%s",
            self._chain_key, outcome, hops, current.record_hash,
        )

    async def _walk(self) -> AsyncIterator[ChainRecord]:
        current = self._genesis
        hops = 0
        self._track(current)
        yield current

        while True:
            if self._cancelled():
                self._finish(hops, current, WalkOutcome.CANCELLED)
                return

            query = SuccessorQuery(self._chain_key, current.record_hash)
            successors = await self._store.find_by_previous_hash(
                query.chain_key, query.record_hash,
            )

            if not successors:
                self._finish(hops, current, WalkOutcome.NORMAL_END)
                return
            if len(successors) > 1:
                fork = ForkPoint(current.record_hash, tuple(successors))
                self._finish(hops, current, WalkOutcome.FORK_DETECTED, fork)
                return
            if self._max_records is not None and hops + 1 >= self._max_records:
                self._finish(hops, current, WalkOutcome.OVERRUN)
                return

            current = successors[0]
            hops += 1
            logger.debug("Hop %d on %s -> %s", hops, self._chain_key, current.record_hash)
            self._track(current)
            yield current

    def _track(self, record: ChainRecord) -> None:
        if self._visited_hashes is not None:
            self._visited_hashes.append(record.record_hash)
