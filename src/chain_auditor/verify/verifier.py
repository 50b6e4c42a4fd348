"""High-level verification entry point.

:class:`ChainVerifier` wires the three stages together for one chain::

    locate_endpoints -> ChainWalker -> judge

and runs many independent chains concurrently with :meth:`verify_many`.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Iterable

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import ChainAuditError, InconsistentReads
from chain_auditor.core.interfaces import ChainStore, EnumerableChainStore
from chain_auditor.verify.judge import judge
from chain_auditor.verify.locator import locate_endpoints
from chain_auditor.verify.verdicts import CountMismatch, Verdict
from chain_auditor.verify.walker import ChainWalker

logger = logging.getLogger(__name__)


class ChainVerifier:
    """Verifies hash chains held in a :class:`ChainStore`.

    Parameters
    ----------
    store:
        Read-only store holding the chains.  Must serve consistent reads.
    config:
        Run settings; defaults to :class:`AuditorConfig` defaults.

    Raises
    ------
    InconsistentReads
        If the store declares ``consistent_reads = False``.
    """

    __slots__ = ("_config", "_store")

    def __init__(
        self,
        store: ChainStore,
        config: AuditorConfig | None = None,
    ) -> None:
        if not getattr(store, "consistent_reads", False):
            raise InconsistentReads(
                details={"store": type(store).__name__},
            )
        self._store = store
        self._config = config or AuditorConfig()

    @property
    def config(self) -> AuditorConfig:
        return self._config

    async def verify(
        self,
        chain_key: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> Verdict:
        """Verify a single chain and return its verdict.

        Raises
        ------
        EmptyChain, DuplicateGenesis, GenesisMissing
            If the chain has no usable genesis record.
        StoreUnavailable, EndpointNotFound
            If the store fails or contradicts itself.
        """
        deadline = None
        if self._config.walk_timeout_seconds is not None:
            deadline = time.monotonic() + self._config.walk_timeout_seconds

        endpoints = await locate_endpoints(self._store, chain_key)
        walker = ChainWalker(
            self._store,
            chain_key,
            endpoints.genesis,
            cancel_event=cancel_event,
            deadline=deadline,
            max_records=endpoints.total_count,
            track_visited=self._config.enumerate_orphans,
        )
        state = await walker.run()
        verdict = judge(endpoints, state)

        if isinstance(verdict, CountMismatch) and verdict.discrepancy > 0:
            orphans = await self._find_orphans(chain_key, walker.visited_hashes)
            if orphans:
                verdict = dataclasses.replace(verdict, orphan_hashes=orphans)

        if verdict.is_valid:
            logger.info(
                "Chain %s verified: %d hops checked", chain_key, verdict.hops_checked,
            )
        else:
            logger.warning("Chain %s failed verification: %s", chain_key, verdict)
        return verdict

    async def verify_many(
        self,
        chain_keys: Iterable[str],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> dict[str, Verdict | ChainAuditError]:
        """Verify several chains concurrently.

        A chain that raises a :class:`ChainAuditError` gets the error as its
        result; it never aborts the other chains.
        """
        semaphore = asyncio.Semaphore(self._config.max_concurrent_chains)

        async def _one(key: str) -> Verdict | ChainAuditError:
            async with semaphore:
                try:
                    return await self.verify(key, cancel_event=cancel_event)
                except ChainAuditError as exc:
                    logger.warning("Chain %s could not be verified: %r", key, exc)
                    return exc

        keys = list(dict.fromkeys(chain_keys))
        results = await asyncio.gather(*(_one(k) for k in keys))
        return dict(zip(keys, results, strict=True))

    async def _find_orphans(
        self, chain_key: str, visited: list[str]
    ) -> tuple[str, ...]:
        if not self._config.enumerate_orphans:
            return ()
        if not isinstance(self._store, EnumerableChainStore):
            logger.debug("Store cannot enumerate hashes; skipping orphan listing")
            return ()
        seen = set(visited)
        all_hashes = await self._store.list_hashes(chain_key)
        return tuple(h for h in all_hashes if h not in seen)
