"""Endpoint location: record count, genesis record, and head record.

The four reads issued here are independent of each other and run
concurrently.  Any store failure propagates unchanged as
:class:`~chain_auditor.core.errors.StoreUnavailable`.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from chain_auditor.core.errors import (
    DuplicateGenesis,
    EmptyChain,
    EndpointNotFound,
    GenesisMissing,
)
from chain_auditor.core.interfaces import ChainStore
from chain_auditor.core.types import EMPTY_HASH, ChainRecord, Direction

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ChainEndpoints:
    """The independently obtained facts the walk is judged against."""

    chain_key: str
    total_count: int
    genesis: ChainRecord
    head: ChainRecord


async def locate_endpoints(store: ChainStore, chain_key: str) -> ChainEndpoints:
    """Find the record count, genesis record, and head record of a chain.

    The genesis record is the earliest record by sequence key.  It must
    also be the one and only record carrying an empty previous-hash.

    Raises
    ------
    EmptyChain
        If the chain holds no records.
    DuplicateGenesis
        If more than one record carries an empty previous-hash.
    GenesisMissing
        If no record carries an empty previous-hash, or the one that does
        is not the earliest record.
    EndpointNotFound
        If the store counts records but returns no earliest/latest record.
    StoreUnavailable
        If any store query fails.
    """
    total_count, earliest, latest, candidates = await asyncio.gather(
        store.count(chain_key),
        store.find_extreme(chain_key, Direction.EARLIEST),
        store.find_extreme(chain_key, Direction.LATEST),
        store.find_by_previous_hash(chain_key, EMPTY_HASH),
    )

    if total_count == 0:
        raise EmptyChain(details={"chain_key": chain_key})
    if earliest is None or latest is None:
        raise EndpointNotFound(
            details={"chain_key": chain_key, "total_count": total_count},
        )
    if len(candidates) > 1:
        raise DuplicateGenesis(
            details={
                "chain_key": chain_key,
                "candidate_hashes": [r.record_hash for r in candidates],
            },
        )
    if not candidates or candidates[0].record_hash != earliest.record_hash:
        raise GenesisMissing(
            details={
                "chain_key": chain_key,
                "earliest_hash": earliest.record_hash,
                "earliest_previous_hash": earliest.previous_hash,
            },
        )

    logger.debug(
        "Located chain %s: count=%d genesis=%s head=%s",
        chain_key, total_count, earliest.record_hash, latest.record_hash,
    )
    return ChainEndpoints(
        chain_key=chain_key,
        total_count=total_count,
        genesis=earliest,
        head=latest,
    )
