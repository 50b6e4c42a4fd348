"""Shared fixtures for chain-integrity conformance tests.

Provides in-memory stores holding correctly linked chains.  Chain records
are named ``h0``, ``h1``, ... with sequence keys 0, 10, 20, ...
"""
from __future__ import annotations

from collections.abc import Callable

import pytest

from chain_auditor.core.interfaces import InMemoryChainStore
from chain_auditor.core.types import EMPTY_HASH, ChainRecord


@pytest.fixture()
def chain_store() -> Callable[..., InMemoryChainStore]:
    """Factory: ``chain_store(n)`` -> store with an n-record chain."""

    def _make(length: int, *, chain_key: str = "tenant-1") -> InMemoryChainStore:
        store = InMemoryChainStore()
        previous = EMPTY_HASH
        for i in range(length):
            store.add(ChainRecord(
                chain_key=chain_key,
                sequence_key=i * 10,
                record_hash=f"h{i}",
                previous_hash=previous,
            ))
            previous = f"h{i}"
        return store

    return _make


@pytest.fixture()
def abc_chain() -> InMemoryChainStore:
    """The three-record chain ``a <- b <- c``."""
    store = InMemoryChainStore()
    for seq, (h, prev) in enumerate([("a", ""), ("b", "a"), ("c", "b")]):
        store.add(ChainRecord(
            chain_key="abc", sequence_key=seq, record_hash=h, previous_hash=prev,
        ))
    return store
