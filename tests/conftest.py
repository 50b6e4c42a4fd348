"""Shared fixtures for chain-auditor unit tests.

Chains are built from a list of hashes: the first hash is genesis and each
following record points back to the one before it.  Sequence keys are
spaced by 10 so that tests can slot extra records between neighbours.
"""
from __future__ import annotations

from collections.abc import Callable

import pytest

from chain_auditor.core.interfaces import InMemoryChainStore
from chain_auditor.core.types import EMPTY_HASH, ChainRecord

CHAIN_KEY = "acme"
OTHER_CHAIN_KEY = "globex"


def linked_records(
    hashes: list[str],
    *,
    chain_key: str = CHAIN_KEY,
    step: int = 10,
) -> list[ChainRecord]:
    records = []
    previous = EMPTY_HASH
    for i, h in enumerate(hashes):
        records.append(ChainRecord(
            chain_key=chain_key,
            sequence_key=i * step,
            record_hash=h,
            previous_hash=previous,
        ))
        previous = h
    return records


@pytest.fixture()
def make_store() -> Callable[..., InMemoryChainStore]:
    """Factory: ``make_store(["a", "b", "c"])`` -> store holding a linked chain."""

    def _make(
        hashes: list[str],
        *,
        chain_key: str = CHAIN_KEY,
    ) -> InMemoryChainStore:
        return InMemoryChainStore(linked_records(hashes, chain_key=chain_key))

    return _make


@pytest.fixture()
def abc_store(make_store: Callable[..., InMemoryChainStore]) -> InMemoryChainStore:
    return make_store(["a", "b", "c"])


@pytest.fixture()
def make_records() -> Callable[..., list[ChainRecord]]:
    """Factory: ``make_records(["a", "b"])`` -> linked records, not stored."""
    return linked_records
