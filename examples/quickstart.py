#!/usr/bin/env python3
"""chain-auditor quickstart.

Demonstrates the verification workflow:

1. Load a hash-chained audit log into an in-memory store.
2. Verify it (valid).
3. Tamper with it three ways and verify again.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio

from chain_auditor import (
    AuditorConfig,
    ChainAuditError,
    ChainRecord,
    ChainVerifier,
    InMemoryChainStore,
)


def build_store() -> InMemoryChainStore:
    store = InMemoryChainStore()
    previous = ""
    for i, h in enumerate(["9f2c", "41ab", "c0de", "77e1", "be5a"]):
        store.add(ChainRecord(
            chain_key="acme",
            sequence_key=i,
            record_hash=h,
            previous_hash=previous,
        ))
        previous = h
    return store


async def main() -> None:
    # -- Step 1: Load the log ------------------------------------------------
    store = build_store()
    verifier = ChainVerifier(store, AuditorConfig(enumerate_orphans=True))
    print(f"[1] Loaded {await store.count('acme')} records for chain 'acme'")

    # -- Step 2: Verify the untouched chain ------------------------------------
    print(f"[2] {await verifier.verify('acme')}")

    # -- Step 3a: Fork -- a second record claims the same predecessor ----------
    store.add(ChainRecord(
        chain_key="acme", sequence_key=2, record_hash="dead", previous_hash="41ab",
    ))
    print(f"[3] after fork:    {await verifier.verify('acme')}")
    store.remove("acme", "dead")

    # -- Step 3b: Orphan -- a record that nothing links to ---------------------
    store.add(ChainRecord(
        chain_key="acme", sequence_key=3, record_hash="f00d", previous_hash="????",
    ))
    print(f"    after orphan:  {await verifier.verify('acme')}")
    store.remove("acme", "f00d")

    # -- Step 3c: Deletion -- the middle record disappears ---------------------
    store.remove("acme", "c0de")
    print(f"    after removal: {await verifier.verify('acme')}")

    # -- Errors are raised, not returned ---------------------------------------
    try:
        await verifier.verify("nobody")
    except ChainAuditError as exc:
        print(f"    unknown chain: [{exc.code}] {exc.message}")


if __name__ == "__main__":
    asyncio.run(main())
