"""Tests for chain verification.

Covers the verify subpackage:

1. **Locator** -- count/genesis/head, empty chain, genesis ambiguity.
2. **Walker** -- record order, terminal outcomes, cancellation, single use.
3. **Judge** -- verdict ordering and payloads.
4. **Verifier** -- end-to-end verdicts, orphan listing, multi-chain runs.
"""
from __future__ import annotations

import asyncio
import time

import pytest

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import (
    DuplicateGenesis,
    EmptyChain,
    EndpointNotFound,
    GenesisMissing,
    InconsistentReads,
    StoreUnavailable,
)
from chain_auditor.core.interfaces import InMemoryChainStore
from chain_auditor.core.types import ChainRecord, Direction
from chain_auditor.verify import (
    Broken,
    ChainEndpoints,
    ChainVerifier,
    ChainWalker,
    CountMismatch,
    Forked,
    Incomplete,
    Valid,
    VerdictKind,
    WalkOutcome,
    WalkState,
    judge,
    locate_endpoints,
)
from chain_auditor.verify.walker import ForkPoint

# ---------------------------------------------------------------------------
# Store doubles
# ---------------------------------------------------------------------------


class StaleCountStore(InMemoryChainStore):
    """Reports a fixed record count regardless of contents."""

    def __init__(self, records: list[ChainRecord], reported: int) -> None:
        super().__init__(records)
        self._reported = reported

    async def count(self, chain_key: str) -> int:
        return self._reported


class FailingStore(InMemoryChainStore):
    """Fails successor lookups once *fail_after* of them have succeeded."""

    def __init__(self, records: list[ChainRecord], fail_after: int) -> None:
        super().__init__(records)
        self._remaining = fail_after

    async def find_by_previous_hash(
        self, chain_key: str, previous_hash: str
    ) -> list[ChainRecord]:
        if previous_hash:
            if self._remaining == 0:
                raise StoreUnavailable(details={"operation": "find_by_previous_hash"})
            self._remaining -= 1
        return await super().find_by_previous_hash(chain_key, previous_hash)


class CancellingStore(InMemoryChainStore):
    """Sets *event* after *after* successor lookups."""

    def __init__(
        self, records: list[ChainRecord], event: asyncio.Event, after: int
    ) -> None:
        super().__init__(records)
        self._event = event
        self._after = after
        self.lookups = 0

    async def find_by_previous_hash(
        self, chain_key: str, previous_hash: str
    ) -> list[ChainRecord]:
        if previous_hash:
            self.lookups += 1
            if self.lookups >= self._after:
                self._event.set()
        return await super().find_by_previous_hash(chain_key, previous_hash)


class NoExtremeStore(InMemoryChainStore):
    async def find_extreme(self, chain_key: str, direction: Direction) -> None:
        return None


class EventuallyConsistentStore(InMemoryChainStore):
    consistent_reads = False


def record(h: str, prev: str, seq: int, chain_key: str = "acme") -> ChainRecord:
    return ChainRecord(
        chain_key=chain_key, sequence_key=seq, record_hash=h, previous_hash=prev,
    )


# ===================================================================
# Test: Endpoint Locator
# ===================================================================


class TestLocateEndpoints:
    """Tests for locate_endpoints."""

    async def test_locates_count_genesis_head(self, abc_store) -> None:
        endpoints = await locate_endpoints(abc_store, "acme")
        assert endpoints.chain_key == "acme"
        assert endpoints.total_count == 3
        assert endpoints.genesis.record_hash == "a"
        assert endpoints.head.record_hash == "c"

    async def test_empty_chain(self) -> None:
        with pytest.raises(EmptyChain) as excinfo:
            await locate_endpoints(InMemoryChainStore(), "acme")
        assert excinfo.value.details["chain_key"] == "acme"

    async def test_duplicate_genesis(self, abc_store) -> None:
        abc_store.add(record("x", "", 25))
        with pytest.raises(DuplicateGenesis) as excinfo:
            await locate_endpoints(abc_store, "acme")
        assert sorted(excinfo.value.details["candidate_hashes"]) == ["a", "x"]

    async def test_missing_genesis(self) -> None:
        store = InMemoryChainStore([record("b", "a", 10), record("c", "b", 20)])
        with pytest.raises(GenesisMissing):
            await locate_endpoints(store, "acme")

    async def test_genesis_not_earliest(self) -> None:
        store = InMemoryChainStore([
            record("b", "a", 0),
            record("a", "", 10),
            record("c", "b", 20),
        ])
        with pytest.raises(GenesisMissing) as excinfo:
            await locate_endpoints(store, "acme")
        assert excinfo.value.details["earliest_hash"] == "b"

    async def test_endpoint_not_found(self, make_records) -> None:
        store = NoExtremeStore(make_records(["a", "b"]))
        with pytest.raises(EndpointNotFound):
            await locate_endpoints(store, "acme")

    async def test_store_failure_propagates(self, make_records) -> None:
        class BrokenCount(InMemoryChainStore):
            async def count(self, chain_key: str) -> int:
                raise StoreUnavailable()

        with pytest.raises(StoreUnavailable):
            await locate_endpoints(BrokenCount(make_records(["a"])), "acme")


# ===================================================================
# Test: Chain Walker
# ===================================================================


class TestChainWalker:
    """Tests for ChainWalker."""

    async def test_yields_records_in_chain_order(self, make_store) -> None:
        store = make_store(["a", "b", "c", "d"])
        genesis = await store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(store, "acme", genesis)
        seen = [r.record_hash async for r in walker]
        assert seen == ["a", "b", "c", "d"]
        assert walker.state.outcome is WalkOutcome.NORMAL_END
        assert walker.state.hops == 3
        assert walker.state.records_visited == 4
        assert walker.state.last_record.record_hash == "d"

    async def test_single_record(self, make_store) -> None:
        store = make_store(["a"])
        genesis = await store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(store, "acme", genesis).run()
        assert state.hops == 0
        assert state.outcome is WalkOutcome.NORMAL_END

    async def test_fork_detected(self, abc_store) -> None:
        abc_store.add(record("b2", "a", 15))
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(abc_store, "acme", genesis).run()
        assert state.outcome is WalkOutcome.FORK_DETECTED
        assert state.fork is not None
        assert state.fork.record_hash == "a"
        assert {r.record_hash for r in state.fork.successors} == {"b", "b2"}
        assert state.hops == 0

    async def test_cancel_event_before_start(self, abc_store) -> None:
        event = asyncio.Event()
        event.set()
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(abc_store, "acme", genesis, cancel_event=event).run()
        assert state.outcome is WalkOutcome.CANCELLED
        assert state.hops == 0

    async def test_cancel_event_mid_walk(self, make_records) -> None:
        event = asyncio.Event()
        store = CancellingStore(make_records(["a", "b", "c", "d", "e"]), event, after=2)
        genesis = await store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(store, "acme", genesis, cancel_event=event).run()
        assert state.outcome is WalkOutcome.CANCELLED
        assert state.hops == 2
        assert store.lookups == 2

    async def test_deadline_passed(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(
            abc_store, "acme", genesis, deadline=time.monotonic() - 1.0,
        )
        state = await walker.run()
        assert state.outcome is WalkOutcome.CANCELLED

    async def test_overrun(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(abc_store, "acme", genesis, max_records=2).run()
        assert state.outcome is WalkOutcome.OVERRUN
        assert state.hops == 1
        assert state.last_record.record_hash == "b"

    async def test_max_records_exact_is_not_overrun(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        state = await ChainWalker(abc_store, "acme", genesis, max_records=3).run()
        assert state.outcome is WalkOutcome.NORMAL_END

    async def test_not_restartable(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(abc_store, "acme", genesis)
        await walker.run()
        with pytest.raises(RuntimeError):
            async for _ in walker:
                pass

    async def test_state_before_finish_raises(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(abc_store, "acme", genesis)
        with pytest.raises(RuntimeError):
            _ = walker.state

    async def test_store_failure_propagates(self, make_records) -> None:
        store = FailingStore(make_records(["a", "b", "c"]), fail_after=1)
        genesis = await store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(store, "acme", genesis)
        with pytest.raises(StoreUnavailable):
            await walker.run()

    async def test_tracks_visited_hashes(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(abc_store, "acme", genesis, track_visited=True)
        await walker.run()
        assert walker.visited_hashes == ["a", "b", "c"]

    async def test_visited_hashes_empty_when_not_tracking(self, abc_store) -> None:
        genesis = await abc_store.find_extreme("acme", Direction.EARLIEST)
        walker = ChainWalker(abc_store, "acme", genesis)
        await walker.run()
        assert walker.visited_hashes == []


# ===================================================================
# Test: Integrity Judge
# ===================================================================


A = record("a", "", 0)
B = record("b", "a", 10)
C = record("c", "b", 20)


def endpoints(total: int = 3, head: ChainRecord = C) -> ChainEndpoints:
    return ChainEndpoints(chain_key="acme", total_count=total, genesis=A, head=head)


class TestJudge:
    """Tests for judge()."""

    def test_valid(self) -> None:
        verdict = judge(endpoints(), WalkState(2, C, WalkOutcome.NORMAL_END))
        assert verdict == Valid(chain_key="acme", hops_checked=2)
        assert verdict.is_valid
        assert verdict.kind is VerdictKind.VALID

    def test_broken(self) -> None:
        verdict = judge(endpoints(), WalkState(1, B, WalkOutcome.NORMAL_END))
        assert isinstance(verdict, Broken)
        assert verdict.stopping_hash == "b"
        assert verdict.expected_head_hash == "c"
        assert verdict.hops_checked == 1
        assert not verdict.is_valid

    def test_forked(self) -> None:
        b2 = record("b2", "a", 15)
        state = WalkState(0, A, WalkOutcome.FORK_DETECTED, ForkPoint("a", (B, b2)))
        verdict = judge(endpoints(), state)
        assert isinstance(verdict, Forked)
        assert verdict.fork_hash == "a"
        assert verdict.successor_hashes == ("b", "b2")

    def test_count_mismatch_stale_count(self) -> None:
        verdict = judge(endpoints(total=4), WalkState(2, C, WalkOutcome.NORMAL_END))
        assert isinstance(verdict, CountMismatch)
        assert verdict.discrepancy == 1
        assert verdict.records_visited == 3
        assert verdict.total_count == 4

    def test_count_mismatch_carries_orphans(self) -> None:
        verdict = judge(
            endpoints(total=4),
            WalkState(2, C, WalkOutcome.NORMAL_END),
            orphan_hashes=["z"],
        )
        assert isinstance(verdict, CountMismatch)
        assert verdict.orphan_hashes == ("z",)

    def test_orphans_ignored_for_valid(self) -> None:
        verdict = judge(
            endpoints(), WalkState(2, C, WalkOutcome.NORMAL_END), orphan_hashes=["z"],
        )
        assert isinstance(verdict, Valid)

    def test_fork_without_fork_point_raises(self) -> None:
        state = WalkState(0, A, WalkOutcome.FORK_DETECTED)
        with pytest.raises(ValueError, match="fork point"):
            judge(endpoints(), state)

    def test_overrun_maps_to_negative_discrepancy(self) -> None:
        verdict = judge(endpoints(total=2), WalkState(1, B, WalkOutcome.OVERRUN))
        assert isinstance(verdict, CountMismatch)
        assert verdict.records_visited == 3
        assert verdict.discrepancy == -1

    def test_incomplete(self) -> None:
        verdict = judge(endpoints(), WalkState(1, B, WalkOutcome.CANCELLED))
        assert verdict == Incomplete(chain_key="acme", hops_checked=1)

    def test_broken_checked_before_count(self) -> None:
        verdict = judge(endpoints(total=5), WalkState(1, B, WalkOutcome.NORMAL_END))
        assert isinstance(verdict, Broken)

    def test_to_dict(self) -> None:
        verdict = judge(endpoints(), WalkState(1, B, WalkOutcome.NORMAL_END))
        assert verdict.to_dict() == {
            "verdict": "broken",
            "chain_key": "acme",
            "hops_checked": 1,
            "stopping_hash": "b",
            "expected_head_hash": "c",
        }


# ===================================================================
# Test: ChainVerifier
# ===================================================================


class TestChainVerifier:
    """End-to-end tests for ChainVerifier."""

    async def test_valid_chain(self, abc_store) -> None:
        verdict = await ChainVerifier(abc_store).verify("acme")
        assert verdict == Valid(chain_key="acme", hops_checked=2)

    async def test_rejects_inconsistent_store(self) -> None:
        with pytest.raises(InconsistentReads):
            ChainVerifier(EventuallyConsistentStore())

    async def test_broken_chain(self, make_store) -> None:
        store = make_store(["a", "b", "c", "d", "e"])
        store.remove("acme", "c")
        verdict = await ChainVerifier(store).verify("acme")
        assert isinstance(verdict, Broken)
        assert verdict.stopping_hash == "b"
        assert verdict.expected_head_hash == "e"

    async def test_orphan_count_mismatch(self, abc_store) -> None:
        abc_store.add(record("z", "nowhere", 15))
        verdict = await ChainVerifier(abc_store).verify("acme")
        assert isinstance(verdict, CountMismatch)
        assert verdict.discrepancy == 1
        assert verdict.orphan_hashes == ()

    async def test_orphan_enumeration(self, abc_store) -> None:
        abc_store.add(record("z", "nowhere", 15))
        config = AuditorConfig(enumerate_orphans=True)
        verdict = await ChainVerifier(abc_store, config).verify("acme")
        assert isinstance(verdict, CountMismatch)
        assert verdict.orphan_hashes == ("z",)

    async def test_stale_low_count_overruns(self, make_records) -> None:
        store = StaleCountStore(make_records(["a", "b", "c"]), reported=2)
        verdict = await ChainVerifier(store).verify("acme")
        assert isinstance(verdict, CountMismatch)
        assert verdict.discrepancy == -1

    async def test_cycle_terminates_as_count_mismatch(self) -> None:
        # The third record reuses the genesis hash and points back at "b".
        store = InMemoryChainStore([
            record("a", "", 0),
            record("b", "a", 10),
            record("a", "b", 20),
        ])
        verdict = await ChainVerifier(store).verify("acme")
        assert isinstance(verdict, CountMismatch)
        assert verdict.total_count == 3
        assert verdict.records_visited == 4
        assert verdict.discrepancy == -1

    async def test_cancelled(self, make_records) -> None:
        event = asyncio.Event()
        store = CancellingStore(make_records(["a", "b", "c", "d"]), event, after=1)
        verdict = await ChainVerifier(store).verify("acme", cancel_event=event)
        assert verdict == Incomplete(chain_key="acme", hops_checked=1)

    async def test_empty_chain_raises(self) -> None:
        with pytest.raises(EmptyChain):
            await ChainVerifier(InMemoryChainStore()).verify("acme")

    async def test_store_failure_raises(self, make_records) -> None:
        store = FailingStore(make_records(["a", "b", "c"]), fail_after=0)
        with pytest.raises(StoreUnavailable):
            await ChainVerifier(store).verify("acme")

    async def test_verify_many_isolates_failures(self, make_records) -> None:
        store = InMemoryChainStore(make_records(["a", "b", "c"]))
        for r in make_records(["x", "y"], chain_key="globex"):
            store.add(r)
        results = await ChainVerifier(store).verify_many(["acme", "globex", "missing"])
        assert results["acme"] == Valid(chain_key="acme", hops_checked=2)
        assert results["globex"] == Valid(chain_key="globex", hops_checked=1)
        assert isinstance(results["missing"], EmptyChain)

    async def test_verify_many_deduplicates_keys(self, abc_store) -> None:
        results = await ChainVerifier(abc_store).verify_many(["acme", "acme"])
        assert list(results) == ["acme"]

    async def test_verify_many_respects_concurrency_bound(self, make_records) -> None:
        active = 0
        peak = 0

        class TrackingStore(InMemoryChainStore):
            async def count(self, chain_key: str) -> int:
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.01)
                active -= 1
                return await super().count(chain_key)

        store = TrackingStore()
        keys = [f"chain-{i}" for i in range(6)]
        for key in keys:
            for r in make_records(["a", "b"], chain_key=key):
                store.add(r)
        config = AuditorConfig(max_concurrent_chains=2)
        results = await ChainVerifier(store, config).verify_many(keys)
        assert all(v.is_valid for v in results.values())
        assert peak <= 2
