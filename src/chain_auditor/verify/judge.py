"""Integrity judgement: map a finished walk to exactly one verdict.

Checks run in a fixed order so that verdicts are mutually exclusive:

1. ``FORK_DETECTED`` -> :class:`Forked`
2. ``CANCELLED`` -> :class:`Incomplete`
3. walk ended away from the head -> :class:`Broken`
4. visited records differ from the stored count -> :class:`CountMismatch`
5. otherwise -> :class:`Valid`

An ``OVERRUN`` walk visited more records than the store counts and is
reported as a :class:`CountMismatch` with a negative discrepancy.
"""
from __future__ import annotations

from collections.abc import Iterable

from chain_auditor.verify.locator import ChainEndpoints
from chain_auditor.verify.verdicts import (
    Broken,
    CountMismatch,
    Forked,
    Incomplete,
    Valid,
    Verdict,
)
from chain_auditor.verify.walker import WalkOutcome, WalkState


def judge(
    endpoints: ChainEndpoints,
    state: WalkState,
    *,
    orphan_hashes: Iterable[str] = (),
) -> Verdict:
    """Classify *state* against the independently located *endpoints*.

    *orphan_hashes* is attached to a :class:`CountMismatch` verdict and
    ignored otherwise.

    Raises
    ------
    ValueError
        If *state* reports a fork but carries no :class:`ForkPoint`.
    """
    chain_key = endpoints.chain_key

    if state.outcome is WalkOutcome.FORK_DETECTED:
        if state.fork is None:
            msg = f"Walk of {chain_key} ended at a fork without a fork point"
            raise ValueError(msg)
        return Forked(
            chain_key=chain_key,
            hops_checked=state.hops,
            fork_hash=state.fork.record_hash,
            successor_hashes=tuple(r.record_hash for r in state.fork.successors),
        )

    if state.outcome is WalkOutcome.CANCELLED:
        return Incomplete(chain_key=chain_key, hops_checked=state.hops)

    if (
        state.outcome is WalkOutcome.NORMAL_END
        and state.last_record.record_hash != endpoints.head.record_hash
    ):
        return Broken(
            chain_key=chain_key,
            hops_checked=state.hops,
            stopping_hash=state.last_record.record_hash,
            expected_head_hash=endpoints.head.record_hash,
        )

    if (
        state.outcome is WalkOutcome.OVERRUN
        or state.records_visited != endpoints.total_count
    ):
        visited = state.records_visited
        if state.outcome is WalkOutcome.OVERRUN:
            # The walk stopped at the bound with a successor still pending.
            visited += 1
        return CountMismatch(
            chain_key=chain_key,
            hops_checked=state.hops,
            total_count=endpoints.total_count,
            records_visited=visited,
            discrepancy=endpoints.total_count - visited,
            orphan_hashes=tuple(orphan_hashes),
        )

    return Valid(chain_key=chain_key, hops_checked=state.hops)
