"""Verdict types produced by the integrity judge.

Every verification run that reaches the judge ends in exactly one of the
verdicts defined here.  Verdicts are immutable and carry everything an
operator needs to locate the problem.
"""
from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any


class VerdictKind(enum.StrEnum):
    """Outcome categories, in the order the judge checks them."""

    FORKED = "forked"
    INCOMPLETE = "incomplete"
    BROKEN = "broken"
    COUNT_MISMATCH = "count_mismatch"
    VALID = "valid"


@dataclass(frozen=True, slots=True)
class Verdict:
    """Base verdict: which chain was checked and how many hops were walked."""

    chain_key: str
    hops_checked: int

    kind = VerdictKind.VALID

    @property
    def is_valid(self) -> bool:
        return self.kind is VerdictKind.VALID

    def to_dict(self) -> dict[str, Any]:
        """Serialise for reports and CLI JSON output."""
        payload = asdict(self)
        payload["verdict"] = str(self.kind)
        return payload


@dataclass(frozen=True, slots=True)
class Valid(Verdict):
    """The chain is a single unbroken path from genesis to head."""

    kind = VerdictKind.VALID


@dataclass(frozen=True, slots=True)
class Broken(Verdict):
    """The walk ended before reaching the head record.

    Attributes
    ----------
    stopping_hash:
        Hash of the last record reached; nothing points back to it.
    expected_head_hash:
        Hash of the head record by sequence key.
    """

    stopping_hash: str
    expected_head_hash: str

    kind = VerdictKind.BROKEN


@dataclass(frozen=True, slots=True)
class Forked(Verdict):
    """Two or more records claim the same predecessor.

    Attributes
    ----------
    fork_hash:
        The hash that several records point back to.
    successor_hashes:
        Hashes of every competing successor.
    """

    fork_hash: str
    successor_hashes: tuple[str, ...]

    kind = VerdictKind.FORKED


@dataclass(frozen=True, slots=True)
class CountMismatch(Verdict):
    """The walk reached the head but visited a different number of records.

    Attributes
    ----------
    total_count:
        Records the store reports for the chain.
    records_visited:
        Records reached by walking from genesis (``hops_checked + 1``).
    discrepancy:
        ``total_count - records_visited``.  Positive values mean records
        exist outside the walked chain; negative values mean the walk
        visited more records than the store reports.
    orphan_hashes:
        Hashes of unreachable records, when orphan enumeration ran.
    """

    total_count: int
    records_visited: int
    discrepancy: int
    orphan_hashes: tuple[str, ...] = field(default=())

    kind = VerdictKind.COUNT_MISMATCH


@dataclass(frozen=True, slots=True)
class Incomplete(Verdict):
    """The walk was cancelled before it finished."""

    kind = VerdictKind.INCOMPLETE
