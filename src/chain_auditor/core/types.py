"""chain-auditor shared domain types.

Key design decisions:
* ``ChainRecord`` is a frozen Pydantic v2 model; the verifier never mutates
  records it reads from a store.
* ``SuccessorQuery`` is a frozen dataclass built fresh for every walk step
  so that no query object is shared between steps or between chains.
* Enums use *string* values so they serialise cleanly to JSON.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EMPTY_HASH = ""
"""The ``previous_hash`` value carried by a genesis record."""

SequenceKey = datetime | int | str
"""Any monotonically comparable value used to order records."""


class Direction(enum.StrEnum):
    """Which end of the chain :meth:`ChainStore.find_extreme` returns."""

    EARLIEST = "earliest"
    LATEST = "latest"


class ChainRecord(BaseModel):
    """A single hash-chained audit record as stored in the backing store.

    ``sequence_key`` is used only to locate the genesis and head records;
    adjacency is always derived from ``previous_hash -> record_hash``.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    chain_key: str = Field(description="Identifier of the logical chain.")
    sequence_key: SequenceKey = Field(
        description="Monotonic ordering value (timestamp or insertion order).",
    )
    record_hash: str = Field(description="Hash of *this* record.")
    previous_hash: str = Field(
        default=EMPTY_HASH,
        description="Hash of the preceding record, empty for genesis.",
    )
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra stored columns, carried through for reporting.",
    )

    @property
    def is_genesis(self) -> bool:
        """``True`` if this record carries the empty previous-hash."""
        return self.previous_hash == EMPTY_HASH


@dataclass(frozen=True, slots=True)
class SuccessorQuery:
    """Immutable lookup for the record(s) whose previous-hash is *record_hash*."""

    chain_key: str
    record_hash: str
