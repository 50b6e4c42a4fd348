"""chain-auditor configuration.

Defines the validated configuration model consumed by the verifier and the
store provider.  A configuration object is constructed explicitly (directly
or via :meth:`AuditorConfig.from_env`) and passed in; nothing reads global
state after start-up.
"""
from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator

ENV_PREFIX = "AUDITOR_"

SequenceType = Literal["datetime", "integer", "string"]

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class AuditorConfig(BaseModel):
    """Configuration for a chain verification run.

    All fields carry defaults so that an empty configuration verifies
    chains held in an in-memory store.  The column mapping defaults mirror
    the layout used by the audit writer: ``customer`` partitions chains,
    ``timestamp`` orders them.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    store: str = Field(
        default="memory",
        description="Store provider name (``memory`` or ``sql``).",
    )
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy async database URL; required for ``sql``.",
    )
    table_name: str = Field(
        default="audit",
        description="Table holding the audit records.",
    )
    chain_key_column: str = Field(default="customer")
    sequence_column: str = Field(default="timestamp")
    hash_column: str = Field(default="hash")
    previous_hash_column: str = Field(default="previous_hash")
    sequence_type: SequenceType = Field(
        default="datetime",
        description=(
            "Column type of the sequence column: a timestamp (``datetime``) "
            "or an insertion counter (``integer`` or ``string``)."
        ),
    )
    consistent_reads: bool = Field(
        default=True,
        description=(
            "Whether the store guarantees strongly consistent reads.  "
            "Verification refuses to run against a store that does not."
        ),
    )
    walk_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description=(
            "Per-chain deadline in seconds; a walk exceeding it is "
            "reported as incomplete."
        ),
    )
    max_concurrent_chains: int = Field(
        default=8,
        ge=1,
        description="Upper bound on chains verified concurrently.",
    )
    enumerate_orphans: bool = Field(
        default=False,
        description=(
            "List the hashes of records unreachable from genesis when a "
            "count mismatch is found (requires an enumerable store)."
        ),
    )

    @model_validator(mode="after")
    def _check_store_url(self) -> AuditorConfig:
        if self.store == "sql" and not self.database_url:
            msg = "database_url is required when store is 'sql'"
            raise ValueError(msg)
        return self

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AuditorConfig:
        """Build a configuration from ``AUDITOR_*`` environment variables.

        Keyword *overrides* whose value is not ``None`` take precedence over
        the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None or raw == "":
                continue
            values[name] = _coerce(raw, field.annotation)
        for name, value in overrides.items():
            if value is not None:
                values[name] = value
        return cls(**values)


def _coerce(raw: str, annotation: Any) -> Any:
    """Convert an environment string to the field's declared type.

    Raises :class:`ValueError` if *raw* does not parse as that type.
    """
    types = get_args(annotation) or (annotation,)
    if bool in types:
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        msg = f"not a boolean: {raw!r}"
        raise ValueError(msg)
    if float in types:
        return float(raw)
    if int in types:
        return int(raw)
    return raw
