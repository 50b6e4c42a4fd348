"""chain-auditor core: types, errors, configuration, and store interfaces."""
from __future__ import annotations

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import (
    ChainAuditError,
    ChainIntegrityError,
    ConfigurationError,
    DuplicateGenesis,
    EmptyChain,
    EndpointNotFound,
    GenesisMissing,
    InconsistentReads,
    StoreError,
    StoreUnavailable,
    UnknownStoreProvider,
    error_from_code,
)
from chain_auditor.core.interfaces import (
    ChainStore,
    EnumerableChainStore,
    InMemoryChainStore,
)
from chain_auditor.core.types import (
    EMPTY_HASH,
    ChainRecord,
    Direction,
    SuccessorQuery,
)

__all__ = [
    # Config
    "AuditorConfig",
    # Errors
    "ChainAuditError",
    "ChainIntegrityError",
    "ConfigurationError",
    "DuplicateGenesis",
    "EmptyChain",
    "EndpointNotFound",
    "GenesisMissing",
    "InconsistentReads",
    "StoreError",
    "StoreUnavailable",
    "UnknownStoreProvider",
    "error_from_code",
    # Interfaces
    "ChainStore",
    "EnumerableChainStore",
    "InMemoryChainStore",
    # Types
    "EMPTY_HASH",
    "ChainRecord",
    "Direction",
    "SuccessorQuery",
]
