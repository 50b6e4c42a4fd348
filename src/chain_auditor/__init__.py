"""chain-auditor -- tamper-evidence verification for hash-chained audit logs.

A chain is verified in three stages:

1. Endpoint location (:mod:`chain_auditor.verify.locator`).
2. Chain walk from genesis (:mod:`chain_auditor.verify.walker`).
3. Judgement into a verdict (:mod:`chain_auditor.verify.judge`).

Stores are pluggable through :class:`chain_auditor.core.ChainStore`.
"""
from __future__ import annotations

__version__ = "0.1.0"

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
)
from chain_auditor.core.interfaces import (
    ChainStore,
    EnumerableChainStore,
    InMemoryChainStore,
)
from chain_auditor.core.types import EMPTY_HASH, ChainRecord, Direction
from chain_auditor.stores import SqlChainStore, create_store
from chain_auditor.verify import (
    Broken,
    ChainVerifier,
    ChainWalker,
    CountMismatch,
    Forked,
    Incomplete,
    Valid,
    Verdict,
    VerdictKind,
    WalkOutcome,
    judge,
    locate_endpoints,
)

__all__ = [
    "__version__",
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
    # Types and stores
    "EMPTY_HASH",
    "ChainRecord",
    "ChainStore",
    "Direction",
    "EnumerableChainStore",
    "InMemoryChainStore",
    "SqlChainStore",
    "create_store",
    # Verification
    "Broken",
    "ChainVerifier",
    "ChainWalker",
    "CountMismatch",
    "Forked",
    "Incomplete",
    "Valid",
    "Verdict",
    "VerdictKind",
    "WalkOutcome",
    "judge",
    "locate_endpoints",
]
