"""Chain store backends and the provider that selects one."""
from __future__ import annotations

from chain_auditor.stores.provider import STORE_PROVIDERS, create_store
from chain_auditor.stores.sql import SqlChainStore, build_table, sequence_column_type

__all__ = [
    "STORE_PROVIDERS",
    "SqlChainStore",
    "build_table",
    "create_store",
    "sequence_column_type",
]
