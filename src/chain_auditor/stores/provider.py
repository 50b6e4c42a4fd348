"""Store provider: build the configured :class:`ChainStore`."""
from __future__ import annotations

import logging

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import InconsistentReads, UnknownStoreProvider
from chain_auditor.core.interfaces import ChainStore, InMemoryChainStore
from chain_auditor.stores.sql import SqlChainStore

logger = logging.getLogger(__name__)

STORE_PROVIDERS = ("memory", "sql")


def create_store(config: AuditorConfig) -> ChainStore:
    """Instantiate the store named by ``config.store``.

    Raises
    ------
    UnknownStoreProvider
        If ``config.store`` is not one of :data:`STORE_PROVIDERS`.
    InconsistentReads
        If ``config.consistent_reads`` is disabled.
    """
    if not config.consistent_reads:
        raise InconsistentReads(details={"store": config.store})

    store: ChainStore
    if config.store == "memory":
        store = InMemoryChainStore()
    elif config.store == "sql":
        store = SqlChainStore.from_config(config)
    else:
        raise UnknownStoreProvider(
            f"Unknown store provider: {config.store}",
            details={"store": config.store, "supported": list(STORE_PROVIDERS)},
        )
    logger.info("Using %s chain store", config.store)
    return store
