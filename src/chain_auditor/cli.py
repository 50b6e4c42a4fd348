"""Command-line entry point: ``chain-auditor verify``.

Examples::

    chain-auditor verify acme globex --database-url sqlite+aiosqlite:///audit.db
    chain-auditor verify acme --store memory --records export.jsonl --json

Options not given on the command line fall back to ``AUDITOR_*``
environment variables.  Exit status is ``0`` when every chain is valid,
``1`` when any chain is not, and ``2`` on configuration errors.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, TextIO

from chain_auditor.core.config import AuditorConfig
from chain_auditor.core.errors import ChainAuditError, ConfigurationError
from chain_auditor.core.interfaces import ChainStore, InMemoryChainStore
from chain_auditor.core.types import ChainRecord
from chain_auditor.stores.provider import create_store
from chain_auditor.verify.verdicts import Verdict
from chain_auditor.verify.verifier import ChainVerifier

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chain-auditor",
        description="Verify hash-chained audit logs.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    verify = sub.add_parser("verify", help="verify one or more chains")
    verify.add_argument("chain_keys", nargs="+", metavar="CHAIN_KEY")
    verify.add_argument("--store", choices=["memory", "sql"], default=None)
    verify.add_argument("--database-url", default=None)
    verify.add_argument("--table", dest="table_name", default=None)
    verify.add_argument(
        "--sequence-type",
        choices=["datetime", "integer", "string"],
        default=None,
        help="column type of the sequence column (default: datetime)",
    )
    verify.add_argument(
        "--timeout",
        dest="walk_timeout_seconds",
        type=float,
        default=None,
        help="per-chain walk deadline in seconds",
    )
    verify.add_argument(
        "--concurrency",
        dest="max_concurrent_chains",
        type=int,
        default=None,
    )
    verify.add_argument(
        "--enumerate-orphans",
        action="store_true",
        default=None,
        help="list unreachable record hashes on count mismatch",
    )
    verify.add_argument(
        "--records",
        type=Path,
        default=None,
        help="JSON Lines file of records to load into the memory store",
    )
    verify.add_argument("--json", action="store_true", help="emit a JSON report")
    verify.add_argument("-v", "--verbose", action="store_true")
    return parser


def load_records(path: Path, store: InMemoryChainStore) -> int:
    """Load one :class:`ChainRecord` per non-blank line of *path*."""
    loaded = 0
    with path.open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            store.add(ChainRecord.model_validate_json(line))
            loaded += 1
    logger.info("Loaded %d records from %s", loaded, path)
    return loaded


def _render(
    results: dict[str, Verdict | ChainAuditError],
    *,
    as_json: bool,
    out: TextIO,
) -> None:
    if as_json:
        report: dict[str, Any] = {
            key: result.to_dict() for key, result in results.items()
        }
        json.dump(report, out, indent=2, sort_keys=True, default=str)
        out.write("\n")
        return
    for key, result in results.items():
        if isinstance(result, ChainAuditError):
            out.write(f"{key}: ERROR {result.code} {result.message}\n")
        elif result.is_valid:
            out.write(f"{key}: valid ({result.hops_checked} hops checked)\n")
        else:
            out.write(f"{key}: {result.kind} {result.to_dict()}\n")


async def _verify(
    store: ChainStore,
    config: AuditorConfig,
    chain_keys: list[str],
) -> dict[str, Verdict | ChainAuditError]:
    try:
        verifier = ChainVerifier(store, config)
        return await verifier.verify_many(chain_keys)
    finally:
        close = getattr(store, "close", None)
        if close is not None:
            await close()


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = AuditorConfig.from_env(
            store=args.store,
            database_url=args.database_url,
            table_name=args.table_name,
            sequence_type=args.sequence_type,
            walk_timeout_seconds=args.walk_timeout_seconds,
            max_concurrent_chains=args.max_concurrent_chains,
            enumerate_orphans=args.enumerate_orphans,
        )
        store = create_store(config)
        if args.records is not None:
            if not isinstance(store, InMemoryChainStore):
                raise ConfigurationError("--records requires the memory store")
            load_records(args.records, store)
    except (ValueError, ConfigurationError, OSError) as exc:
        sys.stderr.write(f"chain-auditor: {exc}\n")
        return EXIT_CONFIG

    results = asyncio.run(_verify(store, config, args.chain_keys))
    _render(results, as_json=args.json, out=out)
    all_valid = all(
        not isinstance(r, ChainAuditError) and r.is_valid for r in results.values()
    )
    return EXIT_OK if all_valid else EXIT_INVALID
