"""Chain-integrity verification.

This subpackage implements the three stages of a verification run:

* **Endpoint location** -- record count, genesis and head
  (:mod:`~chain_auditor.verify.locator`).
* **Chain walk** -- sequential successor lookups from genesis
  (:mod:`~chain_auditor.verify.walker`).
* **Judgement** -- mapping the walk to a verdict
  (:mod:`~chain_auditor.verify.judge`, :mod:`~chain_auditor.verify.verdicts`).

:class:`~chain_auditor.verify.verifier.ChainVerifier` runs all three.
"""
from __future__ import annotations

from chain_auditor.verify.judge import judge
from chain_auditor.verify.locator import ChainEndpoints, locate_endpoints
from chain_auditor.verify.verdicts import (
    Broken,
    CountMismatch,
    Forked,
    Incomplete,
    Valid,
    Verdict,
    VerdictKind,
)
from chain_auditor.verify.verifier import ChainVerifier
from chain_auditor.verify.walker import ChainWalker, ForkPoint, WalkOutcome, WalkState

__all__ = [
    # Locator
    "ChainEndpoints",
    "locate_endpoints",
    # Walker
    "ChainWalker",
    "ForkPoint",
    "WalkOutcome",
    "WalkState",
    # Judge
    "judge",
    # Verdicts
    "Broken",
    "CountMismatch",
    "Forked",
    "Incomplete",
    "Valid",
    "Verdict",
    "VerdictKind",
    # Verifier
    "ChainVerifier",
]
