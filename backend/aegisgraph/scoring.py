"""
scoring.py – Suspicion scoring engine.

Scoring model
-------------
1. Pattern contributions – every detector hit records a fixed score against the
                           account (cycle 40, smurf aggregator 35, smurf
                           participant 20, shell intermediate 30)
2. High-velocity bonus   – +15 when total_transactions > HIGH_VELOCITY_TX
3. Large-amount bonus    – +10 when mean outgoing amount > LARGE_AMOUNT_THRESHOLD
4. Clamp                 – rounded and capped to 0..100

False-positive control
----------------------
An account with more than LEGIT_MIN_TX transactions, no cycle hit and more than
LEGIT_MIN_COUNTERPARTIES distinct counterparties looks like a legitimate
high-volume merchant and is never flagged.

Results are sorted by score descending; ties keep the order in which accounts
first received a hit.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Tuple

from .config import (
    HIGH_VELOCITY_TX,
    SCORE_HIGH_VELOCITY,
    LARGE_AMOUNT_THRESHOLD,
    SCORE_LARGE_AMOUNT,
    LEGIT_MIN_TX,
    LEGIT_MIN_COUNTERPARTIES,
)
from .graph_builder import AccountNode, Graph
from .models import PatternType, SuspiciousAccount

log = logging.getLogger(__name__)


class PatternHits:
    """
    Per-account accumulator of detector hits: pattern tags, ring ids and score
    contributions, each in recording order.  Duplicates are kept.
    """

    def __init__(self) -> None:
        self._hits: Dict[str, Dict[str, list]] = {}

    def _entry(self, account_id: str) -> Dict[str, list]:
        if account_id not in self._hits:
            self._hits[account_id] = {"patterns": [], "rings": [], "scores": []}
        return self._hits[account_id]

    def record(self, account_id: str, pattern: PatternType, ring_id: str, score: int) -> None:
        e = self._entry(account_id)
        e["patterns"].append(pattern)
        e["rings"].append(ring_id)
        e["scores"].append(score)

    def record_all(
        self, accounts: Iterable[str], pattern: PatternType, ring_id: str, score: int
    ) -> None:
        for acc in accounts:
            self.record(acc, pattern, ring_id, score)

    def items(self) -> Iterator[Tuple[str, Dict[str, list]]]:
        return iter(self._hits.items())


def is_legitimate_account(
    node: AccountNode,
    has_cycle: bool,
    min_tx: int = LEGIT_MIN_TX,
    min_counterparties: int = LEGIT_MIN_COUNTERPARTIES,
) -> bool:
    """True for high-volume, many-partner accounts outside any cycle."""
    if node.total_transactions > min_tx and not has_cycle:
        return len(node.counterparties()) > min_counterparties
    return False


def suspicion_score(node: AccountNode, scores: List[int]) -> int:
    score = sum(scores)

    if node.total_transactions > HIGH_VELOCITY_TX:
        score += SCORE_HIGH_VELOCITY

    if node.mean_outgoing_amount() > LARGE_AMOUNT_THRESHOLD:
        score += SCORE_LARGE_AMOUNT

    return max(0, min(int(round(score)), 100))


def calculate_scores(hits: PatternHits, graph: Graph) -> List[SuspiciousAccount]:
    """
    Turn accumulated hits into the sorted suspicious-accounts list.

    Every account carrying a hit must exist in the graph; a missing one is a
    graph-building bug and fails the assertion.
    """
    accounts: List[SuspiciousAccount] = []
    suppressed = 0

    for account_id, data in hits.items():
        node = graph.nodes.get(account_id)
        assert node is not None, f"pattern hit for unknown account {account_id}"

        if is_legitimate_account(node, PatternType.CYCLE in data["patterns"]):
            suppressed += 1
            continue

        accounts.append(SuspiciousAccount(
            account_id=account_id,
            suspicion_score=suspicion_score(node, data["scores"]),
            detected_patterns=list(dict.fromkeys(data["patterns"])),
            ring_id=data["rings"][0] if data["rings"] else None,
        ))

    # sorted() is stable with reverse=True, so ties keep hit order
    accounts = sorted(accounts, key=lambda a: a.suspicion_score, reverse=True)

    log.info(
        "Scoring complete: %d accounts flagged, %d suppressed as legitimate",
        len(accounts),
        suppressed,
    )
    return accounts
