"""
engine.py – Fraud detection pipeline for one transaction batch.

    graph → {cycles, smurfing, shell chains} → ring ids → pattern hits → scores

The three detectors only read the graph and ledger, so they may run on a thread
pool.  Their raw output is buffered and ring ids are handed out afterwards in
the fixed order cycles → smurfing → shells, so both paths give identical
results.  No state outlives a call.
"""
from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Dict, List, Sequence, Tuple

from .config import (
    DETECT_CONCURRENTLY,
    LARGE_DATASET_NODES,
    SCORE_CYCLE,
    SCORE_SMURF_AGGREGATOR,
    SCORE_SMURF_PARTICIPANT,
    SCORE_SHELL_INTERMEDIATE,
)
from .cycle_detector import detect_cycles
from .graph_builder import Graph
from .models import DetectionResult, PatternType, Transaction
from .scoring import PatternHits, calculate_scores
from .shell_detector import detect_shell_networks
from .smurf_detector import detect_smurfing
from .utils import RingLedger

log = logging.getLogger(__name__)

_RawOutput = Tuple[List[List[str]], List[Dict], List[Dict]]


def _run_detectors(
    graph: Graph, transactions: Sequence[Transaction], parallel: bool
) -> _RawOutput:
    large = graph.node_count > LARGE_DATASET_NODES

    if not parallel:
        return (
            detect_cycles(graph),
            detect_smurfing(transactions, large),
            detect_shell_networks(graph),
        )

    with concurrent.futures.ThreadPoolExecutor(max_workers=3) as pool:
        f_cycles = pool.submit(detect_cycles, graph)
        f_smurf = pool.submit(detect_smurfing, transactions, large)
        f_shells = pool.submit(detect_shell_networks, graph)
        return f_cycles.result(), f_smurf.result(), f_shells.result()


def detect_fraud(
    graph: Graph,
    transactions: Sequence[Transaction],
    parallel: bool = DETECT_CONCURRENTLY,
) -> DetectionResult:
    """
    Run every detector, assign ring ids and score the accounts they touch.

    An empty graph gives empty lists.  The result is a pure function of the
    input for fixed caps (barring the cycle detector's wall-clock guard).
    """
    start = time.perf_counter()
    log.info(
        "Analyzing %d accounts, %d transactions for fraud patterns",
        graph.node_count,
        graph.edge_count,
    )

    cycles, smurf_rings, shell_chains = _run_detectors(graph, transactions, parallel)

    ledger = RingLedger()
    hits = PatternHits()

    for cycle in cycles:
        ring = ledger.add(cycle, PatternType.CYCLE)
        hits.record_all(cycle, PatternType.CYCLE, ring.ring_id, SCORE_CYCLE)

    for smurf in smurf_rings:
        ring = ledger.add(smurf["members"], smurf["pattern"])
        hits.record(smurf["aggregator"], PatternType.SMURF_AGGREGATOR, ring.ring_id, SCORE_SMURF_AGGREGATOR)
        hits.record_all(
            smurf["participants"], PatternType.SMURF_PARTICIPANT, ring.ring_id, SCORE_SMURF_PARTICIPANT
        )

    for chain in shell_chains:
        ring = ledger.add(chain["members"], PatternType.SHELL_NETWORK)
        hits.record_all(
            chain["intermediates"], PatternType.SHELL_INTERMEDIATE, ring.ring_id, SCORE_SHELL_INTERMEDIATE
        )

    suspicious = calculate_scores(hits, graph)

    log.info(
        "Total fraud detection: %.3fs (%d rings: %d cycle, %d smurfing, %d shell)",
        time.perf_counter() - start,
        len(ledger),
        len(cycles),
        len(smurf_rings),
        len(shell_chains),
    )
    return DetectionResult(suspicious_accounts=suspicious, fraud_rings=ledger.rings)
