"""
cycle_detector.py – Detect circular fund routing (money-mule rings).

Strategy
--------
Bounded depth-first search from each account that has not yet been used as a
start point.  A cycle is recorded when the walk reaches an account already on
the current path; the cycle is the path suffix starting at that account.
Only cycles of CYCLE_MIN_LEN..CYCLE_MAX_LEN accounts are kept: self-loops and
A⇄B pairs are not laundering cycles here.

Canonical deduplication: the sorted, joined account ids (utils.canonical_cycle).
Rotations collapse to one key, and so do cycles over the same account set that
run in different directions.  This is a known approximation.

Performance
-----------
• Depth capped at CYCLE_MAX_DEPTH hops.
• Only the first CYCLE_EDGE_SAMPLE outgoing edges of each account are walked,
  so dense hubs can hide real cycles.
• At most min(node_count, max_cycles * CYCLE_START_FACTOR) start accounts.
• Hard stop once max_cycles = clamp(node_count, 200, 2000) cycles are found.
• Optional wall-clock timeout via threading.Timer.
"""
from __future__ import annotations

import logging
import threading
from typing import List, Set

from .config import (
    CYCLE_MIN_LEN,
    CYCLE_MAX_LEN,
    CYCLE_MAX_DEPTH,
    CYCLE_EDGE_SAMPLE,
    CYCLE_CAP_MIN,
    CYCLE_CAP_MAX,
    CYCLE_START_FACTOR,
    CYCLE_TIMEOUT_SECONDS,
)
from .graph_builder import Graph
from .utils import canonical_cycle, clamp

log = logging.getLogger(__name__)


def max_cycles_for(node_count: int) -> int:
    return int(clamp(node_count, CYCLE_CAP_MIN, CYCLE_CAP_MAX))


def detect_cycles(
    graph: Graph,
    max_cycles: int | None = None,
    *,
    min_len: int = CYCLE_MIN_LEN,
    max_len: int = CYCLE_MAX_LEN,
    max_depth: int = CYCLE_MAX_DEPTH,
    edge_sample: int = CYCLE_EDGE_SAMPLE,
    start_factor: int = CYCLE_START_FACTOR,
    timeout_seconds: float | None = CYCLE_TIMEOUT_SECONDS,
) -> List[List[str]]:
    """
    Find distinct directed cycles of min_len to max_len accounts.

    Returns
    -------
    List of cycles in discovery order, each an ordered list of account IDs in
    traversal order (the last account pays back into the first).
    """
    if max_cycles is None:
        max_cycles = max_cycles_for(graph.node_count)

    cycles: List[List[str]] = []
    signatures: Set[str] = set()
    global_visited: Set[str] = set()

    # Set on cap or timeout; every DFS frame checks it and unwinds.
    stop_event = threading.Event()

    def dfs(node_id: str, path: List[str], rec_stack: Set[str], depth: int) -> bool:
        if stop_event.is_set() or len(cycles) >= max_cycles:
            stop_event.set()
            return True

        rec_stack.add(node_id)
        node = graph.nodes.get(node_id)
        assert node is not None, f"DFS reached unknown account {node_id}"

        if not node.outgoing_edges or depth >= max_depth:
            rec_stack.discard(node_id)
            return False

        for edge in node.outgoing_edges[:edge_sample]:
            if stop_event.is_set():
                return True

            neighbor = edge.target
            if neighbor in rec_stack:
                cycle = path[path.index(neighbor):]
                if min_len <= len(cycle) <= max_len:
                    signature = canonical_cycle(cycle)
                    if signature not in signatures:
                        signatures.add(signature)
                        cycles.append(list(cycle))
                        if len(cycles) >= max_cycles:
                            stop_event.set()
                            return True
            elif neighbor not in global_visited:
                if dfs(neighbor, path + [neighbor], rec_stack, depth + 1):
                    return True

        rec_stack.discard(node_id)
        return False

    timer = None
    if timeout_seconds:
        timer = threading.Timer(timeout_seconds, stop_event.set)
        timer.daemon = True
        timer.start()

    start_nodes = list(graph.nodes)
    check_limit = min(len(start_nodes), max_cycles * start_factor)

    try:
        for node_id in start_nodes[:check_limit]:
            if stop_event.is_set():
                break
            if node_id in global_visited:
                continue
            global_visited.add(node_id)
            dfs(node_id, [node_id], set(), 0)
    finally:
        if timer is not None:
            timer.cancel()

    if len(cycles) >= max_cycles:
        log.warning("Cycle cap (%d) reached; stopping early.", max_cycles)
    elif stop_event.is_set():
        log.warning(
            "Cycle detection timed out after %.1fs; found %d cycles so far.",
            timeout_seconds,
            len(cycles),
        )

    log.info("Cycle detection: %d rings found", len(cycles))
    return cycles
