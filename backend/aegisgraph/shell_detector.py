"""
shell_detector.py – Detect layered shell account networks.

Definition
----------
A shell chain is a directed path of SHELL_MIN_PATH to SHELL_MAX_PATH accounts
where every intermediate account (everything except source and destination)
is low-activity: total_transactions ≤ SHELL_MAX_TX.  Source and destination
have no activity requirement.

Algorithm
---------
Breadth-first search from each of the first SHELL_START_SAMPLE accounts (graph
order).  The queue carries whole paths, since different paths to the same
account are different chains.  A per-start visited set stops revisits; only the
first SHELL_EDGE_SAMPLE outgoing edges of each account are followed, and paths
are extended only while shorter than SHELL_MAX_DEPTH accounts.

Chains are deduplicated by their "->"-joined account sequence.  Hard cap
max_chains = clamp(node_count / 2, 100, 1000).
"""
from __future__ import annotations

import logging
import math
from collections import deque
from typing import Deque, Dict, List, Set, Tuple

from .config import (
    SHELL_MAX_TX,
    SHELL_MIN_PATH,
    SHELL_MAX_PATH,
    SHELL_MAX_DEPTH,
    SHELL_EDGE_SAMPLE,
    SHELL_START_SAMPLE,
    SHELL_CAP_MIN,
    SHELL_CAP_MAX,
)
from .graph_builder import Graph
from .utils import clamp

log = logging.getLogger(__name__)


def max_chains_for(node_count: int) -> int:
    return int(math.ceil(clamp(node_count / 2, SHELL_CAP_MIN, SHELL_CAP_MAX)))


def detect_shell_networks(
    graph: Graph,
    max_chains: int | None = None,
    *,
    max_tx: int = SHELL_MAX_TX,
    min_path: int = SHELL_MIN_PATH,
    max_path: int = SHELL_MAX_PATH,
    max_depth: int = SHELL_MAX_DEPTH,
    edge_sample: int = SHELL_EDGE_SAMPLE,
    start_sample: int = SHELL_START_SAMPLE,
) -> List[Dict]:
    """
    Detect layered shell-account chains.

    Returns
    -------
    List of chain dicts in discovery order with keys:
        members        : list[str]  – full path [source, shell1, ..., dest]
        intermediates  : list[str]  – the low-activity pass-through accounts
    """
    if max_chains is None:
        max_chains = max_chains_for(graph.node_count)

    chains: List[Dict] = []
    seen_paths: Set[str] = set()

    low_activity: Set[str] = {
        acc for acc, node in graph.nodes.items()
        if node.total_transactions <= max_tx
    }
    log.info(
        "Shell detection: %d low-activity candidates / %d total nodes",
        len(low_activity),
        graph.node_count,
    )

    for start in list(graph.nodes)[:start_sample]:
        if len(chains) >= max_chains:
            log.warning("Shell chain cap (%d) reached.", max_chains)
            break

        queue: Deque[Tuple[str, List[str], int]] = deque([(start, [start], 0)])
        visited: Set[str] = {start}

        while queue and len(chains) < max_chains:
            node_id, path, depth = queue.popleft()
            if depth >= max_depth:
                continue

            for edge in graph.nodes[node_id].outgoing_edges[:edge_sample]:
                nbr = edge.target
                if nbr in visited:
                    continue
                visited.add(nbr)
                new_path = path + [nbr]

                if min_path <= len(new_path) <= max_path:
                    intermediates = new_path[1:-1]
                    if all(acc in low_activity for acc in intermediates):
                        key = "->".join(new_path)
                        if key not in seen_paths:
                            seen_paths.add(key)
                            chains.append({
                                "members": new_path,
                                "intermediates": intermediates,
                            })
                            if len(chains) >= max_chains:
                                break

                if len(new_path) < max_depth:
                    queue.append((nbr, new_path, depth + 1))

    log.info("Shell detection: %d chains found", len(chains))
    return chains
