"""
formatter.py – Produce the final API response.

JSON contract
-------------
{
  "suspicious_accounts": [{account_id, suspicion_score, detected_patterns, ring_id}],
  "fraud_rings":         [{ring_id, member_accounts, pattern_type, risk_score}],
  "summary":             {total_accounts_analyzed, suspicious_accounts_flagged,
                          fraud_rings_detected, processing_time_seconds,
                          total_transactions,
                          network_statistics: {total_nodes, total_edges,
                                               graph_density, avg_degree,
                                               connected_components}},
  "graph":               {nodes: [...], links: [...]},   // detail only
  "parse_stats":         {...}                           // when supplied
}

suspicious_accounts keep the engine's order (score descending); fraud_rings
keep ring-id order.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Set

import networkx as nx

from .config import GRAPH_RENDER_NODE_CAP
from .graph_builder import Graph
from .models import AnalysisResult, AnalysisSummary, DetectionResult, ParseStats

log = logging.getLogger(__name__)


def _network_statistics(graph: Graph) -> Dict[str, Any]:
    """Compute graph-level network statistics for the summary."""
    n_nodes = graph.node_count
    n_edges = graph.edge_count

    stats: Dict[str, Any] = {
        "total_nodes": n_nodes,
        "total_edges": n_edges,
        "avg_degree": round((2 * n_edges) / n_nodes, 2) if n_nodes > 0 else 0.0,
    }
    if n_nodes == 0:
        stats["graph_density"] = 0.0
        stats["connected_components"] = 0
        return stats

    # Density over distinct account pairs, not parallel transactions
    G = nx.DiGraph(graph.to_networkx())
    stats["graph_density"] = round(nx.density(G), 6)
    stats["connected_components"] = nx.number_weakly_connected_components(G)
    return stats


def _select_render_nodes(graph: Graph, suspicious: Dict[str, Any], cap: int) -> Set[str]:
    """
    All accounts for small graphs.  Otherwise suspicious accounts, then their
    direct neighbours, then the busiest remaining accounts, up to `cap`.
    """
    if graph.node_count <= cap:
        return set(graph.nodes)

    log.info("Large graph (%d nodes) - prioritizing for visualization", graph.node_count)
    included: Set[str] = set(suspicious)

    for account_id in suspicious:
        node = graph.nodes.get(account_id)
        if node is None:
            continue
        for edge in node.incoming_edges:
            if len(included) >= cap:
                break
            included.add(edge.source)
        for edge in node.outgoing_edges:
            if len(included) >= cap:
                break
            included.add(edge.target)

    if len(included) < cap:
        remaining = sorted(
            (n for acc, n in graph.nodes.items() if acc not in included),
            key=lambda n: n.total_transactions,
            reverse=True,
        )
        included.update(n.account_id for n in remaining[: cap - len(included)])

    log.info("Rendering %d/%d nodes (all data analyzed)", len(included), graph.node_count)
    return included


def build_graph_payload(
    graph: Graph,
    result: DetectionResult,
    node_cap: int = GRAPH_RENDER_NODE_CAP,
) -> Dict[str, List[Dict]]:
    """Visualisation payload; links are one per (source, target) pair."""
    suspicious = {a.account_id: a for a in result.suspicious_accounts}
    included = _select_render_nodes(graph, suspicious, node_cap)

    nodes: List[Dict] = []
    for account_id, node in graph.nodes.items():
        if account_id not in included:
            continue
        acc = suspicious.get(account_id)
        nodes.append({
            "id":                 account_id,
            "name":               account_id,
            "suspicious":         acc is not None,
            "suspicion_score":    acc.suspicion_score if acc else 0,
            "patterns":           list(acc.detected_patterns) if acc else [],
            "ring_id":            acc.ring_id if acc else None,
            "total_transactions": node.total_transactions,
            "in_degree":          node.in_degree,
            "out_degree":         node.out_degree,
        })

    links: List[Dict] = []
    seen: Set[tuple] = set()
    for edge in graph.edges:
        if edge.source not in included or edge.target not in included:
            continue
        key = (edge.source, edge.target)
        if key in seen:
            continue
        seen.add(key)
        links.append({
            "source":    edge.source,
            "target":    edge.target,
            "amount":    edge.amount,
            "timestamp": edge.timestamp,
        })

    return {"nodes": nodes, "links": links}


def format_output(
    result: DetectionResult,
    graph: Graph,
    processing_time: float,
    include_graph: bool = False,
    parse_stats: ParseStats | None = None,
) -> Dict[str, Any]:
    """
    Build the complete API response.

    Parameters
    ----------
    result          : output of engine.detect_fraud()
    graph           : the analysed transaction graph
    processing_time : elapsed wall-clock seconds
    include_graph   : attach the visualisation payload
    parse_stats     : optional parse diagnostic info
    """
    summary = AnalysisSummary(
        total_accounts_analyzed=graph.node_count,
        suspicious_accounts_flagged=len(result.suspicious_accounts),
        fraud_rings_detected=len(result.fraud_rings),
        processing_time_seconds=round(processing_time, 3),
        total_transactions=graph.edge_count,
        network_statistics=_network_statistics(graph),
    )

    response = AnalysisResult(
        suspicious_accounts=result.suspicious_accounts,
        fraud_rings=result.fraud_rings,
        summary=summary,
        graph=build_graph_payload(graph, result) if include_graph else None,
    ).model_dump(mode="json")

    if not include_graph:
        response.pop("graph", None)
    if parse_stats is not None:
        response["parse_stats"] = parse_stats.model_dump()

    log.info(
        "Format complete: %d suspicious accounts, %d fraud rings",
        len(result.suspicious_accounts),
        len(result.fraud_rings),
    )
    return response
