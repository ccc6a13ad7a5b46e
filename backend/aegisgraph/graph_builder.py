"""
graph_builder.py – Build a directed transaction multigraph keyed by account.

One Edge per transaction row; parallel edges between the same pair are kept.
Each Edge is owned by `Graph.edges` and referenced, never copied, from the
sender's `outgoing_edges` and the receiver's `incoming_edges`.  Edges are
frozen so the shared references cannot diverge.

Adjacency lists preserve transaction order, which the detectors rely on for
their "first N edges" sampling bounds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

import networkx as nx

from .models import Transaction

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edge:
    transaction_id: str
    source: str
    target: str
    amount: float
    timestamp: str


@dataclass
class AccountNode:
    account_id: str
    outgoing_edges: List[Edge] = field(default_factory=list)
    incoming_edges: List[Edge] = field(default_factory=list)
    total_transactions: int = 0
    in_degree: int = 0
    out_degree: int = 0

    def counterparties(self) -> Set[str]:
        """Distinct accounts that sent to or received from this account."""
        partners = {e.source for e in self.incoming_edges}
        partners.update(e.target for e in self.outgoing_edges)
        return partners

    def mean_outgoing_amount(self) -> float:
        total = sum(e.amount for e in self.outgoing_edges)
        return total / max(len(self.outgoing_edges), 1)


@dataclass
class Graph:
    nodes: Dict[str, AccountNode] = field(default_factory=dict)
    edges: List[Edge] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def _node(self, account_id: str) -> AccountNode:
        node = self.nodes.get(account_id)
        if node is None:
            node = AccountNode(account_id=account_id)
            self.nodes[account_id] = node
        return node

    def add_transaction(self, tx: Transaction) -> Edge:
        sender = self._node(tx.sender_id)
        receiver = self._node(tx.receiver_id)

        edge = Edge(
            transaction_id=tx.transaction_id,
            source=tx.sender_id,
            target=tx.receiver_id,
            amount=tx.amount,
            timestamp=tx.timestamp,
        )
        self.edges.append(edge)

        sender.outgoing_edges.append(edge)
        sender.out_degree += 1
        sender.total_transactions += 1

        receiver.incoming_edges.append(edge)
        receiver.in_degree += 1
        receiver.total_transactions += 1
        return edge

    def check_invariants(self) -> None:
        """Raise AssertionError if any edge points outside the node map."""
        for edge in self.edges:
            assert edge.source in self.nodes, f"edge {edge.transaction_id}: unknown sender {edge.source}"
            assert edge.target in self.nodes, f"edge {edge.transaction_id}: unknown receiver {edge.target}"

    def to_networkx(self) -> nx.MultiDiGraph:
        """
        Export as a networkx MultiDiGraph (one edge per transaction) for
        graph-level statistics.  The detectors never use this view.
        """
        G = nx.MultiDiGraph()
        G.add_nodes_from(
            (acc, {"total_transactions": n.total_transactions})
            for acc, n in self.nodes.items()
        )
        G.add_edges_from(
            (e.source, e.target, e.transaction_id, {"amount": e.amount, "timestamp": e.timestamp})
            for e in self.edges
        )
        return G


def build_graph(transactions: Iterable[Transaction]) -> Graph:
    """
    Construct the transaction graph in a single O(n) pass.

    Nodes are created lazily on first reference as sender or receiver and are
    never removed.  An empty input yields an empty graph.
    """
    graph = Graph()
    for tx in transactions:
        graph.add_transaction(tx)
    if __debug__:
        graph.check_invariants()

    log.info("Graph built: %d nodes, %d edges", graph.node_count, graph.edge_count)
    return graph
