"""
AegisGraph – graph-based money-laundering ring detection.

    transactions = [...]                      # list[Transaction]
    graph = build_graph(transactions)
    result = detect_fraud(graph, transactions)
"""
__version__ = "1.0.0"

from .engine import detect_fraud  # noqa: E402
from .formatter import format_output  # noqa: E402
from .graph_builder import Graph, build_graph  # noqa: E402
from .models import FraudRing, PatternType, SuspiciousAccount, Transaction  # noqa: E402

__all__ = [
    "Graph",
    "FraudRing",
    "PatternType",
    "SuspiciousAccount",
    "Transaction",
    "build_graph",
    "detect_fraud",
    "format_output",
]
