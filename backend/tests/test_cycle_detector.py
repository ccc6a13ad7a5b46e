"""Bounded DFS cycle detection."""
import logging
import time

from aegisgraph.cycle_detector import detect_cycles, max_cycles_for
from aegisgraph.graph_builder import build_graph


def test_triangle_found_once(ledger):
    ledger.path("A", "B", "C", "A")
    cycles = detect_cycles(build_graph(ledger.transactions))

    assert cycles == [["A", "B", "C"]]


def test_short_loops_ignored(ledger):
    ledger.add("A", "A")
    ledger.path("B", "C", "B")
    assert detect_cycles(build_graph(ledger.transactions)) == []


def test_five_cycle_found_six_cycle_beyond_depth(ledger):
    ledger.path("A", "B", "C", "D", "E", "A")
    ledger.path("P", "Q", "R", "S", "T", "U", "P")
    cycles = detect_cycles(build_graph(ledger.transactions))

    assert cycles == [["A", "B", "C", "D", "E"]]


def test_same_account_set_in_both_directions_collapses(ledger):
    ledger.path("A", "B", "C", "A")
    ledger.path("A", "C", "B", "A")
    cycles = detect_cycles(build_graph(ledger.transactions))

    assert len(cycles) == 1
    assert sorted(cycles[0]) == ["A", "B", "C"]


def test_cycle_reached_through_a_tail(ledger):
    ledger.path("START", "X", "Y", "Z", "X")
    cycles = detect_cycles(build_graph(ledger.transactions))

    assert cycles == [["X", "Y", "Z"]]


def test_edge_sample_hides_cycle_behind_busy_hub(ledger):
    for i in range(20):
        ledger.add("HUB", f"DEAD_{i:02d}")
    ledger.path("HUB", "X", "Y", "HUB")
    graph = build_graph(ledger.transactions)

    assert detect_cycles(graph) == []
    assert detect_cycles(graph, edge_sample=21) == [["HUB", "X", "Y"]]


def test_max_cycles_clamped():
    assert max_cycles_for(0) == 200
    assert max_cycles_for(750) == 750
    assert max_cycles_for(50_000) == 2000


def test_cap_enforced_on_many_triangles(ledger):
    for k in range(3000):
        ledger.path(f"T{k}_A", f"T{k}_B", f"T{k}_C", f"T{k}_A")
    graph = build_graph(ledger.transactions)

    start = time.perf_counter()
    cycles = detect_cycles(graph, timeout_seconds=None)
    elapsed = time.perf_counter() - start

    assert len(cycles) == max_cycles_for(graph.node_count) == 2000
    assert len({tuple(sorted(c)) for c in cycles}) == 2000
    assert elapsed < 30


def test_explicit_cap(ledger):
    for k in range(10):
        ledger.path(f"T{k}_A", f"T{k}_B", f"T{k}_C", f"T{k}_A")
    cycles = detect_cycles(build_graph(ledger.transactions), max_cycles=4)

    assert [c[0] for c in cycles] == ["T0_A", "T1_A", "T2_A", "T3_A"]


def test_empty_graph():
    assert detect_cycles(build_graph([])) == []


def test_start_accounts_limited_by_cap(ledger):
    # N0, M0, N1, M1, N2, M2 come first in graph order; the triangle after them
    for i in range(3):
        ledger.add(f"N{i}", f"M{i}")
    ledger.path("A", "B", "C", "A")
    graph = build_graph(ledger.transactions)

    # 2 cycles * 3 start accounts each = the six leading accounts only
    assert detect_cycles(graph, max_cycles=2) == []
    assert detect_cycles(graph, max_cycles=2, start_factor=4) == [["A", "B", "C"]]
    assert detect_cycles(graph) == [["A", "B", "C"]]


def test_timeout_stops_search_on_dense_dag(ledger, caplog):
    # Each account pays the next 20: acyclic, but 20^5 paths per start account
    for i in range(60):
        for j in range(1, 21):
            ledger.add(f"N{i:03d}", f"N{i + j:03d}")
    graph = build_graph(ledger.transactions)

    start = time.perf_counter()
    with caplog.at_level(logging.WARNING, logger="aegisgraph.cycle_detector"):
        cycles = detect_cycles(graph, timeout_seconds=0.05)
    elapsed = time.perf_counter() - start

    assert cycles == []
    assert elapsed < 5
    assert any("timed out" in r.getMessage() for r in caplog.records)
