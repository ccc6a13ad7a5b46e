"""
config.py – Centralised configuration via environment variables.
All tunable thresholds live here so nothing is scattered across modules.

The sampling bounds below (edges per node, start nodes, window starts) are
recall/performance tradeoffs.  Detectors take each one as a keyword argument
defaulting to the value here, so results stay reproducible for a given set of
overrides.
"""
import os


# ── File limits ────────────────────────────────────────────────────────────────
MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "10"))
MAX_FILE_SIZE_BYTES: int = MAX_FILE_SIZE_MB * 1024 * 1024

# ── Cycle detection ────────────────────────────────────────────────────────────
CYCLE_MIN_LEN: int = 3
CYCLE_MAX_LEN: int = 5
CYCLE_MAX_DEPTH: int = int(os.getenv("CYCLE_MAX_DEPTH", "5"))
CYCLE_EDGE_SAMPLE: int = int(os.getenv("CYCLE_EDGE_SAMPLE", "20"))
# max cycles = clamp(node_count, CYCLE_CAP_MIN, CYCLE_CAP_MAX)
CYCLE_CAP_MIN: int = int(os.getenv("CYCLE_CAP_MIN", "200"))
CYCLE_CAP_MAX: int = int(os.getenv("CYCLE_CAP_MAX", "2000"))
# start nodes tried = min(node_count, max_cycles * CYCLE_START_FACTOR)
CYCLE_START_FACTOR: int = int(os.getenv("CYCLE_START_FACTOR", "3"))
# Wall-clock guard only; 0 disables it.
CYCLE_TIMEOUT_SECONDS: float = float(os.getenv("CYCLE_TIMEOUT_SECONDS", "5.0"))

# ── Smurfing detection ─────────────────────────────────────────────────────────
FAN_THRESHOLD: int = int(os.getenv("FAN_THRESHOLD", "10"))
SMURF_WINDOW_HOURS: int = int(os.getenv("SMURF_WINDOW_HOURS", "72"))
SMURF_WINDOW_STARTS: int = int(os.getenv("SMURF_WINDOW_STARTS", "100"))
SMURF_MAX_RINGS: int = int(os.getenv("SMURF_MAX_RINGS", "200"))
SMURF_MAX_RINGS_LARGE: int = int(os.getenv("SMURF_MAX_RINGS_LARGE", "50"))
LARGE_DATASET_NODES: int = int(os.getenv("LARGE_DATASET_NODES", "5000"))

# ── Shell detection ────────────────────────────────────────────────────────────
SHELL_MAX_TX: int = int(os.getenv("SHELL_MAX_TX", "3"))
SHELL_MIN_PATH: int = 3          # accounts on the path, not hops
SHELL_MAX_PATH: int = 5
SHELL_MAX_DEPTH: int = int(os.getenv("SHELL_MAX_DEPTH", "4"))
SHELL_EDGE_SAMPLE: int = int(os.getenv("SHELL_EDGE_SAMPLE", "10"))
SHELL_START_SAMPLE: int = int(os.getenv("SHELL_START_SAMPLE", "500"))
# max chains = clamp(node_count / 2, SHELL_CAP_MIN, SHELL_CAP_MAX)
SHELL_CAP_MIN: int = int(os.getenv("SHELL_CAP_MIN", "100"))
SHELL_CAP_MAX: int = int(os.getenv("SHELL_CAP_MAX", "1000"))

# ── Scoring ────────────────────────────────────────────────────────────────────
# Per-hit contributions recorded against each account
SCORE_CYCLE: int = 40
SCORE_SMURF_AGGREGATOR: int = 35
SCORE_SMURF_PARTICIPANT: int = 20
SCORE_SHELL_INTERMEDIATE: int = 30

SCORE_HIGH_VELOCITY: int = 15
HIGH_VELOCITY_TX: int = int(os.getenv("HIGH_VELOCITY_TX", "20"))
SCORE_LARGE_AMOUNT: int = 10
LARGE_AMOUNT_THRESHOLD: float = float(os.getenv("LARGE_AMOUNT_THRESHOLD", "5000.0"))

# Legitimate high-volume accounts (merchants) are never flagged unless they sit
# on a cycle.
LEGIT_MIN_TX: int = int(os.getenv("LEGIT_MIN_TX", "50"))
LEGIT_MIN_COUNTERPARTIES: int = int(os.getenv("LEGIT_MIN_COUNTERPARTIES", "20"))

# ── Risk scores for fraud_rings ────────────────────────────────────────────────
RING_RISK: dict = {
    "cycle": 90,
    "fan_in_smurfing": 85,
    "fan_out_smurfing": 85,
    "shell_network": 75,
}

# ── Pipeline / output ──────────────────────────────────────────────────────────
DETECT_CONCURRENTLY: bool = os.getenv("DETECT_CONCURRENTLY", "false").lower() in ("1", "true", "yes")
GRAPH_RENDER_NODE_CAP: int = int(os.getenv("GRAPH_RENDER_NODE_CAP", "2000"))
