"""
smurf_detector.py – Detect smurfing patterns (fan-in / fan-out).

Smurfing (structuring)
-----------------------
  Fan-in  : FAN_THRESHOLD+ unique senders → 1 receiver within a 72-hour window.
  Fan-out : 1 sender → FAN_THRESHOLD+ unique receivers within a 72-hour window.

Works on the raw transaction list rather than the graph because it needs every
transaction's timestamp.  Groups are visited in order of first appearance
(groupby sort=False) so output is deterministic for a given ledger.

Window scan
-----------
For each of the first SMURF_WINDOW_STARTS transactions of a time-sorted group,
collect counterparties from that transaction forward while still inside
[t_i, t_i + window].  Whenever a window beats the largest seen so far and meets
the threshold its counterparties are unioned into the result; the scan stops
once the result reaches the threshold.  The result therefore depends on which
start indices are sampled.

Performance
-----------
Groups with fewer than FAN_THRESHOLD rows or unique counterparties are skipped
before sorting.  At most SMURF_MAX_RINGS rings (SMURF_MAX_RINGS_LARGE when the
graph has more than LARGE_DATASET_NODES accounts).
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Dict, List, Sequence

import pandas as pd

from .config import (
    FAN_THRESHOLD,
    SMURF_WINDOW_HOURS,
    SMURF_WINDOW_STARTS,
    SMURF_MAX_RINGS,
    SMURF_MAX_RINGS_LARGE,
)
from .models import PatternType, Transaction
from .utils import parse_timestamps

log = logging.getLogger(__name__)

_COLUMNS = ["transaction_id", "sender_id", "receiver_id", "amount", "timestamp"]


def transactions_frame(transactions: Sequence[Transaction]) -> pd.DataFrame:
    """Tabular view of the ledger with a parsed `ts` column, in input order."""
    df = pd.DataFrame([tx.model_dump() for tx in transactions], columns=_COLUMNS)
    df["ts"] = parse_timestamps(df["timestamp"])
    return df


def _window_counterparties(
    sorted_times: list,
    sorted_counterparts: list,
    window_td: timedelta,
    threshold: int,
    max_starts: int,
) -> List[str]:
    """
    Return counterparties of the qualifying windows, in first-seen order.
    Empty (or below threshold) when no window qualifies.
    """
    found: Dict[str, None] = {}
    max_window = 0
    n = len(sorted_times)

    for i in range(min(n, max_starts)):
        end = sorted_times[i] + window_td
        window: Dict[str, None] = {}
        j = i
        while j < n and sorted_times[j] <= end:
            window[sorted_counterparts[j]] = None
            j += 1

        if len(window) > max_window:
            max_window = len(window)
            if max_window >= threshold:
                found.update(window)

        if len(found) >= threshold:
            break

    return list(found)


def _scan_groups(
    df: pd.DataFrame,
    hub_col: str,
    cp_col: str,
    pattern: PatternType,
    rings: List[Dict],
    max_rings: int,
    window_td: timedelta,
    threshold: int,
    max_starts: int,
) -> int:
    found = 0
    for hub, grp in df.groupby(hub_col, sort=False):
        if len(rings) >= max_rings:
            log.warning("Smurfing ring cap (%d) reached.", max_rings)
            break

        if len(grp) < threshold:
            continue
        if grp[cp_col].nunique() < threshold:
            continue

        grp = grp.sort_values("ts", kind="stable")
        participants = _window_counterparties(
            grp["ts"].tolist(),
            grp[cp_col].tolist(),
            window_td,
            threshold,
            max_starts,
        )
        if len(participants) >= threshold:
            found += 1
            rings.append({
                "pattern": pattern,
                "aggregator": hub,
                "participants": participants,
                "members": [hub] + participants,
            })
    return found


def detect_smurfing(
    transactions: Sequence[Transaction],
    large_dataset: bool = False,
    *,
    max_rings: int | None = None,
    threshold: int = FAN_THRESHOLD,
    window_hours: float = SMURF_WINDOW_HOURS,
    max_starts: int = SMURF_WINDOW_STARTS,
) -> List[Dict]:
    """
    Detect fan-in and fan-out smurfing patterns.

    Returns
    -------
    List of ring dicts (all fan-in rings first, then fan-out) with keys:
        pattern      : PatternType – FAN_IN_SMURFING | FAN_OUT_SMURFING
        aggregator   : str         – the receiver (fan-in) or sender (fan-out)
        participants : list[str]   – counterparties of the qualifying windows
        members      : list[str]   – [aggregator, *participants]
    """
    rings: List[Dict] = []
    if not transactions:
        log.info("Smurfing detection: 0 rings found (no transactions)")
        return rings

    if max_rings is None:
        max_rings = SMURF_MAX_RINGS_LARGE if large_dataset else SMURF_MAX_RINGS
    window_td = timedelta(hours=window_hours)
    df = transactions_frame(transactions)

    # ── Fan-in: many senders → one receiver ────────────────────────────────
    fan_in = _scan_groups(
        df, "receiver_id", "sender_id", PatternType.FAN_IN_SMURFING,
        rings, max_rings, window_td, threshold, max_starts,
    )

    # ── Fan-out: one sender → many receivers ────────────────────────────────
    fan_out = _scan_groups(
        df, "sender_id", "receiver_id", PatternType.FAN_OUT_SMURFING,
        rings, max_rings, window_td, threshold, max_starts,
    )

    log.info(
        "Smurfing detection: %d rings found (fan-in: %d, fan-out: %d)",
        len(rings), fan_in, fan_out,
    )
    return rings
