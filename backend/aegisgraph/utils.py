"""
utils.py – Ring ID assignment and small shared helpers.

Ring IDs
--------
One RingLedger per analysis owns the id counter and every FraudRing created in
that run.  IDs are RING-001, RING-002, … in the order rings are added, which
the engine fixes as cycles → smurfing → shell chains.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

from .config import RING_RISK
from .models import FraudRing, PatternType, RING_PATTERNS

_TS_FORMATS = ["%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]


class RingLedger:
    """Sequential ring-id allocator and owner of all rings for one analysis."""

    def __init__(self, prefix: str = "RING") -> None:
        self.prefix = prefix
        self._next_id = 1
        self.rings: List[FraudRing] = []

    def next_ring_id(self) -> str:
        ring_id = f"{self.prefix}-{self._next_id:03d}"
        self._next_id += 1
        return ring_id

    def add(
        self,
        members: Sequence[str],
        pattern_type: PatternType,
        risk_score: int | None = None,
    ) -> FraudRing:
        assert pattern_type in RING_PATTERNS, f"{pattern_type} is not a ring pattern"
        ring = FraudRing(
            ring_id=self.next_ring_id(),
            member_accounts=list(members),
            pattern_type=pattern_type,
            risk_score=RING_RISK[pattern_type.value] if risk_score is None else risk_score,
        )
        self.rings.append(ring)
        return ring

    def __len__(self) -> int:
        return len(self.rings)


def canonical_cycle(cycle: Iterable[str]) -> str:
    """
    Dedup key for a cycle: its account ids sorted and joined.

    Two cycles over the same account set collapse to one key even when their
    edge directions differ.
    """
    return "-".join(sorted(cycle))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def parse_timestamps(values) -> pd.Series:
    """
    Parse timestamp strings to UTC pandas Timestamps.

    Try each known format then fall back to pandas flexible inference;
    unparseable values become NaT.
    """
    series = pd.Series(values, dtype="object")
    if series.empty:
        return pd.Series([], dtype="datetime64[ns, UTC]")
    for fmt in _TS_FORMATS:
        parsed = pd.to_datetime(series, format=fmt, errors="coerce", utc=True)
        if parsed.notna().all():
            return parsed
    return pd.to_datetime(series, format="mixed", errors="coerce", utc=True)
