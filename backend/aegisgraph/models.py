"""
models.py – Pydantic models for the engine's input record and output contract.
Defines the exact JSON shape the API must return.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PatternType(str, Enum):
    """Every ring pattern and per-account pattern tag the detectors emit."""

    CYCLE = "cycle"
    FAN_IN_SMURFING = "fan_in_smurfing"
    FAN_OUT_SMURFING = "fan_out_smurfing"
    SHELL_NETWORK = "shell_network"
    SMURF_AGGREGATOR = "smurf_aggregator"
    SMURF_PARTICIPANT = "smurf_participant"
    SHELL_INTERMEDIATE = "shell_intermediate"


RING_PATTERNS = frozenset({
    PatternType.CYCLE,
    PatternType.FAN_IN_SMURFING,
    PatternType.FAN_OUT_SMURFING,
    PatternType.SHELL_NETWORK,
})


class Transaction(BaseModel):
    """
    One ledger row.  Validated upstream (parser.py); never mutated afterwards.
    `amount` is not checked for sign.
    """
    model_config = ConfigDict(frozen=True)

    transaction_id: str
    sender_id: str
    receiver_id: str
    amount: float
    timestamp: str


class FraudRing(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    ring_id: str
    member_accounts: List[str] = Field(..., min_length=1)
    pattern_type: PatternType
    risk_score: int = Field(..., ge=0, le=100)


class SuspiciousAccount(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    account_id: str
    suspicion_score: int = Field(..., ge=0, le=100)
    detected_patterns: List[PatternType]
    ring_id: Optional[str] = None


class DetectionResult(BaseModel):
    """Output of engine.detect_fraud()."""
    suspicious_accounts: List[SuspiciousAccount]
    fraud_rings: List[FraudRing]


class AnalysisSummary(BaseModel):
    """Mandatory counters; extra diagnostics (e.g. network_statistics) are preserved."""
    model_config = ConfigDict(extra="allow")

    total_accounts_analyzed: int
    suspicious_accounts_flagged: int
    fraud_rings_detected: int
    processing_time_seconds: float


class AnalysisResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    suspicious_accounts: List[SuspiciousAccount]
    fraud_rings: List[FraudRing]
    summary: AnalysisSummary
    graph: Optional[Dict[str, Any]] = None


class ParseStats(BaseModel):
    total_rows: int = 0
    valid_rows: int = 0
    dropped_rows: int = 0
    duplicate_tx_ids: int = 0
    self_transactions: int = 0
    negative_amounts: int = 0
    warnings: List[str] = Field(default_factory=list)
