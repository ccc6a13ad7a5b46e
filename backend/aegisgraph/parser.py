"""
parser.py – CSV parsing and validation.

Turns an uploaded CSV into the engine's Transaction list.

Validates:
  • Required columns present
  • Non-empty transaction_id / sender_id / receiver_id / amount / timestamp
  • amount parses as a number
  • timestamp parses as a date/time (several formats, then pandas inference)
  • Encoding auto-detection (UTF-8 / latin-1 fallback)

Rows failing a check are dropped and reported.  Negative amounts,
self-transactions and duplicate transaction_ids are kept and only counted:
the engine does not treat them as invalid.
"""
from __future__ import annotations

import io
import logging
from typing import List, Tuple

import pandas as pd

from .models import ParseStats, Transaction
from .utils import parse_timestamps

log = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("transaction_id", "sender_id", "receiver_id", "amount", "timestamp")


def _decode_bytes(raw: bytes) -> str:
    """Try UTF-8 (with or without BOM), then latin-1 fallback."""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("latin-1", errors="replace")


def parse_csv(file_bytes: bytes) -> Tuple[List[Transaction], ParseStats]:
    """
    Parse and validate CSV bytes.

    Returns
    -------
    transactions : list[Transaction] – in file order, ready for build_graph()
    stats        : ParseStats        – parse statistics and warnings

    Raises
    ------
    ValueError on fatal errors (unreadable CSV, missing columns, zero valid rows).
    """
    stats = ParseStats()

    # 1. Decode & read ─────────────────────────────────────────────────────────
    text = _decode_bytes(file_bytes)

    # Comment lines ('#') and blank lines are not data rows
    cleaned_lines = [
        line for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]

    try:
        df = pd.read_csv(io.StringIO("\n".join(cleaned_lines)), dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError as exc:
        raise ValueError("CSV file is empty – no rows found.") from exc
    except (pd.errors.ParserError, UnicodeError) as exc:
        raise ValueError(f"CSV parse error: {exc}") from exc

    stats.total_rows = len(df)
    log.info("CSV loaded: %d raw rows", len(df))

    # 2. Normalise column names ────────────────────────────────────────────────
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    missing = set(REQUIRED_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(
            f"Missing required columns: {sorted(missing)}. "
            f"Found: {sorted(df.columns.tolist())}"
        )

    if df.empty:
        raise ValueError("CSV file is empty – no rows found.")
    df = df[list(REQUIRED_COLUMNS)].copy()

    # 3. Strip whitespace ──────────────────────────────────────────────────────
    for col in REQUIRED_COLUMNS:
        df[col] = df[col].astype(str).str.strip()

    # 4. Drop empty-field rows ─────────────────────────────────────────────────
    mask_empty = df.eq("").any(axis=1)
    n_empty = int(mask_empty.sum())
    if n_empty:
        stats.warnings.append(f"Dropped {n_empty} rows with empty fields.")
        df = df[~mask_empty].copy()

    # 5. Parse amount ──────────────────────────────────────────────────────────
    amounts = pd.to_numeric(df["amount"], errors="coerce")
    bad = amounts.isna()
    if bad.any():
        stats.warnings.append(f"Dropped {int(bad.sum())} rows with non-numeric amount.")
        df = df[~bad].copy()
        amounts = amounts[~bad]
    df["amount"] = amounts.astype(float)

    stats.negative_amounts = int((df["amount"] < 0).sum())
    if stats.negative_amounts:
        stats.warnings.append(f"{stats.negative_amounts} rows have a negative amount.")

    # 6. Validate timestamps (the original string is kept) ────────────────────
    bad_ts = parse_timestamps(df["timestamp"]).isna()
    if bad_ts.any():
        stats.warnings.append(
            f"Dropped {int(bad_ts.sum())} rows with unparseable timestamp."
        )
        df = df[~bad_ts].copy()

    # 7. Diagnostics only ─────────────────────────────────────────────────────
    stats.self_transactions = int((df["sender_id"] == df["receiver_id"]).sum())
    if stats.self_transactions:
        stats.warnings.append(f"{stats.self_transactions} self-transactions found.")

    stats.duplicate_tx_ids = int(df.duplicated(subset=["transaction_id"], keep="first").sum())
    if stats.duplicate_tx_ids:
        stats.warnings.append(f"{stats.duplicate_tx_ids} duplicate transaction_id rows found.")

    if df.empty:
        raise ValueError(
            "No valid rows remain after validation. "
            f"Issues: {'; '.join(stats.warnings) or 'unknown'}"
        )

    transactions = [
        Transaction(
            transaction_id=row.transaction_id,
            sender_id=row.sender_id,
            receiver_id=row.receiver_id,
            amount=float(row.amount),
            timestamp=row.timestamp,
        )
        for row in df.itertuples(index=False)
    ]

    stats.valid_rows = len(transactions)
    stats.dropped_rows = stats.total_rows - stats.valid_rows
    log.info("Parse complete: %d valid / %d total rows", stats.valid_rows, stats.total_rows)
    return transactions, stats
