"""Shared synthetic ledgers for the detector and pipeline tests."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import List

import pytest

from aegisgraph.models import Transaction

BASE_TIME = datetime(2024, 1, 10, 10, 0, 0)


def _ts(hours: float = 0.0) -> str:
    return (BASE_TIME + timedelta(hours=hours)).strftime("%Y-%m-%d %H:%M:%S")


class LedgerBuilder:
    """Appends transactions with sequential ids: ledger.add("A", "B", 100.0, hours=2)."""

    def __init__(self) -> None:
        self.transactions: List[Transaction] = []

    def add(self, sender: str, receiver: str, amount: float = 100.0, hours: float = 0.0) -> Transaction:
        tx = Transaction(
            transaction_id=f"TX_{len(self.transactions) + 1:05d}",
            sender_id=sender,
            receiver_id=receiver,
            amount=amount,
            timestamp=_ts(hours),
        )
        self.transactions.append(tx)
        return tx

    def path(self, *accounts: str, amount: float = 100.0) -> None:
        """One transaction per consecutive pair, an hour apart."""
        for i, (u, v) in enumerate(zip(accounts, accounts[1:])):
            self.add(u, v, amount, hours=i)


@pytest.fixture
def ledger() -> LedgerBuilder:
    return LedgerBuilder()


@pytest.fixture
def mixed_ledger() -> LedgerBuilder:
    """
    One of each pattern:
      cycle   ACC_A → ACC_B → ACC_C → ACC_A
      fan-in  SENDER_00..11 → HUB_IN, same timestamp
      fan-out HUB_OUT → RECEIVER_00..11, same timestamp
      shell   S_SRC → SHELL_1 → SHELL_2 → S_DST, endpoints busy elsewhere
    """
    lb = LedgerBuilder()
    lb.path("ACC_A", "ACC_B", "ACC_C", "ACC_A", amount=500.0)
    for i in range(12):
        lb.add(f"SENDER_{i:02d}", "HUB_IN", 100.0 + i, hours=24)
    for i in range(12):
        lb.add("HUB_OUT", f"RECEIVER_{i:02d}", 200.0 + i, hours=48)
    for i in range(4):
        lb.add("S_SRC", f"EXTRA_SRC_{i}", 50.0, hours=72 + i)
    for i in range(4):
        lb.add(f"EXTRA_DST_{i}", "S_DST", 50.0, hours=72 + i)
    lb.add("S_SRC", "SHELL_1", 300.0, hours=96)
    lb.add("SHELL_1", "SHELL_2", 290.0, hours=97)
    lb.add("SHELL_2", "S_DST", 280.0, hours=98)
    return lb
