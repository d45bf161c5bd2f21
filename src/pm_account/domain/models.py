"""Domain models for pm_account — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.enums import LedgerEntryType, Outcome


@dataclass
class Account:
    user_id: str
    available_balance: float
    frozen_balance: float = 0.0  # reserved by resting bids

    @property
    def total_balance(self) -> float:
        return self.available_balance + self.frozen_balance


@dataclass
class Position:
    """Holding in one outcome of one market (or one answer of a multi-choice market)."""

    user_id: str
    market_id: str
    answer_id: str | None
    outcome: Outcome
    shares: float = 0.0
    invested: float = 0.0  # principal, refunded on CANCEL
    pending_sell: float = 0.0  # escrowed by resting asks

    @property
    def available_shares(self) -> float:
        return self.shares - self.pending_sell


@dataclass
class LedgerEntry:
    user_id: str
    entry_type: LedgerEntryType
    amount: float  # positive = income, negative = expense
    balance_after: float  # available balance after the entry
    reference_id: str | None
    created_at: datetime
