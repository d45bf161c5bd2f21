"""Pydantic schemas for account, position and ledger responses."""

from pydantic import BaseModel

from src.pm_account.domain.models import Account, LedgerEntry
from src.pm_common.amounts import to_display


class AccountResponse(BaseModel):
    user_id: str
    available_balance: float
    frozen_balance: float
    total_balance: float
    available_display: str

    @classmethod
    def from_domain(cls, a: Account) -> "AccountResponse":
        return cls(
            user_id=a.user_id,
            available_balance=a.available_balance,
            frozen_balance=a.frozen_balance,
            total_balance=a.total_balance,
            available_display=to_display(a.available_balance),
        )


class PositionResponse(BaseModel):
    market_id: str
    answer_id: str | None
    outcome: str
    shares: float
    available_shares: float
    invested: float
    current_probability: float | None
    mark_value: float | None


class PositionListResponse(BaseModel):
    items: list[PositionResponse]
    total: int


class LedgerEntryResponse(BaseModel):
    entry_type: str
    amount: float
    balance_after: float
    reference_id: str | None
    created_at: str

    @classmethod
    def from_domain(cls, e: LedgerEntry) -> "LedgerEntryResponse":
        return cls(
            entry_type=e.entry_type.value,
            amount=e.amount,
            balance_after=e.balance_after,
            reference_id=e.reference_id,
            created_at=e.created_at.isoformat(),
        )
