"""Portfolio — in-memory balances, positions and ledger for every user.

Accounts are opened lazily with the configured starting balance the first
time a user is seen. All balance checks happen before the mutation, so a
raised error never leaves a half-applied transfer.
"""

from collections.abc import Callable
from datetime import datetime

from src.pm_account.domain.models import Account, LedgerEntry, Position
from src.pm_common.amounts import EPSILON, at_least
from src.pm_common.datetime_utils import utc_now
from src.pm_common.enums import LedgerEntryType, Outcome
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientPositionError,
    InvalidAmountError,
)

PositionKey = tuple[str, str, str | None, Outcome]


class Portfolio:
    def __init__(
        self,
        starting_balance: float,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._starting_balance = starting_balance
        self._clock = clock
        self._accounts: dict[str, Account] = {}
        self._positions: dict[PositionKey, Position] = {}
        self._ledger: list[LedgerEntry] = []

    # ------------------------------------------------------------------
    # Cash
    # ------------------------------------------------------------------

    def account(self, user_id: str) -> Account:
        if user_id not in self._accounts:
            self._accounts[user_id] = Account(
                user_id=user_id, available_balance=self._starting_balance
            )
        return self._accounts[user_id]

    def check_balance(self, user_id: str, amount: float) -> None:
        available = self.account(user_id).available_balance
        if not at_least(available, amount):
            raise InsufficientBalanceError(amount, available)

    def debit(
        self, user_id: str, amount: float, entry_type: LedgerEntryType, reference_id: str | None
    ) -> None:
        if amount < 0:
            raise InvalidAmountError(amount)
        self.check_balance(user_id, amount)
        acct = self.account(user_id)
        acct.available_balance = max(0.0, acct.available_balance - amount)
        self._write(user_id, entry_type, -amount, reference_id)

    def credit(
        self, user_id: str, amount: float, entry_type: LedgerEntryType, reference_id: str | None
    ) -> None:
        if amount < 0:
            raise InvalidAmountError(amount)
        acct = self.account(user_id)
        acct.available_balance += amount
        self._write(user_id, entry_type, amount, reference_id)

    def freeze(self, user_id: str, amount: float, reference_id: str) -> None:
        self.check_balance(user_id, amount)
        acct = self.account(user_id)
        acct.available_balance = max(0.0, acct.available_balance - amount)
        acct.frozen_balance += amount
        self._write(user_id, LedgerEntryType.ORDER_FREEZE, -amount, reference_id)

    def unfreeze(self, user_id: str, amount: float, reference_id: str) -> None:
        if amount <= EPSILON:
            return
        acct = self.account(user_id)
        amount = min(amount, acct.frozen_balance)
        acct.frozen_balance -= amount
        acct.available_balance += amount
        self._write(user_id, LedgerEntryType.ORDER_UNFREEZE, amount, reference_id)

    def spend_frozen(self, user_id: str, amount: float, reference_id: str) -> None:
        """Pay a fill out of funds reserved by the user's bid."""
        acct = self.account(user_id)
        acct.frozen_balance = max(0.0, acct.frozen_balance - amount)
        self._write(user_id, LedgerEntryType.FILL_PAYMENT, -amount, reference_id)

    def ledger(self, user_id: str) -> list[LedgerEntry]:
        return [e for e in self._ledger if e.user_id == user_id]

    def _write(
        self, user_id: str, entry_type: LedgerEntryType, amount: float, reference_id: str | None
    ) -> None:
        self._ledger.append(
            LedgerEntry(
                user_id=user_id,
                entry_type=entry_type,
                amount=amount,
                balance_after=self._accounts[user_id].available_balance,
                reference_id=reference_id,
                created_at=self._clock(),
            )
        )

    # ------------------------------------------------------------------
    # Shares
    # ------------------------------------------------------------------

    def position(
        self, user_id: str, market_id: str, answer_id: str | None, outcome: Outcome
    ) -> Position | None:
        return self._positions.get((user_id, market_id, answer_id, outcome))

    def available_shares(
        self, user_id: str, market_id: str, answer_id: str | None, outcome: Outcome
    ) -> float:
        pos = self.position(user_id, market_id, answer_id, outcome)
        return pos.available_shares if pos is not None else 0.0

    def check_shares(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> None:
        held = self.available_shares(user_id, market_id, answer_id, outcome)
        if not at_least(held, shares):
            raise InsufficientPositionError(
                f"need {shares:.4f} {outcome.value} shares, hold {held:.4f}"
            )

    def add_shares(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
        invested: float,
    ) -> Position:
        key = (user_id, market_id, answer_id, outcome)
        pos = self._positions.get(key)
        if pos is None:
            pos = Position(user_id=user_id, market_id=market_id, answer_id=answer_id, outcome=outcome)
            self._positions[key] = pos
        pos.shares += shares
        pos.invested += invested
        return pos

    def remove_shares(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> float:
        """Remove unescrowed shares; returns the principal that left with them."""
        self.check_shares(user_id, market_id, answer_id, outcome, shares)
        return self._take(user_id, market_id, answer_id, outcome, shares)

    def escrow_shares(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> None:
        self.check_shares(user_id, market_id, answer_id, outcome, shares)
        pos = self._positions[(user_id, market_id, answer_id, outcome)]
        pos.pending_sell += shares

    def release_escrow(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> None:
        pos = self.position(user_id, market_id, answer_id, outcome)
        if pos is not None:
            pos.pending_sell = max(0.0, pos.pending_sell - shares)

    def deliver_escrowed(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> float:
        """Hand over shares previously escrowed by an ask; returns the principal removed."""
        self.release_escrow(user_id, market_id, answer_id, outcome, shares)
        return self._take(user_id, market_id, answer_id, outcome, shares)

    def _take(
        self,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        outcome: Outcome,
        shares: float,
    ) -> float:
        key = (user_id, market_id, answer_id, outcome)
        pos = self._positions[key]
        fraction = min(1.0, shares / pos.shares) if pos.shares > 0 else 1.0
        principal = pos.invested * fraction
        pos.shares = max(0.0, pos.shares - shares)
        pos.invested = max(0.0, pos.invested - principal)
        if pos.shares <= EPSILON and pos.pending_sell <= EPSILON:
            del self._positions[key]
        return principal

    def positions_for_user(self, user_id: str, market_id: str | None = None) -> list[Position]:
        return [
            pos
            for pos in self._positions.values()
            if pos.user_id == user_id and (market_id is None or pos.market_id == market_id)
        ]

    def positions_for_market(
        self, market_id: str, answer_ids: set[str | None] | None = None
    ) -> list[Position]:
        return [
            pos
            for pos in self._positions.values()
            if pos.market_id == market_id and (answer_ids is None or pos.answer_id in answer_ids)
        ]

    def close_position(self, pos: Position) -> None:
        self._positions.pop((pos.user_id, pos.market_id, pos.answer_id, pos.outcome), None)
