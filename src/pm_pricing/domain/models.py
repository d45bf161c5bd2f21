"""Domain models for pm_pricing — pure dataclasses, no business logic."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Pool:
    """CPMM reserves. The product yes * no is invariant across a single trade."""

    yes: float
    no: float

    @property
    def k(self) -> float:
        return self.yes * self.no

    @property
    def total(self) -> float:
        return self.yes + self.no


@dataclass(frozen=True)
class BuyResult:
    shares: float
    new_pool: Pool
    prob_before: float
    prob_after: float


@dataclass(frozen=True)
class SellResult:
    payout: float
    new_pool: Pool
    prob_before: float
    prob_after: float
