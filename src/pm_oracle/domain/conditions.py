"""Evaluation of crypto-price resolution conditions."""

import math

from src.pm_common.enums import PriceCondition, Resolution

_EQ_REL_TOLERANCE = 1e-9


def condition_met(observed: float, condition: PriceCondition, target: float) -> bool:
    if condition == PriceCondition.GTE:
        return observed >= target
    if condition == PriceCondition.LTE:
        return observed <= target
    if condition == PriceCondition.GT:
        return observed > target
    if condition == PriceCondition.LT:
        return observed < target
    return math.isclose(observed, target, rel_tol=_EQ_REL_TOLERANCE)


def evaluate(observed: float, condition: PriceCondition, target: float) -> Resolution:
    return Resolution.YES if condition_met(observed, condition, target) else Resolution.NO


def describe(asset: str, condition: PriceCondition, target: float) -> str:
    symbols = {
        PriceCondition.GTE: ">=",
        PriceCondition.LTE: "<=",
        PriceCondition.GT: ">",
        PriceCondition.LT: "<",
        PriceCondition.EQ: "==",
    }
    return f"{asset} price {symbols[condition]} ${target:,.2f}"
