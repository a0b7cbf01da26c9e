"""
Cost-Optimized Curtailment Strategy.

Puts 12CP avoidance and price avoidance on one dollar scale: each hour is
scored by the larger of the demand charge it would trigger and the energy
loss above breakeven, and the best-scoring hours are curtailed.

Algorithm: O(n log n) - score every hour, one sort
"""

from typing import List

import numpy as np

from twelvecp.facility import FacilityParams
from twelvecp.records import Curtailment, HourlyRecord, ShutdownReason


def score_hours(
    prices: np.ndarray,
    peak_index: int,
    breakeven: float,
    capacity_mw: float,
    coincident_demand_rate: float
) -> np.ndarray:
    """
    Dollar value of curtailing each hour.

    Args:
        prices: Pool prices for the month ($/MWh)
        peak_index: Index of the coincident peak hour
        breakeven: Breakeven pool price ($/MWh)
        capacity_mw: Facility load (MW)
        coincident_demand_rate: 12CP demand charge ($/MW/month)

    Returns:
        Array of scores, one per hour
    """
    price_value = np.where(prices > breakeven, (prices - breakeven) * capacity_mw, 0.0)
    demand_value = np.zeros_like(prices)
    if len(prices):
        demand_value[peak_index] = coincident_demand_rate * capacity_mw
    return np.maximum(demand_value, price_value)


def select_cost_optimized(
    records: List[HourlyRecord],
    peak_index: int,
    budget: int,
    breakeven: float,
    params: FacilityParams,
    coincident_demand_rate: float
) -> List[Curtailment]:
    """
    Curtail the highest-value hours up to the budget.

    Only meaningful for pool-priced facilities; the optimizer routes
    fixed-price facilities to the 12CP-priority strategy instead.
    """
    if budget <= 0 or not records:
        return []

    prices = np.array([rec.pool_price for rec in records], dtype=float)
    scores = score_hours(
        prices, peak_index, breakeven,
        params.contracted_capacity_mw, coincident_demand_rate
    )

    candidates = np.flatnonzero(scores > 0)
    order = candidates[np.argsort(-scores[candidates], kind='stable')]

    selected = []
    for idx in order[:budget]:
        idx = int(idx)
        is_peak = idx == peak_index
        above_breakeven = prices[idx] > breakeven
        if is_peak and above_breakeven:
            reason = ShutdownReason.TWELVE_CP_AND_PRICE
        elif is_peak:
            reason = ShutdownReason.TWELVE_CP
        else:
            reason = ShutdownReason.PRICE
        selected.append(Curtailment(index=idx, reason=reason, cost_avoided=float(scores[idx])))

    return selected
