"""
12CP-Priority Curtailment Strategy.

Spends the first hour of the monthly downtime budget on the month's
coincident peak (the single highest-demand hour), then curtails the most
expensive remaining hours above breakeven.

Algorithm: O(n log n) - one sort of the month's prices
"""

from typing import List

import numpy as np

from twelvecp.facility import FacilityParams
from twelvecp.records import Curtailment, HourlyRecord, ShutdownReason


def select_twelve_cp_priority(
    records: List[HourlyRecord],
    peak_index: int,
    budget: int,
    breakeven: float,
    params: FacilityParams
) -> List[Curtailment]:
    """
    Choose the hours to curtail in one month.

    Under a fixed contract price every hour is a candidate once the peak is
    covered, since the flat rate leaves nothing to arbitrage against
    breakeven; such hours are tagged UptimeCap unless they are above
    breakeven anyway.

    Args:
        records: The month's hourly records
        peak_index: Index of the coincident peak hour in records
        budget: Maximum number of hours to curtail
        breakeven: Breakeven pool price ($/MWh)
        params: Facility configuration

    Returns:
        List of Curtailment decisions, peak first
    """
    if budget <= 0 or not records:
        return []

    capacity = params.contracted_capacity_mw
    peak = records[peak_index]
    peak_reason = (
        ShutdownReason.TWELVE_CP_AND_PRICE if peak.pool_price > breakeven
        else ShutdownReason.TWELVE_CP
    )
    selected = [Curtailment(
        index=peak_index,
        reason=peak_reason,
        cost_avoided=params.effective_price(peak.pool_price) * capacity,
    )]

    remaining = budget - 1
    if remaining == 0:
        return selected

    prices = np.array([rec.pool_price for rec in records], dtype=float)
    # Stable sort keeps chronological order among equal prices
    order = np.argsort(-prices, kind='stable')

    for idx in order:
        if remaining == 0:
            break
        idx = int(idx)
        if idx == peak_index:
            continue
        above_breakeven = prices[idx] > breakeven
        if not above_breakeven and not params.has_fixed_price:
            # Sorted descending: nothing further down is above breakeven
            break
        reason = ShutdownReason.PRICE if above_breakeven else ShutdownReason.UPTIME_CAP
        selected.append(Curtailment(
            index=idx,
            reason=reason,
            cost_avoided=params.effective_price(prices[idx]) * capacity,
        ))
        remaining -= 1

    return selected
