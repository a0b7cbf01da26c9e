"""
Curtailment optimizer.

Partitions one year of hourly records into running and curtailed hours,
month by month, under a downtime budget derived from the target uptime.
"""

import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from twelvecp.facility import CurtailmentStrategy, FacilityParams
from twelvecp.local_time import month_index
from twelvecp.records import HourlyRecord, MonthPlan, ShutdownRecord
from twelvecp.strategies.cost_optimized import select_cost_optimized
from twelvecp.strategies.twelve_cp_priority import select_twelve_cp_priority
from twelvecp.tariff_rates import ResolvedRates

logger = logging.getLogger(__name__)


@dataclass
class CurtailmentPlan:
    """Optimizer output: per-month partitions plus the flat shutdown log."""
    months: List[MonthPlan]
    shutdown_log: List[ShutdownRecord]


def group_by_month(hourly: List[HourlyRecord]) -> Dict[int, List[HourlyRecord]]:
    """Group records by calendar month, preserving input order within a month."""
    groups: Dict[int, List[HourlyRecord]] = OrderedDict()
    for rec in hourly:
        groups.setdefault(month_index(rec.date), []).append(rec)
    return groups


def max_downtime_hours(total_hours: int, target_uptime_percent: float) -> int:
    """
    Ceiling on curtailed hours for a month.

    Rounded before flooring so that e.g. 720h at 90% gives 72, not 71.
    """
    allowance = total_hours * (1 - target_uptime_percent / 100)
    return max(0, math.floor(round(allowance, 9)))


def find_coincident_peak(records: List[HourlyRecord]) -> int:
    """
    Index of the month's highest-demand hour.

    Hours tied on demand are broken by the higher pool price, then the
    earlier hour.
    """
    demand = np.array([rec.ail_mw for rec in records], dtype=float)
    prices = np.array([rec.pool_price for rec in records], dtype=float)
    tied = np.flatnonzero(demand == demand.max())
    return int(tied[np.argmax(prices[tied])])


def resolve_strategy(params: FacilityParams) -> CurtailmentStrategy:
    """
    Strategy actually applied.

    Price-based scoring is meaningless under a flat contract price, so
    fixed-price facilities always use 12CP priority.
    """
    if params.has_fixed_price:
        return CurtailmentStrategy.TWELVE_CP_PRIORITY
    return params.curtailment_strategy


def plan_month(
    month: int,
    records: List[HourlyRecord],
    params: FacilityParams,
    rates: ResolvedRates,
    breakeven: float
) -> MonthPlan:
    """
    Decide which hours of one month to curtail.

    Args:
        month: Zero-based month index
        records: The month's hourly records
        params: Facility configuration
        rates: Resolved tariff rates
        breakeven: Breakeven pool price ($/MWh)

    Returns:
        MonthPlan with running and curtailed hours filled in
    """
    budget = max_downtime_hours(len(records), params.target_uptime_percent)
    peak_index = find_coincident_peak(records)
    strategy = resolve_strategy(params)

    if strategy == CurtailmentStrategy.COST_OPTIMIZED:
        decisions = select_cost_optimized(
            records, peak_index, budget, breakeven, params,
            coincident_demand_rate=rates.bulk_coincident_demand,
        )
    else:
        decisions = select_twelve_cp_priority(records, peak_index, budget, breakeven, params)

    plan = MonthPlan(
        month_index=month,
        records=records,
        max_downtime_hours=budget,
        peak_index=peak_index,
    )
    curtailed_indices = set()
    for decision in decisions:
        rec = records[decision.index]
        curtailed_indices.add(decision.index)
        plan.curtailed.append(ShutdownRecord(
            date=rec.date,
            hour_ending=rec.hour_ending,
            pool_price=rec.pool_price,
            ail_mw=rec.ail_mw,
            reason=decision.reason,
            cost_avoided=decision.cost_avoided,
        ))
    plan.running = [rec for i, rec in enumerate(records) if i not in curtailed_indices]
    plan.peak_curtailed = peak_index in curtailed_indices

    logger.debug(
        f"Month {month + 1}: {plan.total_hours}h total, budget {budget}h, "
        f"curtailed {plan.curtailed_hours}h ({strategy.value}), peak curtailed={plan.peak_curtailed}"
    )
    return plan


def optimize_curtailment(
    hourly: List[HourlyRecord],
    params: FacilityParams,
    rates: ResolvedRates,
    breakeven: float
) -> CurtailmentPlan:
    """
    Run the optimizer over a year of hourly records.

    Returns:
        CurtailmentPlan with months ordered January..December and the
        shutdown log ordered by date and hour ending
    """
    months = [
        plan_month(month, records, params, rates, breakeven)
        for month, records in sorted(group_by_month(hourly).items())
    ]

    shutdown_log = [rec for plan in months for rec in plan.curtailed]
    shutdown_log.sort(key=lambda rec: (rec.date, rec.hour_ending))

    return CurtailmentPlan(months=months, shutdown_log=shutdown_log)
