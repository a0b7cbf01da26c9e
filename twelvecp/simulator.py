"""
Power model pipeline.

hourly history -> curtailment optimizer -> billing -> annual summary.
Every run is a pure function of its inputs, so results can be memoized
by a hash of those inputs.
"""

import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import asdict, dataclass, replace
from typing import List, Optional, Tuple

from twelvecp.billing import AnnualSummary, MonthlyResult, bill_month, summarize_year
from twelvecp.facility import FacilityParams
from twelvecp.optimizer import optimize_curtailment
from twelvecp.records import HourlyRecord, ShutdownRecord
from twelvecp.tariff_rates import (
    DEFAULT_TARIFF,
    OverridesLike,
    TariffOverrides,
    TariffSchedule,
    calculate_breakeven,
    resolve_rates,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PowerModelResult:
    """Full output of one power model run; sequences are immutable."""
    monthly: Tuple[MonthlyResult, ...]
    annual: AnnualSummary
    breakeven: float
    shutdown_log: Tuple[ShutdownRecord, ...]


def run_power_model(
    hourly: List[HourlyRecord],
    params: FacilityParams,
    overrides: OverridesLike = None,
    schedule: TariffSchedule = DEFAULT_TARIFF
) -> PowerModelResult:
    """
    Simulate a year of operation and billing.

    Args:
        hourly: One year of hourly pool price / AIL records
        params: Facility configuration
        overrides: Optional tariff overrides
        schedule: Baseline rate snapshot

    Returns:
        PowerModelResult; empty history gives no months, an empty summary
        and a breakeven computed from rates alone
    """
    rates = resolve_rates(overrides, schedule)
    breakeven = calculate_breakeven(params, rates)

    if not hourly:
        return PowerModelResult(
            monthly=(), annual=AnnualSummary.empty(), breakeven=breakeven, shutdown_log=()
        )

    start = time.perf_counter()
    plan = optimize_curtailment(hourly, params, rates, breakeven)
    monthly = [bill_month(month_plan, params, rates) for month_plan in plan.months]
    annual = summarize_year(monthly, params)
    elapsed_ms = (time.perf_counter() - start) * 1000

    logger.info(
        f"Power model: {len(hourly)} hours, {len(monthly)} months, "
        f"{annual.total_curtailed_hours} curtailed, breakeven ${breakeven:.2f}/MWh "
        f"({elapsed_ms:.1f} ms)"
    )
    return PowerModelResult(
        monthly=tuple(monthly), annual=annual, breakeven=breakeven,
        shutdown_log=tuple(plan.shutdown_log),
    )


def input_fingerprint(
    hourly: List[HourlyRecord],
    params: FacilityParams,
    overrides: OverridesLike = None
) -> str:
    """SHA-256 of the JSON-serialised inputs."""
    if overrides is None:
        overrides = TariffOverrides()
    elif not isinstance(overrides, TariffOverrides):
        overrides = TariffOverrides.from_dict(overrides)

    payload = json.dumps(
        {
            'hourly': [asdict(rec) for rec in hourly],
            'params': asdict(params),
            'overrides': asdict(overrides),
        },
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


def _detached(result: PowerModelResult) -> PowerModelResult:
    # The annual components dict is the only mutable part of a result
    annual = replace(result.annual, components=dict(result.annual.components))
    return replace(result, annual=annual)


class PowerModelCache:
    """
    Caller-managed memo for run_power_model.

    Recomputes only when the hourly array, parameters or overrides change.
    Least recently used entries are evicted beyond max_entries. Callers
    get a copy of the stored result and may modify it freely.
    """

    def __init__(self, max_entries: int = 16):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, PowerModelResult]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def run(
        self,
        hourly: List[HourlyRecord],
        params: FacilityParams,
        overrides: OverridesLike = None
    ) -> PowerModelResult:
        key = input_fingerprint(hourly, params, overrides)
        cached: Optional[PowerModelResult] = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            return _detached(cached)

        self.misses += 1
        result = run_power_model(hourly, params, overrides)
        self._entries[key] = result
        if len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return _detached(result)

    def clear(self):
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
