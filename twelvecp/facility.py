"""
Facility configuration for the 12CP power model.

Describes a large flexible load (mining or compute facility) connected
to the Alberta transmission system:
- Contracted capacity (MW) and substation ownership fraction
- Target uptime floor used to size the monthly downtime budget
- Curtailment strategy
- Optional fixed contract energy price
- Hosting revenue and CAD/USD conversion for the breakeven price
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from twelvecp.constants import (
    DEFAULT_CAPACITY_MW,
    DEFAULT_SUBSTATION_FRACTION,
    DEFAULT_TARGET_UPTIME,
    DEFAULT_CAD_USD_RATE,
    DEFAULT_HOSTING_RATE_USD_KWH,
)


class CurtailmentStrategy(str, Enum):
    """How the optimizer spends the monthly downtime budget."""
    TWELVE_CP_PRIORITY = '12cp-priority'
    COST_OPTIMIZED = 'cost-optimized'


@dataclass(frozen=True)
class FacilityParams:
    """
    Caller-owned facility configuration.

    Attributes:
        contracted_capacity_mw: Load drawn while running (MW)
        substation_fraction: Share of the point-of-delivery substation owned (0-1)
        target_uptime_percent: Uptime floor; sets the monthly downtime budget
        curtailment_strategy: '12cp-priority' or 'cost-optimized'
        fixed_price_cad_mwh: Flat contract energy price, or None for pool price
        cad_usd_rate: USD per CAD
        hosting_rate_usd_kwh: Hosting revenue (USD/kWh)
    """
    contracted_capacity_mw: float = DEFAULT_CAPACITY_MW
    substation_fraction: float = DEFAULT_SUBSTATION_FRACTION
    target_uptime_percent: float = DEFAULT_TARGET_UPTIME
    curtailment_strategy: CurtailmentStrategy = CurtailmentStrategy.TWELVE_CP_PRIORITY
    fixed_price_cad_mwh: Optional[float] = None
    cad_usd_rate: float = DEFAULT_CAD_USD_RATE
    hosting_rate_usd_kwh: float = DEFAULT_HOSTING_RATE_USD_KWH

    def __post_init__(self):
        """Validate facility parameters."""
        if self.contracted_capacity_mw <= 0:
            raise ValueError("Contracted capacity must be positive")
        if not 0 <= self.substation_fraction <= 1:
            raise ValueError("Substation fraction must be between 0 and 1")
        if not 0 <= self.target_uptime_percent <= 100:
            raise ValueError("Target uptime must be between 0 and 100")
        if self.cad_usd_rate <= 0 or not math.isfinite(self.cad_usd_rate):
            raise ValueError("CAD/USD rate must be positive")
        # Accept the plain string form ('12cp-priority') from configs and requests
        object.__setattr__(
            self, 'curtailment_strategy', CurtailmentStrategy(self.curtailment_strategy)
        )

    @property
    def has_fixed_price(self) -> bool:
        return self.fixed_price_cad_mwh is not None

    def effective_price(self, pool_price: float) -> float:
        """Energy price actually paid for one MWh in an hour."""
        if self.fixed_price_cad_mwh is not None:
            return self.fixed_price_cad_mwh
        return pool_price
