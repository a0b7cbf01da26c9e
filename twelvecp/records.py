"""
Record types shared by the curtailment optimizer and billing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


@dataclass(frozen=True)
class HourlyRecord:
    """One hour of historical pool price and system demand (AIL)."""
    date: str          # Local calendar date, YYYY-MM-DD
    hour_ending: int   # 1-24
    pool_price: float  # $/MWh
    ail_mw: float      # Alberta Internal Load, MW

    @property
    def key(self) -> str:
        return f"{self.date}-{self.hour_ending}"


class ShutdownReason(str, Enum):
    """Why an hour was curtailed. Overlap is its own tag so it is counted once."""
    TWELVE_CP = '12CP'
    PRICE = 'Price'
    UPTIME_CAP = 'UptimeCap'
    TWELVE_CP_AND_PRICE = '12CP+Price'


@dataclass(frozen=True)
class ShutdownRecord:
    """One curtailed hour."""
    date: str
    hour_ending: int
    pool_price: float
    ail_mw: float
    reason: ShutdownReason
    cost_avoided: float


@dataclass(frozen=True)
class Curtailment:
    """A strategy's decision to shut down the hour at `index` of a month."""
    index: int
    reason: ShutdownReason
    cost_avoided: float


@dataclass
class MonthPlan:
    """Running/curtailed partition of one calendar month."""
    month_index: int  # 0 = January
    records: List[HourlyRecord]
    max_downtime_hours: int
    peak_index: int
    running: List[HourlyRecord] = field(default_factory=list)
    curtailed: List[ShutdownRecord] = field(default_factory=list)
    peak_curtailed: bool = False

    @property
    def total_hours(self) -> int:
        return len(self.records)

    @property
    def running_hours(self) -> int:
        return len(self.running)

    @property
    def curtailed_hours(self) -> int:
        return len(self.curtailed)

    def count(self, reason: ShutdownReason) -> int:
        return sum(1 for rec in self.curtailed if rec.reason == reason)

    @property
    def savings(self) -> float:
        return sum(rec.cost_avoided for rec in self.curtailed)
