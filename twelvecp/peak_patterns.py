"""
Historical peak pattern analysis.

Converts archived top-N system demand hours from UTC to Alberta civil
time and summarizes when peaks happen: by month, hour of day, day of week
and day of month, with count, mean and max demand per month, hour and
weekday. Also derives per-year trends and year-over-year peak growth from
the yearly top-12 dataset, and the average temperature at those peaks.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Hashable, List, Mapping, Optional

import numpy as np

from twelvecp.constants import DAY_NAMES, DEFAULT_PEAK_HOUR, DEFAULT_YOY_GROWTH_PERCENT
from twelvecp.local_time import day_name, to_local

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllTimePeakHour:
    """One of the all-time highest system demand hours."""
    rank: int
    timestamp: str  # UTC ISO timestamp
    demand_mw: float
    price_at_peak: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping) -> 'AllTimePeakHour':
        return cls(
            rank=int(data['rank']),
            timestamp=str(data['timestamp']),
            demand_mw=float(data['demand_mw']),
            price_at_peak=float(data.get('price_at_peak') or 0.0),
        )


@dataclass(frozen=True)
class YearlyPeak:
    """One of a year's top-12 demand hours with any weather readings."""
    timestamp: str
    demand_mw: float
    price_at_peak: Optional[float] = None
    temperatures: Dict[str, Optional[float]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping) -> 'YearlyPeak':
        temperatures = {k: v for k, v in data.items() if k.startswith('temperature')}
        return cls(
            timestamp=str(data['timestamp']),
            demand_mw=float(data['demand_mw']),
            price_at_peak=data.get('price_at_peak'),
            temperatures=temperatures,
        )


@dataclass(frozen=True)
class YearlyTop12Data:
    year: int
    peaks: List[YearlyPeak]

    @classmethod
    def from_dict(cls, data: Mapping) -> 'YearlyTop12Data':
        return cls(
            year=int(data['year']),
            peaks=[YearlyPeak.from_dict(p) for p in data.get('peaks', [])],
        )

    @property
    def max_demand_mw(self) -> float:
        return max((p.demand_mw for p in self.peaks), default=0.0)


@dataclass(frozen=True)
class LocalPeak:
    """An all-time peak hour on the local clock."""
    rank: int
    local_time: datetime
    demand_mw: float
    price_at_peak: float

    @property
    def month(self) -> int:
        return self.local_time.month

    @property
    def hour(self) -> int:
        return self.local_time.hour

    @property
    def day_of_month(self) -> int:
        return self.local_time.day

    @property
    def day_name(self) -> str:
        return day_name(self.local_time.date())


@dataclass(frozen=True)
class PeakBucket:
    """Size and magnitude of the peaks that fell in one bucket."""
    peak_count: int
    avg_peak_mw: float
    max_peak_mw: float


@dataclass(frozen=True)
class YearlyTrend:
    """One year of the top-12 dataset, summarized."""
    year: int
    peak_count: int
    max_peak_mw: float
    avg_peak_mw: float
    yoy_change_percent: Optional[float] = None  # vs. the previous year listed


@dataclass(frozen=True)
class PeakPatternAnalysis:
    """Frequency tables and summary statistics of historical peaks."""
    by_month: Dict[int, int]         # 1-12 -> count
    by_hour: Dict[int, int]          # 0-23 -> count
    by_day_of_week: Dict[str, int]   # 'Monday'.. -> count
    by_day_of_month: Dict[int, int]  # 1-31 -> count
    avg_yoy_growth_percent: float
    all_time_peak_mw: float
    avg_peak_temperature_c: Optional[float]
    primary_peak_hour: int
    peaks: List[LocalPeak] = field(default_factory=list)
    month_stats: Dict[int, PeakBucket] = field(default_factory=dict)
    hour_stats: Dict[int, PeakBucket] = field(default_factory=dict)
    day_of_week_stats: Dict[str, PeakBucket] = field(default_factory=dict)
    yearly_trends: List[YearlyTrend] = field(default_factory=list)

    @property
    def peak_count(self) -> int:
        return len(self.peaks)

    @property
    def dominant_month(self) -> Optional[int]:
        """Month with the most peaks (earliest on ties), None without data."""
        if not any(self.by_month.values()):
            return None
        return max(sorted(self.by_month), key=lambda m: self.by_month[m])

    def day_of_week_share(self, name: str) -> float:
        """Fraction of peaks that fell on the given weekday."""
        if not self.peaks:
            return 0.0
        return self.by_day_of_week.get(name, 0) / len(self.peaks)


def convert_peaks(all_time_peaks: List[AllTimePeakHour]) -> List[LocalPeak]:
    """Convert archived UTC peak timestamps to local market time."""
    return [
        LocalPeak(
            rank=p.rank,
            local_time=to_local(p.timestamp),
            demand_mw=p.demand_mw,
            price_at_peak=p.price_at_peak,
        )
        for p in sorted(all_time_peaks, key=lambda p: p.rank)
    ]


def frequency_tables(peaks: List[LocalPeak]) -> Dict[str, Dict]:
    """Count peaks by month, hour of day, day of week and day of month."""
    by_month = {m: 0 for m in range(1, 13)}
    by_hour = {h: 0 for h in range(24)}
    by_day_of_week = {name: 0 for name in DAY_NAMES}
    by_day_of_month = {d: 0 for d in range(1, 32)}

    for peak in peaks:
        by_month[peak.month] += 1
        by_hour[peak.hour] += 1
        by_day_of_week[peak.day_name] += 1
        by_day_of_month[peak.day_of_month] += 1

    return {
        'by_month': by_month,
        'by_hour': by_hour,
        'by_day_of_week': by_day_of_week,
        'by_day_of_month': by_day_of_month,
    }


def bucket_stats(peaks: List[LocalPeak], key: Callable[[LocalPeak], Hashable]) -> Dict:
    """
    Count, mean and max demand of the peaks in each bucket.

    Only buckets holding at least one peak appear, in first-seen order of
    the peaks list.
    """
    grouped: Dict = {}
    for peak in peaks:
        grouped.setdefault(key(peak), []).append(peak.demand_mw)
    return {
        bucket: PeakBucket(
            peak_count=len(demands),
            avg_peak_mw=float(np.mean(demands)),
            max_peak_mw=float(np.max(demands)),
        )
        for bucket, demands in grouped.items()
    }


def yearly_trends(yearly_top12: List[YearlyTop12Data]) -> List[YearlyTrend]:
    """Per-year peak size, oldest first; years without peaks are skipped."""
    trends: List[YearlyTrend] = []
    for data in sorted(yearly_top12, key=lambda d: d.year):
        if not data.peaks:
            continue
        demands = [p.demand_mw for p in data.peaks]
        change = None
        if trends and trends[-1].max_peak_mw > 0:
            change = (data.max_demand_mw / trends[-1].max_peak_mw - 1) * 100
        trends.append(YearlyTrend(
            year=data.year,
            peak_count=len(demands),
            max_peak_mw=float(np.max(demands)),
            avg_peak_mw=float(np.mean(demands)),
            yoy_change_percent=change,
        ))
    return trends


def yoy_growth_percent(
    yearly_top12: List[YearlyTop12Data],
    baseline: float = DEFAULT_YOY_GROWTH_PERCENT
) -> float:
    """
    Mean year-over-year change of the yearly maximum peak, in percent.

    Consecutive years in the dataset are paired; with fewer than two
    usable years the baseline is returned.
    """
    yearly_max = sorted(
        (data.year, data.max_demand_mw) for data in yearly_top12 if data.peaks
    )
    changes = [
        (this_max - last_max) / last_max
        for (_, last_max), (_, this_max) in zip(yearly_max, yearly_max[1:])
        if last_max > 0
    ]
    if not changes:
        logger.debug(f"Fewer than two years of peak data; using {baseline}% growth")
        return baseline
    return float(np.mean(changes)) * 100


def average_peak_temperature(yearly_top12: List[YearlyTop12Data]) -> Optional[float]:
    """Mean of every temperature reading attached to yearly peaks."""
    readings = [
        float(value)
        for data in yearly_top12
        for peak in data.peaks
        for value in peak.temperatures.values()
        if value is not None and math.isfinite(float(value))
    ]
    if not readings:
        return None
    return float(np.mean(readings))


def most_frequent_hour(by_hour: Dict[int, int]) -> int:
    """Hour with the most peaks, earliest hour on ties."""
    if not any(by_hour.values()):
        return DEFAULT_PEAK_HOUR
    counts = Counter(by_hour)
    return max(sorted(counts), key=lambda h: counts[h])


def _in_week_order(stats: Dict[str, PeakBucket]) -> Dict[str, PeakBucket]:
    return {name: stats[name] for name in DAY_NAMES if name in stats}


def analyze_peak_patterns(
    all_time_peaks: List[AllTimePeakHour],
    yearly_top12: List[YearlyTop12Data],
    baseline_growth_percent: float = DEFAULT_YOY_GROWTH_PERCENT
) -> PeakPatternAnalysis:
    """
    Build the pattern analysis the peak predictor works from.

    Args:
        all_time_peaks: Top-N system demand hours (UTC timestamps)
        yearly_top12: Each year's top-12 demand hours
        baseline_growth_percent: Growth used when the yearly data is too short

    Returns:
        PeakPatternAnalysis
    """
    peaks = convert_peaks(all_time_peaks)
    tables = frequency_tables(peaks)

    all_time_peak_mw = max(
        [p.demand_mw for p in peaks] + [data.max_demand_mw for data in yearly_top12],
        default=0.0,
    )

    analysis = PeakPatternAnalysis(
        by_month=tables['by_month'],
        by_hour=tables['by_hour'],
        by_day_of_week=tables['by_day_of_week'],
        by_day_of_month=tables['by_day_of_month'],
        avg_yoy_growth_percent=yoy_growth_percent(yearly_top12, baseline_growth_percent),
        all_time_peak_mw=all_time_peak_mw,
        avg_peak_temperature_c=average_peak_temperature(yearly_top12),
        primary_peak_hour=most_frequent_hour(tables['by_hour']),
        peaks=peaks,
        month_stats=dict(sorted(bucket_stats(peaks, lambda p: p.month).items())),
        hour_stats=dict(sorted(bucket_stats(peaks, lambda p: p.hour).items())),
        day_of_week_stats=_in_week_order(bucket_stats(peaks, lambda p: p.day_name)),
        yearly_trends=yearly_trends(yearly_top12),
    )

    logger.info(
        f"Analyzed {len(peaks)} peaks: all-time {all_time_peak_mw:,.0f} MW, "
        f"YoY growth {analysis.avg_yoy_growth_percent:.2f}%, primary hour {analysis.primary_peak_hour}"
    )
    return analysis
