"""
12CP peak event predictor.

Ranks candidate dates in upcoming forecast windows (by default December
and the following January) by a heuristic confidence score built from
historical peak patterns, and projects the expected system demand for
each selected date.

Weekends never produce a prediction: no historical 12CP peak has fallen
on a Saturday or Sunday.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from twelvecp.constants import (
    CRITICAL_CONFIDENCE,
    HIGH_CONFIDENCE,
    MARKET_TIMEZONE_LABEL,
    MIN_PROJECTED_GROWTH_PERCENT,
    MODERATE_CONFIDENCE,
    MONTH_ABBREVIATIONS,
    MONTH_NAMES,
)
from twelvecp.local_time import (
    day_name,
    format_display_date,
    hour_label,
    is_dst,
    is_weekend,
    local_instant,
    month_dates,
)
from twelvecp.peak_patterns import LocalPeak, PeakPatternAnalysis

logger = logging.getLogger(__name__)


class RiskLevel(str, Enum):
    CRITICAL = 'critical'
    HIGH = 'high'
    MODERATE = 'moderate'
    LOW = 'low'


# iCalendar PRIORITY values (1 = highest)
CALENDAR_PRIORITY = {
    RiskLevel.CRITICAL: 1,
    RiskLevel.HIGH: 3,
    RiskLevel.MODERATE: 5,
    RiskLevel.LOW: 9,
}


@dataclass(frozen=True)
class ForecastWindow:
    """Candidate date range within one month and how many dates to pick."""
    year: int
    month: int
    first_day: int = 1
    last_day: int = 31
    picks: int = 6
    group: str = ''


@dataclass(frozen=True)
class DayWindow:
    """Day-of-month range where historical peaks concentrate."""
    first_day: int
    last_day: int
    weight: float

    def contains(self, day: int) -> bool:
        return self.first_day <= day <= self.last_day


@dataclass(frozen=True)
class PredictionConfig:
    """Tuning for candidate scoring and demand projection."""
    windows: Tuple[ForecastWindow, ...]
    base_confidence: float = 50.0
    day_of_week_weight: float = 30.0
    # Highest-weighted range first; the first match wins
    day_windows: Tuple[DayWindow, ...] = (
        DayWindow(15, 22, 15.0),
        DayWindow(8, 14, 10.0),
        DayWindow(23, 31, 6.0),
    )
    dominant_month_bonus: float = 10.0
    rank_decay: float = 2.0
    min_confidence: float = 40.0
    max_confidence: float = 95.0
    growth_floor_percent: float = MIN_PROJECTED_GROWTH_PERCENT
    step_decrease_mw: float = 40.0
    demand_band_mw: float = 150.0
    window_start_offset_hours: int = -1
    window_length_hours: int = 3
    reminder_minutes: Tuple[int, ...] = (1440, 60)

    def __post_init__(self):
        if self.min_confidence > self.max_confidence:
            raise ValueError("min_confidence must not exceed max_confidence")
        if self.window_length_hours <= 0:
            raise ValueError("window_length_hours must be positive")

    @classmethod
    def for_winter(cls, year: int, **overrides) -> 'PredictionConfig':
        """December of `year` and January of the following year."""
        windows = (
            ForecastWindow(year=year, month=12, first_day=1, last_day=31, picks=6, group='december'),
            ForecastWindow(year=year + 1, month=1, first_day=2, last_day=24, picks=4, group='january'),
        )
        return cls(windows=windows, **overrides)


@dataclass(frozen=True)
class TimeWindow:
    start: str  # 'HH:MM' local
    end: str
    timezone: str
    start_at: datetime
    end_at: datetime


@dataclass(frozen=True)
class DemandRange:
    min: int
    max: int
    median: int


@dataclass(frozen=True)
class ScheduledPeakEvent:
    """One predicted coincident peak, ready for display or calendar export."""
    id: str
    rank: int
    event_date: date
    display_date: str
    time_window: TimeWindow
    expected_demand_mw: DemandRange
    confidence_score: int
    risk_level: RiskLevel
    historical_reference: str
    month_group: str
    weather_condition: str
    title: str
    description: str
    priority: int
    reminder_minutes: Tuple[int, ...]
    is_past: bool
    days_until_event: int

    def to_calendar_fields(self) -> Dict:
        """Fields a calendar exporter needs for one event block."""
        return {
            'uid': self.id,
            'summary': self.title,
            'description': self.description,
            'start_utc': self.time_window.start_at.astimezone(timezone.utc),
            'end_utc': self.time_window.end_at.astimezone(timezone.utc),
            'priority': self.priority,
            'reminders_minutes': list(self.reminder_minutes),
        }


def risk_level_for(confidence: float) -> RiskLevel:
    if confidence >= CRITICAL_CONFIDENCE:
        return RiskLevel.CRITICAL
    if confidence >= HIGH_CONFIDENCE:
        return RiskLevel.HIGH
    if confidence >= MODERATE_CONFIDENCE:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def raw_confidence(candidate: date, analysis: PeakPatternAnalysis, config: PredictionConfig) -> float:
    """Unclamped score before rank decay."""
    score = config.base_confidence
    score += analysis.day_of_week_share(day_name(candidate)) * config.day_of_week_weight

    for window in config.day_windows:
        if window.contains(candidate.day):
            score += window.weight
            break

    if analysis.dominant_month == candidate.month:
        score += config.dominant_month_bonus
    return score


def calculate_confidence(
    candidate: date,
    analysis: PeakPatternAnalysis,
    config: PredictionConfig,
    rank: int = 0
) -> int:
    """
    Confidence (0-100) that `candidate` hosts a coincident peak.

    Args:
        candidate: Date being scored
        analysis: Historical peak patterns
        config: Scoring weights
        rank: Number of predictions already selected ahead of this one

    Returns:
        0 for weekends, otherwise a value within the configured band
    """
    if is_weekend(candidate):
        return 0
    score = raw_confidence(candidate, analysis, config) - rank * config.rank_decay
    score = float(np.clip(score, config.min_confidence, config.max_confidence))
    return int(round(score))


def project_demand(analysis: PeakPatternAnalysis, config: PredictionConfig, rank: int) -> DemandRange:
    """
    Expected demand for the prediction at 1-based `rank`.

    Lower ranks are modelled as progressively smaller events.
    """
    growth = max(analysis.avg_yoy_growth_percent, config.growth_floor_percent) / 100
    median = analysis.all_time_peak_mw * (1 + growth) - config.step_decrease_mw * (rank - 1)
    return DemandRange(
        min=int(round(median - config.demand_band_mw)),
        max=int(round(median + config.demand_band_mw)),
        median=int(round(median)),
    )


def historical_reference(candidate: date, analysis: PeakPatternAnalysis) -> str:
    """Describe the historical peak of the same month closest in day-of-month."""
    same_month = [p for p in analysis.peaks if p.month == candidate.month]
    if same_month:
        peak = min(same_month, key=lambda p: (abs(p.day_of_month - candidate.day), p.rank))
        return f"#{peak.rank} all-time peak: {_describe_peak(peak)}"
    if analysis.peaks:
        return f"All-time peak: {_describe_peak(analysis.peaks[0])}"
    return f"No historical peak on record for {MONTH_NAMES[candidate.month - 1]}"


def _describe_peak(peak: LocalPeak) -> str:
    moment = peak.local_time
    return (
        f"{peak.demand_mw:,.0f} MW on {peak.day_name}, "
        f"{MONTH_ABBREVIATIONS[moment.month - 1]} {moment.day}, {moment.year} "
        f"at {hour_label(moment.hour)}"
    )


def weather_condition(analysis: PeakPatternAnalysis) -> str:
    if analysis.avg_peak_temperature_c is None:
        return 'Cold snap risk'
    return f"Cold snap risk (historical peaks avg {analysis.avg_peak_temperature_c:.0f}°C)"


def _time_window(candidate: date, analysis: PeakPatternAnalysis, config: PredictionConfig) -> TimeWindow:
    start_hour = min(23, max(0, analysis.primary_peak_hour + config.window_start_offset_hours))
    start_at = local_instant(candidate, start_hour)
    end_at = local_instant(candidate, start_hour + config.window_length_hours)
    label = 'MDT' if is_dst(start_at) else MARKET_TIMEZONE_LABEL
    return TimeWindow(
        start=start_at.strftime('%H:%M'),
        end=end_at.strftime('%H:%M'),
        timezone=label,
        start_at=start_at,
        end_at=end_at,
    )


def select_candidates(
    window: ForecastWindow,
    analysis: PeakPatternAnalysis,
    config: PredictionConfig
) -> List[Tuple[date, int]]:
    """
    Highest-confidence weekdays of one forecast window.

    Candidates are taken in descending raw score (earlier date on ties);
    each pick's confidence carries the decay for its position.
    """
    weekdays = [
        d for d in month_dates(window.year, window.month, window.first_day, window.last_day)
        if not is_weekend(d)
    ]
    ranked = sorted(weekdays, key=lambda d: (-raw_confidence(d, analysis, config), d))
    return [
        (candidate, calculate_confidence(candidate, analysis, config, rank=position))
        for position, candidate in enumerate(ranked[:window.picks])
    ]


def predict_peak_events(
    analysis: PeakPatternAnalysis,
    config: Optional[PredictionConfig] = None,
    today: Optional[date] = None
) -> List[ScheduledPeakEvent]:
    """
    Predict upcoming coincident peaks.

    Args:
        analysis: Historical peak patterns
        config: Forecast windows and weights; defaults to the coming winter
        today: Reference date for past/countdown fields

    Returns:
        Events ranked 1..N by confidence (descending), earlier date on ties
    """
    today = today or date.today()
    config = config or PredictionConfig.for_winter(today.year)

    picks = []
    for window in config.windows:
        for candidate, confidence in select_candidates(window, analysis, config):
            picks.append((candidate, confidence, window.group))

    picks.sort(key=lambda item: (-item[1], item[0]))

    events = []
    for rank, (candidate, confidence, group) in enumerate(picks, start=1):
        demand = project_demand(analysis, config, rank)
        risk = risk_level_for(confidence)
        window = _time_window(candidate, analysis, config)
        reference = historical_reference(candidate, analysis)
        display_date = format_display_date(candidate)

        description = (
            f"Predicted 12CP peak #{rank} ({risk.value}, {confidence}% confidence).\n"
            f"Window: {window.start}-{window.end} {window.timezone}.\n"
            f"Expected AIL: {demand.median:,} MW (range {demand.min:,}-{demand.max:,} MW).\n"
            f"Based on: {reference}.\n"
            f"Curtail flexible load through the window to avoid the coincident demand charge."
        )

        events.append(ScheduledPeakEvent(
            id=f"12cp-{rank}-{candidate.isoformat()}",
            rank=rank,
            event_date=candidate,
            display_date=display_date,
            time_window=window,
            expected_demand_mw=demand,
            confidence_score=confidence,
            risk_level=risk,
            historical_reference=reference,
            month_group=group,
            weather_condition=weather_condition(analysis),
            title=f"12CP Peak Risk #{rank}: {risk.value.upper()} ({confidence}%)",
            description=description,
            priority=CALENDAR_PRIORITY[risk],
            reminder_minutes=config.reminder_minutes,
            is_past=candidate < today,
            days_until_event=max(0, (candidate - today).days),
        ))

    logger.info(f"Predicted {len(events)} peak events across {len(config.windows)} windows")
    return events


@dataclass(frozen=True)
class PredictionSummary:
    total_events: int
    critical_count: int
    high_count: int
    moderate_count: int
    low_count: int
    by_group: Dict[str, int] = field(default_factory=dict)
    expected_max_demand: int = 0
    average_confidence: int = 0


def get_prediction_summary(events: List[ScheduledPeakEvent]) -> PredictionSummary:
    """Headline counts for a list of predicted events."""
    by_group: Dict[str, int] = {}
    for event in events:
        by_group[event.month_group] = by_group.get(event.month_group, 0) + 1

    def count(level: RiskLevel) -> int:
        return sum(1 for e in events if e.risk_level == level)

    return PredictionSummary(
        total_events=len(events),
        critical_count=count(RiskLevel.CRITICAL),
        high_count=count(RiskLevel.HIGH),
        moderate_count=count(RiskLevel.MODERATE),
        low_count=count(RiskLevel.LOW),
        by_group=by_group,
        expected_max_demand=max((e.expected_demand_mw.max for e in events), default=0),
        average_confidence=int(round(np.mean([e.confidence_score for e in events]))) if events else 0,
    )
