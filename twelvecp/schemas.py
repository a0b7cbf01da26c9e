"""
Request and response models for the HTTP API.

Requests are validated here before they reach the power model or the
peak predictor; anything malformed is rejected with a 422.
"""

import datetime as dt
import math
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from twelvecp.billing import AnnualSummary, MonthlyResult
from twelvecp.constants import (
    DEFAULT_CAD_USD_RATE,
    DEFAULT_CAPACITY_MW,
    DEFAULT_HOSTING_RATE_USD_KWH,
    DEFAULT_SUBSTATION_FRACTION,
    DEFAULT_TARGET_UPTIME,
)
from twelvecp.facility import CurtailmentStrategy
from twelvecp.local_time import parse_utc
from twelvecp.peak_patterns import PeakBucket, YearlyTrend
from twelvecp.peak_predictor import PredictionSummary, ScheduledPeakEvent
from twelvecp.records import ShutdownRecord


# --- Power model ---

class HourlyRow(BaseModel):
    date: dt.date
    he: int = Field(ge=1, le=24)
    pool_price: float = Field(allow_inf_nan=False)
    ail_mw: float = Field(ge=0, allow_inf_nan=False)


class FacilityParamsInput(BaseModel):
    contracted_capacity_mw: float = Field(default=DEFAULT_CAPACITY_MW, gt=0, allow_inf_nan=False)
    substation_fraction: float = Field(default=DEFAULT_SUBSTATION_FRACTION, ge=0, le=1)
    target_uptime_percent: float = Field(default=DEFAULT_TARGET_UPTIME, ge=0, le=100)
    curtailment_strategy: CurtailmentStrategy = CurtailmentStrategy.TWELVE_CP_PRIORITY
    fixed_price_cad_mwh: Optional[float] = Field(default=None, allow_inf_nan=False)
    cad_usd_rate: float = Field(default=DEFAULT_CAD_USD_RATE, gt=0, allow_inf_nan=False)
    hosting_rate_usd_kwh: float = Field(default=DEFAULT_HOSTING_RATE_USD_KWH, allow_inf_nan=False)

    model_config = {"extra": "forbid"}


class PodTierInput(BaseModel):
    mw: Optional[float] = Field(default=None, gt=0)  # None for the open-ended last tier
    rate: float = Field(ge=0)

    model_config = {"extra": "forbid"}


class TariffOverridesInput(BaseModel):
    bulk_coincident_demand: Optional[float] = Field(default=None, ge=0)
    bulk_metered_energy: Optional[float] = Field(default=None, ge=0)
    regional_billing_capacity: Optional[float] = Field(default=None, ge=0)
    regional_metered_energy: Optional[float] = Field(default=None, ge=0)
    pod_substation: Optional[float] = Field(default=None, ge=0)
    pod_tiers: Optional[List[PodTierInput]] = None
    operating_reserve_percent: Optional[float] = Field(default=None, ge=0)
    tcr_metered_energy: Optional[float] = None
    voltage_control_metered_energy: Optional[float] = None
    system_support_highest_demand: Optional[float] = Field(default=None, ge=0)
    rider_f_metered_energy: Optional[float] = None
    retailer_fee_metered_energy: Optional[float] = Field(default=None, ge=0)
    gst_rate: Optional[float] = Field(default=None, ge=0, le=1)
    distribution_demand_kw_month: Optional[float] = Field(default=None, ge=0)
    distribution_volumetric_cents_kwh: Optional[float] = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}


class PowerModelRequest(BaseModel):
    hourly: List[HourlyRow] = Field(default_factory=list)
    params: FacilityParamsInput = Field(default_factory=FacilityParamsInput)
    overrides: Optional[TariffOverridesInput] = None


class PowerModelResponse(BaseModel):
    breakeven: float
    monthly: List[MonthlyResult]
    annual: AnnualSummary
    shutdown_log: List[ShutdownRecord]


# --- Peak predictions ---

class AllTimePeakInput(BaseModel):
    rank: int = Field(ge=1)
    timestamp: str
    demand_mw: float = Field(gt=0)
    price_at_peak: Optional[float] = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_iso(cls, value: str) -> str:
        parse_utc(value)
        return value


class YearlyPeakInput(BaseModel):
    """A yearly top-12 hour; extra `temperature_*` readings are kept."""
    timestamp: str
    demand_mw: float = Field(gt=0)
    price_at_peak: Optional[float] = None

    model_config = {"extra": "allow"}

    @field_validator("timestamp")
    @classmethod
    def timestamp_is_iso(cls, value: str) -> str:
        parse_utc(value)
        return value

    @model_validator(mode="after")
    def temperatures_are_numbers(self):
        for key, value in (self.model_extra or {}).items():
            if not key.startswith("temperature") or value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValueError(f"{key} must be a number or null")
        return self


class YearlyTop12Input(BaseModel):
    year: int = Field(ge=1900, le=2200)
    peaks: List[YearlyPeakInput] = Field(default_factory=list)


class PeakPredictionRequest(BaseModel):
    all_time_peaks: List[AllTimePeakInput] = Field(default_factory=list)
    yearly_top12: List[YearlyTop12Input] = Field(default_factory=list)
    forecast_year: Optional[int] = Field(default=None, ge=1900, le=2200)
    today: Optional[dt.date] = None


class PeakAnalysisResponse(BaseModel):
    by_month: Dict[int, int]
    by_hour: Dict[int, int]
    by_day_of_week: Dict[str, int]
    by_day_of_month: Dict[int, int]
    month_stats: Dict[int, PeakBucket]
    hour_stats: Dict[int, PeakBucket]
    day_of_week_stats: Dict[str, PeakBucket]
    yearly_trends: List[YearlyTrend]
    peak_count: int
    dominant_month: Optional[int]
    avg_yoy_growth_percent: float
    all_time_peak_mw: float
    avg_peak_temperature_c: Optional[float]
    primary_peak_hour: int


class PeakPredictionResponse(BaseModel):
    analysis: PeakAnalysisResponse
    events: List[ScheduledPeakEvent]
    summary: PredictionSummary


class HealthResponse(BaseModel):
    status: str
    tariff_version: str
    cached_runs: int
    cache_hits: int
    cache_misses: int
    started_at: dt.datetime
