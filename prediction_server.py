"""
FastAPI server for the 12CP power model and peak predictions.

Exposes the curtailment/billing simulation and the coincident peak
forecast to the dashboard.
Run: python prediction_server.py
"""

import logging
import math
from dataclasses import asdict
from datetime import date, datetime
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from twelvecp.data_loader import peak_history_from_dict
from twelvecp.facility import FacilityParams
from twelvecp.peak_patterns import PeakPatternAnalysis, analyze_peak_patterns
from twelvecp.peak_predictor import PredictionConfig, get_prediction_summary, predict_peak_events
from twelvecp.records import HourlyRecord
from twelvecp.schemas import (
    HealthResponse,
    HourlyRow,
    PeakAnalysisResponse,
    PeakPredictionRequest,
    PeakPredictionResponse,
    PowerModelRequest,
    PowerModelResponse,
    TariffOverridesInput,
)
from twelvecp.simulator import PowerModelCache
from twelvecp.tariff_rates import DEFAULT_TARIFF, TariffOverrides

logger = logging.getLogger(__name__)

CACHE_SIZE = 16

app = FastAPI(
    title="12CP Power Model API",
    description="Curtailment, billing and coincident peak forecasting for Alberta loads",
    version="1.0.0"
)

# Enable CORS for dashboard
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
power_model_cache = PowerModelCache(max_entries=CACHE_SIZE)
started_at = datetime.now()


def _json_safe(value):
    """Replace non-finite floats (the open-ended POD tier) with None."""
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    return value


def to_hourly_records(rows: List[HourlyRow]) -> List[HourlyRecord]:
    """Hourly records from validated request rows, ordered by date and hour ending."""
    records = [
        HourlyRecord(
            date=row.date.isoformat(),
            hour_ending=row.he,
            pool_price=row.pool_price,
            ail_mw=row.ail_mw,
        )
        for row in rows
    ]
    return sorted(records, key=lambda rec: (rec.date, rec.hour_ending))


def to_overrides(body: Optional[TariffOverridesInput]) -> Optional[TariffOverrides]:
    if body is None:
        return None
    fields = {k: v for k, v in body.model_dump().items() if v is not None}
    return TariffOverrides.from_dict(fields)


def to_analysis_response(analysis: PeakPatternAnalysis) -> PeakAnalysisResponse:
    return PeakAnalysisResponse(
        by_month=analysis.by_month,
        by_hour=analysis.by_hour,
        by_day_of_week=analysis.by_day_of_week,
        by_day_of_month=analysis.by_day_of_month,
        month_stats=analysis.month_stats,
        hour_stats=analysis.hour_stats,
        day_of_week_stats=analysis.day_of_week_stats,
        yearly_trends=analysis.yearly_trends,
        peak_count=analysis.peak_count,
        dominant_month=analysis.dominant_month,
        avg_yoy_growth_percent=analysis.avg_yoy_growth_percent,
        all_time_peak_mw=analysis.all_time_peak_mw,
        avg_peak_temperature_c=analysis.avg_peak_temperature_c,
        primary_peak_hour=analysis.primary_peak_hour,
    )


@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    return HealthResponse(
        status="running",
        tariff_version=DEFAULT_TARIFF.version,
        cached_runs=len(power_model_cache),
        cache_hits=power_model_cache.hits,
        cache_misses=power_model_cache.misses,
        started_at=started_at,
    )


@app.get("/tariff/default")
async def get_default_tariff():
    """Current default rate snapshot."""
    return _json_safe(asdict(DEFAULT_TARIFF))


@app.post("/power-model", response_model=PowerModelResponse)
async def post_power_model(body: PowerModelRequest):
    """Run the power model over the submitted hourly history."""
    hourly = to_hourly_records(body.hourly)
    params = FacilityParams(**body.params.model_dump())
    result = power_model_cache.run(hourly, params, to_overrides(body.overrides))
    logger.info(f"Served power model for {len(hourly)} hours")

    return PowerModelResponse(
        breakeven=result.breakeven,
        monthly=list(result.monthly),
        annual=result.annual,
        shutdown_log=list(result.shutdown_log),
    )


@app.post("/peak-predictions", response_model=PeakPredictionResponse)
async def post_peak_predictions(body: PeakPredictionRequest):
    """Forecast coincident peaks from the historical archive."""
    all_time, yearly = peak_history_from_dict(body.model_dump(include={"all_time_peaks", "yearly_top12"}))
    today = body.today or date.today()
    forecast_year = body.forecast_year or today.year

    analysis = analyze_peak_patterns(all_time, yearly)
    events = predict_peak_events(analysis, PredictionConfig.for_winter(forecast_year), today=today)

    return PeakPredictionResponse(
        analysis=to_analysis_response(analysis),
        events=events,
        summary=get_prediction_summary(events),
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting 12CP Power Model Server...")
    print("API docs available at: http://localhost:8000/docs")
    uvicorn.run(app, host="0.0.0.0", port=8000)
