"""
Shared fixtures: synthetic hourly market data and peak archives.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import numpy as np
import pandas as pd
import pytest


def local_to_utc(year, month, day, hour):
    """UTC ISO timestamp for an Alberta local wall-clock time."""
    local = datetime(year, month, day, hour, tzinfo=ZoneInfo('America/Edmonton'))
    return local.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def make_hourly_frame(start='2024-01-01', days=366, seed=42):
    """Hourly pool price / AIL frame with evening demand peaks and rare price spikes."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start=start, periods=days, freq='D')
    rows = []
    for day in dates:
        for he in range(1, 25):
            price = float(rng.gamma(2.0, 25.0))
            if rng.random() < 0.03:
                price += 400.0
            ail = 9500.0 + (800.0 if 17 <= he <= 20 else 0.0) + float(rng.normal(0, 150))
            rows.append({
                'date': day.strftime('%Y-%m-%d'),
                'he': he,
                'pool_price': round(price, 2),
                'ail_mw': round(ail, 1),
            })
    return pd.DataFrame(rows)


@pytest.fixture
def hourly_frame():
    return make_hourly_frame()


@pytest.fixture
def hourly_year(hourly_frame):
    """One leap year (2024) of HourlyRecords."""
    from twelvecp.data_loader import hourly_frame_to_records
    return hourly_frame_to_records(hourly_frame)


@pytest.fixture
def default_params():
    from twelvecp.facility import FacilityParams
    return FacilityParams()


@pytest.fixture
def peak_archive():
    """Peak archive dict shaped like the JSON the loader reads."""
    all_time = [
        # Weekday winter evenings, mostly 18:00 local
        (2024, 1, 12, 18, 12384.0),
        (2024, 1, 11, 18, 12301.0),
        (2022, 12, 22, 18, 12193.0),
        (2023, 12, 19, 18, 12150.0),
        (2022, 12, 15, 17, 12102.0),
        (2024, 12, 18, 18, 12087.0),
        (2023, 1, 17, 18, 12011.0),
        (2022, 12, 20, 19, 11998.0),
    ]
    return {
        'all_time_peaks': [
            {
                'rank': rank,
                'timestamp': local_to_utc(y, m, d, h),
                'demand_mw': demand,
                'price_at_peak': 250.0,
            }
            for rank, (y, m, d, h, demand) in enumerate(all_time, start=1)
        ],
        'yearly_top12': [
            {
                'year': 2023,
                'peaks': [
                    {'timestamp': local_to_utc(2023, 12, 19, 18), 'demand_mw': 11000.0,
                     'temperature_calgary': -30.0, 'temperature_edmonton': None},
                    {'timestamp': local_to_utc(2023, 1, 17, 18), 'demand_mw': 10800.0,
                     'temperature_calgary': -26.0},
                ],
            },
            {
                'year': 2024,
                'peaks': [
                    {'timestamp': local_to_utc(2024, 1, 12, 18), 'demand_mw': 12100.0,
                     'temperature_calgary': -34.0},
                ],
            },
        ],
    }


@pytest.fixture
def peak_analysis(peak_archive):
    from twelvecp.data_loader import peak_history_from_dict
    from twelvecp.peak_patterns import analyze_peak_patterns
    all_time, yearly = peak_history_from_dict(peak_archive)
    return analyze_peak_patterns(all_time, yearly)
