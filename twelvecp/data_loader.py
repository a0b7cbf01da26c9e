"""
Data loader module for AESO hourly market data and peak archives.

Handles loading and cleaning of the hourly pool price / AIL history
exported from the AESO historical feed, and of the historical peak
archive (all-time top peaks and yearly top-12 peaks).
"""

import json
from pathlib import Path
from typing import Dict, List, Tuple

import pandas as pd

from twelvecp.peak_patterns import AllTimePeakHour, YearlyTop12Data
from twelvecp.records import HourlyRecord

# Accepted spellings for each required column (after upper-casing)
COLUMN_ALIASES = {
    'date': ['DATE', 'BEGIN_DATE', 'DATE_MST'],
    'he': ['HE', 'HOUR_ENDING', 'HOUR'],
    'pool_price': ['POOL_PRICE', 'PRICE', 'POOLPRICE'],
    'ail_mw': ['AIL_MW', 'AIL', 'AIL_DEMAND', 'DEMAND_MW'],
}


def _find_column(df: pd.DataFrame, name: str) -> str:
    for candidate in COLUMN_ALIASES[name]:
        if candidate in df.columns:
            return candidate
    raise ValueError(f"Hourly data must contain a '{name}' column (tried {COLUMN_ALIASES[name]})")


def hourly_frame_to_records(df: pd.DataFrame) -> List[HourlyRecord]:
    """
    Convert a DataFrame of hourly data into HourlyRecords.

    Args:
        df: DataFrame with date, hour ending, pool price and AIL columns

    Returns:
        List of HourlyRecord sorted by date and hour ending
    """
    df = df.copy()
    df.columns = df.columns.str.upper().str.strip()

    date_col = _find_column(df, 'date')
    he_col = _find_column(df, 'he')
    price_col = _find_column(df, 'pool_price')
    ail_col = _find_column(df, 'ail_mw')

    frame = pd.DataFrame({
        'date': pd.to_datetime(df[date_col]).dt.strftime('%Y-%m-%d'),
        'he': pd.to_numeric(df[he_col], errors='coerce'),
        'pool_price': pd.to_numeric(df[price_col], errors='coerce'),
        'ail_mw': pd.to_numeric(df[ail_col], errors='coerce'),
    })
    # Rows missing any value cannot be billed or ranked
    frame = frame.dropna().sort_values(['date', 'he']).reset_index(drop=True)

    return [
        HourlyRecord(
            date=row.date,
            hour_ending=int(row.he),
            pool_price=float(row.pool_price),
            ail_mw=float(row.ail_mw),
        )
        for row in frame.itertuples(index=False)
    ]


def load_hourly_data(filepath: str) -> List[HourlyRecord]:
    """
    Load one year of hourly price/demand history from CSV.

    Args:
        filepath: Path to the CSV file

    Returns:
        List of HourlyRecord
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Hourly data file not found: {filepath}")
    return hourly_frame_to_records(pd.read_csv(path))


def validate_hourly_data(records: List[HourlyRecord]) -> dict:
    """
    Validate hourly data and return a report.

    Args:
        records: Hourly records

    Returns:
        Dictionary with validation results
    """
    issues = []

    bad_he = sum(1 for rec in records if not 1 <= rec.hour_ending <= 24)
    if bad_he:
        issues.append(f"Hour ending outside 1-24: {bad_he}")

    keys = [rec.key for rec in records]
    dupes = len(keys) - len(set(keys))
    if dupes:
        issues.append(f"Duplicate date-hour pairs: {dupes}")

    negative_ail = sum(1 for rec in records if rec.ail_mw < 0)
    if negative_ail:
        issues.append(f"Negative AIL values: {negative_ail}")

    dates = sorted(rec.date for rec in records)
    return {
        'valid': len(issues) == 0,
        'issues': issues,
        'row_count': len(records),
        'date_range': (dates[0], dates[-1]) if dates else (None, None),
    }


def get_price_statistics(records: List[HourlyRecord]) -> dict:
    """
    Summary statistics for pool price and demand.

    Args:
        records: Hourly records

    Returns:
        Dictionary of statistics
    """
    prices = pd.Series([rec.pool_price for rec in records], dtype=float)
    demand = pd.Series([rec.ail_mw for rec in records], dtype=float)

    if prices.empty:
        return {'count': 0}

    return {
        'count': len(prices),
        'mean': float(prices.mean()),
        'median': float(prices.median()),
        'std': float(prices.std()) if len(prices) > 1 else 0.0,
        'min': float(prices.min()),
        'max': float(prices.max()),
        'peak_ail_mw': float(demand.max()),
        'avg_ail_mw': float(demand.mean()),
    }


def peak_history_from_dict(data: Dict) -> Tuple[List[AllTimePeakHour], List[YearlyTop12Data]]:
    """Parse the peak archive structure into typed records."""
    all_time = [AllTimePeakHour.from_dict(p) for p in data.get('all_time_peaks', [])]
    yearly = [YearlyTop12Data.from_dict(y) for y in data.get('yearly_top12', [])]
    return all_time, yearly


def load_peak_history(filepath: str) -> Tuple[List[AllTimePeakHour], List[YearlyTop12Data]]:
    """
    Load the historical peak archive from JSON.

    Expected shape:
        {"all_time_peaks": [{"rank", "timestamp", "demand_mw", ...}],
         "yearly_top12": [{"year", "peaks": [{"timestamp", "demand_mw",
                                              "temperature_*", ...}]}]}
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Peak history file not found: {filepath}")
    with open(path, 'r') as f:
        return peak_history_from_dict(json.load(f))
