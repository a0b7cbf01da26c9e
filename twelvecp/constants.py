"""
Constants for the 12CP power model.

Centralizes magic numbers and configuration values.
"""

# Market timezone (Alberta: MST/MDT)
MARKET_TIMEZONE = 'America/Edmonton'
MARKET_TIMEZONE_LABEL = 'MST'

KW_PER_MW = 1000

# Default facility configuration
DEFAULT_CAPACITY_MW = 45.0
DEFAULT_SUBSTATION_FRACTION = 1.0
DEFAULT_TARGET_UPTIME = 95.0
DEFAULT_CAD_USD_RATE = 0.7246
DEFAULT_HOSTING_RATE_USD_KWH = 0.07

# Peak analysis
DEFAULT_YOY_GROWTH_PERCENT = 3.0  # Used when fewer than two years of peaks exist
MIN_PROJECTED_GROWTH_PERCENT = 1.0

# Risk tiers (confidence thresholds)
CRITICAL_CONFIDENCE = 85
HIGH_CONFIDENCE = 70
MODERATE_CONFIDENCE = 55

MONTH_NAMES = [
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December'
]
MONTH_ABBREVIATIONS = [name[:3] for name in MONTH_NAMES]
DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

# Alberta winter peaks cluster in the early evening
DEFAULT_PEAK_HOUR = 17
