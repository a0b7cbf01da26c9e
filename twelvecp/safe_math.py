"""Guards that keep every monetary/percentage output finite."""

import math


def finite_or_zero(value: float) -> float:
    """Return value as a float, or 0.0 if it is NaN or infinite."""
    value = float(value)
    return value if math.isfinite(value) else 0.0


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 for a zero denominator or a non-finite result."""
    if denominator == 0:
        return 0.0
    return finite_or_zero(numerator / denominator)
