# cabinet_project_root/analytics/metrics.py
# DERIVED CLINICAL & STOCK METRICS

"""
Pure per-entity metrics: body-mass index, BMI and age bands, and stock status.

Scalar functions are the reference semantics; the *_series companions apply
them element-wise to DataFrame columns for the aggregation engines.
"""

import logging
import math
from enum import Enum
from typing import Any, Optional

import pandas as pd

from config import settings

logger = logging.getLogger(__name__)


class BmiBand(str, Enum):
    UNDERWEIGHT = "Underweight"
    NORMAL = "Normal"
    OVERWEIGHT = "Overweight"
    OBESE = "Obese"


class AgeBand(str, Enum):
    MINOR = "0-17"
    YOUNG_ADULT = "18-29"
    ADULT = "30-49"
    MIDDLE_AGED = "50-64"
    SENIOR = "65+"


class StockStatus(str, Enum):
    OUT_OF_STOCK = "Out of stock"
    LOW = "Low stock"
    AVAILABLE = "Available"


def as_number(value: Any) -> Optional[float]:
    """Returns a finite float, or None for missing, blank or non-numeric input."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def compute_bmi(weight_kg: Any, height_cm: Any) -> Optional[float]:
    """
    Weight / (height in metres)^2, rounded to 2 decimals.

    Returns None (absent) unless both measurements are present and strictly positive.
    """
    weight = as_number(weight_kg)
    height = as_number(height_cm)
    if weight is None or height is None or weight <= 0 or height <= 0:
        return None
    return round(weight / (height / 100) ** 2, 2)


def classify_bmi(bmi: Any) -> Optional[BmiBand]:
    """Maps a present, positive BMI onto its band; None for anything else."""
    value = as_number(bmi)
    if value is None or value <= 0:
        return None
    t = settings.THRESHOLDS
    if value < t.bmi_underweight_upper:
        return BmiBand.UNDERWEIGHT
    if value < t.bmi_normal_upper:
        return BmiBand.NORMAL
    if value < t.bmi_overweight_upper:
        return BmiBand.OVERWEIGHT
    return BmiBand.OBESE


def classify_age(age: Any) -> Optional[AgeBand]:
    value = as_number(age)
    if value is None:
        return None
    t = settings.THRESHOLDS
    if value < t.age_minor_upper:
        return AgeBand.MINOR
    if value < t.age_young_adult_upper:
        return AgeBand.YOUNG_ADULT
    if value < t.age_adult_upper:
        return AgeBand.ADULT
    if value < t.age_senior_upper:
        return AgeBand.MIDDLE_AGED
    return AgeBand.SENIOR


def classify_stock(current: Any, minimum: Any) -> StockStatus:
    """
    Out of stock at zero, low up to and including the minimum, available above it.
    A missing minimum falls back to the configured default threshold.
    """
    stock = as_number(current) or 0.0
    threshold = as_number(minimum)
    if threshold is None:
        threshold = float(settings.THRESHOLDS.default_stock_minimum)
    if stock <= 0:
        return StockStatus.OUT_OF_STOCK
    if stock <= threshold:
        return StockStatus.LOW
    return StockStatus.AVAILABLE


# --- Vectorised Companions ---

def _band_value(band: Optional[Enum]) -> Optional[str]:
    return band.value if band is not None else None


def bmi_series(weight_kg: pd.Series, height_cm: pd.Series) -> pd.Series:
    values = [compute_bmi(w, h) for w, h in zip(weight_kg, height_cm)]
    return pd.Series(values, index=weight_kg.index, dtype=float)


def bmi_band_series(bmi: pd.Series) -> pd.Series:
    return pd.Series([_band_value(classify_bmi(v)) for v in bmi], index=bmi.index, dtype=object)


def age_band_series(age: pd.Series) -> pd.Series:
    return pd.Series([_band_value(classify_age(v)) for v in age], index=age.index, dtype=object)


def stock_status_series(current: pd.Series, minimum: pd.Series) -> pd.Series:
    statuses = [classify_stock(c, m).value for c, m in zip(current, minimum)]
    return pd.Series(statuses, index=current.index, dtype=object)
