# cabinet_project_root/tests/test_metrics.py
# CLINICAL & STOCK METRIC TESTS

import numpy as np
import pandas as pd
import pytest

from analytics import (AgeBand, BmiBand, StockStatus, age_band_series, bmi_series,
                       classify_age, classify_bmi, classify_stock, compute_bmi,
                       stock_status_series)

# --- BMI ---
@pytest.mark.parametrize("weight, height", [(70, 175), (82.5, 168), (3.2, 50), (120, 190)])
def test_compute_bmi_matches_formula(weight, height):
    assert compute_bmi(weight, height) == round(weight / (height / 100) ** 2, 2)

@pytest.mark.parametrize("weight, height", [
    (0, 175), (70, 0), (None, 175), (70, None), (np.nan, 175), (-5, 175), ("", 175), ("abc", 175),
])
def test_compute_bmi_is_absent_without_positive_measurements(weight, height):
    assert compute_bmi(weight, height) is None

def test_compute_bmi_accepts_numeric_strings():
    assert compute_bmi("70", "175") == 22.86

@pytest.mark.parametrize("bmi, expected", [
    (12.0, BmiBand.UNDERWEIGHT),
    (18.49, BmiBand.UNDERWEIGHT),
    (18.5, BmiBand.NORMAL),
    (24.999, BmiBand.NORMAL),
    (25.0, BmiBand.OVERWEIGHT),
    (29.99, BmiBand.OVERWEIGHT),
    (30.0, BmiBand.OBESE),
    (45.2, BmiBand.OBESE),
])
def test_classify_bmi_boundaries(bmi, expected):
    assert classify_bmi(bmi) is expected

@pytest.mark.parametrize("bmi", [0, 0.0, -1, None, np.nan])
def test_classify_bmi_skips_absent_values(bmi):
    assert classify_bmi(bmi) is None

# --- Age ---
@pytest.mark.parametrize("age, expected", [
    (0, "0-17"), (17, "0-17"), (18, "18-29"), (29, "18-29"), (30, "30-49"),
    (49, "30-49"), (50, "50-64"), (64, "50-64"), (65, "65+"), (101, "65+"),
])
def test_classify_age_boundaries(age, expected):
    assert classify_age(age).value == expected

def test_classify_age_missing():
    assert classify_age(None) is None
    assert classify_age(np.nan) is None

# --- Stock ---
def test_classify_stock_reference_cases():
    assert classify_stock(0, 10) is StockStatus.OUT_OF_STOCK
    assert classify_stock(5, 10) is StockStatus.LOW
    assert classify_stock(10, 10) is StockStatus.LOW
    assert classify_stock(11, 10) is StockStatus.AVAILABLE

def test_classify_stock_zero_minimum():
    assert classify_stock(0, 0) is StockStatus.OUT_OF_STOCK
    assert classify_stock(1, 0) is StockStatus.AVAILABLE

def test_classify_stock_defaults_missing_minimum():
    """Without a minimum the configured default threshold (10) applies."""
    assert classify_stock(10, None) is StockStatus.LOW
    assert classify_stock(11, np.nan) is StockStatus.AVAILABLE

# --- Vectorised companions ---
def test_series_helpers_match_scalar_functions():
    weight = pd.Series([70, 0, 95.0], index=['a', 'b', 'c'])
    height = pd.Series([175, 160, np.nan], index=['a', 'b', 'c'])
    bmi = bmi_series(weight, height)
    assert bmi['a'] == compute_bmi(70, 175)
    assert bmi[['b', 'c']].isna().all()

    ages = age_band_series(pd.Series([17, 65, np.nan]))
    assert ages.tolist()[:2] == [AgeBand.MINOR.value, AgeBand.SENIOR.value]
    assert ages.iloc[2] is None

    statuses = stock_status_series(pd.Series([0, 5, 50]), pd.Series([10, 10, 10]))
    assert statuses.tolist() == ["Out of stock", "Low stock", "Available"]
