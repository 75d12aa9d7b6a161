# cabinet_project_root/analytics/__init__.py

"""
Initializes the analytics package, making the clinical metrics and the
pharmacy inventory logic available at the top level for easier importing.

This __init__.py defines the public API for the package.
"""

# From metrics.py
from .metrics import (
    AgeBand,
    BmiBand,
    StockStatus,
    age_band_series,
    as_number,
    bmi_band_series,
    bmi_series,
    classify_age,
    classify_bmi,
    classify_stock,
    compute_bmi,
    stock_status_series,
)

# From inventory.py
from .inventory import (
    RESTOCK_STATUSES,
    DispensationResult,
    apply_dispensation,
    classify_inventory,
    compute_inventory_kpis,
    filter_medications,
    group_by_family,
    plan_prescription,
    restock_alerts,
)

# --- Define the public API for the analytics package ---
__all__ = [
    # Clinical metrics
    "BmiBand",
    "AgeBand",
    "StockStatus",
    "as_number",
    "compute_bmi",
    "classify_bmi",
    "classify_age",
    "classify_stock",
    "bmi_series",
    "bmi_band_series",
    "age_band_series",
    "stock_status_series",

    # Pharmacy inventory
    "RESTOCK_STATUSES",
    "DispensationResult",
    "classify_inventory",
    "restock_alerts",
    "apply_dispensation",
    "plan_prescription",
    "filter_medications",
    "group_by_family",
    "compute_inventory_kpis",
]
