# cabinet_project_root/data_processing/__init__.py
# ROBUST & EXPLICIT PACKAGE API

"""
Initializes the data_processing package, defining its public API.

This file explicitly exports all public-facing functions from its submodules,
providing a single, consistent import point for the pages and the tests.
"""

# --- Core Data Pipeline & Utilities from helpers.py ---
from .helpers import (
    DataPipeline,
    blank_mask,
    convert_to_numeric,
)

# --- Snapshot Loading from loaders.py ---
from .loaders import (
    families_to_frame,
    load_families_frame,
    load_medications_frame,
    load_patients_frame,
    load_specialties_frame,
    medications_to_frame,
    patients_to_frame,
    specialties_to_frame,
)

# --- Dashboard Aggregation from aggregation.py ---
from .aggregation import (
    compute_alerts,
    compute_averages,
    compute_dashboard_summary,
    filter_patients,
    summarize_by_age_band,
    summarize_by_bmi_band,
    summarize_by_specialty,
    top_medications,
)

# --- Cached Snapshot Access from cached.py ---
from .cached import (
    bind_cache_invalidation,
    get_cached_families_frame,
    get_cached_medications_frame,
    get_cached_patients_frame,
    get_cached_specialties_frame,
    get_record_store,
)


# --- Define the canonical public API for the package ---
__all__ = [
    # helpers.py
    "DataPipeline",
    "blank_mask",
    "convert_to_numeric",

    # loaders.py
    "patients_to_frame",
    "medications_to_frame",
    "specialties_to_frame",
    "families_to_frame",
    "load_patients_frame",
    "load_medications_frame",
    "load_specialties_frame",
    "load_families_frame",

    # aggregation.py
    "summarize_by_specialty",
    "summarize_by_age_band",
    "summarize_by_bmi_band",
    "top_medications",
    "compute_alerts",
    "compute_averages",
    "compute_dashboard_summary",
    "filter_patients",

    # cached.py (for UI)
    "get_record_store",
    "bind_cache_invalidation",
    "get_cached_patients_frame",
    "get_cached_medications_frame",
    "get_cached_specialties_frame",
    "get_cached_families_frame",
]
