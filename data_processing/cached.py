# cabinet_project_root/data_processing/cached.py
# STREAMLIT CACHING LAYER FOR RECORD-STORE SNAPSHOTS

import logging
from typing import Callable, List

import pandas as pd
import streamlit as st

from config import settings
from records import ChangeFeed, ChangeTopic, RecordStore
from .loaders import (load_families_frame, load_medications_frame,
                      load_patients_frame, load_specialties_frame)

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = settings.DASHBOARD.snapshot_cache_ttl_seconds

# The leading underscore keeps Streamlit from hashing the store; the URL is the cache key.

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner=False)
def get_cached_patients_frame(_store: RecordStore, store_key: str) -> pd.DataFrame:
    """Cached wrapper for load_patients_frame."""
    return load_patients_frame(_store)

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner=False)
def get_cached_medications_frame(_store: RecordStore, store_key: str) -> pd.DataFrame:
    """Cached wrapper for load_medications_frame."""
    return load_medications_frame(_store)

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner=False)
def get_cached_specialties_frame(_store: RecordStore, store_key: str) -> pd.DataFrame:
    return load_specialties_frame(_store)

@st.cache_data(ttl=CACHE_TTL_SECONDS, show_spinner=False)
def get_cached_families_frame(_store: RecordStore, store_key: str) -> pd.DataFrame:
    return load_families_frame(_store)


def bind_cache_invalidation(feed: ChangeFeed) -> List[Callable[[], None]]:
    """
    Subscribes snapshot-cache invalidation to the change feed.

    Any committed change on a topic drops the cached frames that depend on it,
    so the next render re-fetches a fresh snapshot. Returns the unsubscribe handles.
    """
    dependents = {
        ChangeTopic.PATIENTS: [get_cached_patients_frame],
        # Specialty deletion cascades into patient assignments.
        ChangeTopic.SPECIALTIES: [get_cached_specialties_frame, get_cached_patients_frame],
        ChangeTopic.MEDICATIONS: [get_cached_medications_frame],
        ChangeTopic.FAMILIES: [get_cached_families_frame, get_cached_medications_frame],
    }

    handles = []
    for topic, cached_funcs in dependents.items():
        def _invalidate(event, funcs=tuple(cached_funcs)):
            for func in funcs:
                func.clear()
            logger.debug(f"Cleared {len(funcs)} cached snapshot(s) after {event.change_type.value} on '{event.topic.value}'.")
        handles.append(feed.subscribe(topic, _invalidate))
    return handles


@st.cache_resource
def get_record_store() -> RecordStore:
    """Process-wide store shared by every page and session."""
    store = RecordStore()
    store.init_db()
    bind_cache_invalidation(store.feed)
    logger.info("Record store initialized and cache invalidation bound.")
    return store
