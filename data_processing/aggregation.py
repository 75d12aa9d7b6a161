# cabinet_project_root/data_processing/aggregation.py
# DASHBOARD AGGREGATIONS OVER PATIENT SNAPSHOTS

"""
Houses the pure aggregation logic behind the dashboard.

Every function takes the full patients DataFrame (one row per patient, as
produced by `load_patients_frame`) and recomputes its summary from scratch.
Nothing here touches the record store or Streamlit.
"""

import logging
from typing import Any, Dict, Optional

import pandas as pd

from analytics.metrics import age_band_series, bmi_band_series
from config import settings
from .helpers import blank_mask, convert_to_numeric

logger = logging.getLogger(__name__)

SPECIALTY_COLUMNS = ['name', 'count', 'percentage']
BAND_COLUMNS = ['band', 'count']
MEDICATION_COLUMNS = ['name', 'count']


def _column(df: pd.DataFrame, name: str) -> pd.Series:
    """Returns the column, or an all-missing column of the right length if absent."""
    return df[name] if name in df.columns else pd.Series([None] * len(df), index=df.index, dtype=object)


def _numeric(df: pd.DataFrame, name: str) -> pd.Series:
    return convert_to_numeric(_column(df, name))


def _count_in_first_seen_order(labels: pd.Series, label_col: str) -> pd.DataFrame:
    counts = labels.groupby(labels, sort=False).size()
    return counts.rename_axis(label_col).reset_index(name='count')


def summarize_by_specialty(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Patient counts and rounded percentages per primary specialty.

    Blank or missing specialties are grouped under the configured
    "Unspecified" label. Rows keep the order in which each specialty first appears.
    """
    if not isinstance(df, pd.DataFrame) or df.empty:
        return pd.DataFrame(columns=SPECIALTY_COLUMNS)

    raw = _column(df, 'specialite')
    labels = raw.astype(object).where(~blank_mask(raw), settings.DASHBOARD.unspecified_label)
    labels = labels.astype(str).str.strip()

    summary = _count_in_first_seen_order(labels, 'name')
    total = len(df)
    summary['percentage'] = [round(count / total * 100) for count in summary['count']]
    return summary[SPECIALTY_COLUMNS]


def summarize_by_age_band(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return pd.DataFrame(columns=BAND_COLUMNS)
    bands = age_band_series(_numeric(df, 'age')).dropna()
    return _count_in_first_seen_order(bands, 'band')


def summarize_by_bmi_band(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """BMI band counts over patients with a present, positive BMI only."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return pd.DataFrame(columns=BAND_COLUMNS)
    bmi = _numeric(df, 'imc')
    bands = bmi_band_series(bmi[bmi > 0]).dropna()
    return _count_in_first_seen_order(bands, 'band')


def top_medications(df: Optional[pd.DataFrame], n: Optional[int] = None) -> pd.DataFrame:
    """
    Most frequently listed medication names across all patients.

    The free-text `medicaments` field is split on commas; tokens are trimmed
    and lower-cased, and tokens too short to be a name are dropped. Ties keep
    the order in which the names were first seen. Display names get only
    their first character capitalised.
    """
    limit = settings.DASHBOARD.top_n_medications if n is None else n
    if not isinstance(df, pd.DataFrame) or df.empty or limit <= 0:
        return pd.DataFrame(columns=MEDICATION_COLUMNS)

    texts = _column(df, 'medicaments').dropna().astype(str)
    tokens = texts.str.split(',').explode().dropna().str.strip().str.lower()
    tokens = tokens[tokens.str.len() >= settings.DASHBOARD.min_medication_token_length]
    if tokens.empty:
        return pd.DataFrame(columns=MEDICATION_COLUMNS)

    counts = tokens.groupby(tokens, sort=False).size()
    counts = counts.sort_values(ascending=False, kind='stable').head(limit)
    return pd.DataFrame({
        'name': [name[:1].upper() + name[1:] for name in counts.index],
        'count': counts.to_numpy(dtype=int),
    })


def compute_alerts(df: Optional[pd.DataFrame]) -> Dict[str, int]:
    if not isinstance(df, pd.DataFrame) or df.empty:
        return {'obesity_count': 0, 'elderly_count': 0, 'unassigned_specialty_count': 0}

    t = settings.THRESHOLDS
    return {
        'obesity_count': int((_numeric(df, 'imc') > t.obesity_alert_bmi).sum()),
        'elderly_count': int((_numeric(df, 'age') > t.elderly_alert_age).sum()),
        'unassigned_specialty_count': int(blank_mask(_column(df, 'specialite')).sum()),
    }


def compute_averages(df: Optional[pd.DataFrame]) -> Dict[str, Any]:
    """
    Mean age (rounded to a whole year) and mean BMI over positive values.

    `average_bmi` is a display string: one decimal, or the literal "0" when no
    patient has a BMI.
    """
    if not isinstance(df, pd.DataFrame) or df.empty:
        return {'average_age': 0, 'average_bmi': "0"}

    ages = _numeric(df, 'age').dropna()
    average_age = int(round(ages.mean())) if not ages.empty else 0

    bmi = _numeric(df, 'imc')
    positive_bmi = bmi[bmi > 0]
    average_bmi = f"{positive_bmi.mean():.1f}" if not positive_bmi.empty else "0"
    return {'average_age': average_age, 'average_bmi': average_bmi}


def compute_dashboard_summary(df: Optional[pd.DataFrame], specialties_df: Optional[pd.DataFrame] = None) -> Dict[str, Any]:
    """Bundles every dashboard aggregate for a patients snapshot and the defined specialties."""
    total = len(df) if isinstance(df, pd.DataFrame) else 0
    summary: Dict[str, Any] = {'total_patients': total}
    summary['specialty_count'] = len(specialties_df) if isinstance(specialties_df, pd.DataFrame) else 0
    summary.update(compute_averages(df))
    summary['alerts'] = compute_alerts(df)
    summary['by_specialty'] = summarize_by_specialty(df)
    summary['by_age_band'] = summarize_by_age_band(df)
    summary['by_bmi_band'] = summarize_by_bmi_band(df)
    summary['top_medications'] = top_medications(df)
    logger.debug(f"Dashboard summary computed for {total} patients.")
    return summary


def filter_patients(df: Optional[pd.DataFrame], search: str = "") -> pd.DataFrame:
    """Case-insensitive substring search over last name, first name and primary specialty."""
    if not isinstance(df, pd.DataFrame):
        return pd.DataFrame()
    term = (search or "").strip()
    if not term or df.empty:
        return df.copy()

    mask = pd.Series(False, index=df.index)
    for col in ('nom', 'prenom', 'specialite'):
        if col in df.columns:
            mask |= df[col].astype(str).str.contains(term, case=False, regex=False, na=False)
    return df[mask].copy()
