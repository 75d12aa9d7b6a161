# cabinet_project_root/data_processing/helpers.py
# FLUENT DATA PIPELINE & COERCION UTILITIES

"""
A collection of utility functions and a fluent DataPipeline class used to turn
record-store snapshots into analytics-ready DataFrames.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Type

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# --- Standalone Utility Functions ---

NA_REGEX_PATTERN = re.compile(
    r'(?i)^\s*(nan|none|n/a|#n/a|nat|<na>|null|nil|na|undefined|-|)\s*$'
)

def convert_to_numeric(data_input: Any, default_value: Any = np.nan, target_type: Optional[Type] = None) -> Any:
    """
    Converts various inputs to a numeric pandas Series or scalar,
    handling common "Not Available" string representations.
    """
    is_series = isinstance(data_input, pd.Series)
    series = data_input if is_series else pd.Series([data_input], dtype=object)

    if pd.api.types.is_object_dtype(series.dtype):
        series = series.replace(NA_REGEX_PATTERN, np.nan, regex=True)

    numeric_series = pd.to_numeric(series, errors='coerce')
    if not pd.isna(default_value):
        numeric_series = numeric_series.fillna(default_value)

    if target_type is int and pd.api.types.is_numeric_dtype(numeric_series.dtype):
        # Nullable integers only when gaps remain after filling.
        numeric_series = numeric_series.astype(pd.Int64Dtype() if numeric_series.isnull().any() else int)
    elif target_type is float:
        numeric_series = numeric_series.astype(float)

    return numeric_series if is_series else (numeric_series.iloc[0] if not numeric_series.empty else default_value)


def blank_mask(series: pd.Series) -> pd.Series:
    """True where a free-text value is missing or whitespace only."""
    return series.isna() | series.astype(str).str.strip().eq('')


class DataPipeline:
    """
    A fluent interface for applying a sequence of data processing operations.

    Usage:
        patients_df = (DataPipeline(raw_df)
                       .ensure_columns(['id', 'nom', 'age'])
                       .standardize_missing_values({'age': 0, 'notes': ''})
                       .convert_date_columns(['created_at'])
                       .to_df())
    """
    def __init__(self, df: pd.DataFrame):
        if not isinstance(df, pd.DataFrame):
            raise TypeError("DataPipeline must be initialized with a pandas DataFrame.")
        self.df = df.copy()

    def to_df(self) -> pd.DataFrame:
        """Returns the processed DataFrame."""
        return self.df

    def ensure_columns(self, columns: List[str]) -> 'DataPipeline':
        """Adds any missing column, filled with NaN, so empty snapshots keep their schema."""
        for col in columns:
            if col not in self.df.columns:
                self.df[col] = np.nan
        return self

    def standardize_missing_values(self, default_values: Dict[str, Any]) -> 'DataPipeline':
        """
        Standardizes various "Not Available" formats to np.nan and then fills
        with provided defaults, inferring type from the default value.
        A default of None leaves numeric gaps as NaN.
        """
        if not default_values:
            return self

        for col, default in default_values.items():
            if col not in self.df.columns:
                continue
            if default is None:
                self.df[col] = convert_to_numeric(self.df[col], target_type=float)
            elif isinstance(default, (int, float, np.number)) and not isinstance(default, bool):
                target_type = int if isinstance(default, int) else float
                self.df[col] = convert_to_numeric(self.df[col], default_value=default, target_type=target_type)
            else:
                self.df[col] = self.df[col].astype(object).fillna(str(default)).astype(str).str.strip()
        return self

    def cast_column_types(self, dtype_map: Dict[str, str]) -> 'DataPipeline':
        """Casts columns to the requested dtypes, logging rather than failing on bad data."""
        for col, dtype in (dtype_map or {}).items():
            if col not in self.df.columns:
                continue
            try:
                self.df[col] = self.df[col].astype(dtype)
            except (TypeError, ValueError) as e:
                logger.warning(f"Could not cast column '{col}' to {dtype}: {e}")
        return self

    def convert_date_columns(self, date_columns: List[str], errors: str = 'coerce') -> 'DataPipeline':
        """Converts specified columns to datetime objects, coercing errors to NaT."""
        if not date_columns:
            return self

        for col in date_columns:
            if col in self.df.columns:
                self.df[col] = pd.to_datetime(self.df[col], errors=errors, utc=True)
        return self

    def sort_by(self, column: str, ascending: bool = True) -> 'DataPipeline':
        if column in self.df.columns and not self.df.empty:
            self.df = self.df.sort_values(column, ascending=ascending, kind='stable').reset_index(drop=True)
        return self
