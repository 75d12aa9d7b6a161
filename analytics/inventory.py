# cabinet_project_root/analytics/inventory.py
# PHARMACY INVENTORY STATUS ENGINE

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from .metrics import StockStatus, as_number, stock_status_series

logger = logging.getLogger(__name__)

RESTOCK_STATUSES = (StockStatus.OUT_OF_STOCK.value, StockStatus.LOW.value)


@dataclass(frozen=True)
class DispensationResult:
    medication_id: Optional[str]
    requested_qty: Any
    accepted: bool
    new_stock: Optional[int] = None
    reason: Optional[str] = None


def _field(record: Any, name: str, default: Any = None) -> Any:
    """Reads a field from a pydantic record, a dict or a DataFrame row alike."""
    if isinstance(record, (dict, pd.Series)):
        return record.get(name, default)
    return getattr(record, name, default)


def classify_inventory(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Returns a copy of the medications frame with a `stock_status` column."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return pd.DataFrame(columns=list(getattr(df, 'columns', [])) + ['stock_status'])

    classified = df.copy()
    current = classified.get('stock_actuel', pd.Series([0] * len(classified), index=classified.index))
    minimum = classified.get('stock_minimum', pd.Series([None] * len(classified), index=classified.index))
    classified['stock_status'] = stock_status_series(current, minimum)
    return classified


def restock_alerts(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """Medications that are out of stock or low, out-of-stock items first."""
    classified = classify_inventory(df)
    if classified.empty:
        return classified

    alerts = classified[classified['stock_status'].isin(RESTOCK_STATUSES)].copy()
    severity = alerts['stock_status'].map({status: rank for rank, status in enumerate(RESTOCK_STATUSES)})
    # Positional so repeated index labels never duplicate rows.
    order = np.argsort(severity.to_numpy(), kind='stable')
    return alerts.iloc[order]


def apply_dispensation(medication: Any, requested_qty: Any = 1) -> DispensationResult:
    """
    Checks a dispensation against the medication's current stock.

    The quantity must be a whole number between 1 and the current stock
    inclusive. Anything else is rejected and must not be sent to the store;
    otherwise the result carries the stock level to persist.
    """
    medication_id = _field(medication, 'id')
    stock = as_number(_field(medication, 'stock_actuel'))
    current = int(stock) if stock is not None and stock > 0 else 0
    qty = as_number(requested_qty)

    if qty is None or qty != int(qty):
        return DispensationResult(medication_id, requested_qty, False, reason="Quantity must be a whole number")
    qty = int(qty)
    if qty < 1:
        return DispensationResult(medication_id, qty, False, reason="Quantity must be at least 1")
    if qty > current:
        logger.info(f"Dispensation of {qty} rejected for medication {medication_id}: only {current} in stock.")
        return DispensationResult(medication_id, qty, False, reason=f"Insufficient stock ({current} available)")
    return DispensationResult(medication_id, qty, True, new_stock=current - qty)


def plan_prescription(lines: Iterable[Tuple[Any, Any]]) -> List[DispensationResult]:
    """
    Runs `apply_dispensation` over each (medication, quantity) line of a prescription.

    Lines for the same medication draw on the stock left by the previous
    accepted line, so a prescription can never over-dispense in aggregate.
    """
    remaining: Dict[Any, int] = {}
    results = []
    for medication, qty in lines:
        medication_id = _field(medication, 'id')
        if medication_id in remaining:
            medication = {'id': medication_id, 'stock_actuel': remaining[medication_id]}
        result = apply_dispensation(medication, qty)
        if result.accepted:
            remaining[medication_id] = result.new_stock
        results.append(result)
    return results


def filter_medications(df: Optional[pd.DataFrame], search: str = "", famille_id: Optional[str] = None) -> pd.DataFrame:
    """Case-insensitive search on medication or family name, optionally limited to one family."""
    if not isinstance(df, pd.DataFrame):
        return pd.DataFrame()
    filtered = df.copy()
    if filtered.empty:
        return filtered

    if famille_id and 'famille_id' in filtered.columns:
        filtered = filtered[filtered['famille_id'] == famille_id]

    term = (search or "").strip()
    if term:
        mask = pd.Series(False, index=filtered.index)
        for col in ('nom', 'famille_nom'):
            if col in filtered.columns:
                mask |= filtered[col].astype(str).str.contains(term, case=False, regex=False, na=False)
        filtered = filtered[mask]
    return filtered


def group_by_family(medications_df: Optional[pd.DataFrame], families_df: Optional[pd.DataFrame]) -> Dict[str, pd.DataFrame]:
    """Family name -> its medications, in family order, skipping families with no match."""
    if not isinstance(medications_df, pd.DataFrame) or medications_df.empty:
        return {}
    if not isinstance(families_df, pd.DataFrame) or families_df.empty or 'famille_id' not in medications_df.columns:
        return {}

    grouped: Dict[str, pd.DataFrame] = {}
    for family in families_df.itertuples(index=False):
        members = medications_df[medications_df['famille_id'] == family.id]
        if not members.empty:
            grouped[family.nom] = members.copy()
    return grouped


def compute_inventory_kpis(df: Optional[pd.DataFrame]) -> Dict[str, Any]:
    classified = classify_inventory(df)
    if classified.empty:
        return {'total_items': 0, 'out_of_stock_count': 0, 'low_stock_count': 0, 'total_stock_value': 0.0}

    statuses = classified['stock_status']
    stock = pd.to_numeric(classified.get('stock_actuel', pd.Series(0, index=classified.index)), errors='coerce').fillna(0)
    price = pd.to_numeric(classified.get('prix_unitaire', pd.Series(0.0, index=classified.index)), errors='coerce').fillna(0)
    return {
        'total_items': len(classified),
        'out_of_stock_count': int((statuses == StockStatus.OUT_OF_STOCK.value).sum()),
        'low_stock_count': int((statuses == StockStatus.LOW.value).sum()),
        'total_stock_value': round(float((stock * price).sum()), 2),
    }
