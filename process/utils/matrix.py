# process/utils/matrix.py

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

import pandas as pd

from process.config.settings import MATRIX_HEADERS, DISCOUNT_HEADERS
from process.utils.models import DiscountRow, MatrixRow, MonthReconciliation, ReconciledEntry


def format_percentage(entry: ReconciledEntry) -> str:
    if entry.expected <= 0:
        return "N/A"
    # Halves round up (12.5 -> 13)
    rounded = Decimal(str(entry.percentage)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return f"{rounded}%"


def to_matrix_row(entry: ReconciledEntry, label: str) -> MatrixRow:
    return MatrixRow(
        month=label,
        code=entry.code,
        description=entry.description,
        expected=entry.expected,
        executed=entry.executed,
        difference=entry.deviation,
        percentage=entry.percentage,
        percentage_label=format_percentage(entry),
        classification=entry.classification,
        unit_value=entry.unit_value,
        expected_value=entry.expected_value,
        executed_value=entry.total_value,
    )


def build_matrix(reconciliations: Iterable[MonthReconciliation]) -> List[MatrixRow]:
    """
    Flattens all months into one table, most executed first.
    Unexpected codes have an infinite percentage and come out on top.
    """
    rows = [
        to_matrix_row(entry, month.label)
        for month in reconciliations
        for entry in month.entries
    ]
    return sorted(rows, key=lambda r: r.percentage, reverse=True)


def matrix_to_frame(rows: Iterable[MatrixRow]) -> pd.DataFrame:
    return pd.DataFrame([r.as_export_row() for r in rows], columns=MATRIX_HEADERS)


def discount_to_frame(rows: Iterable[DiscountRow]) -> pd.DataFrame:
    return pd.DataFrame([r.as_export_row() for r in rows], columns=DISCOUNT_HEADERS)
