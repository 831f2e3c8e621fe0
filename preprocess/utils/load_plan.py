#!/usr/bin/env python3
"""
load_plan.py

Reads the technical note (PGP plan) from a CSV or Excel export and turns each
row into a typed PlanRow. Column names are resolved once here through the
synonym table in settings; numbers are normalized from es-CO formatting.
Rows without a service code are dropped. Duplicate codes are reported but kept
(the plan index keeps the last one).
"""
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from process.config.settings import PLAN_FIELD_SYNONYMS, PLAN_NUMERIC_FIELDS
from process.utils.columns import resolve_fields, missing_fields
from process.utils.models import ParseIssue, PlanRow
from process.utils.normalize import to_number, clean_code
from process.utils.plan_index import find_duplicate_codes

logger = logging.getLogger(__name__)


def clean_header(header: Any) -> str:
    return str(header).replace("\ufeff", "").strip()


def read_plan_table(path) -> List[Dict[str, Any]]:
    """
    Loads the raw plan rows. CSV cells are kept as text so the es-CO
    normalizer sees them untouched; Excel cells keep their native types.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Plan file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".xls":
        raise ValueError(f"{path.name}: legacy .xls is not supported, save the plan as .xlsx or .csv")
    if suffix in (".xlsx", ".xlsm"):
        df = pd.read_excel(path, dtype=object)
        df = df.astype(object).where(pd.notna(df), None)
    else:
        df = pd.read_csv(path, sep=None, engine="python", dtype=str,
                         encoding="utf-8-sig", keep_default_na=False)

    df.columns = [clean_header(c) for c in df.columns]
    df = df[[c for c in df.columns if c and not c.startswith("Unnamed:")]]
    return df.to_dict(orient="records")


def plan_rows_from_records(records: Sequence,
                           issues: Optional[List[ParseIssue]] = None,
                           source: str = "plan") -> List[PlanRow]:
    """
    Resolves raw plan records into PlanRow objects.

    Args:
        records (sequence): mappings of header -> cell value
        issues (list): optional list collecting unparsable numeric cells
        source (str): label used in logs and parse issues

    Returns:
        List[PlanRow]: one per record with a service code

    Raises:
        TypeError: if records is not a sequence of mappings
        ValueError: if no column holds the service code
    """
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(records, Sequence):
        raise TypeError(f"Plan data must be a sequence of rows, got {type(records).__name__}")
    if any(not isinstance(r, Mapping) for r in records):
        raise TypeError("Every plan row must be a mapping of column -> value")

    if not records:
        logger.warning(f"{source}: no rows found")
        return []

    headers = []
    for record in records:
        headers.extend(k for k in record.keys() if k not in headers)

    absent = missing_fields(headers, PLAN_FIELD_SYNONYMS)
    if "code" in absent:
        raise ValueError(f"{source}: no service code column (expected one of "
                         f"{PLAN_FIELD_SYNONYMS['code']})")
    for field, suggestion in absent.items():
        hint = f" (closest header: '{suggestion}')" if suggestion else ""
        logger.warning(f"{source}: no column for '{field}', values default to 0{hint}")

    rows = []
    for position, record in enumerate(records, start=1):
        fields = resolve_fields(record, PLAN_FIELD_SYNONYMS)
        code = clean_code(fields["code"])
        if not code:
            continue

        where = f"{source} row {position}"
        numbers = {
            name: to_number(fields[name], issues, name, where)
            for name in PLAN_NUMERIC_FIELDS
        }
        rows.append(PlanRow(
            code=code,
            description=clean_code(fields["description"]) or None,
            activity_description=clean_code(fields["activity_description"]) or None,
            **numbers,
        ))

    duplicates = find_duplicate_codes(rows)
    if duplicates:
        logger.warning(f"{source}: {len(duplicates)} duplicated service code(s), "
                       f"the last row wins: {', '.join(duplicates[:10])}")

    logger.info(f"{source}: loaded {len(rows)} plan rows")
    return rows


def load_plan(path, issues: Optional[List[ParseIssue]] = None) -> List[PlanRow]:
    return plan_rows_from_records(read_plan_table(path), issues, source=Path(path).name)
