#!/usr/bin/env python3
"""
load_catalog.py

Builds the read-only CIE-10 diagnosis catalog from a CSV export with
'Codigo' and 'Nombre' columns. Done once at start-up; the catalog is then
passed to the reconciliation explicitly.
"""
import logging
from pathlib import Path

import pandas as pd

from process.utils.columns import find_column_value
from process.utils.diagnosis_catalog import DiagnosisCatalog

logger = logging.getLogger(__name__)

CODE_COLUMNS = ["codigo", "code"]
NAME_COLUMNS = ["nombre", "descripcion", "name"]


def load_diagnosis_catalog(path) -> DiagnosisCatalog:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CIE-10 file not found: {path}")

    df = pd.read_csv(path, sep=None, engine="python", dtype=str,
                     encoding="utf-8-sig", keep_default_na=False)

    entries = {}
    for record in df.to_dict(orient="records"):
        code = find_column_value(record, CODE_COLUMNS)
        name = find_column_value(record, NAME_COLUMNS)
        if code and name:
            entries[code] = name

    catalog = DiagnosisCatalog(entries)
    if not len(catalog):
        logger.warning(f"{path.name}: no CIE-10 codes found")
    else:
        logger.info(f"CIE-10 data loaded successfully. {len(catalog)} records found.")
    return catalog
