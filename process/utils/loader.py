# process/utils/loader.py

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

from process.config.settings import PATIENTS_KEY

logger = logging.getLogger(__name__)

MonthDocuments = Dict[str, List[Tuple[str, Any]]]


def validate_execution_document(data: Any) -> Tuple[bool, str]:
    """
    Checks the top-level shape of an execution (RIPS) document.
    Nested anomalies are not checked here; the aggregator treats them as empty.
    """
    if not isinstance(data, dict):
        return False, f"Execution document must be a JSON object, got {type(data).__name__}"
    if PATIENTS_KEY not in data:
        return False, f"Missing required section: {PATIENTS_KEY}"
    if not isinstance(data[PATIENTS_KEY], list):
        return False, f"'{PATIENTS_KEY}' must be a list"
    return True, "Valid"


def load_execution_file(path) -> Dict[str, Any]:
    """
    Loads one execution JSON file.

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the content is not valid JSON or has the wrong shape
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Execution file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path.name}: {e}") from e

    is_valid, message = validate_execution_document(data)
    if not is_valid:
        raise ValueError(f"{path.name}: {message}")

    logger.info(f"Loaded {path.name}: {len(data[PATIENTS_KEY])} patients")
    return data


def group_files_by_month(month_files: Iterable[Tuple[str, Any]]) -> MonthDocuments:
    """
    Loads (month, path) pairs and groups the documents by month, keeping
    file order within a month.

    Returns:
        dict: month -> [(file name, document), ...]
    """
    grouped: MonthDocuments = {}
    for month, path in month_files:
        month_key = str(month).strip()
        grouped.setdefault(month_key, []).append((Path(path).name, load_execution_file(path)))
    return grouped
