# process/utils/columns.py

import re
import unicodedata
from typing import Any, Dict, Iterable, List, Mapping, Optional
from fuzzywuzzy import fuzz


# Below this ratio a header is not worth suggesting
SUGGESTION_THRESHOLD = 80


def normalize_key(key: Any) -> str:
    """
    Lower-cases, trims and strips accents and BOMs from a column name.
    'FRECUENCIA AÑO SERVICIO ' -> 'frecuencia ano servicio'
    """
    if key is None:
        return ""
    text = str(key).replace("\ufeff", "")
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", text).strip().lower()


def find_column_value(row: Mapping[str, Any], candidates: Iterable[str]) -> Optional[Any]:
    """
    Returns the value of the first candidate name present in the row.
    Candidate order wins over the row's own key order.
    """
    keys = {}
    for key in row.keys():
        keys.setdefault(normalize_key(key), key)

    for name in candidates:
        key = keys.get(normalize_key(name))
        if key is not None:
            return row[key]
    return None


def resolve_fields(row: Mapping[str, Any], synonyms: Dict[str, List[str]]) -> Dict[str, Any]:
    """Resolves every logical field of a row once, using its ordered synonyms."""
    return {field: find_column_value(row, names) for field, names in synonyms.items()}


def suggest_column(name: str, headers: Iterable[str]) -> Optional[str]:
    best, best_score = None, 0
    target = normalize_key(name)
    for header in headers:
        score = fuzz.ratio(target, normalize_key(header))
        if score > best_score:
            best, best_score = header, score
    return best if best_score >= SUGGESTION_THRESHOLD else None


def missing_fields(headers: Iterable[str], synonyms: Dict[str, List[str]]) -> Dict[str, Optional[str]]:
    """
    Lists logical fields that no header resolves to.

    Returns:
        dict: field -> closest existing header (or None when nothing is close)
    """
    headers = list(headers)
    present = {normalize_key(h) for h in headers}
    missing = {}
    for field, names in synonyms.items():
        if any(normalize_key(n) in present for n in names):
            continue
        missing[field] = suggest_column(names[0], headers)
    return missing
