# process/utils/normalize.py

import math
import numbers
import re
from typing import Any, List, Optional
from process.utils.models import ParseIssue

NON_NUMERIC_PATTERN = re.compile(r"[^\d,.]")
LEADING_FLOAT_PATTERN = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def to_number(value: Any,
              issues: Optional[List[ParseIssue]] = None,
              field: str = "value",
              source: Optional[str] = None) -> float:
    """
    Parses a locale-formatted number (es-CO: 1.234.567,89) into a float.

    Periods are thousands separators and the comma is the decimal separator.
    Never raises: None, empty and unparsable input become 0. When an ``issues``
    list is given, non-empty input that could not be parsed is recorded there.

    Already-numeric values are returned as floats untouched. Do not feed back a
    number that was formatted with a decimal comma, the periods would be dropped.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = str(value).strip()
    if not text:
        return 0.0

    cleaned = NON_NUMERIC_PATTERN.sub("", text).replace(".", "").replace(",", ".", 1)
    match = LEADING_FLOAT_PATTERN.match(cleaned)
    if not match:
        if issues is not None:
            issues.append(ParseIssue(field=field, raw_value=text, source=source))
        return 0.0

    return float(match.group(0))


def to_quantity(value: Any,
                issues: Optional[List[ParseIssue]] = None,
                field: str = "quantity",
                source: Optional[str] = None) -> float:
    """Quantity fields count as 1 when absent or empty."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1.0
    return to_number(value, issues, field, source)


def normalize_digits(value: Any) -> str:
    """Keeps only digits and drops leading zeros ('  00123 ' -> '123')."""
    digits = "".join(filter(str.isdigit, str(value if value is not None else "")))
    if not digits:
        return ""
    return str(int(digits))


def clean_code(value: Any) -> str:
    if value is None:
        return ""
    # Spreadsheet cells may carry integer codes as floats (890201.0)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()
