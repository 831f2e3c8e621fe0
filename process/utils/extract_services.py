# process/utils/extract_services.py

from typing import Any, Dict, List, Optional
from dateutil.parser import parse
from process.config.settings import (
    SERVICE_CATEGORIES, PATIENTS_KEY, SERVICES_KEY, DIAGNOSIS_FIELD,
    DATE_FIELDS, PATIENT_ID_FIELDS,
)
from process.utils.models import ExecutionRecord, ParseIssue
from process.utils.normalize import to_number, to_quantity, clean_code


def get_patients(document: Any) -> List[Dict]:
    """Patients of an execution document, empty when the structure is missing."""
    if not isinstance(document, dict):
        return []
    patients = document.get(PATIENTS_KEY)
    if not isinstance(patients, list):
        return []
    return [p for p in patients if isinstance(p, dict)]


def get_category_items(patient: Dict, category_key: str) -> List[Dict]:
    services = patient.get(SERVICES_KEY)
    if not isinstance(services, dict):
        return []
    items = services.get(category_key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def patient_id(patient: Dict) -> Optional[str]:
    """
    'CC-12345' style identifier. None when both parts are missing.
    """
    doc_type, doc_number = (str(patient.get(f) or "").strip() for f in PATIENT_ID_FIELDS)
    if not doc_type and not doc_number:
        return None
    return f"{doc_type}-{doc_number}"


def parse_event_date(item: Dict) -> Optional[str]:
    """
    Reads the attention date in YYYY-MM-DD format. Only the date part is kept.
    """
    for field in DATE_FIELDS:
        raw = item.get(field)
        if not raw:
            continue
        try:
            return parse(str(raw)).date().isoformat()
        except (ValueError, OverflowError):
            continue
    return None


def extract_from_patient(patient: Dict, month: str, source: Optional[str] = None,
                         issues: Optional[List[ParseIssue]] = None) -> List[ExecutionRecord]:
    """
    Converts every line item of a patient into ExecutionRecord objects.
    Items without a service code are skipped.
    """
    records = []
    pid = patient_id(patient)

    for category in SERVICE_CATEGORIES:
        for item in get_category_items(patient, category["key"]):
            code = clean_code(item.get(category["code_field"]))
            if not code:
                continue

            if category["quantity_field"]:
                quantity = to_quantity(item.get(category["quantity_field"]), issues,
                                       category["quantity_field"], source)
            else:
                quantity = 1.0

            if category["unit_value_field"]:
                value = quantity * to_number(item.get(category["unit_value_field"]), issues,
                                             category["unit_value_field"], source)
            else:
                value = to_number(item.get(category["value_field"]), issues,
                                  category["value_field"], source)

            diagnosis = clean_code(item.get(DIAGNOSIS_FIELD)) or None

            records.append(ExecutionRecord(
                code=code,
                month=month,
                quantity=quantity,
                value=value,
                diagnosis=diagnosis.upper() if diagnosis else None,
                event_date=parse_event_date(item),
                service_type=category["service_type"],
                patient_id=pid,
                source=source,
            ))
    return records


def extract_from_document(document: Any, month: str, source: Optional[str] = None,
                          issues: Optional[List[ParseIssue]] = None) -> List[ExecutionRecord]:
    """
    Flattens a whole execution document (patients -> categories -> items).
    """
    records = []
    for patient in get_patients(document):
        records.extend(extract_from_patient(patient, month, source, issues))
    return records
