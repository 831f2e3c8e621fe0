#!/usr/bin/env python3
"""
aggregate_execution.py

Counts executed services per service code from RIPS execution documents.
Each code gets its executed quantity, charged value, diagnosis tally, patients
and per-day attentions. Documents of the same month are merged by summing.
"""
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Tuple

from process.config.settings import (
    SERVICE_CATEGORIES, OBLIGATED_NIT_FIELD, INVOICE_FIELD, PROVIDER_CODE_FIELD,
)
from process.utils.extract_services import (
    extract_from_document, get_patients, get_category_items, patient_id,
)
from process.utils.models import CodeAggregate, ExecutionRecord, ExecutionSummary, ParseIssue
from process.utils.normalize import to_number, normalize_digits
from process.utils.columns import find_column_value

logger = logging.getLogger(__name__)

CodeAggregates = Dict[str, CodeAggregate]


def aggregate_records(records: Iterable[ExecutionRecord]) -> CodeAggregates:
    """
    Builds one CodeAggregate per service code.

    Diagnosis tallies grow by the item quantity; attentions count line items
    per (patient, date) so same-day repetitions can be detected.
    """
    totals: Dict[str, float] = {}
    values: Dict[str, float] = {}
    diagnoses: Dict[str, Counter] = {}
    patients: Dict[str, set] = {}
    service_types: Dict[str, set] = {}
    attentions: Dict[str, Counter] = {}

    for record in records:
        code = record.code
        if code not in totals:
            totals[code] = 0.0
            values[code] = 0.0
            diagnoses[code] = Counter()
            patients[code] = set()
            service_types[code] = set()
            attentions[code] = Counter()

        totals[code] += record.quantity
        values[code] += record.value
        service_types[code].add(record.service_type)
        if record.diagnosis:
            diagnoses[code][record.diagnosis] += record.quantity
        if record.patient_id:
            patients[code].add(record.patient_id)
            if record.event_date:
                attentions[code][(record.patient_id, record.event_date)] += 1

    return {
        code: CodeAggregate(
            code=code,
            total=totals[code],
            total_value=values[code],
            diagnoses=diagnoses[code],
            patients=frozenset(patients[code]),
            service_types=frozenset(service_types[code]),
            attentions=attentions[code],
        )
        for code in totals
    }


def merge_aggregates(*aggregate_maps: CodeAggregates) -> CodeAggregates:
    """
    Combines per-code aggregates. Order of the inputs does not change the counts.
    """
    merged: CodeAggregates = {}
    for aggregates in aggregate_maps:
        for code, aggregate in aggregates.items():
            merged[code] = merged[code].merge(aggregate) if code in merged else aggregate
    return merged


def aggregate_document(document: Any, month: str, source: Optional[str] = None,
                       issues: Optional[List[ParseIssue]] = None) -> CodeAggregates:
    return aggregate_records(extract_from_document(document, month, source, issues))


def aggregate_month(documents: Iterable[Tuple[str, Any]], month: str,
                    issues: Optional[List[ParseIssue]] = None) -> CodeAggregates:
    """
    Aggregates all (source name, document) pairs loaded for one month.
    """
    per_file = []
    for source, document in documents:
        aggregates = aggregate_document(document, month, source, issues)
        logger.debug(f"{source}: {len(aggregates)} codes for month {month}")
        per_file.append(aggregates)
    return merge_aggregates(*per_file)


def aggregate_by_month(documents_by_month: Dict[str, List[Tuple[str, Any]]],
                       issues: Optional[List[ParseIssue]] = None) -> Dict[str, CodeAggregates]:
    return {
        month: aggregate_month(documents, month, issues)
        for month, documents in documents_by_month.items()
    }


def month_executed_value(aggregates: CodeAggregates) -> float:
    """Sum of the charged values reported in the execution files."""
    return sum(a.total_value for a in aggregates.values())


def summarize_execution(documents: Iterable[Any]) -> ExecutionSummary:
    """
    Overview of one or more execution documents: patients and line items by category.
    Medication and other-service counts add up their quantity fields.
    """
    documents = list(documents)
    summary = ExecutionSummary()
    quantity_fields = {c["key"]: c["quantity_field"] for c in SERVICE_CATEGORIES}

    for document in documents:
        for patient in get_patients(document):
            summary.patients += 1
            summary.consultations += len(get_category_items(patient, "consultas"))
            summary.procedures += len(get_category_items(patient, "procedimientos"))
            summary.medication_units += sum(
                to_number(item.get(quantity_fields["medicamentos"]))
                for item in get_category_items(patient, "medicamentos")
            )
            summary.other_service_units += sum(
                to_number(item.get(quantity_fields["otrosServicios"]))
                for item in get_category_items(patient, "otrosServicios")
            )

    if len(documents) == 1 and isinstance(documents[0], dict):
        summary.invoice = str(documents[0].get(INVOICE_FIELD) or "N/A")
        summary.obligated_nit = str(documents[0].get(OBLIGATED_NIT_FIELD) or "N/A")
    elif len(documents) > 1:
        summary.invoice = f"Combinado ({len(documents)} archivos)"
        nits = {str(d.get(OBLIGATED_NIT_FIELD)) for d in documents
                if isinstance(d, dict) and d.get(OBLIGATED_NIT_FIELD)}
        summary.obligated_nit = ", ".join(sorted(nits)) if nits else "N/A"

    return summary


def unique_patient_count(documents: Iterable[Any]) -> int:
    ids = set()
    for document in documents:
        for patient in get_patients(document):
            pid = patient_id(patient)
            if pid:
                ids.add(pid)
    return len(ids)


def find_duplicate_nits(documents: Iterable[Any]) -> List[str]:
    """
    Obligated-party NITs present in more than one file.
    """
    seen = Counter()
    for document in documents:
        if not isinstance(document, dict):
            continue
        nit = find_column_value(document, [OBLIGATED_NIT_FIELD])
        if nit:
            seen[str(nit).strip()] += 1
    return sorted(nit for nit, count in seen.items() if count > 1)


def extract_provider_code(document: Any) -> Optional[str]:
    """
    Provider code (codPrestador) as digits without leading zeros.
    Looks in the first consultation, then the first procedure, then the top level.
    """
    patients = get_patients(document)
    if patients:
        for category in ("consultas", "procedimientos"):
            items = get_category_items(patients[0], category)
            if items and items[0].get(PROVIDER_CODE_FIELD):
                return normalize_digits(items[0][PROVIDER_CODE_FIELD]) or None

    if isinstance(document, dict):
        raw = find_column_value(document, [PROVIDER_CODE_FIELD])
        if raw:
            return normalize_digits(raw) or None
    return None
