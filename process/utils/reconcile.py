#!/usr/bin/env python3
"""
reconcile.py

Compares the technical note (expected monthly frequencies) with the executed
services of each month, code by code. Every code seen in either side lands in
exactly one bucket: over-executed, normal, under-executed, missing or unexpected.
Codes with nothing expected and nothing executed are left out.
"""
from typing import Dict, List, Optional

from process.config.settings import (
    OVER_EXECUTED, NORMAL, UNDER_EXECUTED, MISSING, UNEXPECTED, CLASSIFICATIONS,
    OVER_EXECUTION_PCT, UNDER_EXECUTION_PCT, MONTH_NAMES, PERIOD_LABEL, UNKNOWN_SERVICE_TYPE,
)
from process.utils.aggregate_execution import CodeAggregates, merge_aggregates
from process.utils.diagnosis_catalog import DiagnosisCatalog
from process.utils.models import (
    CodeAggregate, DiscountRow, MonthReconciliation, PlanRow, ReconciledEntry,
)


def month_label(month: str) -> str:
    """'1' -> 'Enero'. Keys that are not month numbers are returned as they are."""
    try:
        number = int(str(month).strip())
    except ValueError:
        return str(month)
    if 1 <= number <= 12:
        return MONTH_NAMES[number - 1]
    return str(month)


def classify(expected: float, executed: float) -> Optional[str]:
    """
    Classifies a code from its expected and executed frequency.

    Missing wins over the ratio rules. The ratio is compared in percent on
    scaled values so 90% and 111% both stay normal.

    Returns:
        str: classification label, or None when both sides are zero
    """
    if expected <= 0:
        return UNEXPECTED if executed > 0 else None
    if executed <= 0:
        return MISSING
    if executed * 100 > expected * OVER_EXECUTION_PCT:
        return OVER_EXECUTED
    if executed * 100 < expected * UNDER_EXECUTION_PCT:
        return UNDER_EXECUTED
    return NORMAL


def build_entry(month: str, code: str, plan_row: Optional[PlanRow],
                aggregate: Optional[CodeAggregate], expected_multiplier: int = 1,
                catalog: Optional[DiagnosisCatalog] = None) -> Optional[ReconciledEntry]:
    expected = plan_row.expected_frequency * expected_multiplier if plan_row else 0.0
    executed = aggregate.total if aggregate else 0.0
    classification = classify(expected, executed)
    if classification is None:
        return None

    unit_value = plan_row.unit_value if plan_row else 0.0
    deviation = executed - expected
    diagnosis = aggregate.predominant_diagnosis if aggregate else None

    return ReconciledEntry(
        month=month,
        code=code,
        expected=expected,
        executed=executed,
        deviation=deviation,
        deviation_value=deviation * unit_value,
        total_value=executed * unit_value,
        classification=classification,
        description=plan_row.description if plan_row else None,
        activity_description=plan_row.activity_description if plan_row else None,
        unit_value=unit_value,
        expected_value=expected * unit_value,
        charged_value=aggregate.total_value if aggregate else 0.0,
        predominant_diagnosis=diagnosis,
        diagnosis_description=catalog.describe(diagnosis) if catalog is not None and diagnosis else None,
        unique_patients=aggregate.unique_patients if aggregate else 0,
        same_day_repeats=aggregate.same_day_repeats if aggregate else 0,
        service_type=aggregate.service_type if aggregate else UNKNOWN_SERVICE_TYPE,
    )


def reconcile_month(plan_index: Dict[str, PlanRow], aggregates: CodeAggregates, month: str,
                    catalog: Optional[DiagnosisCatalog] = None, expected_multiplier: int = 1,
                    label: Optional[str] = None) -> MonthReconciliation:
    """
    Reconciles one month of execution against the plan.

    Args:
        plan_index (dict): code -> PlanRow
        aggregates (dict): code -> CodeAggregate for the month
        month (str): month key ('1'..'12')
        catalog (DiagnosisCatalog): optional, describes predominant diagnoses
        expected_multiplier (int): months the expected frequency covers

    Returns:
        MonthReconciliation: five buckets plus expected/executed value totals
    """
    buckets: Dict[str, List[ReconciledEntry]] = {name: [] for name in CLASSIFICATIONS}
    expected_value = 0.0
    executed_value = 0.0

    # Plan codes first, then codes only found in the execution
    codes = list(plan_index)
    codes.extend(code for code in aggregates if code not in plan_index)

    for code in codes:
        entry = build_entry(month, code, plan_index.get(code), aggregates.get(code),
                            expected_multiplier, catalog)
        if entry is None:
            continue
        buckets[entry.classification].append(entry)
        expected_value += entry.expected_value
        executed_value += entry.total_value

    buckets[OVER_EXECUTED].sort(key=lambda e: e.deviation, reverse=True)
    buckets[UNDER_EXECUTED].sort(key=lambda e: e.deviation)

    return MonthReconciliation(
        month=month,
        label=label or month_label(month),
        buckets=buckets,
        expected_value=expected_value,
        executed_value=executed_value,
    )


def reconcile(plan_index: Dict[str, PlanRow], aggregates_by_month: Dict[str, CodeAggregates],
              catalog: Optional[DiagnosisCatalog] = None) -> Dict[str, MonthReconciliation]:
    """Reconciles every loaded month independently."""
    return {
        month: reconcile_month(plan_index, aggregates, month, catalog)
        for month, aggregates in aggregates_by_month.items()
    }


def reconcile_period(plan_index: Dict[str, PlanRow], aggregates_by_month: Dict[str, CodeAggregates],
                     catalog: Optional[DiagnosisCatalog] = None) -> MonthReconciliation:
    """
    Classifies codes on totals across all loaded months.
    The expected frequency is the monthly one times the number of months.
    """
    months = len(aggregates_by_month)
    combined = merge_aggregates(*aggregates_by_month.values())
    return reconcile_month(plan_index, combined, PERIOD_LABEL, catalog,
                           expected_multiplier=months, label=PERIOD_LABEL)


def build_discount_matrix(period: MonthReconciliation) -> List[DiscountRow]:
    """
    Executed codes with the value to recognize and the value to discount.
    Over-executed codes are recognized up to their expected value.
    """
    rows = []
    for entry in period.entries:
        if entry.executed <= 0:
            continue
        if entry.classification == OVER_EXECUTED:
            to_recognize = entry.expected_value
        else:
            to_recognize = entry.total_value
        rows.append(DiscountRow(
            code=entry.code,
            description=entry.description,
            service_type=entry.service_type,
            expected=entry.expected,
            executed=entry.executed,
            unit_value=entry.unit_value,
            executed_value=entry.total_value,
            value_to_recognize=to_recognize,
            value_to_discount=max(entry.total_value - to_recognize, 0.0),
            classification=entry.classification,
        ))
    rows.sort(key=lambda r: r.value_to_discount, reverse=True)
    return rows
