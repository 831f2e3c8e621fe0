# process/utils/analysis_logger.py

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from process.utils.models import MonthReconciliation, ParseIssue
from postprocess.utils.formatters import format_currency, format_percentage

logger = logging.getLogger(__name__)


def month_summary(reconciliation: MonthReconciliation) -> Dict:
    return {
        "month": reconciliation.month,
        "label": reconciliation.label,
        "counts": reconciliation.counts(),
        "expected_value": reconciliation.expected_value,
        "executed_value": reconciliation.executed_value,
        "percentage": reconciliation.percentage,
    }


def log_analysis_results(result, summary_path: Optional[str] = None) -> Dict:
    """
    Logs the outcome of an analysis run and, when a path is given, writes the
    same summary as JSON.

    Args:
        result (AnalysisResult): output of run_analysis
        summary_path (str): optional destination for the JSON summary

    Returns:
        dict: the summary written
    """
    warnings: List[str] = []

    # 1. Data quality
    for issue in result.parse_issues:
        warnings.append(str(issue))
    for nit in result.duplicate_nits:
        warnings.append(f"DUPLICATE_NIT: {nit}")

    # 2. Per month results
    months = [month_summary(r) for r in result.reconciliations.values()]
    for month in months:
        month["charged_value"] = result.charged_value_by_month.get(month["month"], 0.0)
        counts = ", ".join(f"{label}: {n}" for label, n in month["counts"].items())
        logger.info(f"{month['label']}: esperado {format_currency(month['expected_value'])}, "
                    f"ejecutado {format_currency(month['executed_value'])} "
                    f"({format_percentage(month['percentage'])}), "
                    f"facturado {format_currency(month['charged_value'])} | {counts}")

    # 3. Budget band for the loaded period
    status = result.band_status
    logger.info(f"Banda {result.period_band.months} mes(es): "
                f"{format_currency(result.period_band.lower)} - {format_currency(result.period_band.upper)} "
                f"-> {status}")

    summary = {
        "generated_at": result.generated_at,
        "execution": {month: vars(s) for month, s in result.execution_summaries.items()},
        "charged_value_by_month": result.charged_value_by_month,
        "provider_code": result.provider_code,
        "unique_patients": result.unique_patients,
        "months": months,
        "period": month_summary(result.period),
        "projection": vars(result.projection),
        "period_band": vars(result.period_band),
        "band_status": status,
        "parse_issues_by_field": describe_issues(result.parse_issues),
        "warnings": warnings,
    }

    if warnings:
        logger.warning(f"{len(warnings)} data quality warning(s)")
        for warning in warnings[:20]:
            logger.warning(f"  {warning}")

    if summary_path:
        Path(summary_path).parent.mkdir(parents=True, exist_ok=True)
        with open(summary_path, "w", encoding="utf-8") as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)
        logger.info(f"Summary written to {summary_path}")

    return summary


def describe_issues(issues: List[ParseIssue]) -> Dict[str, int]:
    """Unparsable cells per field, for quick inspection."""
    counts: Dict[str, int] = {}
    for issue in issues:
        counts[issue.field] = counts.get(issue.field, 0) + 1
    return counts
