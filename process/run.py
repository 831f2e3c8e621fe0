# process/run.py

import argparse
import logging
import sys
from zipfile import BadZipFile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from process.config.settings import PLAN_PATH, CIE10_PATH, OUTPUT_DIR, LOG_LEVEL
from process.utils.aggregate_execution import (
    CodeAggregates, aggregate_by_month, summarize_execution, unique_patient_count,
    find_duplicate_nits, extract_provider_code, month_executed_value,
)
from process.utils.diagnosis_catalog import DiagnosisCatalog
from process.utils.loader import group_files_by_month
from process.utils.matrix import build_matrix
from process.utils.models import (
    DiscountRow, ExecutionSummary, FinancialProjection, MatrixRow, MonthReconciliation,
    ParseIssue, PeriodBand, PlanRow,
)
from process.utils.plan_index import build_plan_index
from process.utils.projection import project_financials, project_period, band_status
from process.utils.reconcile import reconcile, reconcile_period, build_discount_matrix
from process.utils.analysis_logger import log_analysis_results
from preprocess.utils.load_plan import load_plan
from preprocess.utils.load_catalog import load_diagnosis_catalog
from postprocess.data.excel_manager import (
    write_matrix_workbook, write_matrix_csv, write_discount_csv, export_paths,
)

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    plan_index: Dict[str, PlanRow]
    aggregates_by_month: Dict[str, CodeAggregates]
    reconciliations: Dict[str, MonthReconciliation]
    period: MonthReconciliation
    matrix: List[MatrixRow]
    discount_matrix: List[DiscountRow]
    projection: FinancialProjection
    period_band: PeriodBand
    band_status: str
    execution_summaries: Dict[str, ExecutionSummary]
    charged_value_by_month: Dict[str, float]
    unique_patients: int
    provider_code: Optional[str] = None
    duplicate_nits: List[str] = field(default_factory=list)
    parse_issues: List[ParseIssue] = field(default_factory=list)
    generated_at: str = field(default_factory=lambda: datetime.now().strftime("%Y-%m-%d %H:%M:%S"))


def run_analysis(plan_rows: List[PlanRow],
                 documents_by_month: Dict[str, List[Tuple[str, Any]]],
                 catalog: Optional[DiagnosisCatalog] = None,
                 parse_issues: Optional[List[ParseIssue]] = None) -> AnalysisResult:
    """
    One analysis run over data already in memory. Nothing is kept between runs.

    Args:
        plan_rows (list): PlanRow objects from the technical note
        documents_by_month (dict): month -> [(file name, execution document), ...]
        catalog (DiagnosisCatalog): optional CIE-10 descriptions
        parse_issues (list): issues already collected while loading the plan
    """
    issues = list(parse_issues or [])
    all_documents = [doc for docs in documents_by_month.values() for _, doc in docs]

    # Step 1: Index the plan
    plan_index = build_plan_index(plan_rows)

    # Step 2: Aggregate execution per month
    aggregates_by_month = aggregate_by_month(documents_by_month, issues)

    # Step 3: Reconcile month by month and over the whole period
    reconciliations = reconcile(plan_index, aggregates_by_month, catalog)
    period = reconcile_period(plan_index, aggregates_by_month, catalog)

    # Step 4: Tables for display/export
    matrix = build_matrix(reconciliations.values())
    discount_matrix = build_discount_matrix(period)

    # Step 5: Budget band
    projection = project_financials(plan_rows)
    band = project_period(projection, len(reconciliations))
    executed_value = sum(r.executed_value for r in reconciliations.values())

    # Step 6: Execution overview per month
    execution_summaries = {
        month: summarize_execution(doc for _, doc in docs)
        for month, docs in documents_by_month.items()
    }
    charged_value_by_month = {
        month: month_executed_value(aggregates)
        for month, aggregates in aggregates_by_month.items()
    }
    provider_code = next(
        (code for code in map(extract_provider_code, all_documents) if code), None
    )

    duplicate_nits = find_duplicate_nits(all_documents)
    if duplicate_nits:
        logger.warning(f"Several files share the same obligated NIT, their data is combined: "
                       f"{', '.join(duplicate_nits)}")

    return AnalysisResult(
        plan_index=plan_index,
        aggregates_by_month=aggregates_by_month,
        reconciliations=reconciliations,
        period=period,
        matrix=matrix,
        discount_matrix=discount_matrix,
        projection=projection,
        period_band=band,
        band_status=band_status(executed_value, band),
        execution_summaries=execution_summaries,
        charged_value_by_month=charged_value_by_month,
        unique_patients=unique_patient_count(all_documents),
        provider_code=provider_code,
        duplicate_nits=duplicate_nits,
        parse_issues=issues,
    )


def setup_logging(level: str = LOG_LEVEL):
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    return logging.getLogger("PGP Analysis")


def parse_execution_arg(value: str) -> Tuple[str, str]:
    """'3=marzo.json' -> ('3', 'marzo.json')"""
    month, sep, path = value.partition("=")
    if not sep or not month.strip() or not path.strip():
        raise argparse.ArgumentTypeError(f"Expected MONTH=PATH, got '{value}'")
    return month.strip(), path.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Compare PGP technical note against executed RIPS files')
    parser.add_argument('--plan', default=PLAN_PATH, help='Technical note (.csv or .xlsx)')
    parser.add_argument('--execution', action='append', type=parse_execution_arg, default=[],
                        metavar='MONTH=PATH', help='Execution JSON for a month (repeatable)')
    parser.add_argument('--cie10', default=CIE10_PATH, help='CIE-10 catalog CSV (optional)')
    parser.add_argument('--output', default=OUTPUT_DIR, help='Directory for the exported files')
    parser.add_argument('--log-level', default=LOG_LEVEL)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log = setup_logging(args.log_level)

    if not args.plan:
        log.error("No plan file given (use --plan or PGP_PLAN_PATH)")
        return 1
    if not args.execution:
        log.error("No execution files given (use --execution MONTH=PATH)")
        return 1

    try:
        issues: List[ParseIssue] = []
        plan_rows = load_plan(args.plan, issues)
        documents_by_month = group_files_by_month(args.execution)
        catalog = load_diagnosis_catalog(args.cie10) if args.cie10 else None
    except (FileNotFoundError, ValueError, TypeError, BadZipFile) as e:
        log.error(f"Could not load input: {e}")
        return 1

    result = run_analysis(plan_rows, documents_by_month, catalog, issues)

    paths = export_paths(args.output)
    write_matrix_workbook(paths["xlsx"], result.matrix, result.discount_matrix)
    write_matrix_csv(paths["csv"], result.matrix)
    write_discount_csv(paths["discount_csv"], result.discount_matrix)
    log_analysis_results(result, paths["summary"])

    log.info(f"✅ {len(result.matrix)} matrix rows → {paths['xlsx']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
