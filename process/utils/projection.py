# process/utils/projection.py

from typing import Iterable
from process.config.settings import (
    BAND_LOWER_FACTOR, BAND_UPPER_FACTOR, MONTHS_PER_YEAR,
    BAND_BELOW, BAND_WITHIN, BAND_ABOVE,
)
from process.utils.models import FinancialProjection, PeriodBand, PlanRow


def project_financials(plan_rows: Iterable[PlanRow]) -> FinancialProjection:
    """
    Monthly cost band (90% / 110%) and annualized totals of the technical note.
    """
    monthly_total = 0.0
    monthly_min = 0.0
    monthly_max = 0.0
    for row in plan_rows:
        monthly_total += row.monthly_cost
        monthly_min += row.min_value
        monthly_max += row.max_value

    return FinancialProjection(
        monthly_total=monthly_total,
        monthly_lower=monthly_total * BAND_LOWER_FACTOR,
        monthly_upper=monthly_total * BAND_UPPER_FACTOR,
        annual_total=monthly_total * MONTHS_PER_YEAR,
        annual_min=monthly_min * MONTHS_PER_YEAR,
        annual_max=monthly_max * MONTHS_PER_YEAR,
    )


def project_period(projection: FinancialProjection, months: int) -> PeriodBand:
    total = projection.monthly_total * months
    return PeriodBand(
        months=months,
        lower=total * BAND_LOWER_FACTOR,
        total=total,
        upper=total * BAND_UPPER_FACTOR,
    )


def band_status(executed_value: float, band: PeriodBand) -> str:
    if executed_value < band.lower:
        return BAND_BELOW
    if executed_value > band.upper:
        return BAND_ABOVE
    return BAND_WITHIN
