# process/utils/plan_index.py

from collections import Counter
from typing import Dict, Iterable, List
from process.utils.models import PlanRow


def build_plan_index(plan_rows: Iterable[PlanRow]) -> Dict[str, PlanRow]:
    """
    Maps service code -> PlanRow. A repeated code keeps the last row seen.
    """
    index = {}
    for row in plan_rows:
        if row.code:
            index[row.code] = row
    return index


def find_duplicate_codes(plan_rows: Iterable[PlanRow]) -> List[str]:
    counts = Counter(row.code for row in plan_rows if row.code)
    return [code for code, count in counts.items() if count > 1]
