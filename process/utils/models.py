# process/utils/models.py

import math
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, FrozenSet, Tuple


@dataclass(frozen=True)
class ParseIssue:
    field: str
    raw_value: str
    source: Optional[str] = None  # e.g. 'plan row 12' or a file name

    def __str__(self):
        where = f" ({self.source})" if self.source else ""
        return f"UNPARSABLE_NUMBER: {self.field}={self.raw_value!r}{where}"


@dataclass(frozen=True)
class PlanRow:
    code: str
    description: Optional[str] = None
    activity_description: Optional[str] = None
    expected_frequency: float = 0.0
    min_frequency: float = 0.0
    max_frequency: float = 0.0
    unit_value: float = 0.0
    min_value: float = 0.0
    max_value: float = 0.0
    monthly_cost: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "code", str(self.code).strip())


@dataclass(frozen=True)
class ExecutionRecord:
    code: str
    month: str
    quantity: float = 1.0
    value: float = 0.0
    diagnosis: Optional[str] = None
    event_date: Optional[str] = None  # Format: YYYY-MM-DD
    service_type: str = "Desconocido"
    patient_id: Optional[str] = None
    source: Optional[str] = None  # Host document (file name or invoice)


@dataclass
class CodeAggregate:
    code: str
    total: float = 0.0
    total_value: float = 0.0
    diagnoses: Counter = field(default_factory=Counter)
    patients: FrozenSet[str] = frozenset()
    service_types: FrozenSet[str] = frozenset()
    attentions: Counter = field(default_factory=Counter)  # (patient_id, date) -> line items

    @property
    def predominant_diagnosis(self) -> Optional[str]:
        top = self.diagnoses.most_common(1)
        return top[0][0] if top else None

    @property
    def unique_patients(self) -> int:
        return len(self.patients)

    @property
    def same_day_repeats(self) -> int:
        """Patients that received this code more than once on the same day."""
        return len({patient for (patient, _), count in self.attentions.items() if count > 1})

    @property
    def service_type(self) -> str:
        return ", ".join(sorted(self.service_types)) if self.service_types else "Desconocido"

    def merge(self, other: "CodeAggregate") -> "CodeAggregate":
        diagnoses = Counter(self.diagnoses)
        diagnoses.update(other.diagnoses)
        attentions = Counter(self.attentions)
        attentions.update(other.attentions)
        return replace(
            self,
            total=self.total + other.total,
            total_value=self.total_value + other.total_value,
            diagnoses=diagnoses,
            patients=self.patients | other.patients,
            service_types=self.service_types | other.service_types,
            attentions=attentions,
        )


@dataclass(frozen=True)
class ReconciledEntry:
    month: str
    code: str
    expected: float
    executed: float
    deviation: float
    deviation_value: float
    total_value: float
    classification: str
    description: Optional[str] = None
    activity_description: Optional[str] = None
    unit_value: float = 0.0
    expected_value: float = 0.0
    charged_value: float = 0.0
    predominant_diagnosis: Optional[str] = None
    diagnosis_description: Optional[str] = None
    unique_patients: int = 0
    same_day_repeats: int = 0
    service_type: str = "Desconocido"

    @property
    def percentage(self) -> float:
        if self.expected > 0:
            return self.executed / self.expected * 100
        return math.inf if self.executed > 0 else 0.0


@dataclass
class MonthReconciliation:
    month: str
    label: str
    buckets: Dict[str, List[ReconciledEntry]]
    expected_value: float = 0.0
    executed_value: float = 0.0

    @property
    def entries(self) -> List[ReconciledEntry]:
        return [entry for bucket in self.buckets.values() for entry in bucket]

    @property
    def percentage(self) -> float:
        return self.executed_value / self.expected_value * 100 if self.expected_value > 0 else 0.0

    def counts(self) -> Dict[str, int]:
        return {label: len(bucket) for label, bucket in self.buckets.items()}


@dataclass(frozen=True)
class FinancialProjection:
    monthly_total: float
    monthly_lower: float
    monthly_upper: float
    annual_total: float
    annual_min: float
    annual_max: float


@dataclass(frozen=True)
class PeriodBand:
    months: int
    lower: float
    total: float
    upper: float


@dataclass(frozen=True)
class MatrixRow:
    month: str
    code: str
    description: Optional[str]
    expected: float
    executed: float
    difference: float
    percentage: float  # Raw value used for sorting, inf for unexpected codes
    percentage_label: str
    classification: str
    unit_value: float
    expected_value: float
    executed_value: float

    def as_export_row(self) -> Tuple:
        return (
            self.month, self.code, self.description or "", self.expected, self.executed,
            self.difference, self.percentage_label, self.classification,
            self.unit_value, self.expected_value, self.executed_value,
        )


@dataclass(frozen=True)
class DiscountRow:
    code: str
    description: Optional[str]
    service_type: str
    expected: float
    executed: float
    unit_value: float
    executed_value: float
    value_to_recognize: float
    value_to_discount: float
    classification: str

    def as_export_row(self) -> Tuple:
        return (
            self.code, self.description or "", self.service_type, self.expected, self.executed,
            self.unit_value, self.executed_value, self.value_to_recognize,
            self.value_to_discount, self.classification,
        )


@dataclass
class ExecutionSummary:
    invoice: str = "N/A"
    obligated_nit: str = "N/A"
    patients: int = 0
    consultations: int = 0
    procedures: int = 0
    medication_units: float = 0.0
    other_service_units: float = 0.0
