"""
Dashboard Summary Types

Value structures produced by the dashboard analytics builder. Each one
serializes to the field names the dashboard front end reads.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, List, Optional
from enum import Enum

from clinic_dashboard.core.inference.risk_rules import RiskLevel
from clinic_dashboard.core.parsing.health_parsing import format_date


def _plain_number(value: float) -> Any:
    """Whole floats serialize as ints (200.0 -> 200)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class ChronicRiskCategory(str, Enum):
    """Chronic risk factor groups used for the department breakdown."""
    SMOKING = "smoking"
    DRINKING = "drinking"
    HYPERTENSION = "hypertension"
    DIABETES = "diabetes"
    NONE = "none"

    @classmethod
    def classify(cls, raw_factor: Any) -> "ChronicRiskCategory":
        """
        First category whose name appears in the factor text, checked in
        the order smoking, drinking, hypertension, diabetes.
        """
        if not raw_factor:
            return cls.NONE
        text = str(raw_factor).lower()
        for category in cls.risk_categories():
            if category.value in text:
                return category
        return cls.NONE

    @classmethod
    def risk_categories(cls) -> List["ChronicRiskCategory"]:
        return [cls.SMOKING, cls.DRINKING, cls.HYPERTENSION, cls.DIABETES]


@dataclass
class KpiCounts:
    """Independent per-metric patient counts."""
    hypertensive_count: int = 0
    critical_ldl_count: int = 0
    diabetic_watch_count: int = 0
    obesity_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "hypertensiveCount": self.hypertensive_count,
            "criticalLDLCount": self.critical_ldl_count,
            "diabeticWatchCount": self.diabetic_watch_count,
            "obesityCount": self.obesity_count,
        }


@dataclass
class RiskBucket:
    """One slice of the risk stratification chart."""
    level: RiskLevel
    value: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.level.value, "value": self.value, "color": self.level.color}


@dataclass
class ChronicFactorCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass
class LipidProfileRow:
    """Cohort average for one lipid analyte next to its healthy limit."""
    metric: str
    average: int
    healthy_limit: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metric": self.metric,
            "Avg Student": self.average,
            "Healthy Limit": _plain_number(self.healthy_limit),
        }


@dataclass
class BmiBpPoint:
    bmi: float
    systolic: float
    user_uuid: Optional[Hashable]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bmi": _plain_number(self.bmi),
            "systolic": _plain_number(self.systolic),
            "user_uuid": self.user_uuid,
        }


@dataclass
class CohortEntry:
    """A patient flagged for follow-up in the at-risk cohort table."""
    uuid: Optional[Hashable]
    name: str
    status: RiskLevel
    chronic_factors: List[str] = field(default_factory=list)
    last_checkup: Any = None
    last_checkup_at: Optional[datetime] = None

    @property
    def chronic_factor(self) -> str:
        return ", ".join(self.chronic_factors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uuid": self.uuid,
            "name": self.name,
            "status": self.status.value,
            "chronicFactors": list(self.chronic_factors),
            "chronicFactor": self.chronic_factor,
            "lastCheckup": self.last_checkup,
            "lastCheckupDisplay": format_date(self.last_checkup),
        }


@dataclass
class DepartmentRiskMix:
    """Share of a department's patients at each risk level."""
    department: str
    green: float = 0.0
    yellow: float = 0.0
    red: float = 0.0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "green": self.green,
            "yellow": self.yellow,
            "red": self.red,
        }


@dataclass
class DepartmentChronicMix:
    """Share of a department's patients in each chronic risk category."""
    department: str
    smoking: float = 0.0
    drinking: float = 0.0
    hypertension: float = 0.0
    diabetes: float = 0.0
    none: float = 0.0
    total: int = 0

    @property
    def risk_fraction(self) -> float:
        """Combined share of patients with any named risk factor."""
        return self.smoking + self.drinking + self.hypertension + self.diabetes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "department": self.department,
            "smoking": self.smoking,
            "drinking": self.drinking,
            "hypertension": self.hypertension,
            "diabetes": self.diabetes,
            "none": self.none,
        }


@dataclass
class DashboardAnalytics:
    """Everything the risk dashboard renders, recomputed per request."""
    kpis: KpiCounts = field(default_factory=KpiCounts)
    risk_stratification: List[RiskBucket] = field(default_factory=list)
    chronic_factors: List[ChronicFactorCount] = field(default_factory=list)
    lipid_profile: List[LipidProfileRow] = field(default_factory=list)
    bmi_vs_bp: List[BmiBpPoint] = field(default_factory=list)
    at_risk_cohort: List[CohortEntry] = field(default_factory=list)
    department_risk_mix: List[DepartmentRiskMix] = field(default_factory=list)
    department_chronic_risk_mix: List[DepartmentChronicMix] = field(default_factory=list)
    patient_risk_map: Dict[Hashable, RiskLevel] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with KPI counts flattened at the top level."""
        return {
            **self.kpis.to_dict(),
            "riskStratification": [b.to_dict() for b in self.risk_stratification],
            "chronicFactors": [c.to_dict() for c in self.chronic_factors],
            "lipidProfile": [row.to_dict() for row in self.lipid_profile],
            "bmiVsBP": [p.to_dict() for p in self.bmi_vs_bp],
            "atRiskCohort": [e.to_dict() for e in self.at_risk_cohort],
            "departmentRiskMix": [d.to_dict() for d in self.department_risk_mix],
            "departmentChronicRiskMix": [d.to_dict() for d in self.department_chronic_risk_mix],
        }
