"""
Risk Rules Module

Classifies vitals, lab results and consultations into Normal / At Risk /
Critical against fixed clinical thresholds, and combines the sources into a
single patient-level risk.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional
from enum import Enum

from clinic_dashboard.config import Settings, get_settings
from clinic_dashboard.core.parsing.health_parsing import (
    display_value,
    format_number,
    normalize_chronic_factors,
    parse_blood_pressure,
    parse_bmi,
    parse_hba1c,
    parse_ldl,
)
from clinic_dashboard.utils import get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]


class RiskLevel(str, Enum):
    """Risk level categories, ordered Normal < At Risk < Critical."""
    NORMAL = "Normal"
    AT_RISK = "At Risk"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    @property
    def color(self) -> str:
        """Dashboard display color."""
        return RISK_COLORS[self]

    @classmethod
    def from_value(cls, value: Any) -> Optional["RiskLevel"]:
        """Parse a stored clearance string; None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        cleaned = value.strip().lower()
        for member in cls:
            if member.value.lower() == cleaned:
                return member
        return None

    @classmethod
    def highest(cls, *levels: Optional["RiskLevel"]) -> "RiskLevel":
        """Most severe of the given levels (None entries ignored)."""
        present = [level for level in levels if level is not None]
        if not present:
            return cls.NORMAL
        return max(present, key=lambda level: level.rank)


_RISK_RANK = {RiskLevel.NORMAL: 0, RiskLevel.AT_RISK: 1, RiskLevel.CRITICAL: 2}

RISK_COLORS = {
    RiskLevel.NORMAL: "#22c55e",    # Green
    RiskLevel.AT_RISK: "#f59e0b",   # Amber
    RiskLevel.CRITICAL: "#ef4444",  # Red
}


@dataclass(frozen=True)
class RiskThresholds:
    """
    Clinical cut-offs. A value must be strictly greater than a threshold to
    trigger it.
    """
    bp_at_risk_systolic: float = 140
    bp_at_risk_diastolic: float = 90
    bp_critical_systolic: float = 160
    bp_critical_diastolic: float = 100
    bmi_at_risk: float = 30
    bmi_critical: float = 35
    ldl_at_risk: float = 130
    ldl_critical: float = 160
    hba1c_at_risk: float = 6.5
    hba1c_critical: float = 8

    # Healthy lipid limits (mg/dL) shown next to cohort averages
    lipid_total_chol_limit: float = 200
    lipid_hdl_limit: float = 60
    lipid_ldl_limit: float = 100
    lipid_triglycerides_limit: float = 150

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "RiskThresholds":
        """Build thresholds from application settings (env overrides)."""
        settings = settings or get_settings()
        return cls(**{name: getattr(settings, name) for name in cls.__dataclass_fields__})


DEFAULT_THRESHOLDS = RiskThresholds()


@dataclass
class RiskAssessment:
    """Risk level plus the human-readable factors behind it."""
    risk: RiskLevel = RiskLevel.NORMAL
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"risk": self.risk.value, "factors": list(self.factors)}


@dataclass
class RiskAccumulator:
    """
    Escalate-only fold over (level, factors) contributions.

    The running level only ever moves up; factors are appended in the
    order they are contributed, duplicates included.
    """
    level: RiskLevel = RiskLevel.NORMAL
    factors: List[str] = field(default_factory=list)

    def escalate(self, level: Optional[RiskLevel], factors: Iterable[str] = ()) -> "RiskAccumulator":
        self.level = RiskLevel.highest(self.level, level)
        self.factors.extend(factors)
        return self

    def add(self, assessment: RiskAssessment) -> "RiskAccumulator":
        return self.escalate(assessment.risk, assessment.factors)

    def result(self) -> RiskAssessment:
        return RiskAssessment(risk=self.level, factors=list(self.factors))


def _grade(value: Optional[float], at_risk: float, critical: float) -> RiskLevel:
    if value is None:
        return RiskLevel.NORMAL
    if value > critical:
        return RiskLevel.CRITICAL
    if value > at_risk:
        return RiskLevel.AT_RISK
    return RiskLevel.NORMAL


class RiskRules:
    """
    Rule-based risk classification for clinic records.

    All methods are pure: they read the given record mappings and never
    raise on missing, empty or non-numeric fields.
    """

    def __init__(self, thresholds: Optional[RiskThresholds] = None):
        """
        Args:
            thresholds: Cut-offs to apply (defaults to the configured ones)
        """
        self.thresholds = thresholds or RiskThresholds.from_settings()
        logger.debug(f"RiskRules initialized with {self.thresholds}")

    def calculate_vital_risk(self, vital: Optional[Record]) -> RiskAssessment:
        """
        Classify one vital record from blood pressure, then BMI.

        Blood pressure is only graded when both systolic and diastolic
        parse to non-zero numbers.
        """
        acc = RiskAccumulator()
        if not vital:
            return acc.result()
        t = self.thresholds

        bp = parse_blood_pressure(vital)
        if bp.systolic and bp.diastolic:
            level = RiskLevel.highest(
                _grade(bp.systolic, t.bp_at_risk_systolic, t.bp_critical_systolic),
                _grade(bp.diastolic, t.bp_at_risk_diastolic, t.bp_critical_diastolic),
            )
            if level is not RiskLevel.NORMAL:
                acc.escalate(level, [f"BP: {format_number(bp.systolic)}/{format_number(bp.diastolic)}"])

        bmi = parse_bmi(vital)
        if bmi:
            level = _grade(bmi, t.bmi_at_risk, t.bmi_critical)
            if level is not RiskLevel.NORMAL:
                acc.escalate(level, [f"BMI: {display_value(vital.get('bmi'))}"])

        return acc.result()

    def calculate_lab_risk(self, result: Optional[Record]) -> RiskAssessment:
        """Classify one lab result from LDL, then HbA1c."""
        acc = RiskAccumulator()
        if not result:
            return acc.result()
        t = self.thresholds

        ldl = parse_ldl(result)
        if ldl:
            level = _grade(ldl, t.ldl_at_risk, t.ldl_critical)
            if level is not RiskLevel.NORMAL:
                acc.escalate(level, [f"LDL: {display_value(result.get('ldl'))}"])

        hba1c = parse_hba1c(result)
        if hba1c:
            level = _grade(hba1c, t.hba1c_at_risk, t.hba1c_critical)
            if level is not RiskLevel.NORMAL:
                acc.escalate(level, [f"HbA1c: {display_value(result.get('hba1c'))}"])

        return acc.result()

    def calculate_clearance_risk(self, consultation: Optional[Record]) -> RiskAssessment:
        """
        Risk carried by a consultation's medical clearance.

        Normal, missing or unrecognised clearances contribute nothing.
        Otherwise the chronic risk factors become the factors, falling back
        to a generic condition label when none are named.
        """
        if not consultation:
            return RiskAssessment()
        clearance = RiskLevel.from_value(consultation.get("medical_clearance"))
        if clearance is None or clearance is RiskLevel.NORMAL:
            return RiskAssessment()
        return RiskAssessment(risk=clearance, factors=clearance_factors(consultation, clearance))

    def calculate_patient_risk(
        self,
        vital: Optional[Record] = None,
        result: Optional[Record] = None,
        consultation: Optional[Record] = None,
    ) -> RiskAssessment:
        """
        Combine consultation clearance, vital risk and lab risk.

        The final level is the most severe of the three; factors are
        concatenated in that evaluation order.
        """
        acc = RiskAccumulator()
        acc.add(self.calculate_clearance_risk(consultation))
        acc.add(self.calculate_vital_risk(vital))
        acc.add(self.calculate_lab_risk(result))
        return acc.result()

    # KPI predicates compare against the At Risk threshold only

    def is_hypertensive(self, vital: Optional[Record]) -> bool:
        bp = parse_blood_pressure(vital or {})
        return (
            (bp.systolic is not None and bp.systolic > self.thresholds.bp_at_risk_systolic)
            or (bp.diastolic is not None and bp.diastolic > self.thresholds.bp_at_risk_diastolic)
        )

    def is_obese(self, vital: Optional[Record]) -> bool:
        bmi = parse_bmi(vital)
        return bmi is not None and bmi > self.thresholds.bmi_at_risk

    def has_critical_ldl(self, result: Optional[Record]) -> bool:
        ldl = parse_ldl(result)
        return ldl is not None and ldl > self.thresholds.ldl_at_risk

    def is_diabetic_watch(self, result: Optional[Record]) -> bool:
        hba1c = parse_hba1c(result)
        return hba1c is not None and hba1c > self.thresholds.hba1c_at_risk


def clearance_factors(consultation: Record, clearance: RiskLevel) -> List[str]:
    """Named chronic factors of a consultation, or a generic condition label."""
    factors = normalize_chronic_factors(consultation.get("chronic_risk_factor"))
    if factors:
        return factors
    return ["Critical Condition" if clearance is RiskLevel.CRITICAL else "At Risk Condition"]


_default_rules: Optional[RiskRules] = None


def get_default_rules() -> RiskRules:
    """Shared RiskRules built from the configured thresholds."""
    global _default_rules
    if _default_rules is None:
        _default_rules = RiskRules()
    return _default_rules


def calculate_vital_risk(vital: Optional[Record]) -> RiskAssessment:
    return get_default_rules().calculate_vital_risk(vital)


def calculate_lab_risk(result: Optional[Record]) -> RiskAssessment:
    return get_default_rules().calculate_lab_risk(result)


def calculate_patient_risk(
    vital: Optional[Record] = None,
    result: Optional[Record] = None,
    consultation: Optional[Record] = None,
) -> RiskAssessment:
    return get_default_rules().calculate_patient_risk(vital=vital, result=result, consultation=consultation)


def is_hypertensive(vital: Optional[Record]) -> bool:
    return get_default_rules().is_hypertensive(vital)


def is_obese(vital: Optional[Record]) -> bool:
    return get_default_rules().is_obese(vital)


def has_critical_ldl(result: Optional[Record]) -> bool:
    return get_default_rules().has_critical_ldl(result)


def is_diabetic_watch(result: Optional[Record]) -> bool:
    return get_default_rules().is_diabetic_watch(result)
