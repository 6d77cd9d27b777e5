"""
Inference Module

Classifies clinic records into risk levels against clinical thresholds.
"""
from .risk_rules import (
    RiskLevel,
    RiskThresholds,
    RiskAssessment,
    RiskAccumulator,
    RiskRules,
    DEFAULT_THRESHOLDS,
    RISK_COLORS,
    get_default_rules,
    calculate_vital_risk,
    calculate_lab_risk,
    calculate_patient_risk,
    is_hypertensive,
    is_obese,
    has_critical_ldl,
    is_diabetic_watch,
)

__all__ = [
    "RiskLevel",
    "RiskThresholds",
    "RiskAssessment",
    "RiskAccumulator",
    "RiskRules",
    "DEFAULT_THRESHOLDS",
    "RISK_COLORS",
    "get_default_rules",
    "calculate_vital_risk",
    "calculate_lab_risk",
    "calculate_patient_risk",
    "is_hypertensive",
    "is_obese",
    "has_critical_ldl",
    "is_diabetic_watch",
]
