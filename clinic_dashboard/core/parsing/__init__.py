"""
Parsing Module

Turns raw clinic record fields into typed values and per-patient latest records.
"""
from .health_parsing import (
    BloodPressure,
    LipidProfile,
    parse_float,
    parse_blood_pressure,
    parse_bmi,
    parse_ldl,
    parse_hba1c,
    parse_record_date,
    format_date,
    record_key,
    get_latest_by_user,
    normalize_chronic_factors,
    extract_lipid_profile,
    calculate_average,
    create_patient_name_map,
)

__all__ = [
    "BloodPressure",
    "LipidProfile",
    "parse_float",
    "parse_blood_pressure",
    "parse_bmi",
    "parse_ldl",
    "parse_hba1c",
    "parse_record_date",
    "format_date",
    "record_key",
    "get_latest_by_user",
    "normalize_chronic_factors",
    "extract_lipid_profile",
    "calculate_average",
    "create_patient_name_map",
]
