"""
Health Record Parsing Module

Normalizes loosely-typed record fields (blood pressure strings, chronic
factor text, dates, lipid analytes) into typed values. Nothing in this
module raises on bad record content: unparsable values come back as None.
"""
import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

import numpy as np
from dateutil import parser as date_parser

Record = Mapping[str, Any]

# Leading decimal number, same prefix rule as JavaScript's parseFloat
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

CHRONIC_FACTOR_SENTINELS = frozenset({"none", "null", "n/a", "undefined", ""})


@dataclass(frozen=True)
class BloodPressure:
    """Parsed blood pressure pair (mmHg)."""
    systolic: Optional[float] = None
    diastolic: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"systolic": self.systolic, "diastolic": self.diastolic}


@dataclass(frozen=True)
class LipidProfile:
    """Lipid panel values (mg/dL) pulled from one lab result."""
    total_chol: Optional[float] = None
    hdl: Optional[float] = None
    ldl: Optional[float] = None
    triglycerides: Optional[float] = None

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {
            "totalChol": self.total_chol,
            "hdl": self.hdl,
            "ldl": self.ldl,
            "triglycerides": self.triglycerides,
        }


def parse_float(value: Any) -> Optional[float]:
    """
    Parse a numeric field the way the records UI stores them.

    Numbers pass through; strings are read up to the first non-numeric
    character ("120 mmHg" -> 120.0). Booleans, NaN, infinities and
    anything without a leading number give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(value)
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def format_number(value: float) -> str:
    """Render a parsed number without a trailing '.0' for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def display_value(raw: Any) -> str:
    """Render a raw record field for a factor label, keeping strings as entered."""
    if isinstance(raw, str):
        return raw
    number = parse_float(raw)
    return format_number(number) if number is not None else str(raw)


def parse_blood_pressure(vital: Record) -> BloodPressure:
    """
    Parse blood pressure from a vital record.

    Discrete ``systolic``/``diastolic`` fields win when both are filled in;
    otherwise a combined ``blood_pressure`` string such as "120/80" is split.
    A combined string without exactly two parts yields no reading at all.
    """
    if not vital:
        return BloodPressure()

    if vital.get("systolic") and vital.get("diastolic"):
        return BloodPressure(
            systolic=parse_float(vital.get("systolic")),
            diastolic=parse_float(vital.get("diastolic")),
        )

    combined = vital.get("blood_pressure")
    if combined:
        parts = str(combined).split("/")
        if len(parts) == 2:
            return BloodPressure(systolic=parse_float(parts[0]), diastolic=parse_float(parts[1]))

    return BloodPressure()


def parse_bmi(vital: Optional[Record]) -> Optional[float]:
    return parse_float(vital.get("bmi")) if vital else None


def parse_ldl(result: Optional[Record]) -> Optional[float]:
    return parse_float(result.get("ldl")) if result else None


def parse_hba1c(result: Optional[Record]) -> Optional[float]:
    return parse_float(result.get("hba1c")) if result else None


def parse_record_date(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 record timestamp into an aware UTC datetime.

    Naive timestamps and bare dates are taken as UTC. Returns None for
    missing or unparsable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # shifting to UTC falls outside datetime's range (year 1 / 9999)
        return None


def format_date(value: Any) -> str:
    """Format a record date for display ("Mar 5, 2024"), or 'N/A'."""
    parsed = parse_record_date(value)
    if parsed is None:
        return "N/A"
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def record_key(value: Any) -> Hashable:
    """Patient uuid usable as a dict key (lists/objects fall back to str)."""
    try:
        hash(value)
    except TypeError:
        return str(value)
    return value


def get_latest_by_user(
    records: Optional[Iterable[Record]],
    uuid_field: str = "user_uuid",
    date_field: str = "created_at",
) -> Dict[Hashable, Record]:
    """
    Reduce records to the most recent one per patient.

    A later record replaces the kept one only when its date is strictly
    greater, so ties keep the first record seen. Missing or invalid dates
    always lose: they never replace a kept record, and any valid date
    replaces a kept record whose own date is invalid. Records without the
    uuid field are grouped under None; unhashable uuids under their
    string form.

    Args:
        records: Iterable of record mappings
        uuid_field: Field holding the patient uuid
        date_field: Field holding the record timestamp

    Returns:
        Dict mapping patient uuid to its latest record
    """
    latest: Dict[Hashable, Tuple[Record, Optional[datetime]]] = {}

    for record in records or []:
        uuid = record_key(record.get(uuid_field))
        current_date = parse_record_date(record.get(date_field))

        if uuid not in latest:
            latest[uuid] = (record, current_date)
            continue

        _, kept_date = latest[uuid]
        if current_date is None:
            continue
        if kept_date is None or current_date > kept_date:
            latest[uuid] = (record, current_date)

    return {uuid: record for uuid, (record, _) in latest.items()}


def normalize_chronic_factors(raw_factor: Any) -> List[str]:
    """
    Split and clean a consultation's chronic risk factor text.

    "Smoking, none, Hypertension" -> ["Smoking", "Hypertension"]
    """
    if not raw_factor:
        return []

    factor_string = str(raw_factor)
    factors = factor_string.split(",") if "," in factor_string else [factor_string]

    normalized = []
    for factor in factors:
        token = factor.strip().lower()
        if token in CHRONIC_FACTOR_SENTINELS:
            continue
        normalized.append(token[0].upper() + token[1:])
    return normalized


def extract_lipid_profile(result: Optional[Record]) -> LipidProfile:
    """Map a lab result's tchol/hdl/ldl/trig analytes to a LipidProfile."""
    if not result:
        return LipidProfile()

    def _value(key: str) -> Optional[float]:
        raw = result.get(key)
        return parse_float(raw) if raw else None

    return LipidProfile(
        total_chol=_value("tchol"),
        hdl=_value("hdl"),
        ldl=_value("ldl"),
        triglycerides=_value("trig"),
    )


def calculate_average(numbers: Optional[Iterable[float]]) -> float:
    """Arithmetic mean, 0 for an empty input."""
    values = list(numbers or [])
    if not values:
        return 0
    return float(np.mean(values))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (chart display rounding)."""
    return int(math.floor(value + 0.5))


def create_patient_name_map(patients: Optional[Iterable[Record]]) -> Dict[Hashable, str]:
    """Build a uuid -> display name lookup ('Unknown' when nameless)."""
    name_map = {}
    for patient in patients or []:
        full_name = f"{patient.get('first_name') or ''} {patient.get('last_name') or ''}".strip()
        name_map[record_key(patient.get("uuid"))] = str(patient.get("name") or full_name or "Unknown")
    return name_map
