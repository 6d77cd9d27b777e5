"""
Dashboard Analytics Module

Builds the risk dashboard from the four clinic record collections:
KPI counts, risk stratification, chronic factor histogram, lipid averages,
BMI vs blood pressure scatter, the at-risk cohort and department mixes.
"""
from collections import Counter
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional

from clinic_dashboard.core.inference.risk_rules import (
    RiskLevel,
    RiskRules,
    clearance_factors,
    get_default_rules,
)
from clinic_dashboard.core.parsing.health_parsing import (
    calculate_average,
    create_patient_name_map,
    extract_lipid_profile,
    get_latest_by_user,
    normalize_chronic_factors,
    parse_blood_pressure,
    parse_bmi,
    parse_record_date,
    record_key,
    round_half_up,
)
from clinic_dashboard.core.analytics.summaries import (
    BmiBpPoint,
    ChronicFactorCount,
    ChronicRiskCategory,
    CohortEntry,
    DashboardAnalytics,
    DepartmentChronicMix,
    DepartmentRiskMix,
    KpiCounts,
    LipidProfileRow,
    RiskBucket,
)
from clinic_dashboard.utils import get_logger

logger = get_logger(__name__)

Record = Mapping[str, Any]
LatestRecords = Dict[Hashable, Record]

# (patient uuid field, record date field) per collection. Consultations key
# the patient as "uuid", vitals and results as "user_uuid"; past the
# latest-record reduction everything is keyed by the patient uuid alone.
RECORD_KEYS = {
    "consultations": ("uuid", "date_of_check"),
    "results": ("user_uuid", "created_at"),
    "vitals": ("user_uuid", "date_of_check"),
}

TOP_CHRONIC_FACTORS = 6
UNKNOWN_DEPARTMENT = "Unknown"
UNKNOWN_PATIENT = "Unknown Patient"


def latest_records(records: Optional[Iterable[Record]], collection: str) -> LatestRecords:
    """Latest record per patient uuid for one named collection."""
    uuid_field, date_field = RECORD_KEYS[collection]
    return get_latest_by_user(records, uuid_field, date_field)


def patient_department(patient: Record) -> str:
    department = patient.get("department")
    return str(department) if department else UNKNOWN_DEPARTMENT


class DashboardAnalyticsBuilder:
    """
    Aggregates clinic records into dashboard analytics.

    Stateless apart from the risk rules it applies; build() can be called
    repeatedly and from several threads for different record snapshots.
    """

    def __init__(self, rules: Optional[RiskRules] = None):
        self.rules = rules or get_default_rules()

    def build(
        self,
        consultations: Optional[Iterable[Record]] = None,
        results: Optional[Iterable[Record]] = None,
        vitals: Optional[Iterable[Record]] = None,
        patients: Optional[Iterable[Record]] = None,
    ) -> DashboardAnalytics:
        """
        Compute all dashboard summaries from full record collections.

        Args:
            consultations: Consultation records (patient key "uuid")
            results: Lab result records (patient key "user_uuid")
            vitals: Vital records (patient key "user_uuid")
            patients: Patient records

        Returns:
            DashboardAnalytics for this snapshot
        """
        patients = list(patients or [])

        latest_consultations = latest_records(consultations, "consultations")
        latest_results = latest_records(results, "results")
        latest_vitals = latest_records(vitals, "vitals")

        name_map = create_patient_name_map(patients)
        risk_map = self.build_patient_risk_map(latest_consultations, latest_vitals, latest_results)

        analytics = DashboardAnalytics(
            kpis=self.calculate_kpis(latest_vitals, latest_results),
            risk_stratification=self.build_risk_stratification(
                latest_consultations, latest_vitals, latest_results, risk_map
            ),
            chronic_factors=self.build_chronic_factors(latest_consultations),
            lipid_profile=self.build_lipid_profile(latest_results),
            bmi_vs_bp=self.build_bmi_vs_bp(latest_vitals),
            at_risk_cohort=self.build_at_risk_cohort(
                latest_vitals, latest_results, latest_consultations, name_map, risk_map
            ),
            department_risk_mix=self.build_department_risk_mix(patients, risk_map),
            department_chronic_risk_mix=self.build_department_chronic_risk_mix(patients, latest_consultations),
            patient_risk_map=risk_map,
        )

        logger.debug(
            f"Dashboard built: {len(patients)} patients, {len(latest_vitals)} vitals, "
            f"{len(latest_results)} results, {len(latest_consultations)} consultations, "
            f"{len(analytics.at_risk_cohort)} in cohort"
        )
        return analytics

    def build_patient_risk_map(
        self,
        consultations: LatestRecords,
        vitals: LatestRecords,
        results: LatestRecords,
    ) -> Dict[Hashable, RiskLevel]:
        """
        Patient uuid -> combined risk level over latest records.

        Consultation clearance first, then vitals, then lab results, each
        only ever raising a patient's level. Patients left at Normal are
        not stored.
        """
        risk_map: Dict[Hashable, RiskLevel] = {}

        def _escalate(uuid: Hashable, level: RiskLevel) -> None:
            if level is RiskLevel.NORMAL:
                return
            risk_map[uuid] = RiskLevel.highest(risk_map.get(uuid), level)

        for uuid, consultation in consultations.items():
            _escalate(uuid, self.rules.calculate_clearance_risk(consultation).risk)
        for uuid, vital in vitals.items():
            _escalate(uuid, self.rules.calculate_vital_risk(vital).risk)
        for uuid, result in results.items():
            _escalate(uuid, self.rules.calculate_lab_risk(result).risk)

        return risk_map

    def calculate_kpis(self, vitals: LatestRecords, results: LatestRecords) -> KpiCounts:
        kpis = KpiCounts()
        for vital in vitals.values():
            if self.rules.is_hypertensive(vital):
                kpis.hypertensive_count += 1
            if self.rules.is_obese(vital):
                kpis.obesity_count += 1
        for result in results.values():
            if self.rules.has_critical_ldl(result):
                kpis.critical_ldl_count += 1
            if self.rules.is_diabetic_watch(result):
                kpis.diabetic_watch_count += 1
        return kpis

    def build_risk_stratification(
        self,
        consultations: LatestRecords,
        vitals: LatestRecords,
        results: LatestRecords,
        risk_map: Mapping[Hashable, RiskLevel],
    ) -> List[RiskBucket]:
        """Count every patient seen in any latest record by risk level."""
        patient_uuids = set(consultations) | set(vitals) | set(results)
        buckets = {level: RiskBucket(level=level) for level in RiskLevel}
        for uuid in patient_uuids:
            buckets[risk_map.get(uuid, RiskLevel.NORMAL)].value += 1
        return [buckets[RiskLevel.NORMAL], buckets[RiskLevel.AT_RISK], buckets[RiskLevel.CRITICAL]]

    def build_chronic_factors(self, consultations: LatestRecords) -> List[ChronicFactorCount]:
        counts: Counter = Counter()
        for consultation in consultations.values():
            counts.update(normalize_chronic_factors(consultation.get("chronic_risk_factor")))

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [ChronicFactorCount(name=name, count=count) for name, count in ranked[:TOP_CHRONIC_FACTORS]]

    def build_lipid_profile(self, results: LatestRecords) -> List[LipidProfileRow]:
        """Rounded cohort averages of the lipid panel against healthy limits."""
        t = self.rules.thresholds
        values: Dict[str, List[float]] = {"Total Chol": [], "HDL": [], "LDL": [], "Triglycerides": []}

        for result in results.values():
            lipids = extract_lipid_profile(result)
            if lipids.total_chol:
                values["Total Chol"].append(lipids.total_chol)
            if lipids.hdl:
                values["HDL"].append(lipids.hdl)
            if lipids.ldl:
                values["LDL"].append(lipids.ldl)
            if lipids.triglycerides:
                values["Triglycerides"].append(lipids.triglycerides)

        limits = {
            "Total Chol": t.lipid_total_chol_limit,
            "HDL": t.lipid_hdl_limit,
            "LDL": t.lipid_ldl_limit,
            "Triglycerides": t.lipid_triglycerides_limit,
        }
        return [
            LipidProfileRow(
                metric=metric,
                average=round_half_up(calculate_average(metric_values)),
                healthy_limit=limits[metric],
            )
            for metric, metric_values in values.items()
        ]

    def build_bmi_vs_bp(self, vitals: LatestRecords) -> List[BmiBpPoint]:
        points = []
        for uuid, vital in vitals.items():
            bmi = parse_bmi(vital)
            systolic = parse_blood_pressure(vital).systolic
            if bmi is None or bmi <= 0 or systolic is None or systolic <= 0:
                continue
            points.append(BmiBpPoint(bmi=bmi, systolic=systolic, user_uuid=uuid))
        return points

    def build_at_risk_cohort(
        self,
        vitals: LatestRecords,
        results: LatestRecords,
        consultations: LatestRecords,
        name_map: Mapping[Hashable, str],
        risk_map: Mapping[Hashable, RiskLevel],
    ) -> List[CohortEntry]:
        """
        Patients whose latest vitals, results or clearance are not Normal.

        Sources are folded in the order vitals, results, consultations.
        Each entry keeps its most severe status, a de-duplicated factor
        list and the most recent check-up date; the status is finally
        raised to the patient's combined level. Critical entries sort first.
        """
        entries: Dict[Hashable, CohortEntry] = {}

        def _update(uuid: Hashable, status: RiskLevel, factor: str, checkup: Any) -> None:
            checkup_at = parse_record_date(checkup)
            entry = entries.get(uuid)
            if entry is None:
                entries[uuid] = CohortEntry(
                    uuid=uuid,
                    name=name_map.get(uuid) or UNKNOWN_PATIENT,
                    status=status,
                    chronic_factors=[factor],
                    last_checkup=checkup,
                    last_checkup_at=checkup_at,
                )
                return

            entry.status = RiskLevel.highest(entry.status, status)
            if factor not in entry.chronic_factors:
                entry.chronic_factors.append(factor)
            if checkup_at is not None and (entry.last_checkup_at is None or checkup_at > entry.last_checkup_at):
                entry.last_checkup = checkup
                entry.last_checkup_at = checkup_at

        for uuid, vital in vitals.items():
            assessment = self.rules.calculate_vital_risk(vital)
            if assessment.risk is not RiskLevel.NORMAL:
                for factor in assessment.factors:
                    _update(uuid, assessment.risk, factor, vital.get("date_of_check"))

        for uuid, result in results.items():
            assessment = self.rules.calculate_lab_risk(result)
            if assessment.risk is not RiskLevel.NORMAL:
                for factor in assessment.factors:
                    _update(uuid, assessment.risk, factor, result.get("created_at"))

        for uuid, consultation in consultations.items():
            clearance = RiskLevel.from_value(consultation.get("medical_clearance"))
            if clearance in (RiskLevel.AT_RISK, RiskLevel.CRITICAL):
                factor_text = ", ".join(clearance_factors(consultation, clearance))
                _update(uuid, clearance, factor_text, consultation.get("date_of_check"))

        cohort = []
        for entry in entries.values():
            entry.status = RiskLevel.highest(entry.status, risk_map.get(entry.uuid))
            if entry.status is not RiskLevel.NORMAL:
                cohort.append(entry)

        return sorted(cohort, key=lambda entry: entry.status is not RiskLevel.CRITICAL)

    def build_department_risk_mix(
        self,
        patients: List[Record],
        risk_map: Mapping[Hashable, RiskLevel],
    ) -> List[DepartmentRiskMix]:
        """Green/yellow/red shares per department, most red first."""
        counts: Dict[str, Dict[RiskLevel, int]] = {}
        for patient in patients:
            department = patient_department(patient)
            level = risk_map.get(record_key(patient.get("uuid")), RiskLevel.NORMAL)
            dept_counts = counts.setdefault(department, {level: 0 for level in RiskLevel})
            dept_counts[level] += 1

        mixes = []
        for department, dept_counts in counts.items():
            total = sum(dept_counts.values())
            mix = DepartmentRiskMix(department=department, total=total)
            if total:
                mix.green = dept_counts[RiskLevel.NORMAL] / total
                mix.yellow = dept_counts[RiskLevel.AT_RISK] / total
                mix.red = dept_counts[RiskLevel.CRITICAL] / total
            mixes.append(mix)

        return sorted(mixes, key=lambda mix: (-mix.red, -mix.yellow))

    def build_department_chronic_risk_mix(
        self,
        patients: List[Record],
        consultations: LatestRecords,
    ) -> List[DepartmentChronicMix]:
        """Chronic risk category shares per department, most at-risk first."""
        counts: Dict[str, Counter] = {}
        for patient in patients:
            department = patient_department(patient)
            consultation = consultations.get(record_key(patient.get("uuid"))) or {}
            category = ChronicRiskCategory.classify(consultation.get("chronic_risk_factor"))
            counts.setdefault(department, Counter())[category] += 1

        mixes = []
        for department, dept_counts in counts.items():
            total = sum(dept_counts.values())
            mix = DepartmentChronicMix(department=department, total=total)
            if total:
                for category in ChronicRiskCategory:
                    setattr(mix, category.value, dept_counts[category] / total)
            mixes.append(mix)

        return sorted(mixes, key=lambda mix: -mix.risk_fraction)


def build_dashboard_analytics(
    consultations: Optional[Iterable[Record]] = None,
    results: Optional[Iterable[Record]] = None,
    vitals: Optional[Iterable[Record]] = None,
    patients: Optional[Iterable[Record]] = None,
    rules: Optional[RiskRules] = None,
) -> DashboardAnalytics:
    """Build dashboard analytics with the given (or configured) risk rules."""
    return DashboardAnalyticsBuilder(rules).build(
        consultations=consultations,
        results=results,
        vitals=vitals,
        patients=patients,
    )
