"""
Dashboard Service - fetches clinic records and builds dashboard analytics
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from clinic_dashboard.core.analytics.dashboard import DashboardAnalyticsBuilder
from clinic_dashboard.core.analytics.summaries import DashboardAnalytics
from clinic_dashboard.core.inference.risk_rules import RiskAssessment, RiskRules, get_default_rules
from clinic_dashboard.services.records import RecordSourceClient

logger = logging.getLogger(__name__)


class DashboardService:
    """
    Service class for the risk dashboard.
    Decouples the analytics engine from FastAPI endpoints and the record source.
    """

    def __init__(
        self,
        record_source: Optional[RecordSourceClient] = None,
        rules: Optional[RiskRules] = None,
    ):
        self.record_source = record_source or RecordSourceClient()
        self.rules = rules or get_default_rules()
        self.builder = DashboardAnalyticsBuilder(self.rules)

    async def fetch_records(self) -> Dict[str, List[Dict[str, Any]]]:
        """Fetch all four collections concurrently; each must finish before analytics run."""
        source = self.record_source
        consultations, results, vitals, patients = await asyncio.gather(
            asyncio.to_thread(source.fetch_consultations),
            asyncio.to_thread(source.fetch_results),
            asyncio.to_thread(source.fetch_vitals),
            asyncio.to_thread(source.fetch_patients),
        )
        return {
            "consultations": consultations,
            "results": results,
            "vitals": vitals,
            "patients": patients,
        }

    async def get_dashboard(self) -> DashboardAnalytics:
        """Fetch current records from the record source and build analytics."""
        records = await self.fetch_records()
        logger.info(
            f"Building dashboard from {len(records['patients'])} patients, "
            f"{len(records['vitals'])} vitals, {len(records['results'])} results, "
            f"{len(records['consultations'])} consultations"
        )
        return self.build_analytics(**records)

    def build_analytics(
        self,
        consultations: Optional[Iterable[Mapping[str, Any]]] = None,
        results: Optional[Iterable[Mapping[str, Any]]] = None,
        vitals: Optional[Iterable[Mapping[str, Any]]] = None,
        patients: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> DashboardAnalytics:
        """Build analytics from records supplied by the caller."""
        return self.builder.build(
            consultations=consultations,
            results=results,
            vitals=vitals,
            patients=patients,
        )

    def assess_patient(
        self,
        vital: Optional[Mapping[str, Any]] = None,
        result: Optional[Mapping[str, Any]] = None,
        consultation: Optional[Mapping[str, Any]] = None,
    ) -> RiskAssessment:
        """Combined risk for one patient's latest vital, result and consultation."""
        return self.rules.calculate_patient_risk(vital=vital, result=result, consultation=consultation)
