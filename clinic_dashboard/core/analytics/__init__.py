"""
Analytics Module

Aggregates risk classifications over clinic records into dashboard summaries.
"""
from .summaries import (
    ChronicRiskCategory,
    KpiCounts,
    RiskBucket,
    ChronicFactorCount,
    LipidProfileRow,
    BmiBpPoint,
    CohortEntry,
    DepartmentRiskMix,
    DepartmentChronicMix,
    DashboardAnalytics,
)
from .dashboard import (
    RECORD_KEYS,
    DashboardAnalyticsBuilder,
    build_dashboard_analytics,
    latest_records,
)

__all__ = [
    "ChronicRiskCategory",
    "KpiCounts",
    "RiskBucket",
    "ChronicFactorCount",
    "LipidProfileRow",
    "BmiBpPoint",
    "CohortEntry",
    "DepartmentRiskMix",
    "DepartmentChronicMix",
    "DashboardAnalytics",
    "RECORD_KEYS",
    "DashboardAnalyticsBuilder",
    "build_dashboard_analytics",
    "latest_records",
]
