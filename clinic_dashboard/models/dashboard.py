"""
Dashboard API Models
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, Any, List, Optional, Union


class DashboardRecordsRequest(BaseModel):
    """Raw record collections to build analytics from."""
    consultations: List[Dict[str, Any]] = Field(default_factory=list, description="Consultation records keyed by 'uuid'")
    results: List[Dict[str, Any]] = Field(default_factory=list, description="Lab result records keyed by 'user_uuid'")
    vitals: List[Dict[str, Any]] = Field(default_factory=list, description="Vital records keyed by 'user_uuid'")
    patients: List[Dict[str, Any]] = Field(default_factory=list)


class PatientRiskRequest(BaseModel):
    """Latest records of a single patient."""
    vital: Optional[Dict[str, Any]] = None
    result: Optional[Dict[str, Any]] = None
    consultation: Optional[Dict[str, Any]] = None


class RiskAssessmentResponse(BaseModel):
    risk: str
    factors: List[str]


class RiskBucketResponse(BaseModel):
    name: str
    value: int
    color: str


class ChronicFactorResponse(BaseModel):
    name: str
    count: int


class LipidProfileRowResponse(BaseModel):
    """Lipid averages row; keys match the chart's series names."""
    model_config = ConfigDict(populate_by_name=True)

    metric: str
    avg_student: int = Field(alias="Avg Student")
    healthy_limit: Union[int, float] = Field(alias="Healthy Limit")


class BmiBpPointResponse(BaseModel):
    bmi: Union[int, float]
    systolic: Union[int, float]
    user_uuid: Any = None


class CohortEntryResponse(BaseModel):
    uuid: Any = None
    name: str
    status: str
    chronicFactors: List[str]
    chronicFactor: str
    lastCheckup: Any = None
    lastCheckupDisplay: str = "N/A"


class DepartmentRiskMixResponse(BaseModel):
    department: str
    green: float
    yellow: float
    red: float


class DepartmentChronicMixResponse(BaseModel):
    department: str
    smoking: float
    drinking: float
    hypertension: float
    diabetes: float
    none: float


class DashboardResponse(BaseModel):
    """Dashboard analytics as consumed by the dashboard front end."""
    hypertensiveCount: int
    criticalLDLCount: int
    diabeticWatchCount: int
    obesityCount: int
    riskStratification: List[RiskBucketResponse]
    chronicFactors: List[ChronicFactorResponse]
    lipidProfile: List[LipidProfileRowResponse]
    bmiVsBP: List[BmiBpPointResponse]
    atRiskCohort: List[CohortEntryResponse]
    departmentRiskMix: List[DepartmentRiskMixResponse]
    departmentChronicRiskMix: List[DepartmentChronicMixResponse]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: str
