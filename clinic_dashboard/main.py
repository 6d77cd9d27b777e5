"""
Clinic Risk Dashboard - FastAPI Application

Main application entry point with API endpoints for:
- Dashboard analytics over clinic records
- Single-patient risk assessment
- Health check
"""
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
load_dotenv()

from clinic_dashboard.config import settings
from clinic_dashboard.models.dashboard import (
    DashboardRecordsRequest,
    DashboardResponse,
    HealthResponse,
    PatientRiskRequest,
    RiskAssessmentResponse,
)
from clinic_dashboard.services.dashboard import DashboardService
from clinic_dashboard.utils import get_logger

logger = get_logger(__name__)


# ---- FastAPI Application ----

app = FastAPI(
    title=settings.app_name,
    description="Risk stratification and dashboard analytics over clinic patient records",
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_dashboard_service = DashboardService()


def get_dashboard_service() -> DashboardService:
    return _dashboard_service


# ---- Endpoints ----

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Service health check."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        timestamp=datetime.now().isoformat(),
    )


@app.post(f"{settings.api_prefix}/dashboard/analytics", response_model=DashboardResponse, tags=["Dashboard"])
async def build_dashboard(request: DashboardRecordsRequest):
    """Build dashboard analytics from record collections in the request body."""
    try:
        analytics = get_dashboard_service().build_analytics(
            consultations=request.consultations,
            results=request.results,
            vitals=request.vitals,
            patients=request.patients,
        )
        return analytics.to_dict()
    except Exception as e:
        logger.error(f"Dashboard analytics failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Dashboard analytics failed: {e}")


@app.get(f"{settings.api_prefix}/dashboard", response_model=DashboardResponse, tags=["Dashboard"])
async def get_dashboard():
    """Fetch current records from the records API and build dashboard analytics."""
    try:
        analytics = await get_dashboard_service().get_dashboard()
        return analytics.to_dict()
    except Exception as e:
        logger.error(f"Dashboard refresh failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Dashboard refresh failed: {e}")


@app.post(f"{settings.api_prefix}/risk/patient", response_model=RiskAssessmentResponse, tags=["Risk"])
async def assess_patient(request: PatientRiskRequest):
    """Combined risk level and factors for one patient's latest records."""
    assessment = get_dashboard_service().assess_patient(
        vital=request.vital,
        result=request.result,
        consultation=request.consultation,
    )
    return assessment.to_dict()


@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.app_name} API starting up...")
    logger.info(f"Records API: {settings.records_api_base_url}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"{settings.app_name} API shutting down...")
    _dashboard_service.record_source.close()


# ---- Run with uvicorn ----
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
