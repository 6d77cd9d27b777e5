"""
Configuration Management for the Clinic Risk Dashboard

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List
from pydantic_settings import BaseSettings
from pydantic import Field, ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env file
    )

    # Application
    app_name: str = "Clinic Risk Dashboard"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root level for clinic_dashboard loggers")

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]

    # Record source (clinic records REST API)
    records_api_base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the records API serving patients, vitals, results and consultations"
    )
    records_api_token: Optional[str] = Field(default=None, description="Bearer token for the records API")
    records_request_timeout: float = 10.0

    # Risk thresholds (strictly-greater-than comparisons)
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

    # Lipid healthy limits (mg/dL)
    lipid_total_chol_limit: float = 200
    lipid_hdl_limit: float = 60
    lipid_ldl_limit: float = 100
    lipid_triglycerides_limit: float = 150


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
