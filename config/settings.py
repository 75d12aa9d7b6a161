# cabinet_project_root/config/settings.py
# CENTRALIZED CONFIGURATION HUB

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Literal

from pydantic import BaseModel, DirectoryPath, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

settings_logger = logging.getLogger(__name__)

# --- Nested Models for Structured Configuration ---
class ThresholdsConfig(BaseModel):
    bmi_underweight_upper: float = 18.5; bmi_normal_upper: float = 25.0; bmi_overweight_upper: float = 30.0
    age_minor_upper: int = 18; age_young_adult_upper: int = 30; age_adult_upper: int = 50; age_senior_upper: int = 65
    obesity_alert_bmi: float = 30.0; elderly_alert_age: int = 65
    default_stock_minimum: int = 10

class DashboardConfig(BaseModel):
    top_n_medications: int = 10
    min_medication_token_length: int = 3
    unspecified_label: str = "Unspecified"
    snapshot_cache_ttl_seconds: int = 300

# --- Main Settings Class ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='CABINET_', case_sensitive=False, env_file='.env', env_file_encoding='utf-8', extra='ignore')

    PROJECT_ROOT_DIR: DirectoryPath = Path(__file__).resolve().parent.parent
    APP_NAME: str = "Cabinet Patient Registry"; APP_VERSION: str = "1.2.0"
    ORGANIZATION_NAME: str = "Association Medical Practice"; SUPPORT_CONTACT_INFO: str = "support@cabinet.local"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    ASSETS_DIR: Path
    STYLE_CSS_PATH: Path
    DATABASE_URL: str
    DATABASE_ECHO: bool = False

    @model_validator(mode='before')
    @classmethod
    def set_default_paths(cls, values: Any) -> Any:
        if isinstance(values, dict):
            root = Path(values.get('PROJECT_ROOT_DIR', Path(__file__).resolve().parent.parent))
            assets = root / "assets"
            values.setdefault('ASSETS_DIR', assets); values.setdefault('STYLE_CSS_PATH', assets / "style.css")
            values.setdefault('DATABASE_URL', f"sqlite:///{root / 'cabinet.db'}")
        return values

    THRESHOLDS: ThresholdsConfig = ThresholdsConfig(); DASHBOARD: DashboardConfig = DashboardConfig()

    DEFAULT_SPECIALTIES: List[str] = ['Cardiologie', 'Diabétologie', 'Médecine générale', 'Pédiatrie', 'Gynécologie']
    DEFAULT_MEDICATION_FAMILIES: List[str] = ['Antalgiques', 'Antibiotiques', 'Antidiabétiques', 'Antihypertenseurs']
    RANDOM_SEED: int = 42

    COLOR_PRIMARY: str = "#2563EB"; COLOR_SECONDARY: str = "#546E7A"; COLOR_ACCENT: str = "#8B5CF6"
    COLOR_BACKGROUND_CONTENT: str = "#FFFFFF"
    COLOR_TEXT_PRIMARY: str = "#343A40"; COLOR_TEXT_HEADINGS: str = "#1A2557"; COLOR_TEXT_MUTED: str = "#6C757D"
    COLOR_RISK_HIGH: str = "#EF4444"; COLOR_RISK_MODERATE: str = "#F59E0B"; COLOR_RISK_LOW: str = "#10B981"
    PLOTLY_COLORWAY: List[str] = ['#3B82F6', '#EF4444', '#10B981', '#F59E0B', '#8B5CF6', '#EC4899', '#06B6D4', '#84CC16']

    @computed_field
    @property
    def STOCK_STATUS_COLORS(self) -> dict: return {"Out of stock": self.COLOR_RISK_HIGH, "Low stock": self.COLOR_RISK_MODERATE, "Available": self.COLOR_RISK_LOW}

    @computed_field
    @property
    def APP_FOOTER_TEXT(self) -> str: return f"© {datetime.now().year} {self.ORGANIZATION_NAME}. Patient records & pharmacy inventory."

try:
    settings = Settings()
    settings_logger.info(f"Cabinet settings loaded successfully. App: {settings.APP_NAME} v{settings.APP_VERSION}")
except Exception as e:
    settings_logger.critical(f"FATAL: Could not initialize Pydantic settings. Error: {e}", exc_info=True)
    raise
