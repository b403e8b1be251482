"""
Retail Transaction EDA
Centralized Configuration Management

Configuration for the exploratory report using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DataSettings(BaseSettings):
    """Snapshot Locations"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    raw_path: str = Field(
        default="./data/raw/online_retail.parquet",
        description="Raw transaction snapshot"
    )
    curated_path: str = Field(default="./data/curated", description="Output snapshot directory")
    cleaned_file: str = Field(default="online_retail_clean.parquet", description="Cleaned dataset file name")
    timeseries_file: str = Field(default="spend_timeseries.parquet", description="Time series aggregate file name")
    figures_path: Optional[str] = Field(
        default="./reports/figures",
        description="Directory for rendered charts (empty disables saving)"
    )
    show_figures: bool = Field(default=False, description="Display charts interactively")

    @property
    def cleaned_output(self) -> Path:
        """Path of the cleaned dataset snapshot"""
        return Path(self.curated_path) / self.cleaned_file

    @property
    def timeseries_output(self) -> Path:
        """Path of the combined time series snapshot"""
        return Path(self.curated_path) / self.timeseries_file


class ExplorationSettings(BaseSettings):
    """Exploration Thresholds and Column Roles"""

    model_config = SettingsConfigDict(env_prefix="EDA_")

    missing_level_threshold: int = Field(
        default=100,
        description="Discrete columns with more levels than this are not plotted"
    )
    max_categories: int = Field(default=40, description="Levels shown before lumping into 'other'")
    histogram_bins: int = Field(default=50, description="Histogram bin count")
    label_max_length: int = Field(default=25, description="Category label truncation length")
    figure_dpi: int = Field(default=110, description="DPI for saved charts")

    cancellation_prefix: str = Field(default="C", description="Invoice prefix marking a cancellation")
    timestamp_column: str = Field(default="invoice_date", description="Timestamp for calendar features")
    sheet_column: str = Field(default="excel_sheet", description="Source sheet column used for faceting")
    dedup_key: List[str] = Field(
        default=["excel_sheet", "date", "invoice", "stock_code"],
        description="Composite key for duplicate removal"
    )

    @field_validator("missing_level_threshold", "max_categories", "histogram_bins", "label_max_length")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Thresholds must be positive"""
        if v < 1:
            raise ValueError("Value must be a positive integer")
        return v


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="text", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing report configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="retail-eda", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    data: DataSettings = Field(default_factory=DataSettings)
    exploration: ExplorationSettings = Field(default_factory=ExplorationSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
