"""Configuration management using Pydantic settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from areascope.analysis.derived import DEFAULT_ACCESSIBILITY_WEIGHTS, DerivedMetricsConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "AreaScope"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Comparison areas
    max_comparison_areas: int = Field(default=8, ge=1)

    # Layers active at startup (JSON list in env, e.g. DEFAULT_ACTIVE_LAYERS=["parks"])
    default_active_layers: list[str] = []

    # Derived metrics
    intersection_tolerance_m: float = Field(default=10.0, gt=0)
    intersection_min_endpoints: int = Field(default=3, ge=2)
    accessibility_weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_ACCESSIBILITY_WEIGHTS)
    )

    def metrics_config(self) -> DerivedMetricsConfig:
        """Derived-metric parameters for the analysis core."""
        return DerivedMetricsConfig(
            intersection_tolerance_m=self.intersection_tolerance_m,
            intersection_min_endpoints=self.intersection_min_endpoints,
            accessibility_weights=dict(self.accessibility_weights),
        )


settings = Settings()
