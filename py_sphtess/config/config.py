from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library defaults pulled from environment variables (prefix SPHTESS_)."""

    # Tessellation defaults
    tolerance: float = Field(default=1e-10, gt=0.0, description="Numerical tolerance in radians")
    algorithm: str = Field(default="qhull", description="Delaunay algorithm (qhull or brute_force)")
    check_dual_links: bool = Field(default=True, description="Resolve dual links at construction")
    check_cell_areas: bool = Field(default=True, description="Check that cell areas sum to 4 pi")
    on_error_display_nodes: bool = Field(default=False, description="Log the node set on failure")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="plain", description="Logging format (plain or json)")

    model_config = SettingsConfigDict(
        env_prefix="SPHTESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in ("qhull", "brute_force"):
            raise ValueError(f"Unknown Delaunay algorithm: {value}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("plain", "json"):
            raise ValueError(f"Unknown log format: {value}")
        return value


# Instantiate singleton settings object
settings = Settings()
