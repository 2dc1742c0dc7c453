"""Application configuration schema and validation."""

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GridSpec(BaseModel):
    """Geometry of one grid size: total addressable cells and stop points."""

    total_cells: int = Field(
        ...,
        ge=4,
        description="Total addressable positions in the grid (2x2 or larger)",
    )
    stop_point_count: int = Field(
        ...,
        ge=1,
        description="Positions that end a round in failure",
    )

    @model_validator(mode="after")
    def validate_safe_cells(self) -> "GridSpec":
        """Ensure at least one safe cell remains."""
        if self.stop_point_count >= self.total_cells:
            raise ValueError(
                f"stop_point_count ({self.stop_point_count}) must be < "
                f"total_cells ({self.total_cells})"
            )
        return self


class AppConfig(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    house_edge: float = Field(
        default=0.94,
        gt=0.0,
        le=1.0,
        description="Fraction of fair odds paid out (0.94 = 94% long-run return)",
    )
    grids: dict[str, GridSpec] = Field(
        default={
            "3": GridSpec(total_cells=9, stop_point_count=1),
            "4": GridSpec(total_cells=16, stop_point_count=2),
        },
        description="Grid-size identifier to grid geometry (JSON in GRIDS)",
    )
    default_grid_size: str = Field(
        default="3",
        description="Grid used when a caller does not name one",
    )
    initial_balance: float = Field(
        default=100000.0,
        gt=0.0,
        description="Default starting balance for simulations",
    )
    default_bet: float = Field(
        default=1.0,
        gt=0.0,
        description="Default bet per simulated round",
    )
    min_bet: float = Field(
        default=0.10,
        gt=0.0,
        description="Smallest bet accepted by the CLI",
    )
    max_bet: float = Field(
        default=500.0,
        gt=0.0,
        description="Largest bet accepted by the CLI",
    )
    default_rounds: int = Field(
        default=10000,
        ge=1,
        description="Default number of simulated rounds",
    )
    default_target_step: int = Field(
        default=3,
        ge=1,
        description="Default cash-out step for simulations",
    )
    sim_workers: int | None = Field(
        default=None,
        ge=1,
        description="Process pool size for sharded simulation (None = CPU count)",
    )
    rtp_tolerance: float = Field(
        default=0.01,
        gt=0.0,
        lt=1.0,
        description="Allowed |measured - theoretical| RTP in verification runs",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("max_bet")
    @classmethod
    def validate_max_bet(cls, v: float, info) -> float:
        """Ensure max_bet >= min_bet."""
        if "min_bet" in info.data and v < info.data["min_bet"]:
            raise ValueError("max_bet must be >= min_bet")
        return v

    @model_validator(mode="after")
    def validate_default_grid(self) -> "AppConfig":
        """Ensure the default grid is one of the configured grids."""
        if self.default_grid_size not in self.grids:
            raise ValueError(
                f"default_grid_size {self.default_grid_size!r} not in grids: "
                f"{sorted(self.grids)}"
            )
        return self


_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create the singleton AppConfig instance."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config


def reset_config() -> None:
    """Drop the cached AppConfig so the next get_config() re-reads the environment."""
    global _config
    _config = None
