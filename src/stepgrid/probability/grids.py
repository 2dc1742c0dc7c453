"""Grid geometry and the grid-size registry.

GridConfiguration is immutable and is the only grid input the odds model
reads. The registry maps grid-size identifiers ("3", "4", ...) to
configurations built from AppConfig.grids.
"""

from dataclasses import dataclass

from stepgrid.config import AppConfig, get_config
from stepgrid.errors import ConfigurationError


@dataclass(frozen=True)
class GridConfiguration:
    """Immutable geometry of one grid size."""

    name: str  # grid-size identifier, e.g. "3" for 3x3
    total_cells: int
    stop_point_count: int

    def __post_init__(self) -> None:
        if self.total_cells < 4:
            raise ConfigurationError(
                f"Grid {self.name!r}: total_cells must be >= 4 (2x2), got {self.total_cells}"
            )
        if not 0 < self.stop_point_count < self.total_cells:
            raise ConfigurationError(
                f"Grid {self.name!r}: stop_point_count must be in (0, {self.total_cells}), "
                f"got {self.stop_point_count}"
            )

    @property
    def safe_cells(self) -> int:
        """Positions that are not stop points."""
        return self.total_cells - self.stop_point_count


GridLike = GridConfiguration | str | int


def load_grids(config: AppConfig | None = None) -> dict[str, GridConfiguration]:
    """Build the grid registry from configuration.

    Args:
        config: Settings to read (None = process-wide config)

    Returns:
        Mapping of grid-size identifier to GridConfiguration
    """
    config = config or get_config()
    return {
        name: GridConfiguration(
            name=name,
            total_cells=entry.total_cells,
            stop_point_count=entry.stop_point_count,
        )
        for name, entry in config.grids.items()
    }


def resolve_grid(
    grid: GridLike,
    grids: dict[str, GridConfiguration] | None = None,
) -> GridConfiguration:
    """Return the GridConfiguration for a grid or grid-size identifier.

    Args:
        grid: A GridConfiguration (returned unchanged) or an identifier like "3" or 3
        grids: Registry to look identifiers up in (None = load from config)

    Returns:
        The matching GridConfiguration

    Raises:
        ConfigurationError: If the identifier is not registered
    """
    if isinstance(grid, GridConfiguration):
        return grid

    registry = grids if grids is not None else load_grids()
    key = str(grid)
    if key not in registry:
        raise ConfigurationError(
            f"Unknown grid size: {grid!r}. Available: {sorted(registry)}"
        )
    return registry[key]


def validate_house_edge(house_edge: float) -> float:
    """Check that a house edge lies in (0, 1].

    Raises:
        ConfigurationError: If house_edge is outside (0, 1]
    """
    if not 0.0 < house_edge <= 1.0:
        raise ConfigurationError(f"house_edge must be in (0, 1], got {house_edge}")
    return float(house_edge)
