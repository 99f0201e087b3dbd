"""Runtime configuration for htn-colony."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="HTN_COLONY_", env_file=".env", extra="ignore")

    app_name: str = "htn-colony"
    log_level: str = "INFO"

    max_params: int = Field(default=5, ge=1, description="Capacity of operator and method parameter lists.")
    max_depth: int = Field(
        default=400,
        ge=1,
        description="Deepest decomposition the planner explores before raising DepthExceeded.",
    )
    planning_deadline_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Wall-clock budget of one planning call; unlimited when unset.",
    )
    planning_node_budget: int | None = Field(
        default=None,
        ge=1,
        description="Number of search nodes one planning call may visit; unlimited when unset.",
    )

    grid_width: int = Field(default=24, ge=2)
    grid_height: int = Field(default=16, ge=2)
    water_ratio: float = Field(default=0.12, ge=0.0, lt=1.0)
    worker_count: int = Field(default=3, ge=0)
    tree_count: int = Field(default=12, ge=0)
    base_x: int = 2
    base_y: int = 2
    chop_ticks: int = Field(default=3, ge=1, description="Ticks a worker spends chopping one tree.")
    trips_per_plan: int = Field(default=1, ge=1, description="Wood deliveries planned per work shift.")
    seed: int | None = Field(default=None, description="Random seed for map generation and spawning.")

    plan_history_path: str | None = Field(
        default=None,
        description="JSONL file receiving one record per planning call; kept in memory when unset.",
    )


settings = Settings()
