"""Application configuration from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from journeymap.engine.config import AssemblyConfig, IntersectionPolicy, LaneOrdering


class Settings(BaseSettings):
    anthropic_api_key: str = ""
    journeymap_env: str = "development"
    journeymap_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:3000"]

    # Model routing
    model_cheap: str = "claude-haiku-4-5-20251001"
    model_mid: str = "claude-sonnet-4-5-20250929"
    model_frontier: str = "claude-sonnet-4-5-20250929"
    llm_max_tokens: int = 16000

    # Assembly policies
    intersection_policy: IntersectionPolicy = IntersectionPolicy.KEEP_ALL
    lane_ordering: LaneOrdering = LaneOrdering.ORDER
    min_intersection_nodes: int = 2

    # Undo depth per journey
    history_limit: int = 50

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "protected_namespaces": (),
    }

    def assembly_config(self) -> AssemblyConfig:
        return AssemblyConfig(
            lane_ordering=self.lane_ordering,
            intersection_policy=self.intersection_policy,
            min_intersection_nodes=self.min_intersection_nodes,
        )


settings = Settings()
