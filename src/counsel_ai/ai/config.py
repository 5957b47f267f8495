"""AI stack configuration with sensible defaults.

All parameters can be overridden via ``config/ai.yaml``.
If the file does not exist, defaults are used.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator


class ModelTier(str, Enum):
    """Named capability tiers; mapped to provider model ids by config."""

    FAST = "fast"
    BALANCED = "balanced"
    POWERFUL = "powerful"


class RetryConfig(BaseModel):
    """Exponential backoff policy for outbound model calls."""

    max_attempts: int = Field(default=3, ge=1)
    initial_delay_ms: float = Field(default=1000, ge=0)
    max_delay_ms: float = Field(default=10000, ge=0)
    backoff_multiplier: float = Field(default=2, ge=1)
    retryable_error_codes: list[str] = [
        "ECONNRESET",
        "ETIMEDOUT",
        "ENOTFOUND",
        "ECONNREFUSED",
        "NETWORK_ERROR",
    ]


class ModelPricing(BaseModel):
    """USD price per 1M tokens."""

    input_per_1m: float = 0.0
    output_per_1m: float = 0.0


class GatewayConfig(BaseModel):
    """Model tier mapping and transport limits for the completion provider."""

    model_tiers: dict[ModelTier, str] = {
        ModelTier.FAST: "gemini-2.5-flash-lite",
        ModelTier.BALANCED: "gemini-2.5-flash",
        ModelTier.POWERFUL: "gemini-2.5-pro",
    }
    # Must stay below the enclosing HTTP request timeout
    request_timeout_seconds: float = Field(default=50.0, gt=0)
    default_max_tokens: int = Field(default=4096, gt=0)
    pricing: dict[str, ModelPricing] = {
        "gemini-2.5-flash-lite": ModelPricing(input_per_1m=0.10, output_per_1m=0.40),
        "gemini-2.5-flash": ModelPricing(input_per_1m=0.30, output_per_1m=2.50),
        "gemini-2.5-pro": ModelPricing(input_per_1m=1.25, output_per_1m=10.00),
    }

    @model_validator(mode="after")
    def all_tiers_mapped(self) -> "GatewayConfig":
        missing = [tier.value for tier in ModelTier if tier not in self.model_tiers]
        if missing:
            raise ValueError(f"model_tiers missing tiers: {', '.join(missing)}")
        return self

    def model_for(self, tier: ModelTier | str) -> str:
        return self.model_tiers[ModelTier(tier)]


class SimilarityConfig(BaseModel):
    """Batching, threshold and TTL parameters for ticket similarity."""

    batch_size: int = Field(default=20, gt=0)
    min_reported_score: int = Field(default=40, ge=0, le=100)
    active_threshold: int = Field(default=60, ge=0, le=100)
    historical_threshold: int = Field(default=80, ge=0, le=100)
    active_ttl_hours: float = Field(default=1, gt=0)
    historical_ttl_hours: float = Field(default=24 * 7, gt=0)
    calls_per_minute: float = Field(default=10, gt=0)
    active_candidate_limit: int = Field(default=100, gt=0)
    comparison_tier: ModelTier = ModelTier.BALANCED
    comparison_max_tokens: int = Field(default=500, gt=0)


class ScheduleConfig(BaseModel):
    """Intervals for the periodic similarity jobs."""

    sweep_interval_hours: float = Field(default=24 * 7, gt=0)
    cleanup_interval_hours: float = Field(default=24, gt=0)


class AIConfig(BaseModel):
    """Top-level AI configuration combining all sub-configs."""

    retry: RetryConfig = RetryConfig()
    gateway: GatewayConfig = GatewayConfig()
    similarity: SimilarityConfig = SimilarityConfig()
    schedule: ScheduleConfig = ScheduleConfig()


def load_ai_config(path: Path) -> AIConfig:
    """Load AI configuration from a YAML file.

    If the file does not exist, returns an ``AIConfig`` with all
    default values.  Partial overrides are supported -- only the keys
    present in the YAML file will override defaults.
    """
    if not path.exists():
        return AIConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return AIConfig(**data)
