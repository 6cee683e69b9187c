"""
Pipeline settings.

Confidence values and the order of extraction tiers are data, not code: they
live in ConfidenceTable / PipelineSettings and can be overridden from a JSON
file (ARTICLE_INTEL_CONFIG) and a couple of environment variables.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .logger import get_module_logger

logger = get_module_logger("config")

# Tier names understood by the orchestrator
KNOWN_STRATEGIES = ("preprocessed", "ai", "primary", "fallback", "desperate")


class ConfidenceTable(BaseModel):
    """Confidence assigned to a record by the tier that produced it."""
    preprocessed: float = Field(default=0.9, ge=0.0, le=1.0)
    primary: float = Field(default=0.8, ge=0.0, le=1.0)
    fallback: float = Field(default=0.6, ge=0.0, le=1.0)
    desperate: float = Field(default=0.3, ge=0.0, le=1.0)
    stub: float = Field(default=0.0, ge=0.0, le=1.0)
    # AI results are only accepted strictly above this value
    ai_threshold: float = Field(default=0.5, ge=0.0, le=1.0)


class PipelineSettings(BaseModel):
    """Top-level settings for extraction and analysis."""
    confidence: ConfidenceTable = Field(default_factory=ConfidenceTable)
    strategy_order: list[str] = Field(default_factory=lambda: list(KNOWN_STRATEGIES))
    min_content_length: int = Field(default=50, ge=0)
    ai_enabled: bool = False
    log_level: str = "INFO"

    @field_validator("strategy_order")
    @classmethod
    def _check_strategies(cls, value: list[str]) -> list[str]:
        unknown = [s for s in value if s not in KNOWN_STRATEGIES]
        if unknown:
            raise ValueError(f"unknown strategies: {unknown}")
        if not value:
            raise ValueError("strategy_order must not be empty")
        return value

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "PipelineSettings":
        """
        Build settings from an optional JSON file plus environment overrides.

        Args:
            path: JSON settings file. Defaults to $ARTICLE_INTEL_CONFIG when unset.

        Returns:
            Validated PipelineSettings

        Raises:
            ConfigurationError: the file is unreadable or fails validation
        """
        path = path or os.getenv("ARTICLE_INTEL_CONFIG")
        data: dict = {}

        if path:
            config_file = Path(path)
            try:
                data = json.loads(config_file.read_text())
            except (OSError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Cannot read settings file {config_file}: {e}",
                    details={"path": str(config_file)}
                )
            logger.info(f"Loaded settings from {config_file}")

        log_level = os.getenv("ARTICLE_INTEL_LOG_LEVEL")
        if log_level:
            data["log_level"] = log_level

        ai_enabled = os.getenv("ARTICLE_INTEL_AI_ENABLED")
        if ai_enabled is not None:
            data["ai_enabled"] = ai_enabled.strip().lower() in ("1", "true", "yes", "on")

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid pipeline settings: {e}",
                details={"errors": e.errors()}
            )
