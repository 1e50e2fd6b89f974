"""
Configuration management for waf_builder.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

from ..synth.base import RemovalPolicy
from .capacity import CapacityCostTable, default_cost_table
from .logging_config import get_logger

logger = get_logger(__name__)

CONFIG_SECTION = "waf_builder"


def default_config_path() -> Path:
    return Path.home() / ".waf-builder" / "config.yaml"


class BuilderConfig(BaseModel):
    """Defaults applied when a stack definition leaves them out."""

    log_retention_days: int = 30
    removal_policy: RemovalPolicy = Field(default=RemovalPolicy.RETAIN)
    template_description: Optional[str] = None
    # YAML file with capacity cost overrides.
    cost_table_file: Optional[Path] = None

    @classmethod
    def load_from_file(cls, config_path: Optional[Path] = None) -> "BuilderConfig":
        """Load configuration from YAML file."""
        if config_path is None:
            config_path = default_config_path()

        if not config_path.exists():
            logger.info(
                "Config file not found at %s, using defaults and environment variables", config_path
            )
            return cls.load_from_env()

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**(data.get(CONFIG_SECTION) or {}))
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)
            return cls.load_from_env()

    @classmethod
    def load_from_env(cls) -> "BuilderConfig":
        """Load configuration from environment variables."""
        settings = {}

        retention = os.getenv("WAF_BUILDER_LOG_RETENTION_DAYS")
        if retention:
            try:
                settings["log_retention_days"] = int(retention)
            except ValueError:
                logger.warning("Invalid WAF_BUILDER_LOG_RETENTION_DAYS: %s, using 30", retention)

        removal_policy = os.getenv("WAF_BUILDER_REMOVAL_POLICY")
        if removal_policy:
            try:
                settings["removal_policy"] = RemovalPolicy(removal_policy.capitalize())
            except ValueError:
                logger.warning("Invalid WAF_BUILDER_REMOVAL_POLICY: %s, using Retain", removal_policy)

        cost_table_file = os.getenv("WAF_BUILDER_COST_TABLE")
        if cost_table_file:
            settings["cost_table_file"] = Path(cost_table_file)

        description = os.getenv("WAF_BUILDER_TEMPLATE_DESCRIPTION")
        if description:
            settings["template_description"] = description

        return cls(**settings)

    def cost_table(self) -> CapacityCostTable:
        """The configured cost table, or the service defaults."""
        if self.cost_table_file is None:
            return default_cost_table()
        return CapacityCostTable.load_from_file(self.cost_table_file)

    def save_to_file(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to YAML file."""
        if config_path is None:
            config_path = default_config_path()

        config_path.parent.mkdir(parents=True, exist_ok=True)

        existing_data = {}
        if config_path.exists():
            with open(config_path) as f:
                existing_data = yaml.safe_load(f) or {}

        existing_data[CONFIG_SECTION] = self.model_dump(mode="json", exclude_none=True)

        with open(config_path, "w") as f:
            yaml.dump(existing_data, f, default_flow_style=False, sort_keys=False)

        logger.info("Configuration saved to %s", config_path)
