"""
Tests for waf_builder.core.config module.
"""

import pytest
import yaml

from waf_builder.core.config import BuilderConfig
from waf_builder.synth.base import RemovalPolicy

ENV_VARS = (
    "WAF_BUILDER_LOG_RETENTION_DAYS",
    "WAF_BUILDER_REMOVAL_POLICY",
    "WAF_BUILDER_COST_TABLE",
    "WAF_BUILDER_TEMPLATE_DESCRIPTION",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestBuilderConfig:
    """Test cases for BuilderConfig."""

    def test_defaults(self):
        """Test the built-in defaults."""
        config = BuilderConfig()
        assert config.log_retention_days == 30
        assert config.removal_policy == RemovalPolicy.RETAIN
        assert config.template_description is None
        assert config.cost_table().xss_match == 40

    def test_load_from_env(self, monkeypatch):
        """Test settings from environment variables."""
        monkeypatch.setenv("WAF_BUILDER_LOG_RETENTION_DAYS", "90")
        monkeypatch.setenv("WAF_BUILDER_REMOVAL_POLICY", "delete")
        monkeypatch.setenv("WAF_BUILDER_TEMPLATE_DESCRIPTION", "Edge WAF")
        config = BuilderConfig.load_from_env()
        assert config.log_retention_days == 90
        assert config.removal_policy == RemovalPolicy.DELETE
        assert config.template_description == "Edge WAF"

    def test_invalid_env_values_ignored(self, monkeypatch):
        """Test malformed environment values fall back to defaults."""
        monkeypatch.setenv("WAF_BUILDER_LOG_RETENTION_DAYS", "forever")
        monkeypatch.setenv("WAF_BUILDER_REMOVAL_POLICY", "shred")
        config = BuilderConfig.load_from_env()
        assert config.log_retention_days == 30
        assert config.removal_policy == RemovalPolicy.RETAIN

    def test_missing_file_uses_env(self, tmp_path, monkeypatch):
        """Test a missing config file falls back to the environment."""
        monkeypatch.setenv("WAF_BUILDER_LOG_RETENTION_DAYS", "14")
        config = BuilderConfig.load_from_file(tmp_path / "missing.yaml")
        assert config.log_retention_days == 14

    def test_load_from_file(self, tmp_path):
        """Test settings from the waf_builder section of a YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {"waf_builder": {"log_retention_days": 60, "removal_policy": "Delete"}, "other": {}}
            )
        )
        config = BuilderConfig.load_from_file(path)
        assert config.log_retention_days == 60
        assert config.removal_policy == RemovalPolicy.DELETE

    def test_invalid_file_uses_env(self, tmp_path):
        """Test an unparseable file falls back instead of failing."""
        path = tmp_path / "config.yaml"
        path.write_text("waf_builder: [unclosed\n")
        assert BuilderConfig.load_from_file(path) == BuilderConfig()

    def test_save_preserves_other_sections(self, tmp_path):
        """Test saving keeps unrelated sections and reloads the same settings."""
        path = tmp_path / "nested" / "config.yaml"
        path.parent.mkdir()
        path.write_text(yaml.safe_dump({"other": {"key": "value"}}))
        config = BuilderConfig(log_retention_days=7, template_description="Saved")
        config.save_to_file(path)

        saved = yaml.safe_load(path.read_text())
        assert saved["other"] == {"key": "value"}
        assert BuilderConfig.load_from_file(path) == config

    def test_cost_table_file(self, tmp_path):
        """Test a configured cost table file is loaded."""
        path = tmp_path / "costs.yaml"
        path.write_text("geo_match: 4\n")
        config = BuilderConfig(cost_table_file=path)
        assert config.cost_table().geo_match == 4
