"""
Tests for waf_builder.core.rules module.
"""

import pytest
from pydantic import ValidationError

from waf_builder.core.actions import RuleAction
from waf_builder.core.errors import StructuralValidationError
from waf_builder.core.objects import VisibilityConfig
from waf_builder.core.rules import Rule
from waf_builder.core.statements import (
    AggregateKeyType,
    ForwardedIPConfig,
    RateLimitStatement,
    Statement,
)


class TestRegularRule:
    """Test cases for regular rules."""

    def test_default_visibility_config(self):
        """Test that metrics default to enabled under the rule name."""
        rule = Rule.regular("geo-block", RuleAction.block(), Statement.geo_match(["KP"]))
        assert rule.visibility_config == VisibilityConfig(metric_name="geo-block")
        assert rule.visibility_config.cloud_watch_metrics_enabled
        assert rule.visibility_config.sampled_requests_enabled

    def test_to_cfn(self):
        """Test the rule record with its assigned priority."""
        rule = Rule.regular("geo-block", RuleAction.block(), Statement.geo_match(["KP"]))
        assert rule.to_cfn(3) == {
            "Name": "geo-block",
            "Priority": 3,
            "Statement": {"GeoMatchStatement": {"CountryCodes": ["KP"]}},
            "Action": {"Block": {}},
            "VisibilityConfig": {
                "CloudWatchMetricsEnabled": True,
                "MetricName": "geo-block",
                "SampledRequestsEnabled": True,
            },
        }

    def test_labels(self):
        """Test that labels are emitted as rule labels."""
        rule = Rule.regular(
            "tag-bots",
            RuleAction.count(),
            Statement.label_match("awswaf:managed:aws:bot-control:bot:category:http_library"),
            labels=["custom:bot"],
        )
        assert rule.to_cfn(0)["RuleLabels"] == [{"Name": "custom:bot"}]

    def test_invalid_label(self):
        """Test that labels are validated."""
        with pytest.raises(StructuralValidationError, match="Invalid label"):
            Rule.regular("r", RuleAction.count(), Statement.geo_match(["US"]), labels=["bad label"])

    def test_invalid_name(self):
        """Test that rule names are validated."""
        with pytest.raises(StructuralValidationError, match="Invalid rule name"):
            Rule.regular("bad/name", RuleAction.allow(), Statement.geo_match(["US"]))

    def test_captcha_immunity_time(self):
        """Test that a captcha action emits the rule's captcha config."""
        rule = Rule.regular(
            "login-captcha",
            RuleAction.captcha(immunity_time_seconds=600),
            Statement.geo_match(["US"], negate=True),
        )
        assert rule.to_cfn(0)["CaptchaConfig"] == {"ImmunityTimeProperty": {"ImmunityTime": 600}}

    def test_from_raw_data(self):
        """Test building a rule from plain data, as loaded from YAML."""
        rule = Rule(
            name="raw",
            action={"type": "count"},
            statement={"kind": "geo_match", "country_codes": ["FR"]},
        )
        assert rule.to_cfn(0)["Action"] == {"Count": {}}

    def test_unknown_action_type(self):
        """Test that unknown action types are rejected."""
        with pytest.raises(ValidationError):
            Rule(name="raw", action={"type": "drop"}, statement={"kind": "geo_match", "country_codes": ["FR"]})

    def test_response_bodies_keyed_by_rule_name(self):
        """Test that a custom response body defaults to the rule name as key."""
        rule = Rule.regular(
            "deny",
            RuleAction.block(response_body={"content_type": "TEXT_PLAIN", "content": "denied"}),
            Statement.geo_match(["US"]),
        )
        assert list(rule.response_bodies()) == ["deny"]
        assert rule.to_cfn(0)["Action"]["Block"]["CustomResponse"]["CustomResponseBodyKey"] == "deny"


class TestRateBasedRule:
    """Test cases for rate-based rules."""

    def test_rate_based_defaults(self):
        """Test a rate-based rule with limit 500 blocks by default."""
        rule = Rule.rate_based("limit-500", 500)
        assert rule.is_rate_based
        assert isinstance(rule.statement, RateLimitStatement)
        assert rule.statement.limit == 500
        assert rule.statement.evaluation_window_sec == 300
        record = rule.to_cfn(0)
        assert record["Action"] == {"Block": {}}
        assert record["Statement"]["RateBasedStatement"]["Limit"] == 500

    def test_rate_based_options(self):
        """Test window, aggregation and action overrides."""
        rule = Rule.rate_based(
            "limit-forwarded",
            1000,
            evaluation_window_sec=60,
            aggregate_key_type=AggregateKeyType.FORWARDED_IP,
            forwarded_ip_config=ForwardedIPConfig(),
            action=RuleAction.count(),
        )
        body = rule.to_cfn(1)["Statement"]["RateBasedStatement"]
        assert body["EvaluationWindowSec"] == 60
        assert body["AggregateKeyType"] == "FORWARDED_IP"
        assert rule.to_cfn(1)["Action"] == {"Count": {}}

    def test_regular_rule_is_not_rate_based(self):
        """Test is_rate_based on a regular rule."""
        rule = Rule.regular("r", RuleAction.allow(), Statement.geo_match(["US"]))
        assert not rule.is_rate_based
