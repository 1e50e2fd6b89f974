"""
Tests for waf_builder.core.rule_group module.
"""

import pytest

from waf_builder.core.actions import RuleAction
from waf_builder.core.capacity import CapacityCostTable
from waf_builder.core.errors import CapacityError, DuplicateRuleNameError, StructuralValidationError
from waf_builder.core.objects import Scope
from waf_builder.core.rule_group import RuleGroup, RuleGroupReference
from waf_builder.core.rules import Rule
from waf_builder.core.statements import FieldToMatch, MatchCondition, Statement
from waf_builder.synth.template import Template


@pytest.fixture
def rules():
    """A geo rule (1 WCU) and an XSS rule on the body (40 WCU)."""
    return [
        Rule.regular("geo", RuleAction.block(), Statement.geo_match(["RU"])),
        Rule.regular(
            "xss",
            RuleAction.block(),
            Statement.inspect(FieldToMatch.body(), MatchCondition.xss()),
        ),
    ]


class TestRuleGroup:
    """Test cases for the RuleGroup model."""

    def test_capacity_defaults_to_required(self, rules):
        """Test omitted capacity equals the sum of rule costs."""
        group = RuleGroup(name="hygiene", scope=Scope.REGIONAL, rules=rules)
        assert group.capacity == 41
        assert group.required_capacity == 41

    def test_explicit_capacity_above_required(self, rules):
        """Test a larger explicit capacity is kept as given."""
        group = RuleGroup(name="hygiene", scope=Scope.REGIONAL, rules=rules, capacity=100)
        assert group.capacity == 100
        assert group.to_cfn()["Capacity"] == 100

    def test_explicit_capacity_equal_to_required(self, rules):
        """Test an exact explicit capacity is accepted."""
        assert RuleGroup(name="hygiene", scope=Scope.REGIONAL, rules=rules, capacity=41).capacity == 41

    def test_explicit_capacity_below_required(self, rules):
        """Test a capacity smaller than the rules need fails."""
        with pytest.raises(CapacityError, match="require 41"):
            RuleGroup(name="hygiene", scope=Scope.REGIONAL, rules=rules, capacity=10)

    def test_capacity_bounds(self, rules):
        """Test capacity must lie in 1-1500."""
        with pytest.raises(CapacityError):
            RuleGroup(name="hygiene", scope=Scope.REGIONAL, rules=rules, capacity=1501)
        with pytest.raises(CapacityError):
            RuleGroup(name="empty", scope=Scope.REGIONAL, capacity=0)

    def test_empty_group_gets_minimum_capacity(self):
        """Test a group without rules still has capacity 1."""
        assert RuleGroup(name="empty", scope=Scope.CLOUDFRONT).capacity == 1

    def test_required_capacity_too_large(self):
        """Test computed capacity above the maximum fails."""
        table = CapacityCostTable(geo_match=800)
        rules = [
            Rule.regular(name, RuleAction.block(), Statement.geo_match(["US"]))
            for name in ("a", "b")
        ]
        with pytest.raises(CapacityError, match="1600"):
            RuleGroup(name="big", scope=Scope.REGIONAL, rules=rules, cost_table=table)

    def test_duplicate_rule_names(self, rules):
        """Test duplicate names are rejected."""
        with pytest.raises(DuplicateRuleNameError):
            RuleGroup(name="dup", scope=Scope.REGIONAL, rules=rules + [rules[0]])

    def test_rules_as_set_rejected(self, rules):
        """Test unordered rule collections are rejected."""
        with pytest.raises(StructuralValidationError, match="ordered sequence"):
            RuleGroup(name="unordered", scope=Scope.REGIONAL, rules={"geo": rules[0]})

    def test_to_cfn(self, rules):
        """Test the rule group record."""
        record = RuleGroup(
            name="hygiene", scope=Scope.REGIONAL, rules=rules, tags={"team": "edge"}
        ).to_cfn()
        assert record["Name"] == "hygiene"
        assert record["Scope"] == "REGIONAL"
        assert [rule["Priority"] for rule in record["Rules"]] == [0, 1]
        assert record["VisibilityConfig"]["MetricName"] == "hygiene"
        assert record["Tags"] == [{"Key": "team", "Value": "edge"}]
        assert "Description" not in record

    def test_caller_data_untouched(self, rules):
        """Test that building from a dict does not modify it."""
        data = {"name": "hygiene", "scope": "REGIONAL", "rules": rules}
        RuleGroup(**data)
        assert "visibility_config" not in data
        assert "capacity" not in data


class TestRuleGroupEmission:
    """Test cases for emitting rule groups and referencing them."""

    def test_emit(self, rules):
        """Test the group lands in the template under a derived logical ID."""
        template = Template()
        handle = RuleGroup(name="api-hygiene", scope=Scope.REGIONAL, rules=rules).emit(template)
        assert handle.logical_id == "ApiHygieneRuleGroup"
        assert template.resource("ApiHygieneRuleGroup")["Type"] == "AWS::WAFv2::RuleGroup"
        assert handle.arn == {"Fn::GetAtt": ["ApiHygieneRuleGroup", "Arn"]}
        assert handle.id == {"Fn::GetAtt": ["ApiHygieneRuleGroup", "Id"]}

    def test_reference_from_handle(self, rules):
        """Test the reference carries the group's name, capacity and scope."""
        template = Template()
        handle = RuleGroup(name="api-hygiene", scope=Scope.REGIONAL, rules=rules).emit(template)
        reference = handle.reference(excluded_rules=["geo"], override_to_count=True)
        assert reference.name == "api-hygiene"
        assert reference.capacity_units == 41
        assert reference.scope == Scope.REGIONAL
        record = reference.to_cfn(2)
        assert record["Statement"] == {
            "RuleGroupReferenceStatement": {
                "Arn": {"Fn::GetAtt": ["ApiHygieneRuleGroup", "Arn"]},
                "ExcludedRules": [{"Name": "geo"}],
            }
        }
        assert record["OverrideAction"] == {"Count": {}}

    def test_reference_with_literal_arn(self):
        """Test a reference to a group deployed elsewhere."""
        reference = RuleGroupReference(
            name="shared",
            arn="arn:aws:wafv2:us-east-1:123456789012:regional/rulegroup/shared/abc",
            capacity_units=50,
        )
        assert reference.capacity(CapacityCostTable()) == 50
        assert reference.to_cfn(0)["OverrideAction"] == {"None": {}}

    def test_reference_requires_positive_capacity(self):
        """Test capacity_units must be positive."""
        with pytest.raises(StructuralValidationError):
            RuleGroupReference(name="shared", arn="arn:aws:wafv2:::x", capacity_units=0)
