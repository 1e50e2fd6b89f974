"""
Tests for waf_builder.core.ip_set and waf_builder.core.regex_pattern_set.
"""

import pytest

from waf_builder.core.errors import StructuralValidationError
from waf_builder.core.ip_set import IPAddressVersion, IPSet
from waf_builder.core.objects import Scope
from waf_builder.core.regex_pattern_set import RegexPatternSet
from waf_builder.core.statements import MatchCondition, Statement
from waf_builder.synth.template import Template


class TestIPSet:
    """Test cases for IP sets."""

    def test_addresses_normalized(self):
        """Test bare addresses become host networks."""
        ip_set = IPSet(name="office", scope=Scope.REGIONAL, addresses=["192.0.2.10", "198.51.100.0/24"])
        assert ip_set.addresses == ["192.0.2.10/32", "198.51.100.0/24"]

    def test_ipv6(self):
        """Test IPv6 sets."""
        ip_set = IPSet(
            name="office-v6",
            scope=Scope.CLOUDFRONT,
            ip_address_version=IPAddressVersion.IPV6,
            addresses=["2001:db8::1"],
        )
        assert ip_set.addresses == ["2001:db8::1/128"]

    def test_invalid_cidr(self):
        """Test malformed and host-bit CIDRs are rejected."""
        with pytest.raises(StructuralValidationError, match="Invalid CIDR notation"):
            IPSet(name="bad", scope=Scope.REGIONAL, addresses=["300.1.1.1"])
        with pytest.raises(StructuralValidationError, match="Invalid CIDR notation"):
            IPSet(name="bad", scope=Scope.REGIONAL, addresses=["10.0.0.1/24"])

    def test_version_mismatch(self):
        """Test addresses must match the declared version."""
        with pytest.raises(StructuralValidationError, match="IPV4"):
            IPSet(name="mixed", scope=Scope.REGIONAL, addresses=["2001:db8::/32"])

    def test_empty_set_allowed(self):
        """Test an IP set may start empty."""
        assert IPSet(name="empty", scope=Scope.REGIONAL, addresses=[]).to_cfn()["Addresses"] == []

    def test_emit_and_match(self):
        """Test emitting the set and matching against its ARN."""
        template = Template()
        handle = IPSet(name="block-list", scope=Scope.REGIONAL, addresses=["203.0.113.0/24"]).emit(template)
        assert handle.logical_id == "BlockListIPSet"
        resource = template.resource("BlockListIPSet")
        assert resource["Type"] == "AWS::WAFv2::IPSet"
        assert resource["Properties"] == {
            "Name": "block-list",
            "Scope": "REGIONAL",
            "IPAddressVersion": "IPV4",
            "Addresses": ["203.0.113.0/24"],
        }
        statement = Statement.ip_set_match(handle)
        assert statement.to_cfn() == {
            "IPSetReferenceStatement": {"Arn": {"Fn::GetAtt": ["BlockListIPSet", "Arn"]}}
        }


class TestRegexPatternSet:
    """Test cases for regex pattern sets."""

    def test_to_cfn(self):
        """Test the pattern set record."""
        pattern_set = RegexPatternSet(
            name="bad-agents",
            scope=Scope.REGIONAL,
            regular_expressions=["^curl/.*"],
            description="Scripted clients",
        )
        assert pattern_set.to_cfn() == {
            "Name": "bad-agents",
            "Description": "Scripted clients",
            "Scope": "REGIONAL",
            "RegularExpressionList": ["^curl/.*"],
        }

    def test_needs_expressions(self):
        """Test empty lists and empty expressions fail."""
        with pytest.raises(StructuralValidationError):
            RegexPatternSet(name="empty", scope=Scope.REGIONAL, regular_expressions=[])
        with pytest.raises(StructuralValidationError):
            RegexPatternSet(name="blank", scope=Scope.REGIONAL, regular_expressions=[""])

    def test_emit_and_reference(self):
        """Test a match condition can reference the emitted set."""
        template = Template()
        handle = RegexPatternSet(
            name="bad-agents", scope=Scope.REGIONAL, regular_expressions=["^curl/.*"]
        ).emit(template)
        assert handle.logical_id == "BadAgentsRegexPatternSet"
        condition = MatchCondition.regex_pattern_set(handle)
        assert condition.condition_fields() == {
            "Arn": {"Fn::GetAtt": ["BadAgentsRegexPatternSet", "Arn"]}
        }
