"""
Tests for waf_builder.core.statements module.
"""

import pytest
from pydantic import ValidationError

from waf_builder.core.capacity import CapacityCostTable
from waf_builder.core.errors import StructuralValidationError
from waf_builder.core.statements import (
    AggregateKeyType,
    CombinatorKind,
    CombinatorStatement,
    FieldToMatch,
    ForwardedIPConfig,
    ForwardedIPPosition,
    GeoMatchStatement,
    LabelMatchScope,
    MatchCondition,
    PositionalConstraint,
    RateLimitStatement,
    SensitivityLevel,
    Statement,
    TextTransformationType,
    build,
)

IP_SET_ARN = "arn:aws:wafv2:us-east-1:123456789012:regional/ipset/blocked/a1b2c3"
PATTERN_SET_ARN = "arn:aws:wafv2:us-east-1:123456789012:regional/regexpatternset/ua/d4e5f6"


class TestAtomicStatements:
    """Test cases for geo, IP set, label and field inspection statements."""

    def test_geo_match(self):
        """Test geo match serialization."""
        statement = Statement.geo_match(["US", "CA"])
        assert statement.to_cfn() == {"GeoMatchStatement": {"CountryCodes": ["US", "CA"]}}

    def test_geo_match_rejects_bad_codes(self):
        """Test that country codes must be two upper-case letters."""
        with pytest.raises(StructuralValidationError, match="Invalid country code"):
            Statement.geo_match(["usa"])
        with pytest.raises(StructuralValidationError, match="at least one country code"):
            Statement.geo_match([])

    def test_negate_wraps_in_not_statement(self):
        """Test that a negated atomic statement serializes under NotStatement."""
        statement = Statement.geo_match(["US"], negate=True)
        assert statement.to_cfn() == {
            "NotStatement": {"Statement": {"GeoMatchStatement": {"CountryCodes": ["US"]}}}
        }

    def test_ip_set_match_with_forwarded_ip(self):
        """Test IP set reference with a forwarded IP position."""
        statement = Statement.ip_set_match(
            IP_SET_ARN,
            forwarded_ip_config=ForwardedIPConfig(position=ForwardedIPPosition.LAST),
        )
        assert statement.to_cfn() == {
            "IPSetReferenceStatement": {
                "Arn": IP_SET_ARN,
                "IPSetForwardedIPConfig": {
                    "HeaderName": "X-Forwarded-For",
                    "FallbackBehavior": "MATCH",
                    "Position": "LAST",
                },
            }
        }

    def test_ip_set_match_accepts_handles(self):
        """Test that anything with an ``arn`` attribute can be referenced."""

        class Handle:
            arn = {"Fn::GetAtt": ["BlockedIPSet", "Arn"]}

        statement = Statement.ip_set_match(Handle())
        assert statement.arn == {"Fn::GetAtt": ["BlockedIPSet", "Arn"]}

    def test_ip_set_match_rejects_non_arn(self):
        """Test that plain strings must be ARNs."""
        with pytest.raises(StructuralValidationError, match="Expected an IP set ARN"):
            Statement.ip_set_match("blocked")

    def test_label_match(self):
        """Test label match serialization."""
        statement = Statement.label_match("awswaf:managed:aws:bot-control", LabelMatchScope.NAMESPACE)
        assert statement.to_cfn() == {
            "LabelMatchStatement": {"Scope": "NAMESPACE", "Key": "awswaf:managed:aws:bot-control"}
        }

    def test_inspect_string_match(self):
        """Test byte match serialization with ordered text transformations."""
        statement = Statement.inspect(
            FieldToMatch.uri_path(),
            MatchCondition.string_match("/admin", PositionalConstraint.STARTS_WITH),
            text_transformations=["URL_DECODE", TextTransformationType.LOWERCASE],
        )
        assert statement.to_cfn() == {
            "ByteMatchStatement": {
                "FieldToMatch": {"UriPath": {}},
                "PositionalConstraint": "STARTS_WITH",
                "SearchString": "/admin",
                "TextTransformations": [
                    {"Priority": 0, "Type": "URL_DECODE"},
                    {"Priority": 1, "Type": "LOWERCASE"},
                ],
            }
        }

    def test_inspect_defaults_to_no_transformation(self):
        """Test that an empty transformation list serializes as NONE."""
        statement = Statement.inspect(FieldToMatch.body(), MatchCondition.sql_injection())
        body = statement.to_cfn()["SqliMatchStatement"]
        assert body["TextTransformations"] == [{"Priority": 0, "Type": "NONE"}]
        assert body["FieldToMatch"] == {"Body": {}}
        assert body["SensitivityLevel"] == "LOW"

    def test_inspect_regex_pattern_set(self):
        """Test regex pattern set references."""
        statement = Statement.inspect(
            FieldToMatch.single_header("User-Agent"),
            MatchCondition.regex_pattern_set(PATTERN_SET_ARN),
        )
        body = statement.to_cfn()["RegexPatternSetReferenceStatement"]
        assert body["Arn"] == PATTERN_SET_ARN
        assert body["FieldToMatch"] == {"SingleHeader": {"Name": "User-Agent"}}

    def test_single_header_requires_name(self):
        """Test that named fields need a name and others refuse one."""
        with pytest.raises(StructuralValidationError, match="requires a name"):
            FieldToMatch(type="SINGLE_HEADER")
        with pytest.raises(StructuralValidationError, match="does not take a name"):
            FieldToMatch(type="URI_PATH", name="x")

    def test_statements_are_immutable(self):
        """Test that statements cannot be modified after construction."""
        statement = Statement.geo_match(["US"])
        with pytest.raises(ValidationError):
            statement.negate = True


class TestRateLimitStatement:
    """Test cases for rate-based statements."""

    def test_defaults(self):
        """Test the default window and aggregation."""
        statement = Statement.rate_limit(500)
        assert statement.to_cfn() == {
            "RateBasedStatement": {
                "Limit": 500,
                "AggregateKeyType": "IP",
                "EvaluationWindowSec": 300,
            }
        }

    def test_limit_must_be_positive(self):
        """Test that limits of zero or less are rejected."""
        with pytest.raises(StructuralValidationError, match="must be positive"):
            Statement.rate_limit(0)

    def test_window_must_be_supported(self):
        """Test that only the supported evaluation windows are accepted."""
        for window in (60, 120, 300, 600):
            assert Statement.rate_limit(100, evaluation_window_sec=window).evaluation_window_sec == window
        with pytest.raises(StructuralValidationError, match="Evaluation window"):
            Statement.rate_limit(100, evaluation_window_sec=30)

    def test_forwarded_ip_requires_config(self):
        """Test that FORWARDED_IP aggregation needs a forwarded IP config."""
        with pytest.raises(StructuralValidationError, match="forwarded IP config"):
            Statement.rate_limit(100, aggregate_key_type=AggregateKeyType.FORWARDED_IP)

        statement = Statement.rate_limit(
            100,
            aggregate_key_type=AggregateKeyType.FORWARDED_IP,
            forwarded_ip_config=ForwardedIPConfig(header_name="X-Client-IP"),
        )
        body = statement.to_cfn()["RateBasedStatement"]
        assert body["ForwardedIPConfig"] == {"HeaderName": "X-Client-IP", "FallbackBehavior": "MATCH"}

    def test_scope_down_statement(self):
        """Test that the scope-down statement is serialized."""
        statement = Statement.rate_limit(100, scope_down_statement=Statement.geo_match(["US"]))
        body = statement.to_cfn()["RateBasedStatement"]
        assert body["ScopeDownStatement"] == {"GeoMatchStatement": {"CountryCodes": ["US"]}}

    def test_cannot_be_nested(self):
        """Test that rate-based statements only appear at the root."""
        with pytest.raises(StructuralValidationError, match="cannot be nested"):
            Statement.all_of(Statement.rate_limit(100), Statement.geo_match(["US"]))
        with pytest.raises(StructuralValidationError, match="cannot be nested"):
            Statement.rate_limit(100, scope_down_statement=Statement.rate_limit(200))


class TestCombinatorStatement:
    """Test cases for ALL / ANY / NONE / ONE combinators."""

    def setup_method(self):
        self.us = Statement.geo_match(["US"])
        self.ca = Statement.geo_match(["CA"])

    def test_all_of(self):
        """Test ALL serializes as an AndStatement."""
        assert Statement.all_of(self.us, self.ca).to_cfn() == {
            "AndStatement": {"Statements": [self.us.to_cfn(), self.ca.to_cfn()]}
        }

    def test_any_of(self):
        """Test ANY serializes as an OrStatement."""
        assert Statement.any_of(self.us, self.ca).to_cfn() == {
            "OrStatement": {"Statements": [self.us.to_cfn(), self.ca.to_cfn()]}
        }

    def test_single_child_collapses(self):
        """Test ALL/ANY with one child serialize as that child."""
        assert Statement.all_of(self.us).to_cfn() == self.us.to_cfn()
        assert Statement.any_of(self.us).to_cfn() == self.us.to_cfn()

    def test_none_of(self):
        """Test NONE negates its child, or the disjunction of its children."""
        assert Statement.none_of(self.us).to_cfn() == {"NotStatement": {"Statement": self.us.to_cfn()}}
        assert Statement.none_of(self.us, self.ca).to_cfn() == {
            "NotStatement": {
                "Statement": {"OrStatement": {"Statements": [self.us.to_cfn(), self.ca.to_cfn()]}}
            }
        }

    def test_one_requires_exactly_one_child(self):
        """Test ONE with two children fails and with one child succeeds."""
        with pytest.raises(StructuralValidationError, match="exactly one"):
            CombinatorStatement(logic=CombinatorKind.ONE, statements=[self.us, self.ca])
        assert Statement.one(self.us).to_cfn() == self.us.to_cfn()

    def test_empty_combinators_rejected(self):
        """Test ALL/ANY/NONE need at least one child."""
        for logic in (CombinatorKind.ALL, CombinatorKind.ANY, CombinatorKind.NONE):
            with pytest.raises(StructuralValidationError, match="at least one"):
                CombinatorStatement(logic=logic, statements=[])

    def test_nested_combinators(self):
        """Test that combinators nest recursively."""
        statement = Statement.all_of(Statement.any_of(self.us, self.ca), Statement.none_of(self.us))
        children = statement.to_cfn()["AndStatement"]["Statements"]
        assert "OrStatement" in children[0]
        assert "NotStatement" in children[1]

    def test_walk_visits_every_node(self):
        """Test that walk yields the whole tree depth first."""
        statement = Statement.all_of(Statement.any_of(self.us, self.ca), self.us)
        kinds = [node.kind for node in statement.walk()]
        assert kinds == ["combinator", "combinator", "geo_match", "geo_match", "geo_match"]


class TestBuild:
    """Test cases for the generic build entry point."""

    def test_build_atomic(self):
        """Test building a statement by kind."""
        statement = build("geo_match", country_codes=["DE"])
        assert isinstance(statement, GeoMatchStatement)

    def test_build_combinator_by_logic(self):
        """Test building combinators by logic name, in any case."""
        statement = build("any", statements=[Statement.geo_match(["DE"]), Statement.geo_match(["FR"])])
        assert statement.logic == CombinatorKind.ANY
        statement = build(CombinatorKind.ONE, statements=[Statement.geo_match(["DE"])])
        assert statement.logic == CombinatorKind.ONE

    def test_build_from_raw_children(self):
        """Test that nested children may be plain dictionaries."""
        statement = build(
            "ALL",
            statements=[
                {"kind": "geo_match", "country_codes": ["US"]},
                {
                    "kind": "field_inspection",
                    "field_to_match": {"type": "QUERY_STRING"},
                    "match_condition": {"type": "xss"},
                },
            ],
        )
        assert len(statement.statements) == 2
        assert "XssMatchStatement" in statement.to_cfn()["AndStatement"]["Statements"][1]

    def test_build_rate_limit(self):
        """Test building a rate-based statement."""
        statement = build("rate_limit", limit=1000, evaluation_window_sec=60)
        assert isinstance(statement, RateLimitStatement)

    def test_unknown_kind(self):
        """Test that unknown kinds are rejected."""
        with pytest.raises(StructuralValidationError, match="Unknown statement kind"):
            build("byte_match")


class TestStatementCapacity:
    """Test cases for statement capacity accounting."""

    def setup_method(self):
        self.table = CapacityCostTable()

    def test_atomic_costs(self):
        """Test the default per-statement costs."""
        assert Statement.geo_match(["US"]).capacity(self.table) == 1
        assert Statement.ip_set_match(IP_SET_ARN).capacity(self.table) == 1
        assert Statement.label_match("a:b").capacity(self.table) == 1

    def test_text_transformations_add_cost(self):
        """Test that each transformation other than NONE adds 10."""
        statement = Statement.inspect(
            FieldToMatch.query_string(),
            MatchCondition.sql_injection(SensitivityLevel.HIGH),
            text_transformations=["URL_DECODE", "HTML_ENTITY_DECODE"],
        )
        assert statement.capacity(self.table) == 30 + 2 * 10
        plain = Statement.inspect(
            FieldToMatch.query_string(), MatchCondition.sql_injection(), text_transformations=["NONE"]
        )
        assert plain.capacity(self.table) == 20

    def test_combinator_is_additive(self):
        """Test that a combinator costs the sum of its children, in any order."""
        xss = Statement.inspect(FieldToMatch.body(), MatchCondition.xss())
        geo = Statement.geo_match(["US"])
        forward = Statement.all_of(xss, geo).capacity(self.table)
        backward = Statement.all_of(geo, xss).capacity(self.table)
        assert forward == backward == 41

    def test_logical_overhead_is_configurable(self):
        """Test that a cost table can charge for logical statements."""
        table = CapacityCostTable(logical_statement=1)
        geo = Statement.geo_match(["US"])
        assert Statement.all_of(geo, geo).capacity(table) == 3
        assert Statement.geo_match(["US"], negate=True).capacity(table) == 2

    def test_rate_limit_includes_scope_down(self):
        """Test rate-based cost plus its scope-down statement."""
        statement = Statement.rate_limit(100, scope_down_statement=Statement.geo_match(["US"]))
        assert statement.capacity(self.table) == 3
