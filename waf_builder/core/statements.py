"""
Rule statements: boolean expression trees over request-inspection predicates.

A statement is one of a closed set of variants, discriminated by ``kind``.
Atomic predicates (geo, IP set, label, field inspection) can be negated
individually; ``CombinatorStatement`` nests other statements under ALL,
ANY, NONE or ONE logic. Statements are immutable values; the WAF service
evaluates them, this module only preserves and serializes their structure.
"""

import re
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .capacity import CapacityCostTable
from .errors import StructuralValidationError
from .objects import Reference, compact, reference_of, validate_reference

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
RATE_LIMIT_WINDOWS = (60, 120, 300, 600)
MAX_RATE_LIMIT = 2_000_000_000


class FallbackBehavior(str, Enum):
    """What to do when the forwarded IP header is missing or malformed."""

    MATCH = "MATCH"
    NO_MATCH = "NO_MATCH"


class ForwardedIPPosition(str, Enum):
    """Which address in the forwarded IP header an IP set inspects."""

    FIRST = "FIRST"
    LAST = "LAST"
    ANY = "ANY"


class LabelMatchScope(str, Enum):
    LABEL = "LABEL"
    NAMESPACE = "NAMESPACE"


class PositionalConstraint(str, Enum):
    """Where the search string must appear in the inspected component."""

    CONTAINS = "CONTAINS"
    CONTAINS_WORD = "CONTAINS_WORD"
    EXACTLY = "EXACTLY"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"


class ComparisonOperator(str, Enum):
    EQ = "EQ"
    NE = "NE"
    LE = "LE"
    LT = "LT"
    GE = "GE"
    GT = "GT"


class SensitivityLevel(str, Enum):
    LOW = "LOW"
    HIGH = "HIGH"


class AggregateKeyType(str, Enum):
    """How a rate-based statement aggregates request counts."""

    IP = "IP"
    FORWARDED_IP = "FORWARDED_IP"
    CONSTANT = "CONSTANT"


class OversizeHandling(str, Enum):
    CONTINUE = "CONTINUE"
    MATCH = "MATCH"
    NO_MATCH = "NO_MATCH"


class MatchScope(str, Enum):
    ALL = "ALL"
    KEY = "KEY"
    VALUE = "VALUE"


class TextTransformationType(str, Enum):
    NONE = "NONE"
    COMPRESS_WHITE_SPACE = "COMPRESS_WHITE_SPACE"
    HTML_ENTITY_DECODE = "HTML_ENTITY_DECODE"
    LOWERCASE = "LOWERCASE"
    CMD_LINE = "CMD_LINE"
    URL_DECODE = "URL_DECODE"
    BASE64_DECODE = "BASE64_DECODE"
    HEX_DECODE = "HEX_DECODE"
    MD5 = "MD5"
    REPLACE_COMMENTS = "REPLACE_COMMENTS"
    ESCAPE_SEQ_DECODE = "ESCAPE_SEQ_DECODE"
    SQL_HEX_DECODE = "SQL_HEX_DECODE"
    CSS_DECODE = "CSS_DECODE"
    JS_DECODE = "JS_DECODE"
    NORMALIZE_PATH = "NORMALIZE_PATH"
    NORMALIZE_PATH_WIN = "NORMALIZE_PATH_WIN"
    REMOVE_NULLS = "REMOVE_NULLS"
    REPLACE_NULLS = "REPLACE_NULLS"
    BASE64_DECODE_EXT = "BASE64_DECODE_EXT"
    URL_DECODE_UNI = "URL_DECODE_UNI"
    UTF8_TO_UNICODE = "UTF8_TO_UNICODE"


class CombinatorKind(str, Enum):
    """Logic used to combine nested statements."""

    ALL = "ALL"
    ANY = "ANY"
    NONE = "NONE"
    ONE = "ONE"


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ForwardedIPConfig(_Value):
    """Read the client address from a header instead of the request origin."""

    header_name: str = "X-Forwarded-For"
    fallback_behavior: FallbackBehavior = FallbackBehavior.MATCH
    position: Optional[ForwardedIPPosition] = None

    def to_cfn(self, with_position: bool = False) -> Dict[str, Any]:
        result = {
            "HeaderName": self.header_name,
            "FallbackBehavior": self.fallback_behavior.value,
        }
        if with_position:
            result["Position"] = (self.position or ForwardedIPPosition.FIRST).value
        return result


class FieldToMatchType(str, Enum):
    SINGLE_HEADER = "SINGLE_HEADER"
    SINGLE_QUERY_ARGUMENT = "SINGLE_QUERY_ARGUMENT"
    ALL_QUERY_ARGUMENTS = "ALL_QUERY_ARGUMENTS"
    URI_PATH = "URI_PATH"
    QUERY_STRING = "QUERY_STRING"
    BODY = "BODY"
    METHOD = "METHOD"
    HEADERS = "HEADERS"
    COOKIES = "COOKIES"


class FieldToMatch(_Value):
    """The part of a web request to inspect."""

    type: FieldToMatchType
    name: Optional[str] = None
    oversize_handling: Optional[OversizeHandling] = None
    match_scope: MatchScope = MatchScope.ALL

    @model_validator(mode="after")
    def validate_name(self):
        named = (FieldToMatchType.SINGLE_HEADER, FieldToMatchType.SINGLE_QUERY_ARGUMENT)
        if self.type in named and not self.name:
            raise StructuralValidationError(f"{self.type.value} requires a name")
        if self.type not in named and self.name:
            raise StructuralValidationError(f"{self.type.value} does not take a name")
        return self

    @classmethod
    def single_header(cls, name: str) -> "FieldToMatch":
        return cls(type=FieldToMatchType.SINGLE_HEADER, name=name)

    @classmethod
    def single_query_argument(cls, name: str) -> "FieldToMatch":
        return cls(type=FieldToMatchType.SINGLE_QUERY_ARGUMENT, name=name)

    @classmethod
    def all_query_arguments(cls) -> "FieldToMatch":
        return cls(type=FieldToMatchType.ALL_QUERY_ARGUMENTS)

    @classmethod
    def uri_path(cls) -> "FieldToMatch":
        return cls(type=FieldToMatchType.URI_PATH)

    @classmethod
    def query_string(cls) -> "FieldToMatch":
        return cls(type=FieldToMatchType.QUERY_STRING)

    @classmethod
    def method(cls) -> "FieldToMatch":
        return cls(type=FieldToMatchType.METHOD)

    @classmethod
    def body(cls, oversize_handling: Optional[OversizeHandling] = None) -> "FieldToMatch":
        return cls(type=FieldToMatchType.BODY, oversize_handling=oversize_handling)

    @classmethod
    def all_headers(
        cls,
        match_scope: MatchScope = MatchScope.ALL,
        oversize_handling: OversizeHandling = OversizeHandling.CONTINUE,
    ) -> "FieldToMatch":
        return cls(
            type=FieldToMatchType.HEADERS,
            match_scope=match_scope,
            oversize_handling=oversize_handling,
        )

    @classmethod
    def cookies(
        cls,
        match_scope: MatchScope = MatchScope.ALL,
        oversize_handling: OversizeHandling = OversizeHandling.CONTINUE,
    ) -> "FieldToMatch":
        return cls(
            type=FieldToMatchType.COOKIES,
            match_scope=match_scope,
            oversize_handling=oversize_handling,
        )

    def to_cfn(self) -> Dict[str, Any]:
        if self.type == FieldToMatchType.SINGLE_HEADER:
            return {"SingleHeader": {"Name": self.name}}
        if self.type == FieldToMatchType.SINGLE_QUERY_ARGUMENT:
            return {"SingleQueryArgument": {"Name": self.name}}
        if self.type == FieldToMatchType.BODY:
            if self.oversize_handling is None:
                return {"Body": {}}
            return {"Body": {"OversizeHandling": self.oversize_handling.value}}
        if self.type in (FieldToMatchType.HEADERS, FieldToMatchType.COOKIES):
            key = "Headers" if self.type == FieldToMatchType.HEADERS else "Cookies"
            oversize = self.oversize_handling or OversizeHandling.CONTINUE
            return {
                key: {
                    "MatchPattern": {"All": {}},
                    "MatchScope": self.match_scope.value,
                    "OversizeHandling": oversize.value,
                }
            }
        simple = {
            FieldToMatchType.ALL_QUERY_ARGUMENTS: "AllQueryArguments",
            FieldToMatchType.URI_PATH: "UriPath",
            FieldToMatchType.QUERY_STRING: "QueryString",
            FieldToMatchType.METHOD: "Method",
        }
        return {simple[self.type]: {}}


class TextTransformation(_Value):
    type: TextTransformationType

    @classmethod
    def of(cls, value: Union[str, TextTransformationType, "TextTransformation"]) -> "TextTransformation":
        if isinstance(value, TextTransformation):
            return value
        return cls(type=TextTransformationType(value))


# Match conditions for field inspection


class _MatchCondition(_Value):
    statement_key: ClassVar[str]

    def base_cost(self, table: CapacityCostTable) -> int:
        raise NotImplementedError

    def condition_fields(self) -> Dict[str, Any]:
        return {}


class StringMatchCondition(_MatchCondition):
    statement_key: ClassVar[str] = "ByteMatchStatement"

    type: Literal["string_match"] = "string_match"
    search_string: str
    positional_constraint: PositionalConstraint = PositionalConstraint.CONTAINS

    @field_validator("search_string")
    @classmethod
    def validate_search_string(cls, v):
        if not v:
            raise StructuralValidationError("search_string must not be empty")
        return v

    def base_cost(self, table: CapacityCostTable) -> int:
        if self.positional_constraint in (
            PositionalConstraint.CONTAINS,
            PositionalConstraint.CONTAINS_WORD,
        ):
            return table.string_match_contains
        return table.string_match_exact

    def condition_fields(self) -> Dict[str, Any]:
        return {
            "PositionalConstraint": self.positional_constraint.value,
            "SearchString": self.search_string,
        }


class RegexMatchCondition(_MatchCondition):
    statement_key: ClassVar[str] = "RegexMatchStatement"

    type: Literal["regex_match"] = "regex_match"
    regex_string: str

    @field_validator("regex_string")
    @classmethod
    def validate_regex_string(cls, v):
        if not v:
            raise StructuralValidationError("regex_string must not be empty")
        return v

    def base_cost(self, table: CapacityCostTable) -> int:
        return table.regex_match

    def condition_fields(self) -> Dict[str, Any]:
        return {"RegexString": self.regex_string}


class RegexPatternSetCondition(_MatchCondition):
    statement_key: ClassVar[str] = "RegexPatternSetReferenceStatement"

    type: Literal["regex_pattern_set"] = "regex_pattern_set"
    arn: Reference

    @field_validator("arn")
    @classmethod
    def validate_arn(cls, v):
        return validate_reference(v, "regex pattern set ARN")

    def base_cost(self, table: CapacityCostTable) -> int:
        return table.regex_pattern_set_reference

    def condition_fields(self) -> Dict[str, Any]:
        return {"Arn": self.arn}


class SizeMatchCondition(_MatchCondition):
    statement_key: ClassVar[str] = "SizeConstraintStatement"

    type: Literal["size_match"] = "size_match"
    comparison_operator: ComparisonOperator
    size: int

    @field_validator("size")
    @classmethod
    def validate_size(cls, v):
        if v < 0:
            raise StructuralValidationError(f"size must not be negative, got {v}")
        return v

    def base_cost(self, table: CapacityCostTable) -> int:
        return table.size_constraint

    def condition_fields(self) -> Dict[str, Any]:
        return {"ComparisonOperator": self.comparison_operator.value, "Size": self.size}


class SqliMatchCondition(_MatchCondition):
    statement_key: ClassVar[str] = "SqliMatchStatement"

    type: Literal["sql_injection"] = "sql_injection"
    sensitivity_level: SensitivityLevel = SensitivityLevel.LOW

    def base_cost(self, table: CapacityCostTable) -> int:
        if self.sensitivity_level == SensitivityLevel.HIGH:
            return table.sqli_match_high_sensitivity
        return table.sqli_match

    def condition_fields(self) -> Dict[str, Any]:
        return {"SensitivityLevel": self.sensitivity_level.value}


class XssMatchCondition(_MatchCondition):
    statement_key: ClassVar[str] = "XssMatchStatement"

    type: Literal["xss"] = "xss"

    def base_cost(self, table: CapacityCostTable) -> int:
        return table.xss_match


AnyMatchCondition = Annotated[
    Union[
        StringMatchCondition,
        RegexMatchCondition,
        RegexPatternSetCondition,
        SizeMatchCondition,
        SqliMatchCondition,
        XssMatchCondition,
    ],
    Field(discriminator="type"),
]


class MatchCondition:
    """Factories for the conditions a field inspection can apply."""

    @staticmethod
    def string_match(
        search_string: str,
        positional_constraint: PositionalConstraint = PositionalConstraint.CONTAINS,
    ) -> StringMatchCondition:
        return StringMatchCondition(
            search_string=search_string, positional_constraint=positional_constraint
        )

    @staticmethod
    def regex_match(regex_string: str) -> RegexMatchCondition:
        return RegexMatchCondition(regex_string=regex_string)

    @staticmethod
    def regex_pattern_set(pattern_set: Any) -> RegexPatternSetCondition:
        return RegexPatternSetCondition(arn=reference_of(pattern_set))

    @staticmethod
    def size_match(comparison_operator: ComparisonOperator, size: int) -> SizeMatchCondition:
        return SizeMatchCondition(comparison_operator=comparison_operator, size=size)

    @staticmethod
    def sql_injection(
        sensitivity_level: SensitivityLevel = SensitivityLevel.LOW,
    ) -> SqliMatchCondition:
        return SqliMatchCondition(sensitivity_level=sensitivity_level)

    @staticmethod
    def xss() -> XssMatchCondition:
        return XssMatchCondition()


# Statements


class BaseStatement(_Value):
    """Common behaviour of every statement variant."""

    def capacity(self, table: CapacityCostTable) -> int:
        raise NotImplementedError

    def to_cfn(self) -> Dict[str, Any]:
        raise NotImplementedError

    def walk(self):
        """Yield this statement and every nested statement, depth first."""
        yield self


class AtomicStatement(BaseStatement):
    """A single predicate; ``negate`` wraps it in a NotStatement."""

    negate: bool = False

    def _predicate_cost(self, table: CapacityCostTable) -> int:
        raise NotImplementedError

    def _predicate_to_cfn(self) -> Dict[str, Any]:
        raise NotImplementedError

    def capacity(self, table: CapacityCostTable) -> int:
        cost = self._predicate_cost(table)
        if self.negate:
            cost += table.logical_statement
        return cost

    def to_cfn(self) -> Dict[str, Any]:
        predicate = self._predicate_to_cfn()
        if self.negate:
            return {"NotStatement": {"Statement": predicate}}
        return predicate


class GeoMatchStatement(AtomicStatement):
    """Match requests by the country they originate from."""

    kind: Literal["geo_match"] = "geo_match"
    country_codes: List[str]
    forwarded_ip_config: Optional[ForwardedIPConfig] = None

    @field_validator("country_codes")
    @classmethod
    def validate_country_codes(cls, v):
        if not v:
            raise StructuralValidationError("Geo match requires at least one country code")
        for code in v:
            if not COUNTRY_CODE_PATTERN.match(code):
                raise StructuralValidationError(f"Invalid country code: '{code}'")
        return v

    def _predicate_cost(self, table: CapacityCostTable) -> int:
        return table.geo_match

    def _predicate_to_cfn(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"CountryCodes": list(self.country_codes)}
        if self.forwarded_ip_config is not None:
            body["ForwardedIPConfig"] = self.forwarded_ip_config.to_cfn()
        return {"GeoMatchStatement": body}


class IPSetMatchStatement(AtomicStatement):
    """Match requests whose address is in an IP set."""

    kind: Literal["ip_set_match"] = "ip_set_match"
    arn: Reference
    forwarded_ip_config: Optional[ForwardedIPConfig] = None

    @field_validator("arn")
    @classmethod
    def validate_arn(cls, v):
        return validate_reference(v, "IP set ARN")

    def _predicate_cost(self, table: CapacityCostTable) -> int:
        return table.ip_set_reference

    def _predicate_to_cfn(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"Arn": self.arn}
        if self.forwarded_ip_config is not None:
            body["IPSetForwardedIPConfig"] = self.forwarded_ip_config.to_cfn(
                with_position=True
            )
        return {"IPSetReferenceStatement": body}


class LabelMatchStatement(AtomicStatement):
    """Match requests carrying a label added by an earlier rule."""

    kind: Literal["label_match"] = "label_match"
    key: str
    scope: LabelMatchScope = LabelMatchScope.LABEL

    @field_validator("key")
    @classmethod
    def validate_key(cls, v):
        if not v or len(v) > 1024:
            raise StructuralValidationError("Label key must be 1-1024 characters")
        return v

    def _predicate_cost(self, table: CapacityCostTable) -> int:
        return table.label_match

    def _predicate_to_cfn(self) -> Dict[str, Any]:
        return {"LabelMatchStatement": {"Scope": self.scope.value, "Key": self.key}}


class FieldInspectionStatement(AtomicStatement):
    """Inspect one part of the request with a match condition."""

    kind: Literal["field_inspection"] = "field_inspection"
    field_to_match: FieldToMatch
    match_condition: AnyMatchCondition
    text_transformations: List[TextTransformation] = []

    @field_validator("text_transformations", mode="before")
    @classmethod
    def coerce_transformations(cls, v):
        return [TextTransformation.of(item) if isinstance(item, (str, Enum)) else item for item in v or []]

    def _predicate_cost(self, table: CapacityCostTable) -> int:
        transformations = [
            t for t in self.text_transformations if t.type != TextTransformationType.NONE
        ]
        return self.match_condition.base_cost(table) + table.text_transformation * len(
            transformations
        )

    def _transformations_to_cfn(self) -> List[Dict[str, Any]]:
        # The service requires at least one transformation.
        transformations = self.text_transformations or [
            TextTransformation(type=TextTransformationType.NONE)
        ]
        return [
            {"Priority": priority, "Type": transformation.type.value}
            for priority, transformation in enumerate(transformations)
        ]

    def _predicate_to_cfn(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"FieldToMatch": self.field_to_match.to_cfn()}
        body.update(self.match_condition.condition_fields())
        body["TextTransformations"] = self._transformations_to_cfn()
        return {self.match_condition.statement_key: body}


class RateLimitStatement(BaseStatement):
    """Rate-based condition: match once an aggregate exceeds ``limit`` per window."""

    kind: Literal["rate_limit"] = "rate_limit"
    limit: int
    aggregate_key_type: AggregateKeyType = AggregateKeyType.IP
    evaluation_window_sec: int = 300
    forwarded_ip_config: Optional[ForwardedIPConfig] = None
    scope_down_statement: Optional["AnyStatement"] = None

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, v):
        if v <= 0:
            raise StructuralValidationError(f"Rate limit must be positive, got {v}")
        if v > MAX_RATE_LIMIT:
            raise StructuralValidationError(f"Rate limit must be at most {MAX_RATE_LIMIT}, got {v}")
        return v

    @field_validator("evaluation_window_sec")
    @classmethod
    def validate_window(cls, v):
        if v not in RATE_LIMIT_WINDOWS:
            raise StructuralValidationError(
                f"Evaluation window must be one of {RATE_LIMIT_WINDOWS}, got {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_aggregation(self):
        if self.aggregate_key_type == AggregateKeyType.FORWARDED_IP and not self.forwarded_ip_config:
            raise StructuralValidationError("FORWARDED_IP aggregation requires a forwarded IP config")
        if self.aggregate_key_type == AggregateKeyType.CONSTANT and not self.scope_down_statement:
            raise StructuralValidationError("CONSTANT aggregation requires a scope-down statement")
        if self.scope_down_statement is not None:
            ensure_no_rate_limit(self.scope_down_statement)
        return self

    def capacity(self, table: CapacityCostTable) -> int:
        cost = table.rate_based
        if self.scope_down_statement is not None:
            cost += self.scope_down_statement.capacity(table)
        return cost

    def walk(self):
        yield self
        if self.scope_down_statement is not None:
            yield from self.scope_down_statement.walk()

    def to_cfn(self) -> Dict[str, Any]:
        body = compact(
            {
                "Limit": self.limit,
                "AggregateKeyType": self.aggregate_key_type.value,
                "EvaluationWindowSec": self.evaluation_window_sec,
                "ForwardedIPConfig": (
                    self.forwarded_ip_config.to_cfn() if self.forwarded_ip_config else None
                ),
                "ScopeDownStatement": (
                    self.scope_down_statement.to_cfn() if self.scope_down_statement else None
                ),
            }
        )
        return {"RateBasedStatement": body}


class CombinatorStatement(BaseStatement):
    """ALL / ANY / NONE / ONE over nested statements."""

    kind: Literal["combinator"] = "combinator"
    logic: CombinatorKind
    statements: List["AnyStatement"]

    @model_validator(mode="after")
    def validate_children(self):
        count = len(self.statements)
        if self.logic == CombinatorKind.ONE and count != 1:
            raise StructuralValidationError(
                f"ONE combinator requires exactly one statement, got {count}"
            )
        if count == 0:
            raise StructuralValidationError(
                f"{self.logic.value} combinator requires at least one statement"
            )
        for child in self.statements:
            ensure_no_rate_limit(child)
        return self

    def capacity(self, table: CapacityCostTable) -> int:
        cost = sum(child.capacity(table) for child in self.statements)
        if self.logic != CombinatorKind.ONE and not self._collapses():
            cost += table.logical_statement
        return cost

    def walk(self):
        yield self
        for child in self.statements:
            yield from child.walk()

    def _collapses(self) -> bool:
        # And/Or need two or more nested statements; one child stands alone.
        return self.logic in (CombinatorKind.ALL, CombinatorKind.ANY) and len(self.statements) == 1

    def to_cfn(self) -> Dict[str, Any]:
        children = [child.to_cfn() for child in self.statements]
        if self.logic == CombinatorKind.ONE or self._collapses():
            return children[0]
        if self.logic == CombinatorKind.ALL:
            return {"AndStatement": {"Statements": children}}
        if self.logic == CombinatorKind.ANY:
            return {"OrStatement": {"Statements": children}}
        if len(children) == 1:
            return {"NotStatement": {"Statement": children[0]}}
        return {"NotStatement": {"Statement": {"OrStatement": {"Statements": children}}}}


AnyStatement = Annotated[
    Union[
        GeoMatchStatement,
        IPSetMatchStatement,
        LabelMatchStatement,
        FieldInspectionStatement,
        RateLimitStatement,
        CombinatorStatement,
    ],
    Field(discriminator="kind"),
]

RateLimitStatement.model_rebuild()
CombinatorStatement.model_rebuild()


def ensure_no_rate_limit(statement: BaseStatement) -> None:
    """Rate-based statements may only appear at the root of a rule."""
    for node in statement.walk():
        if isinstance(node, RateLimitStatement):
            raise StructuralValidationError(
                "Rate-based statements cannot be nested in other statements"
            )


STATEMENT_KINDS = {
    "geo_match": GeoMatchStatement,
    "ip_set_match": IPSetMatchStatement,
    "label_match": LabelMatchStatement,
    "field_inspection": FieldInspectionStatement,
    "rate_limit": RateLimitStatement,
    "combinator": CombinatorStatement,
}


def build(kind: Union[str, CombinatorKind], **params: Any) -> BaseStatement:
    """
    Build a statement from a variant name and its parameters.

    ``kind`` is one of the statement kinds ("geo_match", "ip_set_match", ...)
    or a combinator logic ("ALL", "ANY", "NONE", "ONE"), in which case
    ``statements`` holds the children.
    """
    if isinstance(kind, CombinatorKind):
        return CombinatorStatement(logic=kind, **params)
    if kind.upper() in CombinatorKind.__members__:
        return CombinatorStatement(logic=CombinatorKind[kind.upper()], **params)
    try:
        statement_cls = STATEMENT_KINDS[kind]
    except KeyError:
        raise StructuralValidationError(f"Unknown statement kind: '{kind}'") from None
    return statement_cls(**params)


class Statement:
    """Factories for every statement variant."""

    @staticmethod
    def geo_match(
        country_codes: List[str],
        negate: bool = False,
        forwarded_ip_config: Optional[ForwardedIPConfig] = None,
    ) -> GeoMatchStatement:
        return GeoMatchStatement(
            country_codes=country_codes, negate=negate, forwarded_ip_config=forwarded_ip_config
        )

    @staticmethod
    def ip_set_match(
        ip_set: Any,
        negate: bool = False,
        forwarded_ip_config: Optional[ForwardedIPConfig] = None,
    ) -> IPSetMatchStatement:
        """Match against an IP set handle or ARN."""
        return IPSetMatchStatement(
            arn=reference_of(ip_set), negate=negate, forwarded_ip_config=forwarded_ip_config
        )

    @staticmethod
    def label_match(
        key: str,
        scope: LabelMatchScope = LabelMatchScope.LABEL,
        negate: bool = False,
    ) -> LabelMatchStatement:
        return LabelMatchStatement(key=key, scope=scope, negate=negate)

    @staticmethod
    def inspect(
        field_to_match: FieldToMatch,
        match_condition: _MatchCondition,
        text_transformations: Optional[List[Union[str, TextTransformationType]]] = None,
        negate: bool = False,
    ) -> FieldInspectionStatement:
        return FieldInspectionStatement(
            field_to_match=field_to_match,
            match_condition=match_condition,
            text_transformations=text_transformations or [],
            negate=negate,
        )

    @staticmethod
    def rate_limit(
        limit: int,
        evaluation_window_sec: int = 300,
        aggregate_key_type: AggregateKeyType = AggregateKeyType.IP,
        forwarded_ip_config: Optional[ForwardedIPConfig] = None,
        scope_down_statement: Optional[BaseStatement] = None,
    ) -> RateLimitStatement:
        return RateLimitStatement(
            limit=limit,
            evaluation_window_sec=evaluation_window_sec,
            aggregate_key_type=aggregate_key_type,
            forwarded_ip_config=forwarded_ip_config,
            scope_down_statement=scope_down_statement,
        )

    @staticmethod
    def all_of(*statements: BaseStatement) -> CombinatorStatement:
        return CombinatorStatement(logic=CombinatorKind.ALL, statements=list(statements))

    @staticmethod
    def any_of(*statements: BaseStatement) -> CombinatorStatement:
        return CombinatorStatement(logic=CombinatorKind.ANY, statements=list(statements))

    @staticmethod
    def none_of(*statements: BaseStatement) -> CombinatorStatement:
        return CombinatorStatement(logic=CombinatorKind.NONE, statements=list(statements))

    @staticmethod
    def one(statement: BaseStatement) -> CombinatorStatement:
        return CombinatorStatement(logic=CombinatorKind.ONE, statements=[statement])
