"""
Exceptions raised while building and synthesizing WAF resources.

None of these derive from ValueError, so they pass through pydantic
validators unchanged instead of being folded into a ValidationError.
"""


class WafBuilderError(Exception):
    """Base class for all waf_builder errors."""


class StructuralValidationError(WafBuilderError):
    """A value is structurally invalid at construction time."""


class AggregationValidationError(WafBuilderError):
    """Rules or resources cannot be assembled into a web ACL or rule group."""


class DuplicateRuleNameError(AggregationValidationError):
    """Two rules in the same collection share a name."""

    def __init__(self, rule_name: str):
        self.rule_name = rule_name
        super().__init__(f"Duplicate rule name: '{rule_name}'")


class CapacityError(AggregationValidationError):
    """Capacity is missing, exceeded, or smaller than the rules require."""


class ScopeMismatchError(AggregationValidationError):
    """A REGIONAL resource was combined with a CLOUDFRONT one, or vice versa."""


class ResponseBodyConflictError(AggregationValidationError):
    """Two custom response bodies use the same key with different content."""


class TemplateError(WafBuilderError):
    """Raised by the template emitter."""


class DuplicateResourceError(TemplateError):
    """A logical ID is already taken in the template."""

    def __init__(self, logical_id: str):
        self.logical_id = logical_id
        super().__init__(f"Resource '{logical_id}' already exists in the template")


class UnknownResourceError(TemplateError):
    """A logical ID does not exist in the template."""

    def __init__(self, logical_id: str):
        self.logical_id = logical_id
        super().__init__(f"Resource '{logical_id}' not found in the template")
