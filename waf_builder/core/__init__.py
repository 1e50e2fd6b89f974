"""
Core module for waf_builder: statements, rules, aggregates and their validation.
"""

from .actions import CustomResponseBody, DefaultAction, ResponseBodyContentType, RuleAction
from .association import (
    ApiGatewayStage,
    AppSyncGraphqlApi,
    ApplicationLoadBalancer,
    CloudFrontDistribution,
    CognitoUserPool,
    ProtectedResource,
    associate,
)
from .capacity import CapacityCostTable, compute_capacity, default_cost_table
from .config import BuilderConfig
from .errors import (
    AggregationValidationError,
    CapacityError,
    DuplicateResourceError,
    DuplicateRuleNameError,
    ResponseBodyConflictError,
    ScopeMismatchError,
    StructuralValidationError,
    TemplateError,
    UnknownResourceError,
    WafBuilderError,
)
from .ip_set import IPAddressVersion, IPSet
from .logging_configuration import (
    LogDestinationConfig,
    LoggingConfiguration,
    LoggingFilter,
    LoggingFilterActionConditionAction,
    LoggingFilterBehavior,
    LoggingFilterCondition,
    LoggingFilterConfiguration,
)
from .managed import AWSManagedRuleGroup, ManagedRuleGroup, OverrideAction
from .objects import Scope, VisibilityConfig
from .priority import PrioritizedRule, prioritize_rules
from .regex_pattern_set import RegexPatternSet
from .rule_group import RuleGroup, RuleGroupReference
from .rules import Rule
from .stack import WafStack
from .statements import (
    CombinatorKind,
    FieldToMatch,
    ForwardedIPConfig,
    MatchCondition,
    Statement,
    TextTransformation,
    build,
)
from .web_acl import WebACL, WebACLHandle

__all__ = [
    "Statement",
    "build",
    "CombinatorKind",
    "FieldToMatch",
    "ForwardedIPConfig",
    "MatchCondition",
    "TextTransformation",
    "RuleAction",
    "DefaultAction",
    "CustomResponseBody",
    "ResponseBodyContentType",
    "Rule",
    "ManagedRuleGroup",
    "AWSManagedRuleGroup",
    "OverrideAction",
    "RuleGroup",
    "RuleGroupReference",
    "WebACL",
    "WebACLHandle",
    "PrioritizedRule",
    "prioritize_rules",
    "CapacityCostTable",
    "compute_capacity",
    "default_cost_table",
    "IPSet",
    "IPAddressVersion",
    "RegexPatternSet",
    "LogDestinationConfig",
    "LoggingConfiguration",
    "LoggingFilter",
    "LoggingFilterActionConditionAction",
    "LoggingFilterBehavior",
    "LoggingFilterCondition",
    "LoggingFilterConfiguration",
    "ProtectedResource",
    "ApplicationLoadBalancer",
    "ApiGatewayStage",
    "CognitoUserPool",
    "AppSyncGraphqlApi",
    "CloudFrontDistribution",
    "associate",
    "Scope",
    "VisibilityConfig",
    "BuilderConfig",
    "WafStack",
    "WafBuilderError",
    "StructuralValidationError",
    "AggregationValidationError",
    "DuplicateRuleNameError",
    "CapacityError",
    "ScopeMismatchError",
    "ResponseBodyConflictError",
    "TemplateError",
    "DuplicateResourceError",
    "UnknownResourceError",
]
