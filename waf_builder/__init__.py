"""
waf_builder - Declarative AWS WAFv2 web ACLs

Describe web ACLs, rule groups, IP sets, regex pattern sets and logging as
validated Python objects or YAML, and synthesize them into a CloudFormation
template.
"""

__version__ = "0.1.0"

from .core.actions import DefaultAction, RuleAction
from .core.errors import WafBuilderError
from .core.managed import ManagedRuleGroup
from .core.objects import Scope
from .core.rule_group import RuleGroup
from .core.rules import Rule
from .core.stack import WafStack
from .core.statements import Statement, build
from .core.web_acl import WebACL
from .synth.template import Template

__all__ = [
    "Statement",
    "build",
    "Rule",
    "RuleAction",
    "DefaultAction",
    "ManagedRuleGroup",
    "RuleGroup",
    "WebACL",
    "WafStack",
    "Scope",
    "Template",
    "WafBuilderError",
]
