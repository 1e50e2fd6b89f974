"""
Managed rule groups: vendor-curated rule bundles referenced by name.

AWS-curated groups form a closed catalogue (``AWSManagedRuleGroup``);
marketplace groups go through ``ManagedRuleGroup.third_party``. Both
produce the same rule-shaped record.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import field_validator, model_validator

from .capacity import CapacityCostTable
from .errors import CapacityError, StructuralValidationError
from .objects import VisibilityConfig, compact
from .rules import BaseRule
from .statements import AnyStatement, ensure_no_rate_limit

AWS_VENDOR = "AWS"


class AWSManagedRuleGroup(str, Enum):
    """Rule groups curated by AWS."""

    IP_REPUTATION = "AWSManagedRulesAmazonIpReputationList"
    ADMIN_PROTECTION = "AWSManagedRulesAdminProtectionRuleSet"
    KNOWN_BAD_INPUTS = "AWSManagedRulesKnownBadInputsRuleSet"
    CORE_RULE_SET = "AWSManagedRulesCommonRuleSet"
    SQL_INJECTION = "AWSManagedRulesSQLiRuleSet"
    LINUX = "AWSManagedRulesLinuxRuleSet"
    POSIX = "AWSManagedRulesUnixRuleSet"
    WINDOWS = "AWSManagedRulesWindowsRuleSet"
    WORDPRESS = "AWSManagedRulesWordPressRuleSet"
    PHP = "AWSManagedRulesPHPRuleSet"
    ANONYMOUS_IP = "AWSManagedRulesAnonymousIpList"
    BOT_CONTROL = "AWSManagedRulesBotControlRuleSet"
    ACCOUNT_TAKEOVER = "AWSManagedRulesATPRuleSet"


class OverrideAction(str, Enum):
    """NONE evaluates the group's own rule actions; COUNT only counts matches."""

    NONE = "NONE"
    COUNT = "COUNT"


def excluded_rule_names(items: Any) -> List[str]:
    """Accept plain names or {"name": ...} records."""
    names = []
    for item in items or []:
        if isinstance(item, dict):
            item = item.get("name") or item.get("Name")
        if not item:
            raise StructuralValidationError("Excluded rule names must not be empty")
        names.append(item)
    return names


def _default_identity(vendor_name: str, rule_group_name: str):
    if vendor_name == AWS_VENDOR:
        name = rule_group_name
    else:
        name = f"{vendor_name}-{rule_group_name}"
    # Marketplace vendor names may hold spaces and dots.
    name = re.sub(r"[^\w\-]+", "-", name)
    return name, f"WAF-{name}"


class ManagedRuleGroup(BaseRule):
    """A reference to a managed rule group, placed in a web ACL like any rule."""

    kind: Literal["managed_rule_group"] = "managed_rule_group"
    vendor_name: str
    rule_group_name: str
    version: Optional[str] = None
    excluded_rules: List[str] = []
    scope_down_statement: Optional[AnyStatement] = None
    override_action: OverrideAction = OverrideAction.NONE
    # Vendor-specific settings, passed through unvalidated.
    managed_rule_group_configs: List[Dict[str, Any]] = []
    capacity_units: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if "override_to_count" in data:
            override_to_count = data.pop("override_to_count")
            data.setdefault(
                "override_action",
                OverrideAction.COUNT if override_to_count else OverrideAction.NONE,
            )
        vendor_name = data.get("vendor_name")
        rule_group_name = data.get("rule_group_name")
        if vendor_name and rule_group_name:
            name, metric_name = _default_identity(vendor_name, rule_group_name)
            if not data.get("name"):
                data["name"] = name
            if data.get("visibility_config") is None:
                data["visibility_config"] = VisibilityConfig.for_name(metric_name)
        return data

    @field_validator("vendor_name", "rule_group_name")
    @classmethod
    def validate_identifier(cls, v):
        if not v:
            raise StructuralValidationError("Managed rule group vendor and name must not be empty")
        return v

    @field_validator("excluded_rules", mode="before")
    @classmethod
    def coerce_excluded_rules(cls, v):
        return excluded_rule_names(v)

    @field_validator("scope_down_statement")
    @classmethod
    def validate_scope_down(cls, v):
        if v is not None:
            ensure_no_rate_limit(v)
        return v

    @field_validator("capacity_units")
    @classmethod
    def validate_capacity_units(cls, v):
        if v is not None and v <= 0:
            raise StructuralValidationError(f"Capacity must be positive, got {v}")
        return v

    @property
    def override_to_count(self) -> bool:
        return self.override_action == OverrideAction.COUNT

    def capacity(self, table: CapacityCostTable) -> int:
        base = self.capacity_units
        if base is None:
            base = table.managed_rule_group_cost(self.vendor_name, self.rule_group_name)
        if base is None:
            raise CapacityError(
                f"Capacity of managed rule group '{self.vendor_name}:{self.rule_group_name}' "
                "is unknown; pass capacity_units or add it to the cost table"
            )
        if self.scope_down_statement is not None:
            base += self.scope_down_statement.capacity(table)
        return base

    def statement_to_cfn(self) -> Dict[str, Any]:
        body = compact(
            {
                "VendorName": self.vendor_name,
                "Name": self.rule_group_name,
                "Version": self.version,
                "ExcludedRules": (
                    [{"Name": name} for name in self.excluded_rules]
                    if self.excluded_rules
                    else None
                ),
                "ScopeDownStatement": (
                    self.scope_down_statement.to_cfn() if self.scope_down_statement else None
                ),
                "ManagedRuleGroupConfigs": self.managed_rule_group_configs or None,
            }
        )
        return {"ManagedRuleGroupStatement": body}

    def action_to_cfn(self) -> Dict[str, Any]:
        key = "Count" if self.override_to_count else "None"
        return {"OverrideAction": {key: {}}}

    @classmethod
    def aws(cls, rule_group: AWSManagedRuleGroup, **options: Any) -> "ManagedRuleGroup":
        """Reference an AWS-curated rule group."""
        return cls(
            vendor_name=AWS_VENDOR,
            rule_group_name=AWSManagedRuleGroup(rule_group).value,
            **options,
        )

    @classmethod
    def third_party(cls, vendor: str, rule_name: str, **options: Any) -> "ManagedRuleGroup":
        """Reference a marketplace rule group; its capacity is usually not in the cost table."""
        return cls(vendor_name=vendor, rule_group_name=rule_name, **options)

    @classmethod
    def ip_reputation(cls, **options: Any) -> "ManagedRuleGroup":
        """Amazon IP reputation list: addresses associated with bots and other threats."""
        return cls.aws(AWSManagedRuleGroup.IP_REPUTATION, **options)

    @classmethod
    def admin_protection(cls, **options: Any) -> "ManagedRuleGroup":
        """Block external access to exposed administrative pages."""
        return cls.aws(AWSManagedRuleGroup.ADMIN_PROTECTION, **options)

    @classmethod
    def known_bad_inputs(cls, **options: Any) -> "ManagedRuleGroup":
        """Request patterns known to be invalid or tied to vulnerability discovery."""
        return cls.aws(AWSManagedRuleGroup.KNOWN_BAD_INPUTS, **options)

    @classmethod
    def core_rule_set(cls, **options: Any) -> "ManagedRuleGroup":
        """Core rule set (CRS), covering much of the OWASP Top 10."""
        return cls.aws(AWSManagedRuleGroup.CORE_RULE_SET, **options)

    @classmethod
    def sql_injection(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.SQL_INJECTION, **options)

    @classmethod
    def linux(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.LINUX, **options)

    @classmethod
    def posix(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.POSIX, **options)

    @classmethod
    def windows(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.WINDOWS, **options)

    @classmethod
    def wordpress(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.WORDPRESS, **options)

    @classmethod
    def php(cls, **options: Any) -> "ManagedRuleGroup":
        return cls.aws(AWSManagedRuleGroup.PHP, **options)

    @classmethod
    def anonymous_ip(cls, **options: Any) -> "ManagedRuleGroup":
        """VPNs, proxies, Tor nodes and hosting providers."""
        return cls.aws(AWSManagedRuleGroup.ANONYMOUS_IP, **options)

    @classmethod
    def bot_control(cls, **options: Any) -> "ManagedRuleGroup":
        """Bot Control. Charged separately by AWS."""
        return cls.aws(AWSManagedRuleGroup.BOT_CONTROL, **options)

    @classmethod
    def account_takeover(cls, **options: Any) -> "ManagedRuleGroup":
        """Account takeover prevention (ATP). Charged separately by AWS."""
        return cls.aws(AWSManagedRuleGroup.ACCOUNT_TAKEOVER, **options)
