"""
Web ACL capacity unit (WCU) accounting.

Costs are defined by the WAF service and change independently of this
package, so they live in an injectable ``CapacityCostTable``. The defaults
follow the service's published cost table.
"""

from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml
from pydantic import BaseModel, Field

from .logging_config import get_logger

logger = get_logger(__name__)

MAX_WEB_ACL_CAPACITY = 1500
MAX_RULE_GROUP_CAPACITY = 1500

DEFAULT_MANAGED_RULE_GROUP_CAPACITY: Dict[str, int] = {
    "AWS:AWSManagedRulesAmazonIpReputationList": 25,
    "AWS:AWSManagedRulesAdminProtectionRuleSet": 100,
    "AWS:AWSManagedRulesKnownBadInputsRuleSet": 200,
    "AWS:AWSManagedRulesCommonRuleSet": 700,
    "AWS:AWSManagedRulesSQLiRuleSet": 200,
    "AWS:AWSManagedRulesLinuxRuleSet": 200,
    "AWS:AWSManagedRulesUnixRuleSet": 100,
    "AWS:AWSManagedRulesWindowsRuleSet": 200,
    "AWS:AWSManagedRulesWordPressRuleSet": 100,
    "AWS:AWSManagedRulesPHPRuleSet": 100,
    "AWS:AWSManagedRulesAnonymousIpList": 50,
    "AWS:AWSManagedRulesBotControlRuleSet": 50,
    "AWS:AWSManagedRulesATPRuleSet": 50,
}


class CapacityCostTable(BaseModel):
    """Per-statement-type WCU costs."""

    geo_match: int = 1
    ip_set_reference: int = 1
    label_match: int = 1
    string_match_exact: int = 2
    string_match_contains: int = 10
    regex_match: int = 3
    regex_pattern_set_reference: int = 25
    size_constraint: int = 1
    sqli_match: int = 20
    sqli_match_high_sensitivity: int = 30
    xss_match: int = 40
    rate_based: int = 2
    text_transformation: int = 10
    # And/Or/Not nodes and atomic negation; the service charges only the
    # nested statements.
    logical_statement: int = 0
    managed_rule_groups: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_MANAGED_RULE_GROUP_CAPACITY)
    )

    def managed_rule_group_cost(self, vendor_name: str, name: str) -> Optional[int]:
        return self.managed_rule_groups.get(f"{vendor_name}:{name}")

    @classmethod
    def load_from_file(cls, path: Path) -> "CapacityCostTable":
        """Load cost overrides from a YAML file; unspecified costs keep their defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        managed = data.pop("managed_rule_groups", None) or {}
        table = cls(**data)
        table.managed_rule_groups.update(managed)
        logger.debug("Loaded capacity cost table from %s", path)
        return table


def default_cost_table() -> CapacityCostTable:
    return CapacityCostTable()


def compute_capacity(rules: Iterable, cost_table: Optional[CapacityCostTable] = None) -> int:
    """Sum the capacity of every rule, recursing into each statement tree."""
    table = cost_table or default_cost_table()
    total = 0
    for rule in rules:
        cost = rule.capacity(table)
        logger.debug("Rule '%s' costs %d WCU", rule.name, cost)
        total += cost
    return total
