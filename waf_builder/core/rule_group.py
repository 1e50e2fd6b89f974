"""
Rule groups: reusable, capacity-bounded collections of custom rules, and
the rule that places such a group in a web ACL.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..synth.base import ResourceEmitter, ResourceHandle
from .actions import CustomResponseBody
from .capacity import MAX_RULE_GROUP_CAPACITY, CapacityCostTable, compute_capacity
from .errors import CapacityError, StructuralValidationError
from .logging_config import get_logger
from .managed import OverrideAction, excluded_rule_names
from .objects import (
    Reference,
    Scope,
    VisibilityConfig,
    compact,
    default_visibility,
    tags_to_cfn,
    validate_name,
    validate_reference,
)
from .priority import PrioritizedRule, collect_response_bodies, ensure_ordered, prioritize_rules
from .rules import BaseRule, Rule

logger = get_logger(__name__)

RULE_GROUP_RESOURCE_TYPE = "AWS::WAFv2::RuleGroup"


def _as_cost_table(value: Any) -> CapacityCostTable:
    if value is None:
        return CapacityCostTable()
    if isinstance(value, dict):
        return CapacityCostTable(**value)
    return value


class RuleGroup(BaseModel):
    """
    A named collection of rules with a fixed capacity.

    Capacity cannot change once the group is deployed. When omitted it is
    set to what the rules require; an explicit value is kept as given but
    must cover the rules.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    scope: Scope
    rules: List[Rule] = []
    capacity: int
    description: Optional[str] = None
    visibility_config: VisibilityConfig
    tags: Dict[str, str] = {}
    cost_table: CapacityCostTable = Field(default_factory=CapacityCostTable, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = default_visibility(dict(data), data.get("name"))
        data["rules"] = ensure_ordered(data.get("rules") or [])
        if data.get("capacity") is None:
            table = _as_cost_table(data.get("cost_table"))
            rules = [
                rule if isinstance(rule, Rule) else Rule.model_validate(rule)
                for rule in data["rules"]
            ]
            required = compute_capacity(rules, table)
            if required > MAX_RULE_GROUP_CAPACITY:
                raise CapacityError(
                    f"Rule group '{data.get('name')}' needs {required} WCU, "
                    f"more than the maximum of {MAX_RULE_GROUP_CAPACITY}"
                )
            data.update(rules=rules, cost_table=table, capacity=max(required, 1))
        return data

    @field_validator("name")
    @classmethod
    def validate_group_name(cls, v):
        return validate_name(v, "rule group name")

    @field_validator("capacity")
    @classmethod
    def validate_capacity(cls, v):
        if not 1 <= v <= MAX_RULE_GROUP_CAPACITY:
            raise CapacityError(
                f"Rule group capacity must be between 1 and {MAX_RULE_GROUP_CAPACITY}, got {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_rules(self):
        prioritize_rules(self.rules)
        required = self.required_capacity
        if self.capacity < required:
            raise CapacityError(
                f"Rule group '{self.name}' has capacity {self.capacity} "
                f"but its rules require {required}"
            )
        collect_response_bodies(self.rules)
        return self

    @property
    def required_capacity(self) -> int:
        return compute_capacity(self.rules, self.cost_table)

    @property
    def prioritized_rules(self) -> List[PrioritizedRule]:
        return prioritize_rules(self.rules)

    @property
    def custom_response_bodies(self) -> Dict[str, CustomResponseBody]:
        return collect_response_bodies(self.rules)

    def to_cfn(self) -> Dict[str, Any]:
        bodies = self.custom_response_bodies
        return compact(
            {
                "Name": self.name,
                "Scope": self.scope.value,
                "Capacity": self.capacity,
                "Description": self.description,
                "Rules": [rule.to_cfn() for rule in self.prioritized_rules],
                "VisibilityConfig": self.visibility_config.to_cfn(),
                "CustomResponseBodies": (
                    {key: body.to_cfn() for key, body in bodies.items()} if bodies else None
                ),
                "Tags": tags_to_cfn(self.tags),
            }
        )

    def emit(self, emitter: ResourceEmitter, logical_id: Optional[str] = None) -> "RuleGroupHandle":
        """Record the group in ``emitter``."""
        logical_id = logical_id or emitter.allocate_logical_id(self.name, "RuleGroup")
        emitter.add_resource(logical_id, RULE_GROUP_RESOURCE_TYPE, self.to_cfn())
        logger.debug("Emitted rule group '%s' as %s", self.name, logical_id)
        return RuleGroupHandle(emitter, logical_id, self)


class RuleGroupHandle(ResourceHandle):
    """An emitted rule group."""

    def __init__(self, emitter: ResourceEmitter, logical_id: str, rule_group: RuleGroup):
        super().__init__(emitter, logical_id, RULE_GROUP_RESOURCE_TYPE)
        self.rule_group = rule_group

    @property
    def id(self) -> Reference:
        return self.get_att("Id")

    def reference(self, **options: Any) -> "RuleGroupReference":
        """A web ACL rule that evaluates this group."""
        return RuleGroupReference.from_rule_group(self.rule_group, self.arn, **options)


class RuleGroupReference(BaseRule):
    """Places a custom rule group in a web ACL, like a managed rule group."""

    kind: Literal["rule_group_reference"] = "rule_group_reference"
    arn: Reference
    capacity_units: int
    scope: Optional[Scope] = None
    excluded_rules: List[str] = []
    override_action: OverrideAction = OverrideAction.NONE

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
        return default_visibility(data, data.get("name"))

    @field_validator("arn")
    @classmethod
    def validate_arn(cls, v):
        return validate_reference(v, "rule group ARN")

    @field_validator("capacity_units")
    @classmethod
    def validate_capacity_units(cls, v):
        if v <= 0:
            raise StructuralValidationError(f"Capacity must be positive, got {v}")
        return v

    @field_validator("excluded_rules", mode="before")
    @classmethod
    def coerce_excluded_rules(cls, v):
        return excluded_rule_names(v)

    @classmethod
    def from_rule_group(cls, rule_group: RuleGroup, arn: Reference, **options: Any) -> "RuleGroupReference":
        """Reference ``rule_group``, deployed at ``arn``; name and capacity come from the group."""
        options.setdefault("name", rule_group.name)
        return cls(arn=arn, capacity_units=rule_group.capacity, scope=rule_group.scope, **options)

    @property
    def override_to_count(self) -> bool:
        return self.override_action == OverrideAction.COUNT

    def capacity(self, table: CapacityCostTable) -> int:
        return self.capacity_units

    def statement_to_cfn(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"Arn": self.arn}
        if self.excluded_rules:
            body["ExcludedRules"] = [{"Name": name} for name in self.excluded_rules]
        return {"RuleGroupReferenceStatement": body}

    def action_to_cfn(self) -> Dict[str, Any]:
        key = "Count" if self.override_to_count else "None"
        return {"OverrideAction": {key: {}}}
