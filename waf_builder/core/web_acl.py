"""
Web ACLs: the top-level firewall resource that orders rules, managed rule
groups and rule group references, and the handle it returns once emitted.
"""

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..synth.base import ResourceEmitter, ResourceHandle
from .actions import (
    MAX_IMMUNITY_TIME,
    MIN_IMMUNITY_TIME,
    AllowAction,
    AnyDefaultAction,
    CustomResponseBody,
)
from .association import ProtectedResource, associate
from .capacity import MAX_WEB_ACL_CAPACITY, CapacityCostTable, compute_capacity
from .errors import CapacityError, ScopeMismatchError, StructuralValidationError
from .logging_config import get_logger
from .logging_configuration import LogDestinationConfig, LoggingConfiguration
from .managed import ManagedRuleGroup
from .objects import (
    Reference,
    Scope,
    VisibilityConfig,
    compact,
    default_visibility,
    tags_to_cfn,
    validate_name,
)
from .priority import PrioritizedRule, collect_response_bodies, ensure_ordered, prioritize_rules
from .rule_group import RuleGroupReference
from .rules import Rule

logger = get_logger(__name__)

WEB_ACL_RESOURCE_TYPE = "AWS::WAFv2::WebACL"
DEFAULT_ACTION_BODY_KEY = "DefaultAction"

AnyWebACLRule = Annotated[
    Union[Rule, ManagedRuleGroup, RuleGroupReference],
    Field(discriminator="kind"),
]


def _infer_kind(rule: Any) -> Any:
    """Raw rule records may leave out ``kind``; tell them apart by their fields."""
    if not isinstance(rule, dict) or "kind" in rule:
        return rule
    if "vendor_name" in rule:
        kind = "managed_rule_group"
    elif "capacity_units" in rule and "arn" in rule:
        kind = "rule_group_reference"
    else:
        kind = "rule"
    return {**rule, "kind": kind}


def _immunity_time_to_cfn(seconds: Optional[int]) -> Optional[Dict[str, Any]]:
    if seconds is None:
        return None
    return {"ImmunityTimeProperty": {"ImmunityTime": seconds}}


class WebACL(BaseModel):
    """
    A web ACL.

    Rules are evaluated in list order; each receives its index as its
    priority. Requests that match no rule get ``default_action``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    scope: Scope
    default_action: AnyDefaultAction = Field(default_factory=AllowAction)
    rules: List[AnyWebACLRule] = []
    description: Optional[str] = None
    visibility_config: VisibilityConfig
    captcha_immunity_time: Optional[int] = None
    challenge_immunity_time: Optional[int] = None
    token_domains: List[str] = []
    tags: Dict[str, str] = {}
    cost_table: CapacityCostTable = Field(default_factory=CapacityCostTable, exclude=True)

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = default_visibility(dict(data), data.get("name"))
        data["rules"] = [_infer_kind(rule) for rule in ensure_ordered(data.get("rules") or [])]
        return data

    @field_validator("name")
    @classmethod
    def validate_acl_name(cls, v):
        return validate_name(v, "web ACL name")

    @field_validator("captcha_immunity_time", "challenge_immunity_time")
    @classmethod
    def validate_immunity_time(cls, v):
        if v is not None and not MIN_IMMUNITY_TIME <= v <= MAX_IMMUNITY_TIME:
            raise StructuralValidationError(
                f"Immunity time must be between {MIN_IMMUNITY_TIME} and "
                f"{MAX_IMMUNITY_TIME} seconds, got {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_rules(self):
        prioritize_rules(self.rules)
        for rule in self.rules:
            if isinstance(rule, RuleGroupReference) and rule.scope not in (None, self.scope):
                raise ScopeMismatchError(
                    f"Rule group '{rule.name}' is {rule.scope.value} but web ACL "
                    f"'{self.name}' is {self.scope.value}"
                )
        capacity = self.capacity
        if capacity > MAX_WEB_ACL_CAPACITY:
            raise CapacityError(
                f"Web ACL '{self.name}' needs {capacity} WCU, "
                f"more than the maximum of {MAX_WEB_ACL_CAPACITY}"
            )
        collect_response_bodies(self.rules, self.default_action)
        return self

    @property
    def capacity(self) -> int:
        return compute_capacity(self.rules, self.cost_table)

    @property
    def prioritized_rules(self) -> List[PrioritizedRule]:
        return prioritize_rules(self.rules)

    @property
    def custom_response_bodies(self) -> Dict[str, CustomResponseBody]:
        return collect_response_bodies(self.rules, self.default_action)

    def to_cfn(self) -> Dict[str, Any]:
        bodies = self.custom_response_bodies
        default_body_key = self.default_action.response_body_key(DEFAULT_ACTION_BODY_KEY)
        return compact(
            {
                "Name": self.name,
                "Scope": self.scope.value,
                "DefaultAction": self.default_action.to_cfn(default_body_key),
                "Description": self.description,
                "Rules": [rule.to_cfn() for rule in self.prioritized_rules],
                "VisibilityConfig": self.visibility_config.to_cfn(),
                "CaptchaConfig": _immunity_time_to_cfn(self.captcha_immunity_time),
                "ChallengeConfig": _immunity_time_to_cfn(self.challenge_immunity_time),
                "TokenDomains": list(self.token_domains) or None,
                "CustomResponseBodies": (
                    {key: body.to_cfn() for key, body in bodies.items()} if bodies else None
                ),
                "Tags": tags_to_cfn(self.tags),
            }
        )

    def emit(self, emitter: ResourceEmitter, logical_id: Optional[str] = None) -> "WebACLHandle":
        """Record the web ACL in ``emitter`` and return its handle."""
        logical_id = logical_id or emitter.allocate_logical_id(self.name, "WebACL")
        emitter.add_resource(logical_id, WEB_ACL_RESOURCE_TYPE, self.to_cfn())
        logger.debug(
            "Emitted web ACL '%s' as %s with %d rules", self.name, logical_id, len(self.rules)
        )
        return WebACLHandle(emitter, logical_id, self)


class WebACLHandle(ResourceHandle):
    """
    An emitted web ACL.

    ``arn``, ``id``, ``capacity`` and ``label_namespace`` are assigned by
    the service and resolve at deploy time.
    """

    def __init__(self, emitter: ResourceEmitter, logical_id: str, web_acl: WebACL):
        super().__init__(emitter, logical_id, WEB_ACL_RESOURCE_TYPE)
        self.web_acl = web_acl
        self.logging_configuration: Optional[LoggingConfiguration] = None
        self.attached_resources: List[ProtectedResource] = []

    @property
    def id(self) -> Reference:
        return self.get_att("Id")

    @property
    def capacity(self) -> Reference:
        return self.get_att("Capacity")

    @property
    def label_namespace(self) -> Reference:
        return self.get_att("LabelNamespace")

    @property
    def scope(self) -> Scope:
        return self.web_acl.scope

    def set_logging_configuration(
        self,
        destination_config: LogDestinationConfig,
        filter_policy=None,
        redacted_fields=None,
        provisioner=None,
    ) -> LoggingConfiguration:
        """Send this web ACL's logs to one destination, replacing any earlier setting."""
        return LoggingConfiguration.attach(
            self,
            destination_config,
            filter_policy=filter_policy,
            redacted_fields=redacted_fields,
            provisioner=provisioner,
        )

    def attach_to(self, resource: ProtectedResource) -> Optional[ResourceHandle]:
        """Protect ``resource`` with this web ACL."""
        return associate(self, resource)
