"""
Core rule definitions for WAF web ACLs and rule groups.
"""

import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .actions import (
    AnyRuleAction,
    CaptchaAction,
    ChallengeAction,
    CustomResponseBody,
    RuleAction,
)
from .capacity import CapacityCostTable
from .errors import StructuralValidationError
from .objects import VisibilityConfig, default_visibility, validate_name
from .statements import (
    AggregateKeyType,
    AnyStatement,
    BaseStatement,
    ForwardedIPConfig,
    RateLimitStatement,
)

LABEL_PATTERN = re.compile(r"^[0-9A-Za-z_\-:]{1,1024}$")


class BaseRule(BaseModel):
    """Base class for everything that occupies a priority slot in a web ACL or rule group."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    visibility_config: VisibilityConfig

    @field_validator("name")
    @classmethod
    def validate_rule_name(cls, v):
        return validate_name(v, "rule name")

    def capacity(self, table: CapacityCostTable) -> int:
        raise NotImplementedError

    def statement_to_cfn(self) -> Dict[str, Any]:
        raise NotImplementedError

    def action_to_cfn(self) -> Dict[str, Any]:
        """Either ``{"Action": ...}`` or ``{"OverrideAction": ...}``."""
        raise NotImplementedError

    def extra_cfn(self) -> Dict[str, Any]:
        return {}

    def response_bodies(self) -> Dict[str, CustomResponseBody]:
        return {}

    def to_cfn(self, priority: int) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "Name": self.name,
            "Priority": priority,
            "Statement": self.statement_to_cfn(),
        }
        result.update(self.action_to_cfn())
        result["VisibilityConfig"] = self.visibility_config.to_cfn()
        result.update(self.extra_cfn())
        return result


class Rule(BaseRule):
    """A custom rule: one statement tree and the action to take when it matches."""

    kind: Literal["rule"] = "rule"
    action: AnyRuleAction
    statement: AnyStatement
    labels: List[str] = []

    @model_validator(mode="before")
    @classmethod
    def default_visibility_config(cls, data: Any) -> Any:
        name = data.get("name") if isinstance(data, dict) else None
        return default_visibility(data, name)

    @field_validator("labels")
    @classmethod
    def validate_labels(cls, v):
        for label in v:
            if not LABEL_PATTERN.match(label):
                raise StructuralValidationError(f"Invalid label: '{label}'")
        return v

    @classmethod
    def regular(
        cls,
        name: str,
        action: Any,
        statement: BaseStatement,
        labels: Optional[List[str]] = None,
        visibility_config: Optional[VisibilityConfig] = None,
    ) -> "Rule":
        """Create a rule that applies ``action`` when ``statement`` matches."""
        return cls(
            name=name,
            action=action,
            statement=statement,
            labels=labels or [],
            visibility_config=visibility_config,
        )

    @classmethod
    def rate_based(
        cls,
        name: str,
        limit: int,
        evaluation_window_sec: int = 300,
        aggregate_key_type: AggregateKeyType = AggregateKeyType.IP,
        action: Optional[Any] = None,
        scope_down_statement: Optional[BaseStatement] = None,
        forwarded_ip_config: Optional[ForwardedIPConfig] = None,
        labels: Optional[List[str]] = None,
        visibility_config: Optional[VisibilityConfig] = None,
    ) -> "Rule":
        """
        Create a rule that triggers when an aggregate exceeds ``limit``
        requests within ``evaluation_window_sec``. Blocks by default.
        """
        statement = RateLimitStatement(
            limit=limit,
            evaluation_window_sec=evaluation_window_sec,
            aggregate_key_type=aggregate_key_type,
            scope_down_statement=scope_down_statement,
            forwarded_ip_config=forwarded_ip_config,
        )
        return cls.regular(
            name,
            action if action is not None else RuleAction.block(),
            statement,
            labels=labels,
            visibility_config=visibility_config,
        )

    @property
    def is_rate_based(self) -> bool:
        return isinstance(self.statement, RateLimitStatement)

    def capacity(self, table: CapacityCostTable) -> int:
        return self.statement.capacity(table)

    def statement_to_cfn(self) -> Dict[str, Any]:
        return self.statement.to_cfn()

    def action_to_cfn(self) -> Dict[str, Any]:
        return {"Action": self.action.to_cfn(self.action.response_body_key(self.name))}

    def response_bodies(self) -> Dict[str, CustomResponseBody]:
        return self.action.response_bodies(self.name)

    def extra_cfn(self) -> Dict[str, Any]:
        extra: Dict[str, Any] = {}
        if self.labels:
            extra["RuleLabels"] = [{"Name": label} for label in self.labels]
        if isinstance(self.action, CaptchaAction) and self.action.immunity_time_seconds:
            extra["CaptchaConfig"] = {
                "ImmunityTimeProperty": {"ImmunityTime": self.action.immunity_time_seconds}
            }
        if isinstance(self.action, ChallengeAction) and self.action.immunity_time_seconds:
            extra["ChallengeConfig"] = {
                "ImmunityTimeProperty": {"ImmunityTime": self.action.immunity_time_seconds}
            }
        return extra
