"""
Core objects shared by statements, rules and top-level WAF resources.
"""

import re
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import StructuralValidationError

# An ARN or other attribute is either a literal string or a template
# intrinsic such as {"Fn::GetAtt": ["MyIpSet", "Arn"]}.
Reference = Union[str, Dict[str, Any]]

NAME_PATTERN = re.compile(r"^[\w\-]{1,128}$")
METRIC_NAME_PATTERN = re.compile(r"^[\w#:\.\-/]{1,255}$")


class Scope(str, Enum):
    """Where a WAF resource applies."""

    REGIONAL = "REGIONAL"
    CLOUDFRONT = "CLOUDFRONT"


def validate_name(value: str, kind: str = "name") -> str:
    if not value or not NAME_PATTERN.match(value):
        raise StructuralValidationError(
            f"Invalid {kind} '{value}': use 1-128 letters, digits, '_' or '-'"
        )
    return value


def validate_reference(value: Reference, kind: str = "ARN") -> Reference:
    if isinstance(value, str):
        if not value.startswith("arn:"):
            raise StructuralValidationError(f"Expected an {kind}, got '{value}'")
    elif not value:
        raise StructuralValidationError(f"Empty {kind} reference")
    return value


def reference_of(target: Any) -> Reference:
    """Accept a resource handle (anything with an ``arn``) or a raw reference."""
    return getattr(target, "arn", target)


def compact(properties: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None."""
    return {key: value for key, value in properties.items() if value is not None}


class VisibilityConfig(BaseModel):
    """CloudWatch metrics and request sampling settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    cloud_watch_metrics_enabled: bool = True
    metric_name: str
    sampled_requests_enabled: bool = True

    @field_validator("metric_name")
    @classmethod
    def validate_metric_name(cls, v):
        if not METRIC_NAME_PATTERN.match(v):
            raise StructuralValidationError(f"Invalid metric name: '{v}'")
        return v

    @classmethod
    def for_name(cls, metric_name: str) -> "VisibilityConfig":
        """Metrics and sampling enabled under the given metric name."""
        return cls(metric_name=metric_name)

    def to_cfn(self) -> Dict[str, Any]:
        return {
            "CloudWatchMetricsEnabled": self.cloud_watch_metrics_enabled,
            "MetricName": self.metric_name,
            "SampledRequestsEnabled": self.sampled_requests_enabled,
        }


def default_visibility(data: Any, metric_name: Optional[str]) -> Any:
    """Fill in ``visibility_config`` on raw model input when it is missing."""
    if isinstance(data, dict) and data.get("visibility_config") is None and metric_name:
        data = dict(data)
        data["visibility_config"] = VisibilityConfig.for_name(metric_name)
    return data


def tags_to_cfn(tags: Dict[str, str]) -> Optional[list]:
    if not tags:
        return None
    return [{"Key": key, "Value": value} for key, value in tags.items()]
