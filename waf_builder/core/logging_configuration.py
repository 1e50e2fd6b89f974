"""
Web ACL logging: where logs go, which requests are kept, and which
request fields are redacted.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..synth.base import (
    LogDestination,
    LogDestinationProvisioner,
    LogDestinationService,
    RemovalPolicy,
    ResourceEmitter,
    ResourceHandle,
)
from ..synth.log_destinations import TemplateLogDestinationProvisioner
from .errors import StructuralValidationError
from .logging_config import get_logger
from .objects import Reference, compact, validate_reference
from .statements import FieldToMatch, FieldToMatchType

logger = get_logger(__name__)

LOGGING_CONFIGURATION_RESOURCE_TYPE = "AWS::WAFv2::LoggingConfiguration"
DEFAULT_RETENTION_DAYS = 30

REDACTABLE_FIELDS = (
    FieldToMatchType.SINGLE_HEADER,
    FieldToMatchType.URI_PATH,
    FieldToMatchType.QUERY_STRING,
    FieldToMatchType.METHOD,
)


class LoggingFilterBehavior(str, Enum):
    """Whether requests meeting a filter are logged."""

    KEEP = "KEEP"
    DROP = "DROP"


class LoggingFilterRequirement(str, Enum):
    MEETS_ANY = "MEETS_ANY"
    MEETS_ALL = "MEETS_ALL"


class LoggingFilterActionConditionAction(str, Enum):
    """The action the service applied to a request."""

    ALLOW = "ALLOW"
    BLOCK = "BLOCK"
    COUNT = "COUNT"
    CAPTCHA = "CAPTCHA"
    CHALLENGE = "CHALLENGE"
    # Excluded rules, and rules overridden to count.
    EXCLUDED_AS_COUNT = "EXCLUDED_AS_COUNT"


class LoggingFilterCondition(BaseModel):
    """Matches a log record on its action or on one of its labels."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    action: Optional[LoggingFilterActionConditionAction] = None
    label_name: Optional[str] = None

    @model_validator(mode="after")
    def validate_exactly_one(self):
        if (self.action is None) == (self.label_name is None):
            raise StructuralValidationError(
                "A logging filter condition needs exactly one of action or label_name"
            )
        return self

    @classmethod
    def on_action(cls, action: LoggingFilterActionConditionAction) -> "LoggingFilterCondition":
        return cls(action=action)

    @classmethod
    def on_label(cls, label_name: str) -> "LoggingFilterCondition":
        return cls(label_name=label_name)

    def matches(self, action: LoggingFilterActionConditionAction, labels: Iterable[str] = ()) -> bool:
        if self.action is not None:
            return self.action == LoggingFilterActionConditionAction(action)
        return self.label_name in set(labels)

    def to_cfn(self) -> Dict[str, Any]:
        if self.action is not None:
            return {"ActionCondition": {"Action": self.action.value}}
        return {"LabelNameCondition": {"LabelName": self.label_name}}


class LoggingFilter(BaseModel):
    """A set of conditions and what to do with records that meet them."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    requirement: LoggingFilterRequirement
    conditions: List[LoggingFilterCondition]
    behavior: LoggingFilterBehavior

    @field_validator("conditions")
    @classmethod
    def validate_conditions(cls, v):
        if not v:
            raise StructuralValidationError("A logging filter needs at least one condition")
        return v

    @classmethod
    def keep_if_meets_any(cls, conditions: List[LoggingFilterCondition]) -> "LoggingFilter":
        return cls(
            requirement=LoggingFilterRequirement.MEETS_ANY,
            conditions=conditions,
            behavior=LoggingFilterBehavior.KEEP,
        )

    @classmethod
    def keep_if_meets_all(cls, conditions: List[LoggingFilterCondition]) -> "LoggingFilter":
        return cls(
            requirement=LoggingFilterRequirement.MEETS_ALL,
            conditions=conditions,
            behavior=LoggingFilterBehavior.KEEP,
        )

    @classmethod
    def drop_if_meets_any(cls, conditions: List[LoggingFilterCondition]) -> "LoggingFilter":
        return cls(
            requirement=LoggingFilterRequirement.MEETS_ANY,
            conditions=conditions,
            behavior=LoggingFilterBehavior.DROP,
        )

    @classmethod
    def drop_if_meets_all(cls, conditions: List[LoggingFilterCondition]) -> "LoggingFilter":
        return cls(
            requirement=LoggingFilterRequirement.MEETS_ALL,
            conditions=conditions,
            behavior=LoggingFilterBehavior.DROP,
        )

    def matches(self, action: LoggingFilterActionConditionAction, labels: Iterable[str] = ()) -> bool:
        labels = list(labels)
        results = (condition.matches(action, labels) for condition in self.conditions)
        if self.requirement == LoggingFilterRequirement.MEETS_ALL:
            return all(results)
        return any(results)

    def to_cfn(self) -> Dict[str, Any]:
        return {
            "Behavior": self.behavior.value,
            "Requirement": self.requirement.value,
            "Conditions": [condition.to_cfn() for condition in self.conditions],
        }


class LoggingFilterConfiguration(BaseModel):
    """Filters applied in order; records no filter matches get ``default_behavior``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_behavior: LoggingFilterBehavior
    filters: List[LoggingFilter] = []

    @classmethod
    def default_keep(cls, filters: List[LoggingFilter]) -> "LoggingFilterConfiguration":
        return cls(default_behavior=LoggingFilterBehavior.KEEP, filters=filters)

    @classmethod
    def default_drop(cls, filters: List[LoggingFilter]) -> "LoggingFilterConfiguration":
        return cls(default_behavior=LoggingFilterBehavior.DROP, filters=filters)

    def behavior_for(
        self, action: LoggingFilterActionConditionAction, labels: Iterable[str] = ()
    ) -> LoggingFilterBehavior:
        """Whether a record with ``action`` and ``labels`` would be kept or dropped."""
        labels = list(labels)
        for logging_filter in self.filters:
            if logging_filter.matches(action, labels):
                return logging_filter.behavior
        return self.default_behavior

    def to_cfn(self) -> Dict[str, Any]:
        return {
            "DefaultBehavior": self.default_behavior.value,
            "Filters": [logging_filter.to_cfn() for logging_filter in self.filters],
        }


def default_logging_filter() -> LoggingFilterConfiguration:
    """Log blocked and counted requests only."""
    return LoggingFilterConfiguration.default_drop(
        [
            LoggingFilter.keep_if_meets_any(
                [
                    LoggingFilterCondition.on_action(LoggingFilterActionConditionAction.BLOCK),
                    LoggingFilterCondition.on_action(LoggingFilterActionConditionAction.COUNT),
                ]
            )
        ]
    )


class LogDestinationConfig(BaseModel):
    """
    Where to send logs.

    With ``destination_arn`` the logs go to an existing destination and
    nothing is provisioned; otherwise a destination named
    ``aws-waf-logs-<log_suffix>`` is created, the suffix defaulting to the
    web ACL id.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_destination_service: LogDestinationService
    log_suffix: Optional[str] = None
    removal_policy: RemovalPolicy = RemovalPolicy.RETAIN
    retention_days: int = DEFAULT_RETENTION_DAYS
    destination_arn: Optional[Reference] = None

    @field_validator("retention_days")
    @classmethod
    def validate_retention(cls, v):
        if v <= 0:
            raise StructuralValidationError(f"Retention must be positive, got {v} days")
        return v

    @field_validator("destination_arn")
    @classmethod
    def validate_destination_arn(cls, v):
        if v is not None:
            validate_reference(v, "log destination ARN")
        return v


def _validate_redacted_field(field: FieldToMatch) -> FieldToMatch:
    if field.type not in REDACTABLE_FIELDS:
        raise StructuralValidationError(
            f"{field.type.value} cannot be redacted; use a single header, "
            "the URI path, the query string or the method"
        )
    return field


class LoggingConfiguration(BaseModel):
    """The logging record of one web ACL."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    resource_arn: Reference
    destination: LogDestination
    logging_filter: LoggingFilterConfiguration = Field(default_factory=default_logging_filter)
    redacted_fields: List[FieldToMatch] = []

    @field_validator("redacted_fields")
    @classmethod
    def validate_redacted_fields(cls, v):
        return [_validate_redacted_field(field) for field in v]

    def to_cfn(self) -> Dict[str, Any]:
        return compact(
            {
                "ResourceArn": self.resource_arn,
                "LogDestinationConfigs": [self.destination.arn],
                "LoggingFilter": self.logging_filter.to_cfn(),
                "RedactedFields": (
                    [field.to_cfn() for field in self.redacted_fields]
                    if self.redacted_fields
                    else None
                ),
            }
        )

    def emit(self, emitter: ResourceEmitter, logical_id: str) -> ResourceHandle:
        """Record the configuration, replacing an earlier one under the same ID."""
        depends_on = [self.destination.logical_id] if self.destination.logical_id else None
        return emitter.add_resource(
            logical_id,
            LOGGING_CONFIGURATION_RESOURCE_TYPE,
            self.to_cfn(),
            depends_on=depends_on,
            replace=True,
        )

    @classmethod
    def attach(
        cls,
        web_acl: Any,
        destination_config: LogDestinationConfig,
        filter_policy: Optional[LoggingFilterConfiguration] = None,
        redacted_fields: Optional[List[FieldToMatch]] = None,
        provisioner: Optional[LogDestinationProvisioner] = None,
    ) -> "LoggingConfiguration":
        """
        Attach logging to an emitted web ACL.

        ``filter_policy`` defaults to keeping only blocked and counted
        requests. A later call replaces the configuration; whether the new
        destination may coexist with the old one is up to the provisioner.
        Nothing is emitted when the configuration is invalid.
        """
        redacted_fields = [_validate_redacted_field(field) for field in redacted_fields or []]
        logging_filter = filter_policy or default_logging_filter()

        if destination_config.destination_arn is not None:
            destination = LogDestination(
                service=destination_config.log_destination_service,
                arn=destination_config.destination_arn,
            )
        else:
            provisioner = provisioner or TemplateLogDestinationProvisioner(web_acl.emitter)
            destination = provisioner.resolve(
                destination_config.log_destination_service,
                destination_config.log_suffix or web_acl.id,
                destination_config.retention_days,
                destination_config.removal_policy,
            )

        configuration = cls(
            resource_arn=web_acl.arn,
            destination=destination,
            logging_filter=logging_filter,
            redacted_fields=redacted_fields,
        )
        if web_acl.logging_configuration is not None:
            logger.debug("Replacing logging configuration of %s", web_acl.logical_id)
        configuration.emit(web_acl.emitter, f"{web_acl.logical_id}LoggingConfiguration")
        web_acl.logging_configuration = configuration
        return configuration
