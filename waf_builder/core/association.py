"""
Associating a web ACL with the resources it protects.

Regional resources (load balancers, API stages, user pools, GraphQL APIs)
get a separate association resource. CloudFront distributions carry the
web ACL in their own configuration instead.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..synth.base import ResourceHandle
from .errors import ScopeMismatchError, StructuralValidationError
from .logging_config import get_logger
from .objects import Reference, Scope, validate_name, validate_reference

logger = get_logger(__name__)

WEB_ACL_ASSOCIATION_RESOURCE_TYPE = "AWS::WAFv2::WebACLAssociation"
CLOUDFRONT_WEB_ACL_PATH = "DistributionConfig.WebACLId"


class ProtectedResource(BaseModel, ABC):
    """A resource a web ACL can protect."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Names the association resource in the template.
    name: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_resource_name(cls, v):
        if v is not None:
            validate_name(v, "resource name")
        return v

    @abstractmethod
    def arn_for_association(self) -> Reference:
        pass

    @abstractmethod
    def scope_class(self) -> Scope:
        pass

    @property
    def label(self) -> str:
        return self.name or self.__class__.__name__


class _RegionalResource(ProtectedResource):
    arn: Reference

    @field_validator("arn")
    @classmethod
    def validate_arn(cls, v):
        return validate_reference(v, "resource ARN")

    def arn_for_association(self) -> Reference:
        return self.arn

    def scope_class(self) -> Scope:
        return Scope.REGIONAL


class ApplicationLoadBalancer(_RegionalResource):
    type: Literal["application_load_balancer"] = "application_load_balancer"


class CognitoUserPool(_RegionalResource):
    type: Literal["cognito_user_pool"] = "cognito_user_pool"


class AppSyncGraphqlApi(_RegionalResource):
    type: Literal["appsync_graphql_api"] = "appsync_graphql_api"


class ApiGatewayStage(ProtectedResource):
    """A REST API stage, given by ARN or by API id and stage name."""

    type: Literal["api_gateway_stage"] = "api_gateway_stage"
    arn: Optional[Reference] = None
    rest_api_id: Optional[Reference] = None
    stage_name: Optional[str] = None

    @model_validator(mode="after")
    def validate_identity(self):
        if self.arn is not None:
            validate_reference(self.arn, "stage ARN")
        elif self.rest_api_id is None or not self.stage_name:
            raise StructuralValidationError(
                "An API Gateway stage needs an ARN or both rest_api_id and stage_name"
            )
        return self

    def arn_for_association(self) -> Reference:
        if self.arn is not None:
            return self.arn
        return {
            "Fn::Join": [
                "",
                [
                    "arn:",
                    {"Ref": "AWS::Partition"},
                    ":apigateway:",
                    {"Ref": "AWS::Region"},
                    "::/restapis/",
                    self.rest_api_id,
                    "/stages/",
                    self.stage_name,
                ],
            ]
        }

    def scope_class(self) -> Scope:
        return Scope.REGIONAL


class CloudFrontDistribution(ProtectedResource):
    """A distribution defined in the same template under ``logical_id``."""

    type: Literal["cloudfront_distribution"] = "cloudfront_distribution"
    logical_id: str

    def arn_for_association(self) -> Reference:
        return {
            "Fn::Join": [
                "",
                [
                    "arn:",
                    {"Ref": "AWS::Partition"},
                    ":cloudfront::",
                    {"Ref": "AWS::AccountId"},
                    ":distribution/",
                    {"Ref": self.logical_id},
                ],
            ]
        }

    def scope_class(self) -> Scope:
        return Scope.CLOUDFRONT

    @property
    def label(self) -> str:
        return self.name or self.logical_id


def associate(web_acl: Any, resource: ProtectedResource) -> Optional[ResourceHandle]:
    """
    Protect ``resource`` with an emitted web ACL.

    Returns the association resource, or None for CloudFront, where the
    distribution itself is modified.
    """
    if resource.scope_class() != web_acl.scope:
        raise ScopeMismatchError(
            f"Cannot associate {web_acl.scope.value} web ACL {web_acl.logical_id} "
            f"with {resource.scope_class().value} resource '{resource.label}'"
        )

    emitter = web_acl.emitter
    handle = None
    if resource.scope_class() == Scope.CLOUDFRONT:
        emitter.add_property_override(resource.logical_id, CLOUDFRONT_WEB_ACL_PATH, web_acl.arn)
        logger.debug("Set %s on %s", CLOUDFRONT_WEB_ACL_PATH, resource.logical_id)
    else:
        logical_id = emitter.allocate_logical_id(
            f"{web_acl.logical_id}-{resource.label}", "Association"
        )
        handle = emitter.add_resource(
            logical_id,
            WEB_ACL_ASSOCIATION_RESOURCE_TYPE,
            {"ResourceArn": resource.arn_for_association(), "WebACLArn": web_acl.arn},
        )
        logger.debug("Associated %s with %s", web_acl.logical_id, resource.label)

    web_acl.attached_resources.append(resource)
    return handle
