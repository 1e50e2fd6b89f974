"""
Tests for waf_builder.core.association module.
"""

import pytest

from waf_builder.core.association import (
    ApiGatewayStage,
    ApplicationLoadBalancer,
    CloudFrontDistribution,
    CognitoUserPool,
)
from waf_builder.core.errors import ScopeMismatchError, StructuralValidationError, UnknownResourceError
from waf_builder.core.objects import Scope
from waf_builder.core.web_acl import WebACL
from waf_builder.synth.template import Template

ALB_ARN = "arn:aws:elasticloadbalancing:us-east-1:123456789012:loadbalancer/app/public/50dc6c495c0c9188"


@pytest.fixture
def template():
    return Template()


class TestRegionalAssociation:
    """Test cases for associating regional resources."""

    def test_load_balancer(self, template):
        """Test an association resource links the web ACL and the ALB."""
        web_acl = WebACL(name="site", scope=Scope.REGIONAL).emit(template)
        alb = ApplicationLoadBalancer(name="public-alb", arn=ALB_ARN)
        handle = web_acl.attach_to(alb)
        assert handle.logical_id == "SiteWebACLPublicAlbAssociation"
        assert template.resource(handle.logical_id) == {
            "Type": "AWS::WAFv2::WebACLAssociation",
            "Properties": {
                "ResourceArn": ALB_ARN,
                "WebACLArn": {"Fn::GetAtt": ["SiteWebACL", "Arn"]},
            },
        }
        assert web_acl.attached_resources == [alb]

    def test_unnamed_resources_get_distinct_ids(self, template):
        """Test two unnamed resources of one type do not collide."""
        web_acl = WebACL(name="site", scope=Scope.REGIONAL).emit(template)
        first = web_acl.attach_to(CognitoUserPool(arn="arn:aws:cognito-idp:us-east-1:123456789012:userpool/a"))
        second = web_acl.attach_to(CognitoUserPool(arn="arn:aws:cognito-idp:us-east-1:123456789012:userpool/b"))
        assert first.logical_id == "SiteWebACLCognitoUserPoolAssociation"
        assert second.logical_id == "SiteWebACLCognitoUserPoolAssociation2"

    def test_api_gateway_stage_by_id(self, template):
        """Test a stage ARN is built from the API id and stage name."""
        web_acl = WebACL(name="site", scope=Scope.REGIONAL).emit(template)
        stage = ApiGatewayStage(name="api-prod", rest_api_id="a1b2c3", stage_name="prod")
        handle = web_acl.attach_to(stage)
        arn = template.resource(handle.logical_id)["Properties"]["ResourceArn"]
        assert arn["Fn::Join"][1][-3:] == ["a1b2c3", "/stages/", "prod"]

    def test_api_gateway_stage_needs_identity(self):
        """Test a stage without ARN or id and name fails."""
        with pytest.raises(StructuralValidationError):
            ApiGatewayStage(rest_api_id="a1b2c3")

    def test_scope_mismatch(self, template):
        """Test a CLOUDFRONT web ACL cannot protect an ALB."""
        web_acl = WebACL(name="edge", scope=Scope.CLOUDFRONT).emit(template)
        with pytest.raises(ScopeMismatchError):
            web_acl.attach_to(ApplicationLoadBalancer(arn=ALB_ARN))
        assert web_acl.attached_resources == []


class TestCloudFrontAssociation:
    """Test cases for CloudFront distributions."""

    def test_distribution_gets_web_acl_id(self, template):
        """Test the distribution's WebACLId is set to the web ACL ARN."""
        template.add_resource(
            "Cdn", "AWS::CloudFront::Distribution", {"DistributionConfig": {"Enabled": True}}
        )
        web_acl = WebACL(name="edge", scope=Scope.CLOUDFRONT).emit(template)
        assert web_acl.attach_to(CloudFrontDistribution(logical_id="Cdn")) is None
        config = template.resource("Cdn")["Properties"]["DistributionConfig"]
        assert config["WebACLId"] == {"Fn::GetAtt": ["EdgeWebACL", "Arn"]}
        assert template.resources_of_type("AWS::WAFv2::WebACLAssociation") == {}

    def test_distribution_must_exist(self, template):
        """Test an unknown distribution fails."""
        web_acl = WebACL(name="edge", scope=Scope.CLOUDFRONT).emit(template)
        with pytest.raises(UnknownResourceError):
            web_acl.attach_to(CloudFrontDistribution(logical_id="Missing"))

    def test_regional_web_acl_rejected(self, template):
        """Test a REGIONAL web ACL cannot protect a distribution."""
        web_acl = WebACL(name="site", scope=Scope.REGIONAL).emit(template)
        with pytest.raises(ScopeMismatchError):
            web_acl.attach_to(CloudFrontDistribution(logical_id="Cdn"))
