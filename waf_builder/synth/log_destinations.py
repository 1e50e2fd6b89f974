"""
Reference log destination provisioner: creates the destination resource
in the same template as the web ACL.
"""

from typing import Any, Dict

from ..core.logging_config import get_logger
from ..core.objects import Reference
from .base import (
    LogDestination,
    LogDestinationProvisioner,
    LogDestinationService,
    RemovalPolicy,
    ResourceEmitter,
    logical_id_for,
)

logger = get_logger(__name__)

LOG_NAME_PREFIX = "aws-waf-logs-"
LOG_DELIVERY_PRINCIPAL = "delivery.logs.amazonaws.com"

_LOGICAL_ID_SUFFIXES = {
    LogDestinationService.CLOUDWATCH: "LogGroup",
    LogDestinationService.S3: "LogBucket",
    LogDestinationService.KINESIS: "LogStream",
}


def destination_name(suffix: Reference) -> Reference:
    """``aws-waf-logs-<suffix>``; a deploy-time suffix becomes an Fn::Join."""
    if isinstance(suffix, str):
        return LOG_NAME_PREFIX + suffix
    return {"Fn::Join": ["", [LOG_NAME_PREFIX, suffix]]}


def _suffix_label(suffix: Reference) -> str:
    if isinstance(suffix, str):
        return suffix
    get_att = suffix.get("Fn::GetAtt") if isinstance(suffix, dict) else None
    if get_att:
        return get_att[0]
    return "WafLogs"


class TemplateLogDestinationProvisioner(LogDestinationProvisioner):
    """
    Adds a CloudWatch log group, S3 bucket or Kinesis stream to the
    emitter. Each suffix and service gets one destination; resolving the
    same pair twice raises DuplicateResourceError.
    """

    def __init__(self, emitter: ResourceEmitter):
        self.emitter = emitter

    def resolve(
        self,
        service: LogDestinationService,
        suffix: Reference,
        retention_days: int,
        removal_policy: RemovalPolicy,
    ) -> LogDestination:
        service = LogDestinationService(service)
        logical_id = logical_id_for(_suffix_label(suffix), _LOGICAL_ID_SUFFIXES[service])

        if service == LogDestinationService.CLOUDWATCH:
            arn = self._log_group(logical_id, suffix, retention_days, removal_policy)
        elif service == LogDestinationService.S3:
            arn = self._bucket(logical_id, suffix, retention_days, removal_policy)
        else:
            arn = self._stream(logical_id, retention_days, removal_policy)

        logger.debug("Provisioned %s log destination %s", service.value, logical_id)
        return LogDestination(service=service, arn=arn, logical_id=logical_id)

    def _log_group(self, logical_id, suffix, retention_days, removal_policy) -> Reference:
        handle = self.emitter.add_resource(
            logical_id,
            "AWS::Logs::LogGroup",
            {"LogGroupName": destination_name(suffix), "RetentionInDays": retention_days},
            deletion_policy=removal_policy,
        )
        # Log group ARNs end in ":*", which the logging configuration rejects.
        return {"Fn::Select": [0, {"Fn::Split": [":*", handle.arn]}]}

    def _bucket(self, logical_id, suffix, retention_days, removal_policy) -> Reference:
        handle = self.emitter.add_resource(
            logical_id,
            "AWS::S3::Bucket",
            {
                "BucketName": destination_name(suffix),
                "BucketEncryption": {
                    "ServerSideEncryptionConfiguration": [
                        {"ServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}
                    ]
                },
                "PublicAccessBlockConfiguration": {
                    "BlockPublicAcls": True,
                    "BlockPublicPolicy": True,
                    "IgnorePublicAcls": True,
                    "RestrictPublicBuckets": True,
                },
                "LifecycleConfiguration": {
                    "Rules": [{"ExpirationInDays": retention_days, "Status": "Enabled"}]
                },
            },
            deletion_policy=removal_policy,
        )
        self.emitter.add_resource(
            f"{logical_id}Policy",
            "AWS::S3::BucketPolicy",
            {"Bucket": handle.ref, "PolicyDocument": _log_delivery_policy(handle.arn)},
            depends_on=[logical_id],
        )
        return handle.arn

    def _stream(self, logical_id, retention_days, removal_policy) -> Reference:
        handle = self.emitter.add_resource(
            logical_id,
            "AWS::Kinesis::Stream",
            {"RetentionPeriodHours": retention_days * 24, "ShardCount": 1},
            deletion_policy=removal_policy,
        )
        return handle.arn


def _log_delivery_policy(bucket_arn: Reference) -> Dict[str, Any]:
    """Bucket policy that lets the log delivery service write objects."""
    source_account = {"aws:SourceAccount": [{"Ref": "AWS::AccountId"}]}
    source_arn = {
        "aws:SourceArn": [
            {
                "Fn::Join": [
                    "",
                    [
                        "arn:",
                        {"Ref": "AWS::Partition"},
                        ":logs:",
                        {"Ref": "AWS::Region"},
                        ":",
                        {"Ref": "AWS::AccountId"},
                        ":*",
                    ],
                ]
            }
        ]
    }
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Sid": "AWSLogDeliveryWrite",
                "Effect": "Allow",
                "Principal": {"Service": LOG_DELIVERY_PRINCIPAL},
                "Action": "s3:PutObject",
                "Resource": {"Fn::Join": ["", [bucket_arn, "/*"]]},
                "Condition": {
                    "StringEquals": {"s3:x-amz-acl": "bucket-owner-full-control", **source_account},
                    "ArnLike": source_arn,
                },
            },
            {
                "Sid": "AWSLogDeliveryAclCheck",
                "Effect": "Allow",
                "Principal": {"Service": LOG_DELIVERY_PRINCIPAL},
                "Action": "s3:GetBucketAcl",
                "Resource": bucket_arn,
                "Condition": {"StringEquals": source_account, "ArnLike": source_arn},
            },
        ],
    }
