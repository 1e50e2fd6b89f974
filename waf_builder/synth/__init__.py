"""
Template synthesis: emitter and log destination interfaces, plus the
in-memory CloudFormation implementations.
"""

from .base import (
    LogDestination,
    LogDestinationProvisioner,
    LogDestinationService,
    RemovalPolicy,
    ResourceEmitter,
    ResourceHandle,
    logical_id_for,
)
from .log_destinations import TemplateLogDestinationProvisioner
from .template import Template

__all__ = [
    "ResourceEmitter",
    "ResourceHandle",
    "LogDestinationProvisioner",
    "LogDestination",
    "LogDestinationService",
    "RemovalPolicy",
    "Template",
    "TemplateLogDestinationProvisioner",
    "logical_id_for",
]
