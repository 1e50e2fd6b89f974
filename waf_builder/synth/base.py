"""
Interfaces to the provisioning side: the resource emitter that records
template resources, and the provisioner that creates log destinations.
"""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..core.objects import Reference

LOGICAL_ID_PATTERN = re.compile(r"^[A-Za-z0-9]{1,255}$")


class RemovalPolicy(str, Enum):
    """What happens to a resource when it leaves the template."""

    RETAIN = "Retain"
    DELETE = "Delete"
    SNAPSHOT = "Snapshot"


class LogDestinationService(str, Enum):
    """The service that receives web ACL logs."""

    CLOUDWATCH = "CLOUDWATCH"
    S3 = "S3"
    KINESIS = "KINESIS"


def logical_id_for(name: str, suffix: str = "") -> str:
    """
    Derive a template logical ID from a resource name.

    "api-web_acl" becomes "ApiWebAcl"; a leading digit gets an "R" prefix
    since logical IDs must start with a letter.
    """
    parts = [part for part in re.split(r"[^0-9A-Za-z]+", name) if part]
    base = "".join(part[0].upper() + part[1:] for part in parts) or "Resource"
    if base[0].isdigit():
        base = "R" + base
    return (base + suffix)[:255]


class ResourceHandle:
    """A resource recorded by an emitter; attributes resolve at deploy time."""

    def __init__(self, emitter: "ResourceEmitter", logical_id: str, resource_type: str):
        self.emitter = emitter
        self.logical_id = logical_id
        self.resource_type = resource_type

    def get_att(self, attribute: str) -> Reference:
        return self.emitter.get_att(self.logical_id, attribute)

    @property
    def ref(self) -> Reference:
        return self.emitter.ref(self.logical_id)

    @property
    def arn(self) -> Reference:
        return self.get_att("Arn")

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.logical_id})"

    def __repr__(self) -> str:
        return self.__str__()


class ResourceEmitter(ABC):
    """
    Abstract base class for resource emitters.

    An emitter records resources by logical ID and hands out attribute
    references that the provisioning engine resolves later.
    """

    @abstractmethod
    def add_resource(
        self,
        logical_id: str,
        resource_type: str,
        properties: Dict[str, Any],
        deletion_policy: Optional[RemovalPolicy] = None,
        depends_on: Optional[List[str]] = None,
        replace: bool = False,
    ) -> ResourceHandle:
        """Record a resource. Raises DuplicateResourceError unless ``replace`` is set."""
        pass

    @abstractmethod
    def get_att(self, logical_id: str, attribute: str) -> Reference:
        """Reference an attribute of a recorded resource."""
        pass

    @abstractmethod
    def ref(self, logical_id: str) -> Reference:
        """Reference the primary identifier of a recorded resource."""
        pass

    @abstractmethod
    def add_property_override(self, logical_id: str, path: str, value: Any) -> None:
        """Set a nested property (dotted ``path``) on a recorded resource."""
        pass

    @abstractmethod
    def has_resource(self, logical_id: str) -> bool:
        pass

    def allocate_logical_id(self, name: str, suffix: str = "") -> str:
        """A logical ID derived from ``name`` that is not taken yet."""
        candidate = logical_id_for(name, suffix)
        index = 2
        unique = candidate
        while self.has_resource(unique):
            unique = f"{candidate}{index}"
            index += 1
        return unique


class LogDestination(BaseModel):
    """A resolved log destination."""

    model_config = ConfigDict(frozen=True)

    service: LogDestinationService
    arn: Reference
    logical_id: Optional[str] = None


class LogDestinationProvisioner(ABC):
    """Abstract base class for log destination provisioners."""

    @abstractmethod
    def resolve(
        self,
        service: LogDestinationService,
        suffix: Reference,
        retention_days: int,
        removal_policy: RemovalPolicy,
    ) -> LogDestination:
        """
        Create (or look up) the destination for ``service``. Names start
        with ``aws-waf-logs-`` followed by ``suffix``.
        """
        pass
