"""
IP sets: named lists of address ranges that statements match against.
"""

from enum import Enum
from ipaddress import ip_network
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ..synth.base import ResourceEmitter, ResourceHandle
from .errors import StructuralValidationError
from .logging_config import get_logger
from .objects import Reference, Scope, compact, tags_to_cfn, validate_name

logger = get_logger(__name__)

IP_SET_RESOURCE_TYPE = "AWS::WAFv2::IPSet"


class IPAddressVersion(str, Enum):
    IPV4 = "IPV4"
    IPV6 = "IPV6"


class IPSet(BaseModel):
    """A set of CIDR ranges of one IP version. Bare addresses become /32 or /128."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    scope: Scope
    ip_address_version: IPAddressVersion = IPAddressVersion.IPV4
    addresses: List[str]
    description: Optional[str] = None
    tags: Dict[str, str] = {}

    @field_validator("name")
    @classmethod
    def validate_set_name(cls, v):
        return validate_name(v, "IP set name")

    @field_validator("addresses")
    @classmethod
    def normalize_addresses(cls, v):
        normalized = []
        for address in v:
            try:
                normalized.append(str(ip_network(address)))
            except ValueError:
                raise StructuralValidationError(f"Invalid CIDR notation: '{address}'") from None
        return normalized

    @model_validator(mode="after")
    def validate_version(self):
        expected = 4 if self.ip_address_version == IPAddressVersion.IPV4 else 6
        for address in self.addresses:
            if ip_network(address).version != expected:
                raise StructuralValidationError(
                    f"Address '{address}' does not match {self.ip_address_version.value}"
                )
        return self

    def to_cfn(self) -> Dict[str, Any]:
        return compact(
            {
                "Name": self.name,
                "Description": self.description,
                "Scope": self.scope.value,
                "IPAddressVersion": self.ip_address_version.value,
                "Addresses": list(self.addresses),
                "Tags": tags_to_cfn(self.tags),
            }
        )

    def emit(self, emitter: ResourceEmitter, logical_id: Optional[str] = None) -> "IPSetHandle":
        logical_id = logical_id or emitter.allocate_logical_id(self.name, "IPSet")
        emitter.add_resource(logical_id, IP_SET_RESOURCE_TYPE, self.to_cfn())
        logger.debug("Emitted IP set '%s' as %s", self.name, logical_id)
        return IPSetHandle(emitter, logical_id, self)


class IPSetHandle(ResourceHandle):
    def __init__(self, emitter: ResourceEmitter, logical_id: str, ip_set: IPSet):
        super().__init__(emitter, logical_id, IP_SET_RESOURCE_TYPE)
        self.ip_set = ip_set

    @property
    def id(self) -> Reference:
        return self.get_att("Id")
