"""
In-memory CloudFormation template: the reference resource emitter.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..core.errors import DuplicateResourceError, TemplateError, UnknownResourceError
from ..core.logging_config import get_logger
from ..core.objects import Reference
from .base import LOGICAL_ID_PATTERN, RemovalPolicy, ResourceEmitter, ResourceHandle

logger = get_logger(__name__)

TEMPLATE_FORMAT_VERSION = "2010-09-09"


class Template(ResourceEmitter):
    """Collects resources and renders them as a CloudFormation template."""

    def __init__(self, description: Optional[str] = None):
        self.description = description
        self.resources: Dict[str, Dict[str, Any]] = {}

    def add_resource(
        self,
        logical_id: str,
        resource_type: str,
        properties: Dict[str, Any],
        deletion_policy: Optional[RemovalPolicy] = None,
        depends_on: Optional[List[str]] = None,
        replace: bool = False,
    ) -> ResourceHandle:
        if not LOGICAL_ID_PATTERN.match(logical_id):
            raise TemplateError(f"Invalid logical ID: '{logical_id}'")
        if logical_id in self.resources and not replace:
            raise DuplicateResourceError(logical_id)
        for dependency in depends_on or []:
            if dependency not in self.resources:
                raise UnknownResourceError(dependency)

        resource: Dict[str, Any] = {"Type": resource_type, "Properties": properties}
        if deletion_policy is not None:
            policy = RemovalPolicy(deletion_policy).value
            resource["DeletionPolicy"] = policy
            resource["UpdateReplacePolicy"] = policy
        if depends_on:
            resource["DependsOn"] = list(depends_on)

        if logical_id in self.resources:
            logger.debug("Replacing resource %s (%s)", logical_id, resource_type)
        else:
            logger.debug("Adding resource %s (%s)", logical_id, resource_type)
        self.resources[logical_id] = resource
        return ResourceHandle(self, logical_id, resource_type)

    def get_att(self, logical_id: str, attribute: str) -> Reference:
        if logical_id not in self.resources:
            raise UnknownResourceError(logical_id)
        return {"Fn::GetAtt": [logical_id, attribute]}

    def ref(self, logical_id: str) -> Reference:
        if logical_id not in self.resources:
            raise UnknownResourceError(logical_id)
        return {"Ref": logical_id}

    def add_property_override(self, logical_id: str, path: str, value: Any) -> None:
        if logical_id not in self.resources:
            raise UnknownResourceError(logical_id)
        keys = path.split(".")
        node = self.resources[logical_id].setdefault("Properties", {})
        for key in keys[:-1]:
            child = node.get(key)
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = value
        logger.debug("Overrode %s on %s", path, logical_id)

    def has_resource(self, logical_id: str) -> bool:
        return logical_id in self.resources

    def resource(self, logical_id: str) -> Dict[str, Any]:
        """The recorded resource, as it will appear in the template."""
        try:
            return self.resources[logical_id]
        except KeyError:
            raise UnknownResourceError(logical_id) from None

    def resources_of_type(self, resource_type: str) -> Dict[str, Dict[str, Any]]:
        return {
            logical_id: resource
            for logical_id, resource in self.resources.items()
            if resource["Type"] == resource_type
        }

    def to_dict(self) -> Dict[str, Any]:
        template: Dict[str, Any] = {"AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION}
        if self.description:
            template["Description"] = self.description
        template["Resources"] = self.resources
        return template

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def write(self, path: Path, output_format: str = "json") -> None:
        """Write the template to ``path`` as JSON or YAML."""
        content = self.to_yaml() if output_format == "yaml" else self.to_json()
        with open(path, "w") as f:
            f.write(content)
        logger.info("Template written to %s", path)
