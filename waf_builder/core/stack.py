"""
Stack definitions: a whole WAF template described in one YAML or JSON file.

Inside a definition, resources refer to each other by name:

    ip_sets:
      - name: blocked
        scope: REGIONAL
        addresses: [192.0.2.0/24]
    web_acls:
      - name: api
        scope: REGIONAL
        rules:
          - name: block-listed
            action: {type: block}
            statement: {kind: ip_set_match, ip_set: blocked}

``ip_set: <name>``, ``regex_pattern_set: <name>`` and ``rule_group: <name>``
are replaced by attribute references to the resources the stack emits.
"""

import json
from typing import Annotated, Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from ..synth.base import (
    LogDestinationProvisioner,
    ResourceEmitter,
    logical_id_for,
)
from ..synth.template import Template
from .association import (
    ApiGatewayStage,
    AppSyncGraphqlApi,
    ApplicationLoadBalancer,
    CloudFrontDistribution,
    CognitoUserPool,
)
from .capacity import CapacityCostTable
from .config import BuilderConfig
from .errors import StructuralValidationError
from .ip_set import IPSet
from .logging_config import get_logger
from .logging_configuration import LogDestinationConfig, LoggingFilterConfiguration
from .objects import Reference
from .regex_pattern_set import RegexPatternSet
from .rule_group import RuleGroup, RuleGroupReference
from .statements import FieldToMatch
from .web_acl import WebACL, WebACLHandle

logger = get_logger(__name__)

AnyProtectedResource = Annotated[
    Union[
        ApplicationLoadBalancer,
        ApiGatewayStage,
        CognitoUserPool,
        AppSyncGraphqlApi,
        CloudFrontDistribution,
    ],
    Field(discriminator="type"),
]


class LoggingDefinition(BaseModel):
    """Logging for one of the stack's web ACLs."""

    web_acl: str
    destination: LogDestinationConfig
    filter: Optional[LoggingFilterConfiguration] = None
    redacted_fields: List[FieldToMatch] = []


class AssociationDefinition(BaseModel):
    """A resource protected by one of the stack's web ACLs."""

    web_acl: str
    resource: AnyProtectedResource


def _get_att(logical_id: str, attribute: str = "Arn") -> Reference:
    return {"Fn::GetAtt": [logical_id, attribute]}


def _lookup(names: Dict[str, Any], name: str, kind: str) -> Any:
    try:
        return names[name]
    except KeyError:
        raise StructuralValidationError(f"Unknown {kind}: '{name}'") from None


def _resolve_set_names(node: Any, ip_sets: Dict[str, str], pattern_sets: Dict[str, str]) -> Any:
    """Replace ``ip_set``/``regex_pattern_set`` names with ARN references, recursively."""
    if isinstance(node, list):
        return [_resolve_set_names(item, ip_sets, pattern_sets) for item in node]
    if not isinstance(node, dict):
        return node

    node = dict(node)
    if isinstance(node.get("ip_set"), str):
        logical_id = _lookup(ip_sets, node.pop("ip_set"), "IP set")
        node["arn"] = _get_att(logical_id)
        node.setdefault("kind", "ip_set_match")
    if isinstance(node.get("regex_pattern_set"), str):
        logical_id = _lookup(pattern_sets, node.pop("regex_pattern_set"), "regex pattern set")
        node["arn"] = _get_att(logical_id)
        node.setdefault("type", "regex_pattern_set")
    return {key: _resolve_set_names(value, ip_sets, pattern_sets) for key, value in node.items()}


def _resolve_rule_group_names(rules: List[Any], rule_groups: Dict[str, RuleGroup]) -> List[Any]:
    resolved = []
    for rule in rules or []:
        if isinstance(rule, dict) and isinstance(rule.get("rule_group"), str):
            rule = dict(rule)
            group = _lookup(rule_groups, rule.pop("rule_group"), "rule group")
            rule = RuleGroupReference.from_rule_group(
                group, _get_att(logical_id_for(group.name, "RuleGroup")), **rule
            )
        resolved.append(rule)
    return resolved


def _ensure_unique(names: List[str], kind: str, suffix: Optional[str] = None) -> None:
    seen = {}
    for name in names:
        key = logical_id_for(name, suffix) if suffix is not None else name
        if key in seen:
            if seen[key] == name:
                raise StructuralValidationError(f"Duplicate {kind} name: '{name}'")
            raise StructuralValidationError(
                f"The {kind} names '{seen[key]}' and '{name}' both map to logical ID '{key}'"
            )
        seen[key] = name


class WafStack(BaseModel):
    """
    A complete set of WAF resources that synthesize into one template.

    Resources are emitted in dependency order: sets, rule groups, web ACLs,
    logging configurations, then associations.
    """

    name: str = "waf-stack"
    description: Optional[str] = None
    ip_sets: List[IPSet] = []
    regex_pattern_sets: List[RegexPatternSet] = []
    rule_groups: List[RuleGroup] = []
    web_acls: List[WebACL] = []
    logging: List[LoggingDefinition] = []
    associations: List[AssociationDefinition] = []

    @model_validator(mode="after")
    def validate_references(self):
        _ensure_unique([ip_set.name for ip_set in self.ip_sets], "IP set", "IPSet")
        _ensure_unique(
            [pattern_set.name for pattern_set in self.regex_pattern_sets],
            "regex pattern set",
            "RegexPatternSet",
        )
        _ensure_unique([rule_group.name for rule_group in self.rule_groups], "rule group", "RuleGroup")
        _ensure_unique([web_acl.name for web_acl in self.web_acls], "web ACL", "WebACL")
        _ensure_unique([entry.web_acl for entry in self.logging], "logged web ACL")

        web_acl_names = {web_acl.name for web_acl in self.web_acls}
        for entry in list(self.logging) + list(self.associations):
            if entry.web_acl not in web_acl_names:
                raise StructuralValidationError(f"Unknown web ACL: '{entry.web_acl}'")
        return self

    def get_web_acl(self, name: str) -> Optional[WebACL]:
        for web_acl in self.web_acls:
            if web_acl.name == name:
                return web_acl
        return None

    def synthesize(
        self,
        emitter: Optional[ResourceEmitter] = None,
        provisioner: Optional[LogDestinationProvisioner] = None,
    ) -> ResourceEmitter:
        """Emit every resource of the stack; returns the emitter (a new Template by default)."""
        emitter = emitter or Template(description=self.description)

        for ip_set in self.ip_sets:
            ip_set.emit(emitter, logical_id_for(ip_set.name, "IPSet"))
        for pattern_set in self.regex_pattern_sets:
            pattern_set.emit(emitter, logical_id_for(pattern_set.name, "RegexPatternSet"))
        for rule_group in self.rule_groups:
            rule_group.emit(emitter, logical_id_for(rule_group.name, "RuleGroup"))

        handles: Dict[str, WebACLHandle] = {}
        for web_acl in self.web_acls:
            handles[web_acl.name] = web_acl.emit(emitter, logical_id_for(web_acl.name, "WebACL"))

        for entry in self.logging:
            handles[entry.web_acl].set_logging_configuration(
                entry.destination,
                filter_policy=entry.filter,
                redacted_fields=entry.redacted_fields,
                provisioner=provisioner,
            )
        for entry in self.associations:
            handles[entry.web_acl].attach_to(entry.resource)

        logger.info("Synthesized stack '%s'", self.name)
        return emitter

    def export_to_dict(self) -> Dict[str, Any]:
        """Export the stack with every name reference resolved."""
        return self.model_dump(mode="json", exclude_none=True)

    def export_to_yaml(self) -> str:
        return yaml.safe_dump(
            self.export_to_dict(), default_flow_style=False, allow_unicode=True, sort_keys=False
        )

    def export_to_json(self) -> str:
        return json.dumps(self.export_to_dict(), indent=2)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        cost_table: Optional[CapacityCostTable] = None,
        config: Optional[BuilderConfig] = None,
    ) -> "WafStack":
        """
        Create a stack from a definition, resolving name references.

        ``config`` supplies defaults for log retention, removal policy and
        the template description; ``cost_table`` overrides the capacity
        cost table of every rule group and web ACL.
        """
        if not isinstance(data, dict):
            raise StructuralValidationError("A stack definition must be a mapping")
        data = dict(data)
        config = config or BuilderConfig()

        ip_set_ids = {
            entry.get("name"): logical_id_for(entry.get("name") or "", "IPSet")
            for entry in data.get("ip_sets") or []
        }
        pattern_set_ids = {
            entry.get("name"): logical_id_for(entry.get("name") or "", "RegexPatternSet")
            for entry in data.get("regex_pattern_sets") or []
        }

        def prepare(entry: Dict[str, Any]) -> Dict[str, Any]:
            entry = _resolve_set_names(entry, ip_set_ids, pattern_set_ids)
            if cost_table is not None:
                entry.setdefault("cost_table", cost_table)
            return entry

        rule_groups = [RuleGroup(**prepare(entry)) for entry in data.get("rule_groups") or []]
        groups_by_name = {rule_group.name: rule_group for rule_group in rule_groups}

        web_acls = []
        for entry in data.get("web_acls") or []:
            entry = prepare(entry)
            entry["rules"] = _resolve_rule_group_names(entry.get("rules"), groups_by_name)
            web_acls.append(WebACL(**entry))

        logging_entries = []
        for entry in data.get("logging") or []:
            entry = dict(entry)
            destination = dict(entry.get("destination") or {})
            destination.setdefault("retention_days", config.log_retention_days)
            destination.setdefault("removal_policy", config.removal_policy)
            entry["destination"] = destination
            logging_entries.append(entry)

        data.update(
            rule_groups=rule_groups,
            web_acls=web_acls,
            logging=logging_entries,
        )
        data.setdefault("description", config.template_description)
        stack = cls(**data)
        logger.debug(
            "Loaded stack '%s': %d web ACLs, %d rule groups",
            stack.name,
            len(stack.web_acls),
            len(stack.rule_groups),
        )
        return stack

    @classmethod
    def from_yaml(cls, yaml_content: str, **options: Any) -> "WafStack":
        """Create a stack from YAML content."""
        data = yaml.safe_load(yaml_content)
        return cls.from_dict(data, **options)

    @classmethod
    def from_json(cls, json_content: str, **options: Any) -> "WafStack":
        """Create a stack from JSON content."""
        data = json.loads(json_content)
        return cls.from_dict(data, **options)

    @classmethod
    def from_file(cls, path: Any, **options: Any) -> "WafStack":
        """Load a ``.json`` file as JSON and anything else as YAML."""
        with open(path) as f:
            content = f.read()
        if str(path).endswith(".json"):
            return cls.from_json(content, **options)
        return cls.from_yaml(content, **options)
