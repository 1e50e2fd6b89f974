"""
Regex pattern sets: named lists of regular expressions.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ..synth.base import ResourceEmitter, ResourceHandle
from .errors import StructuralValidationError
from .logging_config import get_logger
from .objects import Reference, Scope, compact, tags_to_cfn, validate_name

logger = get_logger(__name__)

REGEX_PATTERN_SET_RESOURCE_TYPE = "AWS::WAFv2::RegexPatternSet"


class RegexPatternSet(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    scope: Scope
    regular_expressions: List[str]
    description: Optional[str] = None
    tags: Dict[str, str] = {}

    @field_validator("name")
    @classmethod
    def validate_set_name(cls, v):
        return validate_name(v, "regex pattern set name")

    @field_validator("regular_expressions")
    @classmethod
    def validate_expressions(cls, v):
        if not v:
            raise StructuralValidationError("A regex pattern set needs at least one expression")
        if any(not expression for expression in v):
            raise StructuralValidationError("Regular expressions must not be empty")
        return v

    def to_cfn(self) -> Dict[str, Any]:
        return compact(
            {
                "Name": self.name,
                "Description": self.description,
                "Scope": self.scope.value,
                "RegularExpressionList": list(self.regular_expressions),
                "Tags": tags_to_cfn(self.tags),
            }
        )

    def emit(
        self, emitter: ResourceEmitter, logical_id: Optional[str] = None
    ) -> "RegexPatternSetHandle":
        logical_id = logical_id or emitter.allocate_logical_id(self.name, "RegexPatternSet")
        emitter.add_resource(logical_id, REGEX_PATTERN_SET_RESOURCE_TYPE, self.to_cfn())
        logger.debug("Emitted regex pattern set '%s' as %s", self.name, logical_id)
        return RegexPatternSetHandle(emitter, logical_id, self)


class RegexPatternSetHandle(ResourceHandle):
    def __init__(self, emitter: ResourceEmitter, logical_id: str, pattern_set: RegexPatternSet):
        super().__init__(emitter, logical_id, REGEX_PATTERN_SET_RESOURCE_TYPE)
        self.pattern_set = pattern_set

    @property
    def id(self) -> Reference:
        return self.get_att("Id")
