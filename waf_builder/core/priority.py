"""
Priority assignment for web ACL and rule group aggregation.

Priorities are never user supplied: the i-th rule of the ordered input
receives priority i. Reordering the input reorders every priority, and
aggregating the same list twice yields the same assignment.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from .actions import CustomResponseBody
from .errors import DuplicateRuleNameError, ResponseBodyConflictError, StructuralValidationError
from .logging_config import get_logger
from .rules import BaseRule

logger = get_logger(__name__)


class PrioritizedRule(BaseModel):
    """A rule together with the priority it was assigned."""

    model_config = ConfigDict(frozen=True)

    priority: int
    rule: BaseRule

    @property
    def name(self) -> str:
        return self.rule.name

    def to_cfn(self) -> Dict[str, Any]:
        return self.rule.to_cfn(self.priority)


def ensure_ordered(rules: Any) -> Any:
    """Reject unordered collections; priority depends on declaration order."""
    if isinstance(rules, (set, frozenset, dict)):
        raise StructuralValidationError(
            "Rules must be given as an ordered sequence, not a "
            f"{type(rules).__name__}"
        )
    return rules


def prioritize_rules(rules: Sequence[BaseRule]) -> List[PrioritizedRule]:
    """Assign priority = position, rejecting duplicate names."""
    ensure_ordered(rules)
    seen = set()
    prioritized = []
    for priority, rule in enumerate(rules):
        if rule.name in seen:
            raise DuplicateRuleNameError(rule.name)
        seen.add(rule.name)
        prioritized.append(PrioritizedRule(priority=priority, rule=rule))
        logger.debug("Assigned priority %d to rule '%s'", priority, rule.name)
    return prioritized


def collect_response_bodies(
    rules: Sequence[BaseRule], default_action: Optional[Any] = None
) -> Dict[str, CustomResponseBody]:
    """Gather the custom response bodies referenced by rule and default actions."""
    sources = [rule.response_bodies() for rule in rules]
    if default_action is not None:
        sources.append(default_action.response_bodies("DefaultAction"))

    bodies: Dict[str, CustomResponseBody] = {}
    for source in sources:
        for key, body in source.items():
            existing = bodies.get(key)
            if existing is not None and existing.to_cfn() != body.to_cfn():
                raise ResponseBodyConflictError(
                    f"Custom response body '{key}' is defined with different content"
                )
            bodies[key] = body
    return bodies
