"""
Safety policies.

Decide whether an inferred candidate may stand in for an orphaned stated
relationship. The cascade depends only on the `SafetyPolicy` interface.
"""

from typing import Iterable, Literal, Optional, Protocol, Set, Tuple, Union, runtime_checkable

from relsub.core.config import Settings
from relsub.core.exceptions import ConfigurationError
from relsub.models.concept import Concept
from relsub.models.relationship import Relationship

Triple = Tuple[int, int, int]
ExclusiveTypes = Union[Literal["*"], Iterable[int]]


@runtime_checkable
class SafetyPolicy(Protocol):
    """Pluggable rule applied to every candidate before it is selected."""

    name: str

    def is_safe(self, relationship: Relationship, candidate: Relationship, concept: Concept) -> bool:
        """
        Args:
            relationship: Stated relationship needing a replacement
            candidate: Inferred relationship proposed by a strategy
            concept: Source concept of `relationship` in the stated view
        """
        ...  # pragma: no cover


def projected_triples(concept: Concept, excluding: Relationship) -> Set[Triple]:
    """
    The stated concept's edges as they would be written after substitution.

    Relationships that stay contribute themselves, replaced ones contribute
    their replacement, and those still waiting contribute nothing (they will
    be inactivated). `excluding` is the relationship being decided.
    """
    triples: Set[Triple] = set()
    for sibling in concept.attributes:
        if sibling is excluding:
            continue
        if not sibling.needs_replaced:
            triples.add(sibling.triple)
        elif sibling.replacement is not None:
            triples.add(sibling.replacement.triple)
    return triples


class AuthoringSafetyPolicy:
    """
    Default rule set.

    Rejects a candidate that would:
    - duplicate an edge the stated concept will already carry, or
    - put a second, different destination of a group-exclusive type into a
      non-zero role group.
    """

    name = "authoring"

    def __init__(self, group_exclusive_types: ExclusiveTypes = (), is_a_type_id: Optional[int] = None):
        self.all_types_exclusive = group_exclusive_types == "*"
        self.group_exclusive_types: Set[int] = (
            set() if self.all_types_exclusive else set(group_exclusive_types)  # type: ignore[arg-type]
        )
        self._is_a_type_id = is_a_type_id

    def _is_exclusive(self, type_id: int, is_a_type_id: int) -> bool:
        if type_id == is_a_type_id:
            return False
        return self.all_types_exclusive or type_id in self.group_exclusive_types

    def is_safe(self, relationship: Relationship, candidate: Relationship, concept: Concept) -> bool:
        projected = projected_triples(concept, excluding=relationship)

        if candidate.triple in projected:
            return False

        is_a_type_id = self._is_a_type_id or concept.is_a_type_id
        if candidate.group != 0 and self._is_exclusive(candidate.type_id, is_a_type_id):
            for type_id, destination_id, group in projected:
                if (
                    group == candidate.group
                    and type_id == candidate.type_id
                    and destination_id != candidate.destination_id
                ):
                    return False

        return True


class PermissivePolicy:
    """Accepts every candidate. Useful for what-if runs and tests."""

    name = "permissive"

    def is_safe(self, relationship: Relationship, candidate: Relationship, concept: Concept) -> bool:
        return True


def create_safety_policy(settings: Optional[Settings] = None) -> SafetyPolicy:
    """Build the policy named by `safety.policy`."""
    settings = settings or Settings()
    name = settings.get("safety.policy", "authoring")

    if name == "authoring":
        return AuthoringSafetyPolicy(
            group_exclusive_types=settings.get("safety.group_exclusive_types", []),
            is_a_type_id=settings.get("hierarchy.is_a_type_id"),
        )
    if name == "permissive":
        return PermissivePolicy()

    raise ConfigurationError(f"Unknown safety policy '{name}'", context={"setting": "safety.policy"})
