"""
Substitution strategies.

Each strategy proposes inferred candidates for one orphaned stated
relationship. Strategies only search; selection, safety filtering and
state changes belong to the engine.

Priority order:
1. Same group, destination equal or more proximate
2. Whole-group triple match in any group
3. Compatible group (superset of the stated group's types)
4. Any group, destination equal or more proximate
5. More proximate relationship type
"""

from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from relsub.graph.registry import GraphRegistry
from relsub.models.concept import Concept
from relsub.models.relationship import Relationship


@dataclass
class CandidateSet:
    """Candidates proposed under one algorithm tag, in enumeration order."""

    algorithm: str
    candidates: List[Relationship] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.candidates)


@dataclass
class MatchContext:
    """Both views of the source concept of the relationship being matched."""

    stated: GraphRegistry
    inferred: GraphRegistry

    def stated_source(self, relationship: Relationship) -> Concept:
        return self.stated.concept(relationship.source_id)

    def inferred_source(self, relationship: Relationship) -> Optional[Concept]:
        return self.inferred.get_concept(relationship.source_id)

    @property
    def is_a_type_id(self) -> int:
        return self.stated.is_a_type_id


class Strategy(Protocol):
    """Shared interface: orphaned relationship in, ordered candidate tiers out."""

    name: str

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        ...  # pragma: no cover


class GroupProximateDestination:
    """Algorithm 1 - same type and group, destination equal or a descendant."""

    name = "Alg1"

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        source = context.inferred_source(relationship)
        if source is None:
            return []
        matches = source.find_matching(
            relationship.type_id,
            relationship.destination_id,
            relationship.group,
            allow_more_proximate_destination=True,
            require_same_group=True,
        )
        return [CandidateSet(self.name, matches)]


class WholeGroupTriples:
    """
    Algorithm 2 - an inferred group with exactly the stated group's triples.

    The candidate is that group's member of the same type.
    """

    name = "Alg2"

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        if relationship.type_id == context.is_a_type_id:
            return []
        source = context.inferred_source(relationship)
        if source is None:
            return []
        triples_hash = context.stated_source(relationship).triples_hash(relationship.group)
        matches = source.find_by_triples_hash(triples_hash, relationship.type_id)
        return [CandidateSet(self.name, matches)]


class CompatibleGroupProximate:
    """
    Algorithm 3 - groups holding at least the stated group's attribute types.

    Exact destination first (Alg3.1); only when none exists, descendant
    destinations (Alg3.2).
    """

    name = "Alg3"

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        if relationship.type_id == context.is_a_type_id:
            return []
        source = context.inferred_source(relationship)
        if source is None:
            return []

        group_types = context.stated_source(relationship).group_types(relationship.group)
        potential = [
            r for r in source.find_groups_containing(group_types) if r.type_id == relationship.type_id
        ]

        exact = [r for r in potential if r.destination_id == relationship.destination_id]
        if exact:
            return [CandidateSet("Alg3.1", exact)]

        proximate = []
        for candidate in potential:
            destination = context.inferred.get_concept(candidate.destination_id)
            if destination is not None and destination.has_ancestor(relationship.destination_id):
                proximate.append(candidate)
        return [CandidateSet("Alg3.2", proximate)]


class LooseCrossGroup:
    """Algorithm 4 - group ignored; same type, destination equal or a descendant."""

    name = "Alg4"

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        source = context.inferred_source(relationship)
        if source is None:
            return []
        matches = source.find_matching(
            relationship.type_id,
            relationship.destination_id,
            relationship.group,
            allow_more_proximate_destination=True,
            require_same_group=False,
        )
        return [CandidateSet(self.name, matches)]


class ProximateType:
    """
    Algorithm 5 - relationship type is a descendant of the stated type.

    Tier Alg5.1 keeps the stated destination; tier Alg5.2 accepts a
    descendant destination.
    """

    name = "Alg5"

    def candidates(self, relationship: Relationship, context: MatchContext) -> Sequence[CandidateSet]:
        source = context.inferred_source(relationship)
        if source is None:
            return []
        potential = source.find_by_proximate_type(relationship.type_id)

        exact = [r for r in potential if r.destination_id == relationship.destination_id]
        proximate = []
        for candidate in potential:
            destination = context.inferred.get_concept(candidate.destination_id)
            if destination is not None and destination.has_ancestor(relationship.destination_id):
                proximate.append(candidate)
        return [CandidateSet("Alg5.1", exact), CandidateSet("Alg5.2", proximate)]


DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    GroupProximateDestination(),
    WholeGroupTriples(),
    CompatibleGroupProximate(),
    LooseCrossGroup(),
    ProximateType(),
)
