"""
Concept model.

A node of one graph view. The same concept id exists once per view, as two
independent `Concept` instances owned by two registries; ancestry and group
queries never cross views.
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set, Union

from relsub.core.exceptions import ValidationError
from relsub.models.relationship import Characteristic, Relationship

if TYPE_CHECKING:
    from relsub.graph.registry import GraphRegistry


ConceptRef = Union["Concept", int]


class Concept:
    """
    Node in the hierarchy of one view.

    Owns its outgoing relationships ("attributes") and answers the
    structural queries used by the matching engine.
    """

    def __init__(self, concept_id: int, characteristic: Characteristic, registry: "GraphRegistry"):
        self.concept_id = concept_id
        self.characteristic = characteristic
        self._registry = registry

        self._attributes: List[Relationship] = []
        self._sorted = True
        self._parent_ids: Set[int] = set()

        # Caches
        self._ancestors: Optional[frozenset[int]] = None
        self._ancestors_version = -1
        self._groups: Optional[Dict[int, List[Relationship]]] = None
        self._triples_hashes: Dict[int, str] = {}

    @property
    def is_a_type_id(self) -> int:
        return self._registry.is_a_type_id

    def __repr__(self) -> str:
        return f"Concept({self.concept_id}, {self.characteristic.value})"

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_relationship(self, relationship: Relationship) -> None:
        """Attach an outgoing relationship of this view."""
        if relationship.source_id != self.concept_id:
            raise ValidationError(
                f"Relationship {relationship.key} does not start at concept {self.concept_id}"
            )
        if relationship.characteristic is not self.characteristic:
            raise ValidationError(
                f"Cannot attach a {relationship.characteristic.value} relationship "
                f"to a {self.characteristic.value} concept"
            )

        self._attributes.append(relationship)
        self._sorted = False
        self._groups = None
        self._triples_hashes.clear()

        if relationship.type_id == self.is_a_type_id:
            self._parent_ids.add(relationship.destination_id)

    def remove_relationship(self, relationship: Relationship) -> None:
        """Detach a relationship (used when a duplicate row supersedes it)."""
        self._attributes = [r for r in self._attributes if r is not relationship]
        self._groups = None
        self._triples_hashes.clear()
        if relationship.type_id == self.is_a_type_id:
            self._parent_ids = {
                r.destination_id for r in self._attributes if r.type_id == self.is_a_type_id
            }

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def attributes(self) -> List[Relationship]:
        """Outgoing relationships ordered by (type, destination, group)."""
        if not self._sorted:
            self._attributes.sort(key=lambda r: r.natural_key)
            self._sorted = True
        return list(self._attributes)

    @property
    def parent_ids(self) -> Set[int]:
        return set(self._parent_ids)

    @property
    def has_parents(self) -> bool:
        return bool(self._parent_ids)

    @property
    def parents(self) -> List["Concept"]:
        return [self._registry.concept(pid) for pid in sorted(self._parent_ids)]

    @property
    def ancestors(self) -> frozenset[int]:
        """
        Ids of every concept reachable through "is a" edges of this view.

        Memoised against the registry's hierarchy version; cycles terminate.
        """
        version = self._registry.hierarchy_version
        if self._ancestors is not None and self._ancestors_version == version:
            return self._ancestors

        found: Set[int] = set()
        stack = list(self._parent_ids)
        while stack:
            current_id = stack.pop()
            if current_id in found:
                continue
            found.add(current_id)
            current = self._registry.get_concept(current_id)
            if current is None:
                continue
            if current._ancestors is not None and current._ancestors_version == version:
                found.update(current._ancestors)
            else:
                stack.extend(current._parent_ids)

        found.discard(self.concept_id)
        self._ancestors = frozenset(found)
        self._ancestors_version = version
        return self._ancestors

    def has_ancestor(self, other: ConceptRef) -> bool:
        """Transitive "is a" test within this concept's own view."""
        return self._resolve_id(other) in self.ancestors

    def is_same_or_descendant_of(self, other: ConceptRef) -> bool:
        """True for the concept itself or any of its descendants (proximate)."""
        other_id = self._resolve_id(other)
        return other_id == self.concept_id or other_id in self.ancestors

    def _resolve_id(self, other: ConceptRef) -> int:
        if isinstance(other, Concept):
            if other.characteristic is not self.characteristic:
                raise ValidationError(
                    f"Ancestry of {self!r} cannot be tested against {other!r}: views differ"
                )
            return other.concept_id
        return int(other)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _group_index(self) -> Dict[int, List[Relationship]]:
        if self._groups is None:
            groups: Dict[int, List[Relationship]] = {}
            for relationship in self.attributes:
                groups.setdefault(relationship.group, []).append(relationship)
            self._groups = groups
        return self._groups

    @property
    def group_numbers(self) -> List[int]:
        return sorted(self._group_index())

    def group_members(self, group: int, exclude_hierarchy: bool = True) -> List[Relationship]:
        """
        Relationships sharing `group`.

        Hierarchy edges take no part in group semantics and are left out
        when `exclude_hierarchy` is set.
        """
        members = self._group_index().get(group, [])
        if exclude_hierarchy:
            return [r for r in members if r.type_id != self.is_a_type_id]
        return list(members)

    def group_types(self, group: int) -> Set[int]:
        """Attribute types present in a group, hierarchy excluded."""
        return {r.type_id for r in self.group_members(group, exclude_hierarchy=True)}

    def triples_hash(self, group: int) -> str:
        """
        Order-independent fingerprint of the group's (type, destination) pairs.

        SHA-256 over the sorted pairs; hierarchy edges excluded.
        """
        cached = self._triples_hashes.get(group)
        if cached is not None:
            return cached

        pairs = sorted(
            (r.type_id, r.destination_id) for r in self.group_members(group, exclude_hierarchy=True)
        )
        payload = ";".join(f"{type_id}:{destination_id}" for type_id, destination_id in pairs)
        digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
        self._triples_hashes[group] = digest
        return digest

    # ------------------------------------------------------------------
    # Matching queries
    # ------------------------------------------------------------------

    def _destination_matches(
        self, relationship: Relationship, destination_id: int, allow_more_proximate: bool
    ) -> bool:
        if relationship.destination_id == destination_id:
            return True
        if not allow_more_proximate:
            return False
        destination = self._registry.get_concept(relationship.destination_id)
        return destination is not None and destination.has_ancestor(destination_id)

    def find_matching(
        self,
        type_id: int,
        destination_id: int,
        group: int,
        allow_more_proximate_destination: bool = True,
        require_same_group: bool = True,
    ) -> List[Relationship]:
        """
        Relationships of `type_id` pointing at `destination_id` (or a descendant).

        With `require_same_group` only `group` qualifies; otherwise every
        group does and hits in `group` come first.
        """
        matches = [
            r
            for r in self.attributes
            if r.type_id == type_id
            and (not require_same_group or r.group == group)
            and self._destination_matches(r, destination_id, allow_more_proximate_destination)
        ]
        if not require_same_group:
            matches.sort(key=lambda r: r.group != group)
        return matches

    def find_by_triples_hash(self, triples_hash: str, type_id: int) -> List[Relationship]:
        """Members of type `type_id` in every group whose triples hash equals `triples_hash`."""
        matches: List[Relationship] = []
        for group in self.group_numbers:
            if self.triples_hash(group) == triples_hash:
                matches.extend(
                    r for r in self.group_members(group, exclude_hierarchy=True) if r.type_id == type_id
                )
        return matches

    def find_groups_containing(self, required_types: Iterable[int]) -> List[Relationship]:
        """
        All members of groups holding at least every type in `required_types`.

        Extra types in a group are allowed. Groups are enumerated in
        ascending order.
        """
        required = set(required_types)
        matches: List[Relationship] = []
        for group in self.group_numbers:
            if required <= self.group_types(group):
                matches.extend(self.group_members(group, exclude_hierarchy=True))
        return matches

    def find_by_proximate_type(self, type_id: int) -> List[Relationship]:
        """Relationships whose type is a strict descendant of `type_id` in this view."""
        matches: List[Relationship] = []
        for relationship in self.attributes:
            if relationship.type_id == type_id:
                continue
            type_concept = self._registry.get_concept(relationship.type_id)
            if type_concept is not None and type_concept.has_ancestor(type_id):
                matches.append(relationship)
        return matches
