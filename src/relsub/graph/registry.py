"""
Graph Registry - one characteristic view of the relationship graph.

Maps relationship identity keys to relationships, and concept ids to
concepts built from those relationships.
"""

from typing import Dict, Iterable, Iterator, List, Optional

from relsub.core.exceptions import HierarchyError, NotFoundError, ValidationError
from relsub.core.logging import logger
from relsub.models.concept import Concept
from relsub.models.relationship import Characteristic, Relationship, RelationshipKey

DEFAULT_IS_A_TYPE_ID = 116680003


class GraphRegistry:
    """
    Registry of one view (stated or inferred).

    Concepts are created for every source, destination and type id seen, so
    type concepts take part in the hierarchy like any other concept.
    """

    def __init__(
        self,
        characteristic: Characteristic,
        is_a_type_id: int = DEFAULT_IS_A_TYPE_ID,
        relationships: Optional[Iterable[Relationship]] = None,
    ):
        self.characteristic = characteristic
        self.is_a_type_id = is_a_type_id
        self._relationships: Dict[RelationshipKey, Relationship] = {}
        self._concepts: Dict[int, Concept] = {}
        self._hierarchy_version = 0

        for relationship in relationships or ():
            self.add(relationship)

    def __len__(self) -> int:
        return len(self._relationships)

    def __contains__(self, key: object) -> bool:
        return key in self._relationships

    def __repr__(self) -> str:
        return (
            f"GraphRegistry({self.characteristic.value}, relationships={len(self._relationships)}, "
            f"concepts={len(self._concepts)})"
        )

    @property
    def hierarchy_version(self) -> int:
        """Bumped whenever an "is a" edge changes; ancestor caches compare against it."""
        return self._hierarchy_version

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def add(self, relationship: Relationship) -> None:
        """
        Register a relationship of this view.

        A second active row with the same identity key supersedes the first.
        """
        if relationship.characteristic is not self.characteristic:
            raise ValidationError(
                f"Cannot add a {relationship.characteristic.value} relationship "
                f"to the {self.characteristic.value} registry",
                context={"relationship": str(relationship.key)},
            )

        source = self._ensure_concept(relationship.source_id)
        self._ensure_concept(relationship.destination_id)
        self._ensure_concept(relationship.type_id)

        previous = self._relationships.get(relationship.key)
        if previous is not None:
            logger.warning(
                "Duplicate {view} relationship {key}: row {new} supersedes row {old}",
                view=self.characteristic.value,
                key=str(relationship.key),
                new=relationship.relationship_id,
                old=previous.relationship_id,
            )
            source.remove_relationship(previous)

        self._relationships[relationship.key] = relationship
        source.add_relationship(relationship)

        if relationship.type_id == self.is_a_type_id:
            self._hierarchy_version += 1

    def contains(self, key: RelationshipKey) -> bool:
        """Existence check by identity key."""
        return key in self._relationships

    def get(self, key: RelationshipKey) -> Optional[Relationship]:
        return self._relationships.get(key)

    def relationships(self) -> List[Relationship]:
        """All relationships in stable (source, type, destination, group) order."""
        return [self._relationships[key] for key in sorted(self._relationships)]

    def __iter__(self) -> Iterator[Relationship]:
        return iter(self.relationships())

    # ------------------------------------------------------------------
    # Concepts
    # ------------------------------------------------------------------

    def _ensure_concept(self, concept_id: int) -> Concept:
        concept = self._concepts.get(concept_id)
        if concept is None:
            concept = Concept(concept_id, self.characteristic, self)
            self._concepts[concept_id] = concept
        return concept

    def get_concept(self, concept_id: int) -> Optional[Concept]:
        return self._concepts.get(concept_id)

    def concept(self, concept_id: int) -> Concept:
        """
        Concept by id.

        Raises:
            NotFoundError: If the id never appeared in this view
        """
        concept = self._concepts.get(concept_id)
        if concept is None:
            raise NotFoundError(
                f"Concept {concept_id} not found in {self.characteristic.value} view",
                context={"concept_id": concept_id, "view": self.characteristic.value},
            )
        return concept

    def has_concept(self, concept_id: int) -> bool:
        return concept_id in self._concepts

    def concepts(self) -> List[Concept]:
        return [self._concepts[cid] for cid in sorted(self._concepts)]

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def root_concepts(self) -> List[Concept]:
        """Concepts without an "is a" parent in this view."""
        return [concept for concept in self.concepts() if not concept.has_parents]

    def ensure_single_root(self) -> Concept:
        """
        Validate that exactly one concept has no parent.

        Returns:
            The root concept

        Raises:
            HierarchyError: On zero or several parentless concepts
        """
        roots = self.root_concepts()
        if len(roots) != 1:
            sample = [c.concept_id for c in roots[:10]]
            logger.error(
                "{view} view has {count} root concepts, expected 1: {sample}",
                view=self.characteristic.value.capitalize(),
                count=len(roots),
                sample=sample,
            )
            error = HierarchyError(
                f"{self.characteristic.value.capitalize()} view has {len(roots)} concepts "
                f"without parents, expected exactly 1",
                context={"view": self.characteristic.value, "roots": sample},
            )
            error.add_suggestion("Check that the relationship file is a full or snapshot release")
            raise error

        root = roots[0]
        logger.debug(
            "{view} view rooted at {root}", view=self.characteristic.value, root=root.concept_id
        )
        return root
