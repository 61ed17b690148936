"""
Lookup Service - dual-view listing of one concept's relationships.
"""

from typing import List, Optional

from relsub.graph.registry import GraphRegistry
from relsub.models.relationship import ConceptFormatter


class LookupService:
    """
    Lists a concept's relationships in both views.

    Stated relationships needing replacement and inferred relationships
    selected as a replacement are marked with `*`.
    """

    def __init__(
        self,
        stated: GraphRegistry,
        inferred: GraphRegistry,
        formatter: Optional[ConceptFormatter] = None,
    ):
        self.stated = stated
        self.inferred = inferred
        self.formatter = formatter

    def relationship_lines(self, concept_id: int) -> List[str]:
        """Lines for the stated view, then the inferred view, in natural order."""
        stated_concept = self.stated.get_concept(concept_id)
        if stated_concept is None:
            return [f"Concept {concept_id} not found."]

        lines = [f"{concept_id} stated view: "]
        selected = set()
        for relationship in stated_concept.attributes:
            lines.append(relationship.describe(self.formatter, star=relationship.needs_replaced))
            if relationship.replacement is not None:
                selected.add(id(relationship.replacement))

        lines.append(f"{concept_id} inferred view: ")
        inferred_concept = self.inferred.get_concept(concept_id)
        if inferred_concept is not None:
            for relationship in inferred_concept.attributes:
                lines.append(
                    relationship.describe(self.formatter, star=id(relationship) in selected)
                )
        return lines
