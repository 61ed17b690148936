"""
Matching Engine - cascading substitution of orphaned stated relationships.

For each stated relationship absent from the inferred view the strategies
run in priority order; the first safe candidate wins. When the winner sits
in another role group, the stated group's siblings are dragged along.
"""

from typing import Optional, Sequence

from relsub.core.logging import logger
from relsub.graph.registry import GraphRegistry
from relsub.matching.safety import AuthoringSafetyPolicy, SafetyPolicy
from relsub.matching.strategies import (
    DEFAULT_STRATEGIES,
    CandidateSet,
    MatchContext,
    Strategy,
)
from relsub.models.concept import Concept
from relsub.models.relationship import ConceptFormatter, Relationship, ReplacementState
from relsub.models.stats import SubstitutionStats

COHESION_TAG = "AlgMGS"


class MatchingEngine:
    """
    Runs the strategy cascade over a stated/inferred registry pair.

    Stateless between runs: everything a run learns ends up either on the
    stated relationships or in the returned `SubstitutionStats`.
    """

    def __init__(
        self,
        policy: Optional[SafetyPolicy] = None,
        strategies: Optional[Sequence[Strategy]] = None,
        formatter: Optional[ConceptFormatter] = None,
    ):
        self.policy = policy or AuthoringSafetyPolicy()
        self.strategies = tuple(strategies) if strategies is not None else DEFAULT_STRATEGIES
        self.formatter = formatter

    def _text(self, relationship: Relationship) -> str:
        return relationship.describe(self.formatter)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def mark_orphans(self, stated: GraphRegistry, inferred: GraphRegistry) -> int:
        """
        First pass: flag every stated relationship whose key is absent from the inferred view.

        Marking everything up front lets a duplicate exist temporarily when
        the relationship it duplicates is itself going to be replaced.

        Returns:
            Number of relationships needing a replacement
        """
        orphans = 0
        for relationship in stated.relationships():
            if not inferred.contains(relationship.key):
                relationship.mark_needs_replaced()
            if relationship.needs_replaced:
                orphans += 1
        logger.debug("Marked {count} stated relationships for replacement", count=orphans)
        return orphans

    def run(self, stated: GraphRegistry, inferred: GraphRegistry) -> SubstitutionStats:
        """Mark orphans, match each one in stable order and tally the outcome."""
        stats = SubstitutionStats(total_stated=len(stated))
        self.mark_orphans(stated, inferred)

        context = MatchContext(stated=stated, inferred=inferred)
        for relationship in stated.relationships():
            # Already moved with its group by an earlier cohesion pass
            if relationship.state is ReplacementState.NEEDS_REPLACEMENT:
                self.match_relationship(relationship, context, stats)

        return self.tally(stated, stats)

    def tally(self, stated: GraphRegistry, stats: Optional[SubstitutionStats] = None) -> SubstitutionStats:
        """Count final outcomes; algorithm hits reflect the selections that stuck."""
        stats = stats or SubstitutionStats(total_stated=len(stated))
        stats.needs_replaced = 0
        stats.replaced = 0
        stats.algorithm_hits = {}
        stats.alg3_exact = 0
        stats.alg3_proximate = 0

        for relationship in stated.relationships():
            if relationship.needs_replaced:
                stats.needs_replaced += 1
            if relationship.has_replacement and relationship.algorithm:
                stats.replaced += 1
                stats.record_hit(relationship.algorithm)
        return stats

    # ------------------------------------------------------------------
    # Cascade
    # ------------------------------------------------------------------

    def match_relationship(
        self,
        relationship: Relationship,
        context: MatchContext,
        stats: Optional[SubstitutionStats] = None,
    ) -> bool:
        """
        Try every strategy in order and keep the first safe candidate.

        Returns:
            True if a replacement was selected; otherwise the relationship is
            left UNRESOLVED
        """
        stats = stats if stats is not None else SubstitutionStats()
        concept = context.stated_source(relationship)

        for strategy in self.strategies:
            for candidate_set in strategy.candidates(relationship, context):
                chosen = self.attempt(relationship, candidate_set, concept, stats)
                if chosen is None:
                    continue

                relationship.set_replacement(chosen, candidate_set.algorithm)
                logger.debug(
                    "{algorithm} replaced {relationship}",
                    algorithm=candidate_set.algorithm,
                    relationship=self._text(relationship),
                )
                if chosen.group != relationship.group:
                    self.move_group_siblings(relationship, chosen.group, context, stats)
                return True

        relationship.mark_unresolved()
        return False

    def attempt(
        self,
        relationship: Relationship,
        candidate_set: CandidateSet,
        concept: Concept,
        stats: SubstitutionStats,
    ) -> Optional[Relationship]:
        """Return the first candidate the safety policy accepts, logging every rejection."""
        chosen: Optional[Relationship] = None
        for candidate in candidate_set.candidates:
            if relationship.is_safely_replaced_by(candidate, concept, self.policy):
                chosen = candidate
                break
            stats.unsafe_rejections += 1
            logger.warning(
                "Avoided unsafe replacement {candidate} in {algorithm}",
                candidate=self._text(candidate),
                algorithm=candidate_set.algorithm,
            )

        if chosen is not None and len(candidate_set) > 1:
            stats.multiple_candidate_warnings += 1
            logger.warning(
                "Found multiple potential replacements for {relationship} in {algorithm}",
                relationship=self._text(relationship),
                algorithm=candidate_set.algorithm,
            )
        return chosen

    # ------------------------------------------------------------------
    # Group cohesion
    # ------------------------------------------------------------------

    def move_group_siblings(
        self,
        relationship: Relationship,
        target_group: int,
        context: MatchContext,
        stats: Optional[SubstitutionStats] = None,
    ) -> int:
        """
        Drag the stated group's other members into `target_group`.

        Keeping a stated group together outranks any individual match, so a
        sibling's earlier selection is overwritten. Ungrouped (group 0)
        edges have no siblings. Does not cascade further.

        Returns:
            Number of siblings moved
        """
        if relationship.group == 0:
            return 0

        stats = stats if stats is not None else SubstitutionStats()
        inferred_source = context.inferred_source(relationship)
        if inferred_source is None:
            return 0
        concept = context.stated_source(relationship)

        moved = 0
        for sibling in concept.group_members(relationship.group, exclude_hierarchy=True):
            if sibling is relationship or not sibling.needs_replaced:
                continue

            matches = inferred_source.find_matching(
                sibling.type_id,
                sibling.destination_id,
                target_group,
                allow_more_proximate_destination=True,
                require_same_group=True,
            )
            if sibling.replacement is not None and any(m is sibling.replacement for m in matches):
                continue

            chosen = self.attempt(sibling, CandidateSet(COHESION_TAG, matches), concept, stats)
            if chosen is None:
                continue

            sibling.override_replacement(chosen, COHESION_TAG)
            stats.cohesion_moves += 1
            moved += 1
            logger.debug(
                "Moved group sibling {sibling} to group {group}",
                sibling=self._text(sibling),
                group=target_group,
            )
        return moved
