"""
Relationship model.

One edge of a concept-relationship graph in either the stated or the
inferred view, plus the replacement-tracking state used by the matching
pass.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Callable, NamedTuple, Optional

from pydantic import Field, PrivateAttr

from relsub.core.exceptions import ReplacementStateError
from relsub.models.base import RelsubBaseModel

if TYPE_CHECKING:
    from relsub.matching.safety import SafetyPolicy
    from relsub.models.concept import Concept


class Characteristic(str, Enum):
    """Graph view a relationship (or concept) belongs to."""

    STATED = "stated"
    INFERRED = "inferred"

    @property
    def other(self) -> "Characteristic":
        """The opposite view."""
        return Characteristic.INFERRED if self is Characteristic.STATED else Characteristic.STATED


class ReplacementState(str, Enum):
    """
    Lifecycle of a stated relationship during one run.

    UNMARKED -> NEEDS_REPLACEMENT -> REPLACED | UNRESOLVED
    REPLACED is only overwritten by the group cohesion pass.
    """

    UNMARKED = "unmarked"
    NEEDS_REPLACEMENT = "needs_replacement"
    REPLACED = "replaced"
    UNRESOLVED = "unresolved"


class RelationshipKey(NamedTuple):
    """Identity of an edge, equal across the stated and inferred views."""

    source_id: int
    type_id: int
    destination_id: int
    group: int

    def __str__(self) -> str:
        return f"{self.source_id}_{self.type_id}_{self.destination_id}_{self.group}"


ConceptFormatter = Callable[[int], str]


class Relationship(RelsubBaseModel):
    """
    Immutable RF2 relationship row with mutable replacement state.

    The identity fields are frozen. Replacement state changes only through
    `mark_needs_replaced`, `set_replacement`, `mark_unresolved` and
    `override_replacement`.
    """

    relationship_id: int = Field(..., frozen=True, description="RF2 row id")
    effective_time: str = Field("", frozen=True, description="Effective time read from file")
    module_id: int = Field(0, frozen=True)
    source_id: int = Field(..., frozen=True)
    destination_id: int = Field(..., frozen=True)
    group: int = Field(0, ge=0, frozen=True, description="Role group, 0 = ungrouped")
    type_id: int = Field(..., frozen=True)
    characteristic: Characteristic = Field(..., frozen=True)
    modifier_id: int = Field(0, frozen=True)

    _state: ReplacementState = PrivateAttr(default=ReplacementState.UNMARKED)
    _replacement: Optional["Relationship"] = PrivateAttr(default=None)
    _algorithm: Optional[str] = PrivateAttr(default=None)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def key(self) -> RelationshipKey:
        """Identity key used for existence checks against the other view."""
        return RelationshipKey(self.source_id, self.type_id, self.destination_id, self.group)

    @property
    def natural_key(self) -> tuple[int, int, int]:
        """Enumeration order within a concept: type, then destination, then group."""
        return (self.type_id, self.destination_id, self.group)

    @property
    def triple(self) -> tuple[int, int, int]:
        """(type, destination, group) as it would appear on the source concept."""
        return self.natural_key

    def is_type(self, type_id: int) -> bool:
        return self.type_id == type_id

    # ------------------------------------------------------------------
    # Replacement state
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReplacementState:
        return self._state

    @property
    def needs_replaced(self) -> bool:
        """True once marked, whatever happened afterwards."""
        return self._state is not ReplacementState.UNMARKED

    @property
    def has_replacement(self) -> bool:
        return self._state is ReplacementState.REPLACED

    @property
    def is_unresolved(self) -> bool:
        return self._state is ReplacementState.UNRESOLVED

    @property
    def replacement(self) -> Optional["Relationship"]:
        return self._replacement

    @property
    def algorithm(self) -> Optional[str]:
        """Tag of the algorithm that produced the current replacement."""
        return self._algorithm

    def mark_needs_replaced(self) -> None:
        """Flag the relationship as absent from the other view. Set once."""
        if self._state is ReplacementState.UNMARKED:
            self._state = ReplacementState.NEEDS_REPLACEMENT

    def set_replacement(self, candidate: "Relationship", algorithm: str) -> bool:
        """
        Record the first successful replacement.

        Returns:
            True if recorded, False if a replacement already exists

        Raises:
            ReplacementStateError: If the relationship was never marked, or
                the candidate is not from the other view
        """
        self._check_candidate(candidate)
        if self._state is ReplacementState.REPLACED:
            return False
        if self._state is not ReplacementState.NEEDS_REPLACEMENT:
            raise ReplacementStateError(
                f"Cannot replace {self.key} from state {self._state.value}",
                context={"relationship": str(self.key), "state": self._state.value},
            )
        self._assign(candidate, algorithm)
        return True

    def mark_unresolved(self) -> None:
        """No algorithm found a safe candidate."""
        if self._state is ReplacementState.NEEDS_REPLACEMENT:
            self._state = ReplacementState.UNRESOLVED
        elif self._state is ReplacementState.UNMARKED:
            raise ReplacementStateError(
                f"Cannot mark {self.key} unresolved: it does not need replacing",
                context={"relationship": str(self.key)},
            )

    def override_replacement(self, candidate: "Relationship", algorithm: str) -> None:
        """
        Replace whatever was selected before. Used by group cohesion only.

        Raises:
            ReplacementStateError: If the relationship does not need replacing
        """
        self._check_candidate(candidate)
        if self._state is ReplacementState.UNMARKED:
            raise ReplacementStateError(
                f"Cannot override replacement of {self.key}: it does not need replacing",
                context={"relationship": str(self.key)},
            )
        self._assign(candidate, algorithm)

    def _assign(self, candidate: "Relationship", algorithm: str) -> None:
        self._replacement = candidate
        self._algorithm = algorithm
        self._state = ReplacementState.REPLACED

    def _check_candidate(self, candidate: "Relationship") -> None:
        if candidate.characteristic is self.characteristic:
            raise ReplacementStateError(
                "A replacement must come from the other view",
                context={"relationship": str(self.key), "candidate": str(candidate.key)},
            )
        if candidate.source_id != self.source_id:
            raise ReplacementStateError(
                "A replacement must have the same source concept",
                context={"relationship": str(self.key), "candidate": str(candidate.key)},
            )

    # ------------------------------------------------------------------
    # Safety
    # ------------------------------------------------------------------

    def is_safely_replaced_by(
        self,
        candidate: "Relationship",
        concept: "Concept",
        policy: Optional["SafetyPolicy"] = None,
    ) -> bool:
        """
        Ask the safety policy whether `candidate` may replace this relationship.

        Args:
            candidate: Relationship from the other view
            concept: This relationship's source concept in its own view
            policy: Safety policy; the authoring policy when omitted
        """
        if policy is None:
            from relsub.matching.safety import AuthoringSafetyPolicy

            policy = AuthoringSafetyPolicy()
        return policy.is_safe(self, candidate, concept)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def describe(self, formatter: Optional[ConceptFormatter] = None, star: bool = False) -> str:
        """
        Diagnostic one-liner.

        `source -> type -> destination (group n)`, prefixed with `*` when
        `star` is set and followed by the replacement when one is selected.
        """
        fmt = formatter or str
        text = (
            f"{'*' if star else ''}{fmt(self.source_id)} -> {fmt(self.type_id)} -> "
            f"{fmt(self.destination_id)} (group {self.group})"
        )
        if self._replacement is not None:
            replacement = self._replacement
            text += (
                f" => {fmt(replacement.type_id)} -> {fmt(replacement.destination_id)}"
                f" (group {replacement.group}) [{self._algorithm}]"
            )
        elif self._state is ReplacementState.UNRESOLVED:
            text += " [unresolved]"
        return text

    def __str__(self) -> str:
        return self.describe()

    def __repr__(self) -> str:
        return (
            f"Relationship({self.characteristic.value} {self.key}, "
            f"state={self._state.value}, algorithm={self._algorithm})"
        )
