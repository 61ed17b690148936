"""
relsub models.

Graph entities of one view and the statistics of a run.
"""

from relsub.models.base import RelsubBaseModel
from relsub.models.relationship import (
    Characteristic,
    ConceptFormatter,
    Relationship,
    RelationshipKey,
    ReplacementState,
)
from relsub.models.concept import Concept
from relsub.models.stats import ALGORITHM_ORDER, SubstitutionStats

__all__ = [
    "RelsubBaseModel",
    "Characteristic",
    "ConceptFormatter",
    "Relationship",
    "RelationshipKey",
    "ReplacementState",
    "Concept",
    "ALGORITHM_ORDER",
    "SubstitutionStats",
]
