"""
Matching Module - substitution strategies, safety policies and the cascade.
"""

from relsub.matching.safety import (
    AuthoringSafetyPolicy,
    PermissivePolicy,
    SafetyPolicy,
    create_safety_policy,
    projected_triples,
)
from relsub.matching.strategies import (
    DEFAULT_STRATEGIES,
    CandidateSet,
    CompatibleGroupProximate,
    GroupProximateDestination,
    LooseCrossGroup,
    MatchContext,
    ProximateType,
    Strategy,
    WholeGroupTriples,
)
from relsub.matching.engine import COHESION_TAG, MatchingEngine

__all__ = [
    "AuthoringSafetyPolicy",
    "PermissivePolicy",
    "SafetyPolicy",
    "create_safety_policy",
    "projected_triples",
    "DEFAULT_STRATEGIES",
    "CandidateSet",
    "CompatibleGroupProximate",
    "GroupProximateDestination",
    "LooseCrossGroup",
    "MatchContext",
    "ProximateType",
    "Strategy",
    "WholeGroupTriples",
    "COHESION_TAG",
    "MatchingEngine",
]
