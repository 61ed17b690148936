"""
relsub - stated relationship substitution for clinical terminologies.

Finds, for every stated relationship that no longer has an identical
counterpart in the inferred (classified) view, a safe inferred replacement.
"""

from relsub._version import __version__, __version_info__

__author__ = "relsub developers"
__license__ = "Apache-2.0"

# Core components
from relsub.core import (
    logger,
    Settings,
    RelsubError,
    ConfigurationError,
    HierarchyError,
    InputFileError,
    OutputFileError,
    EffectiveTimeError,
    extract_effective_time,
)

# Models
from relsub.models import (
    Characteristic,
    Concept,
    Relationship,
    RelationshipKey,
    ReplacementState,
    SubstitutionStats,
)

# Graph and matching
from relsub.graph import GraphRegistry
from relsub.matching import (
    AuthoringSafetyPolicy,
    MatchingEngine,
    PermissivePolicy,
    SafetyPolicy,
    create_safety_policy,
)

# I/O and services
from relsub.rf2 import DescriptionIndex, RF2RelationshipReader, RF2RelationshipWriter
from relsub.services import LookupService, SubstitutionService

__all__ = [
    # Version info
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",
    # Core
    "logger",
    "Settings",
    "extract_effective_time",
    # Exceptions
    "RelsubError",
    "ConfigurationError",
    "HierarchyError",
    "InputFileError",
    "OutputFileError",
    "EffectiveTimeError",
    # Models
    "Characteristic",
    "Concept",
    "Relationship",
    "RelationshipKey",
    "ReplacementState",
    "SubstitutionStats",
    # Graph and matching
    "GraphRegistry",
    "AuthoringSafetyPolicy",
    "MatchingEngine",
    "PermissivePolicy",
    "SafetyPolicy",
    "create_safety_policy",
    # I/O and services
    "DescriptionIndex",
    "RF2RelationshipReader",
    "RF2RelationshipWriter",
    "LookupService",
    "SubstitutionService",
]
