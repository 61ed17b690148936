"""
relsub Services module.

Business logic that coordinates loading, matching and reporting.
"""

from relsub.services.lookup_service import LookupService
from relsub.services.substitution_service import SubstitutionService

__all__ = ["LookupService", "SubstitutionService"]
