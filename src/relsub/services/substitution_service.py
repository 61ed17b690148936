"""
Substitution Service - load, match, report and emit.

Orchestrates one run: both views are loaded, validated, matched through the
cascade and the substitution feed is written. Precondition failures abort
before any output; per-relationship failures are only reported.
"""

from pathlib import Path
from typing import List, Optional, Union

from relsub.core.config import Settings
from relsub.core.exceptions import NotFoundError
from relsub.core.logging import logger
from relsub.core.tracing import tracer
from relsub.core.utils.datetime_utils import extract_effective_time
from relsub.graph.registry import GraphRegistry
from relsub.matching.engine import MatchingEngine
from relsub.matching.safety import SafetyPolicy, create_safety_policy
from relsub.models.relationship import Characteristic, Relationship
from relsub.models.stats import SubstitutionStats
from relsub.rf2.descriptions import DescriptionIndex
from relsub.rf2.reader import RF2RelationshipReader
from relsub.rf2.writer import RF2RelationshipWriter
from relsub.services.lookup_service import LookupService

PathLike = Union[str, Path]


class SubstitutionService:
    """
    Driver of a substitution run.

    Responsibilities:
    - Load the stated and inferred files into registries
    - Check that both views have a single root concept
    - Run the matching engine and report its statistics
    - Write the substitution feed
    - Report the first unresolved relationships
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        descriptions: Optional[DescriptionIndex] = None,
        policy: Optional[SafetyPolicy] = None,
    ):
        self.settings = settings or Settings()
        self.descriptions = descriptions
        self.reader = RF2RelationshipReader(self.settings)
        self.writer = RF2RelationshipWriter(self.settings)
        self.engine = MatchingEngine(
            policy=policy or create_safety_policy(self.settings),
            formatter=self.formatter,
        )
        self.failure_limit: int = self.settings.get("report.failure_limit", 10)

        self.stated: Optional[GraphRegistry] = None
        self.inferred: Optional[GraphRegistry] = None
        self.effective_time: Optional[str] = None
        self.rows_written = 0

    @property
    def formatter(self):
        return self.descriptions.format_concept if self.descriptions is not None else None

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self, stated_path: PathLike, inferred_path: PathLike) -> None:
        """Read both views; fails fast on a missing or malformed file."""
        with tracer.span("load", {"stated": str(stated_path), "inferred": str(inferred_path)}):
            self.stated = self.reader.load(stated_path, Characteristic.STATED)
            self.inferred = self.reader.load(inferred_path, Characteristic.INFERRED)
        logger.debug("Loading complete")

    def _require_loaded(self) -> tuple[GraphRegistry, GraphRegistry]:
        if self.stated is None or self.inferred is None:
            raise NotFoundError("Relationship files have not been loaded")
        return self.stated, self.inferred

    def lookup(self) -> LookupService:
        stated, inferred = self._require_loaded()
        return LookupService(stated, inferred, self.formatter)

    # ------------------------------------------------------------------
    # Substitution
    # ------------------------------------------------------------------

    def run(
        self, stated_path: PathLike, inferred_path: PathLike, output_path: PathLike
    ) -> SubstitutionStats:
        """
        Full substitution run.

        The effective time is taken from `output_path` before any file is
        read, so a badly named target fails without doing any work.
        """
        self.effective_time = extract_effective_time(
            output_path, self.settings.get("rf2.effective_time_pattern")
        )
        self.load(stated_path, inferred_path)
        return self.substitute(output_path, self.effective_time)

    def substitute(self, output_path: PathLike, effective_time: str) -> SubstitutionStats:
        """Validate, match, report and emit for already-loaded registries."""
        stated, inferred = self._require_loaded()
        self.effective_time = effective_time

        stated.ensure_single_root()
        inferred.ensure_single_root()

        with tracer.span("match", {"stated": len(stated), "inferred": len(inferred)}):
            stats = self.engine.run(stated, inferred)

        self.report_progress(stats)

        with tracer.span("emit", {"path": str(output_path)}):
            self.rows_written = self.writer.write(output_path, stated, effective_time)

        self.report_failures()
        return stats

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def report_progress(self, stats: SubstitutionStats) -> None:
        logger.info(stats.summary_line())
        logger.info(stats.algorithm_line())
        logger.info(
            "Algorithm 3 breakdown - exact match: {exact}, more proximate: {proximate}",
            exact=stats.alg3_exact,
            proximate=stats.alg3_proximate,
        )

    def unresolved(self, limit: Optional[int] = None) -> List[Relationship]:
        """Stated relationships that needed a replacement and got none, in stable order."""
        stated, _ = self._require_loaded()
        failures = [r for r in stated.relationships() if r.needs_replaced and not r.has_replacement]
        return failures if limit is None else failures[:limit]

    def report_failures(self) -> List[Relationship]:
        """
        Log the first unresolved relationships and the full dual view of the last one.

        Returns:
            The relationships reported
        """
        failures = self.unresolved(self.failure_limit)
        if not failures:
            logger.info("No unresolved relationships")
            return failures

        logger.info("First {count} failures: ", count=len(failures))
        for relationship in failures:
            logger.info("{relationship}", relationship=relationship.describe(self.formatter))

        for line in self.lookup().relationship_lines(failures[-1].source_id):
            logger.info("{line}", line=line)
        return failures
