"""
Run statistics.

Returned by the matching pass instead of being accumulated in global
counters.
"""

from typing import Dict

from pydantic import Field, computed_field

from relsub.models.base import RelsubBaseModel

ALGORITHM_ORDER = ("Alg1", "Alg2", "Alg3", "Alg4", "Alg5", "AlgMGS")


class SubstitutionStats(RelsubBaseModel):
    """Aggregate outcome of one substitution run."""

    total_stated: int = Field(0, ge=0, description="Active stated relationships loaded")
    needs_replaced: int = Field(0, ge=0, description="Stated relationships absent from the inferred view")
    replaced: int = Field(0, ge=0)
    algorithm_hits: Dict[str, int] = Field(
        default_factory=dict, description="Winning selections per algorithm family"
    )
    alg3_exact: int = Field(0, ge=0, description="Algorithm 3 wins on an exact destination")
    alg3_proximate: int = Field(0, ge=0, description="Algorithm 3 wins on a descendant destination")
    cohesion_moves: int = Field(0, ge=0, description="Siblings dragged into a new group")
    unsafe_rejections: int = Field(0, ge=0)
    multiple_candidate_warnings: int = Field(0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remainder(self) -> int:
        """Relationships still needing a replacement."""
        return self.needs_replaced - self.replaced

    def hits(self, family: str) -> int:
        return self.algorithm_hits.get(family, 0)

    def record_hit(self, algorithm: str) -> None:
        """Count a win for the algorithm family (`Alg3.1` counts as `Alg3`)."""
        family = algorithm.split(".", 1)[0]
        self.algorithm_hits = {**self.algorithm_hits, family: self.hits(family) + 1}
        if algorithm == "Alg3.1":
            self.alg3_exact += 1
        elif algorithm == "Alg3.2":
            self.alg3_proximate += 1

    def summary_line(self) -> str:
        return (
            f"Of the {self.total_stated} stated relationships, {self.needs_replaced} needed replaced, "
            f"{self.replaced} have been replaced, leaving {self.remainder} to work with"
        )

    def algorithm_line(self) -> str:
        rates = ", ".join(
            f"{name[3:]}: {self.hits(name)}" for name in ALGORITHM_ORDER if name != "AlgMGS"
        )
        return f"Algorithm success rates {rates}; group moves: {self.hits('AlgMGS')}"
