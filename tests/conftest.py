"""
Shared fixtures: a small terminology with a complete hierarchy in both views.

Every concept used by a test (including attribute types) descends from ROOT
in both views, so both registries pass the single-root check.
"""

from pathlib import Path
from typing import Iterable, List, Tuple

import pytest

from relsub.graph.registry import GraphRegistry
from relsub.models.relationship import Characteristic, Relationship

IS_A = 116680003
STATED_CHARACTERISTIC = 900000000000010007
INFERRED_CHARACTERISTIC = 900000000000011006
MODULE = 900000000000207008
MODIFIER = 900000000000451002

ROOT = 1
ATTRIBUTE = 2
FINDING_SITE = 10
MORPHOLOGY = 11
PROCEDURE_SITE = 12
DIRECT_PROCEDURE_SITE = 13
CAUSATIVE_AGENT = 14

BODY = 20
HEART = 21
VENTRICLE = 22
LUNG = 23

MORPH = 30
INFLAMMATION = 31
ACUTE_INFLAMMATION = 32
LESION = 33

DISORDER = 40
ORGANISM = 50
BACTERIUM = 51

SOURCE = 100
GENERAL = 200
SPECIFIC = 250

Edge = Tuple[int, int, int, int]

BACKBONE: List[Edge] = [
    (ATTRIBUTE, IS_A, ROOT, 0),
    (IS_A, IS_A, ATTRIBUTE, 0),
    (FINDING_SITE, IS_A, ATTRIBUTE, 0),
    (MORPHOLOGY, IS_A, ATTRIBUTE, 0),
    (PROCEDURE_SITE, IS_A, ATTRIBUTE, 0),
    (DIRECT_PROCEDURE_SITE, IS_A, PROCEDURE_SITE, 0),
    (CAUSATIVE_AGENT, IS_A, ATTRIBUTE, 0),
    (BODY, IS_A, ROOT, 0),
    (HEART, IS_A, BODY, 0),
    (VENTRICLE, IS_A, HEART, 0),
    (LUNG, IS_A, BODY, 0),
    (MORPH, IS_A, ROOT, 0),
    (INFLAMMATION, IS_A, MORPH, 0),
    (ACUTE_INFLAMMATION, IS_A, INFLAMMATION, 0),
    (LESION, IS_A, MORPH, 0),
    (DISORDER, IS_A, ROOT, 0),
    (ORGANISM, IS_A, ROOT, 0),
    (BACTERIUM, IS_A, ORGANISM, 0),
    (GENERAL, IS_A, DISORDER, 0),
    (SPECIFIC, IS_A, GENERAL, 0),
]


def make_relationship(
    edge: Edge, characteristic: Characteristic, relationship_id: int = 1
) -> Relationship:
    source, type_id, destination, group = edge
    return Relationship(
        relationship_id=relationship_id,
        effective_time="20220731",
        module_id=MODULE,
        source_id=source,
        destination_id=destination,
        group=group,
        type_id=type_id,
        characteristic=characteristic,
        modifier_id=MODIFIER,
    )


class GraphBuilder:
    """Collects stated and inferred edges on top of the shared backbone."""

    def __init__(self, backbone: Iterable[Edge] = BACKBONE):
        self.backbone = list(backbone)
        self.stated_edges: List[Edge] = []
        self.inferred_edges: List[Edge] = []

    def both(self, source: int, type_id: int, destination: int, group: int = 0) -> "GraphBuilder":
        self.stated_edges.append((source, type_id, destination, group))
        self.inferred_edges.append((source, type_id, destination, group))
        return self

    def stated(self, source: int, type_id: int, destination: int, group: int = 0) -> "GraphBuilder":
        self.stated_edges.append((source, type_id, destination, group))
        return self

    def inferred(self, source: int, type_id: int, destination: int, group: int = 0) -> "GraphBuilder":
        self.inferred_edges.append((source, type_id, destination, group))
        return self

    def edges(self, characteristic: Characteristic) -> List[Edge]:
        extra = self.stated_edges if characteristic is Characteristic.STATED else self.inferred_edges
        return self.backbone + extra

    def registry(self, characteristic: Characteristic) -> GraphRegistry:
        base_id = 1000 if characteristic is Characteristic.STATED else 5000
        return GraphRegistry(
            characteristic,
            is_a_type_id=IS_A,
            relationships=[
                make_relationship(edge, characteristic, base_id + index)
                for index, edge in enumerate(self.edges(characteristic))
            ],
        )

    def build(self) -> Tuple[GraphRegistry, GraphRegistry]:
        return self.registry(Characteristic.STATED), self.registry(Characteristic.INFERRED)

    def write_files(self, directory: Path) -> Tuple[Path, Path]:
        """Write both views as RF2 snapshot files with an inactive row and CRLF endings."""
        stated_path = directory / "sct2_StatedRelationship_Snapshot_INT_20220731.txt"
        inferred_path = directory / "sct2_Relationship_Snapshot_INT_20220731.txt"
        write_rf2(stated_path, self.edges(Characteristic.STATED), STATED_CHARACTERISTIC, 1000)
        write_rf2(inferred_path, self.edges(Characteristic.INFERRED), INFERRED_CHARACTERISTIC, 5000)
        return stated_path, inferred_path


RF2_HEADER = (
    "id\teffectiveTime\tactive\tmoduleId\tsourceId\tdestinationId\t"
    "relationshipGroup\ttypeId\tcharacteristicTypeId\tmodifierId"
)


def rf2_line(
    relationship_id: int, edge: Edge, characteristic_id: int, active: str = "1", effective_time: str = "20220731"
) -> str:
    source, type_id, destination, group = edge
    return "\t".join(
        str(value)
        for value in (
            relationship_id,
            effective_time,
            active,
            MODULE,
            source,
            destination,
            group,
            type_id,
            characteristic_id,
            MODIFIER,
        )
    )


def write_rf2(path: Path, edges: Iterable[Edge], characteristic_id: int, base_id: int) -> None:
    lines = [RF2_HEADER]
    for index, edge in enumerate(edges):
        lines.append(rf2_line(base_id + index, edge, characteristic_id))
    # Inactive rows are ignored on load
    lines.append(rf2_line(base_id + 999, (SOURCE, IS_A, LUNG, 0), characteristic_id, active="0"))
    path.write_text("\r\n".join(lines) + "\r\n", encoding="utf-8", newline="")


@pytest.fixture
def builder() -> GraphBuilder:
    """Builder with the shared backbone and SOURCE placed under DISORDER in both views."""
    return GraphBuilder().both(SOURCE, IS_A, DISORDER)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test away from any `.relsub` file and environment override."""
    for key in ("RELSUB_LOG_LEVEL", "RELSUB_IS_A_TYPE", "RELSUB_FAILURE_LIMIT", "RELSUB_DEBUG"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
