import pytest

from relsub.core.exceptions import HierarchyError, NotFoundError, ValidationError
from relsub.graph.registry import GraphRegistry
from relsub.models.relationship import Characteristic, RelationshipKey

from conftest import (
    BODY,
    FINDING_SITE,
    HEART,
    IS_A,
    LUNG,
    ROOT,
    SOURCE,
    VENTRICLE,
    make_relationship,
)


def test_concepts_created_for_source_destination_and_type():
    registry = GraphRegistry(
        Characteristic.STATED,
        is_a_type_id=IS_A,
        relationships=[make_relationship((SOURCE, FINDING_SITE, HEART, 1), Characteristic.STATED)],
    )

    assert registry.has_concept(SOURCE)
    assert registry.has_concept(HEART)
    assert registry.has_concept(FINDING_SITE)
    assert registry.contains(RelationshipKey(SOURCE, FINDING_SITE, HEART, 1))
    assert RelationshipKey(SOURCE, FINDING_SITE, HEART, 2) not in registry


def test_add_rejects_other_view():
    registry = GraphRegistry(Characteristic.INFERRED, is_a_type_id=IS_A)

    with pytest.raises(ValidationError):
        registry.add(make_relationship((SOURCE, IS_A, ROOT, 0), Characteristic.STATED))


def test_duplicate_key_supersedes_previous_row():
    registry = GraphRegistry(Characteristic.STATED, is_a_type_id=IS_A)
    registry.add(make_relationship((SOURCE, FINDING_SITE, HEART, 1), Characteristic.STATED, 1))
    registry.add(make_relationship((SOURCE, FINDING_SITE, HEART, 1), Characteristic.STATED, 2))

    assert len(registry) == 1
    assert registry.get(RelationshipKey(SOURCE, FINDING_SITE, HEART, 1)).relationship_id == 2
    assert [r.relationship_id for r in registry.concept(SOURCE).attributes] == [2]


def test_relationships_in_stable_key_order():
    edges = [(VENTRICLE, IS_A, HEART, 0), (HEART, IS_A, BODY, 0), (BODY, IS_A, ROOT, 0)]
    registry = GraphRegistry(
        Characteristic.STATED,
        is_a_type_id=IS_A,
        relationships=[make_relationship(edge, Characteristic.STATED, i) for i, edge in enumerate(edges)],
    )

    assert [r.source_id for r in registry.relationships()] == [BODY, HEART, VENTRICLE]
    assert [r.source_id for r in registry] == [BODY, HEART, VENTRICLE]


def test_unknown_concept_raises_not_found():
    registry = GraphRegistry(Characteristic.STATED, is_a_type_id=IS_A)

    assert registry.get_concept(SOURCE) is None
    with pytest.raises(NotFoundError):
        registry.concept(SOURCE)


def test_single_root_found(builder):
    stated, inferred = builder.build()

    assert stated.ensure_single_root().concept_id == ROOT
    assert inferred.ensure_single_root().concept_id == ROOT


def test_several_roots_rejected(builder):
    builder.inferred(LUNG + 1000, FINDING_SITE, LUNG, 1)
    _, inferred = builder.build()

    with pytest.raises(HierarchyError) as exc_info:
        inferred.ensure_single_root()

    assert exc_info.value.context["roots"] == [ROOT, LUNG + 1000]
    assert exc_info.value.suggestions


def test_cycle_without_root_rejected():
    registry = GraphRegistry(
        Characteristic.STATED,
        is_a_type_id=IS_A,
        relationships=[
            make_relationship((HEART, IS_A, BODY, 0), Characteristic.STATED, 1),
            make_relationship((BODY, IS_A, HEART, 0), Characteristic.STATED, 2),
        ],
    )

    # The "is a" type concept itself has no parent here
    assert [c.concept_id for c in registry.root_concepts()] == [IS_A]

    registry.add(make_relationship((IS_A, IS_A, HEART, 0), Characteristic.STATED, 3))
    with pytest.raises(HierarchyError):
        registry.ensure_single_root()
