from relsub.matching.strategies import (
    DEFAULT_STRATEGIES,
    CompatibleGroupProximate,
    GroupProximateDestination,
    LooseCrossGroup,
    MatchContext,
    ProximateType,
    WholeGroupTriples,
)
from relsub.models.relationship import RelationshipKey

from conftest import (
    DIRECT_PROCEDURE_SITE,
    FINDING_SITE,
    GENERAL,
    HEART,
    INFLAMMATION,
    IS_A,
    MORPHOLOGY,
    PROCEDURE_SITE,
    SOURCE,
    SPECIFIC,
    VENTRICLE,
)


def _context(builder, key):
    stated, inferred = builder.build()
    return stated.get(RelationshipKey(*key)), MatchContext(stated, inferred)


def _tiers(strategy, relationship, context):
    return [
        (candidate_set.algorithm, [r.key for r in candidate_set.candidates])
        for candidate_set in strategy.candidates(relationship, context)
    ]


def test_default_order():
    assert [s.name for s in DEFAULT_STRATEGIES] == ["Alg1", "Alg2", "Alg3", "Alg4", "Alg5"]


def test_group_proximate_destination_same_group_only(builder):
    builder.stated(SOURCE, FINDING_SITE, HEART, 1)
    builder.inferred(SOURCE, FINDING_SITE, VENTRICLE, 1).inferred(SOURCE, FINDING_SITE, VENTRICLE, 2)
    relationship, context = _context(builder, (SOURCE, FINDING_SITE, HEART, 1))

    assert _tiers(GroupProximateDestination(), relationship, context) == [
        ("Alg1", [RelationshipKey(SOURCE, FINDING_SITE, VENTRICLE, 1)])
    ]


def test_hierarchy_edges_skip_group_strategies(builder):
    builder.stated(SOURCE, IS_A, GENERAL).inferred(SOURCE, IS_A, SPECIFIC)
    relationship, context = _context(builder, (SOURCE, IS_A, GENERAL, 0))

    assert WholeGroupTriples().candidates(relationship, context) == []
    assert CompatibleGroupProximate().candidates(relationship, context) == []


def test_whole_group_triples_requires_identical_group(builder):
    builder.stated(SOURCE, FINDING_SITE, HEART, 1).stated(SOURCE, MORPHOLOGY, INFLAMMATION, 1)
    builder.inferred(SOURCE, FINDING_SITE, HEART, 2)
    builder.inferred(SOURCE, FINDING_SITE, HEART, 3).inferred(SOURCE, MORPHOLOGY, INFLAMMATION, 3)
    relationship, context = _context(builder, (SOURCE, FINDING_SITE, HEART, 1))

    assert _tiers(WholeGroupTriples(), relationship, context) == [
        ("Alg2", [RelationshipKey(SOURCE, FINDING_SITE, HEART, 3)])
    ]


def test_compatible_group_prefers_exact_destination(builder):
    builder.stated(SOURCE, FINDING_SITE, HEART, 1)
    builder.inferred(SOURCE, FINDING_SITE, VENTRICLE, 2).inferred(SOURCE, FINDING_SITE, HEART, 3)
    builder.inferred(SOURCE, MORPHOLOGY, INFLAMMATION, 3)
    relationship, context = _context(builder, (SOURCE, FINDING_SITE, HEART, 1))

    assert _tiers(CompatibleGroupProximate(), relationship, context) == [
        ("Alg3.1", [RelationshipKey(SOURCE, FINDING_SITE, HEART, 3)])
    ]


def test_loose_cross_group_lists_own_group_first(builder):
    builder.stated(SOURCE, FINDING_SITE, HEART, 2)
    builder.inferred(SOURCE, FINDING_SITE, VENTRICLE, 1).inferred(SOURCE, FINDING_SITE, VENTRICLE, 2)
    relationship, context = _context(builder, (SOURCE, FINDING_SITE, HEART, 2))

    assert _tiers(LooseCrossGroup(), relationship, context) == [
        (
            "Alg4",
            [
                RelationshipKey(SOURCE, FINDING_SITE, VENTRICLE, 2),
                RelationshipKey(SOURCE, FINDING_SITE, VENTRICLE, 1),
            ],
        )
    ]


def test_proximate_type_tiers(builder):
    builder.stated(SOURCE, PROCEDURE_SITE, HEART, 1)
    builder.inferred(SOURCE, DIRECT_PROCEDURE_SITE, HEART, 1)
    builder.inferred(SOURCE, DIRECT_PROCEDURE_SITE, VENTRICLE, 2)
    relationship, context = _context(builder, (SOURCE, PROCEDURE_SITE, HEART, 1))

    assert _tiers(ProximateType(), relationship, context) == [
        ("Alg5.1", [RelationshipKey(SOURCE, DIRECT_PROCEDURE_SITE, HEART, 1)]),
        ("Alg5.2", [RelationshipKey(SOURCE, DIRECT_PROCEDURE_SITE, VENTRICLE, 2)]),
    ]


def test_no_inferred_source_yields_nothing(builder):
    builder.stated(SOURCE + 1, FINDING_SITE, HEART, 1)
    relationship, context = _context(builder, (SOURCE + 1, FINDING_SITE, HEART, 1))

    for strategy in DEFAULT_STRATEGIES:
        assert strategy.candidates(relationship, context) == []
