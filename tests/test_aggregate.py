"""Tests for per-item category attribution and count aggregation."""

import pytest

from termfinder.annotation import UnresolvedName
from termfinder.enrichment import AnnotationAggregator, DiagnosticKind
from termfinder.errors import ConfigurationError
from termfinder.ontology import UNANNOTATED, Aspect, Category, OntologyGraph

from conftest import A, B, BP, C, D, DANGLING, E, ROOT

FALLBACK = frozenset({ROOT, BP, UNANNOTATED.category_id})


@pytest.fixture
def aggregator(annotations, ontology):
    return AnnotationAggregator(annotations, ontology, Aspect.PROCESS)


def test_branch_resolution(aggregator):
    assert aggregator.root_id == ROOT
    assert aggregator.branch_id == BP
    assert aggregator.fallback == FALLBACK


def test_missing_aspect_branch(annotations):
    """An ontology without the requested branch is a configuration error."""
    ontology = OntologyGraph(
        [Category(ROOT, "root"), Category(BP, "biological_process", Aspect.PROCESS)],
        [(BP, ROOT)],
    )

    with pytest.raises(ConfigurationError):
        AnnotationAggregator(annotations, ontology, Aspect.FUNCTION)


def test_item_attributed_to_ancestors(aggregator):
    """Direct categories propagate to every ancestor."""
    annotation = aggregator.annotate_item("g1")

    assert annotation.attributed == frozenset({D, B, C, A, BP, ROOT})
    assert annotation.direct == frozenset({D})
    assert annotation.diagnostics == ()


def test_item_without_annotation_in_aspect(aggregator):
    """Items annotated only in another aspect fall back to unannotated."""
    assert aggregator.annotate_item("g8").attributed == FALLBACK
    assert aggregator.annotate_item("g9").attributed == FALLBACK
    assert aggregator.annotate_item("g9").diagnostics == ()


def test_unknown_item(aggregator):
    annotation = aggregator.annotate_item("nope")

    assert annotation.attributed == FALLBACK
    assert annotation.direct == frozenset()
    assert [d.kind for d in annotation.diagnostics] == [DiagnosticKind.UNRESOLVED_ITEM]
    assert annotation.diagnostics[0].item_id == "nope"


def test_unresolved_name(aggregator):
    annotation = aggregator.annotate_item(UnresolvedName("FOO1"))

    assert annotation.attributed == FALLBACK
    assert annotation.diagnostics[0].kind == DiagnosticKind.UNRESOLVED_ITEM
    assert annotation.diagnostics[0].item_id == "FOO1"


def test_dangling_category_dropped(aggregator):
    """A dangling reference is skipped; the item's valid categories remain."""
    annotation = aggregator.annotate_item("g10")

    assert annotation.attributed == frozenset({D, B, C, A, BP, ROOT})
    assert annotation.direct == frozenset({D})
    assert len(annotation.diagnostics) == 1
    assert annotation.diagnostics[0].kind == DiagnosticKind.DANGLING_CATEGORY
    assert annotation.diagnostics[0].category_id == DANGLING


def test_only_dangling_categories_fall_back(ontology):
    class Source:
        def all_item_ids(self):
            return ["x"]

        def direct_category_ids(self, item_id, aspect):
            return [DANGLING]

    annotation = AnnotationAggregator(Source(), ontology, Aspect.PROCESS).annotate_item("x")

    assert annotation.attributed == FALLBACK
    assert annotation.diagnostics[0].kind == DiagnosticKind.DANGLING_CATEGORY


def test_annotation_cached(aggregator):
    first = aggregator.annotate_item("g10")

    assert aggregator.annotate_item("g10") is first


def test_aggregate_counts_each_item_once(aggregator):
    """g1 reaches A through both B and C, but adds 1 to A."""
    counts = aggregator.aggregate(["g1", "g3", "g5"])

    assert counts.num_items == 3
    assert counts.count(A) == 2
    assert counts.count(B) == 2
    assert counts.count(C) == 1
    assert counts.count(D) == 1
    assert counts.count(E) == 1
    assert counts.count(BP) == 3
    assert counts.count(ROOT) == 3
    assert UNANNOTATED.category_id not in counts
    assert counts.direct == {D, B, E}
    assert counts.members == {}


def test_aggregate_tracks_members(aggregator):
    counts = aggregator.aggregate(["g1", UnresolvedName("FOO1")], track_members=True)

    assert counts.members[BP] == {"g1", "FOO1"}
    assert counts.members[UNANNOTATED.category_id] == {"FOO1"}
    assert counts.members[D] == {"g1"}


def test_aggregate_replays_diagnostics(aggregator):
    """Cached items report their diagnostics on every aggregation."""
    first: list = []
    second: list = []

    aggregator.aggregate(["g10", "nope"], diagnostics=first)
    aggregator.aggregate(["g10", "nope"], diagnostics=second)

    assert [d.kind for d in first] == [
        DiagnosticKind.DANGLING_CATEGORY,
        DiagnosticKind.UNRESOLVED_ITEM,
    ]
    assert first == second
