"""Multiple hypothesis testing correction over the ontology DAG.

Tested categories are not independent: a parent's annotation count is
largely determined by its children's. Rather than multiplying by the
number of tested categories (Bonferroni), every p-value of a query is
multiplied by the size of the minimal set of hypotheses from which all
tested hypotheses can be reconstructed. That set is the union of:

1. Leaf hypotheses: no direct child was itself tested.
2. Hypotheses with at least one direct child annotated by exactly one
   query item (a child that was not tested, but carries annotation).
3. Hypotheses directly annotated by a query item.

A hypothesis is a category that was actually tested: two or more query
items, and no more query items than background items. A child with two
or more query items that was skipped for exceeding its background count
is not a hypothesis.
"""

from typing import Collection, Iterable, Mapping

import structlog

from termfinder.ontology.graph import OntologyProvider

logger = structlog.get_logger(__name__)

MIN_HYPOTHESIS_COUNT = 2


def _child_ids(ontology: OntologyProvider, category_id: str) -> list[str]:
    # the unannotated sentinel is outside the DAG and has no children
    if category_id not in ontology:
        return []
    return [child.category_id for child in ontology.children(category_id)]


def leaf_hypotheses(
    hypotheses: Collection[str],
    ontology: OntologyProvider,
) -> set[str]:
    """Hypotheses none of whose children were tested as hypotheses."""
    tested = set(hypotheses)
    return {
        category_id
        for category_id in tested
        if not any(child in tested for child in _child_ids(ontology, category_id))
    }


def hypotheses_with_non_hypothesis_annotated_children(
    hypotheses: Iterable[str],
    query_counts: Mapping[str, int],
    ontology: OntologyProvider,
) -> set[str]:
    """Hypotheses with a child annotated by exactly one query item."""
    return {
        category_id
        for category_id in hypotheses
        if any(
            query_counts.get(child, 0) == 1
            for child in _child_ids(ontology, category_id)
        )
    }


def directly_annotated_hypotheses(
    hypotheses: Iterable[str],
    directly_annotated: Collection[str],
) -> set[str]:
    """Hypotheses that query items are directly annotated to."""
    return {category_id for category_id in hypotheses if category_id in directly_annotated}


def minimal_hypothesis_set(
    hypotheses: Collection[str],
    query_counts: Mapping[str, int],
    directly_annotated: Collection[str],
    ontology: OntologyProvider,
) -> set[str]:
    """Union of the three classes of hypothesis that cannot be
    reconstructed from other hypotheses.

    Args:
        hypotheses: Ids of the tested categories
        query_counts: Query item count per category (all touched categories,
            including those with a single item)
        directly_annotated: Categories directly assigned to query items
        ontology: Category DAG supplying direct children

    Returns:
        Set of category ids; its size is the correction factor
    """
    leaves = leaf_hypotheses(hypotheses, ontology)
    with_single_children = hypotheses_with_non_hypothesis_annotated_children(
        hypotheses, query_counts, ontology
    )
    direct = directly_annotated_hypotheses(hypotheses, directly_annotated)

    minimal = leaves | with_single_children | direct

    logger.debug(
        "minimal_hypothesis_set",
        hypotheses=len(hypotheses),
        leaves=len(leaves),
        with_single_children=len(with_single_children),
        directly_annotated=len(direct),
        minimal=len(minimal),
    )

    return minimal


def correction_factor(
    hypotheses: Collection[str],
    query_counts: Mapping[str, int],
    directly_annotated: Collection[str],
    ontology: OntologyProvider,
) -> int:
    """Size of the minimal hypothesis set."""
    return len(minimal_hypothesis_set(hypotheses, query_counts, directly_annotated, ontology))


def corrected_p_value(p_value: float, factor: int) -> float:
    """Scale a raw p-value by the correction factor, with a ceiling of 1."""
    return min(1.0, p_value * factor)
