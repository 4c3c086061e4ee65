"""Ontology term enrichment: counting, p-values and correction."""

from termfinder.enrichment.aggregate import (
    AnnotationAggregator,
    CategoryCounts,
    ItemAnnotation,
)
from termfinder.enrichment.correction import (
    corrected_p_value,
    correction_factor,
    directly_annotated_hypotheses,
    hypotheses_with_non_hypothesis_annotated_children,
    leaf_hypotheses,
    minimal_hypothesis_set,
)
from termfinder.enrichment.engine import EnrichmentEngine
from termfinder.enrichment.models import (
    Diagnostic,
    DiagnosticKind,
    Hypothesis,
    QueryReport,
    filter_significant,
    hypotheses_to_frame,
)

__all__ = [
    "AnnotationAggregator",
    "CategoryCounts",
    "ItemAnnotation",
    "corrected_p_value",
    "correction_factor",
    "directly_annotated_hypotheses",
    "hypotheses_with_non_hypothesis_annotated_children",
    "leaf_hypotheses",
    "minimal_hypothesis_set",
    "EnrichmentEngine",
    "Diagnostic",
    "DiagnosticKind",
    "Hypothesis",
    "QueryReport",
    "filter_significant",
    "hypotheses_to_frame",
]
