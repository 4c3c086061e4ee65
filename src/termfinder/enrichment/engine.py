"""Enrichment engine: ranked, corrected p-values for a query item list."""

from collections import Counter
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import structlog

from termfinder.annotation.models import ItemRef, UnresolvedName, item_label
from termfinder.annotation.provider import AnnotationSource
from termfinder.config.loader import validate_settings
from termfinder.config.schema import Correction, EngineSettings, Method
from termfinder.enrichment.aggregate import AnnotationAggregator
from termfinder.enrichment.correction import (
    MIN_HYPOTHESIS_COUNT,
    correction_factor,
    corrected_p_value,
)
from termfinder.enrichment.models import (
    Diagnostic,
    DiagnosticKind,
    Hypothesis,
    QueryReport,
    filter_significant,
)
from termfinder.errors import ConfigurationError
from termfinder.ontology.graph import OntologyProvider
from termfinder.ontology.models import UNANNOTATED
from termfinder.stats.distributions import DistributionModel

logger = structlog.get_logger(__name__)


def _select(enum_cls, value, default, label: str):
    """Coerce a per-call selector to its enum, falling back to the default."""
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"{value!r} is not an allowed {label}. Use one of: {allowed}"
        ) from None


class EnrichmentEngine:
    """Finds over-represented ontology categories in query item lists.

    One engine serves one (population, aspect) pair. Background counts,
    the log-factorial table and the per-item annotation cache are built
    at construction and only read afterwards; each find_terms call keeps
    its working state local.
    """

    def __init__(
        self,
        settings: EngineSettings | Mapping[str, Any],
        *,
        annotation_source: AnnotationSource | None = None,
        ontology: OntologyProvider | None = None,
        population: Iterable[str] | None = None,
    ):
        """Validate configuration and build background counts.

        Args:
            settings: EngineSettings or a mapping of raw setting values
            annotation_source: Provides item ids and direct annotations
            ontology: Category DAG
            population: Explicit background item ids. Defaults to every
                item the annotation source knows.

        Raises:
            ConfigurationError: If settings are invalid, a collaborator is
                missing, or the ontology has no branch for the aspect
        """
        self.settings = validate_settings(settings)

        if annotation_source is None:
            raise ConfigurationError("You did not provide an annotation_source argument")
        if ontology is None:
            raise ConfigurationError("You did not provide an ontology argument")

        self.annotation_source = annotation_source
        self.ontology = ontology
        self.aspect = self.settings.aspect
        self.aggregator = AnnotationAggregator(annotation_source, ontology, self.aspect)

        if population is not None:
            background = list(dict.fromkeys(population))
        else:
            background = annotation_source.all_item_ids()

        total_num_genes = self.settings.total_num_genes
        num_background = len(background)

        if num_background > total_num_genes:
            logger.warning(
                "population_size_adjusted",
                configured=total_num_genes,
                background_items=num_background,
                message="Background has more items than configured; using background size",
            )
            total_num_genes = num_background

        background_diagnostics: list[Diagnostic] = []
        counts = self.aggregator.aggregate(background, diagnostics=background_diagnostics)
        background_counts = counts.counts

        shortfall = total_num_genes - num_background
        if shortfall > 0:
            # items missing from the background are entirely unclassified
            background_counts[self.aggregator.root_id] = total_num_genes
            for category_id in (self.aggregator.branch_id, UNANNOTATED.category_id):
                background_counts[category_id] = background_counts.get(category_id, 0) + shortfall

        self.total_num_genes = total_num_genes
        self.num_background_items = num_background
        self.background_counts: Mapping[str, int] = MappingProxyType(dict(background_counts))
        self.distributions = DistributionModel(total_num_genes)

        diagnostic_counts = Counter(d.kind.value for d in background_diagnostics)
        logger.info(
            "background_counts_built",
            aspect=self.aspect.value,
            total_num_genes=total_num_genes,
            background_items=num_background,
            unclassified_shortfall=max(shortfall, 0),
            category_count=len(self.background_counts),
            diagnostics=dict(diagnostic_counts),
        )

    def background_count(self, category_id: str) -> int:
        """Background items attributed to a category."""
        return self.background_counts.get(category_id, 0)

    def _category_name(self, category_id: str) -> str:
        category = self.ontology.get(category_id)
        if category is None:
            return UNANNOTATED.name
        return category.name

    def _distinct_items(
        self,
        items: Iterable[ItemRef],
        diagnostics: list[Diagnostic],
    ) -> list[ItemRef]:
        """Drop blank names and repeated items, keeping input order."""
        distinct: list[ItemRef] = []
        seen: set[ItemRef] = set()

        for item in items:
            if isinstance(item, str):
                item = item.strip()
                if not item:
                    continue
            elif not isinstance(item, UnresolvedName):
                raise TypeError(f"Query items must be str or UnresolvedName, got {type(item).__name__}")

            if item in seen:
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.DUPLICATE_ITEM,
                    message=f"'{item_label(item)}' was supplied more than once; it is considered once",
                    item_id=item_label(item),
                ))
                continue

            seen.add(item)
            distinct.append(item)

        return distinct

    def _p_value(self, method: Method, query_count: int, num_items: int, background_count: int) -> float:
        if method is Method.HYPERGEOMETRIC:
            return self.distributions.hypergeometric_tail(
                query_count, num_items, background_count, self.total_num_genes
            )
        p = background_count / self.total_num_genes
        return self.distributions.binomial_tail(query_count, num_items, p)

    def find_terms(
        self,
        items: Iterable[ItemRef],
        method: Method | str | None = None,
        correction: Correction | str | None = None,
    ) -> tuple[list[Hypothesis], QueryReport]:
        """Compute enrichment p-values for every category the items touch.

        Categories supported by a single query item are never tested.
        Results are sorted by increasing raw p-value, ties broken by
        category id.

        Args:
            items: Item ids and/or UnresolvedName markers
            method: "hypergeometric" or "binomial" (default from settings)
            correction: "minimal_set" or "none" (default from settings)

        Returns:
            Tuple of (hypotheses, query_report)
            - hypotheses: Ranked Hypothesis records (empty if the query
              has more items than the population)
            - query_report: Correction factor and diagnostics for the call

        Raises:
            ConfigurationError: If method or correction is not supported
        """
        method = _select(Method, method, self.settings.method, "method")
        correction = _select(Correction, correction, self.settings.correction, "correction")

        diagnostics: list[Diagnostic] = []
        query = self._distinct_items(items, diagnostics)
        num_items = len(query)

        report = QueryReport(
            num_items=num_items,
            method=method,
            correction=correction,
            diagnostics=diagnostics,
        )

        logger.info(
            "find_terms_start",
            item_count=num_items,
            method=method.value,
            correction=correction.value,
            aspect=self.aspect.value,
        )

        if num_items > self.total_num_genes:
            message = (
                f"The query corresponds to {num_items} items, yet the population "
                f"has only {self.total_num_genes}. No probabilities can be calculated."
            )
            logger.warning("find_terms_input_too_large", item_count=num_items, total_num_genes=self.total_num_genes)
            diagnostics.append(Diagnostic(kind=DiagnosticKind.INPUT_SIZE_ERROR, message=message))
            return [], report

        counts = self.aggregator.aggregate(query, track_members=True, diagnostics=diagnostics)

        raw_p_values: dict[str, float] = {}
        for category_id, query_count in counts.counts.items():
            if query_count < MIN_HYPOTHESIS_COUNT:
                continue

            background_count = self.background_count(category_id)
            if query_count > background_count:
                logger.warning(
                    "background_undercount",
                    category_id=category_id,
                    query_count=query_count,
                    background_count=background_count,
                )
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.BACKGROUND_UNDERCOUNT,
                    message=(
                        f"{query_count} query items fall in {category_id}, but only "
                        f"{background_count} background items do; category not tested"
                    ),
                    category_id=category_id,
                ))
                continue

            raw_p_values[category_id] = self._p_value(method, query_count, num_items, background_count)

        if correction is Correction.MINIMAL_SET and raw_p_values:
            factor = correction_factor(
                raw_p_values.keys(),
                counts.counts,
                counts.direct,
                self.ontology,
            )
        else:
            factor = 1

        hypotheses = [
            Hypothesis(
                category_id=category_id,
                category_name=self._category_name(category_id),
                p_value=p_value,
                corrected_p_value=corrected_p_value(p_value, factor),
                query_count=counts.counts[category_id],
                background_count=self.background_count(category_id),
                item_ids=tuple(sorted(counts.members[category_id])),
            )
            for category_id, p_value in raw_p_values.items()
        ]
        hypotheses.sort(key=lambda h: (h.p_value, h.category_id))

        report.correction_factor = factor
        report.num_hypotheses = len(hypotheses)

        logger.info(
            "find_terms_complete",
            hypotheses=len(hypotheses),
            correction_factor=factor,
            diagnostics=len(diagnostics),
        )

        return hypotheses, report

    def find_significant_terms(
        self,
        items: Iterable[ItemRef],
        method: Method | str | None = None,
        correction: Correction | str | None = None,
    ) -> tuple[list[Hypothesis], QueryReport]:
        """find_terms, keeping only records at or below the configured cutoff."""
        hypotheses, report = self.find_terms(items, method=method, correction=correction)
        return filter_significant(hypotheses, self.settings.significance_cutoff), report
