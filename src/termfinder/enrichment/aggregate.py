"""Category membership counts with ancestor propagation."""

import threading
from dataclasses import dataclass, field
from typing import Iterable

import structlog

from termfinder.annotation.models import ItemRef, UnresolvedName, item_label
from termfinder.annotation.provider import AnnotationSource
from termfinder.enrichment.models import Diagnostic, DiagnosticKind
from termfinder.errors import ConfigurationError
from termfinder.ontology.graph import OntologyProvider
from termfinder.ontology.models import UNANNOTATED, Aspect

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ItemAnnotation:
    """Categories attributed to one item.

    Attributes:
        attributed: Direct categories plus all their ancestors, or the
            root/branch/unannotated fallback when the item has none
        direct: Direct categories present in the ontology
        diagnostics: Conditions met while annotating the item
    """
    attributed: frozenset[str]
    direct: frozenset[str]
    diagnostics: tuple[Diagnostic, ...] = ()


@dataclass
class CategoryCounts:
    """Distinct-item counts per category for one set of items.

    Attributes:
        counts: Category id -> number of items attributed to it
        members: Category id -> attributed item labels (only filled when
            members were tracked)
        direct: Categories directly assigned to at least one item
        num_items: Number of items aggregated
    """
    counts: dict[str, int] = field(default_factory=dict)
    members: dict[str, set[str]] = field(default_factory=dict)
    direct: set[str] = field(default_factory=set)
    num_items: int = 0

    def count(self, category_id: str) -> int:
        return self.counts.get(category_id, 0)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self.counts


class AnnotationAggregator:
    """Turns item sets into category count maps for one ontology aspect.

    Per-item attribution is cached by item reference, since the same
    items recur between the background build and every query.
    """

    def __init__(
        self,
        annotation_source: AnnotationSource,
        ontology: OntologyProvider,
        aspect: Aspect,
    ):
        """Resolve the root and aspect branch nodes used for fallback.

        Args:
            annotation_source: Provides direct category ids per item
            ontology: Category DAG
            aspect: Aspect all lookups are restricted to

        Raises:
            ConfigurationError: If the ontology has no branch for the aspect
        """
        self.annotation_source = annotation_source
        self.ontology = ontology
        self.aspect = Aspect(aspect)

        branch = ontology.aspect_branch(self.aspect)
        if branch is None:
            raise ConfigurationError(
                f"Ontology root {ontology.root.category_id} has no branch "
                f"for aspect {self.aspect.value}"
            )

        self.root_id = ontology.root.category_id
        self.branch_id = branch.category_id
        self.fallback = frozenset({self.root_id, self.branch_id, UNANNOTATED.category_id})

        self._cache: dict[ItemRef, ItemAnnotation] = {}
        self._lock = threading.Lock()

    def annotate_item(self, item: ItemRef) -> ItemAnnotation:
        """Return the categories attributed to one item (cached)."""
        cached = self._cache.get(item)
        if cached is not None:
            return cached

        annotation = self._build_item_annotation(item)
        with self._lock:
            self._cache.setdefault(item, annotation)
        return annotation

    def _build_item_annotation(self, item: ItemRef) -> ItemAnnotation:
        label = item_label(item)

        if isinstance(item, UnresolvedName):
            direct_ids = None
        else:
            direct_ids = self.annotation_source.direct_category_ids(item, self.aspect)

        if direct_ids is None:
            logger.warning("unresolved_item", item_id=label)
            diagnostic = Diagnostic(
                kind=DiagnosticKind.UNRESOLVED_ITEM,
                message=f"'{label}' did not correspond to any annotated item",
                item_id=label,
            )
            return ItemAnnotation(
                attributed=self.fallback,
                direct=frozenset(),
                diagnostics=(diagnostic,),
            )

        diagnostics: list[Diagnostic] = []
        attributed: set[str] = set()
        direct: set[str] = set()

        for category_id in direct_ids:
            if category_id not in self.ontology:
                logger.warning(
                    "dangling_category",
                    item_id=label,
                    category_id=category_id,
                )
                diagnostics.append(Diagnostic(
                    kind=DiagnosticKind.DANGLING_CATEGORY,
                    message=(
                        f"{category_id}, used to annotate {label}, "
                        "does not appear in the ontology"
                    ),
                    item_id=label,
                    category_id=category_id,
                ))
                continue

            direct.add(category_id)
            attributed.add(category_id)
            attributed.update(self.ontology.ancestors(category_id))

        if not attributed:
            attributed = set(self.fallback)

        return ItemAnnotation(
            attributed=frozenset(attributed),
            direct=frozenset(direct),
            diagnostics=tuple(diagnostics),
        )

    def aggregate(
        self,
        items: Iterable[ItemRef],
        track_members: bool = False,
        diagnostics: list[Diagnostic] | None = None,
    ) -> CategoryCounts:
        """Count distinct items per category.

        Each item increments every category in its attributed set by
        exactly 1, however many of its direct annotations imply it.

        Args:
            items: Distinct item references
            track_members: Record which items fall in each category
            diagnostics: List extended with every item's diagnostics

        Returns:
            CategoryCounts for the items
        """
        result = CategoryCounts()

        for item in items:
            annotation = self.annotate_item(item)
            result.num_items += 1
            result.direct.update(annotation.direct)
            if diagnostics is not None:
                diagnostics.extend(annotation.diagnostics)

            label = item_label(item) if track_members else None
            for category_id in annotation.attributed:
                result.counts[category_id] = result.counts.get(category_id, 0) + 1
                if track_members:
                    result.members.setdefault(category_id, set()).add(label)

        logger.debug(
            "aggregate_complete",
            item_count=result.num_items,
            category_count=len(result.counts),
        )

        return result
