"""Resolution of user-supplied gene names to item identifiers.

Runs before the enrichment engine: the engine itself only ever sees
resolved identifiers or explicit UnresolvedName markers.
"""

import structlog

from termfinder.annotation.models import ItemRef, ResolutionReport, UnresolvedName
from termfinder.annotation.provider import AnnotationTable

logger = structlog.get_logger(__name__)


def resolve_names(
    names: list[str],
    table: AnnotationTable,
) -> tuple[list[ItemRef], ResolutionReport]:
    """Map gene names to item identifiers.

    Rules:
    - Leading/trailing whitespace is stripped; blank names are skipped
    - A name supplied more than once is considered once
    - An ambiguous name resolves only if it is some item's standard name;
      ambiguous aliases are dropped
    - A name matching nothing becomes an UnresolvedName marker
    - Names resolving to an item already in the list are dropped

    Args:
        names: Gene names, standard names, aliases or item ids
        table: Annotation table providing the name lookups

    Returns:
        Tuple of (item_refs, resolution_report)
        - item_refs: Resolved ids and UnresolvedName markers, in input order
        - resolution_report: Summary of what happened to each name
    """
    item_refs: list[ItemRef] = []
    unresolved: list[str] = []
    ambiguous: list[str] = []
    duplicates: list[str] = []
    seen_names: set[str] = set()
    seen_ids: dict[str, str] = {}
    resolved = 0

    for raw_name in names:
        name = raw_name.strip()
        if not name:
            continue

        if name in seen_names:
            logger.info("resolve_duplicate_name", name=name)
            duplicates.append(name)
            continue
        seen_names.add(name)

        if table.name_is_ambiguous(name):
            if not table.name_is_standard_name(name):
                logger.warning(
                    "resolve_ambiguous_alias_dropped",
                    name=name,
                    candidates=table.item_ids_for_ambiguous_name(name),
                )
                ambiguous.append(name)
                continue
            item_id = table.item_id_by_standard_name(name)
            logger.info("resolve_ambiguous_as_standard_name", name=name, item_id=item_id)
        else:
            item_id = table.item_id_by_name(name)

        if item_id is None:
            logger.warning("resolve_unknown_name", name=name)
            unresolved.append(name)
            item_refs.append(UnresolvedName(name))
            continue

        if item_id in seen_ids:
            logger.info(
                "resolve_duplicate_item",
                name=name,
                item_id=item_id,
                first_name=seen_ids[item_id],
            )
            duplicates.append(name)
            continue

        seen_ids[item_id] = name
        item_refs.append(item_id)
        resolved += 1

    report = ResolutionReport(
        total_names=len(names),
        resolved=resolved,
        unresolved_names=unresolved,
        ambiguous_names=ambiguous,
        duplicate_names=duplicates,
    )

    logger.info(
        "resolve_names_complete",
        total_names=report.total_names,
        resolved=report.resolved,
        unresolved=len(unresolved),
        success_rate=f"{report.success_rate:.1%}",
    )

    return item_refs, report
