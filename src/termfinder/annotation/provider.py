"""Item-to-category annotation source backed by a polars frame."""

from typing import Protocol

import polars as pl
import structlog

from termfinder.ontology.models import Aspect

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ["item_id", "symbol", "aliases", "category_id", "aspect"]


class AnnotationSource(Protocol):
    """Operations the enrichment core needs from an annotation source."""

    def all_item_ids(self) -> list[str]: ...

    def direct_category_ids(self, item_id: str, aspect: Aspect) -> list[str] | None: ...


class AnnotationTable:
    """Annotation source holding direct item-to-category assignments.

    Every item id, standard name and alias is mapped to its item. A name
    shared by more than one item is ambiguous and only resolves through
    the standard-name lookup.

    Expected frame columns:
    - item_id: Unique item identifier (rows without one are dropped)
    - symbol: Standard name of the item
    - aliases: Pipe-delimited aliases (nullable)
    - category_id: Directly assigned category (nullable: item has no annotation)
    - aspect: P, F or C (nullable when category_id is NULL)
    - qualifier: Optional; rows qualified NOT are ignored
    """

    def __init__(self, frame: pl.DataFrame, case_sensitive: bool = False):
        """Build lookup tables from an annotation frame.

        Args:
            frame: Annotation rows, one per (item, category) assignment
            case_sensitive: Whether name lookups distinguish letter case
                (default: False)

        Raises:
            ValueError: If required columns are missing
        """
        missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
        if missing:
            raise ValueError(f"Annotation frame is missing columns: {missing}")

        self.case_sensitive = case_sensitive

        input_rows = frame.height
        frame = frame.filter(
            pl.col("item_id").is_not_null() & (pl.col("item_id") != "")
        )
        dropped_no_id = input_rows - frame.height
        if dropped_no_id:
            logger.warning("annotation_rows_without_item_id", dropped=dropped_no_id)

        if "qualifier" in frame.columns:
            frame = frame.filter(
                ~pl.col("qualifier").fill_null("").str.split("|").list.contains("NOT")
            )

        self._direct: dict[str, dict[Aspect, set[str]]] = {}
        self._name_to_id: dict[str, str] = {}
        self._ambiguous: dict[str, list[str]] = {}
        self._standard_name_to_id: dict[str, str] = {}
        self._id_to_standard_name: dict[str, str] = {}

        for row in frame.iter_rows(named=True):
            item_id = row["item_id"]
            aspects = self._direct.setdefault(item_id, {})
            if row["category_id"]:
                aspects.setdefault(Aspect(row["aspect"]), set()).add(row["category_id"])
            self._map_names(item_id, row["symbol"] or item_id, row["aliases"] or "")

        logger.info(
            "annotation_table_built",
            item_count=len(self._direct),
            row_count=frame.height,
            ambiguous_names=len(self._ambiguous),
        )

    def _normalize(self, name: str) -> str:
        return name if self.case_sensitive else name.upper()

    def _map_names(self, item_id: str, standard_name: str, aliases: str) -> None:
        """Map the item id, standard name and aliases to item_id."""
        if item_id in self._id_to_standard_name:
            return

        seen: set[str] = set()
        for name in [item_id, standard_name, *aliases.split("|")]:
            if not name:
                continue
            key = self._normalize(name)
            if key in seen:
                continue
            seen.add(key)

            if key in self._name_to_id:
                self._ambiguous[key] = [self._name_to_id.pop(key), item_id]
            elif key in self._ambiguous:
                self._ambiguous[key].append(item_id)
            else:
                self._name_to_id[key] = item_id

        self._id_to_standard_name[item_id] = standard_name
        self._standard_name_to_id[self._normalize(standard_name)] = item_id

    def __len__(self) -> int:
        return len(self._direct)

    def all_item_ids(self) -> list[str]:
        """Return all item identifiers in sorted order."""
        return sorted(self._direct)

    def direct_category_ids(self, item_id: str, aspect: Aspect) -> list[str] | None:
        """Return the categories directly assigned to an item in one aspect.

        Returns:
            Sorted category ids, an empty list if the item has no
            annotation in that aspect, or None if the item is unknown
        """
        aspects = self._direct.get(item_id)
        if aspects is None:
            return None
        return sorted(aspects.get(Aspect(aspect), ()))

    def standard_name(self, item_id: str) -> str | None:
        return self._id_to_standard_name.get(item_id)

    def name_is_ambiguous(self, name: str) -> bool:
        return self._normalize(name) in self._ambiguous

    def item_ids_for_ambiguous_name(self, name: str) -> list[str]:
        return list(self._ambiguous.get(self._normalize(name), []))

    def name_is_standard_name(self, name: str) -> bool:
        return self._normalize(name) in self._standard_name_to_id

    def item_id_by_standard_name(self, name: str) -> str | None:
        return self._standard_name_to_id.get(self._normalize(name))

    def item_id_by_name(self, name: str) -> str | None:
        """Return the item for an unambiguous id, standard name or alias."""
        return self._name_to_id.get(self._normalize(name))
