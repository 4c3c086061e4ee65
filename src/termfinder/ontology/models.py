"""Data models for ontology categories."""

from dataclasses import dataclass
from enum import Enum


class Aspect(str, Enum):
    """Top-level ontology branch a query is evaluated within."""

    PROCESS = "P"
    FUNCTION = "F"
    COMPONENT = "C"


@dataclass(frozen=True)
class Category:
    """A single ontology node.

    Attributes:
        category_id: Stable identifier (e.g., GO:0006555)
        name: Human-readable term name
        aspect: Branch the term belongs to (None for the root and the
            unannotated sentinel)
    """
    category_id: str
    name: str
    aspect: Aspect | None = None


# Items with no classification in the analysed aspect are counted here.
# The sentinel is never part of an ontology graph.
UNANNOTATED = Category(category_id="GO:XXXXXXX", name="unannotated")
