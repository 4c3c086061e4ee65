"""Item reference types shared by the annotation source and the engine."""

from dataclasses import dataclass, field
from typing import TypeAlias


@dataclass(frozen=True)
class UnresolvedName:
    """Marker for a user-supplied name that maps to no item identifier.

    The engine counts each distinct marker as one item with no
    classification.
    """
    name: str


# Either a resolved item identifier or an explicit unresolved marker
ItemRef: TypeAlias = str | UnresolvedName


def item_label(item: ItemRef) -> str:
    """Return the string used to report an item in results."""
    return item.name if isinstance(item, UnresolvedName) else item


@dataclass
class ResolutionReport:
    """Summary report for a name resolution operation.

    Attributes:
        total_names: Number of names supplied (blank names included)
        resolved: Number of names mapped to an item identifier
        unresolved_names: Names that matched no item
        ambiguous_names: Ambiguous aliases that were dropped
        duplicate_names: Names skipped because they were already supplied
            or resolved to an already-seen item
        success_rate: Fraction of non-blank names resolved (0-1)
    """
    total_names: int
    resolved: int
    unresolved_names: list[str] = field(default_factory=list)
    ambiguous_names: list[str] = field(default_factory=list)
    duplicate_names: list[str] = field(default_factory=list)
    success_rate: float = 0.0

    def __post_init__(self):
        """Calculate success rate after initialization."""
        attempted = (
            self.resolved
            + len(self.unresolved_names)
            + len(self.ambiguous_names)
        )
        if attempted > 0:
            self.success_rate = self.resolved / attempted
