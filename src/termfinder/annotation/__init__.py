"""Item annotation collaborator and name resolution."""

from termfinder.annotation.models import (
    ItemRef,
    ResolutionReport,
    UnresolvedName,
    item_label,
)
from termfinder.annotation.provider import AnnotationSource, AnnotationTable
from termfinder.annotation.resolve import resolve_names

__all__ = [
    "ItemRef",
    "ResolutionReport",
    "UnresolvedName",
    "item_label",
    "AnnotationSource",
    "AnnotationTable",
    "resolve_names",
]
