"""Ontology DAG collaborator."""

from termfinder.ontology.models import Aspect, Category, UNANNOTATED
from termfinder.ontology.graph import OntologyGraph, OntologyProvider

__all__ = [
    "Aspect",
    "Category",
    "UNANNOTATED",
    "OntologyGraph",
    "OntologyProvider",
]
