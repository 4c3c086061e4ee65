"""Ontology term enrichment with minimal-hypothesis-set correction."""

__version__ = "0.1.0"

from termfinder.annotation import AnnotationTable, UnresolvedName, resolve_names
from termfinder.config import Correction, EngineSettings, Method, load_config
from termfinder.enrichment import EnrichmentEngine, Hypothesis, QueryReport
from termfinder.errors import ConfigurationError, DistributionRangeError, EnrichmentError
from termfinder.ontology import UNANNOTATED, Aspect, Category, OntologyGraph

__all__ = [
    "__version__",
    "AnnotationTable",
    "UnresolvedName",
    "resolve_names",
    "Correction",
    "EngineSettings",
    "Method",
    "load_config",
    "EnrichmentEngine",
    "Hypothesis",
    "QueryReport",
    "ConfigurationError",
    "DistributionRangeError",
    "EnrichmentError",
    "UNANNOTATED",
    "Aspect",
    "Category",
    "OntologyGraph",
]
