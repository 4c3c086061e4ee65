"""Shared fixtures: a small ontology and annotation table.

Ontology (biological process branch):

    GO:0003673 Gene_Ontology (root)
    ├── GO:0008150 biological_process (P)
    │   ├── GO:0000010 a
    │   │   ├── GO:0000020 b ──┐
    │   │   └── GO:0000030 c ──┴── GO:0000040 d
    │   └── GO:0000050 e
    ├── GO:0003674 molecular_function (F)
    │   └── GO:0000060 f
    └── GO:0005575 cellular_component (C)

Annotations (direct, ten items; the population is twelve):

    g1, g2 -> d        g3 -> b        g4 -> c
    g5, g6 -> e        g7 -> a        g8 -> f (function only)
    g9     -> nothing  g10 -> d plus GO:9999999 (absent from the ontology)
"""

import polars as pl
import pytest

from termfinder.annotation import AnnotationTable
from termfinder.config import EngineSettings
from termfinder.enrichment import EnrichmentEngine
from termfinder.ontology import Aspect, OntologyGraph

ROOT = "GO:0003673"
BP = "GO:0008150"
MF = "GO:0003674"
CC = "GO:0005575"
A = "GO:0000010"
B = "GO:0000020"
C = "GO:0000030"
D = "GO:0000040"
E = "GO:0000050"
F = "GO:0000060"
DANGLING = "GO:9999999"


@pytest.fixture
def ontology_frames():
    terms = pl.DataFrame({
        "category_id": [ROOT, BP, MF, CC, A, B, C, D, E, F],
        "name": [
            "Gene_Ontology",
            "biological_process",
            "molecular_function",
            "cellular_component",
            "a", "b", "c", "d", "e", "f",
        ],
        "aspect": [None, "P", "F", "C", "P", "P", "P", "P", "P", "F"],
    })
    edges = pl.DataFrame({
        "child_id": [BP, MF, CC, A, B, C, D, D, E, F],
        "parent_id": [ROOT, ROOT, ROOT, BP, A, A, B, C, BP, MF],
    })
    return terms, edges


@pytest.fixture
def ontology(ontology_frames):
    terms, edges = ontology_frames
    return OntologyGraph.from_frames(terms, edges)


@pytest.fixture
def annotation_frame():
    return pl.DataFrame({
        "item_id": ["g1", "g2", "g3", "g4", "g5", "g6", "g7", "g8", "g9", "g10", "g10"],
        "symbol": [
            "MET1", "MET2", "SHARED", "CYS4", "ECM5",
            "ECM6", "ARG7", "FUN8", "YBL9", "MET10", "MET10",
        ],
        "aliases": [
            "ALPHA", "ALPHA", None, "SHARED", None,
            None, None, None, None, "M10|MET-10", "M10|MET-10",
        ],
        "category_id": [D, D, B, C, E, E, A, F, None, D, DANGLING],
        "aspect": ["P", "P", "P", "P", "P", "P", "P", "F", None, "P", "P"],
    })


@pytest.fixture
def annotations(annotation_frame):
    return AnnotationTable(annotation_frame)


@pytest.fixture
def settings():
    return EngineSettings(total_num_genes=12, aspect=Aspect.PROCESS)


@pytest.fixture
def engine(settings, annotations, ontology):
    return EnrichmentEngine(settings, annotation_source=annotations, ontology=ontology)
