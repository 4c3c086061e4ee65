"""Pydantic models for engine configuration."""

import hashlib
import json
from enum import Enum

from pydantic import BaseModel, Field

from termfinder.ontology.models import Aspect


class Method(str, Enum):
    """Sampling model used for p-value calculation."""

    HYPERGEOMETRIC = "hypergeometric"
    BINOMIAL = "binomial"


class Correction(str, Enum):
    """Multiple hypothesis testing correction strategy."""

    MINIMAL_SET = "minimal_set"
    NONE = "none"


class EngineSettings(BaseModel):
    """Configuration for one enrichment engine.

    One engine serves one (population, aspect) pair. The annotation
    source and the ontology are passed to the engine separately since
    they are live objects, not configuration values.
    """

    total_num_genes: int = Field(
        ...,
        ge=0,
        description="Size of the background population (unannotated genes included)",
    )
    aspect: Aspect = Field(
        ...,
        description="Ontology aspect to analyse (P, F or C)",
    )
    method: Method = Field(
        default=Method.HYPERGEOMETRIC,
        description="Default sampling model for find_terms",
    )
    correction: Correction = Field(
        default=Correction.MINIMAL_SET,
        description="Default multiple testing correction for find_terms",
    )
    significance_cutoff: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Corrected p-value cutoff used by filter_significant",
    )

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tagging result sets with the settings that produced them.
        """
        config_json = json.dumps(
            self.model_dump(mode="json"),
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()
