"""Data models for enrichment results and per-query diagnostics."""

from dataclasses import dataclass, field
from enum import Enum

import polars as pl
from pydantic import BaseModel, ConfigDict, Field, model_validator

from termfinder.config.schema import Correction, Method


class Hypothesis(BaseModel):
    """Enrichment result for a single tested category.

    Attributes:
        category_id: Tested category (GO:XXXXXXX for the unannotated sentinel)
        category_name: Human-readable category name
        p_value: Probability of query_count or more query items falling
            in the category by chance
        corrected_p_value: p_value times the correction factor, capped at 1
        query_count: Query items attributed to the category
        background_count: Background items attributed to the category
        item_ids: Query items attributed to the category, sorted

    A record is only built once both p-values are known; the validator
    rejects internally inconsistent values.
    """

    model_config = ConfigDict(frozen=True)

    category_id: str
    category_name: str
    p_value: float = Field(..., ge=0.0, le=1.0)
    corrected_p_value: float = Field(..., ge=0.0, le=1.0)
    query_count: int = Field(..., ge=2)
    background_count: int = Field(..., ge=2)
    item_ids: tuple[str, ...] = ()

    @model_validator(mode="after")
    def check_consistency(self) -> "Hypothesis":
        if self.corrected_p_value < self.p_value:
            raise ValueError(
                f"corrected_p_value {self.corrected_p_value} is below p_value {self.p_value}"
            )
        if self.query_count > self.background_count:
            raise ValueError(
                f"query_count {self.query_count} exceeds background_count {self.background_count}"
            )
        return self

    def is_significant(self, cutoff: float = 0.05) -> bool:
        """Check if the corrected p-value is at or below the cutoff."""
        return self.corrected_p_value <= cutoff

    def to_dict(self) -> dict:
        """Convert to dictionary with JSON-serializable types."""
        return {
            "category_id": self.category_id,
            "category_name": self.category_name,
            "p_value": float(self.p_value),
            "corrected_p_value": float(self.corrected_p_value),
            "query_count": int(self.query_count),
            "background_count": int(self.background_count),
            "item_ids": list(self.item_ids),
        }


class DiagnosticKind(str, Enum):
    """Non-fatal conditions reported by a query."""

    INPUT_SIZE_ERROR = "input_size_error"
    UNRESOLVED_ITEM = "unresolved_item_warning"
    DANGLING_CATEGORY = "dangling_category_warning"
    DUPLICATE_ITEM = "duplicate_item"
    BACKGROUND_UNDERCOUNT = "background_undercount"


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal condition encountered while answering a query.

    Attributes:
        kind: Condition category
        message: Human-readable description
        item_id: Item concerned, if any
        category_id: Category concerned, if any
    """
    kind: DiagnosticKind
    message: str
    item_id: str | None = None
    category_id: str | None = None


@dataclass
class QueryReport:
    """Summary report for one find_terms call.

    Attributes:
        num_items: Distinct query items considered
        method: Sampling model used
        correction: Correction strategy used
        correction_factor: Scalar every raw p-value was multiplied by
        num_hypotheses: Number of Hypothesis records returned
        diagnostics: Non-fatal conditions, in the order encountered
    """
    num_items: int
    method: Method
    correction: Correction
    correction_factor: int = 1
    num_hypotheses: int = 0
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        """Return diagnostics of one kind."""
        return [d for d in self.diagnostics if d.kind == kind]

    @property
    def input_rejected(self) -> bool:
        """True if the query was refused for exceeding the population size."""
        return any(d.kind == DiagnosticKind.INPUT_SIZE_ERROR for d in self.diagnostics)


HYPOTHESIS_SCHEMA = {
    "category_id": pl.String,
    "category_name": pl.String,
    "p_value": pl.Float64,
    "corrected_p_value": pl.Float64,
    "query_count": pl.Int64,
    "background_count": pl.Int64,
    "item_ids": pl.List(pl.String),
}


def hypotheses_to_frame(hypotheses: list[Hypothesis]) -> pl.DataFrame:
    """Convert a result list to a polars DataFrame, preserving order."""
    return pl.DataFrame(
        [h.to_dict() for h in hypotheses],
        schema=HYPOTHESIS_SCHEMA,
    )


def filter_significant(
    hypotheses: list[Hypothesis],
    cutoff: float = 0.05,
) -> list[Hypothesis]:
    """Keep records whose corrected p-value is at or below the cutoff."""
    return [h for h in hypotheses if h.is_significant(cutoff)]
