"""Exception hierarchy for the enrichment engine.

Only misuse is raised. Problems with caller input (oversized queries,
unresolvable names, dangling annotations) are reported as diagnostics
on the per-call QueryReport instead.
"""


class EnrichmentError(Exception):
    """Base class for all termfinder errors."""


class ConfigurationError(EnrichmentError, ValueError):
    """A required construction parameter is missing or invalid, or an
    unsupported method/correction selector was requested."""


class DistributionRangeError(EnrichmentError, IndexError):
    """A factorial was requested outside the range cached at construction."""
