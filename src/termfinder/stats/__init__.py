"""Exact sampling distributions."""

from termfinder.stats.distributions import DistributionModel

__all__ = ["DistributionModel"]
