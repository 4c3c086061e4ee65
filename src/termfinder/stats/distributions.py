"""Exact hypergeometric and binomial tail probabilities.

All calculations are done in log space on top of a log-factorial table
built once per model, so that factorials of population-sized numbers
never overflow:

    log(n!) = log(1) + log(2) + ... + log(n)

    log(nCr) = log(n!) - log(r!) - log((n-r)!)

The hypergeometric probability of x successes in a sample of n, drawn
without replacement from a population of N containing M successes, is

    P(x) = (M choose x) (N-M choose n-x) / (N choose n)

and the binomial probability of j successes in n independent trials
with success probability p is

    P(j) = (n choose j) p^j (1-p)^(n-j)

Tail functions sum P over x..n, giving the p-value for observing x or
more successes.
"""

import math
import threading

import numpy as np
import structlog

from termfinder.errors import DistributionRangeError

logger = structlog.get_logger(__name__)


class DistributionModel:
    """Log-space distribution primitives for one population size.

    The log-factorial table and the log-binomial-coefficient memo are
    owned by the instance; nothing is shared between models.
    """

    def __init__(self, max_population: int):
        """Build the log-factorial table.

        Args:
            max_population: Largest n for which log(n!) will be requested
                (the total population size)

        Raises:
            DistributionRangeError: If max_population is negative
        """
        if max_population < 0:
            raise DistributionRangeError(
                f"Population size must be >= 0, got {max_population}"
            )

        self.max_population = max_population

        # logs[i] = log(i + 1); prefix sums give log(n!) for n >= 1
        logs = np.log(np.arange(1, max_population + 1, dtype=np.float64))
        self._log_factorials: list[float] = [0.0] + np.cumsum(logs).tolist()

        self._log_ncr: dict[tuple[int, int], float] = {}
        self._lock = threading.Lock()

        logger.debug("log_factorials_cached", max_population=max_population)

    def log_factorial(self, n: int) -> float:
        """Return log(n!) from the cached table."""
        if n < 0 or n > self.max_population:
            raise DistributionRangeError(
                f"log({n}!) requested, but factorials are only cached "
                f"for 0..{self.max_population}"
            )
        return self._log_factorials[n]

    def log_binomial_coefficient(self, n: int, r: int) -> float:
        """Return log(n choose r); -inf when r is outside 0..n."""
        if r < 0 or r > n:
            return -math.inf

        key = (n, r)
        value = self._log_ncr.get(key)
        if value is None:
            value = self.log_factorial(n) - (
                self.log_factorial(r) + self.log_factorial(n - r)
            )
            with self._lock:
                self._log_ncr[key] = value
        return value

    def hypergeometric_probability(self, x: int, n: int, M: int, N: int) -> float:
        """Probability of exactly x of M successes in a sample of n from N."""
        if n > N or M > N:
            raise DistributionRangeError(
                f"Sample size ({n}) and successes ({M}) cannot exceed population ({N})"
            )
        log_p = (
            self.log_binomial_coefficient(M, x)
            + self.log_binomial_coefficient(N - M, n - x)
            - self.log_binomial_coefficient(N, n)
        )
        return math.exp(log_p)

    def hypergeometric_tail(self, x: int, n: int, M: int, N: int) -> float:
        """Probability of x or more successes (sampling without replacement)."""
        if x <= 0:
            return 1.0

        pvalue = 0.0
        for j in range(x, n + 1):
            pvalue += self.hypergeometric_probability(j, n, M, N)

        # rounding can push the sum marginally past 1
        return min(pvalue, 1.0)

    def binomial_probability(self, j: int, n: int, p: float) -> float:
        """Probability of exactly j successes in n trials.

        p == 1 returns exactly 1 to avoid log(0).
        """
        if p == 1:
            return 1.0
        if p == 0:
            return 1.0 if j == 0 else 0.0

        return math.exp(
            self.log_binomial_coefficient(n, j)
            + j * math.log(p)
            + (n - j) * math.log(1 - p)
        )

    def binomial_tail(self, x: int, n: int, p: float) -> float:
        """Probability of x or more successes (sampling with replacement)."""
        if x <= 0 or p >= 1:
            return 1.0

        pvalue = 0.0
        for j in range(x, n + 1):
            pvalue += self.binomial_probability(j, n, p)

        return min(pvalue, 1.0)
