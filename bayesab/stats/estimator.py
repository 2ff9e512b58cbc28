"""Monte Carlo estimates over a result's posterior samples.

P(A > B) is taken over the full cross product of arm A and arm B draws,
computed by rank counting against the sorted B draws, so it stays
O(n log n) for hundreds of thousands of samples.  Lift and expected loss
are computed over A/B pairs resampled with replacement from independent
streams, since the arms' draws are not naturally paired.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from bayesab.core.config import settings
from bayesab.core.errors import ConfigurationError, DegenerateSampleWarning
from bayesab.stats.fitter import arm_generators, validate_n_samples
from bayesab.stats.results import TestResult

logger = logging.getLogger(__name__)

INTERVAL_METHODS = ("equal_tailed", "hdi")


@dataclass(frozen=True)
class CredibleInterval:
    lower: float
    upper: float
    mass: float
    warning: DegenerateSampleWarning | None = None

    @property
    def degenerate(self) -> bool:
        """True when the interval is a best-effort point and should not be trusted."""
        return self.warning is not None

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


@dataclass(frozen=True, eq=False)
class LiftDistribution:
    """Empirical ``(a - b) / b`` draws plus how many pairs were dropped.

    Pairs whose B draw is within ``settings.LIFT_EPSILON`` of zero are
    excluded rather than producing an infinite lift.
    """

    values: np.ndarray
    excluded: int


@dataclass(frozen=True)
class Summary:
    """Everything the presentation layer prints for one parameter."""

    parameter: str
    n_samples: int
    probability_a_beats_b: float
    probability_b_beats_a: float
    interval_a: CredibleInterval
    interval_b: CredibleInterval
    lift_interval: CredibleInterval
    lift_threshold: float
    probability_lift_above: float
    expected_loss_a: float
    expected_loss_b: float
    lift_excluded: int


# ======================================================================
# Tail probabilities
# ======================================================================

def _finite(values: np.ndarray) -> np.ndarray:
    values = np.asarray(values, dtype=float).ravel()
    return values[np.isfinite(values)]


def probability_greater(x: np.ndarray, y: np.ndarray) -> float:
    """Fraction of all (x_i, y_j) pairs with x_i > y_j, without building the pairs.

    Non-finite draws are dropped from both sides first, as in
    ``credible_interval``.  Returns NaN if either side has none left.
    """
    x = _finite(x)
    y_sorted = np.sort(_finite(y))
    if x.size == 0 or y_sorted.size == 0:
        return math.nan
    below = np.searchsorted(y_sorted, x, side="left")
    return float(np.sum(below, dtype=np.int64)) / (x.size * y_sorted.size)


def probability_a_beats_b(result: TestResult, param: str) -> float:
    """P(param_A > param_B) over the independent cross product of draws."""
    a, b = result.arm(param)
    return probability_greater(a, b)


def probability_b_beats_a(result: TestResult, param: str) -> float:
    a, b = result.arm(param)
    return probability_greater(b, a)


# ======================================================================
# Resampled pairs: lift and expected loss
# ======================================================================

def _resampled_pairs(
    result: TestResult,
    param: str,
    n_draws: int | None,
    seed: int | None,
) -> tuple[np.ndarray, np.ndarray]:
    """Pairs drawn from each arm's finite draws; empty if either arm has none."""
    a, b = (_finite(draws) for draws in result.arm(param))
    m = result.n_samples if n_draws is None else validate_n_samples(n_draws)
    if a.size == 0 or b.size == 0:
        logger.debug("No finite %s draws in one arm; nothing to resample", param)
        return np.empty(0), np.empty(0)
    rng_a, rng_b = arm_generators(seed)
    return a[rng_a.integers(0, a.size, size=m)], b[rng_b.integers(0, b.size, size=m)]


def lift_samples(
    result: TestResult,
    param: str,
    n_draws: int | None = None,
    seed: int | None = 42,
) -> LiftDistribution:
    """Empirical relative lift ``(a - b) / b`` of arm A over arm B.

    Parameters
    ----------
    result : TestResult
    param : str
        Parameter present in both arms.
    n_draws : int | None
        Resampled pairs; defaults to ``result.n_samples``.
    seed : int | None
        Seed for the two resampling streams.
    """
    draws_a, draws_b = _resampled_pairs(result, param, n_draws, seed)
    usable = np.abs(draws_b) > settings.LIFT_EPSILON
    excluded = int(draws_b.size - np.count_nonzero(usable))
    if excluded:
        logger.debug("Excluded %d near-zero denominators from %s lift", excluded, param)
    lift = (draws_a[usable] - draws_b[usable]) / draws_b[usable]
    return LiftDistribution(values=lift, excluded=excluded)


def lift_probability(
    result: TestResult,
    param: str,
    threshold: float = 0.0,
    n_draws: int | None = None,
    seed: int | None = 42,
) -> float:
    """P(lift > threshold), e.g. ``threshold=0.05`` for "A beats B by more than 5%".

    Returns NaN when every pair was excluded for a near-zero denominator.
    """
    lift = lift_samples(result, param, n_draws=n_draws, seed=seed).values
    if lift.size == 0:
        return math.nan
    return float(np.mean(lift > threshold))


def expected_loss(
    result: TestResult,
    param: str,
    n_draws: int | None = None,
    seed: int | None = 42,
) -> tuple[float, float]:
    """Expected loss of choosing A and of choosing B.

    Choosing A costs ``E[max(B - A, 0)]``; choosing B costs
    ``E[max(A - B, 0)]``.  The arm with the lower loss is the safer pick.
    Non-finite draws are ignored; both losses are NaN if an arm has no
    finite draws.
    """
    draws_a, draws_b = _resampled_pairs(result, param, n_draws, seed)
    if draws_a.size == 0:
        return math.nan, math.nan
    diff = draws_b - draws_a
    return float(np.mean(np.maximum(diff, 0.0))), float(np.mean(np.maximum(-diff, 0.0)))


# ======================================================================
# Credible intervals
# ======================================================================

def hdi_from_samples(
    samples: np.ndarray, credible_mass: float | None = None
) -> tuple[float, float]:
    """Compute the Highest Density Interval from Monte Carlo samples.

    Uses the sorted-interval method: find the shortest interval containing
    ``credible_mass`` proportion of sorted samples.  ``credible_mass``
    defaults to ``settings.CREDIBLE_MASS``.
    """
    if credible_mass is None:
        credible_mass = settings.CREDIBLE_MASS
    sorted_samples = np.sort(samples)
    n = len(sorted_samples)
    interval_size = int(np.ceil(credible_mass * n))
    if interval_size >= n:
        return (float(sorted_samples[0]), float(sorted_samples[-1]))

    widths = sorted_samples[interval_size:] - sorted_samples[: n - interval_size]
    best_idx = int(np.argmin(widths))
    return (float(sorted_samples[best_idx]), float(sorted_samples[best_idx + interval_size]))


def credible_interval(
    samples: np.ndarray,
    mass: float | None = None,
    method: str = "equal_tailed",
) -> CredibleInterval:
    """Two-sided credible interval from empirical quantiles.

    Parameters
    ----------
    samples : np.ndarray
        Posterior (or lift) draws.  Non-finite values are ignored.
    mass : float | None
        Probability mass inside the interval; defaults to
        ``settings.CREDIBLE_MASS``.
    method : str
        ``"equal_tailed"`` (quantiles at ``(1-mass)/2`` and ``1-(1-mass)/2``)
        or ``"hdi"`` (shortest interval).

    Returns
    -------
    CredibleInterval
        Empty, single-draw or constant input yields a point (or NaN)
        interval carrying a ``DegenerateSampleWarning`` instead of raising.
    """
    mass = settings.CREDIBLE_MASS if mass is None else mass
    if not 0 < mass < 1:
        raise ConfigurationError("credible mass must be between 0 and 1 exclusive")
    if method not in INTERVAL_METHODS:
        raise ConfigurationError(f"unknown interval method {method!r}")

    values = np.asarray(samples, dtype=float).ravel()
    values = values[np.isfinite(values)]

    if values.size == 0:
        return CredibleInterval(
            math.nan, math.nan, mass, DegenerateSampleWarning("no finite samples")
        )
    if values.size == 1 or np.ptp(values) == 0:
        point = float(values[0])
        logger.debug("Degenerate sample (n=%d, constant=%s)", values.size, point)
        return CredibleInterval(
            point,
            point,
            mass,
            DegenerateSampleWarning(f"{values.size} draw(s) with a single distinct value"),
        )

    if method == "hdi":
        lower, upper = hdi_from_samples(values, mass)
    else:
        tail = (1 - mass) / 2
        lower, upper = (float(q) for q in np.quantile(values, [tail, 1 - tail]))
    return CredibleInterval(lower, upper, mass)


# ======================================================================
# Summary
# ======================================================================

def summarize(
    result: TestResult,
    param: str | None = None,
    credible_mass: float | None = None,
    lift_threshold: float = 0.0,
    method: str = "equal_tailed",
    n_draws: int | None = None,
    seed: int | None = 42,
) -> Summary:
    """Collect the standard estimates for one parameter of ``result``.

    ``param`` defaults to the result's first parameter.
    """
    param = result.parameters[0] if param is None else param
    a, b = result.arm(param)
    lift = lift_samples(result, param, n_draws=n_draws, seed=seed)
    loss_a, loss_b = expected_loss(result, param, n_draws=n_draws, seed=seed)

    return Summary(
        parameter=param,
        n_samples=result.n_samples,
        probability_a_beats_b=probability_greater(a, b),
        probability_b_beats_a=probability_greater(b, a),
        interval_a=credible_interval(a, credible_mass, method),
        interval_b=credible_interval(b, credible_mass, method),
        lift_interval=credible_interval(lift.values, credible_mass, method),
        lift_threshold=lift_threshold,
        probability_lift_above=(
            float(np.mean(lift.values > lift_threshold)) if lift.values.size else math.nan
        ),
        expected_loss_a=loss_a,
        expected_loss_b=loss_b,
        lift_excluded=lift.excluded,
    )
