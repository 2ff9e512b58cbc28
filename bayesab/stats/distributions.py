"""Conjugate distribution families: prior shape, posterior update, sampler.

Each supported family is a stateless ``ConjugateFamily`` instance keyed by
the closed ``Family`` enum.  Posterior hyperparameters are returned under the
same keys as the prior (the posterior stays in the prior's family), so a
posterior can be fed back in as a prior for a later, independent fit.

The registry never holds random state: every ``sample`` call receives the
``numpy.random.Generator`` it must draw from.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Mapping

import numpy as np
from scipy import stats as sp_stats

from bayesab.core.errors import ConfigurationError, InvalidDataError


class Family(str, enum.Enum):
    BERNOULLI = "bernoulli"
    POISSON = "poisson"
    NORMAL = "normal"
    LOGNORMAL = "lognormal"
    NEGATIVE_BINOMIAL = "negative_binomial"
    EXPONENTIAL = "exponential"
    GEOMETRIC = "geometric"


# ======================================================================
# Sufficient statistics
# ======================================================================

@dataclass(frozen=True)
class ArmSummary:
    """Per-arm sufficient statistics; the raw observations are not kept.

    Attributes
    ----------
    count : int
        Number of observations.
    total : float
        Sum of the (possibly transformed) observations.
    mean : float
        ``total / count``.
    sq_dev : float
        Sum of squared deviations from ``mean``.
    """

    count: int
    total: float
    mean: float
    sq_dev: float

    @classmethod
    def from_values(cls, values: np.ndarray) -> ArmSummary:
        count = int(values.size)
        total = float(np.sum(values))
        mean = total / count
        sq_dev = float(np.sum((values - mean) ** 2))
        return cls(count=count, total=total, mean=mean, sq_dev=sq_dev)

    @property
    def variance(self) -> float:
        """Unbiased sample variance, or NaN with fewer than two observations."""
        if self.count < 2:
            return math.nan
        return self.sq_dev / (self.count - 1)


# ======================================================================
# Family base class
# ======================================================================

class ConjugateFamily:
    """Shared capability interface for one distribution family.

    Subclasses set the class attributes and implement ``_check_support``,
    ``update`` and ``sample``.
    """

    family: Family
    parameters: tuple[str, ...] = ()
    prior_keys: tuple[str, ...] = ()
    positive_keys: frozenset[str] = frozenset()
    default_prior: Mapping[str, float] = {}
    support: str = ""

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_prior(self, prior: Mapping[str, Any] | None) -> dict[str, float]:
        """Return a clean float copy of ``prior``, or the family default if None.

        Raises
        ------
        ConfigurationError
            On missing or unknown keys, non-numeric or non-finite values, or
            non-positive values for keys that must be positive.
        """
        if prior is None:
            return dict(self.default_prior)

        missing = [k for k in self.prior_keys if k not in prior]
        if missing:
            raise ConfigurationError(
                f"{self.family.value} prior is missing required keys: {', '.join(missing)}"
            )
        unknown = sorted(set(prior) - set(self.prior_keys))
        if unknown:
            raise ConfigurationError(
                f"{self.family.value} prior has unknown keys: {', '.join(unknown)}"
            )

        clean: dict[str, float] = {}
        for key in self.prior_keys:
            try:
                value = float(prior[key])
            except (TypeError, ValueError):
                raise ConfigurationError(f"prior {key!r} must be a number") from None
            if not math.isfinite(value):
                raise ConfigurationError(f"prior {key!r} must be finite")
            if key in self.positive_keys and value <= 0:
                raise ConfigurationError(f"prior {key!r} must be positive")
            clean[key] = value
        return clean

    def summarize(self, data: Any) -> ArmSummary:
        """Validate one arm's observations and reduce them to sufficient statistics.

        Raises
        ------
        InvalidDataError
            If the data is empty, not numeric, or outside the family's support.
        """
        try:
            values = np.asarray(data, dtype=float).ravel()
        except (TypeError, ValueError):
            raise InvalidDataError("observations must be numeric") from None
        if values.size == 0:
            raise InvalidDataError("observations must be non-empty")
        if not np.all(np.isfinite(values)):
            raise InvalidDataError("observations must be finite")
        if not self._check_support(values):
            raise InvalidDataError(
                f"{self.family.value} observations must be {self.support}"
            )
        return ArmSummary.from_values(self.transform(values))

    def transform(self, values: np.ndarray) -> np.ndarray:
        return values

    def _check_support(self, values: np.ndarray) -> bool:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Posterior
    # ------------------------------------------------------------------

    def update(self, summary: ArmSummary, prior: Mapping[str, float]) -> dict[str, float]:
        raise NotImplementedError

    def sample(
        self,
        posterior: Mapping[str, float],
        n: int,
        rng: np.random.Generator,
    ) -> dict[str, np.ndarray]:
        raise NotImplementedError

    def marginals(self, hyperparameters: Mapping[str, float]) -> dict[str, Any]:
        """Frozen ``scipy.stats`` marginal for each parameter with a closed form.

        Works for priors and posteriors alike (they share keys), which is
        what density plots of prior vs. posterior need.  Parameters without
        a closed-form marginal are omitted.
        """
        return {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(parameters={self.parameters})"


def _is_binary(values: np.ndarray) -> bool:
    return bool(np.all((values == 0) | (values == 1)))


def _is_count(values: np.ndarray) -> bool:
    return bool(np.all(values >= 0) and np.all(values == np.floor(values)))


def _gamma(hyperparameters: Mapping[str, float]):
    return sp_stats.gamma(hyperparameters["shape"], scale=1.0 / hyperparameters["rate"])


# ======================================================================
# Families
# ======================================================================

class BernoulliBeta(ConjugateFamily):
    """Binary outcomes with a Beta prior on the success probability."""

    family = Family.BERNOULLI
    parameters = ("Probability",)
    prior_keys = ("alpha", "beta")
    positive_keys = frozenset(prior_keys)
    default_prior = {"alpha": 1.0, "beta": 1.0}
    support = "0 or 1"

    def _check_support(self, values: np.ndarray) -> bool:
        return _is_binary(values)

    def update(self, summary: ArmSummary, prior: Mapping[str, float]) -> dict[str, float]:
        successes = summary.total
        return {
            "alpha": prior["alpha"] + successes,
            "beta": prior["beta"] + (summary.count - successes),
        }

    def sample(self, posterior, n, rng):
        return {"Probability": rng.beta(posterior["alpha"], posterior["beta"], size=n)}

    def marginals(self, hyperparameters):
        return {"Probability": sp_stats.beta(hyperparameters["alpha"], hyperparameters["beta"])}


class PoissonGamma(ConjugateFamily):
    """Counts with a Gamma(shape, rate) prior on the Poisson rate."""

    family = Family.POISSON
    parameters = ("Lambda",)
    prior_keys = ("shape", "rate")
    positive_keys = frozenset(prior_keys)
    default_prior = {"shape": 1.0, "rate": 1.0}
    support = "non-negative integers"

    def _check_support(self, values: np.ndarray) -> bool:
        return _is_count(values)

    def update(self, summary, prior):
        return {
            "shape": prior["shape"] + summary.total,
            "rate": prior["rate"] + summary.count,
        }

    def sample(self, posterior, n, rng):
        return {"Lambda": rng.gamma(posterior["shape"], 1.0 / posterior["rate"], size=n)}

    def marginals(self, hyperparameters):
        return {"Lambda": _gamma(hyperparameters)}


class NormalInverseChiSquare(ConjugateFamily):
    """Normal data with unknown mean and variance.

    The prior is ``(m0, k0, s_sq0, v0)``: prior mean, pseudo-count on the
    mean, prior scale and prior degrees of freedom.  The variance is
    scaled-inverse-chi-square (an inverse-gamma with shape ``v/2`` and
    scale ``v*s_sq/2``) and the mean is Normal conditional on it.
    """

    family = Family.NORMAL
    parameters = ("Mu", "Sig_Sq")
    prior_keys = ("m0", "k0", "s_sq0", "v0")
    positive_keys = frozenset({"k0", "s_sq0", "v0"})
    default_prior = {"m0": 0.0, "k0": 0.01, "s_sq0": 1.0, "v0": 1.0}
    support = "finite real numbers"

    def _check_support(self, values: np.ndarray) -> bool:
        return True

    def update(self, summary, prior):
        n = summary.count
        m0, k0, s_sq0, v0 = prior["m0"], prior["k0"], prior["s_sq0"], prior["v0"]

        k_n = k0 + n
        m_n = (k0 * m0 + n * summary.mean) / k_n
        v_n = v0 + n
        shrinkage = (k0 * n / k_n) * (summary.mean - m0) ** 2
        s_sq_n = (v0 * s_sq0 + summary.sq_dev + shrinkage) / v_n
        return {"m0": m_n, "k0": k_n, "s_sq0": s_sq_n, "v0": v_n}

    def sample(self, posterior, n, rng):
        v_n = posterior["v0"]
        sig_sq = v_n * posterior["s_sq0"] / rng.chisquare(v_n, size=n)
        mu = rng.normal(posterior["m0"], np.sqrt(sig_sq / posterior["k0"]))
        return {"Mu": mu, "Sig_Sq": sig_sq}

    def marginals(self, hyperparameters):
        m, k, s_sq, v = (hyperparameters[key] for key in self.prior_keys)
        return {
            "Mu": sp_stats.t(df=v, loc=m, scale=math.sqrt(s_sq / k)),
            "Sig_Sq": sp_stats.invgamma(v / 2, scale=v * s_sq / 2),
        }


class LogNormalInverseChiSquare(NormalInverseChiSquare):
    """Positive data whose logarithm is Normal; samples stay on the log scale."""

    family = Family.LOGNORMAL
    support = "strictly positive real numbers"

    def _check_support(self, values: np.ndarray) -> bool:
        return bool(np.all(values > 0))

    def transform(self, values: np.ndarray) -> np.ndarray:
        return np.log(values)


class NegativeBinomialApprox(ConjugateFamily):
    """Overdispersed counts, NB(R, Probability) with mean ``R*(1-P)/P``.

    There is no joint conjugate prior, so this is an approximate update:

    1. The dispersion ``R`` gets a Gamma(shape, rate) prior.  Its update
       treats each observation as one pseudo-observation of the
       method-of-moments estimate ``r_hat = mean^2 / (var - mean)``:
       ``shape + n*r_hat``, ``rate + n``.  When the data is not
       overdispersed (or has fewer than two points) ``r_hat`` falls back to
       the prior mean ``shape/rate``.
    2. ``Probability`` gets a Beta(alpha, beta) prior updated with the exact
       known-R conjugate rule, plugging in the posterior mean of R:
       ``alpha + n*R_bar``, ``beta + sum``.

    Both are sampled independently; ``Mean`` is derived per draw.
    """

    family = Family.NEGATIVE_BINOMIAL
    parameters = ("R", "Probability", "Mean")
    prior_keys = ("shape", "rate", "alpha", "beta")
    positive_keys = frozenset(prior_keys)
    default_prior = {"shape": 1.0, "rate": 1.0, "alpha": 1.0, "beta": 1.0}
    support = "non-negative integers"

    def _check_support(self, values: np.ndarray) -> bool:
        return _is_count(values)

    def update(self, summary, prior):
        n = summary.count
        mean = summary.mean
        var = summary.variance
        r_hat = prior["shape"] / prior["rate"]
        if n > 1 and mean > 0 and var > mean:
            r_hat = mean * mean / (var - mean)

        shape_n = prior["shape"] + n * r_hat
        rate_n = prior["rate"] + n
        r_bar = shape_n / rate_n
        return {
            "shape": shape_n,
            "rate": rate_n,
            "alpha": prior["alpha"] + n * r_bar,
            "beta": prior["beta"] + summary.total,
        }

    def sample(self, posterior, n, rng):
        r = rng.gamma(posterior["shape"], 1.0 / posterior["rate"], size=n)
        p = rng.beta(posterior["alpha"], posterior["beta"], size=n)
        return {"R": r, "Probability": p, "Mean": r * (1.0 - p) / p}

    def marginals(self, hyperparameters):
        return {
            "R": _gamma(hyperparameters),
            "Probability": sp_stats.beta(hyperparameters["alpha"], hyperparameters["beta"]),
        }


class ExponentialGamma(ConjugateFamily):
    """Waiting times with a Gamma(shape, rate) prior on the exponential rate."""

    family = Family.EXPONENTIAL
    parameters = ("Lambda",)
    prior_keys = ("shape", "rate")
    positive_keys = frozenset(prior_keys)
    default_prior = {"shape": 1.0, "rate": 1.0}
    support = "non-negative real numbers"

    def _check_support(self, values: np.ndarray) -> bool:
        return bool(np.all(values >= 0))

    def update(self, summary, prior):
        return {
            "shape": prior["shape"] + summary.count,
            "rate": prior["rate"] + summary.total,
        }

    def sample(self, posterior, n, rng):
        return {"Lambda": rng.gamma(posterior["shape"], 1.0 / posterior["rate"], size=n)}

    def marginals(self, hyperparameters):
        return {"Lambda": _gamma(hyperparameters)}


class GeometricBeta(ConjugateFamily):
    """Failures before the first success, Beta prior on the success probability."""

    family = Family.GEOMETRIC
    parameters = ("Probability",)
    prior_keys = ("alpha", "beta")
    positive_keys = frozenset(prior_keys)
    default_prior = {"alpha": 1.0, "beta": 1.0}
    support = "non-negative integers"

    def _check_support(self, values: np.ndarray) -> bool:
        return _is_count(values)

    def update(self, summary, prior):
        return {
            "alpha": prior["alpha"] + summary.count,
            "beta": prior["beta"] + summary.total,
        }

    def sample(self, posterior, n, rng):
        return {"Probability": rng.beta(posterior["alpha"], posterior["beta"], size=n)}

    def marginals(self, hyperparameters):
        return {"Probability": sp_stats.beta(hyperparameters["alpha"], hyperparameters["beta"])}


# ======================================================================
# Registry
# ======================================================================

FAMILIES: dict[Family, ConjugateFamily] = {
    f.family: f
    for f in (
        BernoulliBeta(),
        PoissonGamma(),
        NormalInverseChiSquare(),
        LogNormalInverseChiSquare(),
        NegativeBinomialApprox(),
        ExponentialGamma(),
        GeometricBeta(),
    )
}


def get_family(name: Family | str) -> ConjugateFamily:
    """Resolve a family enum member or its string value.

    Raises
    ------
    ConfigurationError
        If ``name`` is not a supported family.
    """
    try:
        return FAMILIES[Family(name)]
    except ValueError:
        supported = ", ".join(f.value for f in Family)
        raise ConfigurationError(
            f"unknown distribution family {name!r}; expected one of: {supported}"
        ) from None
