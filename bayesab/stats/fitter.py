"""Posterior fitter: raw observations for both arms -> ``DirectFit``.

All validation runs before any sampling.  Each arm draws from its own child
stream spawned from a single ``SeedSequence``, so a fit is reproducible from
its seed and the two arms never share random state.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Mapping

import numpy as np

from bayesab.core.config import settings
from bayesab.core.errors import ConfigurationError, SampleSizeError
from bayesab.stats.distributions import Family, get_family
from bayesab.stats.results import DirectFit

logger = logging.getLogger(__name__)

Seed = int | np.random.SeedSequence | None


def arm_generators(seed: Seed = None) -> tuple[np.random.Generator, np.random.Generator]:
    """Return two statistically independent generators, one per arm.

    Parameters
    ----------
    seed : int | SeedSequence | None
        Root entropy for the fit.  ``None`` draws fresh OS entropy.

    Raises
    ------
    ConfigurationError
        If ``seed`` is a negative or non-integer value.
    """
    if seed is not None and not isinstance(seed, np.random.SeedSequence):
        if isinstance(seed, bool) or not isinstance(seed, numbers.Integral) or seed < 0:
            raise ConfigurationError(f"seed must be a non-negative integer, got {seed!r}")
    root = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    stream_a, stream_b = root.spawn(2)
    return np.random.default_rng(stream_a), np.random.default_rng(stream_b)


def validate_n_samples(n_samples: Any) -> int:
    """Raise ``SampleSizeError`` unless ``n_samples`` is a positive integer."""
    if isinstance(n_samples, bool) or not isinstance(n_samples, numbers.Integral):
        if isinstance(n_samples, float) and n_samples.is_integer():
            n_samples = int(n_samples)
        else:
            raise SampleSizeError(f"n_samples must be an integer, got {n_samples!r}")
    if n_samples < 1:
        raise SampleSizeError(f"n_samples must be at least 1, got {n_samples}")
    return int(n_samples)


def fit(
    data_a: Any,
    data_b: Any,
    family: Family | str,
    priors: Mapping[str, float] | None = None,
    n_samples: int | None = None,
    seed: Seed = None,
) -> DirectFit:
    """Fit conjugate posteriors for arm A and arm B and sample from them.

    Parameters
    ----------
    data_a, data_b : array-like
        Observations for each arm; must be non-empty and inside the family's
        support (e.g. 0/1 for Bernoulli, non-negative integers for counts).
    family : Family | str
        Distribution family, e.g. ``"bernoulli"``.
    priors : Mapping[str, float] | None
        Prior hyperparameters keyed by the family's ``prior_keys``.  ``None``
        uses the family's weakly informative default.
    n_samples : int | None
        Posterior draws per arm; defaults to ``settings.DEFAULT_N_SAMPLES``.
    seed : int | SeedSequence | None
        Root seed; the arms receive independent child streams.

    Returns
    -------
    DirectFit

    Raises
    ------
    ConfigurationError
        Unknown family or bad priors.
    SampleSizeError
        ``n_samples`` is not a positive integer.
    InvalidDataError
        Empty data or data outside the family's support.
    """
    conjugate = get_family(family)
    prior = conjugate.validate_prior(priors)
    n = validate_n_samples(settings.DEFAULT_N_SAMPLES if n_samples is None else n_samples)
    summary_a = conjugate.summarize(data_a)
    summary_b = conjugate.summarize(data_b)

    posterior_a = conjugate.update(summary_a, prior)
    posterior_b = conjugate.update(summary_b, prior)

    rng_a, rng_b = arm_generators(seed)
    samples_a = conjugate.sample(posterior_a, n, rng_a)
    samples_b = conjugate.sample(posterior_b, n, rng_b)

    logger.debug(
        "Fitted %s posteriors (n_a=%d, n_b=%d, n_samples=%d)",
        conjugate.family.value,
        summary_a.count,
        summary_b.count,
        n,
    )
    return DirectFit(
        samples_a,
        samples_b,
        family=conjugate.family,
        priors=prior,
        summary_a=summary_a,
        summary_b=summary_b,
        posterior_a=posterior_a,
        posterior_b=posterior_b,
    )
