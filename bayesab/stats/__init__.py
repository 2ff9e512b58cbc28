"""bayesab statistics engine.

Public API:
- fit: Conjugate posterior fitting for arm A and arm B
- Family / get_family: Registry of supported distribution families
- DirectFit / Combined: Immutable test results
- probability_a_beats_b, lift_samples, credible_interval, expected_loss,
  summarize: Monte Carlo estimates over a result
- combine / grab / rename: Algebra over test results
"""

from bayesab.stats.combinator import combine, grab, rename
from bayesab.stats.distributions import ArmSummary, Family, get_family
from bayesab.stats.estimator import (
    CredibleInterval,
    LiftDistribution,
    Summary,
    credible_interval,
    expected_loss,
    hdi_from_samples,
    lift_probability,
    lift_samples,
    probability_a_beats_b,
    probability_b_beats_a,
    summarize,
)
from bayesab.stats.fitter import fit
from bayesab.stats.results import Combined, DirectFit, TestResult

__all__ = [
    "fit",
    "Family",
    "get_family",
    "ArmSummary",
    "TestResult",
    "DirectFit",
    "Combined",
    "CredibleInterval",
    "LiftDistribution",
    "Summary",
    "probability_a_beats_b",
    "probability_b_beats_a",
    "lift_samples",
    "lift_probability",
    "credible_interval",
    "hdi_from_samples",
    "expected_loss",
    "summarize",
    "combine",
    "grab",
    "rename",
]
