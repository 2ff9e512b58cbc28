"""Bayesian A/B comparisons with conjugate priors and composable results."""

from bayesab.core.errors import (
    BayesABError,
    ConfigurationError,
    DegenerateSampleWarning,
    InvalidDataError,
    SampleSizeError,
    SampleSizeMismatchError,
)
from bayesab.stats import (
    Combined,
    DirectFit,
    Family,
    TestResult,
    combine,
    fit,
    summarize,
)

__all__ = [
    "BayesABError",
    "ConfigurationError",
    "DegenerateSampleWarning",
    "InvalidDataError",
    "SampleSizeError",
    "SampleSizeMismatchError",
    "Combined",
    "DirectFit",
    "Family",
    "TestResult",
    "combine",
    "fit",
    "summarize",
]
