"""Exception taxonomy for the bayesab engine.

Every fatal error is raised while validating inputs, before any posterior
sampling or estimation work starts, so callers never receive a partial
result.  ``DegenerateSampleWarning`` is the exception to the rule: it is
attached to estimator output as a flag and never raised.
"""


class BayesABError(Exception):
    """Base class for all bayesab errors."""


class ConfigurationError(BayesABError, ValueError):
    """Unknown family, bad or missing prior keys, or an unusable parameter selection."""


class InvalidDataError(BayesABError, ValueError):
    """Observations are empty or fall outside the family's support."""


class SampleSizeError(BayesABError, ValueError):
    """A requested sample count is not a positive integer."""


class SampleSizeMismatchError(SampleSizeError):
    """Two results with different ``n_samples`` were combined."""


class DegenerateSampleWarning(UserWarning):
    """A sample vector is constant or too short for a meaningful interval.

    Instances are returned alongside a best-effort estimate rather than
    raised, since a constant posterior is a valid (if uninteresting) outcome.
    """
