"""Immutable test results: the unit that estimation and combination work on.

A result is either a ``DirectFit`` (produced by the fitter from data and
priors) or a ``Combined`` result (produced by the combinator from two
parents).  Both share the same read-only sample payload, so every consumer
can treat them uniformly through the ``TestResult`` base class.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Mapping

import numpy as np

from bayesab.core.errors import ConfigurationError, SampleSizeError
from bayesab.stats.distributions import ArmSummary, Family

SampleSet = Mapping[str, np.ndarray]


def freeze_samples(samples: Mapping[str, np.ndarray]) -> SampleSet:
    """Copy a sample mapping into read-only float64 arrays behind a read-only mapping."""
    frozen = {}
    for name, values in samples.items():
        arr = np.array(values, dtype=float).ravel()
        arr.flags.writeable = False
        frozen[name] = arr
    return MappingProxyType(frozen)


@dataclass(frozen=True, eq=False)
class TestResult:
    """Posterior sample sets for arm A and arm B.

    Attributes
    ----------
    samples_a, samples_b : Mapping[str, np.ndarray]
        Parameter name -> i.i.d. posterior draws.  Both arms carry the same
        parameter names and every vector has length ``n_samples``.
    id : uuid.UUID
        Identifier recorded in the provenance of combined results.
    """

    __test__ = False  # not a pytest test class

    samples_a: SampleSet
    samples_b: SampleSet
    id: uuid.UUID = field(default_factory=uuid.uuid4, kw_only=True)

    def __post_init__(self) -> None:
        object.__setattr__(self, "samples_a", freeze_samples(self.samples_a))
        object.__setattr__(self, "samples_b", freeze_samples(self.samples_b))

        if set(self.samples_a) != set(self.samples_b):
            raise ConfigurationError("arm A and arm B must carry the same parameters")
        if not self.samples_a:
            raise ConfigurationError("a result needs at least one parameter")
        lengths = {v.size for v in self.samples_a.values()} | {
            v.size for v in self.samples_b.values()
        }
        if len(lengths) != 1:
            raise SampleSizeError("all sample vectors of a result must have the same length")
        if lengths.pop() < 1:
            raise SampleSizeError("sample vectors must be non-empty")

    @property
    def n_samples(self) -> int:
        return next(iter(self.samples_a.values())).size

    @property
    def parameters(self) -> tuple[str, ...]:
        return tuple(self.samples_a)

    def arm(self, param: str) -> tuple[np.ndarray, np.ndarray]:
        """Return ``(samples_a[param], samples_b[param])``.

        Raises
        ------
        ConfigurationError
            If ``param`` is not one of this result's parameters.
        """
        if param not in self.samples_a:
            raise ConfigurationError(
                f"unknown parameter {param!r}; available: {', '.join(self.parameters)}"
            )
        return self.samples_a[param], self.samples_b[param]


@dataclass(frozen=True, eq=False)
class DirectFit(TestResult):
    """Result of fitting one family's posterior to observed data for both arms."""

    family: Family = field(kw_only=True)
    priors: Mapping[str, float] = field(kw_only=True)
    summary_a: ArmSummary = field(kw_only=True)
    summary_b: ArmSummary = field(kw_only=True)
    posterior_a: Mapping[str, float] = field(kw_only=True)
    posterior_b: Mapping[str, float] = field(kw_only=True)

    def __post_init__(self) -> None:
        super().__post_init__()
        for name in ("priors", "posterior_a", "posterior_b"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    def __repr__(self) -> str:
        return (
            f"DirectFit(family={self.family.value}, parameters={self.parameters}, "
            f"n_samples={self.n_samples})"
        )


@dataclass(frozen=True, eq=False)
class Combined(TestResult):
    """Synthetic result built from two parents by an elementwise function.

    There is no prior or observed-data summary; provenance records where the
    samples came from instead.
    """

    parent_ids: tuple[uuid.UUID, uuid.UUID] = field(kw_only=True)
    function: Callable[..., object] = field(kw_only=True)
    param_names: tuple[str, str] = field(kw_only=True)
    output_name: str = field(kw_only=True)

    def __repr__(self) -> str:
        fn = getattr(self.function, "__name__", repr(self.function))
        return (
            f"Combined(output_name={self.output_name!r}, function={fn}, "
            f"param_names={self.param_names}, n_samples={self.n_samples})"
        )
