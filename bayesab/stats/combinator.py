"""Combine two results into a new one by an elementwise function.

``combine`` pairs draws by index, A with A and B with B: both operands are
treated as drawn at the same Monte Carlo iteration.  Its output is a
``Combined`` result, itself a valid input to the estimator and to further
``combine`` calls.
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

import numpy as np

from bayesab.core.errors import ConfigurationError, SampleSizeMismatchError
from bayesab.stats.results import Combined, TestResult

logger = logging.getLogger(__name__)


def _apply(
    f: Callable[..., object],
    x: np.ndarray,
    y: np.ndarray,
    vectorized: bool,
) -> np.ndarray:
    fn = f if vectorized else np.vectorize(f, otypes=[float])
    out = np.asarray(fn(x, y), dtype=float)
    if out.shape != x.shape:
        raise ConfigurationError(
            f"combining function returned shape {out.shape}, expected {x.shape}; "
            "pass vectorized=False for scalar functions"
        )
    return out


def combine(
    result_x: TestResult,
    result_y: TestResult,
    f: Callable[..., object],
    param_names: Sequence[str] = ("Probability", "Probability"),
    output_name: str = "Parameter",
    vectorized: bool = True,
) -> Combined:
    """Apply ``f(x, y)`` to the selected parameters of two results, per arm.

    Parameters
    ----------
    result_x, result_y : TestResult
        Operands; either may itself be a combined result.
    f : callable
        Binary function.  Called as ``f(x_samples, y_samples)`` on whole
        arrays when ``vectorized`` is true, otherwise once per element.
        Argument order is preserved.
    param_names : (str, str)
        Parameter taken from ``result_x`` and from ``result_y``.
    output_name : str
        Name of the single parameter in the output.
    vectorized : bool
        Whether ``f`` accepts and returns numpy arrays.

    Returns
    -------
    Combined

    Raises
    ------
    SampleSizeMismatchError
        If the two results have different ``n_samples``.
    ConfigurationError
        If a selected name is missing or ``f`` returns the wrong shape.
    """
    if len(param_names) != 2:
        raise ConfigurationError("param_names must name exactly two parameters")
    name_x, name_y = param_names
    if result_x.n_samples != result_y.n_samples:
        raise SampleSizeMismatchError(
            f"cannot combine results with {result_x.n_samples} and "
            f"{result_y.n_samples} samples"
        )
    x_a, x_b = result_x.arm(name_x)
    y_a, y_b = result_y.arm(name_y)

    combined = Combined(
        {output_name: _apply(f, x_a, y_a, vectorized)},
        {output_name: _apply(f, x_b, y_b, vectorized)},
        parent_ids=(result_x.id, result_y.id),
        function=f,
        param_names=(name_x, name_y),
        output_name=output_name,
    )
    logger.debug(
        "Combined %s(%s, %s) -> %s over %d samples",
        getattr(f, "__name__", "f"),
        name_x,
        name_y,
        output_name,
        combined.n_samples,
    )
    return combined


def _first(x: np.ndarray, _: np.ndarray) -> np.ndarray:
    return x


def grab(result: TestResult, param: str) -> Combined:
    """Return a result that keeps only ``param`` from ``result``."""
    return rename(result, param, param)


def rename(result: TestResult, old: str, new: str) -> Combined:
    """Return a single-parameter result with ``old`` renamed to ``new``."""
    return combine(result, result, _first, param_names=(old, old), output_name=new)
