"""Tests for combining results.

Tests cover:
- The Poisson x Bernoulli "Expectation" scenario (elementwise products)
- Sample-size mismatch and unknown parameter selection
- Identity-on-first-argument reproduces the original quantiles
- Closure: combined results feed further combine calls and the estimator
- Argument order, scalar functions, bad output shapes
- Provenance, grab() and rename()
"""

import numpy as np
import pytest

from bayesab.core.errors import (
    ConfigurationError,
    SampleSizeError,
    SampleSizeMismatchError,
)
from bayesab.stats.combinator import combine, grab, rename
from bayesab.stats.estimator import credible_interval, probability_a_beats_b, summarize
from bayesab.stats.fitter import fit
from bayesab.stats.results import Combined

N_SAMPLES = 20_000


@pytest.fixture(scope="module")
def poisson_result():
    rng = np.random.default_rng(65)
    return fit(
        rng.poisson(6.5, size=250),
        rng.poisson(5.5, size=250),
        "poisson",
        {"shape": 30, "rate": 5},
        n_samples=N_SAMPLES,
        seed=65,
    )


@pytest.fixture(scope="module")
def bernoulli_result():
    rng = np.random.default_rng(25)
    return fit(
        rng.binomial(1, 0.25, size=250),
        rng.binomial(1, 0.2, size=250),
        "bernoulli",
        {"alpha": 1, "beta": 1},
        n_samples=N_SAMPLES,
        seed=25,
    )


# ======================================================================
# Combine
# ======================================================================


class TestCombine:
    """Test combine() output."""

    def test_expectation_is_elementwise_product(self, bernoulli_result, poisson_result):
        expectation = combine(
            bernoulli_result,
            poisson_result,
            np.multiply,
            param_names=("Probability", "Lambda"),
            output_name="Expectation",
        )
        assert isinstance(expectation, Combined)
        assert expectation.parameters == ("Expectation",)
        assert expectation.n_samples == N_SAMPLES
        assert expectation.samples_a["Expectation"].size == N_SAMPLES
        assert expectation.samples_b["Expectation"].size == N_SAMPLES

        for i in (0, 1, 137, 9_999, N_SAMPLES - 1):
            assert expectation.samples_a["Expectation"][i] == pytest.approx(
                bernoulli_result.samples_a["Probability"][i]
                * poisson_result.samples_a["Lambda"][i]
            )
            assert expectation.samples_b["Expectation"][i] == pytest.approx(
                bernoulli_result.samples_b["Probability"][i]
                * poisson_result.samples_b["Lambda"][i]
            )

    def test_mismatched_sample_sizes(self, bernoulli_result):
        other = fit([1, 0], [0, 1], "bernoulli", n_samples=N_SAMPLES - 1, seed=1)
        with pytest.raises(SampleSizeMismatchError):
            combine(bernoulli_result, other, np.add, ("Probability", "Probability"))

    def test_mismatch_is_a_sample_size_error(self, bernoulli_result):
        other = fit([1, 0], [0, 1], "bernoulli", n_samples=10, seed=1)
        with pytest.raises(SampleSizeError):
            combine(bernoulli_result, other, np.add, ("Probability", "Probability"))

    def test_unknown_parameter(self, bernoulli_result, poisson_result):
        with pytest.raises(ConfigurationError, match="unknown parameter"):
            combine(bernoulli_result, poisson_result, np.add, ("Probability", "Mu"))

    def test_param_names_must_be_a_pair(self, bernoulli_result):
        with pytest.raises(ConfigurationError):
            combine(bernoulli_result, bernoulli_result, np.add, ("Probability",))

    def test_argument_order_preserved(self, bernoulli_result, poisson_result):
        diff = combine(
            poisson_result, bernoulli_result, np.subtract, ("Lambda", "Probability"), "Diff"
        )
        expected = poisson_result.samples_a["Lambda"] - bernoulli_result.samples_a["Probability"]
        np.testing.assert_allclose(diff.samples_a["Diff"], expected)

    def test_scalar_function(self, bernoulli_result, poisson_result):
        out = combine(
            bernoulli_result,
            poisson_result,
            lambda p, lam: max(p, lam / 100),
            ("Probability", "Lambda"),
            "Max",
            vectorized=False,
        )
        expected = np.maximum(
            bernoulli_result.samples_b["Probability"], poisson_result.samples_b["Lambda"] / 100
        )
        np.testing.assert_allclose(out.samples_b["Max"], expected)

    def test_wrong_output_shape(self, bernoulli_result):
        with pytest.raises(ConfigurationError, match="vectorized=False"):
            combine(
                bernoulli_result,
                bernoulli_result,
                lambda x, y: 1.0,
                ("Probability", "Probability"),
            )

    def test_provenance(self, bernoulli_result, poisson_result):
        out = combine(
            bernoulli_result, poisson_result, np.multiply, ("Probability", "Lambda"), "Expectation"
        )
        assert out.parent_ids == (bernoulli_result.id, poisson_result.id)
        assert out.function is np.multiply
        assert out.param_names == ("Probability", "Lambda")
        assert out.output_name == "Expectation"
        assert not hasattr(out, "priors")
        assert out.id not in out.parent_ids

    def test_output_is_read_only(self, bernoulli_result):
        out = grab(bernoulli_result, "Probability")
        with pytest.raises(ValueError):
            out.samples_a["Probability"][0] = 1.0


# ======================================================================
# Algebra
# ======================================================================


class TestAlgebra:
    """Combined results stay inside the TestResult algebra."""

    def test_identity_on_first_argument(self, poisson_result):
        same = combine(
            poisson_result, poisson_result, lambda x, y: x, ("Lambda", "Lambda"), "Lambda"
        )
        for q in (0.025, 0.5, 0.975):
            assert np.quantile(same.samples_a["Lambda"], q) == pytest.approx(
                np.quantile(poisson_result.samples_a["Lambda"], q)
            )
        assert probability_a_beats_b(same, "Lambda") == pytest.approx(
            probability_a_beats_b(poisson_result, "Lambda")
        )

    def test_combined_results_combine_again(self, bernoulli_result, poisson_result):
        expectation = combine(
            bernoulli_result, poisson_result, np.multiply, ("Probability", "Lambda"), "Expectation"
        )
        doubled = combine(
            expectation, expectation, np.add, ("Expectation", "Expectation"), "Doubled"
        )
        scaled = combine(
            doubled, poisson_result, np.divide, ("Doubled", "Lambda"), "Scaled"
        )
        assert scaled.n_samples == N_SAMPLES
        assert scaled.samples_a["Scaled"].size == scaled.samples_b["Scaled"].size == N_SAMPLES
        np.testing.assert_allclose(
            scaled.samples_a["Scaled"], 2 * bernoulli_result.samples_a["Probability"]
        )
        assert scaled.parent_ids == (doubled.id, poisson_result.id)

    def test_estimator_accepts_combined(self, bernoulli_result, poisson_result):
        expectation = combine(
            bernoulli_result, poisson_result, np.multiply, ("Probability", "Lambda"), "Expectation"
        )
        summary = summarize(expectation)
        assert summary.parameter == "Expectation"
        assert 0.0 <= summary.probability_a_beats_b <= 1.0
        assert not credible_interval(expectation.samples_a["Expectation"]).degenerate


# ======================================================================
# grab / rename
# ======================================================================


class TestGrabRename:
    """Test the single-parameter helpers."""

    def test_grab_keeps_one_parameter(self):
        result = fit([1.0, 2.0, 3.0], [2.0, 3.0, 4.0], "normal", n_samples=500, seed=2)
        mu = grab(result, "Mu")
        assert mu.parameters == ("Mu",)
        np.testing.assert_array_equal(mu.samples_a["Mu"], result.samples_a["Mu"])
        np.testing.assert_array_equal(mu.samples_b["Mu"], result.samples_b["Mu"])

    def test_rename(self, poisson_result):
        renamed = rename(poisson_result, "Lambda", "Rate")
        assert renamed.parameters == ("Rate",)
        assert renamed.output_name == "Rate"
        np.testing.assert_array_equal(renamed.samples_a["Rate"], poisson_result.samples_a["Lambda"])

    def test_grab_unknown_parameter(self, poisson_result):
        with pytest.raises(ConfigurationError):
            grab(poisson_result, "Probability")
