"""Comparisons router — fits a two-arm comparison and returns its summary.

Stateless: every request fits from scratch and nothing is stored.  Library
validation errors are mapped to HTTP 422.
"""

import logging
import math

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from bayesab.core.config import settings
from bayesab.core.errors import BayesABError
from bayesab.stats.distributions import ArmSummary, Family
from bayesab.stats.estimator import CredibleInterval, summarize
from bayesab.stats.fitter import fit

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comparisons"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ComparisonRequest(BaseModel):
    family: Family
    data_a: list[float]
    data_b: list[float]
    priors: dict[str, float] | None = None
    n_samples: int | None = Field(default=None, ge=1, le=settings.MAX_N_SAMPLES)
    seed: int | None = Field(default=None, ge=0)
    parameter: str | None = None
    credible_mass: float | None = Field(default=None, gt=0, lt=1)
    lift_threshold: float = 0.0


class Interval(BaseModel):
    lower: float | None
    upper: float | None
    mass: float
    degenerate: bool


class ArmResult(BaseModel):
    count: int
    total: float
    mean: float
    sq_dev: float
    posterior: dict[str, float]


class ComparisonResults(BaseModel):
    family: Family
    parameter: str
    parameters: list[str]
    n_samples: int
    arm_a: ArmResult
    arm_b: ArmResult
    probability_a_beats_b: float
    probability_b_beats_a: float
    interval_a: Interval
    interval_b: Interval
    lift_interval: Interval
    lift_threshold: float
    probability_lift_above: float | None = None
    expected_loss_a: float
    expected_loss_b: float
    lift_excluded: int


def _finite(value: float) -> float | None:
    return value if math.isfinite(value) else None


def _interval(ci: CredibleInterval) -> Interval:
    return Interval(
        lower=_finite(ci.lower),
        upper=_finite(ci.upper),
        mass=ci.mass,
        degenerate=ci.degenerate,
    )


def _arm(summary: ArmSummary, posterior) -> ArmResult:
    return ArmResult(
        count=summary.count,
        total=summary.total,
        mean=summary.mean,
        sq_dev=summary.sq_dev,
        posterior=dict(posterior),
    )


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------


@router.post("/comparisons", response_model=ComparisonResults)
def create_comparison(body: ComparisonRequest) -> ComparisonResults:
    """Fit both arms and summarise one parameter.

    Returns P(A > B), per-arm credible intervals, the lift interval,
    P(lift > lift_threshold), expected loss per arm, and the per-arm
    sufficient statistics and posterior hyperparameters.
    """
    try:
        result = fit(
            body.data_a,
            body.data_b,
            body.family,
            priors=body.priors,
            n_samples=body.n_samples,
            seed=body.seed,
        )
        summary = summarize(
            result,
            body.parameter,
            credible_mass=body.credible_mass,
            lift_threshold=body.lift_threshold,
        )
    except BayesABError as exc:
        logger.warning("Rejected %s comparison: %s", body.family.value, exc)
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return ComparisonResults(
        family=result.family,
        parameter=summary.parameter,
        parameters=list(result.parameters),
        n_samples=summary.n_samples,
        arm_a=_arm(result.summary_a, result.posterior_a),
        arm_b=_arm(result.summary_b, result.posterior_b),
        probability_a_beats_b=summary.probability_a_beats_b,
        probability_b_beats_a=summary.probability_b_beats_a,
        interval_a=_interval(summary.interval_a),
        interval_b=_interval(summary.interval_b),
        lift_interval=_interval(summary.lift_interval),
        lift_threshold=summary.lift_threshold,
        probability_lift_above=_finite(summary.probability_lift_above),
        expected_loss_a=summary.expected_loss_a,
        expected_loss_b=summary.expected_loss_b,
        lift_excluded=summary.lift_excluded,
    )
