"""Tests for the HTTP surface.

Uses FastAPI's in-process TestClient; no server needs to be running.
"""

import pytest
from fastapi.testclient import TestClient

from bayesab.core.config import settings
from bayesab.main import app

URL = f"{settings.API_V1_PREFIX}/comparisons"


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "ok"
        assert "bernoulli" in body["families"]


class TestComparisons:
    """POST /comparisons fits and summarises in one call."""

    def test_bernoulli_comparison(self, client):
        data_a = [1] * 30 + [0] * 70
        data_b = [1] * 10 + [0] * 90
        resp = client.post(
            URL,
            json={
                "family": "bernoulli",
                "data_a": data_a,
                "data_b": data_b,
                "priors": {"alpha": 1, "beta": 1},
                "n_samples": 20_000,
                "seed": 7,
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["family"] == "bernoulli"
        assert body["parameter"] == "Probability"
        assert body["parameters"] == ["Probability"]
        assert body["n_samples"] == 20_000
        assert body["arm_a"]["posterior"] == {"alpha": 31.0, "beta": 71.0}
        assert body["arm_b"]["count"] == 100
        assert body["probability_a_beats_b"] > 0.99
        assert body["interval_a"]["lower"] < body["interval_a"]["upper"]
        assert body["interval_a"]["degenerate"] is False
        assert body["expected_loss_a"] < body["expected_loss_b"]

    def test_selected_parameter_and_mass(self, client):
        resp = client.post(
            URL,
            json={
                "family": "normal",
                "data_a": [1.0, 2.0, 3.0, 4.0],
                "data_b": [2.0, 3.0, 4.0, 5.0],
                "n_samples": 2_000,
                "seed": 1,
                "parameter": "Sig_Sq",
                "credible_mass": 0.8,
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["parameter"] == "Sig_Sq"
        assert body["interval_b"]["mass"] == 0.8

    def test_single_sample_is_degenerate(self, client):
        resp = client.post(
            URL,
            json={"family": "poisson", "data_a": [1, 2], "data_b": [3], "n_samples": 1, "seed": 0},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["interval_a"]["degenerate"] is True
        assert body["interval_a"]["lower"] == body["interval_a"]["upper"]

    def test_support_mismatch_is_422(self, client):
        resp = client.post(URL, json={"family": "bernoulli", "data_a": [0, 2], "data_b": [1]})
        assert resp.status_code == 422
        assert "0 or 1" in resp.json()["detail"]

    def test_missing_prior_key_is_422(self, client):
        resp = client.post(
            URL,
            json={"family": "poisson", "data_a": [1], "data_b": [2], "priors": {"shape": 1}},
        )
        assert resp.status_code == 422
        assert "rate" in resp.json()["detail"]

    def test_unknown_parameter_is_422(self, client):
        resp = client.post(
            URL,
            json={"family": "poisson", "data_a": [1], "data_b": [2], "n_samples": 10, "parameter": "Mu"},
        )
        assert resp.status_code == 422

    def test_unknown_family_rejected(self, client):
        resp = client.post(URL, json={"family": "weibull", "data_a": [1], "data_b": [2]})
        assert resp.status_code == 422

    def test_n_samples_capped(self, client):
        resp = client.post(
            URL,
            json={
                "family": "poisson",
                "data_a": [1],
                "data_b": [2],
                "n_samples": settings.MAX_N_SAMPLES + 1,
            },
        )
        assert resp.status_code == 422

    def test_negative_seed_is_422(self, client):
        resp = client.post(
            URL,
            json={"family": "bernoulli", "data_a": [1, 0], "data_b": [0, 1], "n_samples": 10, "seed": -1},
        )
        assert resp.status_code == 422
