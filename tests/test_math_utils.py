import math
import pytest
import numpy as np
from botrate.utils.math_utils import (
    expected_score,
    expected_score_vector,
    g_scalar,
    g_vector,
    to_external_deviation,
    to_external_rating,
    to_internal_deviation,
    to_internal_rating,
)


def test_round_trip():
    for value in np.linspace(0.0, 4000.0, num=401):
        assert to_external_rating(to_internal_rating(value)) == pytest.approx(value, abs=1e-9)
        assert to_external_deviation(to_internal_deviation(value)) == pytest.approx(value, abs=1e-9)


def test_scale():
    assert to_internal_rating(1500.0) == 0.0
    assert to_internal_rating(1400.0) == pytest.approx(-0.5756, abs=1e-4)
    assert to_internal_deviation(350.0) == pytest.approx(2.0148, abs=1e-4)


def test_g_is_decreasing():
    phis = np.linspace(0.0, 2.0, num=50)
    gs = g_vector(phis)
    assert gs[0] == 1.0
    assert np.all(np.diff(gs) < 0.0)
    # values from the paper's worked example
    assert g_scalar(0.1727) == pytest.approx(0.9955, abs=1e-4)
    assert g_scalar(1.7269) == pytest.approx(0.7242, abs=1e-4)


def test_expected_score():
    assert expected_score(0.0, 0.0, 0.5) == 0.5
    assert expected_score(0.0, -0.5756, 0.9955) == pytest.approx(0.639, abs=1e-3)
    assert expected_score(5.0, -5.0, 1.0) + expected_score(-5.0, 5.0, 1.0) == pytest.approx(1.0)
    probs = expected_score_vector(0.0, np.array([-0.5756, 0.2878, 1.1513]), np.array([0.9955, 0.9531, 0.7242]))
    np.testing.assert_allclose(probs, [0.639, 0.432, 0.303], atol=1e-3)
    assert math.isfinite(expected_score(5.0, -5.0, g_scalar(2.0)))
