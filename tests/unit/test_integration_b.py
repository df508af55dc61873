"""
Unit tests for rvcollapse.association.integration.

Tests cover:
- fintegrand: window cutoff, finite for extreme alpha
- obtain_b: value at alpha = 0 against an independent grid integral,
  symmetry, monotone decay, non-negativity, saturated alpha
- non-convergence path: warning logged, best estimate returned
"""

from __future__ import annotations

import logging

import numpy as np
import pytest
import scipy.integrate
from scipy.special import expit
from scipy.stats import norm

from rvcollapse.association import integration
from rvcollapse.association.integration import INTEGRATION_WINDOW, fintegrand, obtain_b


def _grid_b(alpha: float) -> float:
    """Reference value from a dense trapezoid rule."""
    x = np.linspace(-40.0, 40.0, 400001)
    t = alpha + x
    y = norm.pdf(x) * expit(t) * expit(-t)
    return float(scipy.integrate.trapezoid(y, x))


# ---------------------------------------------------------------------------
# fintegrand
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestIntegrand:
    """Integrand phi(x) * logistic'(alpha + x)."""

    def test_peak_value(self) -> None:
        """At x = 0, alpha = 0: phi(0) * 0.25."""
        assert fintegrand(0.0, 0.0) == pytest.approx(0.25 / np.sqrt(2 * np.pi))

    def test_zero_outside_window(self) -> None:
        """Exactly zero beyond the integration window."""
        assert fintegrand(INTEGRATION_WINDOW + 1.0, 0.0) == 0.0
        assert fintegrand(-INTEGRATION_WINDOW - 1.0, 0.0) == 0.0

    @pytest.mark.parametrize("alpha", [-1000.0, 1000.0])
    def test_extreme_alpha_finite(self, alpha: float) -> None:
        """No overflow for large |alpha + x|."""
        value = fintegrand(0.5, alpha)
        assert np.isfinite(value)
        assert value >= 0.0


# ---------------------------------------------------------------------------
# obtain_b
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestObtainB:
    """Bias-correction constant b(alpha)."""

    def test_b_at_zero(self) -> None:
        """b(0) matches an independent grid integral (about 0.2066)."""
        b, converged = obtain_b(0.0)
        assert converged
        assert b == pytest.approx(_grid_b(0.0), rel=1e-6)
        assert 0.20 < b < 0.21

    @pytest.mark.parametrize("alpha", [np.log(0.5), np.log(1.0 / 9.0), 2.5])
    def test_matches_grid(self, alpha: float) -> None:
        """Agreement with the grid integral away from zero."""
        b, _ = obtain_b(alpha)
        assert b == pytest.approx(_grid_b(alpha), rel=1e-6)

    @pytest.mark.parametrize("alpha", [0.3, 1.0, 4.0])
    def test_symmetric(self, alpha: float) -> None:
        """b(-alpha) == b(alpha)."""
        assert obtain_b(alpha)[0] == pytest.approx(obtain_b(-alpha)[0], rel=1e-8)

    def test_monotone_decay(self) -> None:
        """b decreases as |alpha| grows."""
        values = [obtain_b(a)[0] for a in (0.0, 0.5, 1.0, 2.0, 5.0, 10.0)]
        assert all(earlier > later for earlier, later in zip(values, values[1:]))

    def test_bounded_by_logistic_peak(self) -> None:
        """b never exceeds the logistic derivative's maximum of 0.25."""
        for alpha in (-3.0, 0.0, 0.1, 3.0):
            b, _ = obtain_b(alpha)
            assert 0.0 <= b <= 0.25

    def test_saturated_alpha(self) -> None:
        """At alpha = 500 the constant is negligible but not negative."""
        b, _ = obtain_b(500.0)
        assert 0.0 <= b < 1e-12

    def test_non_convergence_logged(self, monkeypatch, caplog) -> None:
        """A QUADPACK message yields converged=False and a warning."""

        def fake_quad(*args, **kwargs):
            message = "The maximum number of subdivisions (1000) has been achieved."
            return (0.123, 1e-3, {"neval": 21}, message)

        monkeypatch.setattr(integration.scipy.integrate, "quad", fake_quad)
        with caplog.at_level(logging.WARNING, logger="rvcollapse"):
            b, converged = obtain_b(1.0)

        assert not converged
        assert b == 0.123
        assert "Calculation of b may be inaccurate" in caplog.text

    def test_negative_estimate_clamped(self, monkeypatch) -> None:
        """Round-off below zero is reported as 0.0."""

        def fake_quad(*args, **kwargs):
            return (-1e-300, 1e-310, {"neval": 15})

        monkeypatch.setattr(integration.scipy.integrate, "quad", fake_quad)
        b, converged = obtain_b(700.0)
        assert converged
        assert b == 0.0
