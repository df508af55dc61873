# File: rvcollapse/association/integration.py
# Location: rvcollapse/rvcollapse/association/integration.py
"""
Numerical integration of the logistic bias-correction constant.

For a log-odds parameter ``alpha`` the constant is

    b(alpha) = integral of phi(x) * logistic'(alpha + x) dx

over the real line, where ``phi`` is the standard normal density and
``logistic'(t) = e^t / (1 + e^t)^2``. It is evaluated with adaptive
quadrature (``scipy.integrate.quad``, QUADPACK QAGI on the infinite
interval).

The integrand is set to exactly 0 outside ``|x| <= 500``: the Gaussian factor
underflows there anyway. ``logistic'`` is computed as
``expit(t) * expit(-t)``, which stays finite for any ``t``.

Properties: ``b(0) ~= 0.2066`` (the logistic derivative peaks at 0.25 and is
smoothed by the unit Gaussian), ``b(-alpha) == b(alpha)``, and ``b`` decreases
monotonically towards 0 as ``|alpha|`` grows.
"""

from __future__ import annotations

import logging
import math

import scipy.integrate
from scipy.special import expit

logger = logging.getLogger("rvcollapse")

INTEGRATION_WINDOW: float = 500.0

_INV_SQRT_2PI: float = 1.0 / math.sqrt(2.0 * math.pi)


def fintegrand(x: float, alpha: float) -> float:
    """
    Integrand ``phi(x) * logistic'(alpha + x)``, zero outside the window.

    Parameters
    ----------
    x : float
        Integration variable.
    alpha : float
        Log-odds parameter.

    Returns
    -------
    float
        Non-negative integrand value.
    """
    if x > INTEGRATION_WINDOW or x < -INTEGRATION_WINDOW:
        return 0.0
    t = alpha + x
    return float(expit(t) * expit(-t)) * _INV_SQRT_2PI * math.exp(-0.5 * x * x)


def obtain_b(
    alpha: float,
    *,
    epsabs: float = 1e-10,
    epsrel: float = 1e-7,
    limit: int = 1000,
) -> tuple[float, bool]:
    """
    Compute the bias-correction constant ``b(alpha)``.

    Parameters
    ----------
    alpha : float
        Log-odds parameter (e.g. ``log(n_cases / n_controls)``).
    epsabs, epsrel : float, keyword-only
        Absolute and relative error tolerances for the quadrature.
    limit : int, keyword-only
        Maximum number of subintervals.

    Returns
    -------
    b : float
        Integral value, never negative. On non-convergence this is the best
        estimate available.
    converged : bool
        False when the quadrature did not reach the requested tolerance. A
        warning is logged in that case; the value is still usable.
    """
    result = scipy.integrate.quad(
        fintegrand,
        -float("inf"),
        float("inf"),
        args=(float(alpha),),
        epsabs=epsabs,
        epsrel=epsrel,
        limit=limit,
        full_output=1,
    )
    value, abserr = float(result[0]), float(result[1])
    # quad appends a message to the tuple only when QUADPACK reports a problem
    converged = len(result) == 3

    if not converged:
        logger.warning(
            f"Calculation of b may be inaccurate (alpha={alpha:g}, b={value:g}, "
            f"abserr={abserr:g}): {result[3]}"
        )
    else:
        logger.debug(f"b(alpha={alpha:g}) = {value:.10g} (abserr={abserr:.3g})")

    return max(value, 0.0), converged
