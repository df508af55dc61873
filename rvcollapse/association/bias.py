# File: rvcollapse/association/bias.py
# Location: rvcollapse/rvcollapse/association/bias.py
"""
Bias-correction constants for binary-trait score and meta-analysis statistics.

Every calculator holds a log-odds ``alpha`` and derives the constant
``b = obtain_b(alpha)`` from it. They differ only in where ``alpha`` comes
from:

- ``SingleVariantScoreTest``: ``alpha = log(n_cases / n_controls)`` from the
  phenotype vector.
- ``MetaFamBinary``, ``MetaCovFamBinary``, ``MetaUnrelatedBinary``: ``alpha``
  is known from the test context and assigned by the caller.

Constants are computed when the caller asks for them and cached on the
calculator; nothing is recomputed implicitly.

Saturation
----------
With no controls the log-odds is undefined. ``ALPHA_SATURATION`` (500) is
substituted as a policy choice meaning "certainly a case"; at that value
``b`` is negligible (about 1e-217). With controls but no cases the negated
value is used.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from rvcollapse.association.integration import obtain_b
from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")

ALPHA_SATURATION: float = 500.0


@dataclass(frozen=True)
class BiasConstant:
    """
    Cached bias-correction constant of one test object.

    Fields
    ------
    alpha : float
        Log-odds the constant was derived from.
    b : float
        Integral value ``b(alpha)``.
    converged : bool
        False when the quadrature reported it did not reach its tolerance;
        ``b`` is then a best-effort estimate.
    """

    alpha: float
    b: float
    converged: bool = True


def count_cases_controls(phenotype: np.ndarray) -> tuple[int, int]:
    """
    Count cases (== 1) and controls (== 0); other values are ignored.

    Parameters
    ----------
    phenotype : np.ndarray, shape (n_samples,) or (n_samples, 1)

    Returns
    -------
    (n_cases, n_controls)
    """
    pheno = np.asarray(phenotype, dtype=np.float64)
    require(
        pheno.ndim == 1 or (pheno.ndim == 2 and pheno.shape[1] == 1),
        f"Phenotype must be a vector or a single column, got shape {pheno.shape}",
        "phenotype",
    )
    pheno = pheno.reshape(-1)
    return int((pheno == 1).sum()), int((pheno == 0).sum())


def case_control_log_odds(
    n_cases: int,
    n_controls: int,
    saturation: float = ALPHA_SATURATION,
) -> float:
    """
    Log-odds of case to control counts, saturated when undefined.

    Returns ``log(n_cases / n_controls)`` when both are positive,
    ``+saturation`` when there are no controls and ``-saturation`` when there
    are controls but no cases.
    """
    if n_controls <= 0:
        logger.warning(
            f"No controls among {n_cases} case(s): using saturated alpha={saturation:g}"
        )
        return float(saturation)
    if n_cases <= 0:
        logger.warning(
            f"No cases among {n_controls} control(s): using saturated alpha={-saturation:g}"
        )
        return -float(saturation)
    return math.log(n_cases / n_controls)


class BinaryBiasCorrection:
    """
    Holder of the ``(alpha, b)`` bias-correction pair for one test object.

    Parameters
    ----------
    alpha : float or None
        Log-odds parameter. May be assigned later via the ``alpha`` attribute.
    epsabs, epsrel, limit
        Quadrature settings forwarded to ``obtain_b``.
    """

    name = "binary"

    def __init__(
        self,
        alpha: float | None = None,
        *,
        epsabs: float = 1e-10,
        epsrel: float = 1e-7,
        limit: int = 1000,
    ) -> None:
        self.alpha = alpha
        self.b: float | None = None
        self.converged: bool | None = None
        self._quad_options = {"epsabs": epsabs, "epsrel": epsrel, "limit": limit}

    def calculate_b(self) -> float:
        """
        Compute ``b`` from the current ``alpha`` and cache it.

        Returns
        -------
        float
            The new value of ``b``.

        Raises
        ------
        PreconditionError
            If ``alpha`` has not been set.
        """
        require(
            self.alpha is not None,
            f"{type(self).__name__}: alpha must be set before calculating b",
            "alpha",
        )
        self.b, self.converged = obtain_b(float(self.alpha), **self._quad_options)
        logger.debug(f"{self.name}: alpha = {self.alpha:g}, b = {self.b:g}")
        return self.b

    @property
    def constant(self) -> BiasConstant | None:
        """Cached constant, or None until ``calculate_b()`` has run."""
        if self.b is None or self.alpha is None:
            return None
        return BiasConstant(alpha=float(self.alpha), b=self.b, converged=bool(self.converged))


class SingleVariantScoreTest(BinaryBiasCorrection):
    """Single-variant score test; ``alpha`` comes from the case:control ratio."""

    name = "single_variant_score"

    def __init__(self, *, saturation: float = ALPHA_SATURATION, **quad_options) -> None:
        super().__init__(None, **quad_options)
        self.saturation = saturation
        self.n_cases: int | None = None
        self.n_controls: int | None = None

    def calculate_constant(self, phenotype: np.ndarray) -> BiasConstant:
        """
        Derive ``alpha`` from ``phenotype`` and compute ``b``.

        Parameters
        ----------
        phenotype : np.ndarray
            Binary phenotype (1 = case, 0 = control). Other values are ignored.

        Returns
        -------
        BiasConstant
        """
        self.n_cases, self.n_controls = count_cases_controls(phenotype)
        self.alpha = case_control_log_odds(self.n_cases, self.n_controls, self.saturation)
        self.calculate_b()
        return self.constant


class MetaFamBinary(BinaryBiasCorrection):
    """Meta-analysis score statistic, binary trait, related samples."""

    name = "meta_score_fam_binary"


class MetaCovFamBinary(BinaryBiasCorrection):
    """Meta-analysis covariance statistic, binary trait, related samples."""

    name = "meta_cov_fam_binary"


class MetaUnrelatedBinary(BinaryBiasCorrection):
    """Meta-analysis score statistic, binary trait, unrelated samples."""

    name = "meta_score_unrelated_binary"
