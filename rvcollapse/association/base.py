# File: rvcollapse/association/base.py
# Location: rvcollapse/rvcollapse/association/base.py
"""
Core abstractions for the collapsing framework.

Defines the CollapseConfig dataclass and the CollapsingStrategy abstract base
class that every collapsing method (CMC, Zeggini, Madsen-Browning and its
variants) implements.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from rvcollapse.association.genotype import as_genotype_matrix
from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")

# Collapsing method identifiers accepted by get_collapser() and CollapseConfig.
COLLAPSE_METHODS = frozenset(
    {
        "cmc",
        "zeggini",
        "madsen_browning",
        "madsen_browning_control",
        "fp",
    }
)

# Frequency estimator identifiers accepted by FrequencySource.
FREQUENCY_ESTIMATORS = frozenset({"allele", "continuity"})


@dataclass
class CollapseConfig:
    """
    Configuration for the collapsing core.

    Fields
    ------
    method : str
        Collapsing method used by the engine facade. One of
        ``COLLAPSE_METHODS``. Default: "cmc".
    frequency_estimator : str
        Estimator used by FrequencySource when frequencies are computed from
        the genotype matrix. "allele" = ac / an; "continuity" =
        (ac + 1) / (an + 2). Default: "allele".
    frequency_digits : int
        Number of decimal digits kept when grouping frequencies into
        variable-threshold bins (ceiling rounding). Default: 6.
    alpha_saturation : float
        Magnitude of the log-odds substituted when a cohort has no controls
        (or no cases). Default: 500.0.
    integration_epsabs, integration_epsrel : float
        Absolute and relative tolerances passed to the adaptive quadrature
        that computes the bias-correction constant b.
    integration_limit : int
        Upper bound on quadrature subintervals.
    """

    method: str = "cmc"
    frequency_estimator: str = "allele"
    frequency_digits: int = 6
    alpha_saturation: float = 500.0
    integration_epsabs: float = 1e-10
    integration_epsrel: float = 1e-7
    integration_limit: int = 1000

    def validate(self) -> None:
        """
        Check that named options refer to known implementations.

        Raises
        ------
        ValueError
            If ``method`` or ``frequency_estimator`` is not recognised, or a
            numeric option is out of range.
        """
        if self.method not in COLLAPSE_METHODS:
            raise ValueError(
                f"Collapsing method '{self.method}' is not available. "
                f"Available methods: {', '.join(sorted(COLLAPSE_METHODS))}"
            )
        if self.frequency_estimator not in FREQUENCY_ESTIMATORS:
            raise ValueError(
                f"Frequency estimator '{self.frequency_estimator}' is not available. "
                f"Available estimators: {', '.join(sorted(FREQUENCY_ESTIMATORS))}"
            )
        if int(self.frequency_digits) < 1:
            raise ValueError(f"frequency_digits must be >= 1, got {self.frequency_digits}")
        if self.alpha_saturation <= 0:
            raise ValueError(f"alpha_saturation must be positive, got {self.alpha_saturation}")
        if int(self.integration_limit) < 1:
            raise ValueError(f"integration_limit must be >= 1, got {self.integration_limit}")


def resolve_marker_index(index: Sequence[int] | np.ndarray | None, n_markers: int) -> np.ndarray:
    """
    Turn an optional marker subset into a validated integer index array.

    ``None`` selects every marker in column order.
    """
    if index is None:
        return np.arange(n_markers, dtype=np.intp)
    cols = np.asarray(index, dtype=np.intp).reshape(-1)
    if cols.size:
        require(
            bool(cols.min() >= 0 and cols.max() < n_markers),
            f"Marker index out of range for a matrix with {n_markers} markers: "
            f"min={int(cols.min())}, max={int(cols.max())}",
            "index",
            n_markers=n_markers,
        )
    return cols


def prepare_output(out: np.ndarray | None, n_samples: int, out_index: int) -> np.ndarray:
    """
    Validate a caller-owned output matrix, or allocate a fresh one.

    With ``out=None`` a zeroed ``(n_samples, 1)`` matrix is returned and
    ``out_index`` must be 0. A caller-owned matrix must be floating point so
    weighted aggregates are not truncated.
    """
    if out is None:
        require(out_index == 0, "out_index must be 0 when no output matrix is given", "out_index")
        return np.zeros((n_samples, 1), dtype=np.float64)

    require(
        isinstance(out, np.ndarray) and out.ndim == 2,
        "Output must be a 2-D numpy array",
        "out",
    )
    require(
        np.issubdtype(out.dtype, np.floating),
        f"Output must have a floating point dtype, got {out.dtype}",
        "out",
    )
    require(
        out.shape[0] == n_samples,
        f"Output has {out.shape[0]} rows but the genotype matrix has {n_samples} samples",
        "out",
        expected_rows=n_samples,
    )
    require(
        0 <= out_index < out.shape[1],
        f"Output column {out_index} out of range for an output with {out.shape[1]} column(s)",
        "out_index",
    )
    return out


class CollapsingStrategy(ABC):
    """
    Abstract base class for all collapsing methods.

    A strategy reduces a marker subset of a genotype matrix to one aggregate
    column. Subclasses implement ``_aggregate`` and inherit the argument
    validation and output handling in ``collapse``.

    Methods
    -------
    name : str (property)
        Short, lowercase identifier used for registry lookup (e.g. "cmc").
    collapse(genotype, index=None, out=None, out_index=0) -> np.ndarray
        Write the aggregate of the selected markers into one output column.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short lowercase identifier for this method (e.g. 'cmc')."""
        ...

    @abstractmethod
    def _aggregate(self, genotype: np.ndarray, index: np.ndarray) -> np.ndarray:
        """
        Compute the per-sample aggregate of the markers in ``index``.

        Parameters
        ----------
        genotype : np.ndarray, shape (n_samples, n_markers)
            Genotype matrix; missing entries are NaN or negative.
        index : np.ndarray of int
            Column indices of the markers to collapse (already validated).

        Returns
        -------
        np.ndarray, shape (n_samples,), float64
        """
        ...

    def collapse(
        self,
        genotype: np.ndarray,
        index: Sequence[int] | np.ndarray | None = None,
        out: np.ndarray | None = None,
        out_index: int = 0,
    ) -> np.ndarray:
        """
        Collapse the selected markers into one column of ``out``.

        Parameters
        ----------
        genotype : np.ndarray, shape (n_samples, n_markers)
            Genotype matrix. Never modified.
        index : sequence of int or None
            Marker subset. ``None`` collapses every marker.
        out : np.ndarray, shape (n_samples, k), or None
            Caller-owned floating point output matrix written in place.
            ``None`` allocates and returns a fresh zeroed ``(n_samples, 1)``
            matrix.
        out_index : int
            Column of ``out`` to write. The column is reset before writing.

        Returns
        -------
        np.ndarray
            ``out`` (or the freshly allocated matrix).

        Raises
        ------
        PreconditionError
            If ``out`` is not floating point or has the wrong row count,
            ``out_index`` is out of range, or ``index`` refers to a marker
            that does not exist.
        """
        geno = as_genotype_matrix(genotype)
        n_samples, n_markers = geno.shape
        cols = resolve_marker_index(index, n_markers)
        target = prepare_output(out, n_samples, out_index)

        target[:, out_index] = 0.0
        if cols.size:
            target[:, out_index] = self._aggregate(geno, cols)
        return target
