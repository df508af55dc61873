# File: rvcollapse/association/frequency.py
# Location: rvcollapse/rvcollapse/association/frequency.py
"""
Marker frequency estimation, caching, and frequency grouping.

Provides:

- ``allele_frequency``: ac / an over observed genotypes.
- ``continuity_allele_frequency``: continuity-corrected (ac + 1) / (an + 2).
- ``control_allele_frequency``: the continuity-corrected estimator restricted
  to control samples (phenotype == 0), as used by the Madsen-Browning
  weighted sum statistic.
- ``FrequencySource``: read-through cache of per-marker frequencies for one
  analysis window. Collapsing strategies that need externally resolved
  frequencies ask the source instead of recomputing from genotypes.
- ``group_frequency``: partition marker indices into frequency bins keyed by
  the frequency rounded up to ``10**-digits``.
- ``load_marker_frequencies``: read precomputed frequencies from a TSV file.

Two estimators
--------------
The plain estimator and the continuity-corrected estimator give different
values for the same genotypes, and both are in use (the corrected form never
returns exactly 0 or 1). They are kept as separately named estimators; the
``estimator`` argument of FrequencySource chooses one per analysis.

Missing genotypes (NaN or negative) are excluded from both the allele count
and the allele number.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from rvcollapse.association.base import FREQUENCY_ESTIMATORS
from rvcollapse.association.genotype import as_genotype_matrix, missing_mask
from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")


def _allele_counts(
    genotype: np.ndarray,
    col: int | None = None,
    rows: np.ndarray | None = None,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Alternative allele count and allele number per marker.

    Returns ``(ac, an)`` arrays over the selected columns (all columns when
    ``col`` is None) and rows (all rows when ``rows`` is None).
    """
    geno = as_genotype_matrix(genotype)
    if col is not None:
        n_markers = geno.shape[1]
        require(
            0 <= col < n_markers,
            f"Marker column {col} out of range for a matrix with {n_markers} markers",
            "col",
        )
        geno = geno[:, [col]]
    if rows is not None:
        geno = geno[rows]

    mask = missing_mask(geno)
    # Imputed dosages are not integers; ac stays float.
    ac = np.where(mask, 0.0, geno).sum(axis=0)
    an = 2.0 * (~mask).sum(axis=0)
    return ac, an


def allele_frequency(genotype: np.ndarray, col: int | None = None) -> float | np.ndarray:
    """
    Alternative allele frequency ``ac / an`` from observed genotypes.

    Parameters
    ----------
    genotype : np.ndarray, shape (n_samples, n_markers)
        Genotype matrix; missing entries (NaN or negative) are skipped.
    col : int or None
        Single marker column. ``None`` returns all markers.

    Returns
    -------
    float or np.ndarray, shape (n_markers,)
        Frequencies; 0.0 for markers with no observed genotype.
    """
    ac, an = _allele_counts(genotype, col)
    freq = np.divide(ac, an, out=np.zeros_like(ac), where=an > 0)
    if col is not None:
        return float(freq[0])
    return freq


def continuity_allele_frequency(
    genotype: np.ndarray,
    col: int | None = None,
    rows: np.ndarray | None = None,
) -> float | np.ndarray:
    """
    Continuity-corrected allele frequency ``(ac + 1) / (an + 2)``.

    Parameters
    ----------
    genotype : np.ndarray, shape (n_samples, n_markers)
        Genotype matrix; missing entries (NaN or negative) are skipped.
    col : int or None
        Single marker column. ``None`` returns all markers.
    rows : np.ndarray of bool or int, or None
        Restrict the estimate to these samples.

    Returns
    -------
    float or np.ndarray
        Frequencies in (0, 1) for integer genotypes; 0.5 when nothing is
        observed.
    """
    ac, an = _allele_counts(genotype, col, rows)
    freq = (ac + 1.0) / (an + 2.0)
    if col is not None:
        return float(freq[0])
    return freq


def control_allele_frequency(
    genotype: np.ndarray,
    phenotype: np.ndarray,
    col: int | None = None,
) -> float | np.ndarray:
    """
    Continuity-corrected allele frequency among controls (phenotype == 0).

    Reference: Madsen BE, Browning SR. A Groupwise Association Test for Rare
    Mutations Using a Weighted Sum Statistic. PLoS Genet. 2009;5(2):e1000384.
    """
    geno = as_genotype_matrix(genotype)
    pheno = np.asarray(phenotype, dtype=np.float64).reshape(-1)
    require(
        pheno.shape[0] == geno.shape[0],
        f"Phenotype has {pheno.shape[0]} entries but the genotype matrix has "
        f"{geno.shape[0]} samples",
        "phenotype",
    )
    return continuity_allele_frequency(geno, col, rows=pheno == 0)


_ESTIMATOR_FUNCS = {
    "allele": allele_frequency,
    "continuity": continuity_allele_frequency,
}


class FrequencySource:
    """
    Read-through cache of per-marker frequencies for one analysis window.

    Frequencies come from one of two places, fixed at construction:

    - ``frequencies`` supplied by the caller (precomputed or imputed
      elsewhere). These are returned as-is and never recomputed.
    - Otherwise, computed from ``genotype`` with the named ``estimator`` the
      first time a marker is requested.

    Cached values are never refreshed implicitly; a later change to the
    genotype array is not picked up until ``invalidate()`` is called.

    Parameters
    ----------
    genotype : np.ndarray, shape (n_samples, n_markers)
        Genotype matrix of the analysis window. Held by reference.
    frequencies : sequence of float or None
        Externally supplied per-marker frequencies in [0, 1].
    estimator : str
        "allele" (ac / an, default) or "continuity" ((ac + 1) / (an + 2)).
    """

    def __init__(
        self,
        genotype: np.ndarray,
        frequencies: Sequence[float] | np.ndarray | None = None,
        estimator: str = "allele",
    ) -> None:
        if estimator not in FREQUENCY_ESTIMATORS:
            raise ValueError(
                f"Frequency estimator '{estimator}' is not available. "
                f"Available estimators: {', '.join(sorted(FREQUENCY_ESTIMATORS))}"
            )
        self._genotype = as_genotype_matrix(genotype)
        self._estimator = estimator
        self._external: np.ndarray | None = None
        self._cache = np.full(self.n_markers, np.nan, dtype=np.float64)

        if frequencies is not None:
            ext = np.asarray(frequencies, dtype=np.float64).reshape(-1)
            require(
                ext.shape[0] == self.n_markers,
                f"Got {ext.shape[0]} frequencies for {self.n_markers} markers",
                "frequencies",
                n_markers=self.n_markers,
            )
            require(
                bool(np.all((ext >= 0.0) & (ext <= 1.0))),
                "Externally supplied frequencies must lie in [0, 1]",
                "frequencies",
            )
            self._external = ext.copy()
            logger.debug(f"FrequencySource: using {self.n_markers} externally supplied frequencies")

    @property
    def n_markers(self) -> int:
        """Number of markers in the analysis window."""
        return int(self._genotype.shape[1])

    @property
    def n_samples(self) -> int:
        """Number of samples in the analysis window."""
        return int(self._genotype.shape[0])

    @property
    def estimator(self) -> str:
        """Name of the estimator used for computed frequencies."""
        return self._estimator

    @property
    def is_external(self) -> bool:
        """True when frequencies were supplied by the caller."""
        return self._external is not None

    def get_marker_frequency(self, col: int) -> float:
        """
        Frequency of one marker, computing and caching it on first request.

        Raises
        ------
        PreconditionError
            If ``col`` is not a valid marker column.
        """
        require(
            0 <= col < self.n_markers,
            f"Marker column {col} out of range for {self.n_markers} markers",
            "col",
        )
        if self._external is not None:
            return float(self._external[col])
        if np.isnan(self._cache[col]):
            self._cache[col] = _ESTIMATOR_FUNCS[self._estimator](self._genotype, col)
        return float(self._cache[col])

    def get_marker_frequencies(self) -> np.ndarray:
        """Frequencies of all markers (a copy; the cache is not exposed)."""
        if self._external is not None:
            return self._external.copy()
        pending = np.isnan(self._cache)
        if pending.any():
            self._cache[pending] = _ESTIMATOR_FUNCS[self._estimator](self._genotype)[pending]
            logger.debug(
                f"FrequencySource: computed {int(pending.sum())} '{self._estimator}' frequencies"
            )
        return self._cache.copy()

    def invalidate(self) -> None:
        """Drop computed frequencies so they are recomputed on next request."""
        self._cache.fill(np.nan)


def group_frequency(
    freq: Sequence[float] | np.ndarray,
    digits: int = 6,
) -> dict[float, list[int]]:
    """
    Group marker indices by frequency, rounded up to ``10**-digits``.

    Parameters
    ----------
    freq : sequence of float
        Per-marker frequencies in [0, 1]. Not modified.
    digits : int
        Decimal digits kept. Default: 6.

    Returns
    -------
    dict[float, list[int]]
        Rounded frequency -> 0-based marker indices, iterated in ascending
        frequency order. Indices within a bin are ascending.

    Raises
    ------
    PreconditionError
        If any frequency is NaN or outside [0, 1].

    Examples
    --------
    >>> group_frequency([0.1, 0.2, 0.1, 0.3])
    {0.1: [0, 2], 0.2: [1], 0.3: [3]}

    Notes
    -----
    The scaled frequency is snapped to 1e-6 of a rounding unit before the
    ceiling, so arithmetic noise such as ``0.1 + 0.2`` lands in the same bin
    as ``0.3`` instead of the next one up.
    """
    arr = np.asarray(freq, dtype=np.float64).reshape(-1)
    require(
        bool(np.all((arr >= 0.0) & (arr <= 1.0))),
        "Frequencies used for grouping must lie in [0, 1]",
        "freq",
    )

    scale = 10.0**digits
    keys = np.ceil(np.round(arr * scale, 6)) / scale

    group: dict[float, list[int]] = {}
    for i in np.argsort(keys, kind="stable"):
        group.setdefault(float(keys[i]), []).append(int(i))
    return group


def load_marker_frequencies(
    filepath: str,
    frequency_column: str = "freq",
):
    """
    Read a TSV file of precomputed per-marker frequencies.

    The file must have a header row. The first column is the marker
    identifier; the column named ``frequency_column`` holds the frequencies.

    Parameters
    ----------
    filepath : str
        Path to the TSV file.
    frequency_column : str
        Name of the frequency column. Default: "freq".

    Returns
    -------
    pd.Series
        Frequencies (float64) indexed by marker identifier, in file order.

    Raises
    ------
    ValueError
        If the frequency column is missing or any value is missing or
        outside [0, 1].
    """
    import pandas as pd

    df = pd.read_csv(filepath, sep="\t", header=0)
    marker_col = df.columns[0]

    if frequency_column not in df.columns:
        raise ValueError(
            f"Frequency column '{frequency_column}' not found in '{filepath}'. "
            f"Available columns: {list(df.columns)}"
        )

    freqs = pd.to_numeric(df[frequency_column], errors="coerce").astype(np.float64)
    freqs.index = df[marker_col].astype(str)
    freqs.name = frequency_column

    bad = freqs[freqs.isna() | (freqs < 0.0) | (freqs > 1.0)]
    if len(bad):
        shown = [f"{marker}={value}" for marker, value in bad.head(10).items()]
        detail = ", ".join(shown)
        if len(bad) > 10:
            detail += f" and {len(bad) - 10} more"
        raise ValueError(f"Marker frequencies must lie in [0, 1]. Invalid entries: {detail}")

    logger.info(f"Loaded {len(freqs)} marker frequencies from {filepath}")
    return freqs
