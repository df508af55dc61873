# File: rvcollapse/association/variable_threshold.py
# Location: rvcollapse/rvcollapse/association/variable_threshold.py
"""
Variable-threshold (VT) genotype construction.

Builds a family of nested collapsed genotypes, one per distinct marker
frequency. Markers are grouped with ``group_frequency``; column ``k`` of the
result collapses the cumulative union of frequency bins ``0..k``, so rarer
markers enter first and every column adds the markers of the next bin.

Reference: Price AL et al. Pooled association tests for rare variants in
exon-resequencing studies. Am J Hum Genet. 2010;86(6):832-838.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from rvcollapse.association.base import CollapsingStrategy
from rvcollapse.association.frequency import FrequencySource, group_frequency
from rvcollapse.association.genotype import as_genotype_matrix
from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")


@dataclass
class VariableThresholdGenotype:
    """
    Nested collapsed genotypes with their frequency thresholds.

    Fields
    ------
    genotype : np.ndarray, shape (n_samples, n_bins)
        Column ``k`` is the collapsed genotype of ``marker_sets[k]``.
    thresholds : np.ndarray, shape (n_bins,)
        Rounded frequency of bin ``k``, strictly ascending.
    marker_sets : list[list[int]]
        Cumulative marker indices collapsed into each column.
    method : str
        Name of the collapsing strategy that produced the columns.
    """

    genotype: np.ndarray
    thresholds: np.ndarray
    marker_sets: list[list[int]] = field(default_factory=list)
    method: str = ""

    @property
    def n_bins(self) -> int:
        """Number of frequency bins (columns)."""
        return int(self.thresholds.shape[0])

    def to_frame(self, sample_ids: Sequence[str] | None = None):
        """
        Return the collapsed genotypes as a DataFrame.

        Columns are named ``vt_<threshold>`` with six decimals; rows are
        indexed by ``sample_ids`` when given.
        """
        import pandas as pd

        columns = [f"vt_{t:.6f}" for t in self.thresholds]
        index = None if sample_ids is None else list(sample_ids)
        return pd.DataFrame(self.genotype, columns=columns, index=index)


def make_variable_threshold_genotype(
    genotype: np.ndarray,
    collapser: CollapsingStrategy,
    frequencies: Sequence[float] | np.ndarray | None = None,
    source: FrequencySource | None = None,
    digits: int = 6,
) -> VariableThresholdGenotype:
    """
    Collapse cumulative, frequency-ordered marker subsets into one column each.

    Parameters
    ----------
    genotype : np.ndarray, shape (n_samples, n_markers)
        Genotype matrix. Not modified.
    collapser : CollapsingStrategy
        Strategy invoked once per frequency bin.
    frequencies : sequence of float or None
        Per-marker frequencies used for binning. When None they are taken
        from ``source``, or from the collapser's own ``source`` attribute.
    source : FrequencySource or None
        Frequency oracle used when ``frequencies`` is None.
    digits : int
        Decimal digits kept when grouping frequencies. Default: 6.

    Returns
    -------
    VariableThresholdGenotype
        One column per distinct rounded frequency, ascending.

    Raises
    ------
    PreconditionError
        If no frequencies are available, their count differs from the marker
        count, or the matrix has no markers.
    """
    geno = as_genotype_matrix(genotype)
    n_samples, n_markers = geno.shape

    if frequencies is None:
        if source is None:
            source = getattr(collapser, "source", None)
        require(
            source is not None,
            "Variable-threshold genotypes need frequencies or a FrequencySource",
            "frequencies",
        )
        freq_in = source.get_marker_frequencies()
    else:
        freq_in = np.asarray(frequencies, dtype=np.float64).reshape(-1)

    require(n_markers > 0, "Genotype matrix has no markers", "genotype")
    require(
        freq_in.shape[0] == n_markers,
        f"Got {freq_in.shape[0]} frequencies for {n_markers} markers",
        "frequencies",
        n_markers=n_markers,
    )

    freq_group = group_frequency(freq_in, digits=digits)

    out = np.zeros((n_samples, len(freq_group)), dtype=np.float64)
    thresholds = np.empty(len(freq_group), dtype=np.float64)
    marker_sets: list[list[int]] = []
    cum_cols: list[int] = []

    for idx, (freq, cols) in enumerate(freq_group.items()):
        thresholds[idx] = freq
        cum_cols.extend(cols)
        collapser.collapse(geno, cum_cols, out, idx)
        marker_sets.append(list(cum_cols))

    logger.debug(
        f"Variable threshold ({collapser.name}): {n_markers} markers in "
        f"{len(freq_group)} frequency bin(s)"
    )
    return VariableThresholdGenotype(
        genotype=out,
        thresholds=thresholds,
        marker_sets=marker_sets,
        method=collapser.name,
    )
