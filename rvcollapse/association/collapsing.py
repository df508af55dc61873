# File: rvcollapse/association/collapsing.py
# Location: rvcollapse/rvcollapse/association/collapsing.py
"""
Collapsing strategies for rare variant burden tests.

Each strategy reduces a marker subset of a genotype matrix to one aggregate
column per call (see ``CollapsingStrategy.collapse``).

Strategies
----------
``cmc``: CMCCollapser
    Combined multivariate and collapsing (Li & Leal 2008): 1.0 when the
    sample carries a non-reference allele at any included marker, else 0.0.
``zeggini``: ZegginiCollapser
    Morris-Zeggini count: number of included markers at which the sample
    carries a non-reference allele.
``madsen_browning``: MadsenBrowningCollapser
    Weighted sum of dosages with weight ``1 / sqrt(f * (1 - f))``, frequency
    taken from a FrequencySource.
``madsen_browning_control``: ControlMadsenBrowningCollapser
    Weighted sum with weight ``1 / sqrt(f * (1 - f) * N)``, where ``f`` is the
    continuity-corrected frequency among controls and ``N`` the sample count.
``fp``: FlexibleWeightedCollapser
    Madsen-Browning weighting driven solely by the FrequencySource cache, for
    analyses with precomputed or imputed frequencies.

Missing genotypes (NaN or negative) never count as carrying a variant and
contribute 0 to weighted sums. Markers whose frequency is 0 or 1 have no
finite weight and are skipped.

CMC and Zeggini test presence with the integer part of the dosage, so an
imputed dosage below 1.0 does not count as a carrier.
"""

from __future__ import annotations

import logging

import numpy as np

from rvcollapse.association.base import CollapsingStrategy
from rvcollapse.association.frequency import FrequencySource, control_allele_frequency
from rvcollapse.association.genotype import observed_genotype
from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")


def _carrier_mask(sub: np.ndarray) -> np.ndarray:
    """True where the integer allele count is above zero."""
    return np.trunc(observed_genotype(sub)) > 0


def _weighted_sum(sub: np.ndarray, freqs: np.ndarray, n_scale: float = 1.0) -> np.ndarray:
    """
    Sum of ``dosage * 1 / sqrt(f * (1 - f) * n_scale)`` over usable markers.

    Markers with ``f <= 0`` or ``f >= 1`` are skipped.
    """
    usable = (freqs > 0.0) & (freqs < 1.0)
    n_skipped = int((~usable).sum())
    if n_skipped:
        logger.debug(f"Weighted collapse: skipped {n_skipped} marker(s) with frequency 0 or 1")
    if not usable.any():
        return np.zeros(sub.shape[0], dtype=np.float64)

    f = freqs[usable]
    weights = 1.0 / np.sqrt(f * (1.0 - f) * n_scale)
    return observed_genotype(sub[:, usable]) @ weights


class CMCCollapser(CollapsingStrategy):
    """Indicator of carrying any non-reference allele among the markers."""

    @property
    def name(self) -> str:
        """Short identifier for registry lookup."""
        return "cmc"

    def _aggregate(self, genotype: np.ndarray, index: np.ndarray) -> np.ndarray:
        return _carrier_mask(genotype[:, index]).any(axis=1).astype(np.float64)


class ZegginiCollapser(CollapsingStrategy):
    """Count of markers at which the sample carries a non-reference allele."""

    @property
    def name(self) -> str:
        """Short identifier for registry lookup."""
        return "zeggini"

    def _aggregate(self, genotype: np.ndarray, index: np.ndarray) -> np.ndarray:
        return _carrier_mask(genotype[:, index]).sum(axis=1).astype(np.float64)


class MadsenBrowningCollapser(CollapsingStrategy):
    """
    Frequency-weighted burden with weights from a FrequencySource.

    Parameters
    ----------
    source : FrequencySource
        Frequency oracle for the genotype matrix being collapsed. Marker
        ``j`` of the matrix is looked up as ``source.get_marker_frequency(j)``.
    """

    def __init__(self, source: FrequencySource | None = None) -> None:
        self.source = source

    @property
    def name(self) -> str:
        """Short identifier for registry lookup."""
        return "madsen_browning"

    def _aggregate(self, genotype: np.ndarray, index: np.ndarray) -> np.ndarray:
        require(
            self.source is not None,
            f"Collapsing method '{self.name}' needs a FrequencySource",
            "source",
        )
        require(
            self.source.n_markers == genotype.shape[1],
            f"FrequencySource covers {self.source.n_markers} markers but the genotype "
            f"matrix has {genotype.shape[1]}",
            "source",
        )
        freqs = np.array([self.source.get_marker_frequency(int(c)) for c in index])
        return _weighted_sum(genotype[:, index], freqs)


class FlexibleWeightedCollapser(MadsenBrowningCollapser):
    """
    Madsen-Browning weighting sourced only from the FrequencySource cache.

    Intended for frequencies supplied from outside the genotype matrix
    (reference panels, imputation output); the weights are identical to
    MadsenBrowningCollapser for the same source.
    """

    @property
    def name(self) -> str:
        """Short identifier for registry lookup."""
        return "fp"


class ControlMadsenBrowningCollapser(CollapsingStrategy):
    """
    Madsen-Browning weighted sum with control-only frequencies.

    Frequencies are recomputed from the genotype matrix on every call using
    the continuity-corrected estimator over samples with phenotype == 0, and
    the weight carries the sample count: ``1 / sqrt(f * (1 - f) * N)``.

    Parameters
    ----------
    phenotype : np.ndarray, shape (n_samples,)
        Binary phenotype, 0 = control, 1 = case.
    """

    def __init__(self, phenotype: np.ndarray | None = None) -> None:
        self.phenotype = None if phenotype is None else np.asarray(phenotype, dtype=np.float64)

    @property
    def name(self) -> str:
        """Short identifier for registry lookup."""
        return "madsen_browning_control"

    def _aggregate(self, genotype: np.ndarray, index: np.ndarray) -> np.ndarray:
        require(
            self.phenotype is not None,
            f"Collapsing method '{self.name}' needs a phenotype vector",
            "phenotype",
        )
        freqs = control_allele_frequency(genotype[:, index], self.phenotype)
        return _weighted_sum(genotype[:, index], freqs, n_scale=float(genotype.shape[0]))


_COLLAPSER_REGISTRY: dict[str, type[CollapsingStrategy]] = {
    "cmc": CMCCollapser,
    "zeggini": ZegginiCollapser,
    "madsen_browning": MadsenBrowningCollapser,
    "madsen_browning_control": ControlMadsenBrowningCollapser,
    "fp": FlexibleWeightedCollapser,
}


def get_collapser(
    method: str,
    *,
    source: FrequencySource | None = None,
    phenotype: np.ndarray | None = None,
) -> CollapsingStrategy:
    """
    Construct a collapsing strategy from its name.

    Parameters
    ----------
    method : str
        One of "cmc", "zeggini", "madsen_browning",
        "madsen_browning_control", "fp".
    source : FrequencySource or None, keyword-only
        Required by "madsen_browning" and "fp". Ignored otherwise.
    phenotype : np.ndarray or None, keyword-only
        Required by "madsen_browning_control". Ignored otherwise.

    Returns
    -------
    CollapsingStrategy

    Raises
    ------
    ValueError
        If ``method`` is not a known collapsing method.
    """
    if method not in _COLLAPSER_REGISTRY:
        raise ValueError(
            f"Collapsing method '{method}' is not available. "
            f"Available methods: {', '.join(sorted(_COLLAPSER_REGISTRY))}"
        )

    cls = _COLLAPSER_REGISTRY[method]
    if issubclass(cls, MadsenBrowningCollapser):
        return cls(source)
    if cls is ControlMadsenBrowningCollapser:
        return cls(phenotype)
    return cls()
