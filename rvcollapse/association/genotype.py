# File: rvcollapse/association/genotype.py
# Location: rvcollapse/rvcollapse/association/genotype.py
"""
Genotype matrix helpers shared by the collapsing strategies.

Provides public functions:

- ``as_genotype_matrix``: Coerce input to a 2-D float64 ``(n_samples, n_markers)``
  array without copying when the input already qualifies.
- ``missing_mask``: Boolean mask of missing entries (NaN or any negative
  sentinel such as -9).
- ``observed_genotype``: Copy of the matrix with missing entries set to 0, so
  they drop out of weighted sums.
- ``convert_to_reference_allele_count``: ``2 - g`` transform from alternative
  to reference allele dosage, as a copy or in place on a caller-owned target.

Design notes
------------
- Genotype matrices are owned by the caller. Only
  ``convert_to_reference_allele_count(..., out=target)`` writes to an array
  it did not allocate, and only to the explicitly passed ``target``.
- Missing entries stay missing through the reference-allele conversion; they
  are returned as NaN rather than ``2 - sentinel``.
"""

from __future__ import annotations

import logging

import numpy as np

from rvcollapse.errors import require

logger = logging.getLogger("rvcollapse")


def as_genotype_matrix(genotype: np.ndarray) -> np.ndarray:
    """
    Return ``genotype`` as a 2-D float64 array.

    Parameters
    ----------
    genotype : array-like, shape (n_samples, n_markers)
        Allele counts (0/1/2) or imputed dosages. Missing = NaN or negative.

    Returns
    -------
    np.ndarray, float64
        The input itself when it is already a float64 ndarray, otherwise a
        converted copy.

    Raises
    ------
    PreconditionError
        If the input is not two-dimensional.
    """
    geno = np.asarray(genotype, dtype=np.float64)
    require(
        geno.ndim == 2,
        f"Genotype matrix must be 2-D (samples x markers), got {geno.ndim}-D",
        "genotype",
    )
    return geno


def missing_mask(genotype: np.ndarray) -> np.ndarray:
    """
    Boolean mask of missing genotype entries.

    An entry is missing when it is NaN or negative.
    """
    geno = np.asarray(genotype, dtype=np.float64)
    return np.isnan(geno) | (geno < 0)


def observed_genotype(genotype: np.ndarray) -> np.ndarray:
    """Copy of ``genotype`` with missing entries replaced by 0.0."""
    geno = np.array(genotype, dtype=np.float64, copy=True)
    geno[missing_mask(geno)] = 0.0
    return geno


def convert_to_reference_allele_count(
    genotype: np.ndarray,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """
    Convert alternative allele dosage to reference allele dosage.

    Genotype 2 (hom-alt) becomes 0, 1 stays 1, 0 (hom-ref) becomes 2.

    Parameters
    ----------
    genotype : np.ndarray, shape (n_samples, n_markers)
        Alternative allele dosages. Not modified unless it is also ``out``.
    out : np.ndarray or None
        Caller-owned float array of the same shape to write the result into.
        Passing the input itself converts it in place.

    Returns
    -------
    np.ndarray
        Reference allele dosages; missing entries are NaN.

    Raises
    ------
    PreconditionError
        If ``out`` is given with a different shape or a non-float dtype.
    """
    geno = as_genotype_matrix(genotype)
    mask = missing_mask(geno)

    if out is None:
        result = 2.0 - geno
    else:
        require(
            isinstance(out, np.ndarray) and out.shape == geno.shape,
            f"Output shape {getattr(out, 'shape', None)} does not match genotype shape {geno.shape}",
            "out",
        )
        require(
            np.issubdtype(out.dtype, np.floating),
            f"In-place conversion needs a floating point target, got {out.dtype}",
            "out",
        )
        np.subtract(2.0, geno, out=out)
        result = out

    if mask.any():
        result[mask] = np.nan
        logger.debug(f"Reference allele conversion kept {int(mask.sum())} missing entries as NaN")
    return result
