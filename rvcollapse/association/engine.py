# File: rvcollapse/association/engine.py
# Location: rvcollapse/rvcollapse/association/engine.py
"""
CollapsingEngine: configuration-driven front end to the collapsing core.

The engine turns a CollapseConfig into the concrete pieces a model-fitting
layer needs for one analysis window:

  build_source()        FrequencySource for the window's genotype matrix
  collapser()           strategy selected by ``config.method``
  collapse()            one aggregate column (n_samples, 1)
  variable_threshold()  nested aggregate columns plus thresholds
  bias_constant()       (alpha, b) for the single-variant score test

Each call works on the arrays it is given and keeps no state between
analysis windows.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from rvcollapse.association.base import CollapseConfig, CollapsingStrategy
from rvcollapse.association.bias import BiasConstant, SingleVariantScoreTest
from rvcollapse.association.collapsing import get_collapser
from rvcollapse.association.frequency import FrequencySource
from rvcollapse.association.variable_threshold import (
    VariableThresholdGenotype,
    make_variable_threshold_genotype,
)

logger = logging.getLogger("rvcollapse")


class CollapsingEngine:
    """
    Apply one CollapseConfig to genotype matrices.

    Usage
    -----
    >>> engine = CollapsingEngine(CollapseConfig(method="zeggini"))
    >>> burden = engine.collapse(genotype)
    >>> vt = engine.variable_threshold(genotype)

    Parameters
    ----------
    config : CollapseConfig or None
        Runtime configuration. ``None`` uses the defaults.

    Raises
    ------
    ValueError
        If the configuration names an unknown method or estimator.
    """

    def __init__(self, config: CollapseConfig | None = None) -> None:
        self._config = config if config is not None else CollapseConfig()
        self._config.validate()
        logger.debug(
            f"CollapsingEngine: method={self._config.method}, "
            f"estimator={self._config.frequency_estimator}"
        )

    @property
    def config(self) -> CollapseConfig:
        """The engine's configuration."""
        return self._config

    def build_source(
        self,
        genotype: np.ndarray,
        frequencies: Sequence[float] | np.ndarray | None = None,
    ) -> FrequencySource:
        """FrequencySource for ``genotype`` using the configured estimator."""
        return FrequencySource(
            genotype,
            frequencies=frequencies,
            estimator=self._config.frequency_estimator,
        )

    def collapser(
        self,
        source: FrequencySource | None = None,
        phenotype: np.ndarray | None = None,
    ) -> CollapsingStrategy:
        """Collapsing strategy named by ``config.method``."""
        return get_collapser(self._config.method, source=source, phenotype=phenotype)

    def collapse(
        self,
        genotype: np.ndarray,
        phenotype: np.ndarray | None = None,
        frequencies: Sequence[float] | np.ndarray | None = None,
    ) -> np.ndarray:
        """
        Collapse every marker of ``genotype`` into a single column.

        Parameters
        ----------
        genotype : np.ndarray, shape (n_samples, n_markers)
        phenotype : np.ndarray or None
            Needed by "madsen_browning_control".
        frequencies : sequence of float or None
            Externally supplied per-marker frequencies for weighted methods.

        Returns
        -------
        np.ndarray, shape (n_samples, 1)
        """
        source = self.build_source(genotype, frequencies)
        strategy = self.collapser(source, phenotype)
        out = strategy.collapse(genotype)
        logger.debug(
            f"Collapsed {source.n_markers} marker(s) for {source.n_samples} sample(s) "
            f"with '{strategy.name}'"
        )
        return out

    def variable_threshold(
        self,
        genotype: np.ndarray,
        phenotype: np.ndarray | None = None,
        frequencies: Sequence[float] | np.ndarray | None = None,
    ) -> VariableThresholdGenotype:
        """
        Build variable-threshold genotypes with the configured method.

        Bins are formed from ``frequencies`` when given, else from the
        FrequencySource built with the configured estimator.
        """
        source = self.build_source(genotype, frequencies)
        strategy = self.collapser(source, phenotype)
        result = make_variable_threshold_genotype(
            genotype,
            strategy,
            source=source,
            digits=int(self._config.frequency_digits),
        )
        logger.info(
            f"Variable threshold genotypes: {result.n_bins} threshold(s) from "
            f"{source.n_markers} marker(s) using '{strategy.name}'"
        )
        return result

    def bias_constant(self, phenotype: np.ndarray) -> BiasConstant:
        """Single-variant score test constant for ``phenotype``."""
        test = SingleVariantScoreTest(
            saturation=self._config.alpha_saturation,
            epsabs=self._config.integration_epsabs,
            epsrel=self._config.integration_epsrel,
            limit=int(self._config.integration_limit),
        )
        constant = test.calculate_constant(phenotype)
        logger.info(
            f"Bias constant: {test.n_cases} case(s), {test.n_controls} control(s), "
            f"alpha={constant.alpha:g}, b={constant.b:g}"
        )
        return constant
