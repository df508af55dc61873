# File: rvcollapse/association/__init__.py
# Location: rvcollapse/rvcollapse/association/__init__.py
"""
rvcollapse.association: rare variant collapsing and bias-correction core.

Public API
----------
CollapseConfig                   : Configuration dataclass
CollapsingStrategy               : Abstract base class for collapsing methods
get_collapser                    : Build a collapsing strategy from its name
FrequencySource                  : Read-through cache of per-marker frequencies
group_frequency                  : Frequency binning used by variable threshold
make_variable_threshold_genotype : Nested collapsed genotypes per frequency bin
obtain_b                         : Bias-correction integral b(alpha)
SingleVariantScoreTest           : Bias constant from the case:control ratio
CollapsingEngine                 : Config-driven front end
"""

from rvcollapse.association.base import CollapseConfig, CollapsingStrategy
from rvcollapse.association.bias import (
    ALPHA_SATURATION,
    BiasConstant,
    MetaCovFamBinary,
    MetaFamBinary,
    MetaUnrelatedBinary,
    SingleVariantScoreTest,
)
from rvcollapse.association.collapsing import get_collapser
from rvcollapse.association.engine import CollapsingEngine
from rvcollapse.association.frequency import FrequencySource, group_frequency
from rvcollapse.association.integration import obtain_b
from rvcollapse.association.variable_threshold import (
    VariableThresholdGenotype,
    make_variable_threshold_genotype,
)

__all__ = [
    "ALPHA_SATURATION",
    "BiasConstant",
    "CollapseConfig",
    "CollapsingEngine",
    "CollapsingStrategy",
    "FrequencySource",
    "MetaCovFamBinary",
    "MetaFamBinary",
    "MetaUnrelatedBinary",
    "SingleVariantScoreTest",
    "VariableThresholdGenotype",
    "get_collapser",
    "group_frequency",
    "make_variable_threshold_genotype",
    "obtain_b",
]
