# File: rvcollapse/__init__.py
# Location: rvcollapse/rvcollapse/__init__.py

"""
rvcollapse Package.

This package provides the rare variant collapsing core of a genetic
association testing tool: burden-style aggregation of genotype matrices,
variable-threshold genotype families, and the bias-correction constants used
by binary-trait score and meta-analysis statistics.
"""

from .version import __version__
