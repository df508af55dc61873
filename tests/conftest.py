"""Shared pytest fixtures for all test modules."""

import numpy as np
import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast unit tests of a single module")
    config.addinivalue_line("markers", "integration: tests that run several modules together")


@pytest.fixture
def carrier_genotype() -> np.ndarray:
    """Three samples, two markers: one het, one hom-alt, one non-carrier."""
    return np.array([[0.0, 1.0], [2.0, 0.0], [0.0, 0.0]])


@pytest.fixture
def nested_genotype() -> np.ndarray:
    """Two samples, two markers at different frequencies."""
    return np.array([[1.0, 0.0], [0.0, 2.0]])


@pytest.fixture
def weighted_genotype() -> np.ndarray:
    """Three samples, two markers; allele frequencies 1/3 and 1/2."""
    return np.array([[1.0, 0.0], [0.0, 2.0], [1.0, 1.0]])


@pytest.fixture
def missing_genotype() -> np.ndarray:
    """Genotypes with both missing encodings: negative sentinel and NaN."""
    return np.array(
        [
            [-9.0, 0.0, 1.0],
            [np.nan, 1.0, 0.0],
            [-1.0, -1.0, np.nan],
        ]
    )


@pytest.fixture
def case_control_phenotype() -> np.ndarray:
    """One case followed by three controls."""
    return np.array([1.0, 0.0, 0.0, 0.0])


@pytest.fixture
def random_genotype() -> np.ndarray:
    """Sparse random 0/1/2 genotypes, 50 samples x 12 markers."""
    rng = np.random.default_rng(seed=7)
    return rng.choice([0.0, 1.0, 2.0], size=(50, 12), p=[0.85, 0.12, 0.03])
