import matplotlib
matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def microbiome():
    """Small relative-abundance data set: 10 samples, 100 taxa.

    The first five taxa are enriched in the six CRC samples.
    """
    rng = np.random.default_rng(0)
    n_samples, n_features = 10, 100

    counts = rng.poisson(rng.uniform(0.2, 4.0, n_features), size=(n_samples, n_features))
    counts[rng.integers(0, n_samples, n_features), np.arange(n_features)] += 1
    counts[:6, :5] += 20

    X_raw = pd.DataFrame(counts, columns=[f"taxon_{j}" for j in range(n_features)])
    X_scaled = X_raw.div(X_raw.sum(axis=1), axis=0)
    labels = np.array(["CRC"] * 6 + ["control"] * 4)
    return X_scaled, X_raw, labels


@pytest.fixture
def hadamard_design():
    """Orthogonal +-1 design (8 x 7) and response 2*h1 + 1*h2 + 0.5*h3."""
    H = np.array([[1]])
    for _ in range(3):
        H = np.block([[H, H], [H, -H]])
    X = H[:, 1:].astype(float)
    y = 2.0 * X[:, 0] + 1.0 * X[:, 1] + 0.5 * X[:, 2]
    return X, y


@pytest.fixture
def survival_data():
    rng = np.random.default_rng(1)
    n_samples, n_features = 40, 8
    X_raw = rng.poisson(3.0, size=(n_samples, n_features)) + 1
    X = (X_raw - X_raw.mean(axis=0)) / X_raw.std(axis=0)
    risk = np.exp(0.8 * X[:, 0] - 0.5 * X[:, 1])
    durations = rng.exponential(1.0 / risk)
    events = (rng.uniform(size=n_samples) < 0.7).astype(float)
    return X, X_raw, np.column_stack([durations, events])
