"""
PCA projection of unit-normalized embeddings.

Columns are centered but not scaled; principal axes come from a thin SVD of
the centered batch, ordered by descending explained variance.
"""

from typing import Optional, Tuple

import numpy as np
from loguru import logger

from seqcluster.exceptions import EmptyInputError

MAX_PCA_COMPONENTS = 200
DEFAULT_PCA_COMPONENTS = 20

# Rows are unit length, so singular values below this carry only rounding noise.
_SINGULAR_VALUE_TOL = 1e-10


def resolve_pca_components(
    n_samples: int,
    n_features: int,
    requested: Optional[int] = None
) -> int:
    """
    Number of principal components to keep.

    ``max = min(n_features, max(1, n_samples - 1), 200)``; the request (or
    ``min(20, max)`` when omitted) is clamped into ``[1, max]``.
    """
    max_components = max(1, min(n_features, max(1, n_samples - 1), MAX_PCA_COMPONENTS))
    if requested is None:
        requested = min(DEFAULT_PCA_COMPONENTS, max_components)
    return min(max_components, max(1, int(requested)))


def fit_and_project(
    batch: np.ndarray,
    requested_components: Optional[int] = None
) -> Tuple[np.ndarray, int]:
    """
    Fit PCA on ``batch`` and project every row onto the top axes.

    Args:
        batch: (n, d) array of unit-normalized vectors
        requested_components: Desired component count, clamped to the valid range

    Returns:
        tuple: (reduced (n, components) array, components used)

    Raises:
        EmptyInputError: If the batch has no rows
    """
    batch = np.asarray(batch, dtype=float)
    if batch.ndim != 2 or batch.shape[0] == 0:
        raise EmptyInputError("Cannot fit PCA on an empty batch")

    n_samples, n_features = batch.shape
    components = resolve_pca_components(n_samples, n_features, requested_components)
    logger.debug(f"PCA: {n_samples}x{n_features} -> {components} components")

    centered = batch - batch.mean(axis=0)
    _, singular_values, vt = np.linalg.svd(centered, full_matrices=False)
    axes = vt[:components]

    # Deterministic sign: largest-magnitude loading of each axis is positive
    max_abs_cols = np.argmax(np.abs(axes), axis=1)
    signs = np.sign(axes[np.arange(components), max_abs_cols])
    signs[signs == 0] = 1.0
    axes = axes * signs[:, np.newaxis]

    reduced = centered @ axes.T

    # Directions with no variance only project rounding noise
    negligible = singular_values[:components] <= _SINGULAR_VALUE_TOL
    if negligible.any():
        reduced[:, negligible] = 0.0

    return reduced, components
