"""
Unit-vector helpers for cosine-distance clustering.

Cosine distance between unit vectors reduces to ``1 - dot(a, b)``, so every
batch is scaled to unit length before PCA and again after projection.
"""

import numpy as np


def normalize_vector(vector: np.ndarray) -> np.ndarray:
    """
    Scale a vector to unit L2 length.

    A zero vector is returned unchanged (divisor forced to 1), so the
    operation never fails.

    Args:
        vector: 1-D numeric array

    Returns:
        numpy.ndarray: Unit-length copy of ``vector`` (or the zero vector)
    """
    vector = np.asarray(vector, dtype=float)
    norm = float(np.sqrt(np.sum(vector * vector))) or 1.0
    return vector / norm


def to_unit_vectors(matrix: np.ndarray) -> np.ndarray:
    """Row-wise ``normalize_vector`` over an (n, d) matrix."""
    matrix = np.asarray(matrix, dtype=float)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got shape {matrix.shape}")

    norms = np.sqrt(np.sum(matrix * matrix, axis=1, keepdims=True))
    norms[norms == 0] = 1.0
    return matrix / norms


def cosine_distance(a: np.ndarray, b: np.ndarray) -> float:
    # unit vectors: similarity is the dot product
    return 1.0 - float(np.dot(a, b))


def pairwise_cosine_distances(unit_matrix: np.ndarray) -> np.ndarray:
    """
    All-pairs cosine distance for row-normalized vectors.

    Zero rows (points sitting exactly on the batch centroid after PCA) have
    no direction. They are placed at distance 0 from each other and from
    themselves, and at distance 1 from every directed row.

    Args:
        unit_matrix: (n, d) array whose rows are unit length or zero

    Returns:
        numpy.ndarray: (n, n) symmetric distance matrix in [0, 2]
    """
    unit_matrix = np.asarray(unit_matrix, dtype=float)
    distances = 1.0 - unit_matrix @ unit_matrix.T
    np.clip(distances, 0.0, 2.0, out=distances)

    zero_rows = ~np.any(unit_matrix, axis=1)
    if zero_rows.any():
        distances[np.ix_(zero_rows, zero_rows)] = 0.0
    np.fill_diagonal(distances, 0.0)
    return distances
