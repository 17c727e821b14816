"""
DBSCAN over cosine distance.

Neighbor queries are pairwise against a precomputed distance matrix; batches
are sequence uploads, not corpora, so no spatial index is used.

Labelling rules:
- points are visited in index order;
- a point whose eps-neighborhood (itself included) holds fewer than
  ``min_samples`` points is provisionally noise;
- a core point opens the next cluster id and the cluster grows breadth-first
  through every core point reached;
- provisional noise reached by an expansion joins that cluster, while a
  point already claimed by an earlier cluster keeps it.
"""

from collections import deque
from typing import List, Optional

import numpy as np
from loguru import logger

from seqcluster.clustering.vectors import pairwise_cosine_distances
from seqcluster.exceptions import ValidationError

NOISE = -1
DEFAULT_EPS = 0.2

_UNASSIGNED = -2


def resolve_eps(eps: Optional[float] = None) -> float:
    if eps is None:
        return DEFAULT_EPS
    eps = float(eps)
    if not eps > 0:
        raise ValidationError(f"eps must be > 0, got {eps}")
    return eps


def resolve_min_samples(n_samples: int, min_samples: Optional[int] = None) -> int:
    """Use the given value, else 1 for a single-row batch and 2 otherwise."""
    if min_samples is None:
        return 1 if n_samples == 1 else 2
    if int(min_samples) != min_samples or min_samples < 1:
        raise ValidationError(f"min_samples must be an integer >= 1, got {min_samples}")
    return int(min_samples)


def region_query(distances: np.ndarray, point: int, eps: float) -> np.ndarray:
    """Indices within ``eps`` of ``point``, in ascending order, always including it."""
    within = distances[point] <= eps
    within[point] = True
    return np.flatnonzero(within)


def run_dbscan(unit_vectors: np.ndarray, eps: float, min_samples: int) -> List[int]:
    """
    Cluster row-normalized vectors with DBSCAN under cosine distance.

    Args:
        unit_vectors: (n, d) array of unit (or zero) rows
        eps: Neighborhood radius in cosine distance, > 0
        min_samples: Neighborhood size (self included) that makes a core point

    Returns:
        list[int]: One label per row, cluster ids from 0 in discovery order, -1 for noise
    """
    if not eps > 0:
        raise ValidationError(f"eps must be > 0, got {eps}")
    if min_samples < 1:
        raise ValidationError(f"min_samples must be >= 1, got {min_samples}")

    n_points = len(unit_vectors)
    if n_points == 0:
        return []

    distances = pairwise_cosine_distances(unit_vectors)
    labels = [_UNASSIGNED] * n_points
    visited = [False] * n_points
    cluster_id = 0

    for point in range(n_points):
        if visited[point]:
            continue
        visited[point] = True

        neighbors = region_query(distances, point, eps)
        if len(neighbors) < min_samples:
            labels[point] = NOISE
            continue

        logger.debug(f"Core point {point} opens cluster {cluster_id} ({len(neighbors)} neighbors)")
        queue = deque(int(i) for i in neighbors)
        queued = set(queue)

        while queue:
            candidate = queue.popleft()
            if not visited[candidate]:
                visited[candidate] = True
                candidate_neighbors = region_query(distances, candidate, eps)
                if len(candidate_neighbors) >= min_samples:
                    for neighbor in candidate_neighbors:
                        neighbor = int(neighbor)
                        if neighbor not in queued:
                            queued.add(neighbor)
                            queue.append(neighbor)

            if labels[candidate] in (_UNASSIGNED, NOISE):
                labels[candidate] = cluster_id

        cluster_id += 1

    return labels


def count_clusters(labels: List[int]) -> int:
    return len({label for label in labels if label != NOISE})
