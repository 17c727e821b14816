"""
SeqCluster Clustering Module

Groups sequence embeddings into clusters of similar items:

- vectors.py: unit-vector normalization and cosine distance
- reduction.py: PCA projection with bounded component count
- dbscan.py: density-based clustering over cosine distance
- abundance.py: per-cluster counts and relative abundance
- pipeline.py: input resolution and the end-to-end run
"""

from .abundance import AbundanceSummary, ClusterAbundance, summarize_abundance
from .dbscan import DEFAULT_EPS, NOISE, resolve_eps, resolve_min_samples, run_dbscan
from .pipeline import ClusteringResult, load_embedding_matrix, resolve_input_vectors, run_clustering
from .reduction import fit_and_project, resolve_pca_components
from .vectors import cosine_distance, normalize_vector, pairwise_cosine_distances, to_unit_vectors

__all__ = [
    "AbundanceSummary",
    "ClusterAbundance",
    "ClusteringResult",
    "DEFAULT_EPS",
    "NOISE",
    "cosine_distance",
    "fit_and_project",
    "load_embedding_matrix",
    "normalize_vector",
    "pairwise_cosine_distances",
    "resolve_eps",
    "resolve_input_vectors",
    "resolve_min_samples",
    "resolve_pca_components",
    "run_clustering",
    "run_dbscan",
    "summarize_abundance",
    "to_unit_vectors",
]
