"""
SeqCluster Clustering Pipeline

Complete flow: input vectors (explicit and/or DNABERT) → unit vectors → PCA →
unit vectors → DBSCAN (cosine) → abundance summary

Input resolution happens first and fails fast; nothing numeric runs until a
single, consistent VectorBatch exists. Failures inside the numeric stages are
reported as InternalComputationError and no partial labels are returned.
"""

import json
import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from seqcluster.clustering.abundance import AbundanceSummary, summarize_abundance
from seqcluster.clustering.dbscan import count_clusters, resolve_eps, resolve_min_samples, run_dbscan
from seqcluster.clustering.reduction import MAX_PCA_COMPONENTS, fit_and_project
from seqcluster.clustering.vectors import to_unit_vectors
from seqcluster.embedding.dnabert_client import EmbeddingSource
from seqcluster.exceptions import (
    DimensionMismatchError,
    EmptyInputError,
    InternalComputationError,
    SeqClusterError,
    ValidationError,
)


@dataclass
class ClusteringResult:
    labels: List[int]
    clusters_count: int
    abundance: AbundanceSummary
    pca_components: int
    eps: float
    min_samples: int
    embedding_dimension: int = 0
    sources: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Response shape of the clustering endpoint."""
        return {
            "labels": list(self.labels),
            "clustersCount": self.clusters_count,
            "abundance": self.abundance.to_dict(),
            "pcaComponents": self.pca_components,
            "eps": self.eps,
            "minSamples": self.min_samples,
        }


def _check_rows(rows: Sequence[Sequence[float]], origin: str) -> None:
    """Every row non-empty, finite and as long as the first one."""
    if not rows:
        return
    width = len(rows[0])
    if width == 0:
        raise ValidationError(f"{origin} vectors must not be empty")
    for index, row in enumerate(rows):
        if len(row) != width:
            raise DimensionMismatchError(
                f"All {origin} vectors must have the same length "
                f"(row {index} has {len(row)}, expected {width})",
                expected=width,
                actual=len(row)
            )
        try:
            finite = all(math.isfinite(value) for value in row)
        except TypeError as e:
            raise ValidationError(f"{origin} vector at row {index} contains non-numeric values", cause=e)
        if not finite:
            raise ValidationError(f"{origin} vector at row {index} contains non-finite values")


def _validate_parameters(
    pca_components: Optional[int],
    eps: Optional[float],
    min_samples: Optional[int]
) -> None:
    if pca_components is not None and not 1 <= pca_components <= MAX_PCA_COMPONENTS:
        raise ValidationError(f"pca_components must be between 1 and {MAX_PCA_COMPONENTS}, got {pca_components}")
    if eps is not None and not eps > 0:
        raise ValidationError(f"eps must be > 0, got {eps}")
    if min_samples is not None and min_samples < 1:
        raise ValidationError(f"min_samples must be >= 1, got {min_samples}")


def resolve_input_vectors(
    embeddings: Optional[Sequence[Sequence[float]]] = None,
    sequence: Optional[str] = None,
    fasta: Optional[str] = None,
    embedding_source: Optional[EmbeddingSource] = None
) -> tuple[np.ndarray, Dict[str, int]]:
    """
    Merge explicit rows with collaborator-derived rows into one batch.

    Explicit rows come first, then the sequence row, then FASTA rows.

    Args:
        embeddings: Explicit embedding matrix
        sequence: Single DNA sequence to embed
        fasta: FASTA block, one embedding per record
        embedding_source: Collaborator used for sequence / FASTA input

    Returns:
        tuple: ((n, d) float array, row count per source)

    Raises:
        ValidationError: If no input is given, a string input is empty or
            explicit rows are not numeric
        DimensionMismatchError: If row lengths disagree
        CollaboratorError: If the embedding service fails
        EmptyInputError: If no rows remain after merging
    """
    if embeddings is None and sequence is None and fasta is None:
        raise ValidationError("Provide either embeddings, sequence or fasta")
    if sequence is not None and not sequence:
        raise ValidationError("sequence must not be empty")
    if fasta is not None and not fasta:
        raise ValidationError("fasta must not be empty")

    try:
        explicit = [list(row) for row in embeddings] if embeddings is not None else []
    except TypeError as e:
        raise ValidationError("embeddings must be a list of numeric rows", cause=e)
    _check_rows(explicit, "embedding")

    if (sequence is not None or fasta is not None) and embedding_source is None:
        raise ValidationError("sequence/fasta input requires an embedding source")

    fetched: List[List[float]] = []
    sources = {"explicit": len(explicit), "sequence": 0, "fasta": 0}
    if sequence is not None:
        sequence_rows = embedding_source.embed_sequence(sequence)
        sources["sequence"] = len(sequence_rows)
        fetched.extend(sequence_rows)
    if fasta is not None:
        fasta_rows = embedding_source.embed_fasta(fasta)
        sources["fasta"] = len(fasta_rows)
        fetched.extend(fasta_rows)

    rows = explicit + fetched
    if not rows:
        raise EmptyInputError("No embedding vectors to cluster")

    width = len(rows[0])
    for row in fetched:
        if len(row) != width:
            raise DimensionMismatchError(
                f"Sequence embedding dimension does not match other vectors ({len(row)} vs {width})",
                expected=width,
                actual=len(row)
            )

    return np.asarray(rows, dtype=float), sources


def run_clustering(
    embeddings: Optional[Sequence[Sequence[float]]] = None,
    sequence: Optional[str] = None,
    fasta: Optional[str] = None,
    pca_components: Optional[int] = None,
    eps: Optional[float] = None,
    min_samples: Optional[int] = None,
    embedding_source: Optional[EmbeddingSource] = None
) -> ClusteringResult:
    """
    Run the complete embedding-to-clusters pipeline.

    Args:
        embeddings: Explicit embedding matrix (rows of equal length)
        sequence: Single DNA sequence, embedded via ``embedding_source``
        fasta: FASTA block, embedded via ``embedding_source``
        pca_components: Requested PCA components (1-200), clamped to the batch
        eps: DBSCAN radius in cosine distance (default 0.2)
        min_samples: DBSCAN core-point threshold (default 1 for one row, else 2)
        embedding_source: DNABERT client or any EmbeddingSource

    Returns:
        ClusteringResult: Labels, cluster count, abundance and the parameters used
    """
    _validate_parameters(pca_components, eps, min_samples)

    logger.info("Step 1: Resolving input vectors")
    vectors, sources = resolve_input_vectors(embeddings, sequence, fasta, embedding_source)
    n_points, dimension = vectors.shape
    logger.info(f"Resolved {n_points} vectors of dimension {dimension} (sources: {sources})")

    epsilon = resolve_eps(eps)
    min_pts = resolve_min_samples(n_points, min_samples)

    try:
        logger.info("Step 2: Normalizing to unit vectors")
        unit_vectors = to_unit_vectors(vectors)

        logger.info("Step 3: PCA reduction")
        reduced, components = fit_and_project(unit_vectors, pca_components)
        reduced_unit = to_unit_vectors(reduced)

        logger.info(f"Step 4: DBSCAN (eps={epsilon}, min_samples={min_pts}, components={components})")
        labels = run_dbscan(reduced_unit, epsilon, min_pts)

        logger.info("Step 5: Abundance summary")
        abundance = summarize_abundance(labels, n_points)
    except SeqClusterError:
        raise
    except Exception as e:
        logger.error(f"Clustering computation failed: {str(e)}")
        raise InternalComputationError("Clustering computation failed", cause=e) from e

    clusters_count = count_clusters(labels)
    logger.info(
        f"Clustering completed: {clusters_count} clusters found, "
        f"{abundance.noise_sequences} noise points out of {n_points}"
    )

    return ClusteringResult(
        labels=labels,
        clusters_count=clusters_count,
        abundance=abundance,
        pca_components=components,
        eps=epsilon,
        min_samples=min_pts,
        embedding_dimension=dimension,
        sources=sources,
    )


def load_embedding_matrix(filepath: str) -> np.ndarray:
    """
    Load an embedding matrix from a ``.npy`` file or a headerless CSV.

    Raises:
        FileNotFoundError: If the input file doesn't exist
        ValueError: If the file holds non-numeric data
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Embedding file not found: {filepath}")

    logger.info(f"Loading embeddings from {filepath}")
    if path.suffix == ".npy":
        matrix = np.load(path)
    else:
        df = pd.read_csv(path, header=None)
        if not all(pd.api.types.is_numeric_dtype(dtype) for dtype in df.dtypes):
            raise ValueError(f"Embedding file contains non-numeric columns: {filepath}")
        matrix = df.to_numpy(dtype=float)

    matrix = np.atleast_2d(matrix)
    logger.info(f"Loaded embedding matrix with shape {matrix.shape}")
    return matrix


def _parse_cli_args(argv: List[str]) -> dict:
    options = {"pca_components": None, "eps": None, "min_samples": None}
    flags = {"--pca-components": ("pca_components", int), "--eps": ("eps", float), "--min-samples": ("min_samples", int)}
    positional = []
    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg in flags:
            if i + 1 >= len(argv):
                raise SystemExit(f"Missing value for {arg}")
            name, cast = flags[arg]
            options[name] = cast(argv[i + 1])
            i += 2
        else:
            positional.append(arg)
            i += 1
    if len(positional) != 1:
        raise SystemExit(
            "Usage: python -m seqcluster.clustering.pipeline <embeddings.csv|.npy> "
            "[--eps X] [--min-samples N] [--pca-components K]"
        )
    options["filepath"] = positional[0]
    return options


def main(argv: Optional[List[str]] = None) -> int:
    from seqcluster.utils.logging_setup import setup_logging

    options = _parse_cli_args(sys.argv[1:] if argv is None else argv)
    setup_logging(level="INFO")

    try:
        matrix = load_embedding_matrix(options.pop("filepath"))
        result = run_clustering(embeddings=matrix.tolist(), **options)
    except (SeqClusterError, FileNotFoundError, ValueError) as e:
        logger.error(f"Clustering failed: {str(e)}")
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
