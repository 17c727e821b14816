from dataclasses import dataclass, field
from typing import List, Sequence

import pandas as pd

NOISE = -1


@dataclass
class ClusterAbundance:
    cluster: int
    count: int
    relative_abundance: float

    def to_dict(self) -> dict:
        return {
            "cluster": self.cluster,
            "count": self.count,
            "relativeAbundance": self.relative_abundance,
        }


@dataclass
class AbundanceSummary:
    """Per-cluster counts plus totals; noise is excluded from relative abundance."""
    summary: List[ClusterAbundance] = field(default_factory=list)
    total_sequences: int = 0
    clustered_sequences: int = 0
    noise_sequences: int = 0

    def to_dict(self) -> dict:
        return {
            "summary": [entry.to_dict() for entry in self.summary],
            "totalSequences": self.total_sequences,
            "clusteredSequences": self.clustered_sequences,
            "noiseSequences": self.noise_sequences,
        }


def summarize_abundance(labels: Sequence[int], n_points: int) -> AbundanceSummary:
    """
    Tally cluster labels into counts and relative abundances.

    Args:
        labels: One label per point, -1 for noise
        n_points: Total number of points in the run

    Returns:
        AbundanceSummary: Entries in ascending cluster id order
    """
    label_series = pd.Series(list(labels), dtype="int64")
    cluster_counts = label_series[label_series != NOISE].value_counts().sort_index()

    clustered = int(cluster_counts.sum())
    entries = [
        ClusterAbundance(
            cluster=int(cluster),
            count=int(count),
            relative_abundance=(int(count) / clustered) if clustered > 0 else 0.0,
        )
        for cluster, count in cluster_counts.items()
    ]

    return AbundanceSummary(
        summary=entries,
        total_sequences=n_points,
        clustered_sequences=clustered,
        noise_sequences=n_points - clustered,
    )
