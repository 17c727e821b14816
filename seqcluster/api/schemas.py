from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ClusteringRequest(BaseModel):
    """Request body for the clustering endpoint; at least one input is required."""
    model_config = ConfigDict(populate_by_name=True)

    embeddings: Optional[List[List[float]]] = Field(None, description="Explicit embedding matrix, rows of equal length")
    sequence: Optional[str] = Field(None, min_length=1, description="Single DNA sequence to embed")
    fasta: Optional[str] = Field(None, min_length=1, description="FASTA block, one embedding per record")
    pca_components: Optional[int] = Field(None, alias="pcaComponents", ge=1, le=200, description="Requested PCA components")
    eps: Optional[float] = Field(None, gt=0, description="DBSCAN radius in cosine distance")
    min_samples: Optional[int] = Field(None, alias="minSamples", ge=1, description="DBSCAN core-point threshold")


class ClusterAbundanceEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cluster: int = Field(..., ge=0, description="Cluster ID")
    count: int = Field(..., ge=0, description="Number of sequences in cluster")
    relative_abundance: float = Field(..., alias="relativeAbundance", ge=0, le=1, description="Share of clustered sequences")


class Abundance(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: List[ClusterAbundanceEntry] = Field(default_factory=list, description="Per-cluster entries, ascending cluster id")
    total_sequences: int = Field(..., alias="totalSequences", ge=0)
    clustered_sequences: int = Field(..., alias="clusteredSequences", ge=0)
    noise_sequences: int = Field(..., alias="noiseSequences", ge=0)


class ClusteringResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    labels: List[int] = Field(..., description="Cluster ID per input row (-1 for noise)")
    clusters_count: int = Field(..., alias="clustersCount", ge=0)
    abundance: Abundance
    pca_components: int = Field(..., alias="pcaComponents", ge=1, description="PCA components actually used")
    eps: float = Field(..., gt=0, description="eps actually used")
    min_samples: int = Field(..., alias="minSamples", ge=1, description="min_samples actually used")


class ErrorResponse(BaseModel):
    error: str
    details: Optional[dict] = None
