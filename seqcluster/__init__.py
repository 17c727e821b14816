"""SeqCluster: density-based clustering of sequence embeddings."""

__version__ = "1.0.0"
