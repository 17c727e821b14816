from .dnabert_client import DnabertClient, EmbeddingSource, normalize_fasta

__all__ = [
    "DnabertClient",
    "EmbeddingSource",
    "normalize_fasta",
]
