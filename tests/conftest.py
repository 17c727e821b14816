import sys
from pathlib import Path

import pytest

# Ensure the project root is on PYTHONPATH so tests can import "seqcluster"
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class FakeEmbeddingSource:
    """In-memory stand-in for the DNABERT service that records its calls."""

    def __init__(self, sequence_rows=None, fasta_rows=None, error=None):
        self.sequence_rows = sequence_rows if sequence_rows is not None else []
        self.fasta_rows = fasta_rows if fasta_rows is not None else []
        self.error = error
        self.calls = []

    def embed_sequence(self, sequence):
        self.calls.append(("sequence", sequence))
        if self.error:
            raise self.error
        return [list(row) for row in self.sequence_rows]

    def embed_fasta(self, fasta):
        self.calls.append(("fasta", fasta))
        if self.error:
            raise self.error
        return [list(row) for row in self.fasta_rows]


@pytest.fixture
def fake_source_factory():
    return FakeEmbeddingSource
