"""
Client for the DNABERT embedding service.

The service embeds DNA outside this process:

    POST {"sequence": "..."}  ->  {"embedding": [...]}
    POST {"fasta": "..."}     ->  {"embeddings": [[...], ...]}  (or {"embedding": [...]})

Any non-success status, transport failure, timeout or unexpected body is
raised as CollaboratorError. Calls are never retried.
"""

import math
from typing import Any, List, Optional, Protocol

import requests
from loguru import logger

from seqcluster.config import DEFAULT_EMBEDDING_TIMEOUT, EmbeddingServiceSettings
from seqcluster.exceptions import CollaboratorError


class EmbeddingSource(Protocol):
    """
    Anything that turns a sequence or a FASTA block into embedding rows.

    Rows returned by one call are non-empty, finite and of equal length;
    a reply that breaks this is raised as CollaboratorError.
    """

    def embed_sequence(self, sequence: str) -> List[List[float]]:
        ...

    def embed_fasta(self, fasta: str) -> List[List[float]]:
        ...


def normalize_fasta(fasta: str) -> str:
    """Convert Windows/old-Mac line endings to ``\\n``."""
    return fasta.replace("\r\n", "\n").replace("\r", "\n")


def _to_vector(values: Any, field: str, status: Optional[int] = None) -> List[float]:
    """One non-empty, finite embedding row from a response field."""
    if not isinstance(values, list):
        raise CollaboratorError(f"DNABERT response field '{field}' is not a list", status_code=status)
    if not values:
        raise CollaboratorError(f"DNABERT response field '{field}' holds an empty vector", status_code=status)
    try:
        vector = [float(x) for x in values]
    except (TypeError, ValueError) as e:
        raise CollaboratorError(
            f"DNABERT response field '{field}' contains non-numeric values",
            status_code=status,
            cause=e
        )
    if not all(math.isfinite(x) for x in vector):
        raise CollaboratorError(f"DNABERT response field '{field}' contains non-finite values", status_code=status)
    return vector


class DnabertClient:
    """Blocking HTTP client for the embedding service."""

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_EMBEDDING_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: EmbeddingServiceSettings) -> "DnabertClient":
        return cls(url=settings.url, timeout=settings.timeout)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "DnabertClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _post(self, payload: dict) -> tuple[dict, int]:
        kind = next(iter(payload))
        logger.info(f"Requesting DNABERT embeddings ({kind}, {len(payload[kind])} chars) from {self.url}")
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"DNABERT request timed out after {self.timeout}s")
            raise CollaboratorError(f"DNABERT request timed out after {self.timeout}s", cause=e)
        except requests.RequestException as e:
            logger.error(f"DNABERT request failed: {e}")
            raise CollaboratorError("DNABERT request failed", cause=e)

        if not response.ok:
            logger.error(f"DNABERT request failed: {response.status_code}")
            raise CollaboratorError(
                f"DNABERT request failed: {response.status_code}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            raise CollaboratorError("DNABERT response is not valid JSON", status_code=response.status_code, cause=e)
        if not isinstance(body, dict):
            raise CollaboratorError("DNABERT response is not a JSON object", status_code=response.status_code)
        return body, response.status_code

    def embed_sequence(self, sequence: str) -> List[List[float]]:
        """Embed a single sequence; returns exactly one row."""
        body, status = self._post({"sequence": sequence})
        if "embedding" not in body:
            raise CollaboratorError("DNABERT response missing embedding", status_code=status)
        return [_to_vector(body["embedding"], "embedding", status)]

    def embed_fasta(self, fasta: str) -> List[List[float]]:
        """Embed every record of a FASTA block; one row per record."""
        body, status = self._post({"fasta": normalize_fasta(fasta)})

        if isinstance(body.get("embeddings"), list):
            rows = [_to_vector(row, "embeddings", status) for row in body["embeddings"]]
        elif isinstance(body.get("embedding"), list):
            rows = [_to_vector(body["embedding"], "embedding", status)]
        else:
            raise CollaboratorError("DNABERT response missing embeddings", status_code=status)

        widths = sorted({len(row) for row in rows})
        if len(widths) > 1:
            raise CollaboratorError(
                f"DNABERT returned FASTA embeddings of different lengths {widths}",
                status_code=status
            )

        logger.info(f"DNABERT returned {len(rows)} FASTA embeddings")
        return rows
