from fastapi import FastAPI, UploadFile, File, Form, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Iterator, Optional
from loguru import logger

from seqcluster import __version__
from seqcluster.api import schemas
from seqcluster.clustering.pipeline import run_clustering
from seqcluster.config import get_embedding_service_settings, get_log_settings, load_config
from seqcluster.embedding.dnabert_client import DnabertClient, EmbeddingSource
from seqcluster.exceptions import (
    CollaboratorError,
    DimensionMismatchError,
    EmptyInputError,
    InternalComputationError,
    SeqClusterError,
    ValidationError,
)
from seqcluster.utils.logging_setup import setup_logging

FASTA_EXTENSIONS = ('.fa', '.fasta', '.txt')
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ERROR_STATUS = {
    ValidationError: 400,
    DimensionMismatchError: 400,
    EmptyInputError: 400,
    CollaboratorError: 502,
    InternalComputationError: 500,
}

ERROR_RESPONSES = {
    400: {"model": schemas.ErrorResponse, "description": "Invalid input"},
    500: {"model": schemas.ErrorResponse, "description": "Internal clustering error"},
    502: {"model": schemas.ErrorResponse, "description": "Embedding service failure"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    logs_dir, level = get_log_settings(load_config())
    setup_logging(logs_dir, level)
    logger.info(f"SeqCluster API {__version__} starting")
    yield


app = FastAPI(title="SeqCluster API", version=__version__, lifespan=lifespan)


def get_embedding_source() -> Iterator[EmbeddingSource]:
    """Embedding service client for one request, closed once the response is sent."""
    client = DnabertClient.from_settings(get_embedding_service_settings())
    try:
        yield client
    finally:
        client.close()


@app.exception_handler(SeqClusterError)
async def seqcluster_error_handler(request: Request, exc: SeqClusterError):
    status_code = ERROR_STATUS.get(type(exc), 500)
    if status_code == 500:
        logger.error(f"Clustering failed on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal clustering error"})

    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.message, "details": jsonable_encoder(exc.details) or None}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": {"errors": jsonable_encoder(exc.errors())}}
    )


def _run(request: schemas.ClusteringRequest, embedding_source: EmbeddingSource) -> schemas.ClusteringResponse:
    result = run_clustering(
        embeddings=request.embeddings,
        sequence=request.sequence,
        fasta=request.fasta,
        pca_components=request.pca_components,
        eps=request.eps,
        min_samples=request.min_samples,
        embedding_source=embedding_source,
    )
    return schemas.ClusteringResponse.model_validate(result.to_dict())


@app.post("/api/clustering", response_model=schemas.ClusteringResponse, responses=ERROR_RESPONSES)
def cluster_embeddings(
    request: schemas.ClusteringRequest,
    embedding_source: EmbeddingSource = Depends(get_embedding_source)
):
    """Cluster explicit embeddings and/or DNABERT embeddings of a sequence or FASTA block."""
    return _run(request, embedding_source)


@app.post("/api/clustering/fasta", response_model=schemas.ClusteringResponse, responses=ERROR_RESPONSES)
def cluster_fasta_file(
    file: UploadFile = File(...),
    pca_components: Optional[int] = Form(None, alias="pcaComponents", ge=1, le=200),
    eps: Optional[float] = Form(None, gt=0),
    min_samples: Optional[int] = Form(None, alias="minSamples", ge=1),
    embedding_source: EmbeddingSource = Depends(get_embedding_source)
):
    """Cluster the records of an uploaded FASTA file."""
    if not file.filename or not file.filename.lower().endswith(FASTA_EXTENSIONS):
        raise ValidationError(f"Invalid file type: {file.filename}")

    max_bytes = load_config().get('api', {}).get('max_upload_bytes', DEFAULT_MAX_UPLOAD_BYTES)
    raw = file.file.read(max_bytes + 1)
    if len(raw) > max_bytes:
        raise ValidationError(f"FASTA file exceeds {max_bytes} bytes", details={"max_bytes": max_bytes})

    try:
        fasta = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"FASTA file is not valid UTF-8: {file.filename}", cause=e)
    if not fasta.strip():
        raise ValidationError("Enter FASTA content")

    logger.info(f"Received FASTA upload {Path(file.filename).name} ({len(raw)} bytes)")
    request = schemas.ClusteringRequest(
        fasta=fasta,
        pca_components=pca_components,
        eps=eps,
        min_samples=min_samples,
    )
    return _run(request, embedding_source)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "seqcluster-api",
        "version": __version__,
        "features": ["embedding_clustering", "sequence_embedding", "fasta_upload"]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
