from unittest.mock import Mock

import pytest
import requests

from seqcluster.config import EmbeddingServiceSettings
from seqcluster.embedding.dnabert_client import DnabertClient, normalize_fasta
from seqcluster.exceptions import CollaboratorError

SERVICE_URL = "http://dnabert.test/predict"


def _response(status_code=200, body=None, json_error=None):
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return DnabertClient(SERVICE_URL, timeout=5.0, session=session)


class TestEmbedSequence:
    """Single-sequence requests."""

    def test_returns_one_row(self, client, session):
        session.post.return_value = _response(body={"embedding": [0.1, 0.2, 0.3]})

        rows = client.embed_sequence("ACGTACGT")

        assert rows == [[0.1, 0.2, 0.3]]
        session.post.assert_called_once_with(SERVICE_URL, json={"sequence": "ACGTACGT"}, timeout=5.0)

    def test_values_coerced_to_float(self, client, session):
        session.post.return_value = _response(body={"embedding": [1, "2.5", 3]})

        rows = client.embed_sequence("ACGT")

        assert rows == [[1.0, 2.5, 3.0]]
        assert all(isinstance(x, float) for x in rows[0])

    def test_non_success_status(self, client, session):
        session.post.return_value = _response(status_code=503)

        with pytest.raises(CollaboratorError, match="DNABERT request failed: 503") as exc_info:
            client.embed_sequence("ACGT")
        assert exc_info.value.status_code == 503

    def test_missing_embedding_field(self, client, session):
        session.post.return_value = _response(body={"vector": [1, 2]})

        with pytest.raises(CollaboratorError, match="missing embedding") as exc_info:
            client.embed_sequence("ACGT")
        assert exc_info.value.status_code == 200

    def test_non_numeric_embedding(self, client, session):
        session.post.return_value = _response(body={"embedding": ["a", "b"]})

        with pytest.raises(CollaboratorError):
            client.embed_sequence("ACGT")

    def test_invalid_json(self, client, session):
        session.post.return_value = _response(json_error=ValueError("Expecting value"))

        with pytest.raises(CollaboratorError, match="not valid JSON"):
            client.embed_sequence("ACGT")

    def test_timeout_is_collaborator_error(self, client, session):
        session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(CollaboratorError, match="timed out") as exc_info:
            client.embed_sequence("ACGT")
        assert isinstance(exc_info.value.cause, requests.Timeout)
        assert session.post.call_count == 1

    def test_connection_error_is_not_retried(self, client, session):
        session.post.side_effect = requests.ConnectionError("refused")

        with pytest.raises(CollaboratorError):
            client.embed_sequence("ACGT")
        assert session.post.call_count == 1

    @pytest.mark.parametrize("embedding, reason", [
        ([], "empty vector"),
        ([float("nan"), 1.0], "non-finite"),
        ([1.0, float("inf")], "non-finite"),
        (["nan", 1.0], "non-finite"),
    ])
    def test_unusable_vector_is_collaborator_error(self, client, session, embedding, reason):
        session.post.return_value = _response(body={"embedding": embedding})

        with pytest.raises(CollaboratorError, match=reason) as exc_info:
            client.embed_sequence("ACGT")
        assert exc_info.value.status_code == 200


class TestEmbedFasta:
    """Multi-record FASTA requests."""

    def test_returns_row_per_record(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 0], [0, 1]]})

        rows = client.embed_fasta(">a\nACGT\n>b\nTTGA\n")

        assert rows == [[1.0, 0.0], [0.0, 1.0]]

    def test_single_embedding_fallback(self, client, session):
        session.post.return_value = _response(body={"embedding": [0.5, 0.5]})

        assert client.embed_fasta(">a\nACGT") == [[0.5, 0.5]]

    def test_prefers_embeddings_field(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2]], "embedding": [9, 9]})

        assert client.embed_fasta(">a\nACGT") == [[1.0, 2.0]]

    def test_crlf_normalized_before_sending(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2]]})

        client.embed_fasta(">a\r\nACGT\r\n")

        session.post.assert_called_once_with(SERVICE_URL, json={"fasta": ">a\nACGT\n"}, timeout=5.0)

    def test_missing_embeddings(self, client, session):
        session.post.return_value = _response(body={"result": []})

        with pytest.raises(CollaboratorError, match="missing embeddings"):
            client.embed_fasta(">a\nACGT")

    def test_non_list_row(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2], "oops"]})

        with pytest.raises(CollaboratorError):
            client.embed_fasta(">a\nACGT\n>b\nACGT")

    def test_non_object_body(self, client, session):
        session.post.return_value = _response(body=[[1, 2]])

        with pytest.raises(CollaboratorError, match="not a JSON object"):
            client.embed_fasta(">a\nACGT")

    def test_ragged_rows_are_collaborator_error(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2, 3], [1, 2]]})

        with pytest.raises(CollaboratorError, match="different lengths") as exc_info:
            client.embed_fasta(">a\nACGT\n>b\nTTGA")
        assert exc_info.value.status_code == 200

    def test_empty_row_is_collaborator_error(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2], []]})

        with pytest.raises(CollaboratorError, match="empty vector"):
            client.embed_fasta(">a\nACGT\n>b\nTTGA")

    def test_non_finite_row_is_collaborator_error(self, client, session):
        session.post.return_value = _response(body={"embeddings": [[1, 2], [float("nan"), 0]]})

        with pytest.raises(CollaboratorError, match="non-finite"):
            client.embed_fasta(">a\nACGT\n>b\nTTGA")

    def test_no_records_returns_no_rows(self, client, session):
        session.post.return_value = _response(body={"embeddings": []})

        assert client.embed_fasta(">a\n") == []


def test_normalize_fasta():
    assert normalize_fasta(">a\r\nAC\rGT\n") == ">a\nAC\nGT\n"


def test_from_settings():
    client = DnabertClient.from_settings(EmbeddingServiceSettings(url=SERVICE_URL, timeout=12.0))

    assert client.url == SERVICE_URL
    assert client.timeout == 12.0
    assert isinstance(client.session, requests.Session)


def test_close_releases_session(session):
    with DnabertClient(SERVICE_URL, session=session) as client:
        assert client.session is session
        session.close.assert_not_called()

    session.close.assert_called_once()
