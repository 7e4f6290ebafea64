"""
Tests for content-addressed blob transfer.
"""
from __future__ import annotations

import hashlib

import httpx
import pytest

from manifesto.storage.blobs import BlobStore, compute_digest
from manifesto.storage.oci_errors import UnexpectedStatusError
from manifesto.storage.registry_http import RegistryHTTP
from tests.storage.fakes.fake_registry import FakeRegistry


@pytest.fixture
def registry():
    return FakeRegistry(require_token=True)


@pytest.fixture
def blobs(registry):
    http = RegistryHTTP("example.com", transport=registry.transport)
    yield BlobStore(http)
    http.close()


class TestComputeDigest:
    """Test digest computation."""

    def test_known_value(self):
        assert compute_digest(b"") == (
            "sha256:e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    @pytest.mark.parametrize("data", [b"", b"a", b"\x00" * 1000, bytes(range(256))])
    def test_format(self, data):
        digest = compute_digest(data)

        assert len(digest) == 71
        assert digest.startswith("sha256:")
        assert digest[7:] == hashlib.sha256(data).hexdigest()
        assert digest == compute_digest(data)

    def test_single_byte_difference(self):
        assert compute_digest(b"metadata-a") != compute_digest(b"metadata-b")


class TestBlobStore:
    """Test upload and download against the fake registry."""

    @pytest.mark.parametrize("data", [b"", b'{"contacts": ["ops@example.com"]}', bytes(range(256)) * 64])
    def test_round_trip(self, blobs, data):
        digest = blobs.upload("acme/widget", data)

        assert digest == compute_digest(data)
        assert blobs.download("acme/widget", digest) == data

    def test_upload_appends_digest_to_existing_query(self, blobs, registry):
        digest = blobs.upload("acme/widget", b"data")

        put = [r for r in registry.registry_requests() if r.method == "PUT"][-1]
        assert put.url.params["_state"] == "opaque"
        assert put.url.params["digest"] == digest
        assert put.headers["Content-Type"] == "application/octet-stream"

    def test_upload_to_absolute_location(self):
        registry = FakeRegistry(absolute_location=True)
        with RegistryHTTP("example.com", transport=registry.transport) as http:
            digest = BlobStore(http).upload("acme/widget", b"data")

        assert registry.blobs["acme/widget"][digest] == b"data"

    def test_upload_without_query_uses_question_mark(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(202, headers={"Location": "/v2/acme/widget/blobs/uploads/abc"})
            assert list(request.url.params.keys()) == ["digest"]
            assert request.url.params["digest"] == compute_digest(b"x")
            return httpx.Response(201)

        with RegistryHTTP("example.com", transport=httpx.MockTransport(handler)) as http:
            assert BlobStore(http).upload("acme/widget", b"x") == compute_digest(b"x")

    def test_initiate_not_accepted(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        with RegistryHTTP("example.com", transport=transport) as http:
            with pytest.raises(UnexpectedStatusError) as exc_info:
                BlobStore(http).upload("acme/widget", b"x")

        assert exc_info.value.operation == "initiate upload"
        assert exc_info.value.status_code == 404

    def test_complete_not_created(self):
        def handler(request):
            if request.method == "POST":
                return httpx.Response(202, headers={"Location": "/v2/acme/widget/blobs/uploads/abc"})
            return httpx.Response(400)

        with RegistryHTTP("example.com", transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(UnexpectedStatusError) as exc_info:
                BlobStore(http).upload("acme/widget", b"x")

        assert exc_info.value.operation == "complete upload"
        assert exc_info.value.status_code == 400

    def test_download_missing_blob(self, blobs):
        with pytest.raises(UnexpectedStatusError) as exc_info:
            blobs.download("acme/widget", compute_digest(b"never uploaded"))

        assert exc_info.value.operation == "fetch blob"
        assert exc_info.value.status_code == 404

    def test_upload_and_download_share_one_token(self, blobs, registry):
        digest = blobs.upload("acme/widget", b"data")
        blobs.download("acme/widget", digest)

        assert len(registry.token_requests) == 1
