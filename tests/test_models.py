"""
Tests for the metadata index document.
"""
from __future__ import annotations

import json

import pytest

from manifesto.models import ImageMetadata, MetadataEntry, MetadataIndex
from manifesto.storage.oci_errors import IndexDocumentError

IMAGE_A = "sha256:" + "a" * 64
IMAGE_B = "sha256:" + "b" * 64
BLOB_1 = "sha256:" + "1" * 64
BLOB_2 = "sha256:" + "2" * 64


class TestIndexOperations:
    """Test get/list_types/put semantics."""

    def test_get_after_put(self):
        index = MetadataIndex()
        index.put(IMAGE_A, "contacts", BLOB_1)

        assert index.get(IMAGE_A, "contacts") == MetadataEntry(type="contacts", digest=BLOB_1)

    def test_get_unknown_type_or_image(self):
        index = MetadataIndex()
        index.put(IMAGE_A, "contacts", BLOB_1)

        assert index.get(IMAGE_A, "cve") is None
        assert index.get(IMAGE_B, "contacts") is None

    def test_put_same_type_replaces(self):
        index = MetadataIndex()

        assert index.put(IMAGE_A, "contacts", BLOB_1) is False
        assert index.put(IMAGE_A, "contacts", BLOB_2) is True

        assert len(index.images) == 1
        assert index.images[0].entries == [MetadataEntry(type="contacts", digest=BLOB_2)]

    def test_put_new_type_appends(self):
        index = MetadataIndex()
        index.put(IMAGE_A, "contacts", BLOB_1)
        index.put(IMAGE_A, "cve", BLOB_2)

        assert index.list_types(IMAGE_A) == ["contacts", "cve"]
        assert len(index.images) == 1

    def test_put_new_image_appends_record(self):
        index = MetadataIndex()
        index.put(IMAGE_A, "contacts", BLOB_1)
        index.put(IMAGE_B, "contacts", BLOB_2)

        assert [image.image_digest for image in index.images] == [IMAGE_A, IMAGE_B]
        assert index.get(IMAGE_B, "contacts").digest == BLOB_2

    def test_list_types_unknown_image(self):
        assert MetadataIndex().list_types(IMAGE_A) == []

    def test_first_match_wins(self):
        """Test documents with duplicate entries resolve to the first one."""
        index = MetadataIndex(images=[ImageMetadata(image_digest=IMAGE_A, entries=[
            MetadataEntry(type="contacts", digest=BLOB_1),
            MetadataEntry(type="contacts", digest=BLOB_2),
        ])])

        assert index.get(IMAGE_A, "contacts").digest == BLOB_1
        index.put(IMAGE_A, "contacts", BLOB_2)
        assert [entry.digest for entry in index.images[0].entries] == [BLOB_2, BLOB_2]


class TestIndexDocument:
    """Test the stored JSON shape."""

    def test_wire_shape(self):
        index = MetadataIndex()
        index.put(IMAGE_A, "contacts", BLOB_1)

        assert json.loads(index.to_bytes()) == {
            "images": [{"image_digest": IMAGE_A, "manifesto": [{"type": "contacts", "digest": BLOB_1}]}]
        }

    def test_parse_stored_document(self):
        raw = json.dumps({
            "images": [{"image_digest": IMAGE_A, "manifesto": [{"type": "cve", "digest": BLOB_2}]}]
        }).encode()

        index = MetadataIndex.from_bytes(raw)

        assert index.get(IMAGE_A, "cve").digest == BLOB_2
        assert MetadataIndex.from_bytes(index.to_bytes()) == index

    @pytest.mark.parametrize("raw", [
        b'{"images": null}',
        b"{}",
        b'{"tags": [{"tag": "acme/widget:latest", "manifest": [{"type": "cve", "digest": "x"}]}]}',
        b'{"images": [{"image_tag": "latest", "manifesto": [{"type": "cve", "digest": "x"}]}]}',
        b'{"images": [{"manifesto": []}]}',
    ])
    def test_empty_and_legacy_documents_read_as_empty(self, raw):
        """Test that null images and tag-keyed documents hold no metadata."""
        index = MetadataIndex.from_bytes(raw)

        assert index.images == []
        assert index.list_types(IMAGE_A) == []

    @pytest.mark.parametrize("raw", [b"not json", b"\xff\xfe", b'{"images": [1,'])
    def test_invalid_document_raises(self, raw):
        with pytest.raises(IndexDocumentError):
            MetadataIndex.from_bytes(raw)
