"""
Tests for object-store key handling

Tests cover:
- Key layout and URL round trip for bucket objects
- Keys and bucket URLs confined to the owning entity's prefix
"""
import pytest

from estate_crm.core.errors import Forbidden
from estate_crm.services.storage_service import StorageService

BUCKET_URL = "https://test-bucket.s3.eu-central-1.amazonaws.com"


class TestKeys:

    def test_build_key_layout(self):
        key = StorageService.build_key("leads", "l-1", "files", "Contract final.pdf")
        assert key.startswith("leads/l-1/files/")
        assert key.endswith("Contract-final.pdf")
        assert StorageService.key_from_url(StorageService.object_url(key)) == key

    def test_foreign_hosts_have_no_key(self):
        assert StorageService.key_from_url("https://elsewhere.example/a.jpg") is None
        assert StorageService.key_from_url("") is None


class TestOwnership:

    def test_owns_only_own_prefix(self):
        assert StorageService.owns_key("properties", "p-1", "properties/p-1/files/a.pdf")
        assert not StorageService.owns_key("properties", "p-1", "properties/p-2/files/a.pdf")
        assert not StorageService.owns_key("properties", "p-1", "properties/p-10/files/a.pdf")
        assert not StorageService.owns_key("properties", "p-1", "leads/p-1/files/a.pdf")
        assert not StorageService.owns_key("properties", "p-1", "properties/p-1/../p-2/a.pdf")
        assert not StorageService.owns_key("properties", "p-1", None)

    def test_require_owned_key_rejects_foreign_key(self):
        with pytest.raises(Forbidden) as exc_info:
            StorageService.require_owned_key("apartments", "a-1", "apartments/a-2/documents/x.pdf")
        assert exc_info.value.message == "File access denied"

    def test_require_owned_url(self):
        own = f"{BUCKET_URL}/properties/p-1/images/a.jpg"
        assert StorageService.require_owned_url("properties", "p-1", own) == "properties/p-1/images/a.jpg"
        assert StorageService.require_owned_url("properties", "p-1", "https://cdn.example/a.jpg") is None
        with pytest.raises(Forbidden):
            StorageService.require_owned_url(
                "properties", "p-1", f"{BUCKET_URL}/properties/p-2/images/a.jpg"
            )


class TestUploads:

    async def test_uploads_only_through_presigned_put(self, fake_s3):
        assert not hasattr(StorageService, "put")
        url = await StorageService.presign_upload("leads/l-1/files/a.pdf", "application/pdf", ttl=60)
        assert url == "https://signed.example/put_object/leads/l-1/files/a.pdf?ttl=60"
        assert fake_s3.deleted == []
