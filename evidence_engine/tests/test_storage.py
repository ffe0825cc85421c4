"""
Tests for Object Storage
========================

Local filesystem backend with JWT-signed links, and the S3 backend against
a mocked boto3 client.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from evidence_engine.config import Settings
from evidence_engine.storage import (
    LocalStorage,
    S3Storage,
    StorageError,
    content_disposition,
    generate_report_key,
    get_storage,
)


@pytest.fixture
def local(tmp_path):
    return LocalStorage(str(tmp_path / "store"), "http://files.test/", "test-secret")


def token_of(url: str) -> str:
    return url.rsplit("/files/", 1)[1]


class TestLocalStorage:
    """Tests for LocalStorage"""

    def test_put_get(self, local):
        local.put("cases/c1/generated/r.pdf", b"%PDF-1.4 data", "application/pdf")
        assert local.get("cases/c1/generated/r.pdf") == b"%PDF-1.4 data"

    def test_put_leaves_no_partial_file(self, local):
        local.put("cases/c1/a.pdf", b"x", "application/pdf")
        assert [p.name for p in (local.root / "cases" / "c1").iterdir()] == ["a.pdf"]

    def test_failed_rename_removes_partial_file(self, local, monkeypatch):
        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("evidence_engine.storage.os.replace", failing_replace)

        with pytest.raises(StorageError):
            local.put("cases/c1/a.pdf", b"x", "application/pdf")

        assert list((local.root / "cases" / "c1").iterdir()) == []

    def test_missing_object(self, local):
        with pytest.raises(StorageError):
            local.get("cases/none.pdf")

    @pytest.mark.parametrize("path", ["../escape.pdf", "cases/../../escape.pdf"])
    def test_path_traversal_rejected(self, local, path):
        with pytest.raises(StorageError):
            local.put(path, b"x", "application/pdf")

    def test_signed_url_round_trip(self, local):
        local.put("cases/c1/generated/r.pdf", b"pdf bytes", "application/pdf")

        url = local.signed_url("cases/c1/generated/r.pdf", 60, "RentVault_Check-in_Report_c1.pdf")
        stored = local.open_signed(token_of(url))

        assert url.startswith("http://files.test/files/")
        assert stored.data == b"pdf bytes"
        assert stored.content_type == "application/pdf"
        assert stored.download_name == "RentVault_Check-in_Report_c1.pdf"

    def test_preview_link_has_no_download_name(self, local):
        local.put("cases/c1/p.pdf", b"x", "application/pdf")
        stored = local.open_signed(token_of(local.signed_url("cases/c1/p.pdf", 60)))
        assert stored.download_name is None

    def test_expired_link(self, local):
        local.put("cases/c1/r.pdf", b"x", "application/pdf")
        url = local.signed_url("cases/c1/r.pdf", -10)

        with pytest.raises(StorageError, match="expired"):
            local.open_signed(token_of(url))

    def test_link_signed_with_other_secret(self, local, tmp_path):
        other = LocalStorage(str(tmp_path / "store"), "http://files.test", "other-secret")
        local.put("cases/c1/r.pdf", b"x", "application/pdf")

        with pytest.raises(StorageError, match="Invalid"):
            local.open_signed(token_of(other.signed_url("cases/c1/r.pdf", 60)))


class TestS3Storage:
    """Tests for S3Storage with a mocked client"""

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.generate_presigned_url.return_value = "https://bucket.s3/signed"
        return client

    def test_put(self, client):
        S3Storage("guard-rent", "eu-west-1", client=client).put("k.pdf", b"x", "application/pdf")
        client.put_object.assert_called_once_with(
            Bucket="guard-rent", Key="k.pdf", Body=b"x", ContentType="application/pdf"
        )

    def test_get(self, client):
        client.get_object.return_value = {"Body": MagicMock(read=MagicMock(return_value=b"img"))}
        assert S3Storage("b", "eu-west-1", client=client).get("k.jpg") == b"img"

    def test_signed_url_forces_download_name(self, client):
        storage = S3Storage("guard-rent", "eu-west-1", client=client)

        url = storage.signed_url("k.pdf", 3600, "RentVault_Deposit_Recovery_Pack_abc.pdf")

        assert url == "https://bucket.s3/signed"
        client.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={
                "Bucket": "guard-rent",
                "Key": "k.pdf",
                "ResponseContentDisposition": 'attachment; filename="RentVault_Deposit_Recovery_Pack_abc.pdf"',
            },
            ExpiresIn=3600,
        )

    def test_client_error_becomes_storage_error(self, client):
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "500", "Message": "boom"}}, "PutObject"
        )
        with pytest.raises(StorageError):
            S3Storage("b", "eu-west-1", client=client).put("k.pdf", b"x", "application/pdf")


class TestHelpers:

    def test_report_key_layout(self):
        key = generate_report_key("case-1")
        assert key.startswith("cases/case-1/generated/")
        assert key.endswith(".pdf")
        assert generate_report_key("case-1") != key

    def test_content_disposition(self):
        assert content_disposition(None) is None
        assert content_disposition('a"b.pdf') == 'attachment; filename="ab.pdf"'

    def test_factory(self, tmp_path):
        local = get_storage(Settings(storage_backend="local", local_storage_dir=str(tmp_path)))
        assert isinstance(local, LocalStorage)

        s3 = get_storage(Settings(storage_backend="s3", s3_region="eu-west-1"))
        assert isinstance(s3, S3Storage)
