"""
Blob storage tests: key layout, local backend, S3 backend via botocore Stubber.
"""

import boto3
import pytest
from botocore.stub import Stubber

from qms.services.blob_storage import (
    LocalBlobStorage,
    S3BlobStorage,
    build_object_key,
    create_blob_storage,
    sanitize_file_name,
)


# ═══════════════════════════════════════════════════════════════
# KEY LAYOUT
# ═══════════════════════════════════════════════════════════════

def test_sanitize_file_name():
    assert sanitize_file_name("Risk Register (v2).xlsx") == "Risk_Register__v2_.xlsx"
    assert sanitize_file_name("plain-name.pdf") == "plain-name.pdf"
    assert sanitize_file_name("ünïcode.txt") == "_n_code.txt"


def test_build_object_key_with_record_id():
    key = build_object_key("risk-management", "Finance", "a b.pdf", record_id=7, timestamp_ms=1700000000000)
    assert key == "risk-management/Finance/7_1700000000000_a_b.pdf"


def test_build_object_key_without_record_id():
    key = build_object_key("training-sessions", "HR", "x.pdf", timestamp_ms=5)
    assert key == "training-sessions/HR/5_x.pdf"


# ═══════════════════════════════════════════════════════════════
# LOCAL BACKEND
# ═══════════════════════════════════════════════════════════════

def test_local_upload_and_delete(tmp_path):
    storage = LocalBlobStorage(tmp_path)
    stored = storage.upload_file(
        b"hello", "notes v1.txt", "text/plain", "Quality Management", "qms-assessments", record_id=3,
    )

    assert stored.url.startswith("local://qms-assessments/Quality%20Management/3_")
    assert stored.file_size == 5
    assert stored.file_type == "text/plain"
    path = storage._path_for_url(stored.url)
    assert path.read_bytes() == b"hello"

    assert storage.delete_file(stored.url) is True
    assert not path.exists()
    # already gone
    assert storage.delete_file(stored.url) is False


def test_local_delete_rejects_foreign_urls(tmp_path):
    storage = LocalBlobStorage(tmp_path)
    assert storage.delete_file("https://bucket.s3.amazonaws.com/x.pdf") is False
    assert storage.delete_file("local://../../etc/passwd") is False


def test_local_upload_refuses_key_outside_root(tmp_path):
    storage = LocalBlobStorage(tmp_path / "blobs")
    with pytest.raises(ValueError):
        storage.upload_file(b"x", "a.txt", "text/plain", "../../..", "docs")
    assert list(tmp_path.iterdir()) == [tmp_path / "blobs"]


def test_delete_without_url_is_a_noop(tmp_path):
    assert LocalBlobStorage(tmp_path).delete_file(None) is True


# ═══════════════════════════════════════════════════════════════
# S3 BACKEND
# ═══════════════════════════════════════════════════════════════

@pytest.fixture()
def s3_client():
    return boto3.client(
        "s3",
        region_name="eu-north-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


def test_s3_upload_puts_object_and_returns_public_url(s3_client):
    storage = S3BlobStorage("qms-docs", region="eu-north-1", client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_response("put_object", {"ETag": '"abc"'})
        stored = storage.upload_file(
            b"pdf-bytes", "policy.pdf", "application/pdf", "Finance", "business-processes", record_id=12,
        )
        stub.assert_no_pending_responses()

    assert stored.key.startswith("business-processes/Finance/12_")
    assert stored.key.endswith("_policy.pdf")
    assert stored.url == f"https://qms-docs.s3.amazonaws.com/{stored.key}"


def test_s3_delete_derives_key_from_url(s3_client):
    storage = S3BlobStorage("qms-docs", client=s3_client)
    url = "https://qms-docs.s3.amazonaws.com/risk-management/Quality%20Management/1_2_r.xlsx"
    with Stubber(s3_client) as stub:
        stub.add_response(
            "delete_object",
            {},
            {"Bucket": "qms-docs", "Key": "risk-management/Quality Management/1_2_r.xlsx"},
        )
        assert storage.delete_file(url) is True
        stub.assert_no_pending_responses()


def test_s3_delete_client_error_returns_false(s3_client):
    storage = S3BlobStorage("qms-docs", client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_client_error("delete_object", service_error_code="AccessDenied", http_status_code=403)
        assert storage.delete_file("https://qms-docs.s3.amazonaws.com/a/b.pdf") is False


def test_s3_delete_url_without_key_returns_false(s3_client):
    storage = S3BlobStorage("qms-docs", client=s3_client)
    assert storage.delete_file("https://qms-docs.s3.amazonaws.com/") is False


# ═══════════════════════════════════════════════════════════════
# FACTORY
# ═══════════════════════════════════════════════════════════════

def test_factory_builds_local_backend(tmp_path):
    storage = create_blob_storage({"BLOB_STORAGE_BACKEND": "local", "BLOB_STORAGE_ROOT": str(tmp_path)})
    assert isinstance(storage, LocalBlobStorage)


def test_factory_builds_s3_backend():
    storage = create_blob_storage({
        "BLOB_STORAGE_BACKEND": "S3",
        "BLOB_STORAGE_BUCKET": "qms-docs",
        "BLOB_STORAGE_REGION": "eu-north-1",
    })
    assert isinstance(storage, S3BlobStorage)
    assert storage.bucket == "qms-docs"


def test_factory_rejects_unknown_backend():
    with pytest.raises(ValueError):
        create_blob_storage({"BLOB_STORAGE_BACKEND": "ftp"})


# ═══════════════════════════════════════════════════════════════
# HEALTH PROBES
# ═══════════════════════════════════════════════════════════════

def test_local_check_creates_root(tmp_path):
    storage = LocalBlobStorage(tmp_path / "nested" / "uploads")
    ok, detail = storage.check()
    assert ok is True
    assert detail.endswith("uploads")


def test_s3_check_heads_bucket(s3_client):
    storage = S3BlobStorage("qms-docs", client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_response("head_bucket", {}, {"Bucket": "qms-docs"})
        assert storage.check() == (True, "s3://qms-docs")


def test_s3_check_reports_client_error(s3_client):
    storage = S3BlobStorage("qms-docs", client=s3_client)
    with Stubber(s3_client) as stub:
        stub.add_client_error("head_bucket", service_error_code="404", http_status_code=404)
        ok, detail = storage.check()
    assert ok is False
    assert "404" in detail
