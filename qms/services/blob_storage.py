"""Blob storage for record attachments.

Two backends share one contract:

    upload_file(buffer, file_name, content_type, business_area, document_type,
                record_id=None) -> StoredFile
    delete_file(url) -> bool

``S3BlobStorage`` talks to S3 through boto3; ``LocalBlobStorage`` keeps files
under a directory on disk for development and tests. The backend is built
once by ``create_blob_storage(app.config)`` in the app factory and read from
``current_app.extensions["blob_storage"]``.

delete_file never raises for storage failures: it logs and returns False so
the caller can record the outcome without failing the surrounding mutation.
"""
import logging
import os
import re
import time
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
LOCAL_SCHEME = "local"


@dataclass(frozen=True)
class StoredFile:
    key: str
    url: str
    file_name: str
    file_size: int
    file_type: str | None


def sanitize_file_name(file_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", file_name or "file")


def build_object_key(document_type, business_area, file_name, record_id=None, timestamp_ms=None):
    """``<document_type>/<business_area>/<record_id>_<timestamp>_<name>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    prefix = f"{record_id}_" if record_id is not None else ""
    return f"{document_type}/{business_area}/{prefix}{timestamp_ms}_{sanitize_file_name(file_name)}"


class S3BlobStorage:
    """S3-backed storage. Public URLs are virtual-hosted style."""

    def __init__(self, bucket, region=None, client=None):
        self.bucket = bucket
        self.region = region
        self.client = client or boto3.client("s3", region_name=region)

    def url_for(self, key):
        return f"https://{self.bucket}.s3.amazonaws.com/{quote(key)}"

    def key_from_url(self, url):
        return unquote(urlparse(url).path.lstrip("/"))

    def upload_file(self, buffer, file_name, content_type, business_area, document_type,
                    record_id=None):
        key = build_object_key(document_type, business_area, file_name, record_id)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=buffer,
            ContentType=content_type or "application/octet-stream",
            Metadata={
                "business-area": business_area,
                "document-type": document_type,
                "original-filename": file_name,
                "record-id": str(record_id) if record_id is not None else "",
            },
        )
        logger.info("Uploaded s3://%s/%s", self.bucket, key,
                    extra={"business_area": business_area, "record_id": record_id})
        return StoredFile(
            key=key, url=self.url_for(key), file_name=file_name,
            file_size=len(buffer), file_type=content_type,
        )

    def check(self):
        """Probe the bucket; returns ``(ok, detail)`` for the health endpoint."""
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as exc:
            return False, str(exc)
        return True, f"s3://{self.bucket}"

    def delete_file(self, url) -> bool:
        if not url:
            return True
        key = self.key_from_url(url)
        if not key:
            logger.warning("Cannot derive S3 key from url %r", url)
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to delete s3://%s/%s: %s", self.bucket, key, exc)
            return False
        logger.info("Deleted s3://%s/%s", self.bucket, key)
        return True


class LocalBlobStorage:
    """Filesystem-backed storage rooted at ``root``; URLs are ``local://<key>``."""

    def __init__(self, root):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def url_for(self, key):
        return f"{LOCAL_SCHEME}://{quote(key)}"

    def _path_for_url(self, url):
        parsed = urlparse(url)
        if parsed.scheme != LOCAL_SCHEME:
            raise ValueError(f"Not a local storage url: {url!r}")
        return self._path_for_key(unquote(parsed.netloc + parsed.path))

    def _path_for_key(self, key):
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise ValueError(f"Storage key escapes storage root: {key!r}")
        return path

    def upload_file(self, buffer, file_name, content_type, business_area, document_type,
                    record_id=None):
        key = build_object_key(document_type, business_area, file_name, record_id)
        path = self._path_for_key(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(buffer)
        logger.info("Stored %s locally", key,
                    extra={"business_area": business_area, "record_id": record_id})
        return StoredFile(
            key=key, url=self.url_for(key), file_name=file_name,
            file_size=len(buffer), file_type=content_type,
        )

    def check(self):
        if self.root.is_dir() and os.access(self.root, os.W_OK):
            return True, str(self.root)
        return False, f"{self.root} is missing or not writable"

    def delete_file(self, url) -> bool:
        if not url:
            return True
        try:
            path = self._path_for_url(url)
            os.remove(path)
        except (OSError, ValueError) as exc:
            logger.error("Failed to delete local file %s: %s", url, exc)
            return False
        logger.info("Deleted local file %s", url)
        return True


def create_blob_storage(config):
    """Build the configured backend from an app config mapping."""
    backend = (config.get("BLOB_STORAGE_BACKEND") or "local").lower()
    if backend == "s3":
        return S3BlobStorage(
            bucket=config["BLOB_STORAGE_BUCKET"],
            region=config.get("BLOB_STORAGE_REGION"),
        )
    if backend == "local":
        return LocalBlobStorage(config["BLOB_STORAGE_ROOT"])
    raise ValueError(f"Unknown BLOB_STORAGE_BACKEND {backend!r} (expected 's3' or 'local')")


def get_blob_storage():
    return current_app.extensions["blob_storage"]
