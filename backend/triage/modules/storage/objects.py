"""Image uploads for inquiries and inventory items.

S3 (or any S3-compatible endpoint) when a bucket is configured, otherwise
files land under UPLOAD_FOLDER and are served by the app's /uploads route.
"""

from __future__ import annotations

import logging
import os
import secrets
from io import BytesIO
from typing import Iterable

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
    "GIF": ".gif",
    "BMP": ".bmp",
    "TIFF": ".tiff",
}


class ObjectStorage:
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` and return its public URL."""
        raise NotImplementedError


class S3ObjectStorage(ObjectStorage):
    def __init__(
        self,
        bucket: str,
        *,
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_url_base: str | None = None,
    ):
        self.bucket = bucket
        self.region = region
        self.public_url_base = public_url_base.rstrip("/") if public_url_base else None
        self.client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            config=BotoConfig(s3={"addressing_style": "virtual"}),
        )

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.client.put_object(Bucket=self.bucket, Key=path, Body=data, ContentType=content_type, ACL="public-read")
        if self.public_url_base:
            return f"{self.public_url_base}/{path}"
        region = self.region or "us-east-1"
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{path}"


class LocalObjectStorage(ObjectStorage):
    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        root = os.path.realpath(self.root)
        target = os.path.realpath(os.path.join(root, *path.split("/")))
        if os.path.commonpath([root, target]) != root or target == root:
            raise PermissionError(f"Refusing to write outside the upload folder: {path!r}")
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(data)
        # Relative URL; Nginx (or the app) serves /uploads
        return f"{self.url_prefix}/{path}"


def storage_from_config(config) -> ObjectStorage:
    bucket = config.get("S3_BUCKET_NAME")
    if bucket:
        return S3ObjectStorage(
            bucket,
            region=config.get("S3_REGION") or None,
            endpoint_url=config.get("S3_ENDPOINT_URL") or None,
            access_key_id=config.get("S3_ACCESS_KEY_ID") or None,
            secret_access_key=config.get("S3_SECRET_ACCESS_KEY") or None,
            public_url_base=config.get("S3_PUBLIC_URL_BASE") or None,
        )
    return LocalObjectStorage(config["UPLOAD_FOLDER"])


def sniff_image(data: bytes) -> tuple[str, str]:
    """Return (extension, content type) or raise if ``data`` is not an image."""
    with Image.open(BytesIO(data)) as img:
        fmt = (img.format or "").upper()
        img.verify()
    ext = _EXTENSIONS.get(fmt, f".{fmt.lower()}" if fmt else "")
    return ext, Image.MIME.get(fmt, "application/octet-stream")


def upload_images(storage: ObjectStorage, files: Iterable, namespace: str, limit: int = 5) -> list[str]:
    """Upload up to ``limit`` image files under ``namespace``.

    A file that is not an image, or whose upload fails, is logged and
    skipped; the caller gets the URLs that did land.
    """
    urls: list[str] = []
    accepted = 0
    for f in files:
        if not f or not getattr(f, "filename", None):
            continue
        if accepted >= limit:
            logger.info("Ignoring images beyond the limit of %d for %s", limit, namespace)
            break
        accepted += 1
        data = f.read()
        try:
            ext, content_type = sniff_image(data)
        except (OSError, SyntaxError, ValueError):
            logger.warning("Skipping %r under %s: not a readable image", f.filename, namespace)
            continue
        path = f"{namespace}/{secrets.token_hex(16)}{ext}"
        try:
            urls.append(storage.upload(path, data, content_type))
        except (BotoCoreError, ClientError, OSError):
            logger.exception("Upload failed for %s", path)
            continue
    return urls
