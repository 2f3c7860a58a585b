from __future__ import annotations

import logging
import os
import re
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError

from bootcamp_api.core.config import settings

logger = logging.getLogger(__name__)

PRESIGN_TTL_SECONDS = 900
_MISSING_CODES = {"404", "NoSuchBucket", "NoSuchKey", "NotFound"}
_EXISTING_BUCKET_CODES = {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def is_missing_object_error(exc: ClientError) -> bool:
    return _error_code(exc) in _MISSING_CODES


def photo_key_prefix(bootcamp_id: str) -> str:
    return f"bootcamps/{bootcamp_id}/"


def build_photo_key(bootcamp_id: str, file_name: str) -> str:
    """Object key for a bootcamp photo, e.g. ``bootcamps/<id>/photo_<id>.jpg``.

    The extension is taken from the client's file name; anything odd is dropped.
    """
    _, ext = os.path.splitext(str(file_name or "").strip())
    ext = re.sub(r"[^a-z0-9.]+", "", ext.lower())
    if not 1 < len(ext) <= 10:
        ext = ""
    return f"{photo_key_prefix(bootcamp_id)}photo_{bootcamp_id}{ext}"


class S3Storage:
    def __init__(self, client, bucket: str, region: str | None = None):
        self.client = client
        self.bucket = bucket
        self.region = region
        self._bucket_ready = False

    def ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except ClientError as exc:
            if not is_missing_object_error(exc):
                raise
            params: dict = {"Bucket": self.bucket}
            if self.region and self.region != "us-east-1":
                params["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
            try:
                self.client.create_bucket(**params)
                logger.info("created bucket %s", self.bucket)
            except ClientError as create_exc:
                if _error_code(create_exc) not in _EXISTING_BUCKET_CODES:
                    raise
        self._bucket_ready = True

    def create_presigned_put_url(self, key: str, mime_type: str, expires_sec: int = PRESIGN_TTL_SECONDS) -> str:
        self.ensure_bucket()
        return self.client.generate_presigned_url(
            "put_object",
            Params={"Bucket": self.bucket, "Key": key, "ContentType": mime_type},
            ExpiresIn=expires_sec,
            HttpMethod="PUT",
        )

    def head_object(self, key: str) -> dict:
        self.ensure_bucket()
        return self.client.head_object(Bucket=self.bucket, Key=key)


@lru_cache(maxsize=1)
def get_s3_storage() -> S3Storage:
    client = boto3.client(
        "s3",
        endpoint_url=settings.S3_ENDPOINT,
        aws_access_key_id=settings.S3_ACCESS_KEY,
        aws_secret_access_key=settings.S3_SECRET_KEY,
        region_name=settings.S3_REGION,
        use_ssl=settings.S3_USE_SSL,
    )
    return S3Storage(client, settings.S3_BUCKET, settings.S3_REGION)
