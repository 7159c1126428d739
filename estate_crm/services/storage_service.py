"""
services/storage_service.py
---------------------------
Object store (S3) access for lead files, property images/files and
apartment documents.

boto3 is synchronous; every call is pushed to the threadpool so the event
loop never blocks on network I/O. Failures surface as ExternalServiceError.

Key layout:
    {collection}/{entity_id}/{kind}/{YYYYMMDD}-{uuid8}-{file_name}

Uploads go straight to S3 through presigned PUT URLs. A key sent back by a
client is only accepted under its own entity's {collection}/{entity_id}/
prefix, so one company can never register, read or delete another's objects.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from estate_crm.core.config import settings
from estate_crm.core.errors import ExternalServiceError, Forbidden
from estate_crm.core.logging import get_logger

logger = get_logger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def get_s3_client():
    return boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
        region_name=settings.AWS_REGION,
        config=Config(signature_version="s3v4"),
    )


class StorageService:

    @staticmethod
    def build_key(collection: str, entity_id: str, kind: str, file_name: str) -> str:
        safe_name = _UNSAFE_NAME_CHARS.sub("-", file_name.strip()).strip("-") or "file"
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
        return f"{collection}/{entity_id}/{kind}/{stamp}-{uuid.uuid4().hex[:8]}-{safe_name}"

    @staticmethod
    def object_url(key: str) -> str:
        return f"https://{settings.S3_BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"

    @staticmethod
    def key_from_url(url: Optional[str]) -> Optional[str]:
        """Recover the object key from a URL produced by object_url()."""
        if not url:
            return None
        parsed = urlparse(url)
        if not parsed.netloc.startswith(f"{settings.S3_BUCKET_NAME}."):
            return None
        return unquote(parsed.path.lstrip("/")) or None

    @staticmethod
    def owns_key(collection: str, entity_id: str, key: Optional[str]) -> bool:
        """True if ``key`` lies under the prefix build_key() uses for this entity."""
        if not key or ".." in key.split("/"):
            return False
        return key.startswith(f"{collection}/{entity_id}/")

    @staticmethod
    def require_owned_key(collection: str, entity_id: str, key: Optional[str]) -> str:
        if not StorageService.owns_key(collection, entity_id, key):
            logger.warning(
                "Storage key outside entity prefix",
                collection=collection,
                entity_id=entity_id,
                key=key,
            )
            raise Forbidden("File access denied")
        return key

    @staticmethod
    def require_owned_url(collection: str, entity_id: str, url: str) -> Optional[str]:
        """
        Validate an image URL before it is stored. URLs outside the bucket
        are accepted as external links; bucket URLs must point under the
        entity's own prefix. Returns the object key, or None for external URLs.
        """
        key = StorageService.key_from_url(url)
        if key is None:
            return None
        return StorageService.require_owned_key(collection, entity_id, key)

    @staticmethod
    async def delete(key: str) -> None:
        client = get_s3_client()
        try:
            await run_in_threadpool(
                client.delete_object, Bucket=settings.S3_BUCKET_NAME, Key=key
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 delete failed", key=key, error=str(exc))
            raise ExternalServiceError("Failed to delete file from storage") from exc
        logger.info("S3 object deleted", key=key)

    @staticmethod
    async def delete_quietly(key: Optional[str]) -> bool:
        """Best-effort cleanup used after the owning row is gone."""
        if not key:
            return False
        try:
            await StorageService.delete(key)
        except ExternalServiceError:
            return False
        return True

    @staticmethod
    async def presign_upload(key: str, content_type: str, ttl: Optional[int] = None) -> str:
        return await StorageService._presign(
            "put_object",
            {"Bucket": settings.S3_BUCKET_NAME, "Key": key, "ContentType": content_type},
            ttl,
        )

    @staticmethod
    async def presign_download(key: str, ttl: Optional[int] = None) -> str:
        return await StorageService._presign(
            "get_object", {"Bucket": settings.S3_BUCKET_NAME, "Key": key}, ttl
        )

    @staticmethod
    async def _presign(operation: str, params: dict, ttl: Optional[int]) -> str:
        client = get_s3_client()
        try:
            return await run_in_threadpool(
                client.generate_presigned_url,
                operation,
                Params=params,
                ExpiresIn=ttl or settings.PRESIGNED_URL_TTL_SECONDS,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 presign failed", operation=operation, error=str(exc))
            raise ExternalServiceError("Failed to create a signed URL") from exc
