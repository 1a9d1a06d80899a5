"""
Booking attachment storage.
Handles upload validation, Cloudflare R2 storage with a local-disk fallback,
retrieval and deletion.
"""

import logging
import mimetypes
import os
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import (
    ALLOWED_UPLOAD_TYPES,
    MAX_UPLOAD_SIZE_BYTES,
    R2_ACCESS_KEY_ID,
    R2_ACCOUNT_ID,
    R2_BUCKET_NAME,
    R2_SECRET_ACCESS_KEY,
    STORAGE_TIMEOUT_SECONDS,
    UPLOAD_DIR,
)
from ..errors import FileStorageError, InvalidFileError, NotFoundError

logger = logging.getLogger(__name__)

R2_LOCATOR_PREFIX = "r2://"


@dataclass
class StoredFile:
    locator: str
    stored_name: str
    original_name: str
    size: int
    mime_type: str


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(
            signature_version="s3v4",
            connect_timeout=STORAGE_TIMEOUT_SECONDS,
            read_timeout=STORAGE_TIMEOUT_SECONDS,
            retries={"max_attempts": 2},
        ),
        region_name="auto",
    )


def r2_configured() -> bool:
    return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY)


def is_type_allowed(mime_type: Optional[str], allowed_types: list[str]) -> bool:
    """Match a MIME type against an allow-list that may contain type/* wildcards"""
    if not mime_type:
        return False
    mime_type = mime_type.split(";")[0].strip().lower()
    for allowed in allowed_types:
        allowed = allowed.lower()
        if allowed.endswith("/*") and mime_type.startswith(allowed[:-1]):
            return True
        if mime_type == allowed:
            return True
    return False


class FileStore:
    """Stores booking attachments in R2 when configured, otherwise under UPLOAD_DIR"""

    def __init__(
        self,
        upload_dir: str = UPLOAD_DIR,
        max_size_bytes: int = MAX_UPLOAD_SIZE_BYTES,
        allowed_types: Optional[list[str]] = None,
        use_r2: Optional[bool] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_size_bytes = max_size_bytes
        self.allowed_types = allowed_types if allowed_types is not None else ALLOWED_UPLOAD_TYPES
        self.use_r2 = r2_configured() if use_r2 is None else use_r2

    def validate(self, filename: Optional[str], mime_type: Optional[str], size: int) -> None:
        """
        Validate an upload before storing it.

        Raises:
            InvalidFileError: Empty file, oversized file or disallowed type
        """
        if not filename:
            raise InvalidFileError("File name is required")
        if size == 0:
            raise InvalidFileError(f"File {filename} is empty")
        if size > self.max_size_bytes:
            raise InvalidFileError(
                f"File {filename} exceeds maximum size of {self.max_size_bytes / (1024 * 1024):.0f}MB",
                code="FILE_TOO_LARGE",
            )
        if not is_type_allowed(mime_type, self.allowed_types):
            raise InvalidFileError(
                f"File type {mime_type} is not allowed. Allowed types: {', '.join(self.allowed_types)}"
            )

    @staticmethod
    def generate_stored_name(filename: str, mime_type: str) -> str:
        """Format: {epoch_ms}_{random}.{ext}"""
        ext = Path(filename).suffix.lower()
        if not ext:
            ext = mimetypes.guess_extension(mime_type) or ""
        return f"{int(time.time() * 1000)}_{secrets.token_hex(4)}{ext}"

    def store(self, data: bytes, filename: str, mime_type: str, owner_ref: str) -> StoredFile:
        self.validate(filename, mime_type, len(data))
        stored_name = self.generate_stored_name(filename, mime_type)
        key = f"{owner_ref}/{stored_name}"

        locator = None
        if self.use_r2:
            locator = self._store_r2(key, data, mime_type)
        if locator is None:
            locator = self._store_local(key, data)

        logger.info(f"📎 Stored {filename} ({len(data)} bytes) as {locator}")
        return StoredFile(
            locator=locator,
            stored_name=stored_name,
            original_name=filename,
            size=len(data),
            mime_type=mime_type,
        )

    def _store_r2(self, key: str, data: bytes, mime_type: str) -> Optional[str]:
        try:
            get_r2_client().put_object(
                Bucket=R2_BUCKET_NAME, Key=key, Body=data, ContentType=mime_type
            )
            return f"{R2_LOCATOR_PREFIX}{key}"
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"⚠️ R2 upload failed for {key}, falling back to local storage: {e}")
            return None

    def _local_path(self, key: str) -> Path:
        root = self.upload_dir.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise NotFoundError(f"File not found: {key}")
        return path

    def _store_local(self, key: str, data: bytes) -> str:
        path = self._local_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.error(f"❌ Failed to write {path}: {e}")
            raise FileStorageError("Failed to store file") from e
        return key

    def fetch(self, locator: str) -> bytes:
        if locator.startswith(R2_LOCATOR_PREFIX):
            key = locator[len(R2_LOCATOR_PREFIX):]
            try:
                response = get_r2_client().get_object(Bucket=R2_BUCKET_NAME, Key=key)
                return response["Body"].read()
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                    raise NotFoundError(f"File not found: {locator}") from e
                raise FileStorageError("Failed to read file") from e
            except BotoCoreError as e:
                raise FileStorageError("Failed to read file") from e

        path = self._local_path(locator)
        if not path.is_file():
            raise NotFoundError(f"File not found: {locator}")
        return path.read_bytes()

    def delete(self, locator: str) -> None:
        """Delete a stored file; a file that is already gone is not an error"""
        if locator.startswith(R2_LOCATOR_PREFIX):
            key = locator[len(R2_LOCATOR_PREFIX):]
            try:
                get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
            except (ClientError, BotoCoreError) as e:
                raise FileStorageError(f"Failed to delete file {locator}") from e
            return

        path = self._local_path(locator)
        try:
            if path.exists():
                os.remove(path)
        except OSError as e:
            raise FileStorageError(f"Failed to delete file {locator}") from e

    def url_for(self, file_id: int, locator: str, expiration_minutes: int = 15) -> str:
        """Presigned URL for R2 objects, the download route for local files"""
        if locator.startswith(R2_LOCATOR_PREFIX):
            try:
                return get_r2_client().generate_presigned_url(
                    "get_object",
                    Params={"Bucket": R2_BUCKET_NAME, "Key": locator[len(R2_LOCATOR_PREFIX):]},
                    ExpiresIn=expiration_minutes * 60,
                )
            except (ClientError, BotoCoreError) as e:
                logger.warning(f"⚠️ Could not presign {locator}: {e}")
        return f"/api/files/{file_id}"


_file_store: Optional[FileStore] = None


def get_file_store() -> FileStore:
    """FastAPI dependency returning the process-wide FileStore"""
    global _file_store
    if _file_store is None:
        _file_store = FileStore()
    return _file_store
