import logging
import os
import uuid

from musicstore.config import Settings, settings as default_settings
from musicstore.core.exceptions import StorageError

logger = logging.getLogger(__name__)

AUDIO_PREFIX = "audio"
IMAGE_PREFIX = "images"


def _extension(filename: str | None, fallback: str) -> str:
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
        if ext.isalnum():
            return ext
    return fallback


def generate_audio_key(filename: str | None) -> str:
    return f"{AUDIO_PREFIX}/{uuid.uuid4()}.{_extension(filename, 'mp3')}"


def generate_image_key(filename: str | None) -> str:
    return f"{IMAGE_PREFIX}/{uuid.uuid4()}.{_extension(filename, 'jpg')}"


class StorageService:
    """Stores uploaded binaries in an S3-compatible bucket, or on local disk when S3 is not configured."""

    def __init__(self, config: Settings | None = None):
        self.config = config or default_settings

    def _s3_client(self):
        import aioboto3

        session = aioboto3.Session()
        return session.client(
            "s3",
            endpoint_url=self.config.S3_ENDPOINT_URL,
            aws_access_key_id=self.config.S3_ACCESS_KEY,
            aws_secret_access_key=self.config.S3_SECRET_KEY,
            region_name=self.config.S3_REGION,
        )

    def _local_path(self, key: str) -> str:
        root = os.path.abspath(self.config.LOCAL_STORAGE_DIR)
        path = os.path.abspath(os.path.join(root, key))
        if os.path.commonpath([root, path]) != root:
            raise StorageError(f"Invalid storage key: {key}")
        return path

    async def upload(self, file_data: bytes, key: str, content_type: str) -> str:
        try:
            if self.config.s3_enabled:
                async with self._s3_client() as s3:
                    await s3.put_object(
                        Bucket=self.config.S3_BUCKET_NAME,
                        Key=key,
                        Body=file_data,
                        ContentType=content_type,
                    )
            else:
                path = self._local_path(key)
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with open(path, "wb") as f:
                    f.write(file_data)
        except StorageError:
            raise
        except Exception as e:
            logger.error("Upload of %s failed: %s", key, e, exc_info=True)
            raise StorageError("Failed to store uploaded file") from e
        logger.info("Stored %s (%d bytes, %s)", key, len(file_data), content_type)
        return key

    async def download(self, key: str) -> bytes:
        try:
            if self.config.s3_enabled:
                async with self._s3_client() as s3:
                    response = await s3.get_object(Bucket=self.config.S3_BUCKET_NAME, Key=key)
                    return await response["Body"].read()
            path = self._local_path(key)
            with open(path, "rb") as f:
                return f.read()
        except StorageError:
            raise
        except Exception as e:
            logger.error("Download of %s failed: %s", key, e, exc_info=True)
            raise StorageError("Failed to read stored file") from e

    async def delete(self, key: str) -> None:
        try:
            if self.config.s3_enabled:
                async with self._s3_client() as s3:
                    await s3.delete_object(Bucket=self.config.S3_BUCKET_NAME, Key=key)
            else:
                path = self._local_path(key)
                if os.path.exists(path):
                    os.remove(path)
        except StorageError:
            raise
        except Exception as e:
            logger.error("Delete of %s failed: %s", key, e, exc_info=True)
            raise StorageError("Failed to delete stored file") from e


def get_storage() -> StorageService:
    return StorageService()
