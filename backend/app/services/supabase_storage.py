from typing import List, Optional

from supabase import Client, ClientOptions, create_client

from app.config import settings
from app.utils.errors import AppError, ErrorKind
from app.utils.logger import logger

_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    global _supabase_client
    if _supabase_client:
        return _supabase_client

    url = settings.SUPABASE_URL
    key = settings.storage_key

    if not url or not key:
        logger.warning("SUPABASE_URL or SUPABASE_KEY/SUPABASE_SERVICE_ROLE_KEY not set. Storage operations will fail.")
        raise AppError(ErrorKind.STORAGE, "storage is not configured")

    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY not set. Using SUPABASE_KEY (Anon). Uploads may fail due to RLS.")

    _supabase_client = create_client(
        url,
        key,
        options=ClientOptions(storage_client_timeout=settings.STORAGE_TIMEOUT_SECONDS),
    )
    return _supabase_client


class SupabaseStorage:
    """Object storage backed by one Supabase bucket."""

    def __init__(self, bucket_name: str = settings.STORAGE_BUCKET, client: Optional[Client] = None):
        self.bucket_name = bucket_name
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def upload(self, destination: str, content: bytes, content_type: str = "application/octet-stream") -> str:
        """Upload bytes to ``destination`` and return the object's public URL."""
        logger.info(f"Uploading file to Supabase Storage: bucket={self.bucket_name}, path={destination}, size={len(content)}")
        try:
            bucket = self.client.storage.from_(self.bucket_name)
            bucket.upload(
                path=destination,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"},
            )
            return bucket.get_public_url(destination)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Failed to upload to Supabase Storage: {e}")
            raise AppError(ErrorKind.STORAGE, f"upload {destination} failed: {e}") from e

    def delete(self, destination: str) -> None:
        self.delete_many([destination])

    def delete_many(self, destinations: List[str]) -> None:
        if not destinations:
            return
        try:
            self.client.storage.from_(self.bucket_name).remove(destinations)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete files from storage: {e}")
            raise AppError(ErrorKind.STORAGE, f"delete failed: {e}") from e
        logger.info(f"Deleted {len(destinations)} file(s) from storage: bucket={self.bucket_name}")
