"""Audio and clip files in Azure Blob Storage."""

import logging
import os
from typing import BinaryIO, Optional, Union
from urllib.parse import unquote, urlparse

import requests
from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from podsearch.core.exceptions import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    def __init__(self, connection_string: str, cache_control: str = "max-age=3600"):
        self.connection_string = connection_string
        self.cache_control = cache_control
        self._service_client: Optional[BlobServiceClient] = None

    @property
    def service_client(self) -> BlobServiceClient:
        if self._service_client is None:
            if not self.connection_string:
                raise StorageError("AZURE_STORAGE_CONNECTION_STRING is required for file storage")
            self._service_client = BlobServiceClient.from_connection_string(self.connection_string)
        return self._service_client

    def _ensure_container(self, container: str) -> None:
        try:
            self.service_client.get_container_client(container).create_container(public_access="blob")
        except ResourceExistsError:
            pass

    def upload(
        self,
        container: str,
        blob_name: str,
        data: Union[bytes, BinaryIO],
        content_type: Optional[str] = None,
    ) -> str:
        """Upload a file and return its public URL."""
        try:
            self._ensure_container(container)
            blob_client = self.service_client.get_blob_client(container=container, blob=blob_name)
            blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(
                    content_type=content_type,
                    cache_control=self.cache_control,
                ),
            )
        except AzureError as e:
            logger.error(f"[storage] upload failed container={container} blob={blob_name}: {e}")
            raise StorageError(str(e)) from e

        logger.info(f"[storage] uploaded container={container} blob={blob_name}")
        return blob_client.url

    def delete(self, container: str, blob_name: str) -> bool:
        try:
            self.service_client.get_blob_client(container=container, blob=blob_name).delete_blob()
        except ResourceNotFoundError:
            return False
        except AzureError as e:
            raise StorageError(str(e)) from e
        return True

    def download(self, url: str, dest_path: str) -> str:
        """Stream a file from a URL to disk. Local paths are returned as-is."""
        if url.startswith("/"):
            return url

        os.makedirs(os.path.dirname(dest_path) or ".", exist_ok=True)
        try:
            with requests.get(url, stream=True, timeout=120) as r:
                r.raise_for_status()
                with open(dest_path, "wb") as f:
                    for chunk in r.iter_content(chunk_size=8 * 1024 * 1024):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            raise StorageError(f"Download failed for {url}: {e}") from e
        return dest_path

    @staticmethod
    def blob_name_from_url(url: str) -> Optional[str]:
        """Last path component of a blob URL, without any '#t=' fragment."""
        path = urlparse(url).path
        name = unquote(path.rsplit("/", 1)[-1]) if path else ""
        return name or None
