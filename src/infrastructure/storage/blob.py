# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Blob storage for audio files.

Generated feedback audio is written under a local directory that is
served at a public base URL. Inbound voice notes arrive as references:
either keys inside the storage root or http(s) URLs.
"""

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from src.core.config.settings import StorageSettings

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a blob cannot be stored or fetched.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class LocalBlobStorage:
    """Filesystem-backed blob storage with public URLs.

    Example:
        storage = LocalBlobStorage(settings.storage)
        url = await storage.put(audio, "feedback/u-1/abc.mp3")
    """

    def __init__(
        self,
        settings: "StorageSettings",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ) -> None:
        self._root = Path(settings.root_dir)
        self._public_base_url = settings.public_base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    def _path_for(self, key: str) -> Path:
        path = (self._root / key.lstrip("/")).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise StorageError(f"Key escapes storage root: {key}")
        return path

    async def put(self, data: bytes, key: str) -> str:
        """Store bytes under a key.

        Args:
            data: Blob contents.
            key: Relative key, e.g. "feedback/u-1/abc.mp3".

        Returns:
            Public URL of the stored blob.

        Raises:
            StorageError: If the blob cannot be written.
        """
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as e:
            raise StorageError(f"Failed to store blob: {key}", e) from e

        return f"{self._public_base_url}/{key.lstrip('/')}"

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def get(self, reference: str) -> bytes:
        """Fetch blob bytes by key or URL.

        Args:
            reference: A storage key, a public URL under this storage,
                or any http(s) URL.

        Returns:
            Blob contents.

        Raises:
            StorageError: If the blob cannot be read or downloaded.
        """
        if reference.startswith(f"{self._public_base_url}/"):
            reference = reference[len(self._public_base_url) + 1 :]

        if reference.startswith(("http://", "https://")):
            return await self._download(reference)

        path = self._path_for(reference)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to read blob: {reference}", e) from e

    async def _download(self, url: str) -> bytes:
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        try:
            response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
            return response.content
        except httpx.HTTPError as e:
            logger.warning("Failed to download blob %s: %s", url, e)
            raise StorageError(f"Failed to download blob: {url}", e) from e
        finally:
            if self._client is None:
                await client.aclose()
