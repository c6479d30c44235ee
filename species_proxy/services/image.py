"""
Image resolution service.

Turns the image locators sent by the data-entry form into local files:
- Remote URLs are probed with a HEAD request for their content type and
  then downloaded into the interim image folder
- Anything else is a file name relative to the interim image folder

Only PNG and JPEG images are accepted.
"""

import logging
import uuid
from pathlib import Path

import httpx

from species_proxy.core.exceptions import (
    InvalidInputError,
    UnsupportedMediaTypeError,
    UpstreamUnavailableError,
)


logger = logging.getLogger(__name__)

# Content type -> extension of the interim file
SUPPORTED_MEDIA_TYPES = {
    'image/png': '.png',
    'image/jpeg': '.jpg',
}

# Some hosts reject requests without a user agent.
DOWNLOAD_HEADERS = {'User-Agent': 'Mozilla'}


def sniff_media_type(data: bytes) -> str | None:
    """
    Detect PNG or JPEG from magic number signatures.

    Args:
        data: Leading bytes of the image

    Returns:
        'image/png', 'image/jpeg' or None if neither
    """
    if len(data) >= 4 and data[:4] == b'\x89PNG':
        return 'image/png'
    if len(data) >= 3 and data[:3] == b'\xff\xd8\xff':
        return 'image/jpeg'
    return None


def _normalise_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(';')[0].strip().lower()


class ImageResolver:
    """
    Resolves image locators to readable local files.

    Handles:
    - Content-type probing of remote images
    - Bounded-timeout download into the interim folder
    - Containment of local paths inside the interim folder

    Downloaded files are tracked until discard_downloads() is called, so
    one resolver serves a single inbound request.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        interim_folder: str | Path,
        head_timeout: float = 10.0,
        download_timeout: float = 50.0,
    ):
        self.http = http
        self.interim_folder = Path(interim_folder)
        self.head_timeout = head_timeout
        self.download_timeout = download_timeout
        self.downloads: list[Path] = []

    async def resolve(self, locator: str) -> Path:
        """
        Resolve one locator to a local path.

        Args:
            locator: URL or file name in the interim folder

        Returns:
            Path of the local copy

        Raises:
            UnsupportedMediaTypeError: If a remote image is not PNG/JPEG
            UpstreamUnavailableError: If a remote image cannot be downloaded
            InvalidInputError: If a local name escapes the interim folder
        """
        if locator.startswith('http'):
            return await self._download(locator)
        return self._local_path(locator)

    async def resolve_all(self, locators) -> list[Path]:
        """Resolve locators one after another, preserving order."""
        paths = []
        for locator in locators:
            paths.append(await self.resolve(locator))
        return paths

    async def _probe_content_type(self, url: str) -> str | None:
        try:
            response = await self.http.head(
                url,
                headers=DOWNLOAD_HEADERS,
                timeout=self.head_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as e:
            logger.warning(f'HEAD request for {url} failed: {e}')
            return None
        return _normalise_content_type(response.headers.get('content-type'))

    async def _download(self, url: str) -> Path:
        content_type = await self._probe_content_type(url)
        extension = SUPPORTED_MEDIA_TYPES.get(content_type)
        if extension is None:
            raise UnsupportedMediaTypeError(url, content_type)

        self.interim_folder.mkdir(parents=True, exist_ok=True)
        download_path = self.interim_folder / f'species_proxy_{uuid.uuid4().hex}{extension}'

        try:
            async with self.http.stream(
                'GET',
                url,
                headers=DOWNLOAD_HEADERS,
                timeout=self.download_timeout,
                follow_redirects=True,
            ) as response:
                response.raise_for_status()
                with open(download_path, 'wb') as fp:
                    async for chunk in response.aiter_bytes():
                        fp.write(chunk)
        except httpx.HTTPError as e:
            download_path.unlink(missing_ok=True)
            raise UpstreamUnavailableError('image host', url, str(e)) from e

        self.downloads.append(download_path)
        logger.info(f'Downloaded {url} to {download_path.name}')
        return download_path

    def discard_downloads(self):
        """Delete every file fetched by this resolver. Local images are never touched."""
        while self.downloads:
            path = self.downloads.pop()
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f'Could not delete interim image {path.name}: {e}')

    def _local_path(self, locator: str) -> Path:
        root = self.interim_folder.resolve()
        path = (root / locator).resolve()
        if root != path and root not in path.parents:
            raise InvalidInputError(f"Image '{locator}' is outside the interim image folder.")
        return path

    def read(self, path: Path) -> tuple[bytes, str]:
        """
        Read a resolved image for upload.

        Args:
            path: Local image path

        Returns:
            Tuple of (content, media type)

        Raises:
            InvalidInputError: If the image could not be opened
            UnsupportedMediaTypeError: If the content is not PNG/JPEG
        """
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InvalidInputError(f"The image '{path.name}' could not be opened.") from e

        media_type = sniff_media_type(content[:8])
        if media_type is None:
            raise UnsupportedMediaTypeError(path.name, None)
        return content, media_type
