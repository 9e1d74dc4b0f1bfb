"""
Data provider for performance documents.

Reads a ``{"runs": [...]}`` document either over HTTP or from a local file.
Nothing is cached: every call re-reads from its source, and failed reads are
not retried.
"""

import inspect
from pathlib import Path
from typing import Any, Dict, Optional, Union

import aiofiles
import httpx
import orjson

from ..config import AppConfig
from ..errors import ParseError, ReadError, UnavailableError
from .logger import get_logger

logger = get_logger(__name__)

PerformanceDocument = Dict[str, Any]
Source = Union[str, Path, bytes, bytearray, Any]

_BOM_BYTES = b"\xef\xbb\xbf"
_BOM_TEXT = "\ufeff"


def parse_document(content: Union[str, bytes, bytearray]) -> PerformanceDocument:
    """Parse raw JSON content into a document.

    Raises:
        ParseError: If the content is not valid JSON.
    """
    # A leading byte-order mark is dropped, as browsers do when reading text
    if isinstance(content, str):
        content = content.removeprefix(_BOM_TEXT)
    else:
        content = bytes(content).removeprefix(_BOM_BYTES)
    try:
        return orjson.loads(content)
    except orjson.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}") from e


def is_url(source: Any) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


class PerformanceDataProvider:
    """Loads performance documents from the network or from local files.

    Attributes:
        config: Application configuration (source path, timeout).
    """

    def __init__(self, config: AppConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    async def fetch_document(self, source: Source) -> PerformanceDocument:
        """Load a document from a URL, a file path, raw content or a file object.

        Raises:
            UnavailableError: Network source unreachable or non-success status.
            ParseError: Content is not valid JSON.
            ReadError: Local file could not be read.
        """
        if is_url(source):
            return await self.fetch_from_url(source)
        if isinstance(source, (bytes, bytearray)):
            return parse_document(source)
        if isinstance(source, (str, Path)):
            return await self.read_file(source)
        if hasattr(source, "read"):
            return await self.read_file_object(source)
        raise TypeError(f"Unsupported performance data source: {type(source).__name__}")

    async def fetch_from_url(self, url: str) -> PerformanceDocument:
        """GET a document from the performance data endpoint."""
        logger.debug("Fetching performance data from %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self.config.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            raise UnavailableError(f"{type(e).__name__}: {e}" if str(e) else type(e).__name__) from e

        if not response.is_success:
            raise UnavailableError(_failure_reason(response), status_code=response.status_code)

        return parse_document(response.content)

    async def read_file(self, path: Union[str, Path]) -> PerformanceDocument:
        """Read and parse a local JSON file."""
        logger.debug("Reading performance data from %s", path)
        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except OSError as e:
            raise ReadError(f"Could not read {path}: {e.strerror or e}") from e
        return parse_document(content)

    async def read_file_object(self, file_obj: Any) -> PerformanceDocument:
        """Read and parse an already opened file object (sync or async ``read``)."""
        try:
            content = file_obj.read()
            if inspect.isawaitable(content):
                content = await content
        except UnicodeDecodeError as e:
            raise ReadError(f"Could not decode file: {e.reason}") from e
        except OSError as e:
            raise ReadError(f"Could not read file: {e.strerror or e}") from e
        return parse_document(content)

    async def load_source_document(self) -> PerformanceDocument:
        """Read the configured source file."""
        return await self.read_file(self.config.source_path)


def _failure_reason(response: httpx.Response) -> str:
    """Describe a non-success response, preferring the server's error field."""
    reason = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return reason
    if isinstance(body, dict):
        message = body.get("error") or body.get("detail")
        if message:
            return f"{message} ({reason})"
    return reason
