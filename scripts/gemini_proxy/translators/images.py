"""Resolve OpenAI ``image_url`` values into Gemini ``inlineData`` parts."""

from __future__ import annotations

import asyncio
import base64
import re
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout

from ..errors import ImageFetchError, InvalidImageData
from ..result import Err, Ok, Result


# (content_type, body) for a fetched URL
FetchedImage = Tuple[Optional[str], bytes]
ImageFetcher = Callable[[str], Awaitable[FetchedImage]]

_DATA_URI_RE = re.compile(r"^data:(?P<mime_type>.*?)(;base64)?,(?P<data>.*)$")


def make_image_fetcher(timeout: float = 30.0) -> ImageFetcher:
    """Return a fetcher that downloads images over HTTP(S) with aiohttp."""

    async def fetch(url: str) -> FetchedImage:
        async with ClientSession(timeout=ClientTimeout(total=timeout)) as session:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise ImageFetchError(f"{response.status} {response.reason} ({url})")
                return response.headers.get("Content-Type"), await response.read()

    return fetch


def _inline(mime_type: Optional[str], data: str) -> Dict[str, Any]:
    return {"inlineData": {"mimeType": mime_type, "data": data}}


def parse_data_uri(url: str) -> Result:
    """Parse ``data:<mimeType>[;base64],<data>`` in place."""
    match = _DATA_URI_RE.match(url)
    if not match:
        return Err(InvalidImageData(f"Invalid image data: {url}"))
    return Ok(_inline(match.group("mime_type"), match.group("data")))


async def resolve_image(url: str, fetch: ImageFetcher) -> Result:
    """Turn an image reference into an inline part, fetching remote URLs."""
    if not isinstance(url, str):
        return Err(InvalidImageData(f"Invalid image data: {url!r}"))
    if not (url.startswith("http://") or url.startswith("https://")):
        return parse_data_uri(url)
    try:
        content_type, body = await fetch(url)
    except ImageFetchError as exc:
        return Err(ImageFetchError(f"Error fetching image: {exc.message}"))
    except (ClientError, OSError, asyncio.TimeoutError) as exc:
        return Err(ImageFetchError(f"Error fetching image: {exc}"))
    return Ok(_inline(content_type, base64.b64encode(body).decode("ascii")))


__all__ = [
    "FetchedImage",
    "ImageFetcher",
    "make_image_fetcher",
    "parse_data_uri",
    "resolve_image",
]
