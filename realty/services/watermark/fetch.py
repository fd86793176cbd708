import base64
import binascii
import logging
from urllib.parse import urljoin, urlparse, unquote_to_bytes

import requests

from realty.services.watermark.config import WatermarkConfig

logger = logging.getLogger(__name__)

HEADERS = {"User-Agent": "realty-watermark/1.0"}
MAX_REDIRECTS = 5


class ImageFetchError(Exception):
    """The image bytes could not be obtained (blocked host, HTTP error, not an image)."""


def host_allowed(url: str, config: WatermarkConfig) -> bool:
    if not config.allowed_hosts:
        return True
    host = (urlparse(url).hostname or "").lower()
    return any(host == h or host.endswith("." + h) for h in config.allowed_hosts)


def _decode_data_uri(uri: str) -> bytes:
    header, _, payload = uri.partition(",")
    if not header.startswith("data:image/"):
        raise ImageFetchError("Data URI is not an image")
    try:
        if header.endswith(";base64"):
            return base64.b64decode(payload, validate=True)
        return unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as e:
        raise ImageFetchError(f"Malformed data URI: {e}") from e


def _check_url(url: str, config: WatermarkConfig) -> None:
    if urlparse(url).scheme not in ("http", "https"):
        raise ImageFetchError(f"Unsupported image URL: {url[:80]}")
    if not host_allowed(url, config):
        raise ImageFetchError(f"Host not allowed: {urlparse(url).hostname}")


def fetch_image(url: str, config: WatermarkConfig, session: requests.Session | None = None) -> bytes:
    """
    Download image bytes for watermarking.
    Redirects are followed by hand so every hop is held to the host allowlist.
    Raises ImageFetchError when a host is not allowed, the request fails,
    the response is not an image, or it exceeds max_bytes.
    """
    if url.startswith("data:"):
        return _decode_data_uri(url)

    http = session or requests
    current = url
    for _ in range(MAX_REDIRECTS + 1):
        _check_url(current, config)
        try:
            resp = http.get(current, headers=HEADERS, timeout=config.fetch_timeout,
                            stream=True, allow_redirects=False)
        except requests.RequestException as e:
            logger.warning(f"Image fetch failed for {current}: {e}")
            raise ImageFetchError(str(e)) from e
        if not resp.is_redirect:
            break
        location = resp.headers.get("Location", "")
        resp.close()
        current = urljoin(current, location)
    else:
        raise ImageFetchError(f"Too many redirects for {url[:80]}")

    try:
        resp.raise_for_status()
        if "image" not in resp.headers.get("Content-Type", "").lower():
            raise ImageFetchError(f"Not an image: {resp.headers.get('Content-Type')}")

        data = b""
        for chunk in resp.iter_content(chunk_size=64 * 1024):
            data += chunk
            if len(data) > config.max_bytes:
                raise ImageFetchError("Image exceeds size limit")
        return data
    except requests.RequestException as e:
        logger.warning(f"Image fetch failed for {current}: {e}")
        raise ImageFetchError(str(e)) from e
    finally:
        resp.close()
