import base64
import io
import logging
from typing import Literal
from urllib.parse import quote

import requests
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel

from realty.services.watermark.config import WatermarkConfig, WatermarkStyle, should_skip
from realty.services.watermark.fetch import ImageFetchError, fetch_image
from realty.services.watermark.render import bake
from realty.utils.exceptions import WatermarkException

logger = logging.getLogger(__name__)

FONT_STACK = "Inter, system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif"


class WatermarkResult(BaseModel):
    mode:     Literal["baked", "overlay", "skipped"]
    image:    bytes | None = None
    mimetype: str | None = None
    width:    int | None = None
    height:   int | None = None
    overlay:  dict | None = None
    reason:   str | None = None

    def data_url(self) -> str | None:
        if self.image is None:
            return None
        return f"data:{self.mimetype};base64,{base64.b64encode(self.image).decode('ascii')}"


# ─── Baking ───────────────────────────────────────────────────────────────────
def decode_image(data: bytes, max_pixels: int) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
    except Image.DecompressionBombError as e:
        raise WatermarkException("Image dimensions are too large") from e
    except (UnidentifiedImageError, OSError) as e:
        raise WatermarkException("Uploaded file is not a readable image") from e

    # header only so far; refuse before the pixels are decoded
    if img.width * img.height > max_pixels:
        raise WatermarkException("Image dimensions are too large")
    try:
        img.load()
    except (Image.DecompressionBombError, OSError) as e:
        raise WatermarkException("Uploaded file is not a readable image") from e
    return img


def watermark_bytes(data: bytes, config: WatermarkConfig, opted_out: bool = False) -> WatermarkResult:
    """
    Bake the watermark into encoded image bytes and return a PNG.
    Small and opted-out images come back as `skipped` with no image data.
    """
    if opted_out:
        return WatermarkResult(mode="skipped", reason="opted-out")

    img = decode_image(data, config.max_pixels)
    w, h = img.size
    if should_skip(w, h, False, config):
        return WatermarkResult(mode="skipped", width=w, height=h, reason="too-small")

    out = io.BytesIO()
    bake(img, config).save(out, format="PNG", optimize=True)
    return WatermarkResult(mode="baked", image=out.getvalue(), mimetype="image/png", width=w, height=h)


# ─── Overlay fallback ─────────────────────────────────────────────────────────
def css(rules: dict) -> str:
    return "; ".join(f"{k}: {v}" for k, v in rules.items())


def _pattern_svg(config: WatermarkConfig) -> str:
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="260" height="140">'
        f'<text x="10" y="80" transform="rotate({config.pattern_angle} 130 70)" '
        f'font-family="{FONT_STACK}" font-size="18" font-weight="800" '
        f'fill="rgba(255,255,255,{config.pattern_opacity})">{config.text}</text></svg>'
    )
    return f'url("data:image/svg+xml;utf8,{quote(svg)}")'


def overlay_spec(config: WatermarkConfig) -> dict:
    """
    CSS for the on-screen fallback when the image bytes cannot be processed.
    `container` is merged into the image's container, `host` is the absolutely
    positioned layer, and `mark` is the label, pill or pattern inside it.
    """
    host = {
        "position": "absolute",
        "inset": "0",
        "pointer-events": "none",
        "z-index": "60",
        "display": "block",
    }
    font = f"800 {config.font_size}px {FONT_STACK}"
    if config.style == WatermarkStyle.TILED:
        mark = {
            "position": "absolute",
            "inset": "0",
            "background-image": _pattern_svg(config),
            "background-repeat": "repeat",
        }
    elif config.style == WatermarkStyle.PILL:
        start, end = config.pill_colors
        mark = {
            "position": "absolute",
            "right": f"{config.margin}px",
            "bottom": f"{config.margin}px",
            "padding": "3px 10px",
            "border-radius": "999px",
            "background": f"linear-gradient(90deg, {start}, {end})",
            "opacity": "0.85",
            "color": f"rgba(255,255,255,{config.opacity})",
            "font": font,
            "white-space": "nowrap",
            "user-select": "none",
        }
    else:
        mark = {
            "position": "absolute",
            "right": f"{config.margin}px",
            "bottom": f"{max(0, config.margin - 2)}px",
            "color": f"rgba(255,255,255,{config.opacity})",
            "text-shadow": "0 1px 2px rgba(0,0,0,0.6)",
            "font": font,
            "white-space": "nowrap",
            "user-select": "none",
        }
    mark["pointer-events"] = "none"
    return {
        "style": config.style.value,
        "text": "" if config.style == WatermarkStyle.TILED else config.text,
        "container": {"position": "relative"},
        "host": host,
        "mark": mark,
    }


# ─── URL entry point ──────────────────────────────────────────────────────────
def watermark_url(
    url: str,
    config: WatermarkConfig,
    width: int | None = None,
    height: int | None = None,
    opted_out: bool = False,
    session: requests.Session | None = None,
) -> WatermarkResult:
    """
    Fetch and bake a remote image. When the bytes cannot be fetched or decoded,
    fall back to an overlay, unless the hinted size marks it as an icon.
    """
    if opted_out:
        return WatermarkResult(mode="skipped", reason="opted-out")

    try:
        return watermark_bytes(fetch_image(url, config, session), config)
    except (ImageFetchError, WatermarkException) as e:
        reason = str(e) if isinstance(e, ImageFetchError) else e.detail["message"]
        if should_skip(width, height, False, config):
            return WatermarkResult(mode="skipped", width=width, height=height, reason="too-small")
        logger.info(f"Falling back to overlay for {url[:120]}: {reason}")
        return WatermarkResult(mode="overlay", width=width, height=height,
                               overlay=overlay_spec(config), reason=reason)
