from realty.services.watermark.config import (
    DEFAULT_SELECTORS, WatermarkConfig, WatermarkStyle, should_skip,
)
from realty.services.watermark.core import (
    WatermarkResult, overlay_spec, watermark_bytes, watermark_url,
)
from realty.services.watermark.fetch import ImageFetchError, fetch_image
from realty.services.watermark.html import HtmlWatermarker
from realty.services.watermark.render import bake

__all__ = [
    "DEFAULT_SELECTORS",
    "WatermarkConfig",
    "WatermarkStyle",
    "should_skip",
    "WatermarkResult",
    "overlay_spec",
    "watermark_bytes",
    "watermark_url",
    "ImageFetchError",
    "fetch_image",
    "HtmlWatermarker",
    "bake",
]
