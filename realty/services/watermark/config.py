import enum
from pydantic import BaseModel, field_validator

from realty.config import Settings, settings as app_settings


class WatermarkStyle(str, enum.Enum):
    LABEL = "label"    # small outlined text, bottom-right
    PILL  = "pill"     # text on a rounded gradient badge, bottom-right
    TILED = "tiled"    # diagonal repeated text across the whole image


# Listing photos across the site; icons and logos fall under the size threshold
DEFAULT_SELECTORS = [
    '[data-role="property-hero"] img',
    ".property-hero img",
    ".property-gallery img",
    ".lightbox img",
    '[role="dialog"] img',
    'img[data-wm="1"]',
    ".property-card img",
    ".property-tile img",
    ".listing-card img",
    ".post-card img",
    ".ad-card img",
    ".featured-ad img",
    ".property-listing img",
    ".property-item img",
    ".listing img",
    ".card img",
]

# Preferred hosts for the fallback overlay, before the image's direct parent
DEFAULT_CONTAINER_SELECTORS = [
    '[data-role="property-hero"]',
    ".property-hero",
    ".lightbox",
    '[role="dialog"]',
]


class WatermarkConfig(BaseModel):
    text:                str          = "AshishProperties.in"
    style:               WatermarkStyle = WatermarkStyle.LABEL
    min_dimension:       int          = 120
    font_size:           int          = 12
    font_path:           str | None   = None
    margin:              int          = 8
    opacity:             float        = 0.9
    pattern_opacity:     float        = 0.18
    pattern_angle:       int          = -30
    pill_colors:         tuple[str, str] = ("#7c3aed", "#db2777")
    selectors:           list[str]    = DEFAULT_SELECTORS
    container_selectors: list[str]    = DEFAULT_CONTAINER_SELECTORS
    opt_out_attr:        str          = "data-no-wm"
    opt_out_class:       str          = "no-wm"
    allowed_hosts:       list[str]    = []
    fetch_timeout:       float        = 10.0
    max_bytes:           int          = 20 * 1024 * 1024
    max_pixels:          int          = 40_000_000

    @field_validator("opacity", "pattern_opacity")
    @classmethod
    def unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Opacity must be between 0 and 1")
        return v

    @field_validator("text")
    @classmethod
    def text_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Watermark text cannot be empty")
        return v

    @classmethod
    def from_settings(cls, s: Settings = app_settings) -> "WatermarkConfig":
        return cls(
            text=s.WATERMARK_TEXT,
            style=WatermarkStyle(s.WATERMARK_STYLE),
            min_dimension=s.WATERMARK_MIN_DIMENSION,
            font_size=s.WATERMARK_FONT_SIZE,
            font_path=s.WATERMARK_FONT_PATH or None,
            allowed_hosts=s.get_watermark_allowed_hosts(),
            fetch_timeout=s.WATERMARK_FETCH_TIMEOUT,
        )

    def with_style(self, style: WatermarkStyle | str | None) -> "WatermarkConfig":
        if style is None:
            return self
        return self.model_copy(update={"style": WatermarkStyle(style)})


def should_skip(width: int | None, height: int | None, opted_out: bool, config: WatermarkConfig) -> bool:
    """Opted-out images and anything below the minimum size (icons, logos) are left alone."""
    if opted_out:
        return True
    w, h = width or 0, height or 0
    return w < config.min_dimension or h < config.min_dimension
