"""
Pixel-level watermark rendering with Pillow.

Each style draws onto a transparent RGBA layer the size of the image, which is
then alpha-composited over the photo. Saving the resulting file keeps the mark.
"""
from functools import lru_cache

from PIL import Image, ImageColor, ImageDraw, ImageFont

from realty.services.watermark.config import WatermarkConfig, WatermarkStyle


@lru_cache(maxsize=16)
def load_font(size: int, font_path: str | None = None) -> ImageFont.ImageFont:
    if font_path:
        return ImageFont.truetype(font_path, size)
    return ImageFont.load_default(size=size)


def _alpha(opacity: float) -> int:
    return max(0, min(255, round(opacity * 255)))


def _text_size(draw: ImageDraw.ImageDraw, text: str, font, stroke_width: int = 0) -> tuple[int, int, int, int]:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font, stroke_width=stroke_width)
    return left, top, right - left, bottom - top


# ─── Styles ───────────────────────────────────────────────────────────────────
def _draw_label(layer: Image.Image, config: WatermarkConfig) -> None:
    w, h = layer.size
    draw = ImageDraw.Draw(layer)
    font = load_font(config.font_size, config.font_path)
    left, top, tw, th = _text_size(draw, config.text, font, stroke_width=1)

    x = max(0, w - tw - config.margin) - left
    y = max(0, h - th - config.margin) - top
    draw.text(
        (x, y), config.text, font=font,
        fill=(255, 255, 255, _alpha(config.opacity)),
        stroke_width=1, stroke_fill=(0, 0, 0, 90),
    )


def _gradient(size: tuple[int, int], start: str, end: str, alpha: int) -> Image.Image:
    # linear_gradient is top-to-bottom; rotate for left-to-right
    ramp = Image.linear_gradient("L").rotate(90).resize(size)
    a = Image.new("RGBA", size, ImageColor.getrgb(start) + (alpha,))
    b = Image.new("RGBA", size, ImageColor.getrgb(end) + (alpha,))
    return Image.composite(a, b, ramp)


def _draw_pill(layer: Image.Image, config: WatermarkConfig) -> None:
    w, h = layer.size
    draw = ImageDraw.Draw(layer)
    font = load_font(config.font_size, config.font_path)
    left, top, tw, th = _text_size(draw, config.text, font)

    pad_x, pad_y = max(6, config.font_size // 2 + 2), max(3, config.font_size // 4 + 1)
    pw, ph = tw + 2 * pad_x, th + 2 * pad_y
    px = max(0, w - pw - config.margin)
    py = max(0, h - ph - config.margin)

    badge = _gradient((pw, ph), config.pill_colors[0], config.pill_colors[1], _alpha(0.85))
    mask = Image.new("L", (pw, ph), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, pw - 1, ph - 1), radius=ph // 2, fill=255)
    layer.paste(badge, (px, py), mask)

    draw.text(
        (px + pad_x - left, py + pad_y - top), config.text, font=font,
        fill=(255, 255, 255, _alpha(config.opacity)),
    )


def _draw_tiled(layer: Image.Image, config: WatermarkConfig) -> None:
    w, h = layer.size
    size = max(config.font_size, min(w, h) // 14)
    font = load_font(size, config.font_path)

    measure = ImageDraw.Draw(layer)
    left, top, tw, th = _text_size(measure, config.text, font)
    tile = Image.new("RGBA", (tw + 4, th + 4), (0, 0, 0, 0))
    ImageDraw.Draw(tile).text(
        (2 - left, 2 - top), config.text, font=font,
        fill=(255, 255, 255, _alpha(config.pattern_opacity)),
    )
    tile = tile.rotate(-config.pattern_angle, expand=True, resample=Image.Resampling.BICUBIC)

    step_x = tile.width + size * 3
    step_y = tile.height + size * 2
    for row, y in enumerate(range(-(tile.height // 2), h, step_y)):
        offset = (step_x // 2) if row % 2 else 0
        for x in range(offset - tile.width // 2, w, step_x):
            # alpha_composite rejects negative offsets, so clip the tile instead
            layer.alpha_composite(tile, dest=(max(x, 0), max(y, 0)), source=(max(-x, 0), max(-y, 0)))


_STYLES = {
    WatermarkStyle.LABEL: _draw_label,
    WatermarkStyle.PILL:  _draw_pill,
    WatermarkStyle.TILED: _draw_tiled,
}


def bake(image: Image.Image, config: WatermarkConfig) -> Image.Image:
    """Return a new RGBA image with the configured watermark composited into its pixels."""
    base = image.convert("RGBA")
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))
    _STYLES[config.style](layer, config)
    return Image.alpha_composite(base, layer)
