"""
Watermark the listing photos referenced by an HTML page.

Each `<img>` matching the configured selectors is processed once per `src`:
the photo is fetched and baked, and `src` becomes a PNG data URI. Photos that
cannot be fetched get an overlay `<div data-wm-overlay="1">` in their container
instead. Processed images carry `data-wm-processed="1"` plus a digest of the
`src` the pass left behind; if a later pass sees a different `src` the image is
processed again.
"""
import hashlib
import logging
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup, Tag

from realty.services.watermark.config import WatermarkConfig, should_skip
from realty.services.watermark.core import css, overlay_spec, watermark_bytes
from realty.services.watermark.fetch import ImageFetchError, fetch_image
from realty.utils.exceptions import WatermarkException

logger = logging.getLogger(__name__)

OVERLAY_ATTR = "data-wm-overlay"


def src_digest(src: str) -> str:
    return hashlib.sha1(src.encode("utf-8")).hexdigest()[:16]


def _int_attr(tag: Tag, name: str) -> int | None:
    value = str(tag.get(name) or "").strip().lower().removesuffix("px")
    return int(value) if value.isdigit() else None


class HtmlWatermarker:

    def __init__(self, config: WatermarkConfig, base_url: str | None = None,
                 session: requests.Session | None = None):
        self.config = config
        self.base_url = base_url
        self.session = session
        self.stats = {"baked": 0, "overlay": 0, "skipped": 0, "unchanged": 0}

    # ─── Public ───────────────────────────────────────────────────────────────
    def process(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        for img in soup.select(", ".join(self.config.selectors)):
            self._process_img(soup, img)
        return str(soup)

    @staticmethod
    def strip_overlays(html: str) -> str:
        """Remove injected overlays so the next pass can place them again."""
        soup = BeautifulSoup(html, "html.parser")
        for el in soup.select(f'[{OVERLAY_ATTR}="1"]'):
            el.decompose()
        # overlay-mode images never had their src rewritten
        for img in soup.select('img[data-wm-processed="1"]:not([data-wm-src])'):
            for attr in ("data-wm-processed", "data-wm-digest"):
                del img[attr]
        return str(soup)

    # ─── Per image ────────────────────────────────────────────────────────────
    def is_opted_out(self, img: Tag) -> bool:
        for el in [img, *img.parents]:
            if not isinstance(el, Tag):
                continue
            if str(el.get(self.config.opt_out_attr, "")).lower() == "true":
                return True
            if self.config.opt_out_class in (el.get("class") or []):
                return True
        return False

    def _already_processed(self, img: Tag, src: str) -> bool:
        if img.get("data-wm-processed") != "1":
            return False
        if img.get("data-wm-digest") == src_digest(src):
            return True
        # src changed since the last pass
        for attr in ("data-wm-processed", "data-wm-digest", "data-wm-src"):
            del img[attr]
        return False

    def _resolve(self, src: str) -> str:
        if self.base_url and not src.startswith(("http://", "https://", "data:")):
            return urljoin(self.base_url, src)
        return src

    def _process_img(self, soup: BeautifulSoup, img: Tag) -> None:
        src = str(img.get("src") or "").strip()
        if not src:
            return
        if self._already_processed(img, src):
            self.stats["unchanged"] += 1
            return
        if self.is_opted_out(img):
            self.stats["skipped"] += 1
            return

        try:
            result = watermark_bytes(fetch_image(self._resolve(src), self.config, self.session), self.config)
        except (ImageFetchError, WatermarkException) as e:
            width, height = _int_attr(img, "width"), _int_attr(img, "height")
            if should_skip(width, height, False, self.config):
                self.stats["skipped"] += 1
                return
            logger.info(f"Overlay fallback for {src[:120]}: {e}")
            self._add_overlay(soup, img)
            self._mark(img, src)
            self.stats["overlay"] += 1
            return

        if result.mode == "skipped":
            self.stats["skipped"] += 1
            return

        new_src = result.data_url()
        img["data-wm-src"] = src
        img["src"] = new_src
        self._mark(img, new_src)
        self.stats["baked"] += 1

    @staticmethod
    def _mark(img: Tag, src: str) -> None:
        img["data-wm-processed"] = "1"
        img["data-wm-digest"] = src_digest(src)

    def _container(self, img: Tag) -> Tag | None:
        for selector in self.config.container_selectors:
            found = img.css.closest(selector)
            if found is not None:
                return found
        return img.parent if isinstance(img.parent, Tag) else None

    def _add_overlay(self, soup: BeautifulSoup, img: Tag) -> None:
        host = self._container(img)
        if host is None or host.name == "[document]":
            return
        if host.find(attrs={OVERLAY_ATTR: "1"}, recursive=False) is not None:
            return

        spec = overlay_spec(self.config)
        style = str(host.get("style") or "").strip().rstrip(";")
        if "position" not in style:
            host["style"] = "; ".join(filter(None, [style, css(spec["container"])]))

        overlay = soup.new_tag("div", attrs={OVERLAY_ATTR: "1", "aria-hidden": "true", "style": css(spec["host"])})
        mark = soup.new_tag("div", attrs={"style": css(spec["mark"])})
        if spec["text"]:
            mark.string = spec["text"]
        overlay.append(mark)
        host.append(overlay)
