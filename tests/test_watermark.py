import base64
import io
from unittest.mock import MagicMock, patch

import pytest
import requests
from bs4 import BeautifulSoup
from PIL import Image, ImageChops

from helpers import FakeResponse, make_image_bytes
from realty.services.watermark import (
    HtmlWatermarker,
    ImageFetchError,
    WatermarkConfig,
    WatermarkStyle,
    bake,
    fetch_image,
    overlay_spec,
    should_skip,
    watermark_bytes,
    watermark_url,
)
from realty.services.watermark.html import OVERLAY_ATTR
from realty.utils.exceptions import WatermarkException

PNG_HEADERS = {"Content-Type": "image/png"}


def _session(content=None, status_code=200, headers=PNG_HEADERS, exc=None):
    session = MagicMock()
    if exc is not None:
        session.get.side_effect = exc
    else:
        session.get.return_value = FakeResponse(status_code=status_code, headers=headers,
                                                content=content if content is not None else make_image_bytes())
    return session


def _changed_box(original: bytes, baked: bytes):
    # compare opaque RGB; an RGBA getbbox only looks at the alpha band
    before = Image.open(io.BytesIO(original)).convert("RGB")
    after = Image.open(io.BytesIO(baked)).convert("RGB")
    return ImageChops.difference(before, after).getbbox()


# ─── Skip rules ───────────────────────────────────────────────────────────────
def test_should_skip():
    config = WatermarkConfig()

    assert should_skip(400, 300, False, config) is False
    assert should_skip(400, 300, True, config) is True
    assert should_skip(119, 300, False, config) is True
    assert should_skip(300, 100, False, config) is True
    assert should_skip(120, 120, False, config) is False
    assert should_skip(None, None, False, config) is True


def test_config_rejects_bad_opacity_and_empty_text():
    with pytest.raises(ValueError):
        WatermarkConfig(opacity=1.5)
    with pytest.raises(ValueError):
        WatermarkConfig(text="  ")


def test_with_style_returns_copy():
    config = WatermarkConfig()

    tiled = config.with_style("tiled")

    assert tiled.style == WatermarkStyle.TILED
    assert config.style == WatermarkStyle.LABEL
    assert config.with_style(None) is config


# ─── Baking ───────────────────────────────────────────────────────────────────
@pytest.mark.parametrize("style", list(WatermarkStyle))
def test_bake_changes_pixels(style):
    img = Image.new("RGB", (400, 300), (30, 60, 90))

    baked = bake(img, WatermarkConfig(style=style))

    assert baked.size == (400, 300)
    assert baked.mode == "RGBA"
    assert ImageChops.difference(img, baked.convert("RGB")).getbbox() is not None


@pytest.mark.parametrize("style", [WatermarkStyle.LABEL, WatermarkStyle.PILL])
def test_corner_styles_stay_bottom_right(style):
    original = make_image_bytes(400, 300)

    result = watermark_bytes(original, WatermarkConfig(style=style))

    left, top, _, _ = _changed_box(original, result.image)
    assert left > 200 and top > 150


def test_tiled_style_covers_the_image():
    original = make_image_bytes(400, 300)

    result = watermark_bytes(original, WatermarkConfig(style=WatermarkStyle.TILED))

    left, top, right, bottom = _changed_box(original, result.image)
    assert left < 100 and top < 100
    assert right > 300 and bottom > 200


def test_watermark_bytes_returns_png():
    result = watermark_bytes(make_image_bytes(fmt="JPEG"), WatermarkConfig())

    assert result.mode == "baked"
    assert result.mimetype == "image/png"
    assert (result.width, result.height) == (400, 300)
    assert Image.open(io.BytesIO(result.image)).format == "PNG"
    assert result.data_url().startswith("data:image/png;base64,")


def test_small_image_is_skipped():
    result = watermark_bytes(make_image_bytes(64, 64), WatermarkConfig())

    assert result.mode == "skipped"
    assert result.reason == "too-small"
    assert result.image is None


def test_opted_out_image_is_skipped():
    result = watermark_bytes(make_image_bytes(), WatermarkConfig(), opted_out=True)

    assert result.mode == "skipped"
    assert result.reason == "opted-out"


def test_unreadable_bytes_raise():
    with pytest.raises(WatermarkException):
        watermark_bytes(b"definitely not an image", WatermarkConfig())


def test_oversized_image_is_refused_before_decoding():
    with pytest.raises(WatermarkException, match="too large"):
        watermark_bytes(make_image_bytes(400, 300), WatermarkConfig(max_pixels=100_000))


def test_decompression_bomb_is_a_watermark_error(monkeypatch):
    # 400x300 is well past twice this limit, which Pillow treats as a bomb
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)

    with pytest.raises(WatermarkException, match="too large"):
        watermark_bytes(make_image_bytes(400, 300), WatermarkConfig())


# ─── Fetching ─────────────────────────────────────────────────────────────────
def test_fetch_image_reads_body():
    data = make_image_bytes()

    assert fetch_image("https://cdn.example.com/a.png", WatermarkConfig(), _session(data)) == data


def test_fetch_image_enforces_allowlist():
    config = WatermarkConfig(allowed_hosts=["example.com"])
    session = _session()

    fetch_image("https://cdn.example.com/a.png", config, session)
    with pytest.raises(ImageFetchError):
        fetch_image("https://evil.test/a.png", config, session)
    assert session.get.call_count == 1


def test_fetch_image_decodes_data_uri():
    data = make_image_bytes()
    uri = "data:image/png;base64," + base64.b64encode(data).decode()

    assert fetch_image(uri, WatermarkConfig()) == data
    with pytest.raises(ImageFetchError):
        fetch_image("data:text/plain;base64,aGk=", WatermarkConfig())


@pytest.mark.parametrize("session", [
    _session(headers={"Content-Type": "text/html"}, content=b"<html></html>"),
    _session(status_code=404),
    _session(exc=requests.ConnectionError("refused")),
])
def test_fetch_image_failures(session):
    with pytest.raises(ImageFetchError):
        fetch_image("https://cdn.example.com/a.png", WatermarkConfig(), session)


def test_fetch_image_enforces_size_limit():
    with pytest.raises(ImageFetchError):
        fetch_image("https://cdn.example.com/a.png", WatermarkConfig(max_bytes=100), _session())


def test_fetch_image_rejects_other_schemes():
    with pytest.raises(ImageFetchError):
        fetch_image("ftp://cdn.example.com/a.png", WatermarkConfig())


def _redirecting_session(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return session


def test_fetch_image_checks_every_redirect_hop():
    config = WatermarkConfig(allowed_hosts=["example.com"])
    session = _redirecting_session(
        FakeResponse(status_code=302, headers={"Location": "http://169.254.169.254/latest/meta-data"}),
        FakeResponse(headers=PNG_HEADERS, content=make_image_bytes()),
    )

    with pytest.raises(ImageFetchError, match="Host not allowed"):
        fetch_image("https://cdn.example.com/a.png", config, session)
    assert session.get.call_count == 1
    assert session.get.call_args.kwargs["allow_redirects"] is False


def test_fetch_image_follows_allowed_redirects():
    data = make_image_bytes()
    config = WatermarkConfig(allowed_hosts=["example.com"])
    session = _redirecting_session(
        FakeResponse(status_code=301, headers={"Location": "/media/b.png"}),
        FakeResponse(status_code=302, headers={"Location": "https://img.example.com/c.png"}),
        FakeResponse(headers=PNG_HEADERS, content=data),
    )

    assert fetch_image("https://cdn.example.com/a.png", config, session) == data
    urls = [c.args[0] for c in session.get.call_args_list]
    assert urls == [
        "https://cdn.example.com/a.png",
        "https://cdn.example.com/media/b.png",
        "https://img.example.com/c.png",
    ]


def test_fetch_image_rejects_redirect_to_other_scheme():
    session = _redirecting_session(FakeResponse(status_code=302, headers={"Location": "file:///etc/passwd"}))

    with pytest.raises(ImageFetchError, match="Unsupported"):
        fetch_image("https://cdn.example.com/a.png", WatermarkConfig(), session)


def test_fetch_image_limits_redirect_chain():
    session = MagicMock()
    session.get.return_value = FakeResponse(status_code=302, headers={"Location": "/again"})

    with pytest.raises(ImageFetchError, match="Too many redirects"):
        fetch_image("https://cdn.example.com/a.png", WatermarkConfig(), session)


# ─── URL entry point ──────────────────────────────────────────────────────────
def test_watermark_url_bakes_fetched_image():
    result = watermark_url("https://cdn.example.com/a.png", WatermarkConfig(), session=_session())

    assert result.mode == "baked"


def test_watermark_url_falls_back_to_overlay():
    session = _session(exc=requests.ConnectionError("refused"))

    result = watermark_url("https://cdn.example.com/a.png", WatermarkConfig(), 640, 480, session=session)

    assert result.mode == "overlay"
    assert result.overlay["text"] == "AshishProperties.in"
    assert result.overlay["container"] == {"position": "relative"}
    assert result.overlay["host"]["pointer-events"] == "none"


def test_watermark_url_skips_small_hint_on_failure():
    session = _session(exc=requests.ConnectionError("refused"))

    result = watermark_url("https://cdn.example.com/icon.png", WatermarkConfig(), 32, 32, session=session)

    assert result.mode == "skipped"


def test_overlay_spec_per_style():
    assert "linear-gradient" in overlay_spec(WatermarkConfig(style="pill"))["mark"]["background"]
    tiled = overlay_spec(WatermarkConfig(style="tiled"))
    assert tiled["text"] == ""
    assert tiled["mark"]["background-image"].startswith('url("data:image/svg+xml')


# ─── HTML pass ────────────────────────────────────────────────────────────────
CARD = '<div class="property-card"><img src="https://cdn.example.com/house.jpg" width="400" height="300"></div>'


def _img(html: str):
    return BeautifulSoup(html, "html.parser").find("img")


def test_html_pass_bakes_matching_images():
    wm = HtmlWatermarker(WatermarkConfig(), session=_session())

    out = wm.process(CARD)

    img = _img(out)
    assert img["src"].startswith("data:image/png;base64,")
    assert img["data-wm-processed"] == "1"
    assert img["data-wm-src"] == "https://cdn.example.com/house.jpg"
    assert wm.stats["baked"] == 1


def test_html_pass_is_idempotent():
    session = _session()
    out = HtmlWatermarker(WatermarkConfig(), session=session).process(CARD)

    wm = HtmlWatermarker(WatermarkConfig(), session=session)
    again = wm.process(out)

    assert _img(again)["src"] == _img(out)["src"]
    assert wm.stats["unchanged"] == 1
    assert session.get.call_count == 1


def test_html_pass_reprocesses_changed_src():
    session = _session()
    out = HtmlWatermarker(WatermarkConfig(), session=session).process(CARD)
    soup = BeautifulSoup(out, "html.parser")
    soup.find("img")["src"] = "https://cdn.example.com/other.jpg"

    wm = HtmlWatermarker(WatermarkConfig(), session=session)
    again = wm.process(str(soup))

    img = _img(again)
    assert img["src"].startswith("data:image/png")
    assert img["data-wm-src"] == "https://cdn.example.com/other.jpg"
    assert wm.stats["baked"] == 1
    assert session.get.call_count == 2


@pytest.mark.parametrize("html", [
    '<div class="property-card"><img class="no-wm" src="https://cdn.example.com/a.jpg"></div>',
    '<div class="property-card" data-no-wm="true"><img src="https://cdn.example.com/a.jpg"></div>',
    '<div class="property-card"><img data-no-wm="true" src="https://cdn.example.com/a.jpg"></div>',
])
def test_html_pass_respects_opt_out(html):
    session = _session()
    wm = HtmlWatermarker(WatermarkConfig(), session=session)

    out = wm.process(html)

    assert _img(out)["src"] == "https://cdn.example.com/a.jpg"
    assert wm.stats["skipped"] == 1
    session.get.assert_not_called()


def test_html_pass_leaves_small_images_alone():
    html = '<div class="card"><img src="https://cdn.example.com/logo.png"></div>'
    wm = HtmlWatermarker(WatermarkConfig(), session=_session(make_image_bytes(48, 48)))

    out = wm.process(html)

    assert _img(out)["src"] == "https://cdn.example.com/logo.png"
    assert wm.stats["skipped"] == 1


def test_html_pass_ignores_unmatched_images():
    session = _session()
    html = '<header><img src="https://cdn.example.com/banner.jpg"></header>'

    assert _img(HtmlWatermarker(WatermarkConfig(), session=session).process(html))["src"] == \
        "https://cdn.example.com/banner.jpg"
    session.get.assert_not_called()


def test_html_pass_adds_one_overlay_per_container():
    html = (
        '<div class="property-card" style="color: red">'
        '<img src="https://cdn.example.com/a.jpg" width="400" height="300">'
        '<img src="https://cdn.example.com/b.jpg" width="400" height="300">'
        '</div>'
    )
    wm = HtmlWatermarker(WatermarkConfig(), session=_session(exc=requests.ConnectionError("refused")))

    soup = BeautifulSoup(wm.process(html), "html.parser")

    card = soup.find("div", class_="property-card")
    overlays = soup.select(f'[{OVERLAY_ATTR}="1"]')
    assert len(overlays) == 1
    assert overlays[0].parent is card
    assert overlays[0].get_text() == "AshishProperties.in"
    assert "position: relative" in card["style"]
    assert card["style"].startswith("color: red")
    assert wm.stats["overlay"] == 2
    assert all(img["src"].startswith("https://") for img in soup.find_all("img"))


def test_overlay_prefers_hero_container():
    html = (
        '<section data-role="property-hero"><figure>'
        '<img src="https://cdn.example.com/a.jpg" width="800" height="600">'
        '</figure></section>'
    )
    wm = HtmlWatermarker(WatermarkConfig(), session=_session(exc=requests.ConnectionError("refused")))

    soup = BeautifulSoup(wm.process(html), "html.parser")

    assert soup.select_one(f'[{OVERLAY_ATTR}="1"]').parent.name == "section"


def test_html_pass_resolves_relative_src():
    session = _session()
    html = '<div class="card"><img src="/media/a.jpg"></div>'

    HtmlWatermarker(WatermarkConfig(), base_url="https://cdn.example.com/listing/1", session=session).process(html)

    assert session.get.call_args.args[0] == "https://cdn.example.com/media/a.jpg"


def test_strip_overlays():
    wm = HtmlWatermarker(WatermarkConfig(), session=_session(exc=requests.ConnectionError("refused")))
    out = wm.process(CARD)

    stripped = HtmlWatermarker.strip_overlays(out)

    assert OVERLAY_ATTR not in stripped
    assert "house.jpg" in stripped


def test_overlay_returns_after_strip():
    session = _session(exc=requests.ConnectionError("refused"))
    out = HtmlWatermarker(WatermarkConfig(), session=session).process(CARD)
    stripped = HtmlWatermarker.strip_overlays(out)

    assert "data-wm-processed" not in stripped

    wm = HtmlWatermarker(WatermarkConfig(), session=session)
    again = wm.process(stripped)

    assert wm.stats["overlay"] == 1
    assert len(BeautifulSoup(again, "html.parser").select(f'[{OVERLAY_ATTR}="1"]')) == 1


def test_strip_overlays_keeps_baked_markers():
    out = HtmlWatermarker(WatermarkConfig(), session=_session()).process(CARD)

    img = _img(HtmlWatermarker.strip_overlays(out))

    assert img["data-wm-processed"] == "1"
    assert img["data-wm-src"] == "https://cdn.example.com/house.jpg"


def test_oversized_photo_does_not_abort_html_pass():
    html = (
        '<div class="property-card"><img src="https://cdn.example.com/huge.png" width="400" height="300"></div>'
        '<div class="listing-card"><img src="https://cdn.example.com/ok.png" width="400" height="300"></div>'
    )
    session = MagicMock()
    session.get.side_effect = [
        FakeResponse(headers=PNG_HEADERS, content=make_image_bytes(400, 300)),
        FakeResponse(headers=PNG_HEADERS, content=make_image_bytes(200, 150)),
    ]
    wm = HtmlWatermarker(WatermarkConfig(max_pixels=50_000), session=session)

    soup = BeautifulSoup(wm.process(html), "html.parser")

    huge, ok = soup.find_all("img")
    assert huge["src"] == "https://cdn.example.com/huge.png"
    assert ok["src"].startswith("data:image/png;base64,")
    assert wm.stats == {"baked": 1, "overlay": 1, "skipped": 0, "unchanged": 0}


# ─── API ──────────────────────────────────────────────────────────────────────
def test_upload_returns_watermarked_png(client):
    original = make_image_bytes()

    response = client.post("/api/watermark/image",
                           files={"file": ("house.png", original, "image/png")},
                           data={"style": "pill"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.headers["x-watermark-mode"] == "baked"
    assert _changed_box(original, response.content) is not None


def test_upload_small_image_comes_back_unchanged(client):
    original = make_image_bytes(80, 80)

    response = client.post("/api/watermark/image", files={"file": ("icon.png", original, "image/png")})

    assert response.headers["x-watermark-mode"] == "skipped"
    assert response.content == original


def test_upload_opt_out(client):
    original = make_image_bytes()

    response = client.post("/api/watermark/image", files={"file": ("a.png", original, "image/png")},
                           data={"optOut": "true"})

    assert response.headers["x-watermark-reason"] == "opted-out"
    assert response.content == original


def test_upload_rejects_bad_files(client):
    bad = client.post("/api/watermark/image", files={"file": ("a.png", b"nope", "image/png")})
    empty = client.post("/api/watermark/image", files={"file": ("a.png", b"", "image/png")})

    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "WATERMARK_FAILED"
    assert empty.status_code == 400
    assert empty.json()["error"]["field"] == "file"


def test_url_endpoint_bakes(client):
    with patch("realty.services.watermark.core.fetch_image", return_value=make_image_bytes()):
        response = client.post("/api/watermark/url", json={"imageUrl": "https://cdn.example.com/a.png"})

    data = response.json()["data"]
    assert data["mode"] == "baked"
    assert data["dataUrl"].startswith("data:image/png;base64,")


def test_url_endpoint_overlay_fallback(client):
    with patch("realty.services.watermark.core.fetch_image", side_effect=ImageFetchError("blocked")):
        response = client.post("/api/watermark/url", json={
            "imageUrl": "https://cdn.example.com/a.png", "width": 640, "height": 480, "style": "tiled",
        })

    data = response.json()["data"]
    assert data["mode"] == "overlay"
    assert data["dataUrl"] is None
    assert data["overlay"]["style"] == "tiled"
    assert data["reason"] == "blocked"


def test_url_endpoint_validates_url(client):
    response = client.post("/api/watermark/url", json={"imageUrl": "javascript:alert(1)"})

    assert response.status_code == 400


def test_html_endpoint(client):
    with patch("realty.services.watermark.html.fetch_image", return_value=make_image_bytes()):
        response = client.post("/api/watermark/html", json={"html": CARD})

    data = response.json()["data"]
    assert data["stats"]["baked"] == 1
    assert 'data-wm-processed="1"' in data["html"]


def test_html_endpoint_closes_its_session(client):
    with patch("realty.api.v1.watermark.requests.Session") as session_cls, \
         patch("realty.services.watermark.html.fetch_image", return_value=make_image_bytes()) as mock_fetch:
        response = client.post("/api/watermark/html", json={"html": CARD})

    assert response.status_code == 200
    session = session_cls.return_value.__enter__.return_value
    assert mock_fetch.call_args.args[2] is session
    session_cls.return_value.__exit__.assert_called_once()


def test_upload_rejects_oversized_image(client, monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1_000)

    response = client.post("/api/watermark/image",
                           files={"file": ("huge.png", make_image_bytes(), "image/png")})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "WATERMARK_FAILED"
