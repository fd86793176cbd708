import logging

import requests
from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from realty.schemas.common import success_response
from realty.schemas.watermark import WatermarkHtmlRequest, WatermarkUrlRequest
from realty.services.watermark import HtmlWatermarker, WatermarkConfig, WatermarkStyle, watermark_bytes, watermark_url
from realty.utils.exceptions import ValidationFailedException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/watermark")

MAX_UPLOAD_BYTES = 20 * 1024 * 1024


def _config(style: WatermarkStyle | None) -> WatermarkConfig:
    return WatermarkConfig.from_settings().with_style(style)


# ─── POST /watermark/image ────────────────────────────────────────────────────
@router.post("/image", summary="Bake the watermark into an uploaded listing photo")
async def watermark_upload(
    file:   UploadFile = File(...),
    style:  WatermarkStyle | None = Form(None),
    optOut: bool = Form(False),
):
    """
    Returns the watermarked PNG. Photos below the minimum size, or sent with
    optOut=true, come back unchanged with `X-Watermark-Mode: skipped`.
    """
    data = await file.read()
    if not data:
        raise ValidationFailedException("Uploaded file is empty", field="file")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationFailedException("Uploaded file is too large", field="file")

    result = await run_in_threadpool(watermark_bytes, data, _config(style), optOut)
    if result.mode == "skipped":
        return Response(
            content=data,
            media_type=file.content_type or "application/octet-stream",
            headers={"X-Watermark-Mode": "skipped", "X-Watermark-Reason": result.reason or ""},
        )
    return Response(content=result.image, media_type=result.mimetype,
                    headers={"X-Watermark-Mode": result.mode})


# ─── POST /watermark/url ──────────────────────────────────────────────────────
@router.post("/url", summary="Watermark a remote photo, or describe the overlay fallback")
def watermark_remote(body: WatermarkUrlRequest):
    result = watermark_url(body.imageUrl, _config(body.style), body.width, body.height, body.optOut)
    return success_response(f"Image {result.mode}", {
        "mode":    result.mode,
        "dataUrl": result.data_url(),
        "width":   result.width,
        "height":  result.height,
        "overlay": result.overlay,
        "reason":  result.reason,
    })


# ─── POST /watermark/html ─────────────────────────────────────────────────────
@router.post("/html", summary="Watermark every listing photo in an HTML fragment")
def watermark_html(body: WatermarkHtmlRequest):
    with requests.Session() as session:
        wm = HtmlWatermarker(_config(body.style), base_url=body.baseUrl, session=session)
        html = wm.process(body.html)
    return success_response("HTML processed", {"html": html, "stats": wm.stats})
