from pydantic import BaseModel, field_validator
from typing import Optional

from realty.services.watermark.config import WatermarkStyle


class WatermarkUrlRequest(BaseModel):
    imageUrl: str
    style:    Optional[WatermarkStyle] = None
    width:    Optional[int] = None     # rendered size hints, used when the image can't be fetched
    height:   Optional[int] = None
    optOut:   bool = False

    @field_validator("imageUrl")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("imageUrl must be a valid http(s) URL")
        return v


class WatermarkHtmlRequest(BaseModel):
    html:    str
    style:   Optional[WatermarkStyle] = None
    baseUrl: Optional[str] = None

    @field_validator("html")
    @classmethod
    def html_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("html cannot be empty")
        return v
