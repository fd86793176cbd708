from pydantic import BaseModel, field_validator
from typing import Literal, Optional


class ReviewCreateRequest(BaseModel):
    targetId:   str
    targetType: str = "property"
    rating:     int
    title:      Optional[str] = None
    comment:    str
    images:     list[str] = []

    @field_validator("targetId", "targetType")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Value cannot be empty")
        return v.strip()

    @field_validator("rating")
    @classmethod
    def rating_range(cls, v: int) -> int:
        if not 1 <= v <= 5:
            raise ValueError("Rating must be between 1 and 5")
        return v

    @field_validator("title")
    @classmethod
    def title_clean(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 200:
            raise ValueError("Title must be at most 200 characters")
        return v or None

    @field_validator("comment")
    @classmethod
    def comment_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment cannot be empty")
        return v.strip()

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: list[str]) -> list[str]:
        if len(v) > 10:
            raise ValueError("At most 10 images per review")
        cleaned = []
        for url in v:
            url = url.strip()
            if not url.startswith(("http://", "https://")):
                raise ValueError("Each image must be a valid http(s) URL")
            cleaned.append(url)
        return cleaned


class ReviewModerateRequest(BaseModel):
    status:    Literal["approved", "rejected"]
    adminNote: Optional[str] = None

    @field_validator("adminNote")
    @classmethod
    def note_clean(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class ReviewOut(BaseModel):
    id:         str
    targetId:   str
    targetType: str
    rating:     int
    title:      Optional[str] = None
    comment:    str
    images:     list[str] = []
    status:     str
    author:     Optional[dict] = None
    createdAt:  Optional[str] = None
