from pydantic import BaseModel, field_validator
from typing import Literal, Optional


class SiteSettingUpdate(BaseModel):
    value: str
    group: Optional[Literal["general", "contact"]] = None

    @field_validator("value")
    @classmethod
    def value_clean(cls, v: str) -> str:
        return v.strip()


class SiteSettingOut(BaseModel):
    key:       str
    group:     str
    value:     str
    updatedAt: Optional[str] = None
    model_config = {"from_attributes": True}
