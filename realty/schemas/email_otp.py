from pydantic import BaseModel, EmailStr, field_validator


# ─── Request Schemas ──────────────────────────────────────────────────────────
class OTPRequest(BaseModel):
    email: EmailStr


class OTPVerifyRequest(BaseModel):
    email: EmailStr
    otp:   str

    @field_validator("otp", mode="before")
    @classmethod
    def otp_as_string(cls, v):
        # Some clients send the code as a JSON number
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("otp")
    @classmethod
    def otp_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("OTP is required")
        return v.strip()


# ─── Response Schemas ─────────────────────────────────────────────────────────
class UserOut(BaseModel):
    id:       str
    name:     str
    email:    str
    phone:    str
    userType: str


class OTPVerifyResponse(BaseModel):
    token: str
    user:  UserOut
