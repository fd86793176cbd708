from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # ─── Application ───────────────────────────────────────────────────────────
    APP_NAME: str = "Ashish Property"
    APP_ENV:  str = "development"
    APP_DEBUG: bool = True
    APP_HOST:  str = "0.0.0.0"
    APP_PORT:  int = 8000
    API_PREFIX: str = "/api"

    # ─── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL:          str
    DATABASE_POOL_SIZE:    int  = 10
    DATABASE_MAX_OVERFLOW: int  = 20
    DATABASE_POOL_TIMEOUT: int  = 30
    DATABASE_ECHO:         bool = False

    # ─── JWT ───────────────────────────────────────────────────────────────────
    SECRET_KEY:                str
    ALGORITHM:                 str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS:  int = 7

    # ─── OTP ───────────────────────────────────────────────────────────────────
    OTP_EXPIRE_MINUTES: int = 10
    OTP_LENGTH:         int = 6
    OTP_STORE_BACKEND:  str = "memory"    # memory | database

    # ─── Mail ──────────────────────────────────────────────────────────────────
    SMTP_HOST:     str  = ""              # empty = log emails instead of sending
    SMTP_PORT:     int  = 587
    SMTP_USERNAME: str  = ""
    SMTP_PASSWORD: str  = ""
    SMTP_USE_TLS:  bool = True
    MAIL_FROM:     str  = "no-reply@ashishproperties.in"

    # ─── Watermark ─────────────────────────────────────────────────────────────
    WATERMARK_TEXT:          str   = "AshishProperties.in"
    WATERMARK_STYLE:         str   = "label"   # label | pill | tiled
    WATERMARK_MIN_DIMENSION: int   = 120
    WATERMARK_FONT_SIZE:     int   = 12
    WATERMARK_FONT_PATH:     str   = ""
    WATERMARK_ALLOWED_HOSTS: str   = ""        # empty = any host
    WATERMARK_FETCH_TIMEOUT: float = 10.0

    # ─── Reviews API client ────────────────────────────────────────────────────
    REVIEWS_API_BASE_URL: str   = "http://localhost:8000/api"
    REVIEWS_API_TIMEOUT:  float = 10.0

    # ─── CORS ──────────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080,https://ashishproperties.in"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def get_watermark_allowed_hosts(self) -> List[str]:
        return [h.strip().lower() for h in self.WATERMARK_ALLOWED_HOSTS.split(",") if h.strip()]

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = {"env_file": ".env", "case_sensitive": True, "extra": "ignore"}


settings = Settings()
