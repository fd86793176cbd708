import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from realty.config import settings
from realty.database import SessionLocal, check_db_connection
from realty.utils.exceptions import AppException
from realty.middleware.error_handler import (
    app_exception_handler,
    validation_exception_handler,
    integrity_error_handler,
    generic_exception_handler,
)
from realty.services.otp_store import get_otp_store
from realty.services.site_setting_service import site_setting_service

from realty.api.v1 import email_otp
from realty.api.v1 import reviews
from realty.api.v1 import settings as site_settings
from realty.api.v1 import watermark

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    ok = check_db_connection()
    logger.info("DB connected" if ok else "DB connection FAILED")
    if ok:
        try:
            with SessionLocal() as db:
                added = site_setting_service.seed_defaults(db)
            if added:
                logger.info(f"Seeded {added} default site setting(s)")
        except SQLAlchemyError as e:
            logger.warning(f"Skipping settings seed, run migrations first: {e}")
    get_otp_store()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=VERSION,
        description="Real-estate marketplace API: email OTP sign-in, reviews, site settings, photo watermarking",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ─── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Watermark-Mode", "X-Watermark-Reason"],
    )

    # ─── Exception Handlers ───────────────────────────────────────────────────
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # ─── Routers ──────────────────────────────────────────────────────────────
    PREFIX = settings.API_PREFIX
    app.include_router(email_otp.router,     prefix=PREFIX, tags=["Email OTP"])
    app.include_router(reviews.router,       prefix=PREFIX, tags=["Reviews"])
    app.include_router(site_settings.router, prefix=PREFIX, tags=["Settings"])
    app.include_router(watermark.router,     prefix=PREFIX, tags=["Watermark"])

    # ─── Health ───────────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"])
    def health():
        return {"status": "ok", "app": settings.APP_NAME, "version": VERSION}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("realty.main:app", host=settings.APP_HOST, port=settings.APP_PORT,
                reload=settings.is_development)
