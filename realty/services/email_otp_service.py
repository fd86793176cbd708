import logging

from sqlalchemy.orm import Session

from realty.config import settings
from realty.services.otp_store import OTPRecord, OTPStore, get_otp_store
from realty.services.user_service import user_service, serialize_user
from realty.utils.email import EmailDeliveryError, send_otp_email
from realty.utils.exceptions import (
    AccountInactiveException, OTPDeliveryException, OTPInvalidException,
)
from realty.utils.security import create_access_token, generate_otp, otp_expiry

logger = logging.getLogger(__name__)


class EmailOTPService:

    def __init__(self, store: OTPStore | None = None):
        self._store = store

    @property
    def store(self) -> OTPStore:
        return self._store or get_otp_store()

    # ─── Request ──────────────────────────────────────────────────────────────
    def request_otp(self, email: str) -> None:
        """
        Issue a fresh code for the email, replacing any earlier one, and mail it.
        If the mail cannot be sent the code stays stored and remains verifiable
        until it expires.
        """
        code = generate_otp(settings.OTP_LENGTH)
        self.store.set(email, OTPRecord(code=code, expires_at=otp_expiry()))

        try:
            send_otp_email(email, code)
        except EmailDeliveryError:
            raise OTPDeliveryException()

        logger.info(f"OTP issued for {OTPStore.key(email)}")

    # ─── Verify ───────────────────────────────────────────────────────────────
    def verify_otp(self, db: Session, email: str, otp: str) -> dict:
        # Matching and removal happen together, so a code verifies at most once
        if not self.store.consume(email, otp.strip()):
            raise OTPInvalidException()

        user = user_service.find_or_create_by_email(db, email)
        if not user.isActive:
            raise AccountInactiveException()

        token = create_access_token(user.id, user.userType, user.email)
        logger.info(f"OTP verified for user #{user.id}")
        return {"token": token, "user": serialize_user(user)}


email_otp_service = EmailOTPService()
