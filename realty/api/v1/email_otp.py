from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from realty.database import get_db
from realty.dependencies import get_current_user
from realty.models.user import User
from realty.schemas.email_otp import OTPRequest, OTPVerifyRequest, OTPVerifyResponse, UserOut
from realty.schemas.common import ErrorResponse, SuccessResponse, success_response
from realty.services.email_otp_service import email_otp_service
from realty.services.user_service import serialize_user

router = APIRouter(prefix="/email-otp")


# ─── POST /email-otp/request ──────────────────────────────────────────────────
@router.post(
    "/request",
    status_code=status.HTTP_200_OK,
    summary="Email a one-time sign-in code",
    response_model=SuccessResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def request_otp(data: OTPRequest):
    """
    Sends a 6-digit code valid for 10 minutes.
    Requesting again replaces the previous code.
    """
    email_otp_service.request_otp(str(data.email))
    return success_response("OTP sent", {"message": "OTP sent"})


# ─── POST /email-otp/verify ───────────────────────────────────────────────────
@router.post(
    "/verify",
    status_code=status.HTTP_200_OK,
    summary="Verify the code and receive a bearer token",
    response_model=SuccessResponse[OTPVerifyResponse],
    responses={400: {"model": ErrorResponse}},
)
def verify_otp(data: OTPVerifyRequest, db: Session = Depends(get_db)):
    """
    Codes are single use. The first successful sign-in creates the account.
    The returned token is valid for 7 days.
    """
    result = email_otp_service.verify_otp(db, str(data.email), data.otp)
    return success_response("OTP verified", result)


# ─── GET /email-otp/me ────────────────────────────────────────────────────────
@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    summary="Get the signed-in user's profile",
    response_model=SuccessResponse[UserOut],
    responses={401: {"model": ErrorResponse}},
)
def get_me(current_user: User = Depends(get_current_user)):
    return success_response("User profile retrieved", serialize_user(current_user))
