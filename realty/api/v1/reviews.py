from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Literal

from realty.database import get_db
from realty.dependencies import get_optional_user, get_admin_user
from realty.models.review import ReviewStatus
from realty.models.user import User
from realty.schemas.review import ReviewCreateRequest, ReviewModerateRequest, ReviewOut
from realty.schemas.common import SuccessResponse, success_response
from realty.services.review_service import review_service

router = APIRouter()


# ══════════════════════════════════════════════════════
#  PUBLIC
# ══════════════════════════════════════════════════════
@router.get("/reviews", summary="List approved reviews for a listing",
            response_model=SuccessResponse[list[ReviewOut]])
def list_reviews(
    targetId:   str                  = Query(..., min_length=1),
    targetType: str                  = Query("property", min_length=1),
    status:     Literal["approved"]  = Query("approved", description="Only approved reviews are public"),
    limit:      int                  = Query(20, ge=1, le=100),
    db:         Session              = Depends(get_db),
):
    data = review_service.list_approved(db, targetId, targetType, limit)
    return success_response(f"{len(data)} reviews found", data)


@router.post("/reviews", status_code=status.HTTP_201_CREATED,
             summary="Submit a review (held for moderation)")
def submit_review(
    body:   ReviewCreateRequest,
    db:     Session     = Depends(get_db),
    author: User | None = Depends(get_optional_user),
):
    data = review_service.submit(db, body, author)
    return success_response("Review submitted for moderation", data)


# ══════════════════════════════════════════════════════
#  ADMIN
# ══════════════════════════════════════════════════════
@router.get("/admin/reviews", summary="List reviews by moderation status (Admin)")
def admin_list_reviews(
    status: ReviewStatus = Query(ReviewStatus.PENDING),
    limit:  int          = Query(50, ge=1, le=200),
    db:     Session      = Depends(get_db),
    _:      User         = Depends(get_admin_user),
):
    data = review_service.list_by_status(db, status, limit)
    return success_response(f"{len(data)} reviews found", data)


@router.patch("/admin/reviews/{review_id}", summary="Approve or reject a pending review (Admin)")
def admin_moderate_review(
    review_id: int,
    body:      ReviewModerateRequest,
    db:        Session = Depends(get_db),
    admin:     User    = Depends(get_admin_user),
):
    data = review_service.moderate(db, review_id, body, admin)
    return success_response(f"Review {data['status']}", data)
