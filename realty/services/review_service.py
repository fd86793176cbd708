import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from realty.models.review import Review, ReviewStatus
from realty.models.user import User
from realty.schemas.review import ReviewCreateRequest, ReviewModerateRequest
from realty.utils.audit import log_action
from realty.utils.exceptions import NotFoundException, ReviewNotPendingException

logger = logging.getLogger(__name__)


def _serialize(r: Review, include_admin: bool = False) -> dict:
    data = {
        "id":         str(r.id),
        "targetId":   r.targetId,
        "targetType": r.targetType,
        "rating":     r.rating,
        "title":      r.title,
        "comment":    r.comment,
        "images":     list(r.images or []),
        "status":     r.status.value,
        "author":     {"id": str(r.user.id), "name": r.user.name} if r.user else None,
        "createdAt":  r.createdAt.isoformat() if r.createdAt else None,
    }
    if include_admin:
        data["adminNote"]   = r.adminNote
        data["moderatedAt"] = r.moderatedAt.isoformat() if r.moderatedAt else None
        data["moderatedBy"] = (
            {"id": str(r.moderated_by.id), "email": r.moderated_by.email} if r.moderated_by else None
        )
    return data


class ReviewService:

    # ─── Public ───────────────────────────────────────────────────────────────
    def list_approved(self, db: Session, target_id: str, target_type: str, limit: int) -> list[dict]:
        reviews = (
            db.query(Review)
            .filter(
                Review.targetId == target_id,
                Review.targetType == target_type,
                Review.status == ReviewStatus.APPROVED,
            )
            .order_by(Review.createdAt.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )
        return [_serialize(r) for r in reviews]

    def submit(self, db: Session, data: ReviewCreateRequest, author: User | None) -> dict:
        r = Review(
            targetId=data.targetId,
            targetType=data.targetType,
            rating=data.rating,
            title=data.title,
            comment=data.comment,
            images=data.images,
            status=ReviewStatus.PENDING,
            userId=author.id if author else None,
        )
        db.add(r)
        db.commit()
        db.refresh(r)
        logger.info(f"Review #{r.id} submitted for {r.targetType}:{r.targetId}")
        return {"id": str(r.id), "status": r.status.value}

    # ─── Admin ────────────────────────────────────────────────────────────────
    def list_by_status(self, db: Session, status: ReviewStatus, limit: int) -> list[dict]:
        reviews = (
            db.query(Review)
            .filter(Review.status == status)
            .order_by(Review.createdAt.asc(), Review.id.asc())
            .limit(limit)
            .all()
        )
        return [_serialize(r, include_admin=True) for r in reviews]

    def moderate(self, db: Session, review_id: int, data: ReviewModerateRequest, admin: User) -> dict:
        r = db.query(Review).filter(Review.id == review_id).first()
        if not r:
            raise NotFoundException("Review")
        if r.status != ReviewStatus.PENDING:
            raise ReviewNotPendingException()

        r.status        = ReviewStatus(data.status)
        r.adminNote     = data.adminNote
        r.moderatedById = admin.id
        r.moderatedAt   = datetime.now(timezone.utc)

        action = "APPROVE" if r.status == ReviewStatus.APPROVED else "REJECT"
        log_action(db, admin, action, "Review", r.id,
                   f"Review #{r.id} {r.status.value} by {admin.email}")
        db.commit()
        db.refresh(r)
        return _serialize(r, include_admin=True)


review_service = ReviewService()
