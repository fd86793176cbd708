import enum
from sqlalchemy import (
    Column, Integer, String, Text, ForeignKey, TIMESTAMP, Enum, JSON, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from realty.database import Base


class ReviewStatus(str, enum.Enum):
    PENDING  = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Review(Base):
    __tablename__ = "reviews"

    id            = Column(Integer, primary_key=True, index=True)
    targetId      = Column(String(100), nullable=False, index=True)
    targetType    = Column(String(50), nullable=False, default="property", index=True)
    rating        = Column(Integer, nullable=False)   # 1–5
    title         = Column(String(200), nullable=True)
    comment       = Column(Text, nullable=False)
    images        = Column(JSON, nullable=False, default=list)
    status        = Column(Enum(ReviewStatus, values_callable=lambda e: [m.value for m in e]),
                           default=ReviewStatus.PENDING, nullable=False, index=True)
    adminNote     = Column(Text, nullable=True)
    userId        = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    moderatedById = Column(Integer, ForeignKey("users.id"), nullable=True)
    moderatedAt   = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt     = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                           onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="chk_review_rating_range"),
    )

    # ─── Relationships ─────────────────────────────────────────────────────────
    user         = relationship("User", foreign_keys=[userId], back_populates="reviews")
    moderated_by = relationship("User", foreign_keys=[moderatedById])

    def __repr__(self):
        return f"<Review id={self.id} target={self.targetType}:{self.targetId} status={self.status}>"
