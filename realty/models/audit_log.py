from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from realty.database import Base


class AuditLog(Base):
    """Trail of admin actions: review moderation and site setting changes."""
    __tablename__ = "audit_logs"

    id          = Column(Integer, primary_key=True, index=True)
    userId      = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = system action
    actorEmail  = Column(String(255), nullable=True)
    action      = Column(String(50), nullable=False)        # APPROVE, REJECT, UPDATE, SEED
    entityType  = Column(String(50), nullable=False)        # Review, SiteSetting
    entityKey   = Column(String(100), nullable=True)        # review id or setting key
    description = Column(Text, nullable=True)
    createdAt   = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    user = relationship("User", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entityType}:{self.entityKey}>"
