import enum
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from realty.database import Base


class UserType(str, enum.Enum):
    SELLER = "seller"
    BUYER  = "buyer"
    AGENT  = "agent"
    ADMIN  = "admin"


class User(Base):
    __tablename__ = "users"

    id        = Column(Integer, primary_key=True, index=True)
    name      = Column(String(150), nullable=False)
    email     = Column(String(255), unique=True, nullable=False, index=True)
    phone     = Column(String(30), nullable=False, default="")
    userType  = Column(String(20), nullable=False, default=UserType.SELLER.value)
    isActive  = Column(Boolean, default=True, nullable=False)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    reviews    = relationship("Review", foreign_keys="Review.userId", back_populates="user")
    audit_logs = relationship("AuditLog", back_populates="user")

    def __repr__(self):
        return f"<User id={self.id} email={self.email} userType={self.userType}>"
