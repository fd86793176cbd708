from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func
from realty.database import Base


class EmailOTP(Base):
    """Live one-time code per email, used when OTP_STORE_BACKEND=database."""
    __tablename__ = "email_otps"

    id        = Column(Integer, primary_key=True, index=True)
    email     = Column(String(255), unique=True, nullable=False, index=True)  # lowercased
    otpCode   = Column(String(10), nullable=False)
    expiresAt = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
    createdAt = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<EmailOTP id={self.id} email={self.email}>"
