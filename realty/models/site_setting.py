from sqlalchemy import Column, Integer, String, Text, TIMESTAMP
from sqlalchemy.sql import func
from realty.database import Base


class SiteSetting(Base):
    """Admin-managed public site details (site name, contact info)."""
    __tablename__ = "site_settings"

    id        = Column(Integer, primary_key=True, index=True)
    key       = Column(String(100), unique=True, nullable=False, index=True)
    group     = Column(String(50), nullable=False, default="general")   # general | contact
    value     = Column(Text, nullable=False, default="")
    updatedAt = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                       onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<SiteSetting {self.key}={self.value!r}>"
