"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Parent tables are imported before child tables.
"""

from realty.models.user import User, UserType
from realty.models.email_otp import EmailOTP
from realty.models.review import Review, ReviewStatus
from realty.models.site_setting import SiteSetting
from realty.models.audit_log import AuditLog

__all__ = [
    "User",
    "UserType",
    "EmailOTP",
    "Review",
    "ReviewStatus",
    "SiteSetting",
    "AuditLog",
]
