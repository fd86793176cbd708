import logging
from datetime import timezone

from sqlalchemy.orm import Session

from realty.config import settings as app_settings
from realty.models.site_setting import SiteSetting
from realty.models.user import User
from realty.schemas.site_setting import SiteSettingUpdate
from realty.utils.audit import log_action

logger = logging.getLogger(__name__)


# Default keys, grouped the way the about/privacy/terms pages read them
DEFAULT_SETTINGS = [
    {"group": "general", "key": "siteName",     "value": app_settings.APP_NAME},
    {"group": "general", "key": "contactEmail", "value": "support@ashishproperties.in"},
    {"group": "general", "key": "contactPhone", "value": "+91 9876543210"},
    {"group": "general", "key": "address",      "value": "Rohtak, Haryana"},
    {"group": "contact", "key": "email",        "value": "support@ashishproperties.in"},
    {"group": "contact", "key": "phone",        "value": "+91 9876543210"},
    {"group": "contact", "key": "address",      "value": "Rohtak, Haryana"},
]


def _storage_key(group: str, key: str) -> str:
    return f"{group}.{key}"


def _serialize(s: SiteSetting) -> dict:
    return {
        "key":       s.key,
        "group":     s.group,
        "value":     s.value,
        "updatedAt": s.updatedAt.isoformat() if s.updatedAt else None,
    }


class SiteSettingService:

    def public_settings(self, db: Session) -> dict:
        """
        Settings grouped as {"general": {...}, "contact": {...}, "updatedAt": iso}.
        updatedAt is the most recent change across all settings.
        """
        grouped: dict[str, dict] = {"general": {}, "contact": {}}
        latest = None
        for s in db.query(SiteSetting).order_by(SiteSetting.key).all():
            name = s.key.split(".", 1)[1] if "." in s.key else s.key
            grouped.setdefault(s.group, {})[name] = s.value
            if s.updatedAt is not None:
                stamp = s.updatedAt if s.updatedAt.tzinfo else s.updatedAt.replace(tzinfo=timezone.utc)
                if latest is None or stamp > latest:
                    latest = stamp
        grouped["updatedAt"] = latest.isoformat() if latest else None
        return grouped

    def upsert_setting(self, db: Session, key: str, data: SiteSettingUpdate, current_user: User) -> dict:
        """`key` is either "<group>.<name>" or a bare name (group from body, default general)."""
        if "." in key:
            group, name = key.split(".", 1)
        else:
            group, name = data.group or "general", key
        storage_key = _storage_key(group, name)

        s = db.query(SiteSetting).filter(SiteSetting.key == storage_key).first()
        if s:
            s.value = data.value
        else:
            s = SiteSetting(key=storage_key, group=group, value=data.value)
            db.add(s)

        db.flush()
        log_action(db, current_user, "UPDATE", "SiteSetting", storage_key,
                   f"Admin updated setting '{storage_key}'")
        db.commit()
        db.refresh(s)
        return _serialize(s)

    def seed_defaults(self, db: Session) -> int:
        """Insert default settings if not already present. Returns how many were added."""
        added = 0
        for d in DEFAULT_SETTINGS:
            storage_key = _storage_key(d["group"], d["key"])
            existing = db.query(SiteSetting).filter(SiteSetting.key == storage_key).first()
            if not existing:
                db.add(SiteSetting(key=storage_key, group=d["group"], value=d["value"]))
                added += 1
        if added:
            log_action(db, None, "SEED", "SiteSetting", None, f"Seeded {added} default setting(s)")
        db.commit()
        return added


site_setting_service = SiteSettingService()
