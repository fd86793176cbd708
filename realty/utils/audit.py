from sqlalchemy.orm import Session
from realty.models.audit_log import AuditLog
from realty.models.user import User


def log_action(
    db: Session,
    actor: User | None,
    action: str,
    entity_type: str,
    entity_key: str | int | None = None,
    description: str | None = None,
) -> None:
    """
    Write an audit log entry.

    Args:
        db:          Active DB session (will NOT commit, the caller does)
        actor:       User performing the action (None = system action)
        action:      Verb: APPROVE, REJECT, UPDATE, SEED
        entity_type: "Review" or "SiteSetting"
        entity_key:  Review id or setting key
        description: Human-readable description

    Usage:
        log_action(db, admin, "APPROVE", "Review", review.id,
                   f"Review #{review.id} approved")
        db.commit()
    """
    db.add(AuditLog(
        userId=actor.id if actor else None,
        actorEmail=actor.email if actor else None,
        action=action,
        entityType=entity_type,
        entityKey=str(entity_key) if entity_key is not None else None,
        description=description,
    ))
