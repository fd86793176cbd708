"""
One-time code storage keyed by lowercased email.

Two backends share the same interface:

* ``InMemoryOTPStore`` keeps codes in a process-local dict. Fine for a single
  server process.
* ``DatabaseOTPStore`` keeps one row per email in ``email_otps`` so several
  server processes see the same codes.

A new code for an email always replaces the previous one, so at most one code
per address is live at a time. Expired entries are swept on every write.
``consume()`` checks and removes a code in one step, so it verifies only once.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session, sessionmaker

from realty.config import settings
from realty.models.email_otp import EmailOTP
from realty.utils.security import otp_matches

logger = logging.getLogger(__name__)


def _utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class OTPRecord:
    code:       str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now > _utc(self.expires_at)


class OTPStore:
    """Interface for OTP backends."""

    def set(self, email: str, record: OTPRecord) -> None:
        raise NotImplementedError

    def get(self, email: str) -> OTPRecord | None:
        raise NotImplementedError

    def delete(self, email: str) -> None:
        raise NotImplementedError

    def consume(self, email: str, code: str, now: datetime | None = None) -> bool:
        """
        Atomically remove the record if `code` matches and has not expired.
        Returns False, leaving any record in place, otherwise.
        """
        raise NotImplementedError

    def purge_expired(self, now: datetime | None = None) -> int:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    @staticmethod
    def key(email: str) -> str:
        return email.strip().lower()


# ─── In-memory ────────────────────────────────────────────────────────────────
class InMemoryOTPStore(OTPStore):

    def __init__(self):
        self._records: dict[str, OTPRecord] = {}
        self._lock = threading.Lock()

    def set(self, email: str, record: OTPRecord) -> None:
        with self._lock:
            self._purge_locked(datetime.now(timezone.utc))
            self._records[self.key(email)] = record

    def get(self, email: str) -> OTPRecord | None:
        with self._lock:
            return self._records.get(self.key(email))

    def delete(self, email: str) -> None:
        with self._lock:
            self._records.pop(self.key(email), None)

    def consume(self, email: str, code: str, now: datetime | None = None) -> bool:
        with self._lock:
            record = self._records.get(self.key(email))
            if record is None or record.is_expired(now) or not otp_matches(record.code, code):
                return False
            del self._records[self.key(email)]
            return True

    def purge_expired(self, now: datetime | None = None) -> int:
        with self._lock:
            return self._purge_locked(now or datetime.now(timezone.utc))

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)

    def _purge_locked(self, now: datetime) -> int:
        stale = [k for k, rec in self._records.items() if rec.is_expired(now)]
        for k in stale:
            del self._records[k]
        if stale:
            logger.debug(f"Purged {len(stale)} expired OTP(s)")
        return len(stale)


# ─── Database ─────────────────────────────────────────────────────────────────
class DatabaseOTPStore(OTPStore):
    """Uses its own short-lived sessions so writes never ride on a request transaction."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def set(self, email: str, record: OTPRecord) -> None:
        with self._session_factory() as db:
            self._purge(db, datetime.now(timezone.utc))
            row = db.query(EmailOTP).filter(EmailOTP.email == self.key(email)).first()
            if row:
                row.otpCode   = record.code
                row.expiresAt = record.expires_at
            else:
                db.add(EmailOTP(email=self.key(email), otpCode=record.code, expiresAt=record.expires_at))
            db.commit()

    def get(self, email: str) -> OTPRecord | None:
        with self._session_factory() as db:
            row = db.query(EmailOTP).filter(EmailOTP.email == self.key(email)).first()
            if not row:
                return None
            return OTPRecord(code=row.otpCode, expires_at=_utc(row.expiresAt))

    def delete(self, email: str) -> None:
        with self._session_factory() as db:
            db.query(EmailOTP).filter(EmailOTP.email == self.key(email)).delete()
            db.commit()

    def consume(self, email: str, code: str, now: datetime | None = None) -> bool:
        # single conditional DELETE, so only one of several concurrent callers wins
        with self._session_factory() as db:
            deleted = (
                db.query(EmailOTP)
                .filter(
                    EmailOTP.email == self.key(email),
                    EmailOTP.otpCode == code,
                    EmailOTP.expiresAt >= (now or datetime.now(timezone.utc)),
                )
                .delete(synchronize_session=False)
            )
            db.commit()
        return deleted == 1

    def purge_expired(self, now: datetime | None = None) -> int:
        with self._session_factory() as db:
            count = self._purge(db, now or datetime.now(timezone.utc))
            db.commit()
            return count

    def clear(self) -> None:
        with self._session_factory() as db:
            db.query(EmailOTP).delete()
            db.commit()

    @staticmethod
    def _purge(db: Session, now: datetime) -> int:
        return db.query(EmailOTP).filter(EmailOTP.expiresAt < now).delete(synchronize_session=False)


# ─── Factory ──────────────────────────────────────────────────────────────────
_store: OTPStore | None = None


def build_otp_store(backend: str) -> OTPStore:
    if backend == "memory":
        return InMemoryOTPStore()
    if backend == "database":
        from realty.database import SessionLocal
        return DatabaseOTPStore(SessionLocal)
    raise ValueError(f"Unknown OTP_STORE_BACKEND '{backend}' (expected 'memory' or 'database')")


def get_otp_store() -> OTPStore:
    """Return the process-wide OTP store for the configured backend."""
    global _store
    if _store is None:
        _store = build_otp_store(settings.OTP_STORE_BACKEND)
        logger.info(f"OTP store backend: {settings.OTP_STORE_BACKEND}")
    return _store


def set_otp_store(store: OTPStore | None) -> None:
    global _store
    _store = store
