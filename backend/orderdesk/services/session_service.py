# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Tokens are cryptographically random, stored only as SHA-256 hashes, and
time-limited (absolute and idle timeouts from config).

validate_session reloads the user row on every call and returns a
SessionContext built from it. Nothing about the caller is cached between
requests: a role change or deactivation applies on the very next request.
"""

import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..permissions import capabilities_for, shell_for, is_client
from ..time_utils import utcnow


@dataclass
class SessionContext:
    """
    Identity and authorization state for one request.

    Passed explicitly into views (``ctx``) and from there into services that
    need scoping; there is no module-level "current session".
    """
    user: User
    session: SessionToken
    capabilities: frozenset[str] = field(default_factory=frozenset)

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def role(self) -> str:
        return self.user.role

    @property
    def shell(self) -> str:
        return shell_for(self.user.role)

    @property
    def is_client(self) -> bool:
        return is_client(self.user.role)

    @property
    def customer_id(self) -> int | None:
        """Row scope for client users; None means unrestricted (staff)."""
        if not self.is_client:
            return None
        # An unlinked client matches no rows
        return self.user.customer_id or 0

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 2))


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is sufficient for high-entropy tokens (unlike passwords)."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")
    if not user.is_active:
        raise ValueError("User account is deactivated")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if the token is unknown, expired, revoked, idle too long,
    or the user is deactivated. Updates last_used_at on success.
    """
    if not token:
        return None

    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    # Fresh profile read; authorization below derives from this row only
    user = db.session.get(User, session.user_id)
    if user is not None:
        db.session.refresh(user)

    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        capabilities=capabilities_for(user.role),
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Returns True if session was revoked, False if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions") -> int:
    """Revoke every active session of a user (deactivation, password reset)."""
    now = utcnow()

    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).all()

    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason

    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """Delete expired or revoked sessions older than the retention window."""
    now = utcnow()
    cutoff = now - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
