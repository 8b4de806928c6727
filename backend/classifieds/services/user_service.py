# Overview: Admin user management; role and status changes.

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..models.auth import (
    ROLE_ADMIN,
    USER_STATUS_APPROVED,
    USER_STATUS_BLOCKED,
    VALID_ROLES,
    VALID_USER_STATUSES,
)
from ..validation import InvalidStateError, NotFoundError, ValidationError
from . import audit_service, session_service
from classifieds.time_utils import utcnow


USER_ADMIN_FIELDS = {"name", "role", "status"}


def list_users(role: str | None = None, status: str | None = None) -> list[User]:
    query = db.session.query(User)
    if role:
        if role not in VALID_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
        query = query.filter(User.role == role)
    if status:
        if status not in VALID_USER_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(VALID_USER_STATUSES)}")
        query = query.filter(User.status == status)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(user_id: int, *, admin: User, patch: dict) -> User:
    """
    Admin update of name, role and status.

    An admin cannot demote or block themselves, so at least the acting
    admin keeps access. Blocking a user revokes their sessions.
    """
    user = get_user(user_id)

    if "role" in patch and patch["role"] not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    if "status" in patch and patch["status"] not in VALID_USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(VALID_USER_STATUSES)}")

    if user.id == admin.id:
        if patch.get("role", ROLE_ADMIN) != ROLE_ADMIN:
            raise InvalidStateError("Admins cannot change their own role")
        if patch.get("status", USER_STATUS_APPROVED) != USER_STATUS_APPROVED:
            raise InvalidStateError("Admins cannot block or suspend themselves")

    changes = {}
    for k, v in patch.items():
        if k not in USER_ADMIN_FIELDS:
            continue
        old = getattr(user, k)
        if old != v:
            changes[k] = {"from": old, "to": v}
            setattr(user, k, v)

    if not changes:
        return user

    user.updated_at = utcnow()
    db.session.commit()

    if changes.get("status", {}).get("to") == USER_STATUS_BLOCKED:
        session_service.revoke_all_user_sessions(user.id, "User account blocked")

    audit_service.log_action(
        audit_service.USER_UPDATED, admin.id, user.id, "user", {"changes": changes}
    )
    return user
