# Overview: Append-only audit sink for workflow actions; failures are logged, never raised.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AuditLog
from ..validation import ValidationError, parse_pagination
from classifieds.time_utils import parse_iso_datetime, utcnow


# Action names
AD_CREATED = "ad_created"
AD_UPDATED = "ad_updated"
AD_DELETED = "ad_deleted"
AD_APPROVED = "ad_approved"
AD_REJECTED = "ad_rejected"
AD_EXPIRED = "ad_expired"
PAYMENT_SUBMITTED = "payment_submitted"
PAYMENT_APPROVED = "payment_approved"
PAYMENT_REJECTED = "payment_rejected"
PAYMENT_NOTE_UPDATED = "payment_note_updated"
CATEGORY_CREATED = "category_created"
CATEGORY_UPDATED = "category_updated"
CATEGORY_DELETED = "category_deleted"
USER_REGISTERED = "user_registered"
USER_UPDATED = "user_updated"


def log_action(
    action: str,
    actor_id: int | None,
    target_id: int | None,
    target_type: str | None,
    details: dict | None = None,
) -> AuditLog | None:
    """
    Record a state-changing action.

    Call AFTER the triggering operation has committed. This commits on its
    own; any database failure is rolled back, logged and swallowed so the
    caller's outcome is never affected.

    Returns the AuditLog row, or None if the write failed.
    """
    entry = AuditLog(
        action=action,
        actor_id=actor_id,
        target_id=target_id,
        target_type=target_type,
        details=details or {},
        created_at=utcnow(),
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception(
            "Failed to write audit log entry action=%s target=%s:%s",
            action, target_type, target_id,
        )
        return None
    return entry


def list_audit_logs(
    *,
    action: str | None = None,
    target_type: str | None = None,
    target_id: int | None = None,
    since: str | None = None,
    limit=None,
    offset=None,
) -> list[AuditLog]:
    """Newest-first audit trail with optional filters (admin view)."""
    limit, offset = parse_pagination(limit, offset, default_limit=100)

    query = db.session.query(AuditLog)
    if action:
        query = query.filter(AuditLog.action == action)
    if target_type:
        query = query.filter(AuditLog.target_type == target_type)
    if target_id is not None:
        query = query.filter(AuditLog.target_id == target_id)
    if since:
        try:
            since_dt = parse_iso_datetime(since)
        except ValueError:
            raise ValidationError("since must be an ISO-8601 datetime")
        if since_dt is not None:
            query = query.filter(AuditLog.created_at >= since_dt)

    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
