# Overview: Service-layer operations for payments; manual verification gating paid ads.

"""
Payment Verification Service

WHY: Paid packages are settled out of band (bank transfer, mobile wallet).
The seller submits the transfer details and an admin checks them before
the ad goes public.

STATE MACHINE:
    pending -> verified   (ad -> approved)
    pending -> rejected   (ad -> rejected)

    verified and rejected are terminal; only admin_note may change afterwards.

DESIGN PRINCIPLES:
- A payment is submitted by the ad's owner while the ad is pending_verification
- At most one pending payment per ad (checked under a row lock, and backed
  by a partial unique index for the race the lock cannot cover on SQLite)
- Approve/reject write the payment and its ad in ONE transaction
- Audit entries are written after commit and never block the decision
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Ad, Payment, User
from ..models.ads import (
    AD_STATUS_PENDING_VERIFICATION,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_REJECTED,
    PAYMENT_STATUS_VERIFIED,
    VALID_PAYMENT_STATUSES,
)
from ..validation import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from . import audit_service
from .ad_service import mark_approved, mark_rejected
from .concurrency import lock_for_update, run_with_retry
from classifieds.time_utils import utcnow


# =============================================================================
# SUBMISSION
# =============================================================================

def submit_payment(*, user: User, patch: dict) -> Payment:
    """
    Submit transfer details for a paid ad.

    Preconditions, checked in order:
    1. Ad exists, is not deleted and is owned by the requester -> NotFoundError
    2. Ad status is pending_verification -> InvalidStateError
    3. No pending payment exists for the ad -> ConflictError

    Args:
        user: Submitting seller
        patch: Validated payload (ad_id, sender_name, bank_name,
            transaction_id, optional screenshot_url)

    Returns:
        Payment in status "pending"
    """
    ad_id = patch["ad_id"]

    def _op():
        ad = lock_for_update(
            db.session.query(Ad).filter_by(id=ad_id, user_id=user.id, is_deleted=False)
        ).first()
        if not ad:
            raise NotFoundError("Ad not found or not owned by you")

        if ad.status != AD_STATUS_PENDING_VERIFICATION:
            raise InvalidStateError("Ad is not awaiting payment")

        existing = db.session.query(Payment.id).filter_by(
            ad_id=ad.id, status=PAYMENT_STATUS_PENDING
        ).first()
        if existing:
            raise ConflictError("Payment already submitted for this ad")

        payment = Payment(
            ad_id=ad.id,
            user_id=user.id,
            sender_name=patch["sender_name"],
            bank_name=patch["bank_name"],
            transaction_id=patch["transaction_id"],
            screenshot_url=patch.get("screenshot_url"),
            status=PAYMENT_STATUS_PENDING,
            created_at=utcnow(),
        )
        db.session.add(payment)
        try:
            db.session.commit()
        except IntegrityError:
            # Lost the race against a concurrent submission for the same ad
            db.session.rollback()
            raise ConflictError("Payment already submitted for this ad")
        return payment

    payment = run_with_retry(_op)

    audit_service.log_action(
        audit_service.PAYMENT_SUBMITTED, user.id, payment.id, "payment",
        {"ad_id": payment.ad_id},
    )
    return payment


# =============================================================================
# ADMIN DECISIONS
# =============================================================================

def _lock_pending_payment(payment_id: int) -> tuple[Payment, Ad]:
    payment = lock_for_update(db.session.query(Payment).filter_by(id=payment_id)).first()
    if not payment:
        raise NotFoundError("Payment not found")
    if payment.status != PAYMENT_STATUS_PENDING:
        raise InvalidStateError("Payment is not pending")

    ad = lock_for_update(db.session.query(Ad).filter_by(id=payment.ad_id)).first()
    if not ad or ad.is_deleted:
        raise InvalidStateError("Ad for this payment no longer exists")
    if ad.status != AD_STATUS_PENDING_VERIFICATION:
        raise InvalidStateError("Ad is no longer awaiting payment verification")
    return payment, ad


def approve_payment(payment_id: int, *, admin: User, admin_note: str | None = None) -> Payment:
    """
    Verify a pending payment and publish its ad.

    Payment -> verified and ad -> approved commit together.
    A second call fails with InvalidStateError (payment no longer pending).
    """
    admin_note = (admin_note or "").strip() or None

    def _op():
        payment, ad = _lock_pending_payment(payment_id)

        now = utcnow()
        payment.status = PAYMENT_STATUS_VERIFIED
        payment.verified_at = now
        payment.reviewed_at = now
        payment.reviewed_by_user_id = admin.id
        payment.admin_note = admin_note

        mark_approved(ad, now)

        db.session.commit()
        return payment

    payment = run_with_retry(_op)

    current_app.logger.info("Payment %s verified by admin %s; ad %s approved", payment.id, admin.id, payment.ad_id)
    audit_service.log_action(
        audit_service.PAYMENT_APPROVED, admin.id, payment.id, "payment",
        {"ad_id": payment.ad_id},
    )
    return payment


def reject_payment(payment_id: int, *, admin: User, admin_note: str | None) -> Payment:
    """
    Reject a pending payment and its ad.

    admin_note is the rejection reason and is required; it is stored
    verbatim on the payment and copied to the ad's rejection_reason.
    """
    if admin_note is None or not str(admin_note).strip():
        raise ValidationError("Admin note (rejection reason) is required")

    def _op():
        payment, ad = _lock_pending_payment(payment_id)

        now = utcnow()
        payment.status = PAYMENT_STATUS_REJECTED
        payment.reviewed_at = now
        payment.reviewed_by_user_id = admin.id
        payment.admin_note = admin_note

        mark_rejected(ad, admin_note, now)

        db.session.commit()
        return payment

    payment = run_with_retry(_op)

    current_app.logger.info("Payment %s rejected by admin %s; ad %s rejected", payment.id, admin.id, payment.ad_id)
    audit_service.log_action(
        audit_service.PAYMENT_REJECTED, admin.id, payment.id, "payment",
        {"ad_id": payment.ad_id, "reason": admin_note},
    )
    return payment


def update_admin_note(payment_id: int, *, admin: User, admin_note: str | None) -> Payment:
    """
    Edit the admin note of a reviewed payment.

    Pending payments get their note through approve/reject instead.
    A rejected payment's note stays non-blank, since it is the rejection reason.
    """
    payment = db.session.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    if payment.status == PAYMENT_STATUS_PENDING:
        raise InvalidStateError("Payment is still pending; approve or reject it instead")

    note = admin_note.strip() if isinstance(admin_note, str) else None
    if payment.status == PAYMENT_STATUS_REJECTED and not note:
        raise ValidationError("Admin note (rejection reason) is required")

    previous = payment.admin_note
    payment.admin_note = admin_note if note else None
    db.session.commit()

    audit_service.log_action(
        audit_service.PAYMENT_NOTE_UPDATED, admin.id, payment.id, "payment",
        {"ad_id": payment.ad_id, "previous_note": previous},
    )
    return payment


# =============================================================================
# QUERIES
# =============================================================================

def payment_with_context(payment: Payment) -> dict:
    """Payment dict enriched with ad and submitter details for review screens."""
    data = payment.to_dict()
    ad = payment.ad
    data["ad_title"] = ad.title if ad else None
    data["ad_status"] = ad.status if ad else None
    data["package"] = ad.package if ad else None
    data["user_name"] = payment.user.name if payment.user else None
    data["user_email"] = payment.user.email if payment.user else None
    return data


def list_pending_payments() -> list[Payment]:
    """Review queue, oldest first. Payments for deleted ads are skipped."""
    return (
        db.session.query(Payment)
        .join(Ad, Payment.ad_id == Ad.id)
        .filter(Payment.status == PAYMENT_STATUS_PENDING, Ad.is_deleted.is_(False))
        .order_by(Payment.created_at.asc(), Payment.id.asc())
        .all()
    )


def list_payments(status: str | None = None) -> list[Payment]:
    query = db.session.query(Payment)
    if status:
        if status not in VALID_PAYMENT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(VALID_PAYMENT_STATUSES)}")
        query = query.filter(Payment.status == status)
    return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()


def list_user_payments(user_id: int) -> list[Payment]:
    return (
        db.session.query(Payment)
        .filter(Payment.user_id == user_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .all()
    )


def get_latest_payment_for_ad(ad_id: int, user_id: int) -> Payment:
    payment = (
        db.session.query(Payment)
        .filter(Payment.ad_id == ad_id, Payment.user_id == user_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
        .first()
    )
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def get_payment_instructions() -> dict:
    """Static bank details from configuration."""
    cfg = current_app.config
    return {
        "bank_name": cfg["PAYMENT_BANK_NAME"],
        "account_number": cfg["PAYMENT_ACCOUNT_NUMBER"],
        "account_title": cfg["PAYMENT_ACCOUNT_TITLE"],
    }
