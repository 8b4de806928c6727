# Overview: Service-layer operations for ads; owns the ad status field and its transitions.

"""
Ad Lifecycle Service

STATE MACHINE:
    create(Free)  -> pending_admin_approval
    create(paid)  -> pending_verification

    pending_*  --(admin approve / payment verified)--> approved
    pending_*  --(admin reject / payment rejected)---> rejected
    approved   --(admin reject)-----------------------> rejected
    approved   --(expiry)------------------------------> initial status of its package

    rejected is terminal.
    A direct admin decision settles any pending payment on the ad in the same commit.

RULES:
1. Owners edit content fields only; status, package and owner are never client-writable
2. Only admins (directly, or through payment_service) move an ad to approved/rejected
3. Public queries see approved, unexpired, undeleted ads only
4. Deletion is soft; deleted ads disappear from every query
5. Every committed transition is followed by an audit entry
"""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Ad, Payment, User
from ..models.ads import (
    AD_STATUS_APPROVED,
    AD_STATUS_PENDING_ADMIN_APPROVAL,
    AD_STATUS_PENDING_VERIFICATION,
    AD_STATUS_REJECTED,
    PACKAGE_FREE,
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_REJECTED,
    PAYMENT_STATUS_VERIFIED,
    VALID_AD_STATUSES,
)
from ..models.auth import ROLE_ADMIN, ROLE_SELLER, USER_STATUS_APPROVED
from ..validation import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
    parse_pagination,
)
from . import audit_service
from .category_service import find_category
from .concurrency import lock_for_update, run_with_retry
from classifieds.time_utils import utcnow


AD_CONTENT_FIELDS = {"title", "description", "price", "image_urls", "video_url", "category_id"}

PUBLIC_DEFAULT_LIMIT = 50
ADMIN_DEFAULT_LIMIT = 100


# =============================================================================
# PACKAGES
# =============================================================================

def list_packages() -> list[dict]:
    packages = current_app.config["AD_PACKAGES"]
    return [
        {"name": name, "price": tier["price"], "duration_days": tier.get("duration_days")}
        for name, tier in packages.items()
    ]


def validate_package(package: str | None) -> str:
    package = package or PACKAGE_FREE
    if package not in current_app.config["AD_PACKAGES"]:
        names = ", ".join(current_app.config["AD_PACKAGES"].keys())
        raise ValidationError(f"package must be one of: {names}")
    return package


def initial_status_for_package(package: str) -> str:
    if package == PACKAGE_FREE:
        return AD_STATUS_PENDING_ADMIN_APPROVAL
    return AD_STATUS_PENDING_VERIFICATION


def _expiry_for(package: str, approved_at: datetime) -> datetime | None:
    tier = current_app.config["AD_PACKAGES"].get(package) or {}
    days = tier.get("duration_days")
    if not days:
        return None
    return approved_at + timedelta(days=days)


# =============================================================================
# TRANSITION HELPERS (no commit; callers own the transaction)
# =============================================================================

def mark_approved(ad: Ad, now: datetime | None = None) -> None:
    now = now or utcnow()
    ad.status = AD_STATUS_APPROVED
    ad.rejection_reason = None
    ad.approved_at = now
    ad.updated_at = now
    ad.expires_at = _expiry_for(ad.package, now)


def mark_rejected(ad: Ad, reason: str | None = None, now: datetime | None = None) -> None:
    now = now or utcnow()
    ad.status = AD_STATUS_REJECTED
    ad.rejection_reason = reason
    ad.updated_at = now
    ad.expires_at = None


# =============================================================================
# OWNER OPERATIONS
# =============================================================================

def _require_can_post(user: User) -> None:
    if user.role not in (ROLE_SELLER, ROLE_ADMIN):
        raise ForbiddenError("Only sellers can post ads")
    if user.status != USER_STATUS_APPROVED:
        raise ForbiddenError("Seller account is not approved")


def _require_category(category_id: int) -> None:
    category = find_category(category_id)
    if not category or not category.is_active:
        raise ValidationError("Category not found")


def create_ad(*, user: User, patch: dict) -> Ad:
    """
    Create an ad from a validated patch.

    Initial status is derived from the package: Free ads wait for an admin,
    every other package waits for a verified payment.

    Raises:
        ForbiddenError: caller is not an approved seller/admin
        ValidationError: unknown package or category
    """
    _require_can_post(user)

    package = validate_package(patch.get("package"))
    _require_category(patch["category_id"])

    now = utcnow()
    ad = Ad(
        title=patch["title"],
        description=patch.get("description"),
        price=patch.get("price"),
        image_urls=patch.get("image_urls") or [],
        video_url=patch.get("video_url"),
        category_id=patch["category_id"],
        user_id=user.id,
        package=package,
        status=initial_status_for_package(package),
        created_at=now,
        updated_at=now,
    )
    db.session.add(ad)
    db.session.commit()

    audit_service.log_action(
        audit_service.AD_CREATED, user.id, ad.id, "ad",
        {"title": ad.title, "package": ad.package, "status": ad.status},
    )
    return ad


def _get_live_ad(ad_id: int) -> Ad:
    ad = db.session.query(Ad).filter_by(id=ad_id, is_deleted=False).first()
    if not ad:
        raise NotFoundError("Ad not found")
    return ad


def _get_owned_ad(ad_id: int, user: User) -> Ad:
    ad = _get_live_ad(ad_id)
    if ad.user_id != user.id:
        raise ForbiddenError("Not authorized")
    return ad


def update_ad(ad_id: int, *, user: User, patch: dict) -> Ad:
    """Owner edit of content fields. Status is untouched."""
    ad = _get_owned_ad(ad_id, user)

    if "category_id" in patch and patch["category_id"] != ad.category_id:
        _require_category(patch["category_id"])

    changed = []
    for k, v in patch.items():
        if k not in AD_CONTENT_FIELDS:
            continue
        if k == "image_urls" and v is None:
            v = []
        setattr(ad, k, v)
        changed.append(k)

    ad.updated_at = utcnow()
    db.session.commit()

    audit_service.log_action(
        audit_service.AD_UPDATED, user.id, ad.id, "ad", {"fields": sorted(changed)}
    )
    return ad


def delete_ad(ad_id: int, *, user: User) -> Ad:
    """Owner soft delete."""
    ad = _get_owned_ad(ad_id, user)

    now = utcnow()
    ad.is_deleted = True
    ad.deleted_at = now
    ad.updated_at = now
    db.session.commit()

    audit_service.log_action(
        audit_service.AD_DELETED, user.id, ad.id, "ad", {"status": ad.status}
    )
    return ad


def list_user_ads(user_id: int) -> list[Ad]:
    return (
        db.session.query(Ad)
        .filter(Ad.user_id == user_id, Ad.is_deleted.is_(False))
        .order_by(Ad.created_at.desc(), Ad.id.desc())
        .all()
    )


def get_user_ad(ad_id: int, user: User) -> Ad:
    """Owner view of one of their ads, in any status."""
    return _get_owned_ad(ad_id, user)


# =============================================================================
# ADMIN DECISIONS
# =============================================================================

def _settle_pending_payment(ad: Ad, admin: User, status: str, note: str | None, now: datetime) -> None:
    payment = lock_for_update(
        db.session.query(Payment).filter_by(ad_id=ad.id, status=PAYMENT_STATUS_PENDING)
    ).first()
    if not payment:
        return
    payment.status = status
    payment.reviewed_at = now
    payment.reviewed_by_user_id = admin.id
    payment.admin_note = note
    if status == PAYMENT_STATUS_VERIFIED:
        payment.verified_at = now


def approve_ad(ad_id: int, *, admin: User) -> Ad:
    """
    Direct admin approval (the Free-package path).

    Allowed from any status except rejected.
    """
    def _op():
        ad = lock_for_update(
            db.session.query(Ad).filter_by(id=ad_id, is_deleted=False)
        ).first()
        if not ad:
            raise NotFoundError("Ad not found")
        if ad.status == AD_STATUS_REJECTED:
            raise InvalidStateError("Ad is rejected and cannot be approved")

        previous = ad.status
        now = utcnow()
        mark_approved(ad, now)
        _settle_pending_payment(ad, admin, PAYMENT_STATUS_VERIFIED, None, now)
        db.session.commit()
        return ad, previous

    ad, previous = run_with_retry(_op)

    audit_service.log_action(
        audit_service.AD_APPROVED, admin.id, ad.id, "ad", {"previous_status": previous}
    )
    return ad


def reject_ad(ad_id: int, *, admin: User, reason: str | None = None) -> Ad:
    """Direct admin rejection. Allowed from any status except rejected."""
    reason = (reason or "").strip() or None

    def _op():
        ad = lock_for_update(
            db.session.query(Ad).filter_by(id=ad_id, is_deleted=False)
        ).first()
        if not ad:
            raise NotFoundError("Ad not found")
        if ad.status == AD_STATUS_REJECTED:
            raise InvalidStateError("Ad is already rejected")

        previous = ad.status
        now = utcnow()
        mark_rejected(ad, reason, now)
        _settle_pending_payment(
            ad, admin, PAYMENT_STATUS_REJECTED, reason or "Ad rejected by admin", now
        )
        db.session.commit()
        return ad, previous

    ad, previous = run_with_retry(_op)

    audit_service.log_action(
        audit_service.AD_REJECTED, admin.id, ad.id, "ad",
        {"reason": reason, "previous_status": previous},
    )
    return ad


# =============================================================================
# QUERIES
# =============================================================================

def _apply_filters(query, *, category=None, search: str | None = None):
    """
    Returns the filtered query, or None when the category reference
    resolves to nothing (no ad can match).
    """
    if category not in (None, ""):
        resolved = find_category(category)
        if not resolved:
            return None
        query = query.filter(Ad.category_id == resolved.id)

    term = (search or "").strip().lower()
    if term:
        query = query.filter(db.or_(
            func.lower(Ad.title).contains(term, autoescape=True),
            func.lower(Ad.description).contains(term, autoescape=True),
        ))
    return query


def public_ads_query(now: datetime | None = None):
    now = now or utcnow()
    return db.session.query(Ad).filter(
        Ad.status == AD_STATUS_APPROVED,
        Ad.is_deleted.is_(False),
        db.or_(Ad.expires_at.is_(None), Ad.expires_at > now),
    )


def list_public_ads(*, category=None, search: str | None = None, limit=None, offset=None) -> list[Ad]:
    """
    Public catalog: approved ads only, newest first.

    category may be a numeric id or a slug.
    """
    limit, offset = parse_pagination(limit, offset, default_limit=PUBLIC_DEFAULT_LIMIT)

    query = _apply_filters(public_ads_query(), category=category, search=search)
    if query is None:
        return []

    return (
        query.order_by(Ad.created_at.desc(), Ad.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_public_ad(ad_id: int) -> Ad:
    ad = public_ads_query().filter(Ad.id == ad_id).first()
    if not ad:
        raise NotFoundError("Ad not found")
    return ad


def list_admin_ads(
    *,
    status: str | None = None,
    category=None,
    search: str | None = None,
    limit=None,
    offset=None,
) -> list[Ad]:
    """Every undeleted ad regardless of status, newest first."""
    limit, offset = parse_pagination(limit, offset, default_limit=ADMIN_DEFAULT_LIMIT)

    query = db.session.query(Ad).filter(Ad.is_deleted.is_(False))
    if status:
        if status not in VALID_AD_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(VALID_AD_STATUSES)}")
        query = query.filter(Ad.status == status)

    query = _apply_filters(query, category=category, search=search)
    if query is None:
        return []

    return (
        query.order_by(Ad.created_at.desc(), Ad.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


# =============================================================================
# EXPIRY
# =============================================================================

def expire_ads(now: datetime | None = None) -> list[int]:
    """
    Return approved ads past expires_at to their package's initial status.

    Paid ads go back to pending_verification, so the seller reactivates
    them by submitting a new payment. Returns the ids of expired ads.
    """
    now = now or utcnow()

    expired = (
        db.session.query(Ad)
        .filter(
            Ad.status == AD_STATUS_APPROVED,
            Ad.is_deleted.is_(False),
            Ad.expires_at.isnot(None),
            Ad.expires_at <= now,
        )
        .all()
    )
    if not expired:
        return []

    for ad in expired:
        ad.status = initial_status_for_package(ad.package)
        ad.expires_at = None
        ad.updated_at = now
    db.session.commit()

    ids = [ad.id for ad in expired]
    for ad in expired:
        audit_service.log_action(
            audit_service.AD_EXPIRED, None, ad.id, "ad", {"new_status": ad.status}
        )

    current_app.logger.info("Expired %d ad(s): %s", len(ids), ids)
    return ids
