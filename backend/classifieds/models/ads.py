from __future__ import annotations

from ..extensions import db
from classifieds.time_utils import to_utc_z


# Ad lifecycle states
AD_STATUS_PENDING_ADMIN_APPROVAL = "pending_admin_approval"  # Free package
AD_STATUS_PENDING_VERIFICATION = "pending_verification"      # Paid package, awaiting payment
AD_STATUS_APPROVED = "approved"                              # Publicly visible
AD_STATUS_REJECTED = "rejected"                              # Terminal

VALID_AD_STATUSES = (
    AD_STATUS_PENDING_ADMIN_APPROVAL,
    AD_STATUS_PENDING_VERIFICATION,
    AD_STATUS_APPROVED,
    AD_STATUS_REJECTED,
)

PACKAGE_FREE = "Free"

# Payment verification states
PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_VERIFIED = "verified"
PAYMENT_STATUS_REJECTED = "rejected"

VALID_PAYMENT_STATUSES = (
    PAYMENT_STATUS_PENDING,
    PAYMENT_STATUS_VERIFIED,
    PAYMENT_STATUS_REJECTED,
)


class Ad(db.Model):
    """
    Classified ad posted by a seller.

    LIFECYCLE:
        pending_admin_approval --(admin)--> approved | rejected
        pending_verification --(payment verified)--> approved
        pending_verification --(payment rejected)--> rejected
        approved --(expiry)--> initial status of its package

    Only approved, unexpired, undeleted ads are public.
    Deletion is soft: is_deleted rows are invisible to every query.
    """
    __tablename__ = "ads"
    __table_args__ = (
        db.Index("ix_ads_status_created", "status", "created_at"),
        db.Index("ix_ads_category_status", "category_id", "status"),
        db.Index("ix_ads_user_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(12, 2), nullable=True)
    image_urls = db.Column(db.JSON, nullable=False, default=list)
    video_url = db.Column(db.String(500), nullable=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    package = db.Column(db.String(32), nullable=False, default=PACKAGE_FREE)
    status = db.Column(db.String(32), nullable=False, index=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    category = db.relationship("Category", backref=db.backref("ads", lazy=True))
    owner = db.relationship("User", backref=db.backref("ads", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": float(self.price) if self.price is not None else None,
            "image_urls": list(self.image_urls or []),
            "video_url": self.video_url,
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
            "category_slug": self.category.slug if self.category else None,
            "user_id": self.user_id,
            "seller_name": self.owner.name if self.owner else None,
            "package": self.package,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "approved_at": to_utc_z(self.approved_at),
            "expires_at": to_utc_z(self.expires_at),
        }


class Payment(db.Model):
    """
    Manually verified payment for a paid ad package.

    The seller transfers money out of band and submits the transfer details;
    an admin verifies or rejects them. At most one payment per ad may be
    pending at any time (partial unique index below).

    Once out of "pending" only admin_note may change.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index(
            "uq_payments_one_pending_per_ad",
            "ad_id",
            unique=True,
            sqlite_where=db.text("status = 'pending'"),
            postgresql_where=db.text("status = 'pending'"),
        ),
        db.Index("ix_payments_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    ad_id = db.Column(db.Integer, db.ForeignKey("ads.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    sender_name = db.Column(db.String(120), nullable=False)
    bank_name = db.Column(db.String(120), nullable=False)
    transaction_id = db.Column(db.String(128), nullable=False)
    screenshot_url = db.Column(db.String(500), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_PENDING)
    admin_note = db.Column(db.Text, nullable=True)
    reviewed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    verified_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    ad = db.relationship("Ad", backref=db.backref("payments", lazy=True))
    user = db.relationship("User", foreign_keys=[user_id])
    reviewed_by = db.relationship("User", foreign_keys=[reviewed_by_user_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ad_id": self.ad_id,
            "user_id": self.user_id,
            "sender_name": self.sender_name,
            "bank_name": self.bank_name,
            "transaction_id": self.transaction_id,
            "screenshot_url": self.screenshot_url,
            "status": self.status,
            "admin_note": self.admin_note,
            "reviewed_by_user_id": self.reviewed_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "verified_at": to_utc_z(self.verified_at),
            "reviewed_at": to_utc_z(self.reviewed_at),
        }
