from __future__ import annotations

from ..extensions import db
from classifieds.time_utils import to_utc_z


class Category(db.Model):
    """
    Ad category managed by admins.

    Ads reference categories by id; the slug is the URL-safe public key
    and is unique across the catalog.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_active_order", "is_active", "display_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "is_active": self.is_active,
            "display_order": self.display_order,
            "created_at": to_utc_z(self.created_at),
        }
