# Overview: Admin-managed category catalog.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Ad, Category
from ..validation import ConflictError, NotFoundError
from . import audit_service

CATEGORY_MUTABLE_FIELDS = {"name", "slug", "description", "is_active", "display_order"}

DEFAULT_CATEGORIES = [
    ("Electronics", "electronics"),
    ("Vehicles", "vehicles"),
    ("Real Estate", "real-estate"),
    ("Jobs", "jobs"),
    ("Services", "services"),
    ("Fashion", "fashion"),
    ("Home & Garden", "home-garden"),
    ("Other", "other"),
]


def list_categories(include_inactive: bool = False) -> list[Category]:
    query = db.session.query(Category)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.display_order.asc(), Category.name.asc()).all()


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def find_category(ref) -> Category | None:
    """Resolve a category by numeric id or by slug."""
    if ref is None or ref == "":
        return None
    if isinstance(ref, int) or (str(ref).isascii() and str(ref).isdecimal()):
        return db.session.get(Category, int(ref))
    return db.session.query(Category).filter_by(slug=str(ref).strip().lower()).first()


def _commit_or_conflict() -> None:
    # The slug check above is advisory; the unique index is the real guard
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category slug already exists")


def create_category(*, patch: dict, actor_id: int | None = None) -> Category:
    """Create a category from a validated patch (name and slug present)."""
    if db.session.query(Category).filter_by(slug=patch["slug"]).first():
        raise ConflictError("Category slug already exists")

    category = Category(**{k: v for k, v in patch.items() if k in CATEGORY_MUTABLE_FIELDS})
    db.session.add(category)
    _commit_or_conflict()
    audit_service.log_action(
        audit_service.CATEGORY_CREATED, actor_id, category.id, "category", {"slug": category.slug}
    )
    return category


def update_category(category_id: int, *, patch: dict, actor_id: int | None = None) -> Category:
    category = get_category(category_id)

    new_slug = patch.get("slug")
    if new_slug and new_slug != category.slug:
        clash = db.session.query(Category).filter(
            Category.slug == new_slug, Category.id != category.id
        ).first()
        if clash:
            raise ConflictError("Category slug already exists")

    for k, v in patch.items():
        if k in CATEGORY_MUTABLE_FIELDS:
            setattr(category, k, v)

    _commit_or_conflict()
    audit_service.log_action(
        audit_service.CATEGORY_UPDATED, actor_id, category.id, "category", {"fields": sorted(patch)}
    )
    return category


def delete_category(category_id: int, *, actor_id: int | None = None) -> Category:
    """
    Delete a category that no ad references.

    Soft-deleted ads still reference their category, so they block deletion
    too; deactivate the category instead (is_active=false).
    """
    category = get_category(category_id)

    in_use = db.session.query(Ad.id).filter(Ad.category_id == category.id).first()
    if in_use:
        raise ConflictError("Category has ads; deactivate it instead")

    slug = category.slug
    db.session.delete(category)
    db.session.commit()
    audit_service.log_action(
        audit_service.CATEGORY_DELETED, actor_id, category_id, "category", {"slug": slug}
    )
    return category


def seed_default_categories() -> int:
    """Insert the default catalog, skipping slugs that already exist. Returns count created."""
    existing = {slug for (slug,) in db.session.query(Category.slug).all()}
    created = 0
    for order, (name, slug) in enumerate(DEFAULT_CATEGORIES):
        if slug in existing:
            continue
        db.session.add(Category(name=name, slug=slug, display_order=order))
        created += 1
    db.session.commit()
    return created
