# Overview: Pytest coverage for the category catalog.

import pytest
from classifieds.models import AuditLog, Category
from classifieds.services import category_service
from classifieds.validation import ConflictError, NotFoundError

from conftest import make_ad


def test_seed_is_idempotent(db_session):
    assert category_service.seed_default_categories() == 8
    assert category_service.seed_default_categories() == 0
    slugs = [c.slug for c in category_service.list_categories()]
    assert slugs[:2] == ["electronics", "vehicles"]
    assert len(slugs) == 8


def test_inactive_hidden_from_public_list(db_session, categories):
    category_service.update_category(categories["jobs"].id, patch={"is_active": False})

    public = {c.slug for c in category_service.list_categories()}
    everything = {c.slug for c in category_service.list_categories(include_inactive=True)}
    assert "jobs" not in public
    assert "jobs" in everything


def test_find_by_id_or_slug(categories):
    vehicles = categories["vehicles"]
    assert category_service.find_category(vehicles.id).id == vehicles.id
    assert category_service.find_category(str(vehicles.id)).id == vehicles.id
    assert category_service.find_category("vehicles").id == vehicles.id
    assert category_service.find_category("nope") is None


@pytest.mark.parametrize("ref", ["\u00b2", "\u0661", "\uff11"])
def test_non_ascii_digits_are_not_ids(categories, ref):
    assert category_service.find_category(ref) is None


def test_create_and_audit(db_session, admin):
    category = category_service.create_category(
        patch={"name": "Pets", "slug": "pets"}, actor_id=admin.id
    )
    assert category.is_active is True

    entry = db_session.query(AuditLog).filter_by(action="category_created").one()
    assert entry.target_id == category.id
    assert entry.actor_id == admin.id


def test_duplicate_slug_conflicts(categories):
    with pytest.raises(ConflictError):
        category_service.create_category(patch={"name": "Cars", "slug": "vehicles"})


def test_rename_slug_to_existing_conflicts(categories):
    with pytest.raises(ConflictError):
        category_service.update_category(categories["jobs"].id, patch={"slug": "vehicles"})


def test_delete_unused(db_session, categories):
    jobs_id = categories["jobs"].id
    category_service.delete_category(jobs_id)
    assert db_session.get(Category, jobs_id) is None
    with pytest.raises(NotFoundError):
        category_service.get_category(jobs_id)


def test_delete_in_use_conflicts(seller, categories):
    make_ad(seller, categories["vehicles"])
    with pytest.raises(ConflictError):
        category_service.delete_category(categories["vehicles"].id)
