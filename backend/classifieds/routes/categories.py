# Overview: Flask API routes for categories; public reads and admin-managed writes.

# backend/classifieds/routes/categories.py
from flask import Blueprint, request, jsonify, g, current_app

from ..models import Category
from ..services import category_service
from ..validation import (
    DomainError,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
    enforce_rules_category,
)
from ..decorators import require_admin


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "slug", "description", "is_active", "display_order"},
    required_on_create={"name", "slug"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    """Active categories in display order."""
    categories = category_service.list_categories()
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


@categories_bp.get("/<int:category_id>")
def get_category_route(category_id: int):
    try:
        category = category_service.get_category(category_id)
        return jsonify(category.to_dict()), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@categories_bp.post("")
@require_admin
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)

        category = category_service.create_category(patch=patch, actor_id=g.current_user.id)
        return jsonify(category.to_dict()), 201

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.put("/<int:category_id>")
@require_admin
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_rules_category(patch)
        if not patch:
            raise ValidationError("No updatable fields provided")

        category = category_service.update_category(
            category_id, patch=patch, actor_id=g.current_user.id
        )
        return jsonify(category.to_dict()), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update category")
        return jsonify({"error": "Internal server error"}), 500


@categories_bp.delete("/<int:category_id>")
@require_admin
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(category_id, actor_id=g.current_user.id)
        return jsonify({"message": "Category deleted"}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete category")
        return jsonify({"error": "Internal server error"}), 500
