# Overview: Flask API routes for ads operations; parses input and returns JSON responses.

# backend/classifieds/routes/ads.py
"""
Ad API Routes

PUBLIC:
- Browse/search approved ads, view one approved ad, list packages

SELLER (authenticated):
- Create ads (status derived from package)
- List own ads in every status
- Edit/delete own ads (owner only)
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Ad
from ..services import ad_service
from ..validation import (
    DomainError,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
    enforce_rules_ad,
)
from ..decorators import require_auth


AD_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "price", "image_urls", "video_url", "category_id", "package"},
    required_on_create={"title", "category_id"},
)

AD_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "price", "image_urls", "video_url", "category_id"},
)

ads_bp = Blueprint("ads", __name__, url_prefix="/api/ads")


def _category_arg():
    return request.args.get("category_id") or request.args.get("category")


# =============================================================================
# PUBLIC
# =============================================================================

@ads_bp.get("")
def list_ads_route():
    """
    Public ad listing.

    Query params:
    - category_id: category id or slug (optional)
    - search: case-insensitive match on title/description (optional)
    - limit: default 50
    - offset: default 0

    Only approved ads are ever returned.
    """
    try:
        ads = ad_service.list_public_ads(
            category=_category_arg(),
            search=request.args.get("search"),
            limit=request.args.get("limit"),
            offset=request.args.get("offset"),
        )
        return jsonify({"ads": [ad.to_dict() for ad in ads], "count": len(ads)}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list ads")
        return jsonify({"error": "Internal server error"}), 500


@ads_bp.get("/packages")
def list_packages_route():
    return jsonify({"packages": ad_service.list_packages()}), 200


@ads_bp.get("/<int:ad_id>")
def get_ad_route(ad_id: int):
    """Public single ad; 404 unless approved."""
    try:
        ad = ad_service.get_public_ad(ad_id)
        data = ad.to_dict()
        data["seller_email"] = ad.owner.email if ad.owner else None
        return jsonify({"ad": data}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


# =============================================================================
# SELLER
# =============================================================================

@ads_bp.post("")
@require_auth
def create_ad_route():
    """
    Create an ad.

    Request body:
    {
        "title": "Bike",                      (required)
        "category_id": 2,                     (required)
        "description": "...",
        "price": 150.0,
        "image_urls": ["https://..."],
        "video_url": "https://...",
        "package": "Free"                     (Free | Standard | Premium, default Free)
    }

    Returns:
        201: Ad created (pending_admin_approval for Free, else pending_verification)
        400: Invalid input
        403: Caller is not an approved seller
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Ad, payload=payload, policy=AD_CREATE_POLICY, partial=False)
        enforce_rules_ad(patch)

        ad = ad_service.create_ad(user=g.current_user, patch=patch)
        return jsonify(ad.to_dict()), 201

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create ad")
        return jsonify({"error": "Internal server error"}), 500


@ads_bp.get("/mine")
@require_auth
def my_ads_route():
    ads = ad_service.list_user_ads(g.current_user.id)
    return jsonify({"ads": [ad.to_dict() for ad in ads], "count": len(ads)}), 200


@ads_bp.get("/mine/<int:ad_id>")
@require_auth
def my_ad_route(ad_id: int):
    try:
        ad = ad_service.get_user_ad(ad_id, g.current_user)
        return jsonify({"ad": ad.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@ads_bp.put("/<int:ad_id>")
@require_auth
def update_ad_route(ad_id: int):
    """
    Update content fields of an ad (owner only).

    Status, package and owner cannot be changed here.

    Returns:
        200: Updated ad
        400: Invalid input
        403: Not the owner
        404: Ad not found
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Ad, payload=payload, policy=AD_UPDATE_POLICY, partial=True)
        enforce_rules_ad(patch)
        if not patch:
            raise ValidationError("No updatable fields provided")

        ad = ad_service.update_ad(ad_id, user=g.current_user, patch=patch)
        return jsonify(ad.to_dict()), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update ad")
        return jsonify({"error": "Internal server error"}), 500


@ads_bp.delete("/<int:ad_id>")
@require_auth
def delete_ad_route(ad_id: int):
    try:
        ad_service.delete_ad(ad_id, user=g.current_user)
        return jsonify({"message": "Ad deleted successfully"}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete ad")
        return jsonify({"error": "Internal server error"}), 500
