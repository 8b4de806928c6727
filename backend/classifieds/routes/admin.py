# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/classifieds/routes/admin.py
"""
Admin routes for moderation and oversight.

Provides endpoints for:
- Payment review (pending queue, approve, reject, note edits)
- Ad moderation (list all statuses, direct approve/reject)
- User management (list, view, change role/status)
- Audit trail and dashboard statistics

All endpoints require an authenticated admin.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import User
from ..services import (
    ad_service,
    audit_service,
    category_service,
    payment_service,
    stats_service,
    user_service,
)
from ..validation import (
    DomainError,
    ModelValidationPolicy,
    ValidationError,
    validate_payload,
)
from ..decorators import require_admin

USER_ADMIN_POLICY = ModelValidationPolicy(
    writable_fields={"name", "role", "status"},
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _note_from_body() -> str | None:
    data = request.get_json(silent=True) or {}
    note = data.get("admin_note")
    if note is not None and not isinstance(note, str):
        raise ValidationError("admin_note must be a string")
    return note


# =============================================================================
# PAYMENT REVIEW
# =============================================================================

@admin_bp.get("/payments/pending")
@require_admin
def pending_payments_route():
    """Review queue, oldest first, with ad and submitter details."""
    payments = payment_service.list_pending_payments()
    return jsonify({
        "payments": [payment_service.payment_with_context(p) for p in payments],
        "count": len(payments),
    }), 200


@admin_bp.get("/payments")
@require_admin
def list_payments_route():
    """
    All payments, newest first.

    Query params:
    - status: pending | verified | rejected (optional)
    """
    try:
        payments = payment_service.list_payments(request.args.get("status"))
        return jsonify({
            "payments": [payment_service.payment_with_context(p) for p in payments],
            "count": len(payments),
        }), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@admin_bp.post("/payments/<int:payment_id>/approve")
@require_admin
def approve_payment_route(payment_id: int):
    """
    Verify a pending payment; its ad becomes approved in the same commit.

    Request body (optional):
    {"admin_note": "Matched bank statement"}

    Returns:
        200: Payment verified
        400: Payment not pending
        404: Payment not found
    """
    try:
        payment = payment_service.approve_payment(
            payment_id, admin=g.current_user, admin_note=_note_from_body()
        )
        return jsonify({
            "message": "Payment approved and ad published",
            "payment": payment_service.payment_with_context(payment),
        }), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to approve payment")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/payments/<int:payment_id>/reject")
@require_admin
def reject_payment_route(payment_id: int):
    """
    Reject a pending payment; its ad becomes rejected.

    Request body:
    {"admin_note": "blurry screenshot"}   (required)
    """
    try:
        payment = payment_service.reject_payment(
            payment_id, admin=g.current_user, admin_note=_note_from_body()
        )
        return jsonify({
            "message": "Payment rejected",
            "payment": payment_service.payment_with_context(payment),
        }), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reject payment")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/payments/<int:payment_id>/note")
@require_admin
def update_payment_note_route(payment_id: int):
    """Edit the admin note of an already reviewed payment."""
    try:
        payment = payment_service.update_admin_note(
            payment_id, admin=g.current_user, admin_note=_note_from_body()
        )
        return jsonify(payment_service.payment_with_context(payment)), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update payment note")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# AD MODERATION
# =============================================================================

@admin_bp.get("/ads")
@require_admin
def list_ads_route():
    """
    Every live ad regardless of status.

    Query params:
    - status, category_id (id or slug), search, limit (default 100), offset
    """
    try:
        ads = ad_service.list_admin_ads(
            status=request.args.get("status"),
            category=request.args.get("category_id") or request.args.get("category"),
            search=request.args.get("search"),
            limit=request.args.get("limit"),
            offset=request.args.get("offset"),
        )
        return jsonify({"ads": [ad.to_dict() for ad in ads], "count": len(ads)}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@admin_bp.post("/ads/<int:ad_id>/approve")
@require_admin
def approve_ad_route(ad_id: int):
    try:
        ad = ad_service.approve_ad(ad_id, admin=g.current_user)
        return jsonify({"message": "Ad approved", "ad": ad.to_dict()}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to approve ad")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/ads/<int:ad_id>/reject")
@require_admin
def reject_ad_route(ad_id: int):
    """
    Request body (optional):
    {"reason": "Prohibited item"}
    """
    data = request.get_json(silent=True) or {}

    try:
        reason = data.get("reason")
        if reason is not None and not isinstance(reason, str):
            raise ValidationError("reason must be a string")

        ad = ad_service.reject_ad(ad_id, admin=g.current_user, reason=reason)
        return jsonify({"message": "Ad rejected", "ad": ad.to_dict()}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to reject ad")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/categories")
@require_admin
def list_categories_route():
    """Categories including inactive ones."""
    categories = category_service.list_categories(include_inactive=True)
    return jsonify({"categories": [c.to_dict() for c in categories]}), 200


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_admin
def list_users_route():
    """
    Query params:
    - role: user | seller | admin
    - status: approved | pending | blocked
    """
    try:
        users = user_service.list_users(
            role=request.args.get("role"),
            status=request.args.get("status"),
        )
        return jsonify({"users": [u.to_dict() for u in users], "count": len(users)}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@admin_bp.get("/users/<int:user_id>")
@require_admin
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
        return jsonify({"user": user.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@admin_bp.patch("/users/<int:user_id>")
@require_admin
def update_user_route(user_id: int):
    """
    Change a user's name, role or status.

    Request body (any subset):
    {"name": "...", "role": "seller", "status": "blocked"}

    Blocking revokes every session of the user.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_ADMIN_POLICY, partial=True)
        if not patch:
            raise ValidationError("No updatable fields provided")

        user = user_service.update_user(user_id, admin=g.current_user, patch=patch)
        return jsonify({"user": user.to_dict()}), 200

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# OVERSIGHT
# =============================================================================

@admin_bp.get("/audit-logs")
@require_admin
def audit_logs_route():
    """
    Query params:
    - action, target_type, target_id, since (ISO-8601), limit (default 100), offset
    """
    try:
        target_id = request.args.get("target_id")
        if target_id is not None:
            if not (target_id.isascii() and target_id.isdecimal()):
                raise ValidationError("target_id must be an integer")
            target_id = int(target_id)

        logs = audit_service.list_audit_logs(
            action=request.args.get("action"),
            target_type=request.args.get("target_type"),
            target_id=target_id,
            since=request.args.get("since"),
            limit=request.args.get("limit"),
            offset=request.args.get("offset"),
        )
        return jsonify({"logs": [entry.to_dict() for entry in logs], "count": len(logs)}), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code


@admin_bp.get("/stats")
@require_admin
def stats_route():
    try:
        return jsonify(stats_service.dashboard_stats()), 200
    except Exception:
        current_app.logger.exception("Failed to compute dashboard stats")
        return jsonify({"error": "Internal server error"}), 500
