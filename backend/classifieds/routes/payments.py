# Overview: Flask API routes for payment submission; parses input and returns JSON responses.

# backend/classifieds/routes/payments.py
"""
Payment API Routes (seller side)

- Bank/wallet instructions (public)
- Submit transfer details for a paid ad
- Track own payment submissions

Review endpoints (approve/reject/note) live under /api/admin.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Payment
from ..services import payment_service
from ..validation import DomainError, ModelValidationPolicy, validate_payload
from ..decorators import require_auth


PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"ad_id", "sender_name", "bank_name", "transaction_id", "screenshot_url"},
    required_on_create={"ad_id", "sender_name", "bank_name", "transaction_id"},
)

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.get("/instructions")
def payment_instructions_route():
    return jsonify(payment_service.get_payment_instructions()), 200


@payments_bp.post("")
@require_auth
def submit_payment_route():
    """
    Submit payment details for an ad awaiting verification.

    Request body:
    {
        "ad_id": 12,
        "sender_name": "Ali",
        "bank_name": "Easypaisa",
        "transaction_id": "TX123",
        "screenshot_url": "https://..."   (optional)
    }

    Returns:
        201: Payment created (status "pending")
        400: Invalid input or ad not in pending_verification
        404: Ad not found or not owned by caller
        409: A pending payment already exists for the ad
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Payment, payload=payload, policy=PAYMENT_POLICY, partial=False)
        payment = payment_service.submit_payment(user=g.current_user, patch=patch)
        return jsonify(payment.to_dict()), 201

    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
    except Exception:
        current_app.logger.exception("Failed to submit payment")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/mine")
@require_auth
def my_payments_route():
    payments = payment_service.list_user_payments(g.current_user.id)
    return jsonify({
        "payments": [payment_service.payment_with_context(p) for p in payments],
        "count": len(payments),
    }), 200


@payments_bp.get("/ad/<int:ad_id>")
@require_auth
def ad_payment_route(ad_id: int):
    """Latest payment the caller submitted for one of their ads."""
    try:
        payment = payment_service.get_latest_payment_for_ad(ad_id, g.current_user.id)
        return jsonify(payment_service.payment_with_context(payment)), 200
    except DomainError as e:
        return jsonify({"error": str(e)}), e.status_code
