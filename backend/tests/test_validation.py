# Overview: Pytest coverage for payload validation and policy rules.

from decimal import Decimal

import pytest
from classifieds.models import Ad, Category, Payment
from classifieds.routes.ads import AD_CREATE_POLICY, AD_UPDATE_POLICY
from classifieds.routes.categories import CATEGORY_POLICY
from classifieds.routes.payments import PAYMENT_POLICY
from classifieds.validation import (
    ValidationError,
    enforce_rules_ad,
    enforce_rules_category,
    parse_pagination,
    validate_payload,
)


class TestAdPayload:

    def test_valid_create(self):
        patch = validate_payload(
            model=Ad,
            payload={
                "title": "  Bike  ",
                "category_id": "2",
                "price": "150.50",
                "image_urls": ["https://img/1.jpg", " ", "https://img/2.jpg"],
                "description": "",
            },
            policy=AD_CREATE_POLICY,
            partial=False,
        )
        assert patch["title"] == "Bike"
        assert patch["category_id"] == 2
        assert patch["price"] == Decimal("150.50")
        assert patch["image_urls"] == ["https://img/1.jpg", "https://img/2.jpg"]
        assert patch["description"] is None

    @pytest.mark.parametrize("payload", [{"category_id": 1}, {"title": "", "category_id": 1}, {"title": "Bike"}])
    def test_missing_required(self, payload):
        with pytest.raises(ValidationError, match="Missing required fields"):
            validate_payload(model=Ad, payload=payload, policy=AD_CREATE_POLICY, partial=False)

    @pytest.mark.parametrize("field", ["status", "user_id", "is_deleted", "approved_at"])
    def test_server_owned_fields_not_writable(self, field):
        with pytest.raises(ValidationError, match="Field not allowed"):
            validate_payload(
                model=Ad,
                payload={"title": "Bike", "category_id": 1, field: "x"},
                policy=AD_CREATE_POLICY,
                partial=False,
            )

    def test_package_not_editable(self):
        with pytest.raises(ValidationError, match="Field not allowed: package"):
            validate_payload(model=Ad, payload={"package": "Premium"}, policy=AD_UPDATE_POLICY, partial=True)

    @pytest.mark.parametrize("value", [1.5, "1e3", "abc", True])
    def test_category_id_must_be_integer(self, value):
        with pytest.raises(ValidationError):
            validate_payload(
                model=Ad, payload={"category_id": value}, policy=AD_UPDATE_POLICY, partial=True
            )

    @pytest.mark.parametrize("value", ["NaN", True, {"amount": 1}])
    def test_price_must_be_number(self, value):
        with pytest.raises(ValidationError):
            validate_payload(model=Ad, payload={"price": value}, policy=AD_UPDATE_POLICY, partial=True)

    def test_title_length(self):
        with pytest.raises(ValidationError, match="max length"):
            validate_payload(model=Ad, payload={"title": "x" * 201}, policy=AD_UPDATE_POLICY, partial=True)

    def test_image_urls_must_be_strings(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Ad, payload={"image_urls": [1, 2]}, policy=AD_UPDATE_POLICY, partial=True)

    @pytest.mark.parametrize("price", [Decimal("-1"), Decimal("10000000000")])
    def test_price_bounds(self, price):
        with pytest.raises(ValidationError):
            enforce_rules_ad({"price": price})

    def test_price_zero_allowed(self):
        enforce_rules_ad({"price": Decimal("0")})


class TestPaymentPayload:

    def test_transaction_fields_required(self):
        with pytest.raises(ValidationError) as exc:
            validate_payload(model=Payment, payload={"ad_id": 1}, policy=PAYMENT_POLICY, partial=False)
        assert "bank_name" in str(exc.value)
        assert "sender_name" in str(exc.value)
        assert "transaction_id" in str(exc.value)

    def test_status_not_writable(self):
        with pytest.raises(ValidationError):
            validate_payload(
                model=Payment,
                payload={
                    "ad_id": 1,
                    "sender_name": "Ali",
                    "bank_name": "Easypaisa",
                    "transaction_id": "TX123",
                    "status": "verified",
                },
                policy=PAYMENT_POLICY,
                partial=False,
            )


class TestCategoryRules:

    @pytest.mark.parametrize("slug", ["vehicles", "real-estate", "a1"])
    def test_valid_slugs(self, slug):
        enforce_rules_category({"slug": slug})

    @pytest.mark.parametrize("slug", ["Vehicles", "real estate", "-lead", "trail-", "double--dash"])
    def test_invalid_slugs(self, slug):
        with pytest.raises(ValidationError):
            enforce_rules_category({"slug": slug})

    def test_is_active_must_be_bool(self):
        with pytest.raises(ValidationError):
            validate_payload(model=Category, payload={"is_active": "yes"}, policy=CATEGORY_POLICY, partial=True)


class TestPagination:

    def test_defaults(self):
        assert parse_pagination(None, None, default_limit=50) == (50, 0)
        assert parse_pagination("", "", default_limit=100) == (100, 0)

    def test_parses_strings(self):
        assert parse_pagination("10", "20", default_limit=50) == (10, 20)

    @pytest.mark.parametrize("limit,offset", [("0", "0"), ("501", "0"), ("10", "-1"), ("ten", "0")])
    def test_invalid(self, limit, offset):
        with pytest.raises(ValidationError):
            parse_pagination(limit, offset, default_limit=50)
