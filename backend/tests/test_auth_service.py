# Overview: Pytest coverage for credentials and session tokens.

from datetime import timedelta

import pytest
from classifieds.models import SessionToken
from classifieds.models.auth import (
    ROLE_SELLER,
    USER_STATUS_APPROVED,
    USER_STATUS_BLOCKED,
    USER_STATUS_PENDING,
)
from classifieds.services import auth_service, session_service
from classifieds.services.auth_service import PasswordValidationError
from classifieds.time_utils import utcnow
from classifieds.validation import ConflictError, ValidationError

from conftest import PASSWORD


class TestRegistration:

    def test_register_buyer_by_default(self, db_session):
        user = auth_service.register("Ali", "Ali@Example.com", PASSWORD)
        assert user.role == "user"
        assert user.status == USER_STATUS_APPROVED
        assert user.email == "ali@example.com"
        assert user.password_hash != PASSWORD

    def test_register_seller(self, db_session):
        user = auth_service.register("Sana", "sana@example.com", PASSWORD, role=ROLE_SELLER)
        assert user.role == ROLE_SELLER
        assert user.status == USER_STATUS_APPROVED

    def test_seller_approval_flag(self, app, db_session):
        app.config["SELLER_APPROVAL_REQUIRED"] = True
        try:
            user = auth_service.register("Sana", "sana@example.com", PASSWORD, role=ROLE_SELLER)
        finally:
            app.config["SELLER_APPROVAL_REQUIRED"] = False
        assert user.status == USER_STATUS_PENDING

    def test_cannot_self_register_admin(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.register("Eve", "eve@example.com", PASSWORD, role="admin")

    def test_duplicate_email_case_insensitive(self, db_session):
        auth_service.register("Ali", "ali@example.com", PASSWORD)
        with pytest.raises(ConflictError):
            auth_service.register("Ali Again", "ALI@example.com", PASSWORD)

    @pytest.mark.parametrize(
        "password",
        ["short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123"],
    )
    def test_weak_passwords(self, db_session, password):
        with pytest.raises(PasswordValidationError):
            auth_service.register("Ali", "ali@example.com", password)

    def test_invalid_email(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.register("Ali", "not-an-email", PASSWORD)


class TestAuthenticate:

    def test_valid_credentials(self, seller):
        user = auth_service.authenticate("SELLER@test.local", PASSWORD)
        assert user.id == seller.id
        assert user.last_login_at is not None

    def test_wrong_password(self, seller):
        assert auth_service.authenticate(seller.email, "Wrong123!") is None

    def test_unknown_email(self, db_session):
        assert auth_service.authenticate("nobody@test.local", PASSWORD) is None

    def test_blocked_user_refused(self, db_session, seller):
        seller.status = USER_STATUS_BLOCKED
        db_session.commit()
        assert auth_service.authenticate(seller.email, PASSWORD) is None


class TestSessions:

    def test_token_roundtrip(self, seller):
        session, token = session_service.create_session(seller.id)
        assert session.token_hash == session_service.hash_token(token)
        assert session.token_hash != token
        assert session_service.validate_session(token).id == seller.id

    def test_unknown_token(self, db_session):
        assert session_service.validate_session("not-a-token") is None

    def test_revoked_token(self, seller):
        _, token = session_service.create_session(seller.id)
        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None
        assert session_service.revoke_session(token) is False

    def test_idle_timeout(self, db_session, seller):
        session, token = session_service.create_session(seller.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert db_session.get(SessionToken, session.id).revoked_reason == "Idle timeout"

    def test_absolute_expiry(self, db_session, seller):
        session, token = session_service.create_session(seller.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_blocked_user_token_invalid(self, db_session, seller):
        _, token = session_service.create_session(seller.id)
        seller.status = USER_STATUS_BLOCKED
        db_session.commit()

        assert session_service.validate_session(token) is None

    def test_revoke_all(self, seller):
        _, first = session_service.create_session(seller.id)
        _, second = session_service.create_session(seller.id)

        assert session_service.revoke_all_user_sessions(seller.id, "test") == 2
        assert session_service.validate_session(first) is None
        assert session_service.validate_session(second) is None
