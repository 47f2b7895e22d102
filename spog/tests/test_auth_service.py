"""Tests for login sessions and password management."""

from datetime import timedelta

import pytest

from spog.models import UserSession
from spog.services import auth_service
from spog.services.exceptions import AuthenticationError, ValidationError
from spog.utils.datetime_utils import utc_now

from conftest import TEST_PASSWORD


class TestLogin:
    """Test authenticate, token lookup and logout."""

    def test_login_and_resolve_token(self, regular_user):
        """Test a token resolves to its user."""
        result = auth_service.authenticate(
            "TECH@example.com", TEST_PASSWORD, ip_address="10.0.0.4"
        )

        assert result.user.id == regular_user.id
        assert result.user.last_login is not None
        assert auth_service.get_user_for_token(result.token).id == regular_user.id

    def test_remember_me_lasts_longer(self, regular_user):
        """Test remember-me sessions outlive normal ones."""
        short = auth_service.authenticate(regular_user.email, TEST_PASSWORD)
        long = auth_service.authenticate(regular_user.email, TEST_PASSWORD, remember_me=True)
        assert long.expires_at > short.expires_at + timedelta(days=1)

    @pytest.mark.parametrize(
        "email,password", [("tech@example.com", "wrong1234"), ("no@x.io", "a")]
    )
    def test_bad_credentials(self, regular_user, email, password):
        """Test wrong passwords and unknown emails give the same error."""
        with pytest.raises(AuthenticationError) as exc_info:
            auth_service.authenticate(email, password)
        assert str(exc_info.value) == "Invalid email or password"

    def test_logout(self, regular_user):
        """Test a logged-out token is refused."""
        token = auth_service.authenticate(regular_user.email, TEST_PASSWORD).token

        assert auth_service.logout(token) is True
        assert auth_service.logout(token) is False
        with pytest.raises(AuthenticationError):
            auth_service.get_user_for_token(token)

    def test_expired_session(self, regular_user, test_db):
        """Test an expired token is refused."""
        token = auth_service.authenticate(regular_user.email, TEST_PASSWORD).token

        session = test_db()
        try:
            user_session = session.query(UserSession).filter_by(token=token).one()
            user_session.expires_at = utc_now() - timedelta(minutes=1)
            session.commit()
        finally:
            session.close()

        with pytest.raises(AuthenticationError):
            auth_service.get_user_for_token(token)

    @pytest.mark.parametrize("token", [None, "", "not-a-token"])
    def test_missing_or_unknown_token(self, test_db, token):
        """Test missing and unknown tokens are refused."""
        with pytest.raises(AuthenticationError):
            auth_service.get_user_for_token(token)


class TestPasswords:
    """Test password change and reset."""

    def test_change_password(self, regular_user):
        """Test the new password works and the old one does not."""
        auth_service.change_password(regular_user.id, TEST_PASSWORD, "newSealant9")

        auth_service.authenticate(regular_user.email, "newSealant9")
        with pytest.raises(AuthenticationError):
            auth_service.authenticate(regular_user.email, TEST_PASSWORD)

    def test_change_password_wrong_current(self, regular_user):
        """Test the current password is checked."""
        with pytest.raises(AuthenticationError):
            auth_service.change_password(regular_user.id, "guess1234", "newSealant9")

    def test_change_password_weak(self, regular_user):
        """Test weak new passwords are refused."""
        with pytest.raises(ValidationError):
            auth_service.change_password(regular_user.id, TEST_PASSWORD, "weak")

    def test_reset_flow(self, regular_user):
        """Test a reset token sets a new password once and closes sessions."""
        old_token = auth_service.authenticate(regular_user.email, TEST_PASSWORD).token
        reset_token = auth_service.request_password_reset("tech@example.com")
        assert reset_token

        auth_service.reset_password(reset_token, "freshPaint7")

        auth_service.authenticate(regular_user.email, "freshPaint7")
        with pytest.raises(AuthenticationError):
            auth_service.get_user_for_token(old_token)
        with pytest.raises(AuthenticationError):
            auth_service.reset_password(reset_token, "again1234")

    def test_reset_unknown_email(self, test_db):
        """Test unknown emails get no token."""
        assert auth_service.request_password_reset("ghost@example.com") is None

    def test_verify_email(self, regular_user):
        """Test marking an email as verified."""
        assert auth_service.verify_email(regular_user.id).email_verified is True
