"""Unit tests for admin_service."""
from unittest.mock import patch, MagicMock

import pytest

from src.services.admin_service import (
    authenticate_admin,
    is_admin_authenticated,
    login_admin,
    logout_admin,
)
from src.services.record_store import JsonRecordStore, SupabaseRecordStore
from src.utils.exceptions import StoreError


@pytest.fixture
def admin_env(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", "admin@stage.my")
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret!")


class TestAuthenticateAdmin:
    """Test authenticate_admin function."""

    def test_correct_credentials(self, admin_env):
        assert authenticate_admin("admin@stage.my", "s3cret!") is True

    def test_email_case_and_spaces_ignored(self, admin_env):
        assert authenticate_admin("  Admin@Stage.MY ", "s3cret!") is True

    def test_wrong_email(self, admin_env):
        assert authenticate_admin("other@stage.my", "s3cret!") is False

    def test_wrong_password(self, admin_env):
        assert authenticate_admin("admin@stage.my", "wrong") is False

    def test_empty_credentials(self, admin_env):
        assert authenticate_admin("", "") is False

    def test_unset_password_never_authenticates(self, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAIL", "admin@stage.my")
        monkeypatch.delenv("ADMIN_PASSWORD", raising=False)

        assert authenticate_admin("admin@stage.my", "") is False


class TestSessionState:
    """Test login/logout against Streamlit session state."""

    @patch('src.services.admin_service.st')
    def test_is_authenticated_reads_flag(self, mock_st):
        mock_st.session_state.get.return_value = True

        assert is_admin_authenticated() is True
        mock_st.session_state.get.assert_called_once_with("admin_authenticated", False)

    @patch('src.services.admin_service.st')
    def test_login_success_sets_flag(self, mock_st, admin_env):
        mock_st.session_state = {}

        success, message = login_admin("admin@stage.my", "s3cret!")

        assert success is True
        assert message == "Logged in"
        assert mock_st.session_state["admin_authenticated"] is True
        assert mock_st.session_state["admin_email"] == "admin@stage.my"

    @patch('src.services.admin_service.st')
    def test_login_failure_leaves_state(self, mock_st, admin_env):
        mock_st.session_state = {}

        success, message = login_admin("admin@stage.my", "nope")

        assert success is False
        assert message == "Invalid login credentials"
        assert "admin_authenticated" not in mock_st.session_state

    @patch('src.services.admin_service.st')
    def test_logout_clears_keys(self, mock_st):
        mock_st.session_state = {"admin_authenticated": True, "admin_email": "a@b.c", "other": 1}

        logout_admin()

        assert mock_st.session_state == {"other": 1}

    @patch('src.services.admin_service.st')
    def test_logout_when_not_logged_in(self, mock_st):
        mock_st.session_state = MagicMock()
        mock_st.session_state.__contains__.return_value = False

        logout_admin()

        mock_st.session_state.__delitem__.assert_not_called()


class TestLoginWithStore:
    """login_admin picks the credential check from the record store."""

    @patch('src.services.admin_service.st')
    def test_supabase_store_uses_supabase_auth(self, mock_st, admin_env):
        mock_st.session_state = {}
        store = MagicMock(spec=SupabaseRecordStore)

        success, message = login_admin(" boss@stage.my ", "hosted-pass", store)

        assert success is True
        assert message == "Logged in"
        store.sign_in.assert_called_once_with("boss@stage.my", "hosted-pass")
        assert mock_st.session_state["admin_email"] == "boss@stage.my"

    @patch('src.services.admin_service.st')
    def test_supabase_auth_message_returned_verbatim(self, mock_st, admin_env):
        mock_st.session_state = {}
        store = MagicMock(spec=SupabaseRecordStore)
        store.sign_in.side_effect = StoreError("Email not confirmed")

        success, message = login_admin("admin@stage.my", "s3cret!", store)

        assert success is False
        assert message == "Email not confirmed"
        assert "admin_authenticated" not in mock_st.session_state

    @patch('src.services.admin_service.st')
    def test_json_store_uses_env_credentials(self, mock_st, admin_env, tmp_path):
        mock_st.session_state = {}
        store = JsonRecordStore(str(tmp_path / "data.json"))

        assert login_admin("admin@stage.my", "s3cret!", store) == (True, "Logged in")
        assert login_admin("admin@stage.my", "nope", store) == (False, "Invalid login credentials")
