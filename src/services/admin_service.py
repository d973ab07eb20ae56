"""Admin service for authentication and session state management."""
import hmac
import logging
from typing import Optional, Tuple

import streamlit as st

from src.services.record_store import RecordStore, SupabaseRecordStore
from src.utils.exceptions import StoreError
from src.utils.settings import get_setting

logger = logging.getLogger(__name__)

AUTH_KEY = "admin_authenticated"
EMAIL_KEY = "admin_email"


def authenticate_admin(email: str, password: str) -> bool:
    """
    Check admin credentials.

    Args:
        email: Admin email
        password: Admin password

    Returns:
        True if credentials match ADMIN_EMAIL / ADMIN_PASSWORD

    Behavior:
        - Credentials come from the environment or .env
        - Email comparison ignores case and surrounding spaces
        - An unset ADMIN_PASSWORD never authenticates
    """
    admin_email = get_setting("ADMIN_EMAIL", "admin@example.com")
    admin_password = get_setting("ADMIN_PASSWORD", "")

    if not admin_password or not email or not password:
        return False

    email_ok = email.strip().lower() == admin_email.strip().lower()
    password_ok = hmac.compare_digest(password.encode("utf-8"), admin_password.encode("utf-8"))
    return email_ok and password_ok


def is_admin_authenticated() -> bool:
    """True if the current Streamlit session has logged in."""
    return st.session_state.get(AUTH_KEY, False)


def login_admin(
    email: str, password: str, store: Optional[RecordStore] = None
) -> Tuple[bool, str]:
    """
    Log in admin user.

    With a Supabase store the credentials are checked by Supabase Auth;
    otherwise against ADMIN_EMAIL / ADMIN_PASSWORD.

    Returns:
        Tuple of (success: bool, message: str)
        - (True, "Logged in") on success
        - (False, auth service message) when Supabase Auth refuses
        - (False, "Invalid login credentials") when the env check fails
    """
    if isinstance(store, SupabaseRecordStore):
        try:
            store.sign_in(email.strip(), password)
        except StoreError as e:
            return False, e.message
    elif not authenticate_admin(email, password):
        logger.warning("Failed admin login for %r", email)
        return False, "Invalid login credentials"

    st.session_state[AUTH_KEY] = True
    st.session_state[EMAIL_KEY] = email.strip()
    logger.info("Admin %s logged in", email.strip())
    return True, "Logged in"


def logout_admin() -> None:
    """Clear the admin login and its session keys."""
    for key in (AUTH_KEY, EMAIL_KEY):
        if key in st.session_state:
            del st.session_state[key]
