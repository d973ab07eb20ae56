"""Admin login page."""
import streamlit as st

from src.services.admin_service import login_admin
from src.ui.resources import get_store


def render_login_page():
    """Render the admin login form; reruns into the dashboard on success."""
    with st.form("admin_login_form", clear_on_submit=False):
        st.markdown("<h2 class='login-title'>🔐 Admin Login</h2>", unsafe_allow_html=True)

        email = st.text_input("Email", placeholder="Email", key="admin_email_input")
        password = st.text_input(
            "Password", type="password", placeholder="Password", key="admin_password_input"
        )

        submit = st.form_submit_button("Login", type="primary", width="stretch")

    if submit:
        if not email or not password:
            st.error("❌ Please enter email and password")
            return

        success, message = login_admin(email, password, get_store())
        if success:
            st.rerun()
        else:
            st.error(f"❌ {message}")
