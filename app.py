"""
Event Registration System
Admin dashboard and public, slug-addressed registration forms.
"""
import logging
import streamlit as st

from src.ui.admin_dashboard import render_admin_dashboard
from src.ui.party_form import render_party_form

logger = logging.getLogger(__name__)


st.set_page_config(
    page_title="Event Registration",
    page_icon="🎫",
    layout="centered",
    initial_sidebar_state="collapsed"
)


def initialize_session_state():
    """Set session state defaults and read the route from the URL."""
    if "admin_authenticated" not in st.session_state:
        st.session_state.admin_authenticated = False

    if "dashboard_tab" not in st.session_state:
        st.session_state.dashboard_tab = "parties"

    # /?form=<slug> opens a party's public registration form
    if "form_slug" not in st.session_state:
        st.session_state.form_slug = st.query_params.get("form")


def apply_custom_css():
    """Apply shared page styles."""
    st.markdown("""
        <style>
        #MainMenu {visibility: hidden;}
        footer {visibility: hidden;}

        .stButton > button {
            border-radius: 6px;
            font-weight: 600;
        }

        .stButton > button[kind="primary"] {
            background: #222;
            color: #fff;
            border: none;
        }

        .form-heading {
            text-align: center;
            font-weight: 600;
            font-size: 1.4rem;
            margin-bottom: 20px;
        }

        .login-title {
            text-align: center;
        }

        .result-message {
            font-size: 16px;
            margin-bottom: 15px;
            text-align: center;
        }
        </style>
    """, unsafe_allow_html=True)


def render_current_page():
    """Render the form route or the dashboard."""
    try:
        slug = st.session_state.form_slug
        if slug:
            render_party_form(slug)
        else:
            render_admin_dashboard()

    except Exception as e:
        logger.exception("Unhandled exception while rendering page")
        st.error("Something went wrong, please try again later")

        with st.expander("🔍 Error details"):
            st.code(str(e))


def main():
    """Application entry point."""
    try:
        initialize_session_state()
        apply_custom_css()
        render_current_page()
    except Exception as e:
        logger.exception("Unhandled exception during app execution")
        st.error("The application hit an error, please reload the page")
        st.code(str(e))

        if st.button("🔄 Reload"):
            st.session_state.clear()
            st.rerun()


if __name__ == "__main__":
    main()
