"""Admin dashboard: party management and the registrations table."""
import logging
import traceback
from typing import List

import streamlit as st

from src.models.registration import Registration
from src.services.admin_service import is_admin_authenticated, logout_admin
from src.services.party_service import (
    create_party,
    default_limit_event_names,
    form_link,
    list_parties,
)
from src.services.registration_service import (
    ALL_PARTIES,
    count_by_event,
    delete_registration,
    list_registrations,
    search_registrations,
    set_ticket_redeemed,
    update_registration,
)
from src.ui.html_utils import html_block, total_rows_banner
from src.ui.login import render_login_page
from src.ui.resources import get_change_feed, get_store
from src.utils import settings
from src.utils.validation import parse_limit

logger = logging.getLogger(__name__)

TAB_PARTIES = "parties"
TAB_REGISTRATIONS = "registrations"

ROWS_PER_PAGE = 100

REG_ALL = "dashboard_registrations_all"
REG_VIEW = "dashboard_registrations_view"
REG_SEEN_VERSION = "dashboard_registrations_seen_version"
SEARCH_TERM = "dashboard_search_term"
SEARCH_PARTY = "dashboard_search_party"


def _show_admin_exception(error: Exception, context: str) -> None:
    """Display error details in UI and log full traceback."""
    logger.exception("Admin dashboard error during %s", context)

    st.error(f"❌ {context} failed: {error}")
    with st.expander("🔍 Error details"):
        st.code("".join(traceback.format_exception(type(error), error, error.__traceback__)))


def _set_feedback(success: bool, message: str) -> None:
    st.session_state.admin_feedback = ("success" if success else "error", message)


def _render_feedback() -> None:
    feedback = st.session_state.pop("admin_feedback", None)
    if not feedback:
        return
    level, message = feedback
    if level == "success":
        st.success(f"✅ {message}")
    else:
        st.error(f"❌ {message}")


def _inject_dashboard_styles():
    st.markdown(
        html_block(
            """
            <style>
            .total-rows {
                padding: 10px;
                background-color: #f7f7f7;
                border: 1px solid #ddd;
                border-radius: 6px;
                margin-bottom: 0.75rem;
                font-weight: bold;
                color: #111;
            }
            .registration-header {
                font-weight: 600;
                border-bottom: 1px solid #ccc;
                padding-bottom: 4px;
            }
            </style>
            """
        ),
        unsafe_allow_html=True,
    )


# ---------------------------------------------------------------------- #
# Parties tab
# ---------------------------------------------------------------------- #
def render_add_party_form():
    """Form for a new party and its per-event limits."""
    event_names = default_limit_event_names()

    st.markdown("### Add New Party")
    with st.form("add_party_form", clear_on_submit=False):
        party_name = st.text_input("Party name", key="add_party_name")

        limit_inputs = {}
        if event_names:
            cols = st.columns(len(event_names), gap="small")
            for col, event_name in zip(cols, event_names):
                with col:
                    limit_inputs[event_name] = st.text_input(
                        f"Limit for {event_name}",
                        key=f"add_party_limit_{event_name}",
                        placeholder="Leave blank for no limit",
                    )

        submit = st.form_submit_button("Add", type="primary")

    if not submit:
        return

    limits = {}
    for event_name, raw in limit_inputs.items():
        is_valid, limit, error_msg = parse_limit(raw)
        if not is_valid:
            st.error(f"❌ {event_name}: {error_msg}")
            return
        limits[event_name] = limit

    success, message = create_party(get_store(), party_name, limits)
    _set_feedback(success, message)
    if success:
        for key in ["add_party_name"] + [f"add_party_limit_{name}" for name in event_names]:
            st.session_state.pop(key, None)
    st.rerun()


def render_party_list():
    """Table of parties with limits and their form links."""
    parties = list_parties(get_store())
    event_names = default_limit_event_names()

    st.markdown("### Party List")
    if not parties:
        st.info("📝 No parties yet")
        return

    base = settings.base_url()
    widths = [0.4, 2] + [1] * len(event_names) + [3]
    header = st.columns(widths, gap="small")
    for col, label in zip(header, ["ID", "Party Name"] + [f"{n} Limit" for n in event_names] + ["Form Link"]):
        col.markdown(f"<div class='registration-header'>{label}</div>", unsafe_allow_html=True)

    for index, party in enumerate(parties, start=1):
        cols = st.columns(widths, gap="small")
        cols[0].text(str(index))
        cols[1].markdown(f"**{party.name}**")
        for offset, event_name in enumerate(event_names):
            limit = party.limit_for(event_name)
            cols[2 + offset].text("—" if limit is None else str(limit))
        # st.code renders its own copy-to-clipboard button
        cols[-1].code(form_link(party, base), language=None)


def render_parties_tab():
    render_add_party_form()
    st.markdown("---")
    render_party_list()


# ---------------------------------------------------------------------- #
# Registrations tab
# ---------------------------------------------------------------------- #
def _load_registrations() -> None:
    """Fetch all registrations and re-apply the current search."""
    feed = get_change_feed()
    st.session_state[REG_SEEN_VERSION] = feed.version(TAB_REGISTRATIONS)
    rows = list_registrations(get_store())
    st.session_state[REG_ALL] = rows
    _apply_search()


def _apply_search() -> None:
    rows = st.session_state.get(REG_ALL, [])
    st.session_state[REG_VIEW] = search_registrations(
        rows,
        st.session_state.get(SEARCH_TERM, ""),
        st.session_state.get(SEARCH_PARTY, ALL_PARTIES),
    )


def _refresh_after_write(success: bool, message: str) -> None:
    _set_feedback(success, message)
    _load_registrations()
    st.rerun()


@st.fragment(run_every=settings.realtime_poll_seconds())
def _watch_registration_changes():
    """Reload the table when the change feed reports a newer version."""
    feed = get_change_feed()
    seen = st.session_state.get(REG_SEEN_VERSION, 0)
    if feed.has_changed(TAB_REGISTRATIONS, seen) and not st.session_state.get("edit_registration_id"):
        _load_registrations()
        st.rerun()


def render_event_counts(registrations: List[Registration]):
    counts = count_by_event(registrations)
    if not counts:
        return
    cols = st.columns(len(counts), gap="small")
    for col, (event_name, count) in zip(cols, sorted(counts.items())):
        col.metric(event_name, count)


def render_search_bar(party_names: List[str]):
    term_col, party_col, search_col, reset_col = st.columns([2, 2.5, 0.8, 0.8], gap="small")

    with term_col:
        term = st.text_input(
            "Search",
            placeholder="Search IC or phone...",
            key="dashboard_search_input",
            label_visibility="collapsed",
        )
    with party_col:
        options = [ALL_PARTIES] + party_names
        party = st.selectbox(
            "Party",
            options,
            format_func=lambda name: "All Parties" if name == ALL_PARTIES else name,
            key="dashboard_party_select",
            label_visibility="collapsed",
        )
    with search_col:
        if st.button("Search", width="stretch"):
            st.session_state[SEARCH_TERM] = term
            st.session_state[SEARCH_PARTY] = party
            _load_registrations()
            st.rerun()
    with reset_col:
        if st.button("Reset", type="primary", width="stretch"):
            st.session_state[SEARCH_TERM] = ""
            st.session_state[SEARCH_PARTY] = ALL_PARTIES
            st.session_state.pop("dashboard_search_input", None)
            st.session_state.pop("dashboard_party_select", None)
            _load_registrations()
            st.rerun()


def _render_registration_row(position: int, registration: Registration):
    store = get_store()
    editing = st.session_state.get("edit_registration_id") == registration.id
    cols = st.columns([0.5, 0.6, 1.6, 1.4, 1.6, 1.4, 1.8], gap="small")

    cols[0].text(str(position))

    with cols[1]:
        redeemed = st.checkbox(
            "Ticket",
            value=registration.redeem_ticket,
            key=f"redeem_{registration.id}_{registration.redeem_ticket}",
            label_visibility="collapsed",
        )
        if redeemed != registration.redeem_ticket:
            _refresh_after_write(*set_ticket_redeemed(store, registration.id, redeemed))

    if editing:
        edit_ic = cols[2].text_input(
            "IC", value=registration.ic_number, key=f"edit_ic_{registration.id}",
            label_visibility="collapsed",
        )
        edit_phone = cols[3].text_input(
            "Phone", value=registration.phone_number, key=f"edit_phone_{registration.id}",
            label_visibility="collapsed",
        )
    else:
        cols[2].text(registration.ic_number)
        cols[3].text(registration.phone_number)

    cols[4].text(registration.party_name or "—")
    cols[5].text(registration.event_name or "—")

    with cols[6]:
        left, right = st.columns(2, gap="small")
        if editing:
            if left.button("💾 Save", key=f"save_{registration.id}"):
                success, message = update_registration(store, registration.id, edit_ic, edit_phone)
                if success:
                    st.session_state.pop("edit_registration_id", None)
                _refresh_after_write(success, message)
            if right.button("Cancel", key=f"cancel_{registration.id}"):
                st.session_state.pop("edit_registration_id", None)
                st.rerun()
        else:
            if left.button("✏️ Edit", key=f"edit_{registration.id}"):
                st.session_state.edit_registration_id = registration.id
                st.rerun()
            if right.button("🗑 Delete", key=f"delete_{registration.id}"):
                st.session_state.delete_registration_id = registration.id
                st.rerun()


def render_delete_confirmation():
    """Confirm panel for the registration marked for deletion."""
    registration_id = st.session_state.get("delete_registration_id")
    if registration_id is None:
        return

    st.warning("⚠️ Delete this registration? This cannot be undone.")
    confirm_col, cancel_col = st.columns(2, gap="small")
    with confirm_col:
        if st.button("✅ Delete", type="primary", width="stretch", key=f"confirm_delete_{registration_id}"):
            st.session_state.pop("delete_registration_id", None)
            _refresh_after_write(*delete_registration(get_store(), registration_id))
    with cancel_col:
        if st.button("❌ Cancel", width="stretch", key=f"cancel_delete_{registration_id}"):
            st.session_state.pop("delete_registration_id", None)
            st.rerun()


def render_registrations_tab():
    if REG_VIEW not in st.session_state:
        _load_registrations()

    _watch_registration_changes()

    registrations = st.session_state.get(REG_VIEW, [])
    st.markdown(total_rows_banner(len(registrations)), unsafe_allow_html=True)
    render_event_counts(registrations)

    party_names = [party.name for party in list_parties(get_store())]
    render_search_bar(party_names)
    render_delete_confirmation()

    if not registrations:
        st.info("📝 No registrations")
        return

    page_count = (len(registrations) + ROWS_PER_PAGE - 1) // ROWS_PER_PAGE
    page = 1
    if page_count > 1:
        page = st.number_input("Page", min_value=1, max_value=page_count, value=1, step=1)
    first = (page - 1) * ROWS_PER_PAGE

    header = st.columns([0.5, 0.6, 1.6, 1.4, 1.6, 1.4, 1.8], gap="small")
    for col, label in zip(header, ["ID", "Ticket", "IC", "Phone", "Party", "Event", "Actions"]):
        col.markdown(f"<div class='registration-header'>{label}</div>", unsafe_allow_html=True)

    for offset, registration in enumerate(registrations[first:first + ROWS_PER_PAGE]):
        _render_registration_row(first + offset + 1, registration)


# ---------------------------------------------------------------------- #
# Page
# ---------------------------------------------------------------------- #
def render_admin_dashboard():
    """Render the dashboard, or the login page when not authenticated."""
    try:
        if not is_admin_authenticated():
            render_login_page()
            return

        _inject_dashboard_styles()

        title_col, logout_col = st.columns([4, 1], gap="small")
        with title_col:
            st.markdown("## Admin Dashboard")
        with logout_col:
            if st.button("Logout", width="stretch"):
                logout_admin()
                for key in (REG_ALL, REG_VIEW, REG_SEEN_VERSION):
                    st.session_state.pop(key, None)
                st.rerun()

        tab_cols = st.columns([1, 1, 4], gap="small")
        active = st.session_state.get("dashboard_tab", TAB_PARTIES)
        with tab_cols[0]:
            if st.button("Parties", type="primary" if active == TAB_PARTIES else "secondary", width="stretch"):
                st.session_state.dashboard_tab = TAB_PARTIES
                st.rerun()
        with tab_cols[1]:
            if st.button(
                "Registrations",
                type="primary" if active == TAB_REGISTRATIONS else "secondary",
                width="stretch",
            ):
                st.session_state.dashboard_tab = TAB_REGISTRATIONS
                st.rerun()

        _render_feedback()

        if active == TAB_REGISTRATIONS:
            render_registrations_tab()
        else:
            render_parties_tab()
    except Exception as error:
        _show_admin_exception(error, "Loading admin dashboard")
