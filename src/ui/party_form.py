"""Public registration form, addressed by a party's slug."""
import logging
from typing import List

import streamlit as st

from src.models.event import Event
from src.services.event_service import list_events
from src.services.party_service import get_party_by_slug
from src.services.registration_service import submit_registration
from src.ui.html_utils import result_message_html
from src.ui.resources import get_store
from src.utils import settings
from src.utils.exceptions import StoreError

logger = logging.getLogger(__name__)

DIALOG_DECORATOR = getattr(st, "dialog", None) or getattr(st, "experimental_dialog", None)

FORM_GENERATION = "party_form_generation"
FORM_RESULT = "party_form_result"


def _field_key(name: str) -> str:
    """Widget key that changes after each successful submission."""
    return f"party_form_{name}_{st.session_state.get(FORM_GENERATION, 0)}"


def _event_key(event_id: int) -> str:
    return _field_key(f"event_{event_id}")


def _reset_form() -> None:
    """Start a fresh set of empty widgets on the next run."""
    st.session_state[FORM_GENERATION] = st.session_state.get(FORM_GENERATION, 0) + 1


def _render_result() -> None:
    """Show the last submission's outcome as a modal (or inline)."""
    result = st.session_state.get(FORM_RESULT)
    if not result:
        return

    def _content():
        st.markdown(
            result_message_html(result["message"], result["success"]),
            unsafe_allow_html=True,
        )
        if st.button("OK", key="party_form_result_ok", width="stretch"):
            st.session_state.pop(FORM_RESULT, None)
            st.rerun()

    if DIALOG_DECORATOR:
        @DIALOG_DECORATOR("Registration")
        def _dialog():
            _content()

        _dialog()
    else:
        _content()


def _selected_event_ids(events: List[Event]) -> List[int]:
    return [event.id for event in events if st.session_state.get(_event_key(event.id))]


def render_party_form(slug: str):
    """Render the registration form for the party with this slug."""
    store = get_store()

    try:
        party = get_party_by_slug(store, slug)
        events = list_events(store)
    except StoreError as error:
        logger.error("Could not load form %r: %s", slug, error.message)
        st.error(f"❌ {error.message}")
        return

    if party is None:
        st.error("❌ Registration form not found")
        return

    st.markdown(f"<h2 class='form-heading'>{settings.form_title()}</h2>", unsafe_allow_html=True)
    st.caption(party.name)

    with st.form("party_registration_form", clear_on_submit=False):
        ic_number = st.text_input("IC Number", placeholder="IC Number", key=_field_key("ic"))
        phone_number = st.text_input("Phone Number", placeholder="Phone Number", key=_field_key("phone"))

        for event in events:
            st.checkbox(event.name, key=_event_key(event.id))

        submitted = st.form_submit_button("Submit", type="primary", width="stretch")

    if submitted:
        success, message = submit_registration(
            store,
            party,
            ic_number,
            phone_number,
            _selected_event_ids(events),
        )
        st.session_state[FORM_RESULT] = {"success": success, "message": message}
        if success:
            _reset_form()
        st.rerun()

    _render_result()
