"""Unit tests for registration_service."""
from unittest.mock import MagicMock

import pytest

from src.models.party import Party
from src.models.registration import Registration
from src.services.record_store import JsonRecordStore
from src.services.registration_service import (
    MSG_SUCCESS,
    count_by_event,
    delete_registration,
    list_registrations,
    search_registrations,
    set_ticket_redeemed,
    submit_registration,
    update_registration,
)
from src.services.registration_validator import MSG_INCOMPLETE, MSG_TOO_MANY_EVENTS
from src.utils.exceptions import StoreError
from src.utils.validation import MSG_IC_HAS_LETTERS, MSG_IC_NOT_12_DIGITS


@pytest.fixture
def store(tmp_path):
    """JSON store with events 1-3 and one party."""
    store = JsonRecordStore(
        str(tmp_path / "data.json"), seed_events=["TheStage7.0", "Blast Your Stage", "Workshop"]
    )
    store.insert("parties", [{"name": "P1", "slug": "p1"}])
    return store


@pytest.fixture
def party():
    return Party(id=1, name="P1", slug="p1")


class TestSubmitRegistration:
    """Test submit_registration function."""

    def test_successful_registration(self, store, party):
        success, message = submit_registration(store, party, "987654321098", "012-3456789", [1, 2])

        assert success is True
        assert message == MSG_SUCCESS
        rows = store.list("registrations", order_by="id")
        assert [(r["ic_number"], r["phone_number"], r["party_id"], r["event_id"]) for r in rows] == [
            ("987654321098", "0123456789", 1, 1),
            ("987654321098", "0123456789", 1, 2),
        ]

    def test_input_errors_skip_store(self, party):
        store = MagicMock()

        assert submit_registration(store, party, "12A", "0123", [1]) == (False, MSG_IC_HAS_LETTERS)
        assert submit_registration(store, party, "123", "0123", [1]) == (False, MSG_IC_NOT_12_DIGITS)
        assert submit_registration(store, party, "987654321098", "", [1]) == (False, MSG_INCOMPLETE)
        assert submit_registration(store, None, "987654321098", "0123", [1]) == (False, MSG_INCOMPLETE)

        store.list.assert_not_called()
        store.insert.assert_not_called()

    def test_duplicate_names_event_and_skips_insert(self, store, party):
        submit_registration(store, party, "987654321098", "0123456789", [1])

        success, message = submit_registration(store, party, "987654-32-1098", "0123456789", [1])

        assert success is False
        assert message == "IC has already registered for: TheStage7.0"
        assert len(store.list("registrations")) == 1

    def test_cap_across_submissions(self, store, party):
        submit_registration(store, party, "987654321098", "0123456789", [1, 2])

        success, message = submit_registration(store, party, "987654321098", "0123456789", [3])

        assert success is False
        assert message == MSG_TOO_MANY_EVENTS

    def test_other_ic_unaffected(self, store, party):
        submit_registration(store, party, "987654321098", "0123456789", [1, 2])

        success, _ = submit_registration(store, party, "111111111111", "0123456789", [1, 2])

        assert success is True

    def test_insert_error_surfaced_verbatim(self, party):
        store = MagicMock()
        store.list.return_value = []
        store.insert.side_effect = StoreError('new row violates row-level security policy for table "registrations"')

        success, message = submit_registration(store, party, "987654321098", "0123456789", [1])

        assert success is False
        assert message == 'new row violates row-level security policy for table "registrations"'
        store.insert.assert_called_once()

    def test_lookup_filters_by_normalized_ic(self, party):
        store = MagicMock()
        store.list.return_value = []

        submit_registration(store, party, "987654-32-1098", "0123456789", [1])

        store.list.assert_called_once_with(
            "registrations", filters={"ic_number": "987654321098"}, columns="event_id"
        )


class TestAdminOperations:
    """Listing, searching and editing registrations."""

    @pytest.fixture
    def filled(self, store, party):
        store.insert("parties", [{"name": "P2", "slug": "p2"}])
        submit_registration(store, party, "987654321098", "0123456789", [1, 2])
        submit_registration(store, Party(id=2, name="P2", slug="p2"), "111122223333", "0198887777", [1])
        return store

    def test_list_resolves_names(self, filled):
        registrations = list_registrations(filled)

        assert [r.id for r in registrations] == [1, 2, 3]
        assert [(r.party_name, r.event_name) for r in registrations] == [
            ("P1", "TheStage7.0"),
            ("P1", "Blast Your Stage"),
            ("P2", "TheStage7.0"),
        ]

    def test_list_uses_chunks(self, filled):
        assert len(list_registrations(filled, chunk_size=1)) == 3
        assert len(list_registrations(filled, chunk_size=1, max_rows=2)) == 2

    def test_search_by_ic_or_phone(self, filled):
        registrations = list_registrations(filled)

        assert len(search_registrations(registrations, "9876")) == 2
        assert len(search_registrations(registrations, "0198")) == 1
        assert search_registrations(registrations, "nothing") == []

    def test_search_by_party(self, filled):
        registrations = list_registrations(filled)

        assert len(search_registrations(registrations, "", "P2")) == 1
        assert len(search_registrations(registrations, "", "All")) == 3
        assert search_registrations(registrations, "9876", "P2") == []

    def test_count_by_event(self, filled):
        assert count_by_event(list_registrations(filled)) == {"TheStage7.0": 2, "Blast Your Stage": 1}

    def test_count_skips_missing_event(self):
        registrations = [Registration("1", "2", 1, 9, id=1)]
        assert count_by_event(registrations) == {}

    def test_update_registration(self, filled):
        success, _ = update_registration(filled, 1, "123456-78-9012", "011-1111111")

        assert success is True
        row = filled.get_one("registrations", {"id": 1})
        assert (row["ic_number"], row["phone_number"]) == ("123456789012", "0111111111")

    def test_update_rejects_bad_ic(self, filled):
        assert update_registration(filled, 1, "abc", "0111") == (False, MSG_IC_HAS_LETTERS)

    def test_update_rejects_empty_phone(self, filled):
        success, _ = update_registration(filled, 1, "123456789012", "--")
        assert success is False

    def test_update_missing(self, filled):
        assert update_registration(filled, 99, "123456789012", "0111") == (False, "Registration not found")

    def test_toggle_ticket(self, filled):
        assert set_ticket_redeemed(filled, 2, True) == (True, "Ticket redeemed")
        assert filled.get_one("registrations", {"id": 2})["redeem_ticket"] is True

        assert set_ticket_redeemed(filled, 2, False) == (True, "Ticket unredeemed")
        assert filled.get_one("registrations", {"id": 2})["redeem_ticket"] is False

    def test_delete(self, filled):
        assert delete_registration(filled, 3) == (True, "Registration deleted")
        assert [r["id"] for r in filled.list("registrations", order_by="id")] == [1, 2]

    def test_delete_missing(self, filled):
        assert delete_registration(filled, 99) == (False, "Registration not found")

    def test_store_error_on_delete(self):
        store = MagicMock()
        store.delete.side_effect = StoreError("permission denied")

        assert delete_registration(store, 1) == (False, "permission denied")
