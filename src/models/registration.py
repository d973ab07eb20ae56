"""Registration data model."""
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Registration:
    """One person's sign-up for one event through one party."""

    ic_number: str
    phone_number: str
    party_id: int
    event_id: int
    id: Optional[int] = None
    redeem_ticket: bool = False
    party_name: Optional[str] = None
    event_name: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        """Columns written by a batch insert."""
        return {
            "ic_number": self.ic_number,
            "phone_number": self.phone_number,
            "party_id": self.party_id,
            "event_id": self.event_id,
        }

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        party_names: Optional[Dict[int, str]] = None,
        event_names: Optional[Dict[int, str]] = None,
    ) -> "Registration":
        """
        Build a registration from a store row.

        Names are looked up in the given maps; either stays None when the
        referenced party or event no longer exists.
        """
        party_id = row.get("party_id")
        event_id = row.get("event_id")
        return cls(
            id=row.get("id"),
            ic_number=row.get("ic_number") or "",
            phone_number=row.get("phone_number") or "",
            party_id=party_id,
            event_id=event_id,
            redeem_ticket=bool(row.get("redeem_ticket") or False),
            party_name=(party_names or {}).get(party_id),
            event_name=(event_names or {}).get(event_id),
        )
