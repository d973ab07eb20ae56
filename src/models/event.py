"""Event data model."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Event:
    """An activity a registrant can sign up for."""

    id: int
    name: str

    def __post_init__(self):
        """Validate event data after initialization."""
        if not self.name or not self.name.strip():
            raise ValueError("Event name cannot be empty")
