"""Party data model."""
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlencode

from src.utils.validation import make_slug


@dataclass
class EventLimit:
    """Per-party sign-up limit for one event."""

    party_id: int
    event_id: int
    limits: Optional[int] = None
    event_name: Optional[str] = None

    def __post_init__(self):
        if self.limits is not None and self.limits < 0:
            raise ValueError("Limit cannot be negative")


@dataclass
class Party:
    """Organizer that owns a registration form addressed by its slug."""

    id: int
    name: str
    slug: str
    event_limits: List[EventLimit] = field(default_factory=list)

    def __post_init__(self):
        """Validate party data after initialization."""
        if not self.name or not self.name.strip():
            raise ValueError("Party name cannot be empty")

        if not self.slug or not self.slug.strip():
            raise ValueError("Party slug cannot be empty")

    @classmethod
    def slug_for(cls, name: str) -> str:
        """Slug a party created with ``name`` would get."""
        return make_slug(name)

    def limit_for(self, event_name: str) -> Optional[int]:
        """
        Look up the limit configured for an event by name.

        Returns:
            The limit, or None when no limit row exists for that event
        """
        for event_limit in self.event_limits:
            if event_limit.event_name == event_name:
                return event_limit.limits
        return None

    def form_path(self) -> str:
        """Query string that opens this party's registration form."""
        return "?" + urlencode({"form": self.slug})
