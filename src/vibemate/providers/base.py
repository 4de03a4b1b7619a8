"""
Provider records.

Providers are owned by the surrounding application. The rule engine only
reads their identity; credentials and transport live elsewhere.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class Provider:
    """A backend provider rules can dispatch to."""

    id: str
    name: str
    api_url: str = ""
    is_default: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert provider to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "apiUrl": self.api_url,
            "isDefault": self.is_default,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Provider":
        """Create from dictionary, accepting camelCase or snake_case keys."""
        provider_id = data.get("id")
        if not provider_id:
            raise ValueError("Provider entry is missing 'id'")
        return cls(
            id=str(provider_id),
            name=str(data.get("name") or provider_id),
            api_url=str(data.get("apiUrl", data.get("api_url", "")) or ""),
            is_default=bool(data.get("isDefault", data.get("is_default", False))),
        )
