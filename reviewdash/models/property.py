"""
Property data model.

Represents a property in the registry, keyed by the slug derived
from its Hostaway listing name.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass
class Property:
    """
    A property known to the registry.
    Several listing names may collapse onto one property_id.
    """
    property_id: str
    name: str  # First listing name seen for this property
    aliases: List[str] = field(default_factory=list)  # Other listing names with the same slug
    created_on: str = ""  # YYYY-MM-DD format
    last_seen: str = ""  # YYYY-MM-DD format

    @classmethod
    def from_dict(cls, data: dict) -> "Property":
        """Create Property from JSON dict."""
        return cls(
            property_id=data["property_id"],
            name=data["name"],
            aliases=data.get("aliases", []),
            created_on=data.get("created_on", ""),
            last_seen=data.get("last_seen", "")
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "property_id": self.property_id,
            "name": self.name,
            "aliases": self.aliases,
            "created_on": self.created_on,
            "last_seen": self.last_seen
        }
