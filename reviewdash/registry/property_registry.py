"""
Property Registry - Stable property identifiers for Hostaway listings.

Maps free-text listing names to slug property IDs, remembers the listing
names seen for each property, and persists the mapping to disk.
"""

import json
import os
import re
import shutil
import logging
from typing import Dict, List, Optional
from datetime import datetime, timezone

from reviewdash.models.property import Property

logger = logging.getLogger(__name__)

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")


class InvalidInputError(ValueError):
    """Raised when a listing name cannot be turned into a property ID."""


def map_listing_to_property_id(listing_name: Optional[str]) -> str:
    """
    Derive a property ID from a listing name.

    Lower-cases the name, collapses every run of characters outside
    [a-z0-9] into a single hyphen, and strips leading/trailing hyphens.

    Args:
        listing_name: Listing name from Hostaway

    Returns:
        Property ID, e.g. "2b-n1-a-29-shoreditch-heights"

    Raises:
        InvalidInputError: If the name is missing or has no alphanumerics
    """
    if not isinstance(listing_name, str) or not listing_name:
        raise InvalidInputError("Listing name is required")

    slug = _NON_ALNUM_RUN.sub("-", listing_name.lower()).strip("-")
    if not slug:
        raise InvalidInputError(f"Listing name {listing_name!r} has no usable characters")

    return slug


def property_name_from_id(property_id: str) -> str:
    """
    Rebuild a display name from a property ID ("29-shoreditch" -> "29 Shoreditch").

    Not an inverse of map_listing_to_property_id: case and punctuation
    from the original listing name are lost.
    """
    return " ".join(word[:1].upper() + word[1:] for word in property_id.split("-"))


class PropertyRegistry:
    """
    Persistent listing-name to property-ID map.

    Registration is idempotent: the same listing name always resolves to
    the same property, and names that collapse to the same slug are
    recorded as aliases of one property.
    """

    def __init__(self, registry_path: str):
        """
        Initialize registry from disk or create new empty registry.

        Args:
            registry_path: Path to property_registry.json file
        """
        self.registry_path = registry_path
        self.properties: Dict[str, Property] = {}  # property_id -> Property
        self.version = "1.0.0"
        self.last_updated = _utc_timestamp()

        if os.path.exists(registry_path):
            self._load()
        else:
            logger.info(f"No existing registry found at {registry_path}, initializing empty registry")

    def _load(self) -> None:
        """Load registry from disk."""
        try:
            with open(self.registry_path, 'r') as f:
                data = json.load(f)

            self.version = data.get("version", "1.0.0")
            self.last_updated = data.get("last_updated", _utc_timestamp())

            self.properties = {}
            for property_data in data.get("properties", []):
                prop = Property.from_dict(property_data)
                self.properties[prop.property_id] = prop

            logger.info(f"Loaded {len(self.properties)} properties from registry")

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse registry JSON: {e}")
            self._try_restore_from_backup()
        except (OSError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load registry: {e}")
            self._try_restore_from_backup()

    def _try_restore_from_backup(self) -> None:
        """Attempt to restore from backup file if main registry is corrupted."""
        backup_path = f"{self.registry_path}.backup"
        if not os.path.exists(backup_path):
            logger.warning("No backup file found. Starting with empty registry.")
            self.properties = {}
            return

        logger.warning(f"Attempting to restore from backup: {backup_path}")
        try:
            with open(backup_path, 'r') as f:
                data = json.load(f)
            self.properties = {}
            for property_data in data.get("properties", []):
                prop = Property.from_dict(property_data)
                self.properties[prop.property_id] = prop
            shutil.copy(backup_path, self.registry_path)
            logger.info("Successfully restored from backup")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Backup restoration failed: {e}. Starting with empty registry.")
            self.properties = {}

    def register(self, listing_name: str, seen_on: Optional[str] = None) -> str:
        """
        Resolve a listing name to its property ID, creating the property if new.

        Args:
            listing_name: Listing name from Hostaway
            seen_on: Date in YYYY-MM-DD format (defaults to today, UTC)

        Returns:
            property_id for the listing

        Raises:
            InvalidInputError: If the listing name cannot be mapped
        """
        property_id = map_listing_to_property_id(listing_name)
        seen_on = seen_on or datetime.now(timezone.utc).strftime("%Y-%m-%d")

        prop = self.properties.get(property_id)
        if prop is None:
            self.properties[property_id] = Property(
                property_id=property_id,
                name=listing_name.strip(),
                created_on=seen_on,
                last_seen=seen_on
            )
            logger.info(f"Registered new property: {property_id} - '{listing_name}'")
            return property_id

        self._add_alias(prop, listing_name.strip())
        if seen_on > prop.last_seen:
            prop.last_seen = seen_on
        return property_id

    def _add_alias(self, prop: Property, listing_name: str) -> None:
        known = [prop.name.lower()] + [a.lower() for a in prop.aliases]
        if listing_name.lower() not in known:
            prop.aliases.append(listing_name)
            logger.info(
                f"Listing '{listing_name}' collapses onto existing property {prop.property_id}"
            )

    def get_property(self, property_id: str) -> Optional[Property]:
        """Retrieve property by ID. Returns None if not found."""
        return self.properties.get(property_id)

    def display_name(self, property_id: str, policy: str = "slug") -> str:
        """
        Name to show for a property.

        Args:
            property_id: Property ID
            policy: "slug" rebuilds the name from the ID; "listing" uses the
                first listing name recorded, falling back to the slug form

        Raises:
            ValueError: If policy is unknown
        """
        if policy == "slug":
            return property_name_from_id(property_id)
        if policy == "listing":
            prop = self.properties.get(property_id)
            return prop.name if prop else property_name_from_id(property_id)
        raise ValueError(f"Unknown property name policy: {policy}")

    def display_names(self, policy: str = "slug") -> Dict[str, str]:
        """Display names for every registered property."""
        return {pid: self.display_name(pid, policy) for pid in self.properties}

    def get_all_properties(self) -> List[Property]:
        """Return all properties, sorted by creation date."""
        properties = list(self.properties.values())
        properties.sort(key=lambda p: (p.created_on, p.property_id))
        return properties

    def save(self) -> None:
        """
        Persist registry to disk with atomic write pattern.
        Creates backup before write.
        """
        self.last_updated = _utc_timestamp()

        if os.path.exists(self.registry_path):
            backup_path = f"{self.registry_path}.backup"
            shutil.copy(self.registry_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")

        directory = os.path.dirname(self.registry_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        data = {
            "version": self.version,
            "last_updated": self.last_updated,
            "properties": [p.to_dict() for p in self.get_all_properties()]
        }

        temp_path = f"{self.registry_path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)

            os.replace(temp_path, self.registry_path)
            logger.info(f"Registry saved: {len(self.properties)} properties")

        except OSError as e:
            logger.error(f"Failed to save registry: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
