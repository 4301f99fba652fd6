"""
Unit tests for the listing-name mapper and the Property Registry.
"""

import pytest
import json
import os
import tempfile
from reviewdash.models.property import Property
from reviewdash.registry.property_registry import (
    InvalidInputError,
    PropertyRegistry,
    map_listing_to_property_id,
    property_name_from_id,
)


def test_map_listing_to_kebab_case():
    assert map_listing_to_property_id("2B N1 A - 29 Shoreditch Heights") == "2b-n1-a-29-shoreditch-heights"
    assert map_listing_to_property_id("Studio W1 C - 42 Westminster Court") == "studio-w1-c-42-westminster-court"


def test_map_listing_strips_edges_and_collapses_runs():
    assert map_listing_to_property_id("  Test  Property  ") == "test-property"
    assert map_listing_to_property_id("--Flat #3 (Garden)!!") == "flat-3-garden"


def test_map_listing_is_deterministic():
    name = "1B S2 B - 15 Camden Square"
    assert map_listing_to_property_id(name) == map_listing_to_property_id(name)


def test_map_listing_collapses_case_and_punctuation():
    """Listings differing only in case/punctuation share a property."""
    assert map_listing_to_property_id("Camden Square") == map_listing_to_property_id("camden-square!")


@pytest.mark.parametrize("listing_name", ["", "   ", "!!! ---", None])
def test_map_listing_rejects_unusable_names(listing_name):
    with pytest.raises(InvalidInputError):
        map_listing_to_property_id(listing_name)


def test_invalid_input_is_a_value_error():
    with pytest.raises(ValueError):
        map_listing_to_property_id("")


def test_property_name_from_id():
    assert property_name_from_id("2b-n1-a-29-shoreditch-heights") == "2b N1 A 29 Shoreditch Heights"
    assert property_name_from_id("unknown") == "Unknown"


def test_property_name_is_not_an_inverse():
    """Reconstructed names lose the original punctuation and case."""
    original = "2B N1 A - 29 Shoreditch Heights"
    assert property_name_from_id(map_listing_to_property_id(original)) != original


def test_property_serialization():
    prop = Property(
        property_id="camden-square",
        name="Camden Square",
        aliases=["camden square!"],
        created_on="2025-09-01",
        last_seen="2025-09-10"
    )

    restored = Property.from_dict(prop.to_dict())

    assert restored == prop


def test_registry_initialization():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = PropertyRegistry(os.path.join(tmpdir, "registry.json"))

        assert len(registry.properties) == 0
        assert registry.version == "1.0.0"


def test_register_is_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = PropertyRegistry(os.path.join(tmpdir, "registry.json"))

        first = registry.register("1B S2 B - 15 Camden Square", seen_on="2025-09-01")
        second = registry.register("1B S2 B - 15 Camden Square", seen_on="2025-09-05")

        assert first == second == "1b-s2-b-15-camden-square"
        assert len(registry.properties) == 1
        prop = registry.get_property(first)
        assert prop.name == "1B S2 B - 15 Camden Square"
        assert prop.aliases == []
        assert prop.created_on == "2025-09-01"
        assert prop.last_seen == "2025-09-05"


def test_register_records_colliding_names_as_aliases():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = PropertyRegistry(os.path.join(tmpdir, "registry.json"))

        pid = registry.register("Camden Square", seen_on="2025-09-01")
        registry.register("CAMDEN  square!", seen_on="2025-09-02")
        registry.register("camden square", seen_on="2025-09-03")  # case-only duplicate of the name

        prop = registry.get_property(pid)
        assert prop.name == "Camden Square"
        assert prop.aliases == ["CAMDEN  square!"]


def test_register_rejects_invalid_listing():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = PropertyRegistry(os.path.join(tmpdir, "registry.json"))

        with pytest.raises(InvalidInputError):
            registry.register("   ")
        assert registry.properties == {}


def test_display_name_policies():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry = PropertyRegistry(os.path.join(tmpdir, "registry.json"))
        pid = registry.register("Studio W1 C - 42 Westminster Court")

        assert registry.display_name(pid, policy="slug") == "Studio W1 C 42 Westminster Court"
        assert registry.display_name(pid, policy="listing") == "Studio W1 C - 42 Westminster Court"
        assert registry.display_name("not-registered", policy="listing") == "Not Registered"

        with pytest.raises(ValueError, match="Unknown property name policy"):
            registry.display_name(pid, policy="fancy")


def test_save_and_load():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry_path = os.path.join(tmpdir, "registry.json")

        registry1 = PropertyRegistry(registry_path)
        pid = registry1.register("Camden Square", seen_on="2025-09-01")
        registry1.register("camden-square!", seen_on="2025-09-02")
        registry1.save()

        registry2 = PropertyRegistry(registry_path)

        assert len(registry2.properties) == 1
        assert registry2.get_property(pid).aliases == ["camden-square!"]
        assert registry2.get_property(pid).last_seen == "2025-09-02"


def test_corrupted_registry_restores_from_backup():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry_path = os.path.join(tmpdir, "registry.json")

        registry = PropertyRegistry(registry_path)
        registry.register("Camden Square", seen_on="2025-09-01")
        registry.save()
        registry.save()  # second save leaves a backup of the first

        with open(registry_path, 'w') as f:
            f.write("{not json")

        restored = PropertyRegistry(registry_path)

        assert "camden-square" in restored.properties
        with open(registry_path) as f:
            assert json.load(f)["properties"][0]["property_id"] == "camden-square"


def test_corrupted_registry_without_backup_starts_empty():
    with tempfile.TemporaryDirectory() as tmpdir:
        registry_path = os.path.join(tmpdir, "registry.json")
        with open(registry_path, 'w') as f:
            f.write("[broken")

        registry = PropertyRegistry(registry_path)

        assert registry.properties == {}


# Run tests if executed directly
if __name__ == "__main__":
    pytest.main([__file__, "-v"])
