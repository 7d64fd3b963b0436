"""
Unit tests for galactic.security.roles.
"""

import pytest

from galactic.configuration import ConfigurationItem
from galactic.exceptions import ConfigurationError, RoleProviderError
from galactic.security.roles import RoleMappingStore, SimpleMappingRoleProvider, validate_role_name

MAPPING = """
Administrators = [
alice
bob
]

Readers = [
carol
]
"""


@pytest.fixture
def provider():
    return SimpleMappingRoleProvider(RoleMappingStore.parse(MAPPING))


class TestRoleMappingStore:
    """Tests for the role text format."""

    def test_parse(self):
        """Blocks map role names to users."""
        store = RoleMappingStore.parse(MAPPING)
        assert store.roles == ["Administrators", "Readers"]
        assert store.users("administrators") == ["alice", "bob"]

    def test_round_trip_text(self):
        """to_text writes the same block format."""
        text = RoleMappingStore.parse(MAPPING).to_text()
        assert text.startswith("Administrators = [\nalice\nbob\n]\n")
        assert RoleMappingStore.parse(text).users("Readers") == ["carol"]

    def test_malformed(self):
        """Missing headers or closing brackets are errors."""
        with pytest.raises(ConfigurationError):
            RoleMappingStore.parse("alice\n")
        with pytest.raises(ConfigurationError):
            RoleMappingStore.parse("Admins = [\nalice\n")

    def test_role_names(self):
        """Role names are non-empty, comma-free and at most 60 chars."""
        assert validate_role_name(" Ops ") == "Ops"
        for bad in ("", "a,b", "x" * 61):
            with pytest.raises(ValueError):
                validate_role_name(bad)

    def test_duplicate_users_ignored(self):
        """Usernames compare case-insensitively."""
        store = RoleMappingStore({"Ops": ["alice"]})
        assert not store.add_user("ops", "ALICE")
        assert store.users("Ops") == ["alice"]


class TestSimpleMappingRoleProvider:
    """Tests for the role provider operations."""

    def test_queries(self, provider):
        """Lookups are case-insensitive."""
        assert provider.is_user_in_role("ALICE", "administrators")
        assert provider.get_roles_for_user("carol") == ["Readers"]
        assert provider.find_users_in_role("Administrators", "O") == ["bob"]
        assert provider.role_exists("readers")
        assert not provider.role_exists("Writers")

    def test_add_and_remove_users(self, provider):
        """Users move in and out of existing roles."""
        provider.add_users_to_roles(["dave"], ["Readers", "Administrators"])
        assert provider.get_roles_for_user("dave") == ["Administrators", "Readers"]
        provider.remove_users_from_roles(["dave", "alice"], ["Administrators"])
        assert provider.get_users_in_role("Administrators") == ["bob"]

    def test_usernames_from_generator_reach_every_role(self, provider):
        """A one-shot iterable of users is applied to all listed roles."""
        provider.add_users_to_roles((u for u in ["dave"]), ["Administrators", "Readers"])
        assert provider.get_users_in_role("Readers") == ["carol", "dave"]
        assert provider.is_user_in_role("dave", "Administrators")
        provider.remove_users_from_roles((u for u in ["dave"]), ["Administrators", "Readers"])
        assert provider.get_roles_for_user("dave") == []

    def test_unknown_role(self, provider):
        """Operations on unknown roles raise."""
        with pytest.raises(RoleProviderError):
            provider.add_users_to_roles(["dave"], ["Writers"])

    def test_create_and_delete_role(self, provider):
        """Roles are created once; populated roles are protected unless forced."""
        provider.create_role("Writers")
        with pytest.raises(RoleProviderError):
            provider.create_role("writers")
        assert provider.delete_role("Writers")
        with pytest.raises(RoleProviderError):
            provider.delete_role("Readers")
        assert provider.delete_role("Readers", throw_on_populated_role=False)
        assert not provider.delete_role("Readers")

    def test_persists_to_configuration_item(self, config_dir):
        """Changes are written back to the configuration item."""
        item = ConfigurationItem(str(config_dir), "roles", value=MAPPING)
        provider = SimpleMappingRoleProvider.from_configuration_item(item)
        provider.add_users_to_roles(["dave"], ["Readers"])
        assert RoleMappingStore.parse(item.value).users("Readers") == ["carol", "dave"]

    def test_failed_save_rolls_back(self, config_dir):
        """A failed write restores the previous mappings and raises."""
        ConfigurationItem(str(config_dir), "roles", value=MAPPING)
        item = ConfigurationItem(str(config_dir), "roles", read_only=True)
        provider = SimpleMappingRoleProvider.from_configuration_item(item)
        with pytest.raises(RoleProviderError):
            provider.create_role("Writers")
        assert not provider.role_exists("Writers")
