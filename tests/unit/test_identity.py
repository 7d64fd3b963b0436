"""
Unit tests for galactic.identity: attribute tables, equality, membership.

Uses a small in-memory directory whose objects follow the provider contract:
writes go straight to the store and are only visible after refresh().
"""

import pytest

from galactic.identity import (
    AttributeAccessor,
    AttributeTable,
    Group,
    IdentityAttribute,
    User,
)


class Store:
    def __init__(self):
        self.records = {}
        self.memberships = {}  # member id -> set of group ids
        self.kinds = {}

    def add_user(self, uid, **fields):
        self.records[uid] = dict(fields)
        self.kinds[uid] = "user"
        return MemoryUser(self, uid)

    def add_group(self, uid, **fields):
        self.records[uid] = dict(fields)
        self.kinds[uid] = "group"
        return MemoryGroup(self, uid)

    def get(self, uid):
        if self.kinds[uid] == "user":
            return MemoryUser(self, uid)
        return MemoryGroup(self, uid)


def _field(name, str_only=False):
    def fget(self):
        return self.snapshot.get(name)

    def fset(self, value):
        if str_only and value is not None and not isinstance(value, str):
            raise TypeError(name)
        self.store.records[self.unique_id][name] = value

    return property(fget, fset)


class MemoryObject:
    def __init__(self, store, uid):
        self.store = store
        self._uid = uid
        self.snapshot = dict(store.records[uid])

    @property
    def unique_id(self):
        return self._uid

    @property
    def creation_time(self):
        return None

    @property
    def groups(self):
        return [MemoryGroup(self.store, g) for g in sorted(self.store.memberships.get(self._uid, ()))]

    def refresh(self):
        self.snapshot = dict(self.store.records[self._uid])
        return True


class MemoryGroup(MemoryObject, Group):
    description = _field("description")

    @property
    def type(self):
        return "Group"

    @property
    def members(self):
        ids = sorted(m for m, gs in self.store.memberships.items() if self._uid in gs)
        return [self.store.get(m) for m in ids]

    def add_members(self, members):
        if members is None:
            raise TypeError("members")
        for m in members:
            self.store.memberships.setdefault(m.unique_id, set()).add(self._uid)
        return True

    def remove_members(self, members):
        if members is None:
            raise TypeError("members")
        for m in members:
            self.store.memberships.get(m.unique_id, set()).discard(self._uid)
        return True

    attribute_table = AttributeTable(
        AttributeAccessor.from_property("description", description),
    )


class MemoryUser(MemoryObject, User):
    city = _field("city")
    country_code = _field("country_code")
    department = _field("department", str_only=True)
    display_name = _field("display_name")
    email_addresses = _field("email_addresses")
    primary_email_address = _field("mail")
    employee_number = _field("employee_number")
    first_name = _field("first_name")
    middle_name = _field("middle_name")
    last_name = _field("last_name")
    login = _field("login")
    manager_id = _field("manager_id")
    manager_name = _field("manager_name")
    mobile_phone = _field("mobile_phone")
    organization = _field("organization")
    physical_address = _field("physical_address")
    postal_address = _field("postal_address")
    postal_code = _field("postal_code")
    primary_phone = _field("primary_phone")
    state = _field("state")
    title = _field("title")

    @property
    def type(self):
        return "User"

    @property
    def is_disabled(self):
        return bool(self.snapshot.get("disabled"))

    @property
    def password_change_required_at_next_login(self):
        return False

    @property
    def password_expired(self):
        return False

    @property
    def password_last_set(self):
        return None

    def disable(self):
        self.store.records[self._uid]["disabled"] = True
        return True

    def enable(self):
        self.store.records[self._uid]["disabled"] = False
        return True

    def set_password(self, password):
        return True

    def unlock(self):
        return True

    attribute_table = AttributeTable(
        AttributeAccessor.from_property("l", city),
        AttributeAccessor.from_property("department", department),
        AttributeAccessor.from_property("displayName", display_name),
        AttributeAccessor.from_property("mail", primary_email_address),
        AttributeAccessor.from_property("title", title),
        AttributeAccessor("disabled", lambda o: o.is_disabled),
    )


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def alice(store):
    return store.add_user("u-alice", city="Oslo", department="IT", display_name="Alice", title="Engineer")


class TestAttributeTable:
    """Tests for the attribute registration table."""

    def test_lookup_is_case_insensitive(self):
        """Attribute names match regardless of case."""
        table = AttributeTable(AttributeAccessor("displayName", lambda o: 1))
        assert "DISPLAYNAME" in table
        assert table["displayname"].name == "displayName"

    def test_duplicate_names_rejected(self):
        """Two accessors with the same name are an error."""
        with pytest.raises(ValueError):
            AttributeTable(AttributeAccessor("a", lambda o: 1), AttributeAccessor("A", lambda o: 2))

    def test_extend_returns_new_table(self):
        """extend() leaves the original table untouched."""
        base = AttributeTable(AttributeAccessor("a", lambda o: 1))
        extended = base.extend(AttributeAccessor("b", lambda o: 2))
        assert len(base) == 1
        assert sorted(extended) == ["a", "b"]

    def test_from_property_without_setter_is_read_only(self):
        """A property with no setter gives a read-only accessor."""
        accessor = AttributeAccessor.from_property("disabled", MemoryUser.is_disabled)
        assert not accessor.writable


class TestGetSetAttributes:
    """Tests for get_attributes / set_attributes."""

    def test_get_returns_only_known_names(self, alice):
        """Unknown names are dropped from the result."""
        result = alice.get_attributes(["l", "nope", "title"])
        assert [(a.name, a.value) for a in result] == [("l", "Oslo"), ("title", "Engineer")]

    def test_get_none_returns_empty(self, alice):
        """None input returns an empty list."""
        assert alice.get_attributes(None) == []

    def test_set_then_refresh_then_get(self, alice):
        """A written value becomes visible after refresh."""
        result = alice.set_attributes([IdentityAttribute("title", "Manager")])
        assert result == [IdentityAttribute("title", True)]
        assert alice.title == "Engineer"
        assert alice.refresh()
        assert alice.get_attributes(["title"]) == [IdentityAttribute("title", "Manager")]

    def test_set_unknown_name_returns_no_entry(self, alice):
        """Setting an unknown attribute produces no entry at all."""
        assert alice.set_attributes([IdentityAttribute("unknownAttr", "x")]) == []

    def test_set_read_only_name_returns_no_entry(self, alice):
        """Read-only attributes are skipped."""
        assert alice.set_attributes([IdentityAttribute("disabled", True)]) == []

    def test_failed_setter_only_fails_that_attribute(self, alice):
        """A setter that raises records False and the rest still run."""
        result = alice.set_attributes([
            IdentityAttribute("department", 42),
            IdentityAttribute("l", "Bergen"),
        ])
        assert result == [IdentityAttribute("department", False), IdentityAttribute("l", True)]
        alice.refresh()
        assert alice.city == "Bergen"
        assert alice.department == "IT"


class TestEqualityAndOrdering:
    """Tests for unique_id based equality, hashing and ordering."""

    def test_equal_unique_ids_are_equal(self, store, alice):
        """Two objects with the same unique_id are equal and hash alike."""
        other = MemoryUser(store, "u-alice")
        assert alice == other
        assert hash(alice) == hash(other)
        assert len({alice, other}) == 1

    def test_different_ids_not_equal(self, store, alice):
        """Different unique_ids are not equal."""
        bob = store.add_user("u-bob")
        assert alice != bob

    def test_compare_to_is_case_insensitive(self, store):
        """compare_to ignores case."""
        a = store.add_user("ABC")
        b = store.add_user("abd")
        assert a.compare_to(b) == -1
        assert b.compare_to(a) == 1
        assert a.compare_to(store.add_user("abc")) == 0
        assert sorted([b, a]) == [a, b]

    def test_compare_to_none_raises(self, alice):
        """Comparing with None is a TypeError."""
        with pytest.raises(TypeError):
            alice.compare_to(None)

    def test_equals_attribute_with_other_name(self, store, alice):
        """The other object's attribute is read by other_name."""
        bob = store.add_user("u-bob", display_name="Oslo")
        assert alice.equals_attribute(bob, "l", "displayName")
        assert not alice.equals_attribute(bob, "l", "missing")

    def test_compare_attribute_case_insensitive(self, store, alice):
        """String attribute comparison ignores case."""
        bob = store.add_user("u-bob", city="OSLO")
        assert alice.compare_attribute(bob, "l") == 0


class TestMembership:
    """Tests for group membership."""

    def test_add_to_group_and_direct_membership(self, store, alice):
        """add_to_group makes the object a direct member."""
        g = store.add_group("g-1", description="one")
        assert alice.add_to_group(g)
        assert alice.member_of_group(g)
        assert [m.unique_id for m in g.members] == ["u-alice"]
        assert g.member_count == 1

    def test_remove_from_group(self, store, alice):
        """remove_from_group removes the direct membership."""
        g = store.add_group("g-1")
        alice.add_to_group(g)
        assert alice.remove_from_group(g)
        assert not alice.member_of_group(g)

    def test_add_to_none_group_is_false(self, alice):
        """A None group cannot be joined."""
        assert alice.add_to_group(None) is False

    def test_member_of_none_raises(self, alice):
        """member_of_group requires a group."""
        with pytest.raises(TypeError):
            alice.member_of_group(None)

    def test_nested_membership_only_recursive(self, store, alice):
        """Membership through a nested group counts only when recursive."""
        inner = store.add_group("g-inner")
        outer = store.add_group("g-outer")
        alice.add_to_group(inner)
        inner.add_to_group(outer)
        assert not alice.member_of_group(outer)
        assert alice.member_of_group(outer, recursive=True)

    def test_recursive_walk_handles_cycles(self, store, alice):
        """A membership cycle does not loop forever."""
        a = store.add_group("g-a")
        b = store.add_group("g-b")
        c = store.add_group("g-c")
        alice.add_to_group(a)
        a.add_to_group(b)
        b.add_to_group(a)
        assert not alice.member_of_group(c, recursive=True)

    def test_user_and_group_members(self, store, alice):
        """Members split into users and groups; all_user_members recurses."""
        parent = store.add_group("g-parent")
        child = store.add_group("g-child")
        bob = store.add_user("u-bob")
        alice.add_to_group(parent)
        child.add_to_group(parent)
        bob.add_to_group(child)
        assert [u.unique_id for u in parent.user_members] == ["u-alice"]
        assert [g.unique_id for g in parent.group_members] == ["g-child"]
        assert sorted(u.unique_id for u in parent.all_user_members) == ["u-alice", "u-bob"]
        assert [m.unique_id for m in parent] == ["g-child", "u-alice"]

    def test_all_user_members_through_cycle(self, store, alice):
        """Users reached through a cycle of nested groups are listed once."""
        top = store.add_group("g-top")
        mid = store.add_group("g-mid")
        leaf = store.add_group("g-leaf")
        bob = store.add_user("u-bob")
        carol = store.add_user("u-carol")
        mid.add_to_group(top)
        leaf.add_to_group(mid)
        top.add_to_group(leaf)
        alice.add_to_group(top)
        alice.add_to_group(leaf)
        bob.add_to_group(mid)
        carol.add_to_group(leaf)
        found = [u.unique_id for u in top.all_user_members]
        assert sorted(found) == ["u-alice", "u-bob", "u-carol"]
        assert sorted(u.unique_id for u in leaf.all_user_members) == ["u-alice", "u-bob", "u-carol"]

    def test_clear_membership(self, store, alice):
        """clear_membership removes every member."""
        g = store.add_group("g-1")
        alice.add_to_group(g)
        store.add_user("u-bob").add_to_group(g)
        assert g.clear_membership()
        assert g.members == []
