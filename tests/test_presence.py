"""Presence registry: reference counting and online/offline edges"""

import random

from laundry_app.realtime.presence import Identity, PresenceRegistry


class TestIdentity:
    def test_parse_normalizes_type_and_id(self):
        assert Identity.parse("5", " Admin ") == Identity(5, "admin")

    def test_parse_rejects_unknown_type(self):
        assert Identity.parse(5, "driver") is None

    def test_parse_rejects_non_numeric_id(self):
        assert Identity.parse("abc", "customer") is None
        assert Identity.parse(None, "customer") is None

    def test_as_payload(self):
        assert Identity(1, "customer").as_payload() == {"accountId": 1, "accountType": "customer"}


class TestPresenceRegistry:
    """Edges fire only on 0→1 and 1→0"""

    def test_first_acquire_and_last_release_signal(self):
        registry = PresenceRegistry()
        admin = Identity(5, "admin")

        assert registry.acquire(admin) is True
        assert registry.acquire(admin) is False
        assert registry.count(admin) == 2

        assert registry.release(admin) is False
        assert registry.count(admin) == 1
        assert registry.is_online(admin)

        assert registry.release(admin) is True
        assert registry.count(admin) == 0
        assert not registry.is_online(admin)

    def test_release_without_acquire_is_floored(self):
        registry = PresenceRegistry()
        customer = Identity(1, "customer")

        assert registry.release(customer) is False
        assert registry.count(customer) == 0
        assert registry.online() == []

    def test_interleaved_acquire_release_balance(self):
        """N acquires then N releases in any order give exactly one of each edge per identity"""
        registry = PresenceRegistry()
        identities = [Identity(i, kind) for i in range(1, 4) for kind in ("customer", "admin")]
        ops = [identity for identity in identities for _ in range(4)]

        random.Random(7).shuffle(ops)
        firsts = [identity for identity in ops if registry.acquire(identity)]

        random.Random(11).shuffle(ops)
        lasts = [identity for identity in ops if registry.release(identity)]

        assert sorted(firsts) == sorted(identities)
        assert sorted(lasts) == sorted(identities)
        assert all(registry.count(identity) == 0 for identity in identities)

    def test_identities_are_independent(self):
        registry = PresenceRegistry()
        registry.acquire(Identity(5, "admin"))

        # Same id, different account type, is a different identity
        assert registry.acquire(Identity(5, "customer")) is True
        assert len(registry.online()) == 2
