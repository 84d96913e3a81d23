"""Tests for StatusResolver, including lazy quarantine expiry."""

import pytest

from chatguard.errors import InvalidArgument, TransientStoreFailure
from chatguard.moderation.engine import ModerationEngine
from chatguard.moderation.resolver import StatusResolver
from chatguard.store.memory import MemoryDocumentStore
from chatguard.users.repository import UserRepository, new_user_document

from conftest import FakeClock


class ReadOnlyStore(MemoryDocumentStore):
    """Store whose writes fail once ``broken`` is set."""

    broken = False

    def update_one(self, collection, filter, **kwargs):
        if self.broken:
            raise TransientStoreFailure("store unavailable")
        return super().update_one(collection, filter, **kwargs)


class BuggyStore(MemoryDocumentStore):
    """Store whose conditional writes hit an unexpected backend error."""

    def update_one(self, collection, filter, **kwargs):
        if len(filter) > 1:
            raise RuntimeError("driver bug")
        return super().update_one(collection, filter, **kwargs)


def _setup(store, clock, *user_ids):
    for uid in user_ids:
        store.insert_one("users", new_user_document(uid, clock().isoformat()))
    users = UserRepository(store)
    return users, StatusResolver(users, clock), ModerationEngine(users, clock=clock)


def test_unknown_user_is_unrestricted(store, clock):
    _, resolver, _ = _setup(store, clock)
    result = resolver.resolve("nobody")
    assert not result.banned
    assert not result.quarantined
    assert result.quarantine_end_time is None
    assert result.eligible


def test_blank_user_id_rejected(store, clock):
    _, resolver, _ = _setup(store, clock)
    with pytest.raises(InvalidArgument):
        resolver.resolve("   ")


def test_quarantine_lapses_after_window(store, clock):
    users, resolver, moderation = _setup(store, clock, "u9")
    q = moderation.quarantine("u9", "spam", 1)

    clock.advance(299)
    result = resolver.resolve("u9")
    assert result.quarantined
    assert result.quarantine_end_time == q.end_time

    clock.advance(2)
    result = resolver.resolve("u9")
    assert not result.quarantined
    assert result.eligible
    # Lapsed window is cleared from the stored record
    assert users.get("u9").quarantine is None


def test_quarantine_lapses_exactly_at_end_time(store, clock):
    _, resolver, moderation = _setup(store, clock, "u1")
    moderation.quarantine("u1", "spam", 1)
    clock.advance(300)
    assert not resolver.resolve("u1").quarantined


def test_ban_takes_precedence_over_later_quarantine(store, clock):
    _, resolver, moderation = _setup(store, clock, "u5")
    moderation.ban("u5", "abuse")
    moderation.quarantine("u5", "spam", 1)

    result = resolver.resolve("u5")
    assert result.banned
    assert not result.quarantined
    assert result.as_gate() == {"isBanned": True, "isQuarantined": False}


def test_gate_includes_end_time_only_while_quarantined(store, clock):
    _, resolver, moderation = _setup(store, clock, "u1")
    q = moderation.quarantine("u1", None, 2)
    assert resolver.resolve("u1").as_gate() == {
        "isBanned": False,
        "isQuarantined": True,
        "endTime": q.end_time,
    }


def test_lapsed_result_survives_failed_clear():
    clock = FakeClock()
    store = ReadOnlyStore()
    users, resolver, moderation = _setup(store, clock, "u1")
    moderation.quarantine("u1", "spam", 1)

    store.broken = True
    clock.advance(301)
    result = resolver.resolve("u1")
    assert not result.quarantined

    # The stored window was not cleared but still reads as lapsed
    assert users.get("u1").quarantine is not None
    assert resolver.is_eligible("u1")


def test_clear_does_not_wipe_newer_quarantine(store, clock):
    users, resolver, moderation = _setup(store, clock, "u1")
    first = moderation.quarantine("u1", "spam", 1)
    clock.advance(301)

    # Another writer re-quarantines before the stale clear lands
    second = moderation.quarantine("u1", "again", 2)
    assert not users.clear_quarantine_if("u1", first.end_time)

    result = resolver.resolve("u1")
    assert result.quarantined
    assert result.quarantine_end_time == second.end_time


def test_unban_restores_eligibility(store, clock):
    _, resolver, moderation = _setup(store, clock, "u1")
    moderation.ban("u1", "abuse")
    assert not resolver.is_eligible("u1")
    moderation.unban("u1")
    assert resolver.is_eligible("u1")


def test_lapsed_result_survives_unexpected_clear_error():
    clock = FakeClock()
    store = BuggyStore()
    users, resolver, moderation = _setup(store, clock, "u1")
    moderation.quarantine("u1", "spam", 1)

    clock.advance(301)
    assert not resolver.resolve("u1").quarantined
    assert users.get("u1").quarantine is not None


@pytest.mark.parametrize("end_time", ["soon", "", 12345])
def test_unreadable_end_time_treated_as_lapsed(store, clock, end_time):
    users, resolver, _ = _setup(store, clock, "u1")
    store.update_one(
        "users",
        {"id": "u1"},
        set={"quarantineStatus": {"isQuarantined": True, "reason": "spam", "level": 1, "endTime": end_time}},
    )

    result = resolver.resolve("u1")
    assert not result.quarantined
    assert result.eligible
    assert users.get("u1").quarantine is None


def test_missing_end_time_treated_as_lapsed(store, clock):
    users, resolver, _ = _setup(store, clock, "u1")
    store.update_one(
        "users", {"id": "u1"}, set={"quarantineStatus": {"isQuarantined": True, "reason": "spam"}}
    )

    assert not resolver.resolve("u1").quarantined
    assert users.get("u1").quarantine is None
