"""Tests for PresenceRegistry."""

import pytest

from chatguard.errors import InvalidArgument

from conftest import T0


def test_register_creates_user(engine):
    user, created = engine.presence.register_or_refresh("u1", "203.0.113.7", "NL")
    assert created
    assert user.ip == "203.0.113.7"
    assert user.country == "NL"
    assert user.connected
    assert user.connection_time == T0.isoformat()
    assert user.report_count == 0
    assert user.violations == 0
    assert user.ban is None
    assert user.quarantine is None


def test_refresh_keeps_counters_and_restrictions(engine, clock):
    engine.presence.register_or_refresh("u1", "203.0.113.7", "NL")
    engine.reports.submit("x", "u1", "spam")
    engine.moderation.ban("u1", "abuse")

    clock.advance(120)
    user, created = engine.presence.register_or_refresh("u1", "198.51.100.2", "DE")
    assert not created
    assert user.ip == "198.51.100.2"
    assert user.country == "DE"
    assert user.last_seen == clock().isoformat()
    assert user.connection_time == T0.isoformat()
    assert user.report_count == 1
    assert user.ban.is_banned


def test_register_requires_id(engine):
    with pytest.raises(InvalidArgument):
        engine.presence.register_or_refresh("")


def test_connection_ping_before_register(engine):
    user = engine.presence.set_connection("u1", False)
    assert user.id == "u1"
    assert not user.connected
    assert user.report_count == 0


def test_connection_toggle(engine, clock):
    engine.presence.register_or_refresh("u1")
    clock.advance(30)
    user = engine.presence.set_connection("u1", False)
    assert not user.connected
    assert user.last_seen == clock().isoformat()
    assert engine.presence.connected_users() == []


def test_online_users_window(engine, clock):
    engine.presence.register_or_refresh("old")
    clock.advance(400)
    engine.presence.register_or_refresh("fresh")
    engine.presence.register_or_refresh("gone")
    engine.presence.set_connection("gone", False)

    assert sorted(u.id for u in engine.presence.connected_users()) == ["fresh", "old"]
    assert [u.id for u in engine.presence.online_users(300)] == ["fresh"]
