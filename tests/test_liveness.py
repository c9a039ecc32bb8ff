import pytest

from app.core.errors import ValidationError
from app.services.liveness import LivenessTracker
from app.services.roster import RosterStore
from app.services.shards import RosterEntry


@pytest.fixture
def tracker(registry, clock):
    return LivenessTracker(registry, clock=clock)


def roster(*names):
    return [RosterEntry(player_id=str(i), name=n, ping=20 + i) for i, n in enumerate(names)]


def test_unknown_key_reports_offline_zero_view(tracker, registry):
    assert tracker.status("GG-NEW") == {"online": False, "players": 0, "uptime": 0, "version": None}
    assert len(registry) == 0


def test_online_until_ttl_then_offline_with_last_report(tracker, clock):
    tracker.heartbeat("K", roster("alice", "bob"), version="1.4.2", uptime=120)

    clock.advance_ms(29999)
    assert tracker.status("K") == {"online": True, "players": 2, "uptime": 120, "version": "1.4.2"}

    clock.advance_ms(2)
    assert tracker.status("K") == {"online": False, "players": 2, "uptime": 120, "version": "1.4.2"}


def test_heartbeat_replaces_instead_of_merging(tracker, registry, clock):
    store = RosterStore(registry, clock=clock)
    tracker.heartbeat("K", roster("alice", "bob"), version="1.0", uptime=10)
    tracker.heartbeat("K")

    assert tracker.status("K") == {"online": True, "players": 0, "uptime": 0, "version": None}
    assert store.players("K") == []


def test_fresh_heartbeat_brings_server_back_online(tracker, clock):
    tracker.heartbeat("K")
    clock.advance_ms(60000)
    assert tracker.status("K")["online"] is False
    tracker.heartbeat("K", version="2.0")
    assert tracker.status("K")["online"] is True


def test_custom_ttl(registry, clock):
    tracker = LivenessTracker(registry, clock=clock, online_ttl_ms=1000)
    tracker.heartbeat("K")
    clock.advance_ms(1000)
    assert tracker.status("K")["online"] is False


def test_keys_are_isolated(tracker, clock):
    tracker.heartbeat("A", roster("alice"), version="1.0", uptime=5)
    assert tracker.status("B")["online"] is False
    tracker.heartbeat("B", roster("x", "y", "z"), version="2.0", uptime=9)
    assert tracker.status("A") == {"online": True, "players": 1, "uptime": 5, "version": "1.0"}


def test_blank_key_is_validation_error(tracker):
    with pytest.raises(ValidationError):
        tracker.heartbeat("  ")
