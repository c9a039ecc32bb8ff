import pytest

from app.services.log_buffer import LogRingBuffer


@pytest.fixture
def buffer(registry, clock):
    return LogRingBuffer(registry, clock=clock)


def test_keeps_most_recent_300_newest_first(buffer):
    for i in range(1, 302):
        buffer.log("K", f"line {i}")

    entries = buffer.entries("K")
    assert len(entries) == 300
    assert entries[0].message == "line 301"
    assert entries[-1].message == "line 2"
    assert all(e.message != "line 1" for e in entries)


def test_kind_defaults_to_info_and_optional_fields_are_kept(buffer):
    buffer.log("K", "server started")
    buffer.log("K", "kick", kind="moderation", title="Kicked", meta={"player": "bob"})

    newest, oldest = buffer.entries("K")
    assert oldest.kind == "info"
    assert oldest.as_dict() == {"time": oldest.time, "kind": "info", "message": "server started"}
    assert newest.as_dict()["meta"] == {"player": "bob"}
    assert newest.title == "Kicked"


def test_unknown_key_has_no_logs(buffer):
    assert buffer.entries("K") == []


def test_capacity_is_configurable(registry, clock):
    buffer = LogRingBuffer(registry, clock=clock, capacity=3)
    for i in range(5):
        buffer.log("K", str(i))
    assert [e.message for e in buffer.entries("K")] == ["4", "3", "2"]
    assert registry.peek("K").logs.maxlen == 3
