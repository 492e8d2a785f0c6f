import pytest

from clusterlens.analyzers.events import fetch_latest_event
from clusterlens.kubernetes import ApiError, InMemoryClient


def _event(name, involved, namespace="default", timestamp=None, reason="Unhealthy"):
    event = {
        "kind": "Event",
        "metadata": {"name": name, "namespace": namespace},
        "involvedObject": {"kind": "Pod", "name": involved, "namespace": namespace},
        "reason": reason,
        "message": f"message of {name}",
    }
    if timestamp is not None:
        event["lastTimestamp"] = timestamp
    return event


class _FailingClient:
    def list(self, *args, **kwargs):
        raise ApiError("listing failed", 500)


def test_no_events_gives_none():
    client = InMemoryClient()
    assert fetch_latest_event(client, "default", "example") is None


def test_latest_timestamp_wins():
    client = InMemoryClient(
        _event("old", "example", timestamp="2023-01-01T00:00:00Z"),
        _event("new", "example", timestamp="2023-06-01T00:00:00Z"),
        _event("middle", "example", timestamp="2023-03-01T00:00:00Z"),
    )
    latest = fetch_latest_event(client, "default", "example")
    assert latest["metadata"]["name"] == "new"


def test_only_events_of_named_object_are_considered():
    client = InMemoryClient(
        _event("mine", "example", timestamp="2023-01-01T00:00:00Z"),
        _event("other", "someone-else", timestamp="2024-01-01T00:00:00Z"),
    )
    latest = fetch_latest_event(client, "default", "example")
    assert latest["metadata"]["name"] == "mine"
    assert latest["involvedObject"]["name"] == "example"


def test_namespace_is_respected():
    client = InMemoryClient(_event("foo", "example", namespace="other-namespace"))
    assert fetch_latest_event(client, "default", "example") is None
    found = fetch_latest_event(client, "other-namespace", "example")
    assert found["metadata"]["name"] == "foo"


def test_event_without_timestamp_is_returned_when_alone():
    client = InMemoryClient(_event("foo", "example"))
    found = fetch_latest_event(client, "default", "example")
    assert found["reason"] == "Unhealthy"


def test_missing_timestamp_is_older_than_any_timestamp():
    client = InMemoryClient(
        _event("untimed", "example"),
        _event("timed", "example", timestamp="2020-01-01T00:00:00Z"),
    )
    found = fetch_latest_event(client, "default", "example")
    assert found["metadata"]["name"] == "timed"


def test_api_error_propagates():
    with pytest.raises(ApiError):
        fetch_latest_event(_FailingClient(), "default", "example")