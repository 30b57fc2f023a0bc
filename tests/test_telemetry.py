import pytest

from meshplane.loader import WatchUpdate
from meshplane.telemetry import (
    PUSH_DECISIONS,
    REPLAY_RESOURCES,
    WATCH_RESTARTS,
    WATCH_UPDATES,
    Emitter,
    snapshot_reason_class,
    snapshot_status_label,
)
from meshplane.types import ServiceRef, ServiceSnapshot, SnapshotStatus


def test_snapshot_reason_class():
    assert snapshot_reason_class("class=timeout error=context deadline exceeded") == "timeout"
    assert snapshot_reason_class("registry unavailable") == ""


def test_snapshot_reason_class_empty():
    reason = "class=empty error=no healthy source endpoints: etcd service=orders"
    assert snapshot_reason_class(reason) == "empty"


@pytest.mark.parametrize(
    "reason, expected",
    [("", ""), ("   ", ""), ("  class=net  ", "net"), ("class=", "")],
)
def test_snapshot_reason_class_edges(reason, expected):
    assert snapshot_reason_class(reason) == expected


@pytest.mark.parametrize(
    "status, label",
    [
        (SnapshotStatus.STALE, "stale"),
        (SnapshotStatus.DEGRADED, "degraded"),
        (SnapshotStatus.CURRENT, "current"),
        (SnapshotStatus.UNSPECIFIED, "unspecified"),
    ],
)
def test_snapshot_status_label(status, label):
    assert snapshot_status_label(status) == label


def test_record_watch_restart_counts_per_target():
    emitter = Emitter()
    emitter.record_watch_restart("memory", "orders", "default", "dev")
    emitter.record_watch_restart("memory", "orders", "default", "dev")
    emitter.record_watch_restart("memory", "payments", "default", "dev")
    assert emitter.count(WATCH_RESTARTS) == 3
    assert emitter.count(WATCH_RESTARTS, service="orders") == 2
    assert emitter.count(WATCH_RESTARTS, provider="other") == 0


def test_record_watch_update_labels_snapshot_and_delete():
    emitter = Emitter()
    target = ServiceRef(service="orders", namespace="default", env="dev")
    emitter.record_watch_update(
        WatchUpdate(
            target=target,
            provider="memory",
            snapshot=ServiceSnapshot(
                service=target,
                status=SnapshotStatus.STALE,
                status_reason="class=timeout error=slow",
            ),
            changed=True,
        )
    )
    emitter.record_watch_update(
        WatchUpdate(target=target, provider="memory", deleted=True, changed=True)
    )
    assert emitter.count(WATCH_UPDATES, status="stale", reason_class="timeout") == 1
    assert emitter.count(WATCH_UPDATES, status="deleted", reason_class="") == 1
    assert emitter.count(WATCH_UPDATES, service="orders") == 2


def test_record_replay_resource_ignores_non_positive_counts():
    emitter = Emitter()
    emitter.record_replay_resource("register", "dp-1", "default", "dev", "snapshot", "exact", 0)
    emitter.record_replay_resource("register", "dp-1", "default", "dev", "snapshot", "exact", -2)
    emitter.record_replay_resource("register", "dp-1", "default", "dev", "snapshot", "exact", 3)
    emitter.record_replay_resource("register", "dp-1", "default", "dev", "route_policy", "fallback", 1)
    assert emitter.count(REPLAY_RESOURCES) == 4
    assert emitter.count(REPLAY_RESOURCES, resource_kind="snapshot", match_kind="exact") == 3


def test_record_push_decision_accumulates():
    emitter = Emitter()
    emitter.record_push_decision(
        "service_snapshot", "orders", "default", "dev", "delivered", "matched", "matched", 2
    )
    emitter.record_push_decision(
        "service_snapshot", "orders", "default", "dev", "denied_subscription", "none", "unknown", 1
    )
    emitter.record_push_decision(
        "service_snapshot", "orders", "default", "dev", "denied_identity", "matched", "none", 0
    )
    assert emitter.count(PUSH_DECISIONS, decision="delivered") == 2
    assert emitter.count(PUSH_DECISIONS, decision="denied_subscription") == 1
    assert emitter.count(PUSH_DECISIONS, decision="denied_identity") == 0
    assert emitter.count(PUSH_DECISIONS) == 3


def test_count_of_unknown_metric_is_zero():
    assert Emitter().count("no.such.metric", service="orders") == 0