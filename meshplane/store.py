"""In-memory store of service snapshots and route policies."""

from __future__ import annotations

import threading

from .types import (
    RoutePolicy,
    ServiceRef,
    ServiceSnapshot,
    SourceSnapshot,
    parse_snapshot_status,
)


def service_key(service: ServiceRef) -> str:
    """Index key of a service; env is left out when it is blank."""
    namespace = service.namespace.strip()
    env = service.env.strip()
    name = service.service.strip()
    if not env:
        return f"{namespace}/{name}"
    return f"{namespace}/{env}/{name}"


def to_control_snapshot(snapshot: SourceSnapshot) -> ServiceSnapshot:
    """Convert a source snapshot into the control plane's form."""
    ref = snapshot.service
    return ServiceSnapshot(
        service=ServiceRef(
            service=ref.service,
            namespace=ref.namespace,
            env=ref.env,
            port=ref.port,
        ),
        endpoints=list(snapshot.endpoints),
        revision=snapshot.revision,
        status=parse_snapshot_status(snapshot.status),
        status_reason=snapshot.status_reason,
    )


def _ref(snapshot: ServiceSnapshot) -> ServiceRef:
    return snapshot.service if snapshot.service is not None else ServiceRef()


def snapshots_equal_ignoring_revision(
    a: ServiceSnapshot | None, b: ServiceSnapshot | None
) -> bool:
    """Compare service, endpoints and status, but not the revision."""
    if a is None or b is None:
        return a is b
    return (
        _ref(a) == _ref(b)
        and a.status == b.status
        and a.status_reason == b.status_reason
        and list(a.endpoints) == list(b.endpoints)
    )


def snapshots_equal(a: ServiceSnapshot | None, b: ServiceSnapshot | None) -> bool:
    """Compare two snapshots including their revision."""
    if a is None or b is None:
        return a is b
    return snapshots_equal_ignoring_revision(a, b) and a.revision == b.revision


class SnapshotStore:
    """Thread-safe store of the snapshots and policies the control plane knows."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._snapshots: dict[str, ServiceSnapshot] = {}
        self._route_policies: dict[str, RoutePolicy] = {}
        # Per-key counters for sources that carry no revision of their own.
        self._versions: dict[str, int] = {}

    def put_service_snapshot(self, snapshot: ServiceSnapshot | None) -> None:
        """Store a snapshot under its service key; the last write wins."""
        if snapshot is None or snapshot.service is None:
            return
        with self._lock:
            self._snapshots[service_key(snapshot.service)] = snapshot

    def put_route_policy(self, policy: RoutePolicy | None) -> None:
        """Store a route policy under its service key."""
        if policy is None or policy.service is None:
            return
        with self._lock:
            self._route_policies[service_key(policy.service)] = policy

    def delete_service_snapshot(self, target: ServiceRef) -> bool:
        """Delete the target's snapshot and its env-less fallback; report whether any went."""
        if not target.service.strip():
            return False
        keys = [service_key(target)]
        if target.env.strip():
            keys.append(
                service_key(
                    ServiceRef(
                        service=target.service,
                        namespace=target.namespace,
                        port=target.port,
                    )
                )
            )
        deleted = False
        with self._lock:
            for key in keys:
                if self._snapshots.pop(key, None) is not None:
                    deleted = True
        return deleted

    def put_source_snapshot(
        self, snapshot: SourceSnapshot
    ) -> tuple[ServiceSnapshot | None, bool]:
        """Store a source snapshot; return the stored snapshot and whether it changed."""
        if not snapshot.service.service.strip():
            return None, False

        converted = to_control_snapshot(snapshot)
        key = service_key(_ref(converted))

        with self._lock:
            current = self._snapshots.get(key)
            if current is not None:
                if converted.revision:
                    if snapshots_equal(current, converted):
                        return current, False
                elif snapshots_equal_ignoring_revision(current, converted):
                    return current, False

            if not converted.revision:
                version = self._versions.get(key, 0) + 1
                self._versions[key] = version
                converted.revision = f"source-{version}"

            self._snapshots[key] = converted
            return converted, True

    def lookup(
        self, service: ServiceRef | None
    ) -> tuple[ServiceSnapshot | None, RoutePolicy | None]:
        """Find the snapshot and policy of a service, falling back to the env-less key."""
        if service is None:
            return None, None
        with self._lock:
            key = service_key(service)
            snapshot = self._snapshots.get(key)
            policy = self._route_policies.get(key)
            if snapshot is not None or policy is not None:
                return snapshot, policy
            fallback = f"{service.namespace}/{service.service}"
            return self._snapshots.get(fallback), self._route_policies.get(fallback)

    def all_service_snapshots(self) -> list[ServiceSnapshot]:
        """Return every stored snapshot."""
        with self._lock:
            return list(self._snapshots.values())

    def all_route_policies(self) -> list[RoutePolicy]:
        """Return every stored route policy."""
        with self._lock:
            return list(self._route_policies.values())