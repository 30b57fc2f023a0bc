"""Value types shared by the snapshot store, the loader and the watchers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class SnapshotStatus(enum.Enum):
    """Health of a service snapshot as seen by the control plane."""

    UNSPECIFIED = 0
    CURRENT = 1
    STALE = 2
    DEGRADED = 3


@dataclass(frozen=True)
class ServiceRef:
    """Identity of a service: name, namespace, environment and port."""

    service: str = ""
    namespace: str = ""
    env: str = ""
    port: int = 0


@dataclass(frozen=True)
class Endpoint:
    """One reachable instance of a service."""

    address: str
    port: int = 0
    weight: int = 0


@dataclass
class SourceSnapshot:
    """A snapshot as a discovery source reports it."""

    service: ServiceRef = field(default_factory=ServiceRef)
    endpoints: list[Endpoint] = field(default_factory=list)
    revision: str = ""
    status: str = ""
    status_reason: str = ""


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings of a route policy."""

    max_attempts: int = 0
    per_try_timeout_ms: int = 0


@dataclass
class RoutePolicy:
    """Call policy for a service."""

    service: ServiceRef | None = None
    retry: RetryPolicy | None = None
    timeout_ms: int = 0


@dataclass
class ServiceSnapshot:
    """A snapshot as the control plane keeps and delivers it."""

    service: ServiceRef | None = None
    endpoints: list[Endpoint] = field(default_factory=list)
    revision: str = ""
    status: SnapshotStatus = SnapshotStatus.UNSPECIFIED
    status_reason: str = ""


_STATUS_BY_NAME = {
    "stale": SnapshotStatus.STALE,
    "degraded": SnapshotStatus.DEGRADED,
    "current": SnapshotStatus.CURRENT,
    "": SnapshotStatus.CURRENT,
}


def parse_snapshot_status(status: str) -> SnapshotStatus:
    """Map a source status string to a SnapshotStatus; empty means current."""
    return _STATUS_BY_NAME.get(status.strip(), SnapshotStatus.UNSPECIFIED)


def target_key(target: ServiceRef) -> str:
    """Key a target by namespace, env and service name."""
    return f"{target.namespace}/{target.env}/{target.service}"