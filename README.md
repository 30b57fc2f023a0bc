# meshplane

The core of a service-mesh control plane as a plain Python library with no
third-party dependencies. It keeps what the mesh knows about each service,
pulls changes from a discovery source into that state, and keeps watches on
tracked services running.

## Modules

- `meshplane.types` – the data model: `ServiceRef`, `Endpoint`,
  `SourceSnapshot` (a snapshot as a discovery source reports it, with a
  string status), `ServiceSnapshot` (as the control plane keeps it, with a
  `SnapshotStatus`), `RetryPolicy`, `RoutePolicy` and the `SnapshotStatus`
  enum. `parse_snapshot_status` maps `"current"`, `"stale"`, `"degraded"`
  and the empty string (current) to `SnapshotStatus`; anything else is
  `UNSPECIFIED`. `target_key` builds a `namespace/env/service` key.
- `meshplane.store` – `SnapshotStore`, a thread-safe in-memory store of
  service snapshots and route policies, and the helpers `service_key`,
  `to_control_snapshot`, `snapshots_equal` and
  `snapshots_equal_ignoring_revision`.
- `meshplane.loader` – `Loader`, the `Provider` and `WatchCapable`
  protocols, `WatchEvent`, `WatchEventKind` and `WatchUpdate`.
- `meshplane.watch_manager` – `WatchManager`, which keeps one restarting
  watch per tracked target on an asyncio event loop.
- `meshplane.telemetry` – `Emitter`, in-process counters, plus
  `snapshot_status_label` and `snapshot_reason_class`.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The store

Keys are `namespace/env/service`, or `namespace/service` when the env is
blank (surrounding whitespace is ignored). The last write under a key wins.

```python
from meshplane.store import SnapshotStore
from meshplane.types import Endpoint, ServiceRef, SourceSnapshot

store = SnapshotStore()
orders = ServiceRef(service="orders", namespace="default", env="dev")

snapshot, changed = store.put_source_snapshot(
    SourceSnapshot(service=orders, endpoints=[Endpoint(address="10.0.0.10", port=19090, weight=1)])
)
# changed is True and snapshot.revision == "source-1"

found, policy = store.lookup(orders)
```

- `put_source_snapshot` converts a `SourceSnapshot` and stores it. A
  snapshot without a revision gets a generated one (`source-1`,
  `source-2`, ... per key) and is only rewritten when its service,
  endpoints, status or status reason differ from what is stored. A snapshot
  with a revision is rewritten when anything, revision included, differs.
  It returns the stored snapshot and whether it changed; a snapshot with a
  blank service name gives `(None, False)`.
- `put_service_snapshot` and `put_route_policy` store values as given;
  values without a `service` are ignored.
- `lookup` returns `(snapshot, policy)` for a service. When neither is
  stored under the exact key, it falls back to `namespace/service`.
- `delete_service_snapshot` removes the target's snapshot and, when the
  target has an env, the env-less one too, and reports whether anything
  was removed.
- `all_service_snapshots` and `all_route_policies` return lists of
  everything stored.

## Loading from a source

A provider implements `Provider`: a `name()` method and an
`async resolve(target)` returning a `SourceSnapshot`. A provider that can
also stream changes implements `WatchCapable`: an `async watch(target)`
returning an async iterator of `WatchEvent`s, which ends when the source
closes the stream.

`Loader(store, provider)` offers:

- `await refresh(target)` – resolve one target and store it; returns the
  stored snapshot and whether it changed. With no store or no provider it
  returns `(None, False)`. Errors from the provider propagate.
- `await refresh_many(targets)` – refresh in order and return the snapshots
  that changed.
- `await watch(target)` – `None` when the provider is not `WatchCapable`;
  otherwise an async iterator of `WatchUpdate`s. Upsert events are written
  with `put_source_snapshot`, delete events with `delete_service_snapshot`,
  and only updates that changed the store are yielded.
- `provider_name()` – the provider's name, or `""`.

## Watching tracked targets

```python
from meshplane.watch_manager import WatchManager

manager = WatchManager(loader, telemetry=None, on_update=print)
manager.start([orders])          # must run inside an event loop
manager.track(other_target)      # starts a watch unless one is running
...
await manager.close()            # cancels every watch
```

`on_update` may be a plain function or a coroutine function. When a watch
stream ends, the manager records a restart in the `Emitter` (if one was
given), logs a warning, waits `WATCH_RESTART_BACKOFF` (0.2 seconds) and
opens the watch again; a watch that fails to open is retried after the same
delay. Targets tracked before `start`, after `close`, with a blank service
name, or with no loader are ignored.

## Telemetry

`Emitter` keeps counters under the names `WATCH_RESTARTS`,
`WATCH_UPDATES`, `REPLAY_RESOURCES` and `PUSH_DECISIONS`, filled by
`record_watch_restart`, `record_watch_update`, `record_replay_resource`
and `record_push_decision`. The last two ignore counts of zero or less.
`count(name, **attributes)` totals a counter over every series whose
attributes match, for example `emitter.count(WATCH_RESTARTS, service="orders")`.

`snapshot_status_label` gives `"current"`, `"stale"`, `"degraded"` or
`"unspecified"`. `snapshot_reason_class` extracts the class from a reason
such as `"class=timeout error=context deadline exceeded"` (`"timeout"`)
and returns `""` for reasons that do not start with `class=`.

## What it does not do

meshplane has no network server and no command-line program: it does not
accept data-plane connections, deliver snapshots or policies to them, or
decide which data plane receives what. It ships no discovery providers
either; you supply an object that implements `Provider` (and optionally
`WatchCapable`). All state lives in memory and is lost when the process
ends.