"""Service-mesh control-plane core: snapshot store, source loader, watch manager and telemetry counters."""

__version__ = "0.1.0"

__all__ = ["loader", "store", "telemetry", "types", "watch_manager"]