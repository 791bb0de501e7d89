from __future__ import annotations

from dataclasses import dataclass

from jenifesto.services.broadcast import EventBroadcaster
from jenifesto.services.kv_store import KeyValueStore, get_store
from jenifesto.services.navigation import NavigationController
from jenifesto.services.orchestrator import TieredQueryOrchestrator
from jenifesto.services.session_state import SessionStore
from jenifesto.services.ttl_cache import TTLCache
from jenifesto.sources.registry import SourceRegistry


@dataclass
class Runtime:
    """Process-wide singletons shared by every request."""

    orchestrator: TieredQueryOrchestrator
    sessions: SessionStore
    broadcaster: EventBroadcaster
    navigation: NavigationController


def build_runtime(
    store: KeyValueStore,
    *,
    registry: SourceRegistry | None = None,
    orchestrator: TieredQueryOrchestrator | None = None,
) -> Runtime:
    orchestrator = orchestrator or TieredQueryOrchestrator(cache=TTLCache(store), registry=registry)
    sessions = SessionStore(store)
    broadcaster = EventBroadcaster()
    return Runtime(
        orchestrator=orchestrator,
        sessions=sessions,
        broadcaster=broadcaster,
        navigation=NavigationController(orchestrator, sessions, broadcaster),
    )


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    global _runtime
    if _runtime is None:
        _runtime = build_runtime(get_store())
    return _runtime


def set_runtime(runtime: Runtime | None) -> None:
    global _runtime
    _runtime = runtime
