from __future__ import annotations

import asyncio
import time
from typing import Callable, Iterable

from loguru import logger
from pydantic import ValidationError

from jenifesto.models.entities import SessionState
from jenifesto.services.errors import CacheUnavailable
from jenifesto.services.kv_store import KeyValueStore

CURRENT_PAGE_KEY = "current_page"


class SessionStore:
    """Owner of the process-wide current page.

    The page is replaced wholesale by ``navigate`` and persisted so that it
    survives a restart. Each navigation bumps ``version``; writers that
    started under an older version are ignored.
    """

    def __init__(self, store: KeyValueStore, *, clock: Callable[[], float] = time.time):
        self._store = store
        self._clock = clock
        self._state: SessionState | None = None
        self._persisted: dict | None = None
        self._persist_lock = asyncio.Lock()

    @property
    def current(self) -> SessionState | None:
        return self._state

    @property
    def version(self) -> int:
        return self._state.version if self._state else 0

    def is_current(self, version: int) -> bool:
        return self._state is not None and self._state.version == version

    def satisfied_sources(self) -> list[str]:
        if self._state is None:
            return []
        return list(self._state.tier2_satisfied_sources)

    async def restore(self) -> SessionState | None:
        try:
            raw = await self._store.get(CURRENT_PAGE_KEY)
        except CacheUnavailable as e:
            logger.warning(f"Could not restore current page: {e}")
            return None
        if raw is None:
            return None
        try:
            self._state = SessionState.model_validate(raw)
            self._persisted = self._state.model_dump(mode="json")
        except ValidationError as e:
            logger.warning(f"Discarding unreadable stored page: {e}")
            return None
        logger.info(f"Restored current page: {self._state.title}")
        return self._state

    async def navigate(self, title: str, url: str, primary_id: str | None) -> SessionState:
        self._state = SessionState(
            title=title,
            url=url,
            primary_id=primary_id or None,
            timestamp=self._clock(),
            tier2_satisfied_sources=[],
            version=self.version + 1,
        )
        await self._persist()
        return self._state

    async def record_tier2_sources(self, version: int, sources: Iterable[str]) -> bool:
        if not self.is_current(version):
            logger.debug(f"Ignoring tier 2 sources from superseded page version {version}")
            return False
        self._state = self._state.model_copy(
            update={"tier2_satisfied_sources": sorted(set(sources))}
        )
        await self._persist()
        return True

    async def _persist(self) -> None:
        # Writes are serialized and always carry the newest state, so a slow
        # write for an older navigation can never land after a newer one.
        async with self._persist_lock:
            if self._state is None:
                return
            snapshot = self._state.model_dump(mode="json")
            if snapshot == self._persisted:
                return
            try:
                await self._store.set(CURRENT_PAGE_KEY, snapshot)
            except CacheUnavailable as e:
                logger.warning(f"Could not persist current page: {e}")
                return
            self._persisted = snapshot
