from __future__ import annotations

from enum import Enum
from typing import Any

from loguru import logger

from jenifesto.services import logger as log_service
from jenifesto.services import streaming
from jenifesto.services.broadcast import EventBroadcaster
from jenifesto.services.orchestrator import TieredQueryOrchestrator
from jenifesto.services.session_state import SessionStore


class PipelineStage(str, Enum):
    NO_PAGE = "no_page"
    PRIMARY_LOADING = "primary_loading"
    PRIMARY_READY = "primary_ready"
    SECONDARY_LOADING = "secondary_loading"
    SECONDARY_READY = "secondary_ready"
    ERROR = "error"


class NavigationController:
    """Drives the tiered pipeline for each page navigation.

    Flow:
      1. Replace the session page and broadcast it
      2. Fetch the primary entity (tier 1) and broadcast it
      3. If it carries identifiers, fan out to the sources (tier 2) and
         broadcast the aggregate

    Work started for a page that has since been replaced by another
    navigation stops quietly instead of broadcasting stale results.
    """

    def __init__(
        self,
        orchestrator: TieredQueryOrchestrator,
        sessions: SessionStore,
        broadcaster: EventBroadcaster,
    ):
        self.orchestrator = orchestrator
        self.sessions = sessions
        self.broadcaster = broadcaster
        self._stage = PipelineStage.NO_PAGE

    @property
    def stage(self) -> PipelineStage:
        return self._stage

    def _transition(self, version: int, stage: PipelineStage) -> bool:
        if not self.sessions.is_current(version):
            return False
        self._stage = stage
        log_service.log_stage_transition(version, stage.value, self.sessions.current.primary_id)
        return True

    async def handle_page_loaded(
        self,
        title: str,
        url: str,
        primary_id: str | None = None,
    ) -> dict[str, Any]:
        self._stage = PipelineStage.NO_PAGE
        page = await self.sessions.navigate(title, url, primary_id)
        version = page.version
        log_service.log_event(
            event_type="page_loaded",
            message="Page navigation recorded",
            title=title,
            primary_id=page.primary_id,
            version=version,
        )
        self.broadcaster.publish(streaming.page_updated(page))

        if not page.primary_id:
            return {"success": True}

        self._transition(version, PipelineStage.PRIMARY_LOADING)
        try:
            entity = await self.orchestrator.fetch_primary_entity(page.primary_id)
            if not self._transition(version, PipelineStage.PRIMARY_READY):
                return {"success": True}
            self.broadcaster.publish(streaming.primary_entity_loaded(entity))

            if not entity.identifiers:
                return {"success": True}

            self._transition(version, PipelineStage.SECONDARY_LOADING)
            self.broadcaster.publish(
                streaming.secondary_loading(page.primary_id, sorted(entity.identifiers))
            )
            results = await self.orchestrator.fetch_secondary_results(
                page.primary_id, entity.identifiers
            )
            if not await self.sessions.record_tier2_sources(version, results.successful):
                return {"success": True}
            self._transition(version, PipelineStage.SECONDARY_READY)
            self.broadcaster.publish(streaming.secondary_loaded(results))
        except Exception as e:
            logger.error(f"Failed to load data for {page.primary_id}: {e}")
            if self._transition(version, PipelineStage.ERROR):
                self.broadcaster.publish(streaming.load_error(str(e) or e.__class__.__name__))

        return {"success": True}
