from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from pixshop.application.use_cases.session_controller import SessionController
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.domain.services.transform_service import ImageTransformService
from pixshop.infrastructure.storage.display_storage import DisplayStorage

logger = logging.getLogger(__name__)

# module-level in-memory store; idle sessions are evicted on access
_MEM_SESSIONS: dict[str, SessionController] = {}
_LAST_SEEN: dict[str, float] = {}


class SessionRepository:
    def __init__(
        self,
        transform: ImageTransformService,
        imaging: ImagingService,
        display: DisplayStorage,
        idle_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transform = transform
        self.imaging = imaging
        self.display = display
        self.idle_ttl = idle_ttl
        self.clock = clock

    def create(self) -> SessionController:
        self.evict_idle()
        session_id = f"sess_{uuid.uuid4().hex[:12]}"
        controller = SessionController(
            session_id=session_id,
            transform=self.transform,
            imaging=self.imaging,
            display=self.display,
        )
        _MEM_SESSIONS[session_id] = controller
        _LAST_SEEN[session_id] = self.clock()
        logger.info("Created session %s", session_id)
        return controller

    def get(self, session_id: str) -> SessionController | None:
        self.evict_idle()
        controller = _MEM_SESSIONS.get(session_id)
        if controller is not None:
            _LAST_SEEN[session_id] = self.clock()
        return controller

    def delete(self, session_id: str) -> bool:
        controller = _MEM_SESSIONS.pop(session_id, None)
        _LAST_SEEN.pop(session_id, None)
        if controller is None:
            return False
        controller.close()
        logger.info("Closed session %s", session_id)
        return True

    def evict_idle(self) -> int:
        """Close sessions unused for longer than `idle_ttl` seconds. Busy sessions are kept."""
        if not self.idle_ttl:
            return 0
        now = self.clock()
        expired = [
            sid
            for sid, controller in _MEM_SESSIONS.items()
            if not controller.session.busy and now - _LAST_SEEN.get(sid, now) > self.idle_ttl
        ]
        for sid in expired:
            logger.info("Evicting idle session %s", sid)
            self.delete(sid)
        return len(expired)
