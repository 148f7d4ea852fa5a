from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Path, status

from pixshop.application.use_cases.session_controller import SessionController
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.domain.services.transform_service import ImageTransformService
from pixshop.infrastructure.config import Settings
from pixshop.infrastructure.genai.gemini_transform_service import GeminiTransformService
from pixshop.infrastructure.genai.local_transform_service import LocalTransformService
from pixshop.infrastructure.repositories.session_repository import SessionRepository
from pixshop.infrastructure.storage.display_storage import DisplayStorage

# Process-wide singletons; display handles and the transform client are shared by all sessions
_SETTINGS: Settings | None = None
_TRANSFORM_SINGLETON: ImageTransformService | None = None
_DISPLAY_SINGLETON: DisplayStorage | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def get_imaging_service() -> ImagingService:
    return ImagingService(jpeg_quality=get_settings().jpeg_quality)


def get_transform_service() -> ImageTransformService:
    global _TRANSFORM_SINGLETON
    if _TRANSFORM_SINGLETON is None:
        settings = get_settings()
        if settings.genai_disabled:
            _TRANSFORM_SINGLETON = LocalTransformService(
                get_imaging_service(), size=settings.local_transform_size
            )
        else:
            _TRANSFORM_SINGLETON = GeminiTransformService(
                api_key=settings.genai_api_key, model=settings.genai_model
            )
    return _TRANSFORM_SINGLETON


def get_display_storage() -> DisplayStorage:
    global _DISPLAY_SINGLETON
    if _DISPLAY_SINGLETON is None:
        _DISPLAY_SINGLETON = DisplayStorage(get_settings().display_dir)
    return _DISPLAY_SINGLETON


def get_session_repo() -> SessionRepository:
    return SessionRepository(
        transform=get_transform_service(),
        imaging=get_imaging_service(),
        display=get_display_storage(),
        idle_ttl=get_settings().session_idle_ttl,
    )


def get_controller(
    session_id: Annotated[str, Path(description="Session identifier")],
    sessions: Annotated[SessionRepository, Depends(get_session_repo)],
) -> SessionController:
    controller = sessions.get(session_id)
    if controller is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return controller
