from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from pixshop.application.dtos.common_dto import ErrorResponse
from pixshop.infrastructure.api.dependencies import get_display_storage
from pixshop.infrastructure.storage.display_storage import DisplayStorage

router = APIRouter(
    prefix="/display",
    tags=["Display"],
    responses={
        404: {"model": ErrorResponse, "description": "Not Found - Display handle does not exist or was released"},
    },
)


@router.get(
    "/{handle_id}",
    summary="Get Display Image",
    description="""
    Serve the bytes behind a temporary display handle.

    Handles are issued in the `url` fields of the session state and stay
    valid only while their image is on screen. Once the image is replaced
    the handle is released and this endpoint returns 404.
    """,
    response_class=Response,
    responses={200: {"content": {"image/*": {}}, "description": "Image bytes"}},
)
async def get_display_image(handle_id: str, display: DisplayStorage = Depends(get_display_storage)):
    """Serve a displayed image."""
    handle = display.get(handle_id)
    if handle is None:
        raise HTTPException(status_code=404, detail="Display handle not found")
    return Response(content=display.read_bytes(handle), media_type=handle.content_type)
