from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import Response

from pixshop.application.dtos.common_dto import ErrorResponse, SuccessResponse
from pixshop.application.dtos.session_dto import (
    PointerRequest,
    PromptRequest,
    RemoveBackgroundRequest,
    SessionStateResponse,
    TabRequest,
)
from pixshop.application.use_cases.session_controller import SessionController
from pixshop.domain.entities.session import Session
from pixshop.infrastructure.api.dependencies import get_controller, get_session_repo
from pixshop.infrastructure.api.error_handlers import raise_for_session_error
from pixshop.infrastructure.repositories.session_repository import SessionRepository

router = APIRouter(
    prefix="/sessions",
    tags=["Editing Sessions"],
    responses={
        400: {"model": ErrorResponse, "description": "Bad Request - A precondition of the operation is not met"},
        404: {"model": ErrorResponse, "description": "Not Found - Session does not exist"},
        409: {"model": ErrorResponse, "description": "Conflict - Another operation is already in progress"},
        422: {"description": "Validation Error - Invalid request format"},
    },
)

_GENERATION_RESPONSES = {
    502: {"model": ErrorResponse, "description": "Bad Gateway - The image transform service did not return an image"},
}


def _state(controller: SessionController) -> SessionStateResponse:
    return SessionStateResponse.from_session(controller.session, controller.bindings.urls())


def _outcome(controller: SessionController, session: Session) -> SessionStateResponse:
    raise_for_session_error(session)
    return _state(controller)


async def _read_upload(file: UploadFile) -> tuple[bytes, str | None]:
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail=f"Uploaded file {file.filename or ''} is empty".strip())
    mime = file.content_type if (file.content_type or "").startswith("image/") else None
    return data, mime


# --------- lifecycle ---------
@router.post(
    "",
    response_model=SessionStateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Session",
    description="""
    Create a new editing session in the **start** mode.

    A session holds the single-image editor history, the combine histories,
    the current selections, the busy flag and the error slot. Sessions live
    in memory for the lifetime of the process.
    """,
    response_description="State of the newly created session",
)
async def create_session(sessions: SessionRepository = Depends(get_session_repo)):
    """Create a new, empty editing session."""
    return _state(sessions.create())


@router.get(
    "/{session_id}",
    response_model=SessionStateResponse,
    summary="Get Session State",
    description="""
    Retrieve the full state of a session: mode, histories with undo/redo
    availability, selections in display and native coordinates, the busy
    flag with its progress message, the current error and display URLs for
    the images currently on screen.
    """,
    response_description="Current session state",
)
async def get_session(controller: SessionController = Depends(get_controller)):
    """Get the state of a session."""
    return _state(controller)


@router.delete(
    "/{session_id}",
    response_model=SuccessResponse,
    summary="Close Session",
    description="Close a session and release all of its display handles.",
    response_description="Confirmation that the session was closed",
)
async def close_session(session_id: str, sessions: SessionRepository = Depends(get_session_repo)):
    """Close a session."""
    if not sessions.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return SuccessResponse(ok=True, message=f"Session {session_id} closed")


# --------- modes ---------
@router.post(
    "/{session_id}/editor",
    response_model=SessionStateResponse,
    summary="Start Editor",
    description="""
    Upload an image and enter the single-image **editor** mode.

    **Supported formats**: PNG, JPEG, WEBP, GIF, BMP, TIFF

    The uploaded image becomes the original (index 0) of a fresh editor
    history. Any previous histories and selections are discarded.
    """,
    response_description="Session state in editor mode",
)
async def start_editor(
    file: UploadFile = File(..., description="Image file to edit"),
    controller: SessionController = Depends(get_controller),
):
    """Enter editor mode with an uploaded image."""
    data, mime = await _read_upload(file)
    return _outcome(controller, controller.start_editor(data, mime))


@router.post(
    "/{session_id}/combine",
    response_model=SessionStateResponse,
    summary="Start Combine",
    description="""
    Upload a source and a destination image and enter the **combine** mode.

    The source image is fixed for the whole combine session. The destination
    image becomes the original of a fresh destination history.
    """,
    response_description="Session state in combine mode",
)
async def start_combine(
    source: UploadFile = File(..., description="Image containing the element to move"),
    destination: UploadFile = File(..., description="Image to place the element into"),
    controller: SessionController = Depends(get_controller),
):
    """Enter combine mode with two uploaded images."""
    source_data, source_mime = await _read_upload(source)
    destination_data, destination_mime = await _read_upload(destination)
    return _outcome(
        controller,
        controller.start_combine(source_data, destination_data, source_mime, destination_mime),
    )


@router.post(
    "/{session_id}/start-over",
    response_model=SessionStateResponse,
    summary="Start Over",
    description="Discard every history and selection and return to the **start** mode.",
)
async def start_over(controller: SessionController = Depends(get_controller)):
    """Return to start mode."""
    return _outcome(controller, controller.start_over())


@router.post(
    "/{session_id}/error/dismiss",
    response_model=SessionStateResponse,
    summary="Dismiss Error",
    description="Clear the session's error slot.",
)
async def dismiss_error(controller: SessionController = Depends(get_controller)):
    """Clear the current error."""
    controller.dismiss_error()
    return _state(controller)


# --------- editor: selection and navigation ---------
@router.post(
    "/{session_id}/tab",
    response_model=SessionStateResponse,
    summary="Select Editor Tab",
    description="""
    Switch the active editor tab.

    **Tabs:** `retouch`, `adjust`, `filters`, `remove-bg`

    Point selection is only accepted while the `retouch` tab is active.
    """,
)
async def select_tab(body: TabRequest, controller: SessionController = Depends(get_controller)):
    """Switch the active editor tab."""
    return _outcome(controller, controller.select_tab(body.tab))


@router.post(
    "/{session_id}/hotspot",
    response_model=SessionStateResponse,
    summary="Select Hotspot",
    description="""
    Select the point to retouch by clicking on the rendered image.

    Send the pointer offset within the rendered element and the element's
    rendered size. The point is mapped to the image's native resolution
    (`native = round(offset * natural / client)`) and stored alongside the
    display point.
    """,
)
async def set_hotspot(body: PointerRequest, controller: SessionController = Depends(get_controller)):
    """Select the retouch hotspot."""
    return _outcome(
        controller,
        controller.set_hotspot(body.offset_x, body.offset_y, body.client_width, body.client_height),
    )


@router.delete(
    "/{session_id}/hotspot",
    response_model=SessionStateResponse,
    summary="Clear Hotspot",
    description="Clear the selected retouch hotspot. The next generation applies to the whole image.",
)
async def clear_hotspot(controller: SessionController = Depends(get_controller)):
    """Clear the retouch hotspot."""
    return _outcome(controller, controller.clear_hotspot())


@router.post(
    "/{session_id}/undo",
    response_model=SessionStateResponse,
    summary="Undo Edit",
    description="Move the editor history one step back. Fails with 400 when already at the original.",
)
async def undo(controller: SessionController = Depends(get_controller)):
    """Undo the last editor change."""
    return _outcome(controller, controller.undo())


@router.post(
    "/{session_id}/redo",
    response_model=SessionStateResponse,
    summary="Redo Edit",
    description="Move the editor history one step forward. Fails with 400 when already at the newest edit.",
)
async def redo(controller: SessionController = Depends(get_controller)):
    """Redo the next editor change."""
    return _outcome(controller, controller.redo())


@router.post(
    "/{session_id}/reset",
    response_model=SessionStateResponse,
    summary="Reset To Original",
    description="""
    Move the editor cursor back to the original image.

    Later edits are kept and can still be reached with redo until a new
    edit is appended.
    """,
)
async def reset(controller: SessionController = Depends(get_controller)):
    """Reset the editor to the original image."""
    return _outcome(controller, controller.reset())


# --------- editor: generative operations ---------
@router.post(
    "/{session_id}/generate",
    response_model=SessionStateResponse,
    summary="Generate Edit",
    description="""
    Edit the current image from a natural-language prompt.

    **How It Works:**
    1. With a hotspot selected, the edit is localized around that point;
       otherwise the prompt is applied to the whole image
    2. The result is upscaled and resampled to the original's exact size
    3. The result is appended to the editor history and the hotspot is cleared

    A failure leaves the history unchanged and is reported in the error slot.
    """,
    responses=_GENERATION_RESPONSES,
)
async def generate(body: PromptRequest, controller: SessionController = Depends(get_controller)):
    """Generate an edit from a prompt."""
    return _outcome(controller, await controller.generate(body.prompt))


@router.post(
    "/{session_id}/filter",
    response_model=SessionStateResponse,
    summary="Apply Filter",
    description="Apply a stylistic filter described in natural language to the whole image.",
    responses=_GENERATION_RESPONSES,
)
async def apply_filter(body: PromptRequest, controller: SessionController = Depends(get_controller)):
    """Apply a filter from a prompt."""
    return _outcome(controller, await controller.apply_filter(body.prompt))


@router.post(
    "/{session_id}/adjust",
    response_model=SessionStateResponse,
    summary="Apply Adjustment",
    description="Apply a photorealistic global adjustment described in natural language.",
    responses=_GENERATION_RESPONSES,
)
async def apply_adjustment(body: PromptRequest, controller: SessionController = Depends(get_controller)):
    """Apply a global adjustment from a prompt."""
    return _outcome(controller, await controller.apply_adjustment(body.prompt))


@router.post(
    "/{session_id}/adjust/presets/{preset_id}",
    response_model=SessionStateResponse,
    summary="Apply Adjustment Preset",
    description="""
    Apply one of the built-in adjustment presets.

    **Presets:** `blur-background`, `enhance-details`, `warmer-lighting`, `studio-light`
    """,
    responses=_GENERATION_RESPONSES,
)
async def apply_adjustment_preset(preset_id: str, controller: SessionController = Depends(get_controller)):
    """Apply a built-in adjustment preset."""
    return _outcome(controller, await controller.apply_adjustment_preset(preset_id))


@router.post(
    "/{session_id}/remove-background",
    response_model=SessionStateResponse,
    summary="Remove Background",
    description="""
    Remove the background of the current image and replace it with white.

    `aggressiveness` ranges from 1 (preserve fine edge detail) to 5
    (aggressive cleanup). Defaults to 3.
    """,
    responses=_GENERATION_RESPONSES,
)
async def remove_background(
    body: RemoveBackgroundRequest | None = None,
    controller: SessionController = Depends(get_controller),
):
    """Remove the image background."""
    level = body.aggressiveness if body is not None else RemoveBackgroundRequest().aggressiveness
    return _outcome(controller, await controller.remove_background(level))


# --------- combine ---------
@router.post(
    "/{session_id}/combine/source",
    response_model=SessionStateResponse,
    summary="Select Source Element",
    description="Select the element to move by clicking on the rendered source image.",
)
async def select_source(body: PointerRequest, controller: SessionController = Depends(get_controller)):
    """Select the source element."""
    return _outcome(
        controller,
        controller.select_source(body.offset_x, body.offset_y, body.client_width, body.client_height),
    )


@router.post(
    "/{session_id}/combine/destination",
    response_model=SessionStateResponse,
    summary="Select Destination Target",
    description="Select where to place the element by clicking on the rendered destination image.",
)
async def select_destination(body: PointerRequest, controller: SessionController = Depends(get_controller)):
    """Select the destination target."""
    return _outcome(
        controller,
        controller.select_destination(body.offset_x, body.offset_y, body.client_width, body.client_height),
    )


@router.post(
    "/{session_id}/combine/generate",
    response_model=SessionStateResponse,
    summary="Combine Images",
    description="""
    Move the selected source element into the destination image.

    **Requires:** a source image, a destination image, a selected source
    element, a selected destination target and a non-empty description of
    the element. The service is not called when any of these is missing.

    The result is resampled to the original destination's size and appended
    to the destination history. Both selections are cleared.
    """,
    responses=_GENERATION_RESPONSES,
)
async def combine(body: PromptRequest, controller: SessionController = Depends(get_controller)):
    """Combine source element into the destination image."""
    return _outcome(controller, await controller.combine(body.prompt))


@router.post(
    "/{session_id}/combine/undo",
    response_model=SessionStateResponse,
    summary="Undo Combine",
    description="Move the destination history one step back.",
)
async def undo_combine(controller: SessionController = Depends(get_controller)):
    """Undo the last combine."""
    return _outcome(controller, controller.undo_combine())


@router.post(
    "/{session_id}/combine/redo",
    response_model=SessionStateResponse,
    summary="Redo Combine",
    description="Move the destination history one step forward.",
)
async def redo_combine(controller: SessionController = Depends(get_controller)):
    """Redo the next combine."""
    return _outcome(controller, controller.redo_combine())


# --------- export ---------
@router.get(
    "/{session_id}/download",
    summary="Download Current Image",
    description="""
    Download the image currently on screen.

    **Formats:**
    - `png` - the current image in its own encoding
    - `jpg` - JPEG with transparent areas flattened onto white

    The file is named `{tag}-{unix_millis}.{ext}` where `tag` names the
    operation that produced the image.
    """,
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}, "image/jpeg": {}}, "description": "Image file"},
    },
)
async def download(
    fmt: str = Query("png", alias="format", description="Download format: png or jpg"),
    controller: SessionController = Depends(get_controller),
):
    """Download the current image."""
    exported = controller.export(fmt)
    return Response(
        content=exported.data,
        media_type=exported.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
