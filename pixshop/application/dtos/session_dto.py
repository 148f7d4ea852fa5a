from __future__ import annotations

from pydantic import BaseModel, Field

from pixshop.domain.entities.edit_history import EditHistory
from pixshop.domain.entities.geometry import MappedPoint
from pixshop.domain.entities.image import ImageSnapshot
from pixshop.domain.entities.session import EditorTab, Session, SessionMode


class PointModel(BaseModel):
    x: float = Field(..., description="Horizontal coordinate in pixels", example=200)
    y: float = Field(..., description="Vertical coordinate in pixels", example=100)


class SelectionModel(BaseModel):
    """A selected point in display and native coordinates."""
    display: PointModel = Field(..., description="Point within the rendered element")
    native: PointModel = Field(..., description="Point within the image's native resolution")

    @classmethod
    def from_point(cls, point: MappedPoint | None) -> SelectionModel | None:
        if point is None:
            return None
        return cls(
            display=PointModel(x=point.display.x, y=point.display.y),
            native=PointModel(x=point.native.x, y=point.native.y),
        )


class SnapshotMetadata(BaseModel):
    """Metadata of one image snapshot."""
    width: int = Field(..., description="Native width in pixels", example=800, gt=0)
    height: int = Field(..., description="Native height in pixels", example=600, gt=0)
    mime_type: str = Field(..., description="MIME type of the image", example="image/png")
    tag: str = Field(..., description="Operation that produced the snapshot", example="edited")
    url: str | None = Field(None, description="Temporary display URL", example="/display/4f2c9e")

    @classmethod
    def from_snapshot(cls, snapshot: ImageSnapshot | None, url: str | None = None) -> SnapshotMetadata | None:
        if snapshot is None:
            return None
        return cls(
            width=snapshot.width,
            height=snapshot.height,
            mime_type=snapshot.mime_type,
            tag=snapshot.tag,
            url=url,
        )


class HistoryState(BaseModel):
    """Undo/redo state of one edit history."""
    length: int = Field(..., description="Number of snapshots in the history", example=2, ge=0)
    cursor: int = Field(..., description="Index of the current snapshot (-1 when empty)", example=1)
    can_undo: bool = Field(..., description="Whether undo is possible")
    can_redo: bool = Field(..., description="Whether redo is possible")
    current: SnapshotMetadata | None = Field(None, description="Snapshot at the cursor")
    original: SnapshotMetadata | None = Field(None, description="Original upload (index 0)")

    @classmethod
    def from_history(
        cls, history: EditHistory, current_url: str | None = None, original_url: str | None = None
    ) -> HistoryState:
        return cls(
            length=history.length,
            cursor=history.cursor,
            can_undo=history.can_undo,
            can_redo=history.can_redo,
            current=SnapshotMetadata.from_snapshot(history.current(), current_url),
            original=SnapshotMetadata.from_snapshot(history.original(), original_url),
        )


class ErrorState(BaseModel):
    kind: str = Field(..., description="Error category", example="precondition")
    message: str = Field(..., description="User-visible error message")


class SessionStateResponse(BaseModel):
    """Full state of an editing session."""
    id: str = Field(..., description="Session identifier", example="sess_3f9a1c2b7d4e")
    mode: SessionMode = Field(..., description="Current mode: start, editor or combine")
    active_tab: EditorTab = Field(..., description="Active editor tab")
    busy: bool = Field(..., description="Whether a generation is in flight")
    busy_message: str | None = Field(None, description="Progress message while busy")
    error: ErrorState | None = Field(None, description="Current error, if any")
    editor: HistoryState = Field(..., description="Single-image editor history")
    hotspot: SelectionModel | None = Field(None, description="Selected retouch hotspot")
    source: SnapshotMetadata | None = Field(None, description="Combine source image")
    destination: HistoryState = Field(..., description="Combine destination history")
    source_selection: SelectionModel | None = Field(None, description="Selected source element")
    destination_target: SelectionModel | None = Field(None, description="Selected destination target")

    @classmethod
    def from_session(cls, session: Session, urls: dict[str, str]) -> SessionStateResponse:
        return cls(
            id=session.id,
            mode=session.mode,
            active_tab=session.active_tab,
            busy=session.busy,
            busy_message=session.busy_message,
            error=ErrorState(kind=session.error.kind, message=session.error.message) if session.error else None,
            editor=HistoryState.from_history(
                session.editor_history, urls.get("editor.current"), urls.get("editor.original")
            ),
            hotspot=SelectionModel.from_point(session.hotspot),
            source=SnapshotMetadata.from_snapshot(session.source_image, urls.get("combine.source")),
            destination=HistoryState.from_history(
                session.destination_history, urls.get("combine.destination")
            ),
            source_selection=SelectionModel.from_point(session.source_selection),
            destination_target=SelectionModel.from_point(session.destination_target),
        )


class PointerRequest(BaseModel):
    """A click on a rendered image, with the element's rendered size."""
    offset_x: float = Field(..., description="Pointer X offset within the rendered element", example=100)
    offset_y: float = Field(..., description="Pointer Y offset within the rendered element", example=100)
    client_width: float = Field(..., description="Rendered element width", example=400, gt=0)
    client_height: float = Field(..., description="Rendered element height", example=300, gt=0)


class PromptRequest(BaseModel):
    prompt: str = Field(..., description="Natural-language instruction", example="remove the red mug")


class TabRequest(BaseModel):
    tab: EditorTab = Field(..., description="Editor tab to activate", example="retouch")


class RemoveBackgroundRequest(BaseModel):
    aggressiveness: int = Field(
        3, description="Edge cleanup level (1 = preserve detail, 5 = aggressive cleanup)", example=3, ge=1, le=5
    )


class PresetItem(BaseModel):
    id: str = Field(..., description="Preset identifier", example="warmer-lighting")
    name: str = Field(..., description="Display name", example="Warmer Lighting")
    instruction: str = Field(..., description="Instruction sent to the adjustment service")


class ListPresetsResponse(BaseModel):
    presets: list[PresetItem] = Field(..., description="Available adjustment presets")
