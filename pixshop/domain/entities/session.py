from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from pixshop.domain.entities.edit_history import EditHistory
from pixshop.domain.entities.geometry import MappedPoint
from pixshop.domain.entities.image import ImageSnapshot


class SessionMode(str, Enum):
    START = "start"
    EDITOR = "editor"
    COMBINE = "combine"


class EditorTab(str, Enum):
    RETOUCH = "retouch"
    ADJUST = "adjust"
    FILTERS = "filters"
    REMOVE_BG = "remove-bg"


@dataclass(frozen=True)
class SessionError:
    kind: str  # precondition | service | upscale | resource
    message: str


@dataclass(frozen=True)
class Session:
    """Complete state of one editing session.

    Transitions never mutate; each returns a new Session. Entering a mode
    starts from a blank session so no state leaks across modes.
    """

    id: str
    mode: SessionMode = SessionMode.START
    # editor mode
    editor_history: EditHistory = field(default_factory=EditHistory)
    active_tab: EditorTab = EditorTab.RETOUCH
    hotspot: MappedPoint | None = None
    # combine mode
    source_image: ImageSnapshot | None = None
    destination_history: EditHistory = field(default_factory=EditHistory)
    source_selection: MappedPoint | None = None
    destination_target: MappedPoint | None = None
    # shared
    busy: bool = False
    busy_message: str | None = None
    error: SessionError | None = None

    # ---- mode transitions ----
    def start_editor(self, image: ImageSnapshot) -> Session:
        return Session(id=self.id, mode=SessionMode.EDITOR, editor_history=EditHistory.init(image))

    def start_combine(self, source: ImageSnapshot, destination: ImageSnapshot) -> Session:
        return Session(
            id=self.id,
            mode=SessionMode.COMBINE,
            source_image=source,
            destination_history=EditHistory.init(destination),
        )

    def start_over(self) -> Session:
        return Session(id=self.id)

    # ---- editor ----
    def with_tab(self, tab: EditorTab) -> Session:
        return replace(self, active_tab=tab)

    def with_hotspot(self, hotspot: MappedPoint | None) -> Session:
        return replace(self, hotspot=hotspot)

    def editor_appended(self, image: ImageSnapshot) -> Session:
        return replace(self, editor_history=self.editor_history.append(image), hotspot=None)

    def editor_undone(self) -> Session:
        return replace(self, editor_history=self.editor_history.undo(), hotspot=None)

    def editor_redone(self) -> Session:
        return replace(self, editor_history=self.editor_history.redo())

    def editor_reset(self) -> Session:
        return replace(self, editor_history=self.editor_history.reset(), hotspot=None, error=None)

    # ---- combine ----
    def with_source_selection(self, point: MappedPoint | None) -> Session:
        return replace(self, source_selection=point)

    def with_destination_target(self, point: MappedPoint | None) -> Session:
        return replace(self, destination_target=point)

    def destination_appended(self, image: ImageSnapshot) -> Session:
        return replace(
            self,
            destination_history=self.destination_history.append(image),
            source_selection=None,
            destination_target=None,
        )

    def destination_undone(self) -> Session:
        return replace(self, destination_history=self.destination_history.undo())

    def destination_redone(self) -> Session:
        return replace(self, destination_history=self.destination_history.redo())

    # ---- busy / error slot ----
    def began(self, message: str) -> Session:
        return replace(self, busy=True, busy_message=message, error=None)

    def progressed(self, message: str) -> Session:
        return replace(self, busy_message=message)

    def finished(self) -> Session:
        return replace(self, busy=False, busy_message=None)

    def failed(self, kind: str, message: str) -> Session:
        return replace(self, error=SessionError(kind=kind, message=message))

    def error_dismissed(self) -> Session:
        return replace(self, error=None)

    # ---- queries ----
    def current_image(self) -> ImageSnapshot | None:
        """The snapshot a download would export: editor first, then destination."""
        return self.editor_history.current() or self.destination_history.current()
