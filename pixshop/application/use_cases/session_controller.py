from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from pixshop.domain.entities.image import GeneratedImage, ImageSnapshot
from pixshop.domain.entities.presets import ADJUSTMENT_PRESETS
from pixshop.domain.entities.session import EditorTab, Session
from pixshop.domain.errors import (
    ImagingError,
    PixshopError,
    PreconditionError,
    SessionBusyError,
)
from pixshop.domain.services.coordinate_mapper import map_pointer
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.domain.services.transform_service import DEFAULT_AGGRESSIVENESS, ImageTransformService
from pixshop.domain.services.upscale_pipeline import UpscalePipeline
from pixshop.infrastructure.storage.display_storage import DisplayBindings, DisplayStorage

logger = logging.getLogger(__name__)

ENHANCING_MESSAGE = "Enhancing image quality..."
EXPORT_FORMATS = ("png", "jpg")


@dataclass(frozen=True)
class ExportedImage:
    data: bytes
    mime_type: str
    filename: str


class SessionController:
    """
    Drives one editing session.

    Generative operations all follow the same sequence:
    1. Validate preconditions (no service call when they fail)
    2. Mark the session busy
    3. Call the image transform service
    4. Run the upscale pipeline against the original of the active history
    5. Append the result to that history and clear the transient selection
    6. Clear the busy flag

    Any failure lands in the session's single error slot and leaves history
    untouched. While an operation is in flight every other mutating call is
    rejected with SessionBusyError.
    """

    def __init__(
        self,
        session_id: str,
        transform: ImageTransformService,
        imaging: ImagingService,
        display: DisplayStorage,
        upscale: UpscalePipeline | None = None,
    ) -> None:
        self.session = Session(id=session_id)
        self.transform = transform
        self.imaging = imaging
        self.upscale = upscale or UpscalePipeline(transform=transform, imaging=imaging)
        self.bindings = DisplayBindings(display, owner=session_id)

    # --------- state plumbing ---------
    def _commit(self, session: Session) -> Session:
        self.session = session
        self._sync_display()
        return session

    def _sync_display(self) -> None:
        s = self.session
        self.bindings.bind("editor.current", s.editor_history.current())
        self.bindings.bind("editor.original", s.editor_history.original())
        self.bindings.bind("combine.source", s.source_image)
        self.bindings.bind("combine.destination", s.destination_history.current())

    def _fail(self, kind: str, message: str) -> Session:
        logger.info("Session %s error (%s): %s", self.session.id, kind, message)
        return self._commit(self.session.failed(kind, message))

    def _ensure_idle(self) -> None:
        if self.session.busy:
            raise SessionBusyError()

    def _apply(self, transition: Callable[[Session], Session]) -> Session:
        """Run a synchronous transition; precondition failures go to the error slot."""
        self._ensure_idle()
        try:
            return self._commit(transition(self.session.error_dismissed()))
        except PixshopError as exc:
            return self._fail(exc.kind, exc.message)

    async def _generate_into(
        self,
        target: str,
        busy_message: str,
        failure: str,
        tag: str,
        reference: ImageSnapshot,
        call: Callable[[], Awaitable[GeneratedImage]],
    ) -> Session:
        self._commit(self.session.began(busy_message))
        try:
            generated = await call()
            self._commit(self.session.progressed(ENHANCING_MESSAGE))
            result = await self.upscale.run(generated, reference, tag)
        except PixshopError as exc:
            self._fail(exc.kind, f"{failure} {exc.message}")
        except Exception as exc:
            logger.exception("Unexpected failure while generating (%s)", tag)
            self._fail("service", f"{failure} {str(exc) or 'An unknown error occurred.'}")
        else:
            if target == "editor":
                self._commit(self.session.editor_appended(result))
            else:
                self._commit(self.session.destination_appended(result))
            logger.info("Session %s: appended %s image to %s history", self.session.id, tag, target)
        finally:
            self._commit(self.session.finished())
        return self.session

    def _editor_images(self, action: str) -> tuple[ImageSnapshot, ImageSnapshot]:
        history = self.session.editor_history
        current, original = history.current(), history.original()
        if current is None or original is None:
            raise PreconditionError(f"No image loaded to {action}.")
        return current, original

    @staticmethod
    def _require_text(text: str | None, message: str) -> str:
        value = (text or "").strip()
        if not value:
            raise PreconditionError(message)
        return value

    def _decode_upload(self, data: bytes, mime_type: str | None, label: str) -> ImageSnapshot:
        try:
            return self.imaging.snapshot_from_bytes(data, mime_type)
        except ImagingError as exc:
            raise PreconditionError(f"The {label} is not a valid image: {exc.message}") from exc

    # --------- modes ---------
    def start_editor(self, data: bytes, mime_type: str | None = None) -> Session:
        return self._apply(lambda s: s.start_editor(self._decode_upload(data, mime_type, "uploaded file")))

    def start_combine(
        self,
        source: bytes,
        destination: bytes,
        source_mime: str | None = None,
        destination_mime: str | None = None,
    ) -> Session:
        def transition(s: Session) -> Session:
            src = self._decode_upload(source, source_mime, "source image")
            dst = self._decode_upload(destination, destination_mime, "destination image")
            return s.start_combine(src, dst)

        return self._apply(transition)

    def start_over(self) -> Session:
        return self._apply(lambda s: s.start_over())

    def dismiss_error(self) -> Session:
        return self._commit(self.session.error_dismissed())

    def close(self) -> None:
        """Release every display handle held by this session."""
        self.bindings.release_all()

    # --------- editor: selection and navigation ---------
    def select_tab(self, tab: EditorTab) -> Session:
        return self._apply(lambda s: s.with_tab(tab))

    def set_hotspot(
        self, offset_x: float, offset_y: float, client_width: float, client_height: float
    ) -> Session:
        def transition(s: Session) -> Session:
            current = s.editor_history.current()
            if current is None:
                raise PreconditionError("No image loaded to select a point on.")
            if s.active_tab is not EditorTab.RETOUCH:
                raise PreconditionError("Point selection is only available in the retouch tab.")
            point = map_pointer(
                offset_x, offset_y, client_width, client_height, current.width, current.height
            )
            return s.with_hotspot(point)

        return self._apply(transition)

    def clear_hotspot(self) -> Session:
        return self._apply(lambda s: s.with_hotspot(None))

    def undo(self) -> Session:
        return self._apply(lambda s: s.editor_undone())

    def redo(self) -> Session:
        return self._apply(lambda s: s.editor_redone())

    def reset(self) -> Session:
        return self._apply(lambda s: s.editor_reset())

    # --------- editor: generative operations ---------
    async def generate(self, prompt: str) -> Session:
        self._ensure_idle()
        try:
            current, original = self._editor_images("edit")
            text = self._require_text(prompt, "Please enter a description for your edit.")
        except PreconditionError as exc:
            return self._fail(exc.kind, exc.message)
        hotspot = self.session.hotspot

        async def call() -> GeneratedImage:
            if hotspot is not None:
                return await self.transform.edit_at_point(current, text, hotspot.native)
            return await self.transform.global_adjust(current, text)

        return await self._generate_into(
            "editor", "The AI is working its magic...", "Failed to generate the image.", "edited", original, call
        )

    async def apply_filter(self, prompt: str) -> Session:
        self._ensure_idle()
        try:
            current, original = self._editor_images("apply a filter to")
            text = self._require_text(prompt, "Please describe the filter to apply.")
        except PreconditionError as exc:
            return self._fail(exc.kind, exc.message)
        return await self._generate_into(
            "editor",
            "Applying filter...",
            "Failed to apply the filter.",
            "filtered",
            original,
            lambda: self.transform.apply_filter(current, text),
        )

    async def apply_adjustment(self, prompt: str) -> Session:
        self._ensure_idle()
        try:
            current, original = self._editor_images("apply an adjustment to")
            text = self._require_text(prompt, "Please describe the adjustment to apply.")
        except PreconditionError as exc:
            return self._fail(exc.kind, exc.message)
        return await self._generate_into(
            "editor",
            "Applying adjustment...",
            "Failed to apply the adjustment.",
            "adjusted",
            original,
            lambda: self.transform.global_adjust(current, text),
        )

    async def apply_adjustment_preset(self, preset_id: str) -> Session:
        preset = ADJUSTMENT_PRESETS.get(preset_id)
        if preset is None:
            self._ensure_idle()
            return self._fail("precondition", f"Unknown adjustment preset: {preset_id}")
        return await self.apply_adjustment(preset.instruction)

    async def remove_background(self, aggressiveness: int = DEFAULT_AGGRESSIVENESS) -> Session:
        self._ensure_idle()
        try:
            current, original = self._editor_images("remove the background from")
            if not 1 <= int(aggressiveness) <= 5:
                raise PreconditionError("Aggressiveness must be between 1 and 5.")
        except PreconditionError as exc:
            return self._fail(exc.kind, exc.message)
        level = int(aggressiveness)
        return await self._generate_into(
            "editor",
            "Removing the background...",
            "Failed to remove the background.",
            "bg-removed",
            original,
            lambda: self.transform.remove_background(current, level),
        )

    # --------- combine ---------
    def select_source(
        self, offset_x: float, offset_y: float, client_width: float, client_height: float
    ) -> Session:
        def transition(s: Session) -> Session:
            if s.source_image is None:
                raise PreconditionError("No source image loaded.")
            point = map_pointer(
                offset_x, offset_y, client_width, client_height, s.source_image.width, s.source_image.height
            )
            return s.with_source_selection(point)

        return self._apply(transition)

    def select_destination(
        self, offset_x: float, offset_y: float, client_width: float, client_height: float
    ) -> Session:
        def transition(s: Session) -> Session:
            current = s.destination_history.current()
            if current is None:
                raise PreconditionError("No destination image loaded.")
            point = map_pointer(
                offset_x, offset_y, client_width, client_height, current.width, current.height
            )
            return s.with_destination_target(point)

        return self._apply(transition)

    async def combine(self, prompt: str) -> Session:
        self._ensure_idle()
        s = self.session
        source = s.source_image
        destination = s.destination_history.current()
        original = s.destination_history.original()
        source_point, destination_point = s.source_selection, s.destination_target
        if (
            source is None
            or destination is None
            or original is None
            or source_point is None
            or destination_point is None
        ):
            return self._fail(
                "precondition",
                "Please select a source element and a destination location before combining.",
            )
        if not (prompt or "").strip():
            return self._fail("precondition", "Please describe the element you want to move.")
        text = prompt.strip()
        return await self._generate_into(
            "destination",
            "The AI is combining the images...",
            "Failed to combine the images.",
            "combined",
            original,
            lambda: self.transform.combine(
                source, destination, text, source_point.native, destination_point.native
            ),
        )

    def undo_combine(self) -> Session:
        return self._apply(lambda s: s.destination_undone())

    def redo_combine(self) -> Session:
        return self._apply(lambda s: s.destination_redone())

    # --------- export ---------
    def export(self, fmt: str) -> ExportedImage:
        """Current image as its original encoding ("png") or as JPEG over white ("jpg")."""
        try:
            if fmt not in EXPORT_FORMATS:
                raise PreconditionError(f"Unsupported download format: {fmt}")
            snapshot = self.session.current_image()
            if snapshot is None:
                raise PreconditionError("No image to download.")
            stamp = int(time.time() * 1000)
            if fmt == "png":
                return ExportedImage(
                    data=snapshot.data,
                    mime_type=snapshot.mime_type,
                    filename=f"{snapshot.tag}-{stamp}.{snapshot.extension}",
                )
            try:
                data = self.imaging.to_jpeg_on_white(snapshot.data)
            except ImagingError as exc:
                raise ImagingError(f"Could not convert the image to JPG: {exc.message}") from exc
            return ExportedImage(data=data, mime_type="image/jpeg", filename=f"{snapshot.tag}-{stamp}.jpg")
        except PixshopError as exc:
            # the error slot belongs to the in-flight generation while busy
            if not self.session.busy:
                self._fail(exc.kind, exc.message)
            raise
