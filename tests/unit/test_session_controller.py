import asyncio
import io
import re
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from pixshop.application.use_cases.session_controller import SessionController
from pixshop.domain.entities.geometry import Point
from pixshop.domain.entities.image import GeneratedImage
from pixshop.domain.entities.presets import ADJUSTMENT_PRESETS
from pixshop.domain.entities.session import EditorTab, SessionMode
from pixshop.domain.errors import NoImageReturnedError, PreconditionError, SessionBusyError
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.infrastructure.storage.display_storage import DisplayStorage


@pytest.fixture()
def display(tmp_path):
    return DisplayStorage(tmp_path / "display")


@pytest.fixture()
def transform(png_bytes):
    service = AsyncMock()
    generated = GeneratedImage(data=png_bytes(512, 512))
    for name in ("edit_at_point", "global_adjust", "apply_filter", "remove_background", "combine"):
        getattr(service, name).return_value = generated
    service.upscale.return_value = GeneratedImage(data=png_bytes(1024, 1024))
    return service


@pytest.fixture()
def controller(transform, display):
    return SessionController("sess_test", transform=transform, imaging=ImagingService(), display=display)


def size_of(data: bytes) -> tuple[int, int]:
    return Image.open(io.BytesIO(data)).size


def test_retouch_end_to_end(controller, transform, png_bytes):
    controller.start_editor(png_bytes(800, 600))
    controller.set_hotspot(100, 100, 400, 300)
    assert controller.session.hotspot.native == Point(200, 200)

    s = asyncio.run(controller.generate("remove the mug"))

    transform.edit_at_point.assert_awaited_once()
    _, text, hotspot = transform.edit_at_point.await_args.args
    assert text == "remove the mug"
    assert hotspot == Point(200, 200)
    assert s.editor_history.length == 2
    assert s.editor_history.cursor == 1
    current = s.editor_history.current()
    assert (current.width, current.height) == (800, 600)
    assert size_of(current.data) == (800, 600)
    assert current.tag == "edited"
    assert s.hotspot is None
    assert s.busy is False and s.busy_message is None
    assert s.error is None


def test_generate_without_hotspot_is_global(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    asyncio.run(controller.generate("make it brighter"))
    transform.edit_at_point.assert_not_awaited()
    transform.global_adjust.assert_awaited_once()


def test_generate_requires_image_and_prompt(controller, transform, png_bytes):
    s = asyncio.run(controller.generate("anything"))
    assert s.error.kind == "precondition"

    controller.start_editor(png_bytes(40, 30))
    s = asyncio.run(controller.generate("   "))
    assert s.error.kind == "precondition"
    transform.global_adjust.assert_not_awaited()
    assert s.editor_history.length == 1


def test_service_error_leaves_history_intact(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    transform.global_adjust.side_effect = NoImageReturnedError("adjustment")

    s = asyncio.run(controller.apply_adjustment("warmer"))

    assert s.error.kind == "service"
    assert s.error.message.startswith("Failed to apply the adjustment.")
    assert s.editor_history.length == 1
    assert s.busy is False


def test_unexpected_exception_is_reported_as_service_error(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    transform.apply_filter.side_effect = RuntimeError("connection reset")

    s = asyncio.run(controller.apply_filter("vintage"))

    assert s.error.kind == "service"
    assert "connection reset" in s.error.message
    assert s.editor_history.length == 1


def test_upscale_failure_still_restores_original_size(controller, transform, png_bytes):
    controller.start_editor(png_bytes(120, 90))
    transform.upscale.side_effect = RuntimeError("upscale down")

    s = asyncio.run(controller.apply_filter("noir"))

    assert s.error is None
    assert size_of(s.editor_history.current().data) == (120, 90)
    assert s.editor_history.current().tag == "filtered"


def test_busy_session_rejects_other_operations(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    result = GeneratedImage(data=png_bytes(20, 20))

    async def scenario():
        gate = asyncio.Event()

        async def slow(*args):
            await gate.wait()
            return result

        transform.global_adjust.side_effect = slow
        task = asyncio.create_task(controller.generate("brighter"))
        await asyncio.sleep(0)
        assert controller.session.busy
        assert controller.session.busy_message
        with pytest.raises(SessionBusyError):
            controller.undo()
        with pytest.raises(SessionBusyError):
            await controller.apply_filter("noir")
        with pytest.raises(SessionBusyError):
            controller.start_over()
        assert controller.session.error is None
        gate.set()
        return await task

    s = asyncio.run(scenario())
    assert s.busy is False
    assert s.editor_history.length == 2
    transform.apply_filter.assert_not_awaited()


def test_hotspot_only_in_retouch_tab(controller, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    controller.select_tab(EditorTab.ADJUST)

    s = controller.set_hotspot(10, 10, 40, 30)

    assert s.hotspot is None
    assert s.error.kind == "precondition"


def test_undo_redo_reset_through_controller(controller, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    asyncio.run(controller.apply_filter("noir"))
    asyncio.run(controller.apply_filter("sepia"))

    assert controller.undo().editor_history.cursor == 1
    assert controller.redo().editor_history.cursor == 2
    s = controller.reset()
    assert s.editor_history.cursor == 0
    assert s.editor_history.length == 3

    s = controller.undo()
    assert s.error.kind == "precondition"
    assert s.error.message == "Nothing to undo"
    assert s.editor_history.cursor == 0


def test_remove_background_validates_aggressiveness(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))

    s = asyncio.run(controller.remove_background(7))
    assert s.error.kind == "precondition"
    transform.remove_background.assert_not_awaited()

    s = asyncio.run(controller.remove_background(5))
    assert s.error is None
    assert transform.remove_background.await_args.args[1] == 5
    assert s.editor_history.current().tag == "bg-removed"


def test_adjustment_preset_uses_preset_instruction(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))

    asyncio.run(controller.apply_adjustment_preset("warmer-lighting"))
    assert transform.global_adjust.await_args.args[1] == ADJUSTMENT_PRESETS["warmer-lighting"].instruction

    s = asyncio.run(controller.apply_adjustment_preset("sparkles"))
    assert s.error.kind == "precondition"


def test_combine_requires_every_precondition(controller, transform, png_bytes):
    controller.start_combine(png_bytes(400, 200), png_bytes(300, 300))

    s = asyncio.run(controller.combine("the red car"))
    assert s.error.kind == "precondition"

    controller.select_source(50, 25, 200, 100)
    s = asyncio.run(controller.combine("the red car"))
    assert s.error.kind == "precondition"

    controller.select_destination(10, 20, 150, 150)
    s = asyncio.run(controller.combine("  "))
    assert s.error.kind == "precondition"

    transform.combine.assert_not_awaited()
    assert s.destination_history.length == 1


def test_combine_end_to_end(controller, transform, png_bytes):
    s = controller.start_combine(png_bytes(400, 200), png_bytes(300, 300))
    assert s.mode is SessionMode.COMBINE
    controller.select_source(50, 25, 200, 100)
    controller.select_destination(10, 20, 150, 150)

    s = asyncio.run(controller.combine("the red car"))

    args = transform.combine.await_args.args
    assert args[2] == "the red car"
    assert args[3] == Point(100, 50)
    assert args[4] == Point(20, 40)
    assert s.error is None
    assert s.destination_history.length == 2
    assert size_of(s.destination_history.current().data) == (300, 300)
    assert s.source_selection is None and s.destination_target is None

    assert controller.undo_combine().destination_history.cursor == 0
    assert controller.redo_combine().destination_history.cursor == 1


def test_start_over_clears_everything(controller, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    s = controller.start_over()
    assert s.mode is SessionMode.START
    assert s.editor_history.length == 0
    assert s.current_image() is None


def test_invalid_upload_is_a_precondition_error(controller):
    s = controller.start_editor(b"definitely not an image")
    assert s.mode is SessionMode.START
    assert s.error.kind == "precondition"


def test_display_handles_follow_visible_images(controller, display, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    assert display.live_count == 2  # current + original

    asyncio.run(controller.apply_filter("noir"))
    assert display.live_count == 2
    first_url = controller.bindings.urls()["editor.current"]

    controller.undo()
    assert display.live_count == 2
    assert controller.bindings.urls()["editor.current"] != first_url

    controller.start_over()
    assert display.live_count == 0

    controller.start_combine(png_bytes(40, 30), png_bytes(40, 30))
    assert display.live_count == 2
    controller.close()
    assert display.live_count == 0


def test_export_png_returns_current_encoding(controller, png_bytes):
    data = png_bytes(40, 30)
    controller.start_editor(data)

    exported = controller.export("png")

    assert exported.data == data
    assert exported.mime_type == "image/png"
    assert re.fullmatch(r"original-\d+\.png", exported.filename)


def test_export_jpg_flattens_transparency_onto_white(controller, png_bytes):
    controller.start_editor(png_bytes(8, 6, color=(0, 0, 0), alpha=0))

    exported = controller.export("jpg")

    img = Image.open(io.BytesIO(exported.data))
    assert img.format == "JPEG"
    r, g, b = img.convert("RGB").getpixel((4, 3))
    assert min(r, g, b) >= 250
    assert exported.filename.endswith(".jpg")


def test_export_rejects_unknown_format_and_empty_session(controller, png_bytes):
    with pytest.raises(PreconditionError):
        controller.export("png")
    assert controller.session.error.kind == "precondition"

    controller.start_editor(png_bytes(8, 6))
    with pytest.raises(PreconditionError):
        controller.export("gif")


def test_failed_export_while_busy_leaves_error_slot_to_generation(controller, transform, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    result = GeneratedImage(data=png_bytes(20, 20))

    async def scenario():
        gate = asyncio.Event()

        async def slow(*args):
            await gate.wait()
            return result

        transform.global_adjust.side_effect = slow
        task = asyncio.create_task(controller.generate("brighter"))
        await asyncio.sleep(0)
        with pytest.raises(PreconditionError):
            controller.export("gif")
        assert controller.session.error is None
        gate.set()
        return await task

    s = asyncio.run(scenario())
    assert s.editor_history.length == 2
    assert s.error is None


def test_undo_clears_hotspot(controller, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    asyncio.run(controller.apply_filter("noir"))
    controller.set_hotspot(10, 10, 40, 30)
    assert controller.session.hotspot is not None

    s = controller.undo()

    assert s.editor_history.cursor == 0
    assert s.hotspot is None


def test_reset_clears_hotspot(controller, png_bytes):
    controller.start_editor(png_bytes(40, 30))
    asyncio.run(controller.apply_filter("noir"))
    controller.set_hotspot(10, 10, 40, 30)

    s = controller.reset()

    assert s.editor_history.cursor == 0
    assert s.hotspot is None


def test_combine_with_only_destination_target_is_rejected(controller, transform, png_bytes):
    controller.start_combine(png_bytes(400, 200), png_bytes(300, 300))
    controller.select_destination(10, 20, 150, 150)
    assert controller.session.source_selection is None

    s = asyncio.run(controller.combine("the red car"))

    assert s.error.kind == "precondition"
    assert s.destination_history.length == 1
    transform.combine.assert_not_awaited()
