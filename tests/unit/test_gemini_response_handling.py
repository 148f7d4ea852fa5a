import asyncio
from enum import Enum
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from pixshop.domain.entities.geometry import Point
from pixshop.domain.entities.image import ImageSnapshot
from pixshop.domain.errors import (
    ConfigError,
    GenerationStoppedError,
    NoImageReturnedError,
    PromptBlockedError,
)
from pixshop.infrastructure.genai.gemini_transform_service import GeminiTransformService, handle_response


class FinishReason(Enum):
    STOP = "STOP"
    SAFETY = "SAFETY"


def response(parts=(), finish_reason=None, block_reason=None, block_message=None):
    feedback = SimpleNamespace(block_reason=block_reason, block_reason_message=block_message)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=list(parts)), finish_reason=finish_reason)
    return SimpleNamespace(prompt_feedback=feedback, candidates=[candidate])


def image_part(data=b"\x89PNG", mime_type="image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)


def text_part(text):
    return SimpleNamespace(inline_data=None, text=text)


def test_returns_first_inline_image():
    out = handle_response(
        response([text_part("here you go"), image_part(b"one", "image/jpeg"), image_part(b"two")]), "edit"
    )
    assert out.data == b"one"
    assert out.mime_type == "image/jpeg"


def test_blocked_prompt_wins_over_everything():
    r = response([image_part()], block_reason=SimpleNamespace(name="SAFETY"), block_message="Unsafe content")
    with pytest.raises(PromptBlockedError) as info:
        handle_response(r, "edit")
    assert "SAFETY" in info.value.message
    assert "Unsafe content" in info.value.message


def test_abnormal_finish_reason():
    with pytest.raises(GenerationStoppedError) as info:
        handle_response(response([], finish_reason=FinishReason.SAFETY), "filter")
    assert info.value.finish_reason == "SAFETY"
    assert info.value.kind == "service"


def test_text_only_answer_is_reported():
    with pytest.raises(NoImageReturnedError) as info:
        handle_response(response([text_part("I cannot do that.")], finish_reason=FinishReason.STOP), "combine")
    assert 'I cannot do that.' in info.value.message
    assert "combination" in info.value.message


def test_empty_response_without_candidates():
    with pytest.raises(NoImageReturnedError) as info:
        handle_response(SimpleNamespace(prompt_feedback=None, candidates=[]), "upscale")
    assert info.value.text is None


def test_missing_api_key_is_a_config_error():
    service = GeminiTransformService(api_key=None)
    image = ImageSnapshot(data=b"x", mime_type="image/png", width=1, height=1)
    with pytest.raises(ConfigError):
        asyncio.run(service.global_adjust(image, "brighter"))


def test_sends_image_parts_before_prompt():
    service = GeminiTransformService(api_key="test-key", model="test-model")
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response([image_part(b"out")]))
    service._client = client
    source = ImageSnapshot(data=b"src", mime_type="image/png", width=1, height=1)
    destination = ImageSnapshot(data=b"dst", mime_type="image/jpeg", width=1, height=1)

    out = asyncio.run(service.combine(source, destination, "the lamp", Point(1, 2), Point(3, 4)))

    assert out.data == b"out"
    kwargs = client.aio.models.generate_content.await_args.kwargs
    assert kwargs["model"] == "test-model"
    contents = kwargs["contents"]
    assert len(contents) == 3
    assert isinstance(contents[-1], str)
    assert "the lamp" in contents[-1]
