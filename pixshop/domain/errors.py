from __future__ import annotations


class PixshopError(Exception):
    """Base error. `kind` selects the user-visible error category."""

    kind = "internal"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PreconditionError(PixshopError):
    kind = "precondition"


class HistoryError(PreconditionError):
    pass


class NothingToUndoError(HistoryError):
    def __init__(self) -> None:
        super().__init__("Nothing to undo")


class NothingToRedoError(HistoryError):
    def __init__(self) -> None:
        super().__init__("Nothing to redo")


class TransformServiceError(PixshopError):
    """The image transform service did not return an image."""

    kind = "service"


class PromptBlockedError(TransformServiceError):
    def __init__(self, reason: str, detail: str | None = None) -> None:
        message = f"The request was blocked. Reason: {reason}."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.reason = reason
        self.detail = detail


class GenerationStoppedError(TransformServiceError):
    def __init__(self, context: str, finish_reason: str) -> None:
        super().__init__(
            f"Image generation for {context} stopped unexpectedly. Reason: {finish_reason}. "
            "This is usually related to safety settings."
        )
        self.context = context
        self.finish_reason = finish_reason


class NoImageReturnedError(TransformServiceError):
    def __init__(self, context: str, text: str | None = None) -> None:
        message = f"The AI model did not return an image for the {context}. "
        if text:
            message += f'The model responded with text: "{text}"'
        else:
            message += (
                "This can happen because of safety filters or when the request is too complex. "
                "Try rephrasing the instruction to be more direct."
            )
        super().__init__(message)
        self.context = context
        self.text = text


class UpscaleError(PixshopError):
    kind = "upscale"


class ImagingError(PixshopError):
    """Decoding, encoding or resampling failed locally."""

    kind = "resource"


class SessionBusyError(PixshopError):
    kind = "busy"

    def __init__(self) -> None:
        super().__init__("Another operation is already in progress")


class DisplayHandleError(PixshopError):
    kind = "resource"


class ConfigError(PixshopError):
    kind = "config"
