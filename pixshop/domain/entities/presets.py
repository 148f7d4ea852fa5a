from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AdjustmentPreset:
    id: str
    name: str
    instruction: str


ADJUSTMENT_PRESETS: dict[str, AdjustmentPreset] = {
    p.id: p
    for p in (
        AdjustmentPreset(
            "blur-background",
            "Blur Background",
            "Apply a realistic depth-of-field effect, blurring the background while keeping the "
            "main subject in sharp focus.",
        ),
        AdjustmentPreset(
            "enhance-details",
            "Enhance Details",
            "Slightly enhance the sharpness and details of the image without making it look artificial.",
        ),
        AdjustmentPreset(
            "warmer-lighting",
            "Warmer Lighting",
            "Adjust the color temperature to give the image warmer, golden-hour style lighting.",
        ),
        AdjustmentPreset(
            "studio-light",
            "Studio Light",
            "Add dramatic, professional studio lighting to the main subject.",
        ),
    )
}
