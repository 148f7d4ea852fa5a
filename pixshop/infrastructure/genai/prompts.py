from __future__ import annotations

from pixshop.domain.entities.geometry import Point

_ETHICS_POLICY = """Safety and ethics policy:
- You MUST fulfil requests to adjust skin tone such as 'give me a tan', 'darken my skin' or 'lighten my skin'. These are standard photo enhancements.
- You MUST REFUSE any request to change a person's fundamental race or ethnicity (for example 'make me look Asian', 'change this person to be Black'). Do not perform these edits. If a request is ambiguous, err on the side of caution and do not alter racial characteristics."""

_AGGRESSIVENESS_GUIDANCE = {
    1: "Be extremely conservative at the edges: keep every fine detail such as hair strands and soft shadows, even if a little background remains.",
    2: "Be conservative at the edges: preserve fine detail and only remove background you are sure about.",
    3: "Balance edge precision and cleanup: remove the background cleanly while keeping natural edges.",
    4: "Clean up aggressively: remove background remnants and halos even if some very fine edge detail is lost.",
    5: "Clean up as aggressively as possible: no trace of the background may remain, prefer crisp edges over fine detail.",
}


def edit_prompt(instruction: str, hotspot: Point) -> str:
    return f"""You are an expert photo editing AI. Perform a natural, localized edit on the provided image based on the user's request.
User request: "{instruction}"
Edit location: focus on the area around pixel coordinates (x: {int(hotspot.x)}, y: {int(hotspot.y)}).

Editing guidelines:
- The edit must be realistic and blend seamlessly with the surrounding area.
- The rest of the image (outside the immediate edit area) must remain identical to the original.

{_ETHICS_POLICY}

Output: return ONLY the final edited image. Do not return text."""


def adjustment_prompt(instruction: str) -> str:
    return f"""You are an expert photo editing AI. Perform a natural, global adjustment to the entire image based on the user's request.
User request: "{instruction}"

Editing guidelines:
- The adjustment must be applied across the entire image.
- The result must be photorealistic.

{_ETHICS_POLICY}

Output: return ONLY the final adjusted image. Do not return text."""


def filter_prompt(instruction: str) -> str:
    return f"""You are an expert photo editing AI. Apply a stylistic filter to the entire image based on the user's request. Do not change the composition or content, only apply the style.
Filter request: "{instruction}"

Safety and ethics policy:
- Filters may subtly shift colors, but you MUST ensure they do not alter a person's fundamental race or ethnicity.
- You MUST REFUSE any request that explicitly asks to change a person's race.

Output: return ONLY the final filtered image. Do not return text."""


def remove_background_prompt(aggressiveness: int) -> str:
    guidance = _AGGRESSIVENESS_GUIDANCE[aggressiveness]
    return f"""You are an expert photo editing AI. Identify the main subject of the image, remove the background completely and replace it with pure white (#FFFFFF). The main subject must stay unchanged and be cut out precisely.
Edge handling (level {aggressiveness} of 5): {guidance}

Safety and ethics policy:
- You MUST REFUSE any request to change a person's fundamental race or ethnicity.

Output: return ONLY the final image with the background removed. Do not return text."""


def upscale_prompt() -> str:
    return """You are an expert image restoration AI. Upscale the provided image to twice its resolution, recovering fine detail and texture. Do not change the content, composition, colors or framing in any way.

Output: return ONLY the upscaled image. Do not return text."""


def combine_prompt(instruction: str, source_point: Point, destination_point: Point) -> str:
    return f"""You are an image compositing expert. Take an element from a 'source image' and place it into a 'destination image'.

1. Identify the element: in the source image (the first image), find the element described as "{instruction}" near coordinates (x: {int(source_point.x)}, y: {int(source_point.y)}).
2. Extract the element: cut it out precisely.
3. Place it: insert the extracted element into the destination image (the second image) at approximately (x: {int(destination_point.x)}, y: {int(destination_point.y)}).
4. Blend naturally: adjust lighting, shadows, color and perspective of the placed element so it integrates seamlessly with the destination. The result must be a single photorealistic image.

Output: return ONLY the final combined image. Do not return text."""
