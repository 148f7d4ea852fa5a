from __future__ import annotations

from fastapi import APIRouter

from pixshop.application.dtos.session_dto import ListPresetsResponse, PresetItem
from pixshop.domain.entities.presets import ADJUSTMENT_PRESETS

router = APIRouter(prefix="/presets", tags=["Presets"])


@router.get(
    "",
    response_model=ListPresetsResponse,
    summary="List Adjustment Presets",
    description="List the built-in adjustment presets accepted by `/sessions/{session_id}/adjust/presets/{preset_id}`.",
)
async def list_presets():
    """List adjustment presets."""
    return ListPresetsResponse(
        presets=[PresetItem(id=p.id, name=p.name, instruction=p.instruction) for p in ADJUSTMENT_PRESETS.values()]
    )
