from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from action_engine.api.deps import get_action_engine
from action_engine.schemas.preference_schema import PreferenceSnapshotResponse
from action_engine.services.engine_service import ActionEngine

router = APIRouter()


@router.get("/{user_id}/export", response_model=PreferenceSnapshotResponse, summary="导出用户偏好快照")
async def export_preferences(
    user_id: str,
    engine: ActionEngine = Depends(get_action_engine),
) -> PreferenceSnapshotResponse:
    try:
        data = json.loads(await engine.export_preference_state(user_id))
        return PreferenceSnapshotResponse(user_id=user_id, **data)
    except Exception as exc:
        logger.error(f"导出偏好失败: user_id={user_id}, err={exc}")
        raise HTTPException(
            status_code=500,
            detail={"error_code": "INTERNAL_ERROR", "error_message": f"导出偏好失败: {exc}"},
        ) from exc
