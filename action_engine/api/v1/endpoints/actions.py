"""
行动推荐 API 端点

- 生成：按意图/话题/地点组装一轮推荐（目录不可用时返回兜底行动）
- 过滤：在当前结果集上做模糊搜索 + 结构化过滤
- 反馈：开始/完成/收藏/评分/停留时长，写入偏好缓存，总是返回 accepted
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from action_engine.api.deps import get_action_engine
from action_engine.schemas.action_schema import (
    ActionItem,
    ActionListResponse,
    CompleteActionRequest,
    FacetsResponse,
    FeedbackAcceptedResponse,
    FilterRequest,
    GenerateActionsRequest,
    GenerateActionsResponse,
    RateActionRequest,
    TimeSpentRequest,
)
from action_engine.services.engine_service import ActionEngine

router = APIRouter()


def _internal_error(message: str, exc: Exception) -> HTTPException:
    logger.error(f"{message}: {exc}")
    return HTTPException(
        status_code=500,
        detail={"error_code": "INTERNAL_ERROR", "error_message": f"{message}: {exc}"},
    )


def _bad_request(exc: ValueError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"error_code": "INVALID_ARGUMENT", "error_message": str(exc)},
    )


@router.post("/generate", response_model=GenerateActionsResponse, summary="生成行动推荐")
async def generate_actions(
    request: GenerateActionsRequest,
    engine: ActionEngine = Depends(get_action_engine),
) -> GenerateActionsResponse:
    try:
        cycle = await engine.generate_actions(request.user_id, request.to_context())
        return GenerateActionsResponse(
            generation=cycle.generation,
            stale=cycle.stale,
            count=len(cycle.actions),
            actions=[ActionItem.from_action(a) for a in cycle.actions],
        )
    except ValueError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:
        raise _internal_error("生成行动推荐失败", exc) from exc


@router.post("/{user_id}/filter", response_model=ActionListResponse, summary="过滤当前结果集")
async def filter_actions(
    user_id: str,
    request: FilterRequest,
    engine: ActionEngine = Depends(get_action_engine),
) -> ActionListResponse:
    try:
        actions = engine.filter_actions(user_id, request.to_filter_state())
        return ActionListResponse(count=len(actions), actions=[ActionItem.from_action(a) for a in actions])
    except ValueError as exc:
        raise _bad_request(exc) from exc
    except Exception as exc:
        raise _internal_error("过滤行动失败", exc) from exc


@router.get("/{user_id}/facets", response_model=FacetsResponse, summary="过滤选项统计（热门标签等）")
async def get_facets(
    user_id: str,
    engine: ActionEngine = Depends(get_action_engine),
) -> FacetsResponse:
    try:
        return FacetsResponse(**engine.facets(user_id))
    except Exception as exc:
        raise _internal_error("获取过滤选项失败", exc) from exc


@router.get("/{user_id}/recommendations", response_model=ActionListResponse, summary="个性化推荐（当前结果 TopN）")
async def get_recommendations(
    user_id: str,
    limit: int = Query(3, ge=1, le=20, description="返回条数（默认3）"),
    engine: ActionEngine = Depends(get_action_engine),
) -> ActionListResponse:
    try:
        actions = engine.personalized_recommendations(user_id, limit=limit)
        return ActionListResponse(count=len(actions), actions=[ActionItem.from_action(a) for a in actions])
    except Exception as exc:
        raise _internal_error("获取个性化推荐失败", exc) from exc


@router.delete("/{user_id}/session", response_model=FeedbackAcceptedResponse, summary="重置会话")
async def reset_session(
    user_id: str,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    engine.reset_session(user_id)
    return FeedbackAcceptedResponse()


# ========================================
# 反馈事件
# ========================================
@router.post("/{user_id}/{action_id}/start", response_model=FeedbackAcceptedResponse, summary="开始行动")
async def start_action(
    user_id: str,
    action_id: str,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    reported = await engine.start_action(user_id, action_id)
    return FeedbackAcceptedResponse(detail={"reported": reported})


@router.post("/{user_id}/{action_id}/complete", response_model=FeedbackAcceptedResponse, summary="完成行动")
async def complete_action(
    user_id: str,
    action_id: str,
    request: CompleteActionRequest | None = None,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    body = request or CompleteActionRequest()
    reported = await engine.complete_action(
        user_id,
        action_id,
        impact_reported=body.impact_reported,
        feedback=body.feedback,
    )
    return FeedbackAcceptedResponse(detail={"reported": reported})


@router.post("/{user_id}/{action_id}/save", response_model=FeedbackAcceptedResponse, summary="收藏行动")
async def save_action(
    user_id: str,
    action_id: str,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    recorded = await engine.record_save(user_id, action_id)
    return FeedbackAcceptedResponse(detail={"recorded": recorded})


@router.post("/{user_id}/{action_id}/rate", response_model=FeedbackAcceptedResponse, summary="评分")
async def rate_action(
    user_id: str,
    action_id: str,
    request: RateActionRequest,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    recorded = await engine.record_rating(user_id, action_id, request.rating, request.feedback)
    return FeedbackAcceptedResponse(detail={"recorded": recorded})


@router.post("/{user_id}/{action_id}/time", response_model=FeedbackAcceptedResponse, summary="记录停留时长")
async def record_time_spent(
    user_id: str,
    action_id: str,
    request: TimeSpentRequest,
    engine: ActionEngine = Depends(get_action_engine),
) -> FeedbackAcceptedResponse:
    recorded = await engine.record_time_spent(user_id, action_id, request.seconds)
    return FeedbackAcceptedResponse(detail={"recorded": recorded})
