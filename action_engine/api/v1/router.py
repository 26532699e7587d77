# 路由汇总
from fastapi import APIRouter

from action_engine.api.v1.endpoints import actions, preferences

api_router = APIRouter()

# 行动推荐与反馈 (访问地址: /api/v1/actions/...)
api_router.include_router(actions.router, prefix="/actions", tags=["行动推荐模块"])

# 偏好导出 (访问地址: /api/v1/preferences/...)
api_router.include_router(preferences.router, prefix="/preferences", tags=["用户偏好模块"])
