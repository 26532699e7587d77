# 【入口】整个程序的启动点
from fastapi import FastAPI
from loguru import logger
import sys

from action_engine.api.deps import close_action_engine, get_action_engine
from action_engine.api.v1.router import api_router
from action_engine.core.config import settings
from action_engine.core.redis_client import redis_client


# ========================================
# Loguru 日志配置
# ========================================
def setup_logger():
    """配置 loguru 日志系统"""
    # 移除默认的 handler
    logger.remove()

    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL,
        colorize=True,
    )

    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="100 MB",
            retention="10 days",
            compression="zip",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=settings.LOG_LEVEL,
        )

    logger.info("Loguru 日志系统初始化完成")


setup_logger()


# ========================================
# FastAPI 应用配置
# ========================================
app = FastAPI(
    title="Action Engine - 行动推荐与过滤",
    description="按意图/话题/地点推荐公民参与行动，支持模糊搜索、多条件过滤与偏好反馈",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# 注册所有路由，统一加前缀 /api/v1
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """应用启动事件：先连 Redis，再创建引擎（Redis 不可用时偏好只保存在内存）"""
    logger.info("=" * 60)
    logger.info("行动推荐引擎正在启动...")
    logger.info(f"调试模式: {settings.DEBUG}")
    logger.info(f"日志级别: {settings.LOG_LEVEL}")
    logger.info("=" * 60)
    await redis_client.connect()
    get_action_engine()


@app.on_event("shutdown")
async def shutdown_event():
    """应用关闭事件：写回未落盘的偏好后再断开 Redis"""
    logger.info("行动推荐引擎正在关闭...")
    await close_action_engine()
    await redis_client.close()


@app.get("/")
def health_check():
    """健康检查端点"""
    return {
        "status": "ok",
        "message": "Action Engine is running!",
        "version": "1.0.0",
        "redis_connected": redis_client.is_connected,
    }
