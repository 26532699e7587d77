# 读取 .env 配置
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # 日志
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Redis（偏好状态持久化）
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None
    REDIS_UNIX_SOCKET: str = ""
    PREFERENCE_KEY_PREFIX: str = ""

    # 行动目录服务（为空时使用内置的内存目录）
    CATALOG_BASE_URL: str = ""
    CATALOG_API_KEY: str = ""
    CATALOG_TIMEOUT_SECONDS: float = 5.0

    # 召回与组装
    PERSONALIZED_POOL_LIMIT: int = 15
    POPULAR_POOL_LIMIT: int = 10
    MIN_RESULT_COUNT: int = 3
    MAX_RESULT_COUNT: int = 20

    # 偏好
    PREFERENCE_LIST_CAP: int = 10
    POSITIVE_RATING_THRESHOLD: int = 4
    PREFERENCE_FLUSH_SECONDS: float = 5.0
    # 进程内最多保留的用户会话数，超出时按最近最少使用淘汰（0 表示不限）
    MAX_SESSIONS: int = 1000

    # 搜索
    SEARCH_SIMILARITY_THRESHOLD: float = 0.7

    # 同分打散（None 表示关闭）
    VARIETY_SEED: Optional[int] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore" # 忽略多余的环境变量
    )

settings = Settings()
