"""
Redis client helper cho host application.

Core không tự gọi module này: host tạo client một lần rồi inject vào
ScoreStore. Host chịu trách nhiệm close client khi shutdown.
"""

import logging
from typing import Optional

import redis

from recommendable.config import Settings, settings as default_settings
from recommendable.db.database import mask_url

logger = logging.getLogger(__name__)


def create_redis_client(config: Optional[Settings] = None) -> redis.Redis:
    """
    Tạo Redis client từ Settings.

    Dùng REDIS_URL nếu có, nếu không thì host/port/db.

    Args:
        config: Settings (default: settings global)

    Returns:
        redis.Redis client (decode_responses=True)
    """
    config = config or default_settings

    if config.redis_url:
        client = redis.Redis.from_url(config.redis_url, decode_responses=True)
        logger.info(f"Redis client created: url={mask_url(config.redis_url)}")
    else:
        client = redis.Redis(
            host=config.redis_host,
            port=config.redis_port,
            db=config.redis_db,
            decode_responses=True
        )
        logger.info(
            f"Redis client created: "
            f"redis={config.redis_host}:{config.redis_port}/{config.redis_db}"
        )
    return client


# Singleton instance
_redis_client_instance: Optional[redis.Redis] = None


def get_redis_client(config: Optional[Settings] = None) -> redis.Redis:
    """
    Get singleton Redis client dùng chung toàn process.

    Args:
        config: Settings (chỉ dùng ở lần gọi đầu tiên)

    Returns:
        redis.Redis instance
    """
    global _redis_client_instance

    if _redis_client_instance is None:
        _redis_client_instance = create_redis_client(config)

    return _redis_client_instance


def close_redis_client() -> None:
    """Đóng singleton client (gọi khi host shutdown)."""
    global _redis_client_instance

    if _redis_client_instance is not None:
        _redis_client_instance.close()
        _redis_client_instance = None
        logger.info("Redis client closed")
