"""
Database connection utilities for async SQLAlchemy.

Engine được tạo lazy (lần gọi get_engine đầu tiên) để import package không
cần database driver đang chạy.
"""
import logging
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from recommendable.config import settings

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """
    Chuẩn hóa database URL:
    - Convert postgresql:// -> postgresql+asyncpg://
    - Convert postgres:// (alias cũ) -> postgresql+asyncpg://
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    if url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def mask_url(url: str) -> str:
    """Mask password trong URL để log."""
    if '@' in url:
        parts = url.split('@')
        user_pass = parts[0].split('//')[1] if '//' in parts[0] else parts[0]
        if ':' in user_pass:
            user = user_pass.split(':')[0]
            return url.replace(user_pass, f"{user}:***", 1)
    return url


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Lấy (hoặc tạo) async engine.

    Args:
        database_url: Override settings.database_url (chỉ dùng lần đầu)

    Returns:
        AsyncEngine
    """
    global _engine

    if _engine is None:
        url = normalize_database_url(database_url or settings.database_url)
        logger.info(f"🔗 Database URL: {mask_url(url)}")
        _engine = create_async_engine(
            url,
            echo=False,
            pool_pre_ping=True,  # Kiểm tra connection trước khi dùng
            pool_recycle=3600,  # Recycle connections sau 1 giờ
        )
    return _engine


def get_session_factory() -> async_sessionmaker:
    """Session factory gắn với engine mặc định."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )
    return _session_factory


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Async generator trả về database session.

    Đảm bảo session được đóng đúng cách ngay cả khi có exception.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def dispose_engine() -> None:
    """Đóng engine (gọi khi host shutdown)."""
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database engine disposed")
