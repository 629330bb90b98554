"""
数据库连接与事务管理
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from quote_engine.core.config import settings
from quote_engine.core.exceptions import AppException, PersistenceException

Base = declarative_base()

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def init_models() -> None:
    """创建全部数据表（开发环境使用，生产环境走迁移）"""
    import quote_engine.models  # noqa: F401  注册全部模型

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def unit_of_work(db: AsyncSession, action: str) -> AsyncGenerator[AsyncSession, None]:
    """
    单一事务边界

    成功则提交；任何异常都整体回滚，不留下部分写入。
    业务异常原样抛出，存储层异常统一包装为 PersistenceException。
    """
    try:
        yield db
        await db.commit()
    except AppException as e:
        await db.rollback()
        logger.warning(f"{action}失败: {e.error_code} {e.message}")
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{action}失败(数据库): {e}")
        raise PersistenceException(action) from e
    except Exception as e:
        await db.rollback()
        logger.error(f"{action}失败: {e}")
        raise
