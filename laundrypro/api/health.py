from fastapi import APIRouter, HTTPException
import logging

from laundrypro.core.config import settings
from laundrypro.core.redis import redis_manager
from laundrypro.core.database import database_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["健康检查"])


@router.get("")
async def health_check():
    """基础健康检查接口"""
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment
    }


@router.get("/database")
async def database_health():
    """PostgreSQL与Redis连接检查"""
    health_status = {
        "postgresql": False,
        "redis": False,
        "overall": False,
        "details": {}
    }

    try:
        pg_status = await database_service.health_check()
        health_status["postgresql"] = pg_status["status"] == "healthy"
        health_status["details"]["postgresql"] = pg_status["message"]

        if redis_manager.redis_pool:
            health_status["redis"] = await redis_manager.ping()
            health_status["details"]["redis"] = "连接正常" if health_status["redis"] else "连接失败"
        else:
            health_status["details"]["redis"] = "连接池未初始化"

        health_status["overall"] = health_status["postgresql"] and health_status["redis"]

        if not health_status["overall"]:
            logger.warning(f"数据库连接检查部分失败: {health_status['details']}")
            return health_status

        logger.info("数据库连接检查全部通过")
        return health_status

    except Exception as e:
        logger.error(f"数据库健康检查异常: {str(e)}")
        raise HTTPException(
            status_code=503,
            detail={
                "error": "数据库连接失败",
                "message": str(e),
                "status": health_status
            }
        )
