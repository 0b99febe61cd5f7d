from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from laundrypro.core.config import settings
from laundrypro.core.redis import redis_manager
from laundrypro.core.database import init_database, close_database
from laundrypro.api.health import router as health_router
from laundrypro.api.orders import router as orders_router
from laundrypro.api.coupons import router as coupons_router, admin_router as coupons_admin_router
from laundrypro.api.discounts import router as discounts_router
from laundrypro.api.campaigns import router as campaigns_router
from laundrypro.api.exceptions import (
    validation_exception_handler,
    http_exception_handler,
    database_exception_handler,
    general_exception_handler,
    business_exception_handler,
    BusinessException
)

# 简化日志配置
import logging

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    logger.info("正在启动洗衣服务后端")

    try:
        await init_database()
        logger.info("PostgreSQL数据库初始化成功")

        await redis_manager.init_redis()
        logger.info("Redis初始化成功")

        logger.info("应用启动完成")

    except Exception as e:
        logger.error(f"应用启动失败: {e}")
        raise

    yield

    logger.info("正在关闭应用")
    await close_database()
    await redis_manager.close_redis()
    logger.info("应用关闭完成")


def create_app(use_lifespan: bool = True) -> FastAPI:
    """创建FastAPI应用，测试时可关闭生命周期钩子"""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="多租户洗衣服务后端 - 下单计价、自动折扣、营销活动与优惠券",
        debug=settings.debug,
        lifespan=lifespan if use_lifespan else None
    )

    # CORS中间件
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 注册路由
    application.include_router(health_router)
    application.include_router(orders_router)
    application.include_router(coupons_router)
    application.include_router(coupons_admin_router)
    application.include_router(discounts_router)
    application.include_router(campaigns_router)

    # 注册异常处理器
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)
    application.add_exception_handler(BusinessException, business_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)

    @application.get("/")
    async def root():
        """根路径"""
        return {
            "message": f"欢迎使用 {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
            "health": "/health",
        }

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "laundrypro.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
