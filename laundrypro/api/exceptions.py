"""
业务异常定义与全局异常处理器
"""

import logging
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class BusinessException(Exception):
    """业务异常基类"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, code: str, message: str, status_code: int = None):
        super().__init__(message)
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationException(BusinessException):
    """请求参数或业务校验失败"""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(BusinessException):
    """资源不存在"""

    status_code = status.HTTP_404_NOT_FOUND


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    content = {"success": False, "error": code, "message": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


async def business_exception_handler(request: Request, exc: BusinessException):
    """业务异常处理"""
    logger.info(f"业务异常 {exc.code}: {exc.message} path={request.url.path}")
    return _error_response(exc.status_code, exc.code, exc.message)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """请求参数校验异常处理"""
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "请求参数校验失败",
        details=exc.errors()
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP异常处理"""
    return _error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    """数据库异常处理"""
    logger.error(f"数据库异常: {exc} path={request.url.path}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR", "数据库操作失败")


async def general_exception_handler(request: Request, exc: Exception):
    """兜底异常处理"""
    logger.exception(f"未处理的异常: {exc} path={request.url.path}")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "服务器内部错误")
