from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os

from showroom.api.api_v1.api import api_router as api_v1_router
from showroom.core.config import settings
from showroom.core.exceptions import ShowroomError
from showroom.core.logging_config import setup_logging, get_logger
from showroom.services.scheduler import init_scheduler, shutdown_scheduler
from showroom.db.init_db import ensure_tables_exist

# 初始化日志系统
log_level = os.getenv("LOG_LEVEL", "INFO")
setup_logging(log_level, log_to_file=os.getenv("LOG_TO_FILE", "true").lower() == "true")
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时
    logger.info("🚀 应用启动中...")

    # 确保数据库表存在
    try:
        await ensure_tables_exist()
        logger.info("📊 数据库表已就绪")
    except Exception as e:
        logger.warning(f"数据库表初始化警告: {e}")

    init_scheduler()
    yield
    # 关闭时
    logger.info("🛑 应用关闭中...")
    shutdown_scheduler()

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="二手车展厅管理系统 - 单机版",
    lifespan=lifespan
)

# CORS配置
if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"配置CORS，允许的源: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(ShowroomError)
async def showroom_error_handler(request: Request, exc: ShowroomError):
    """业务异常统一转换为 {"detail", "code"}"""
    logger.warning(f"{request.method} {request.url.path} 被拒绝: [{exc.code}] {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


logger.info(f"注册API v1路由，前缀: {settings.API_V1_STR}")
app.include_router(api_v1_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": "二手车展厅管理系统 - 单机版"}


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
