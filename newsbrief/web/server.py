"""Web Server Module"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
import structlog

from ..api import BriefingAPI
from ..config import AppConfig, get_config
from ..errors import AuthError
from ..main import BriefingService

logger = structlog.get_logger()

router = APIRouter()


def get_api(request: Request) -> BriefingAPI:
    return request.app.state.service.api


# --- Health ---

@router.get("/health", response_class=PlainTextResponse)
async def health():
    return "OK"


@router.get("/", response_class=PlainTextResponse)
async def read_root():
    return "AI News Backend Active."


# --- API ---

@router.get("/api/debug")
async def get_debug(api: BriefingAPI = Depends(get_api)):
    return api.get_debug_snapshot()


@router.get("/api/latest")
async def get_latest(api: BriefingAPI = Depends(get_api)):
    return await api.get_latest()


@router.get("/api/archive/{display_date}")
async def get_archive(display_date: date, api: BriefingAPI = Depends(get_api)):
    return await api.get_archive(display_date)


@router.get("/api/dates")
async def get_dates(api: BriefingAPI = Depends(get_api)):
    return await api.get_available_dates()


@router.post("/api/trigger", response_class=PlainTextResponse)
async def trigger(
    background_tasks: BackgroundTasks,
    authorization: Optional[str] = Header(default=None),
    api: BriefingAPI = Depends(get_api),
):
    """鉴权后在后台启动简报任务"""
    try:
        is_morning = api.trigger_job(authorization, schedule=background_tasks.add_task)
    except AuthError as e:
        logger.warning("trigger_rejected", reason=str(e))
        raise HTTPException(status_code=500 if not e.configured else 401, detail=str(e))
    if is_morning is None:
        return "Job already running; trigger skipped. Check /api/debug for progress."
    return "Job started. Check /api/debug for progress."


def create_app(
    config: Optional[AppConfig] = None,
    service: Optional[BriefingService] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """创建 FastAPI 应用；service 为空时按配置构建"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        svc: BriefingService = app.state.service
        await svc.startup()
        if start_scheduler:
            svc.start_scheduler()
        logger.info("web_server_started")
        yield
        if start_scheduler:
            svc.stop()
        logger.info("web_server_stopped")

    app = FastAPI(lifespan=lifespan)
    app.state.service = service or BriefingService(config or get_config())

    # 前端部署在其他域名下，放开跨域
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app
