import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .cache import ScheduleCache
from .config import Settings, get_settings
from .logging_config import configure_logging
from .models import ScheduleListResponse
from .refresh import RefreshPolicy, RefreshScheduler
from .schedules import ScheduleService
from .upstream import UpstreamClient


configure_logging()
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, *, http_client: Optional[httpx.Client] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cache = ScheduleCache()
        client = UpstreamClient.from_settings(settings, client=http_client)
        scheduler = RefreshScheduler(cache, policy=RefreshPolicy.from_settings(settings), clock=settings.now)

        app.state.settings = settings
        app.state.schedule_cache = cache
        app.state.schedule_service = ScheduleService.from_settings(settings, cache, client)
        app.state.refresh_scheduler = scheduler

        logger.info("Serving %d classroom(s): %s", len(settings.classrooms), ", ".join(settings.classrooms))
        if not client.configured:
            logger.warning("UESTC_API_URL is empty; every room will be reported as unknown")
        if settings.refresh_enabled:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop()

    app = FastAPI(title="Free Classroom Finder", version="0.1.0", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Accept", "Content-Type"],
        expose_headers=["Link"],
        allow_credentials=True,
        max_age=300,
    )
    app.include_router(_build_router())
    return app


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_schedule_cache(request: Request) -> ScheduleCache:
    return request.app.state.schedule_cache


def get_schedule_service(request: Request) -> ScheduleService:
    return request.app.state.schedule_service


def _build_router() -> APIRouter:
    router = APIRouter()

    @router.get("/healthz")
    def health() -> Dict[str, str]:
        return {"status": "ok"}

    @router.get("/healthz/cache")
    def cache_health(cache: ScheduleCache = Depends(get_schedule_cache)) -> Dict[str, object]:
        return {"status": "ok", "cache": cache.snapshot()}

    @router.get("/api/schedules", response_model=ScheduleListResponse)
    def list_schedules(
        settings: Settings = Depends(get_app_settings),
        service: ScheduleService = Depends(get_schedule_service),
    ) -> ScheduleListResponse:
        schedules = service.build_schedules(settings.classrooms, settings.now())
        return ScheduleListResponse(data=schedules)

    return router


app = create_app()


def run() -> None:
    import uvicorn

    settings = get_settings()
    logger.info("Server starting on %s:%s", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")


if __name__ == "__main__":
    run()
