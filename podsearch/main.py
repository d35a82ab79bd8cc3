import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.cors import CORSMiddleware

from podsearch.api.routes import routers as api_routers
from podsearch.core.config import configs
from podsearch.core.container import Container
from podsearch.utils.class_object import singleton

load_dotenv()

logger = logging.getLogger(__name__)


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    err = errors[0]
    location = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path"))
    return f"{location}: {err.get('msg')}" if location else str(err.get("msg"))


def create_app(container: Optional[Container] = None) -> FastAPI:
    container = container or Container()
    cfg = container.config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if cfg.RUN_JOBS_INLINE:
            # fail jobs a previous process left behind
            try:
                await container.job_service().recover_stale_jobs()
            except SQLAlchemyError as e:
                logger.warning(f"Stale job recovery skipped: {e}")
        yield
        await container.db().dispose()

    app = FastAPI(
        title=cfg.PROJECT_NAME,
        version="0.0.1",
        openapi_url=f"{cfg.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    app.state.container = container

    if cfg.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in cfg.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": _first_error_message(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    @app.get(f"{cfg.API_PREFIX}/health")
    async def health():
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(api_routers, prefix=cfg.API_PREFIX)
    return app


@singleton
class AppCreator:
    def __init__(self):
        logging.basicConfig(
            level=configs.LOG_LEVEL,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        )
        self.container = Container()
        self.app = create_app(self.container)


app_creator = AppCreator()
app = app_creator.app
container = app_creator.container
