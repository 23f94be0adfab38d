# salonbook/main.py

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salonbook.config import get_settings
from salonbook.db import create_db_and_tables
from salonbook.errors import SchedulingError
from salonbook.logging_config import setup_logging
from salonbook.routers import (
    appointments_routes,
    auth_routes,
    catalog_routes,
    days_off_routes,
    employees_routes,
    merchants_routes,
    penalties_routes,
    users_routes,
)

logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(verbose=settings.DEBUG)
    create_db_and_tables()
    logger.info(f"{settings.APP_NAME} starting up")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")


async def scheduling_error_handler(request: Request, exc: SchedulingError):
    logger.info(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_exception_handler(SchedulingError, scheduling_error_handler)

    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(merchants_routes.router)
    app.include_router(employees_routes.router)
    app.include_router(days_off_routes.router)
    app.include_router(catalog_routes.router)
    app.include_router(appointments_routes.router)
    app.include_router(penalties_routes.router)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "salonbook.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
