from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from parkwell import __version__
from parkwell.config.settings_env import settings
from parkwell.domain.exceptions import ParkWellError
from parkwell.infrastructure.api.routers import (
    admin,
    auth,
    parking_slots,
    parkings,
    reports,
    slot_requests,
    users,
    vehicle_entries,
    vehicles,
)
from parkwell.infrastructure.persistence.database import async_engine, seed_reference_data
from parkwell.infrastructure.persistence.models.models import Base
from parkwell.shared.utils import intercept_std_logging, logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    intercept_std_logging()
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.run_sync(
            seed_reference_data,
            admin_email=settings.ADMIN_DEFAULT_EMAIL,
            admin_password=settings.ADMIN_DEFAULT_PASSWORD,
        )
    logger.info(f"{settings.APP_NAME} API ready on {settings.API_PREFIX}")
    yield
    await async_engine.dispose()


async def parkwell_error_handler(request: Request, exc: ParkWellError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())), "message": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Parking facility management: facilities, slots, entries, exits and slot requests",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ParkWellError, parkwell_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    for module in (auth, users, vehicles, parkings, parking_slots, slot_requests, vehicle_entries, admin, reports):
        app.include_router(module.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "parkwell.infrastructure.api.main:app",
        host=settings.FASTAPI_HOST,
        port=settings.FASTAPI_PORT,
        reload=settings.DEV_MODE,
    )
