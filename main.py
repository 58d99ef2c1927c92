"""
ProjectHub - Main Application Entry Point

College project portal backend: timelines, task boards and live updates.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from projecthub.core.config import get_settings
from projecthub.core.exceptions import PortalError
from projecthub.core.logger import setup_logger

logger = setup_logger("projecthub")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info("Starting ProjectHub in %s mode...", settings.ENVIRONMENT)

    if settings.is_local:
        from projecthub.infrastructure.local.database import init_db

        await init_db()

    yield

    logger.info("Shutting down ProjectHub...")


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=422, content={"success": False, "error": message})


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ProjectHub",
        description="College project portal: milestones, task boards and realtime sync",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PortalError, portal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Include routers
    from projecthub.api import milestones, projects, realtime, tasks

    app.include_router(projects.router, prefix="/api")
    app.include_router(milestones.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api")
    app.include_router(realtime.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
