from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    error_dict = {"code": exc.base_error.code, "message": "Internal server error"}
    logger.error(f"Server error: {exc.base_error.code} ({exc.base_error.message})")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error_dict}
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
    message = f"{field}: {first.get('msg', 'invalid value')}" if field else "Invalid request"
    error_dict = {"code": "VALIDATION_ERROR", "message": message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": error_dict})


def build_lifespan(ApplicationConfig):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from src.depends import init_db
        from src.jobs import build_jobs

        await init_db()

        jobs = []
        if ApplicationConfig.ENABLE_BACKGROUND_JOBS:
            jobs = build_jobs()
            for job in jobs:
                job.start()
        else:
            logger.info("Background jobs disabled")

        yield

        for job in jobs:
            await job.stop()

    return lifespan


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(
        title="Access Control Auth API",
        version="0.1.0",
        lifespan=build_lifespan(ApplicationConfig),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "Content-Disposition",
            "X-Session-Audit-Count",
            "X-Session-Audit-Requested-Limit",
            "X-Session-Audit-Effective-Limit",
            "X-Session-Audit-Max-Limit",
            "X-Session-Audit-Truncated",
        ],
    )

    from src.api.routes import audit, auth, health, metrics, sessions

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, tags=["Authentication"])
    app.include_router(sessions.router, tags=["Sessions"])
    app.include_router(audit.router, tags=["Security Audit"])
    app.include_router(metrics.router, tags=["Security Metrics"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)

    return app
