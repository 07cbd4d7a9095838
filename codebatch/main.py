"""Application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from codebatch.api.container import get_container
from codebatch.api.dependencies import limiter
from codebatch.api.routes.init import router as init_router
from codebatch.domain.errors import (
    CodebatchError,
    PlanningError,
    PrerequisiteNotMet,
    TaskContentError,
    TaskNotFound,
    TaskStateError,
)
from codebatch.shared.logging import setup_logging

log = structlog.get_logger()

ERROR_STATUS: dict[type[CodebatchError], int] = {
    TaskNotFound: 404,
    PrerequisiteNotMet: 409,
    TaskStateError: 409,
    PlanningError: 400,
    TaskContentError: 422,
}


def _apply_logging_config(container):
    """Apply logging from container config (stdout + optional file)."""
    c = container.config
    setup_logging(
        level=c.log_level,
        file_path=c.log_file or "",
        rotation_max_mb=c.log_rotation_max_mb,
        rotation_backups=c.log_rotation_backups,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load config, setup logging."""
    container = get_container()
    _apply_logging_config(container)
    log.info("startup_begin", state_dir=container.config.persistence.state_dir)
    log.info("startup_complete")
    yield
    log.info("shutdown_complete")


# Create app
app = FastAPI(
    title="codebatch",
    version="0.1.0",
    description="Bounded-size batching of source trees for staged documentation",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(CodebatchError)
async def codebatch_error_handler(request: Request, exc: CodebatchError) -> JSONResponse:
    """Domain errors become JSON bodies; nothing terminates the process."""
    status_code = ERROR_STATUS.get(type(exc), 400)
    log.info("request_rejected", path=request.url.path, error=exc.code, message=exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# CORS
container = get_container()
app.add_middleware(
    CORSMiddleware,
    allow_origins=container.config.security.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(init_router)


@app.get("/health")
@limiter.limit("100/minute")
async def health(request: Request) -> dict:
    """Health check."""
    container = get_container()
    return {
        "status": "ok",
        "service": "codebatch",
        "state_dir": container.config.persistence.state_dir,
    }
