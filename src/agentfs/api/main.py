"""FastAPI main application."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from agentfs import __version__
from agentfs.api.routers import files, tools
from agentfs.config import settings
from agentfs.domain.errors import (
    AgentFSError,
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    PatchApplyError,
    PathEscapeError,
)

logger = structlog.get_logger()

_STATUS_BY_ERROR = (
    (PathEscapeError, 403),
    (NotFoundError, 404),
    (PatchApplyError, 409),
    (ConflictError, 409),
    (InvalidArgumentError, 400),
)


def status_for_error(exc: AgentFSError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings.setup_logging()
    logger.info(
        "agentfs_startup",
        host=settings.api_host,
        port=settings.api_port,
        allow_write=settings.allow_write,
        allow_exec=settings.allow_exec,
    )
    yield
    logger.info("agentfs_shutdown")


app = FastAPI(
    title="AgentFS",
    description="Sandboxed file access and unified diff patching for agents",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AgentFSError)
async def agentfs_exception_handler(request: Request, exc: AgentFSError):
    """Return the tagged error unchanged; nothing was written."""
    status = status_for_error(exc)
    logger.info("request_failed", path=request.url.path, code=exc.code, status=status)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Return concise request validation details."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Request validation failed",
            "errors": [
                {
                    "field": " -> ".join(str(part) for part in err.get("loc", [])),
                    "type": err.get("type", "unknown"),
                    "msg": err.get("msg", "validation error"),
                }
                for err in exc.errors()
            ],
        },
    )


# Routers
app.include_router(files.router, prefix="/api/v1")
app.include_router(tools.router, prefix="/api/v1")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "root": str(settings.root)}
