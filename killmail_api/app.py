"""
Application Module

Builds the FastAPI application: MongoDB lifecycle, middleware, error
rendering and routes.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from killmail_api import config
from killmail_api.api import router as api_router
from killmail_api.database import KillmailStore, close_client, get_client, ping
from killmail_api.errors import StoreOperationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    mongo_uri = config.MONGO_URI
    client = get_client(mongo_uri)
    try:
        ping(client)
    except StoreOperationError as e:
        # Nothing can be served without the store; abort startup
        logger.critical(f"Startup failed: {e}")
        close_client(mongo_uri)
        raise
    logger.info(
        f"Connected to MongoDB, serving {config.MONGO_DATABASE}.{config.MONGO_COLLECTION}"
    )
    app.state.store = KillmailStore.from_client(client)
    try:
        yield
    finally:
        close_client(mongo_uri)
        logger.info("Application shutdown.")


def _error_body(message: str) -> dict:
    return {"message": message}


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    )
    logger.error(f"Rejected request {request.url.path}: {problems}")
    return JSONResponse(status_code=400, content=_error_body(problems))


def create_app() -> FastAPI:
    app = FastAPI(
        title="Killmail API",
        description="Read-only query API over processed killmails",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(api_router)
    return app
