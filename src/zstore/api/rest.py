"""
FastAPI application for zstored

Wires the storage API handler, request ids, and error handling into a single
ASGI application. The storage pool is supplied by the caller or built from
configuration; the application never configures the backend itself.
"""

import logging
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from zstore import __version__
from zstore.api.storage import ErrorResponse, StorageHandler
from zstore.config import ZstoreConfig
from zstore.errors import ZstoreError
from zstore.storage import Pool, create_pool
from zstore.utils.logger import configure_logging

logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(config: Optional[ZstoreConfig] = None, pool: Optional[Pool] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        config: Optional zstore configuration
        pool: Storage pool shared by all requests; built from ``config``
            when omitted

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = ZstoreConfig.from_env()
    if pool is None:
        pool = create_pool(config)

    app = FastAPI(
        title="zstore API",
        version=__version__,
        description="Block storage provisioning daemon",
    )

    app.state.config = config
    app.state.pool = pool
    app.state.storage = StorageHandler(pool, prefix=config.api_prefix)

    register_exception_handlers(app)
    register_routes(app)

    logger.info(f"FastAPI application created for pool '{pool.name}' at {config.api_prefix}")
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers"""

    @app.exception_handler(ZstoreError)
    async def zstore_error_handler(request: Request, exc: ZstoreError):
        """Handle ZstoreError exceptions; backend detail is logged, never returned"""
        request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

        detail = getattr(exc, "detail", None)
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}"
            + (f" ({detail})" if detail else ""),
            extra={"request_id": request_id}
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(request_id=request_id).model_dump(),
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions"""
        request_id = getattr(request.state, "request_id", str(uuid.uuid4()))

        logger.error(
            f"Unexpected error: {exc}",
            exc_info=True,
            extra={"request_id": request_id}
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(request_id=request_id).model_dump(),
        )


def register_routes(app: FastAPI) -> None:
    """Register all API routes"""

    prefix = app.state.config.api_prefix

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request.state.request_id = str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request.state.request_id
        return response

    # The handler is an ASGI app, so these routes accept any method
    storage = app.state.storage
    app.add_route(prefix, storage, include_in_schema=False)
    app.add_route(prefix + "/{path:path}", storage, include_in_schema=False)

    @app.get("/", tags=["Root"])
    async def root():
        """
        API root endpoint

        Returns basic API information.
        """
        return {
            "name": "zstore API",
            "version": __version__,
            "pool": app.state.pool.name,
            "storage": prefix,
        }

    @app.get("/v1/health", tags=["Health"])
    async def health():
        """Report the pool this daemon serves"""
        return {
            "status": "ok",
            "pool": app.state.pool.name,
            "backend": app.state.config.pool_backend,
        }


# =============================================================================
# Entry Point
# =============================================================================

def main():
    """CLI entry point for the zstored command."""
    import argparse
    import sys
    import uvicorn

    parser = argparse.ArgumentParser(
        description="zstore block storage provisioning daemon",
        prog="zstored"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML or JSON configuration file"
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: from ZSTORE_API_HOST env or 0.0.0.0)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from ZSTORE_API_PORT env or 5000)"
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Logging level"
    )

    args = parser.parse_args()

    if args.config:
        config = ZstoreConfig.from_file(args.config)
    else:
        config = ZstoreConfig.from_env()
    if args.log_level:
        config = config.model_copy(update={"log_level": args.log_level.upper()})

    configure_logging(config.log_level, file_path=config.log_file)

    try:
        pool = create_pool(config)
    except ZstoreError as e:
        logger.critical(f"{e}, exiting")
        sys.exit(1)

    host = args.host or config.api_host
    port = args.port or config.api_port
    logger.info(f"HTTP listening: {host}:{port}")

    uvicorn.run(
        create_app(config, pool),
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
