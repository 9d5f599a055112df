"""
Storage API request handling.

Every request under the API prefix is served by StorageHandler.handle:

1. Derive the bucketed volume name from the client address and URL path
2. Classify the name by depth (pool/bucket or pool/bucket/volume)
3. Dispatch by HTTP method to a handler function
4. Translate the handler's result into an HTTP response

Handler functions return a StorageResult instead of raising for outcomes the
client is expected to act on (404, 409, 400, 503). Anything else surfaces as
a ZstoreError, which the application turns into a 500 without exposing
backend diagnostics.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from zstore.errors import (
    InvalidSizeError,
    PoolOutOfSpaceError,
    VolumeExistsError,
    VolumeNotExistsError,
)
from zstore.naming import (
    COLLECTION_DEPTH,
    ITEM_DEPTH,
    join_host_port,
    local_name,
    name_depth,
    volume_name,
)
from zstore.storage.pool import Pool, Volume
from zstore.storage.slugs import slug_size, slugs

logger = logging.getLogger(__name__)


# =============================================================================
# Request/Response Models
# =============================================================================

class StorageRequest(BaseModel):
    """Request to create a volume"""
    size: str = Field(..., description="Size slug, e.g. 512M")


class VolumeInfo(BaseModel):
    """JSON representation of a block storage volume"""
    name: str = Field(..., description="Volume name relative to the pool")
    size: int = Field(..., ge=0, description="Volume size in bytes")


class StorageResponse(BaseModel):
    """Response listing one or more volumes"""
    volumes: List[VolumeInfo] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body of a 500 response"""
    error_code: str = Field(default="INTERNAL_ERROR")
    message: str = Field(default="internal server error")
    request_id: Optional[str] = Field(default=None)


@dataclass
class StorageResult:
    """Status code and optional JSON body produced by a handler function"""

    status_code: int
    body: Any = None
    headers: Optional[Dict[str, str]] = None

    def to_response(self) -> Response:
        if self.body is None:
            return Response(status_code=self.status_code, headers=self.headers)
        return JSONResponse(status_code=self.status_code, content=self.body, headers=self.headers)


# Accepts a volume name, its depth and the request
StorageHandlerFunc = Callable[[str, int, Request], Awaitable[StorageResult]]


class StorageHandler:
    """
    Serves the storage API against a single shared Pool.

    The handler holds no locks of its own; races between concurrent
    requests for the same name are resolved by the Pool.
    """

    def __init__(self, pool: Pool, prefix: str = "/v1/storage"):
        self.pool = pool
        self.prefix = prefix.rstrip("/")

        # HTTP method to handler function
        self.methods: Dict[str, StorageHandlerFunc] = {
            "DELETE": self.destroy_volume,
            "GET": self.get_volume_metadata,
            "POST": self.create_volume,
            "PUT": self.create_volume,
        }

    @property
    def allowed_methods(self) -> str:
        return ", ".join(sorted(self.methods))

    async def __call__(self, scope, receive, send) -> None:
        # Mounted as a raw ASGI endpoint so every HTTP method reaches handle
        request = Request(scope, receive)
        response = await self.handle(request)
        await response(scope, receive, send)

    async def handle(self, request: Request) -> Response:
        """
        Route a storage API request to the matching handler function.

        Raises:
            ZstoreError: For server-side failures such as an unusable client
                address or a backend error; the application's exception
                handler answers these with a generic 500
        """
        name = self.volume_name(request)

        depth = name_depth(name, self.pool.name)
        if depth not in (COLLECTION_DEPTH, ITEM_DEPTH):
            logger.info(
                f"Invalid volume name shape: {name}",
                extra={"request_id": getattr(request.state, "request_id", None)},
            )
            return Response(status_code=404)

        fn = self.methods.get(request.method)
        if fn is None:
            return Response(status_code=405, headers={"Allow": self.allowed_methods})

        result = await fn(name, depth, request)
        return result.to_response()

    def volume_name(self, request: Request) -> str:
        """
        Create a volume name specific to the requesting client.

        Raises:
            AddressParseError: If the client address is unusable
        """
        address = None
        if request.client is not None:
            address = join_host_port(request.client.host, request.client.port)
        return volume_name(self.pool.name, address, request.url.path, self.prefix)

    def volume_info(self, volume: Volume) -> Dict[str, Any]:
        """JSON representation of a volume, named relative to the pool"""
        return VolumeInfo(
            name=local_name(volume.name, self.pool.name),
            size=volume.size_bytes,
        ).model_dump()

    # =========================================================================
    # Handler functions
    # =========================================================================

    async def get_volume_metadata(self, name: str, depth: int, request: Request) -> StorageResult:
        """List a client's volumes (collection) or describe one volume (item)."""
        try:
            if depth == COLLECTION_DEPTH:
                volumes = await run_in_threadpool(self.pool.list_volumes, name)
            else:
                volumes = [await run_in_threadpool(self.pool.volume, name)]
        except VolumeNotExistsError:
            return StorageResult(404)

        body = {"volumes": [self.volume_info(v) for v in volumes]}
        return StorageResult(200, StorageResponse(**body).model_dump())

    async def create_volume(self, name: str, depth: int, request: Request) -> StorageResult:
        """Create a new volume from a size slug in the request body."""
        if depth != ITEM_DEPTH:
            return StorageResult(405, headers={"Allow": "GET"})

        # Refuse to touch an existing volume
        try:
            await run_in_threadpool(self.pool.volume, name)
            return StorageResult(409)
        except VolumeNotExistsError:
            pass

        try:
            size = await storage_size(request)
        except InvalidSizeError as e:
            logger.info(f"Rejected volume {name}: {e}")
            return StorageResult(400, slugs())

        try:
            volume = await run_in_threadpool(self.pool.create_volume, name, size)
        except VolumeExistsError:
            return StorageResult(409)
        except PoolOutOfSpaceError as e:
            logger.warning(str(e))
            return StorageResult(503)

        logger.info(f"Created volume {name} ({size} bytes)")
        return StorageResult(201, self.volume_info(volume))

    async def destroy_volume(self, name: str, depth: int, request: Request) -> StorageResult:
        """Destroy a volume and everything beneath it."""
        if depth != ITEM_DEPTH:
            return StorageResult(405, headers={"Allow": "GET"})

        try:
            volume = await run_in_threadpool(self.pool.volume, name)
            await run_in_threadpool(volume.destroy)
        except VolumeNotExistsError:
            return StorageResult(404)

        logger.info(f"Destroyed volume {name}")
        return StorageResult(204)


async def storage_size(request: Request) -> int:
    """
    Read the size slug from a request body and resolve it to bytes.

    Raises:
        InvalidSizeError: If the body is missing, malformed, or names a slug
            that is not in the catalog
    """
    raw = await request.body()
    if not raw.strip():
        raise InvalidSizeError()

    try:
        storage_request = StorageRequest.model_validate_json(raw)
    except ValidationError:
        raise InvalidSizeError()

    size = slug_size(storage_request.size)
    if size is None:
        raise InvalidSizeError(storage_request.size)
    return size
