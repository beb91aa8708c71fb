# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
FastAPI application for the Echo Log Service.

Wires storage into the routers at startup, turns every service error into
a JSON ``{"error": ...}`` body with the matching status code, and serves the
static frontend when one is configured.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import __version__
from ..config import settings
from ..models.responses import ErrorResponse, HealthResponse
from ..services.chat_service import ChatService
from ..utils.errors import EchoLogError
from .api import chat, logs, tags
from .dependencies import create_storage_backend, set_chat_service, set_storage

logger = logging.getLogger(__name__)

# Every error body is {"error": message}
ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
    504: {"model": ErrorResponse},
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create storage and the chat client on startup, release them on shutdown."""
    storage = await create_storage_backend()
    set_storage(storage)
    set_chat_service(ChatService(settings.chat))
    logger.info(f"Echo Log Service ready (storage={storage.backend_name}, chat={settings.chat.base_url})")
    try:
        yield
    finally:
        await storage.close()
        logger.info("Echo Log Service stopped")


async def echo_error_handler(request: Request, exc: EchoLogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ())[1:]) or 'body'}: {err.get('msg')}" for err in exc.errors()
    )
    logger.warning(f"{request.method} {request.url.path} invalid request: {details}")
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


def create_app() -> FastAPI:
    """Build the FastAPI application with routers, error handlers and static files."""
    app = FastAPI(title="Echo Log Service", version=__version__, lifespan=lifespan)

    app.add_exception_handler(EchoLogError, echo_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(logs.router, responses=ERROR_RESPONSES)
    app.include_router(tags.router, prefix="/api", responses=ERROR_RESPONSES)
    app.include_router(chat.router, prefix="/api", responses=ERROR_RESPONSES)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=__version__, backend=settings.storage.backend)

    static_dir = settings.http.static_dir
    if static_dir is not None:
        if static_dir.is_dir():
            app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        else:
            logger.warning(f"Static directory {static_dir} does not exist, frontend not served")

    return app


app = create_app()


def main() -> None:
    """Run the HTTP server with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=settings.http.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting Echo Log Service on http://{settings.http.host}:{settings.http.port}")
    logger.info(f"Storage backend: {settings.storage.backend}")

    uvicorn.run(app, host=settings.http.host, port=settings.http.port, log_level=settings.http.log_level.lower())


if __name__ == "__main__":
    main()
