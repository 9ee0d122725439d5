"""
HTTP Server for the RP Companion relay

This module is a thin communication layer between the front-end and
RelayService. It parses request bodies, routes them and turns every outcome
into either the uniform reply envelope or a ``{"error": ...}`` body.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rp_relay.config import RelaySettings
from rp_relay.errors import RelayError
from rp_relay.http_client import UpstreamHttpClient
from rp_relay.models import ChatRequest, ChatResponse, DraftRequest, ProviderResult
from rp_relay.relay_service import RelayService

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


class RelayServer:
    """
    Pure HTTP communication server.

    This class only handles:
    - Request parsing and routing
    - Mapping errors to JSON envelopes

    All business logic is delegated to RelayService.
    """

    def __init__(
        self, settings: RelaySettings, http: UpstreamHttpClient | None = None
    ):
        self.settings = settings
        self.http = http or UpstreamHttpClient(settings.http)
        self.relay_service = RelayService(settings, self.http)
        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure FastAPI app."""

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncIterator[None]:
            try:
                yield
            finally:
                await self.http.close()

        app = FastAPI(title="RP Companion Relay", lifespan=lifespan)

        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @app.exception_handler(RequestValidationError)
        async def validation_handler(request: Request, exc: RequestValidationError):
            logger.warning(f"Malformed request to {request.url.path}: {exc.errors()}")
            return error_response(400, _describe_validation_error(exc))

        router = APIRouter()

        @router.post("/chat")
        async def chat(body: ChatRequest):
            return await self._handle("/chat", self.relay_service.chat, body)

        @router.post("/draft")
        async def draft(body: DraftRequest):
            return await self._handle("/draft", self.relay_service.draft, body)

        app.include_router(router)
        app.include_router(router, prefix="/api")

        @app.get("/")
        async def root():
            return {"message": "RP Companion Relay"}

        @app.get("/health")
        async def health():
            return {"status": "healthy"}

        return app

    async def _handle(
        self,
        route: str,
        handler: Callable[..., Awaitable[ProviderResult]],
        body: ChatRequest,
    ) -> JSONResponse:
        try:
            result = await handler(body)
        except RelayError as e:
            logger.error(f"{route} error: {e.message}")
            return error_response(e.status_code, e.message)
        except Exception:
            logger.exception(f"{route} unexpected error")
            return error_response(500, "Internal server error")

        return JSONResponse(content=ChatResponse.from_result(result).model_dump())

    async def start_server(self) -> None:
        """Start the HTTP server."""
        host = self.settings.server.host
        port = self.settings.server.port

        logger.info(f"Starting RP Companion relay on {host}:{port}")
        logger.info("  POST /chat  - primary character (server key)")
        logger.info("  POST /draft - draft assistant (caller key or server key)")

        server_config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level=self.settings.logging.level.lower(),
        )
        server = uvicorn.Server(server_config)
        await server.serve()


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    detail = first.get("msg", "invalid value")
    if location:
        return f"Invalid request body: {location}: {detail}"
    return f"Invalid request body: {detail}"


def create_app(
    settings: RelaySettings, http: UpstreamHttpClient | None = None
) -> FastAPI:
    return RelayServer(settings, http).app


async def run_server(settings: RelaySettings) -> None:
    """Run the relay server until it is stopped."""
    server = RelayServer(settings)
    await server.start_server()
