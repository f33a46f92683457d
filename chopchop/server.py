"""Generation proxy: forwards prompt payloads to the configured model."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import AppConfig
from .errors import UpstreamError
from .generation import GenerationBackend, create_backend

logger = logging.getLogger(__name__)


class _Part(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str | None = None


class _Content(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str | None = None
    parts: list[_Part] = Field(min_length=1)


class GenerateRequest(BaseModel):
    contents: list[_Content] = Field(min_length=1)


def create_app(
    config: AppConfig, backend: GenerationBackend | None = None
) -> FastAPI:
    """Build the proxy app.

    Args:
        config: Application configuration (server and generation sections).
        backend: Backend to forward to; built from *config* when omitted.
    """
    if backend is None:
        backend = create_backend(config)

    app = FastAPI(title="ChopChop generation proxy")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "backend": backend.name}

    @app.post("/api/generate")
    async def generate(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or not body.get("contents"):
            return JSONResponse(
                status_code=400,
                content={"error": 'Missing "contents" in request body'},
            )

        try:
            payload = GenerateRequest.model_validate(body)
        except ValidationError as e:
            return JSONResponse(
                status_code=400,
                content={
                    "error": 'Malformed "contents" in request body',
                    "details": e.errors(include_url=False, include_context=False),
                },
            )

        contents: list[dict[str, Any]] = [
            c.model_dump(exclude_none=True) for c in payload.contents
        ]

        try:
            text = await backend.generate(contents)
        except UpstreamError as e:
            logger.error("Error from %s: %s", backend.name, e.detail)
            return JSONResponse(
                status_code=502,
                content={
                    "error": "Upstream model error",
                    "status": e.status,
                    "details": e.detail,
                },
            )
        except Exception as e:
            logger.exception("Server error")
            return JSONResponse(
                status_code=500,
                content={"error": "Server error", "details": str(e)},
            )

        return JSONResponse(content={"text": text})

    return app


def serve(config: AppConfig, host: str | None = None, port: int | None = None) -> None:
    """Run the proxy with uvicorn until interrupted."""
    import uvicorn

    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
    )
