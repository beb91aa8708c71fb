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
Chat relay to a locally hosted Ollama server.

The rendered log context and a fixed preamble go in the system message,
the user's text in the user message. Replies are returned whole or relayed
chunk by chunk as server-sent events without buffering the full response.

Upstream failures map onto the service error taxonomy:

- connection refused → UpstreamUnavailableError (503)
- deadline exceeded  → UpstreamTimeoutError (504)
- non-2xx / malformed body → UpstreamError (500)

No retries: a failed upstream call surfaces immediately.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ..config import ChatSettings
from ..models.responses import ChatReply, StatusResponse
from ..utils.errors import (
    EchoLogError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def require_message(message: str | None) -> str:
    """Reject a missing or blank chat message before any upstream call."""
    if not message or not message.strip():
        raise ValidationError("Message is required")
    return message


def sse_event(payload: dict[str, Any]) -> str:
    """Format one server-sent event frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


class ChatService:
    """Ollama chat client with per-request model selection."""

    def __init__(self, settings: ChatSettings, transport: httpx.AsyncBaseTransport | None = None):
        """
        Args:
            settings: Upstream URL, default model, timeouts and preamble
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.settings = settings
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.settings.base_url.rstrip("/")

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=self._transport)

    def resolve_model(self, model: str | None) -> str:
        return model.strip() if model and model.strip() else self.settings.default_model

    def build_messages(self, message: str, context: str) -> list[dict[str, str]]:
        system = f"{self.settings.system_prompt}\n\nThe user's logs, oldest first:\n\n{context}"
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": message},
        ]

    def _map_error(self, exc: httpx.HTTPError, timeout: float) -> EchoLogError:
        if isinstance(exc, httpx.TimeoutException):
            return UpstreamTimeoutError(f"Ollama did not respond within {timeout:g}s", timeout=timeout)
        if isinstance(exc, httpx.ConnectError):
            return UpstreamUnavailableError(
                f"Cannot reach Ollama at {self.base_url}. Is Ollama running? Start it with: ollama serve"
            )
        if isinstance(exc, httpx.HTTPStatusError):
            return UpstreamError(
                f"Ollama returned HTTP {exc.response.status_code}",
                upstream_status=exc.response.status_code,
            )
        return UpstreamError(f"Ollama request failed: {type(exc).__name__}")

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    async def chat(self, message: str, context: str, model: str | None = None) -> ChatReply:
        """Send one chat turn and return the whole reply."""
        model = self.resolve_model(model)
        timeout = self.settings.timeout_seconds
        payload = {"model": model, "messages": self.build_messages(message, context), "stream": False}

        try:
            async with self._client(timeout) as client:
                response = await client.post("/api/chat", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"Ollama chat failed (model={model}): {type(e).__name__}")
            raise self._map_error(e, timeout) from e
        except ValueError as e:
            raise UpstreamError("Ollama returned a malformed response") from e

        try:
            content = data["message"]["content"]
        except (KeyError, TypeError) as e:
            raise UpstreamError("Ollama response has no message content") from e

        logger.debug(f"Ollama chat reply ({model}, {len(content)} chars)")
        return ChatReply(response=content, model=data.get("model", model))

    async def open_stream(self, message: str, context: str, model: str | None = None) -> AsyncIterator[str]:
        """
        Start a streaming chat turn and return an iterator of SSE frames.

        The upstream request is sent and its status checked before this
        returns, so connection and HTTP errors raise here rather than after
        response headers have gone out.
        """
        model = self.resolve_model(model)
        timeout = self.settings.timeout_seconds
        payload = {"model": model, "messages": self.build_messages(message, context), "stream": True}

        client = self._client(timeout)
        try:
            request = client.build_request("POST", "/api/chat", json=payload)
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.warning(f"Ollama stream failed to start (model={model}): {type(e).__name__}")
            raise self._map_error(e, timeout) from e

        if response.is_error:
            status = response.status_code
            await response.aclose()
            await client.aclose()
            raise UpstreamError(f"Ollama returned HTTP {status}", upstream_status=status)

        return self._relay(client, response, model, timeout)

    async def _relay(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        model: str,
        timeout: float,
    ) -> AsyncIterator[str]:
        try:
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping malformed chunk from Ollama stream")
                    continue
                if not isinstance(data, dict):
                    logger.warning("Skipping non-object chunk from Ollama stream")
                    continue

                if data.get("error"):
                    yield sse_event({"error": str(data["error"])})
                    return

                chunk = (data.get("message") or {}).get("content", "")
                if chunk:
                    yield sse_event({"content": chunk})
                if data.get("done"):
                    break

            yield sse_event({"done": True, "model": model})
        except httpx.HTTPError as e:
            # Headers are already sent; report the failure in-band
            error = self._map_error(e, timeout)
            logger.warning(f"Ollama stream interrupted (model={model}): {error.message}")
            yield sse_event({"error": error.message})
        finally:
            await response.aclose()
            await client.aclose()

    # ------------------------------------------------------------------
    # Models and liveness
    # ------------------------------------------------------------------

    async def list_models(self) -> list[str]:
        """Return model names installed upstream, bounded by the probe timeout."""
        timeout = self.settings.probe_timeout_seconds
        try:
            async with self._client(timeout) as client:
                response = await client.get("/api/tags")
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise self._map_error(e, timeout) from e
        except ValueError as e:
            raise UpstreamError("Ollama returned a malformed model list") from e

        return [m["name"] for m in data.get("models", []) if isinstance(m, dict) and m.get("name")]

    async def probe(self) -> StatusResponse:
        """Liveness probe: connected plus the available models, or an upstream error."""
        models = await self.list_models()
        return StatusResponse(status="connected", models=models)
