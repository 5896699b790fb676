"""
OpenCode server transport.

Talks to the HTTP API exposed by a running OpenCode server, which owns the
provider credentials and model routing. Every council invocation becomes a
message in a session on that server.

Endpoints used:
    POST   /session               create a session
    POST   /session/{id}/message  prompt a session, optionally with a model
    DELETE /session/{id}          delete a session
    GET    /session               health check
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, ClassVar

import httpx

from opencode_council.errors import EmptyResponse
from opencode_council.protocol.types import ModelReference
from opencode_council.transports.base import DoctorResult, SessionTransport

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://127.0.0.1:4096"
ENV_SERVER_URL = "OPENCODE_SERVER_URL"
ENV_SERVER_PORT = "OPENCODE_PORT"


def default_server_url() -> str:
    """Resolve the server URL from the environment."""
    url = os.environ.get(ENV_SERVER_URL)
    if url:
        return url
    port = os.environ.get(ENV_SERVER_PORT)
    if port:
        return f"http://127.0.0.1:{port}"
    return DEFAULT_SERVER_URL


def extract_text(payload: Any) -> str:
    """Join the text parts of a message response.

    The server answers with ``{"info": {...}, "parts": [...]}``; only parts of
    type ``text`` carry the model's answer.
    """
    if not isinstance(payload, dict):
        return ""
    parts = payload.get("parts")
    if parts is None and isinstance(payload.get("data"), dict):
        parts = payload["data"].get("parts")
    if not isinstance(parts, list):
        return ""
    texts = [
        part.get("text", "")
        for part in parts
        if isinstance(part, dict) and part.get("type") == "text" and part.get("text")
    ]
    return "\n".join(texts).strip()


class OpenCodeTransport(SessionTransport):
    """OpenCode server session transport.

    Environment variables:
        OPENCODE_SERVER_URL: Optional. Base URL of the server.
        OPENCODE_PORT: Optional. Port of a server on 127.0.0.1.
    """

    name: ClassVar[str] = "opencode"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 300.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            base_url: Server URL. Falls back to the environment, then localhost:4096.
            timeout: HTTP read timeout in seconds for prompt calls.
            http_client: Optional custom HTTP client for testing.
        """
        self._base_url = (base_url or default_server_url()).rstrip("/")
        self._timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout, connect=10.0),
            )
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client if we own it."""
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def _url(self, path: str) -> str:
        # Injected clients may not carry a base_url.
        return f"{self._base_url}{path}"

    async def create_session(self, parent_id: str | None, title: str) -> str:
        client = await self._get_client()
        body: dict[str, Any] = {"title": title}
        if parent_id:
            body["parentID"] = parent_id
        response = await client.post(self._url("/session"), json=body)
        response.raise_for_status()
        data = response.json()
        session_id = data.get("id") if isinstance(data, dict) else None
        if not session_id:
            raise RuntimeError("Session creation returned no session id.")
        logger.debug("Created session %s (%s)", session_id, title)
        return str(session_id)

    async def prompt_session(
        self,
        session_id: str,
        text: str,
        model: ModelReference | None = None,
        system: str | None = None,
    ) -> str:
        client = await self._get_client()
        body: dict[str, Any] = {"parts": [{"type": "text", "text": text}]}
        if model is not None:
            body["model"] = {"providerID": model.provider_id, "modelID": model.model_id}
        if system:
            body["system"] = system
        response = await client.post(self._url(f"/session/{session_id}/message"), json=body)
        response.raise_for_status()
        result = extract_text(response.json())
        if not result:
            raise EmptyResponse(str(model) if model else "session", "No text parts in reply.")
        return result

    async def delete_session(self, session_id: str) -> None:
        client = await self._get_client()
        response = await client.delete(self._url(f"/session/{session_id}"))
        response.raise_for_status()

    async def doctor(self) -> DoctorResult:
        """Check that the server answers."""
        start = time.perf_counter()
        try:
            client = await self._get_client()
            response = await client.get(self._url("/session"))
            latency_ms = (time.perf_counter() - start) * 1000
            if response.status_code == 200:
                return DoctorResult(
                    ok=True,
                    message="OpenCode server reachable",
                    latency_ms=latency_ms,
                    details={"base_url": self._base_url},
                )
            return DoctorResult(
                ok=False,
                message=f"HTTP {response.status_code}",
                latency_ms=latency_ms,
                details={"base_url": self._base_url},
            )
        except httpx.HTTPError as exc:
            latency_ms = (time.perf_counter() - start) * 1000
            return DoctorResult(
                ok=False,
                message=f"Connection failed: {exc}",
                latency_ms=latency_ms,
                details={"base_url": self._base_url},
            )


__all__ = ["DEFAULT_SERVER_URL", "OpenCodeTransport", "default_server_url", "extract_text"]
