# src/mortgage_moment/adapters/realtime_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import requests

from mortgage_moment.adapters.config import config
from mortgage_moment.adapters.logging_utils import get_logger

logger = get_logger(__name__)


class RealtimeError(RuntimeError):
    pass


@dataclass(frozen=True)
class OpenAIRealtimeClient:
    """
    Mints short-lived client secrets for a browser-negotiated realtime
    audio session. The long-lived API key never leaves the server.
    """
    api_key: str
    url: str = "https://api.openai.com/v1/realtime/sessions"
    model: str = "gpt-4o-realtime-preview"
    voice: str = "verse"
    timeout_s: float = 10.0

    def create_session(
        self,
        *,
        instructions: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "voice": self.voice,
            "modalities": ["audio", "text"],
        }
        if instructions:
            body["instructions"] = instructions
        if tools:
            body["tools"] = tools

        try:
            resp = requests.post(
                self.url,
                json=body,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise RealtimeError(f"Realtime session request failed: {e!r}") from e

        if resp.status_code >= 400:
            raise RealtimeError(f"Realtime HTTP {resp.status_code}: {resp.text[:300]}")

        try:
            data = resp.json() or {}
        except ValueError as e:
            raise RealtimeError("Realtime session returned invalid JSON") from e

        secret = data.get("client_secret") if isinstance(data, dict) else None
        if isinstance(secret, dict):
            secret = secret.get("value")
        if not isinstance(secret, str) or not secret:
            raise RealtimeError("Realtime session response has no client_secret")

        logger.info("realtime_session_created", extra={"context": {"model": self.model}})
        return secret


def make_realtime_client() -> OpenAIRealtimeClient:
    if not config.OPENAI_API_KEY:
        raise RealtimeError("Missing MM_OPENAI_API_KEY. Set it before starting voice sessions.")
    return OpenAIRealtimeClient(
        api_key=config.OPENAI_API_KEY,
        url=config.OPENAI_REALTIME_URL,
        model=config.OPENAI_REALTIME_MODEL,
        voice=config.OPENAI_REALTIME_VOICE,
        timeout_s=config.REALTIME_TIMEOUT_S,
    )
