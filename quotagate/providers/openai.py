"""OpenAI-compatible provider implementation."""

import httpx
from fastapi import HTTPException

from quotagate.config.settings import get_settings
from quotagate.providers.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """Calls /v1/chat/completions on any OpenAI-compatible API."""

    def __init__(self):
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(120.0, connect=10.0))
        return self._client

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        settings = get_settings()
        upstream_url = f"{settings.upstream_base_url.rstrip('/')}/v1/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {settings.upstream_api_key}",
        }
        body = {
            "model": settings.upstream_model,
            "max_tokens": settings.upstream_max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        client = await self._get_client()
        try:
            response = await client.post(upstream_url, json=body, headers=headers)
        except httpx.ConnectError:
            raise HTTPException(status_code=502, detail="Cannot reach upstream provider")
        except httpx.TimeoutException:
            raise HTTPException(status_code=504, detail="Upstream provider timed out")
        except httpx.HTTPError as e:
            raise HTTPException(status_code=502, detail=f"Upstream error: {e}")

        if response.status_code != 200:
            raise HTTPException(
                status_code=502,
                detail=f"Upstream returned {response.status_code}",
            )

        try:
            choices = response.json().get("choices", [])
            text = choices[0]["message"]["content"] if choices else None
        except (ValueError, KeyError, TypeError, AttributeError):
            text = None
        if not isinstance(text, str):
            raise HTTPException(status_code=502, detail="Unexpected response from upstream provider")
        return text

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
