import logging
from typing import Any

import httpx

from studypet.domain.constants import REQUEST_TIMEOUT
from studypet.domain.errors import ContentGenerationError
from studypet.domain.ports import ContentGenerator


class ChatCompletionsGenerator(ContentGenerator):
    """Adapter for any OpenAI-compatible `/chat/completions` endpoint (xAI by default)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.x.ai/v1",
        model: str = "grok-beta",
        timeout: float = REQUEST_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.url = base_url.rstrip("/") + "/chat/completions"
        self.model = model
        self._api_key = api_key
        self._timeout = timeout
        self._client = client

    async def complete(self, system_prompt: str, user_prompt: str, temperature: float) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "stream": False,
        }
        data = await self._post(payload)

        try:
            return data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ContentGenerationError(f"Unexpected completion shape: {e}") from e

    async def _post(self, payload: dict[str, Any]) -> Any:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)

        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            resp = await self._client.post(self.url, json=payload, headers=headers)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            self.logger.error(f"Generation API error {e.response.status_code}: {e.response.text}")
            raise ContentGenerationError(
                f"Generation request failed: {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            self.logger.error(f"Generation request failed: {e}")
            raise ContentGenerationError(f"Generation request failed: {e}") from e

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
