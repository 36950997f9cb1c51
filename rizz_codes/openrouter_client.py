"""
OpenRouter Client

Outbound connector to the OpenRouter aggregation API. Responses are relayed
untouched; only success or failure is interpreted.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import (
    OPENROUTER_BASE_URL,
    OPENROUTER_REFERER,
    OPENROUTER_TIMEOUT,
    OPENROUTER_TITLE,
)

logger = logging.getLogger(__name__)


class OpenRouterError(RuntimeError):
    """Upstream call failed: non-2xx status or transport error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OpenRouterClient:
    """
    Thin async client for the OpenRouter chat-completion and model endpoints.
    """

    def __init__(
        self,
        base_url: str = OPENROUTER_BASE_URL,
        referer: str = OPENROUTER_REFERER,
        title: str = OPENROUTER_TITLE,
        timeout: float = OPENROUTER_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the OpenRouter client.

        Args:
            base_url: API root, e.g. 'https://openrouter.ai/api/v1'
            referer: Value of the HTTP-Referer attribution header
            title: Value of the X-Title attribution header
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.referer = referer
        self.title = title
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

        logger.info(f"OpenRouter client initialized with endpoint: {self.base_url}")

    def _headers(self, api_key: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "HTTP-Referer": self.referer,
            "X-Title": self.title,
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter request to {path} failed: {e}")
            raise OpenRouterError(f"OpenRouter request failed: {e}") from e

        if not response.is_success:
            logger.error(f"OpenRouter API error on {path}: {response.status_code}")
            raise OpenRouterError(
                f"OpenRouter API error: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise OpenRouterError(f"OpenRouter returned invalid JSON: {e}") from e

    async def chat_completion(
        self,
        api_key: str,
        model: str,
        messages: List[Dict[str, Any]],
        options: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Request a chat completion.

        Args:
            api_key: OpenRouter API key sent as a bearer token
            model: Model id; `options` may override it
            messages: Conversation messages
            options: Extra completion parameters merged into the body

        Returns:
            The upstream JSON body, unchanged

        Raises:
            OpenRouterError: If the upstream call fails
        """
        payload = {"model": model, "messages": messages}
        payload.update(options or {})

        data = await self._request(
            "POST",
            "/chat/completions",
            json=payload,
            headers=self._headers(api_key),
        )
        logger.info(f"OpenRouter chat completed ({payload['model']}, {len(messages)} messages)")
        return data

    async def list_models(self) -> Any:
        """
        List the models OpenRouter offers.

        Raises:
            OpenRouterError: If the upstream call fails
        """
        return await self._request("GET", "/models", headers=self._headers())

    async def close(self):
        if self.client:
            await self.client.aclose()
