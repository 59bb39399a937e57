# utils/ai_client.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from mothermath.core.config import GatewaySettings
from mothermath.core.errors import (
    AIClientError,
    GatewayConnectionError,
    GatewayHTTPError,
    InvalidJSONError,
    UnexpectedResponseError,
)
from mothermath.services.prompt_builder import PromptRequest
from mothermath.utils.normalizer import normalize

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


# -------------------------
# Reply types
# -------------------------
@dataclass(frozen=True)
class ParsedReply:
    """The gateway returned a JSON object or array (already normalized)."""

    data: Union[Dict[str, Any], List[Any]]
    raw: str = ""


@dataclass(frozen=True)
class TextReply:
    """The gateway returned free text."""

    text: str


@dataclass(frozen=True)
class FailedReply:
    """The call failed; `error` carries the typed reason."""

    error: AIClientError

    @property
    def reason(self) -> str:
        return str(self.error)


GatewayReply = Union[ParsedReply, TextReply, FailedReply]


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or "Unknown error"
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return "Unknown error"


# -------------------------
# Gateway client
# -------------------------
class GatewayClient:
    """
    Chat-completion client for the LLM gateway.

    One instance is shared per process; a fresh httpx.AsyncClient is opened for every
    call so cancelling a request also closes its connection. Pass `transport` to route
    calls somewhere other than the network (tests use httpx.MockTransport).
    """

    def __init__(self, settings: GatewaySettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.settings.base_url.rstrip('/')}/chat/completions"

    def _payload(self, request: PromptRequest, response_type: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model or self.settings.model,
            "messages": request.to_messages(),
            "temperature": self.settings.temperature if request.temperature is None else request.temperature,
            "max_tokens": request.max_tokens or self.settings.max_tokens,
            "stream": False,
        }
        if response_type == "json" and request.response_format:
            payload["response_format"] = request.response_format
        return payload

    async def _fetch_content(self, request: PromptRequest, response_type: str) -> str:
        api_key = self.settings.require_api_key()
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.settings.referer,
            "X-Title": self.settings.app_title,
        }
        payload = self._payload(request, response_type)

        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self.transport) as client:
                resp = await client.post(self.endpoint, headers=headers, json=payload)
        except httpx.RequestError as e:
            logger.error("Gateway request failed: %s", e)
            raise GatewayConnectionError(f"Could not reach the AI gateway: {e}") from e

        if not resp.is_success:
            message = _error_message(resp)
            logger.error("Gateway returned status %d: %s", resp.status_code, message)
            raise GatewayHTTPError(resp.status_code, message)

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error("Invalid response format from gateway: %s", resp.text[:1000])
            raise UnexpectedResponseError("Invalid response format from API") from e

        if not isinstance(content, str):
            raise UnexpectedResponseError("Gateway message content is not text")

        logger.debug("AI raw response (truncated): %s", content[:1000])
        return content

    async def send(self, request: PromptRequest, response_type: str = "text") -> Union[ParsedReply, TextReply]:
        """
        Send one request to the gateway. No retries.

        response_type="json" requires a JSON object/array after normalization and raises
        InvalidJSONError otherwise; "text" returns the stripped content as-is.
        """
        if response_type not in ("json", "text"):
            raise ValueError(f"Unsupported response_type: {response_type}")

        content = await self._fetch_content(request, response_type)

        if response_type == "text":
            return TextReply(text=content.strip())

        normalized = normalize(content)
        if isinstance(normalized, str):
            logger.error("Failed to parse JSON from AI response, even when requested. Raw content: %s", content[:1000])
            raise InvalidJSONError(content)
        return ParsedReply(data=normalized, raw=content)

    async def send_safely(self, request: PromptRequest, response_type: str = "text") -> GatewayReply:
        """Like send(), but gateway failures come back as FailedReply instead of raising."""
        try:
            return await self.send(request, response_type)
        except AIClientError as e:
            return FailedReply(error=e)
