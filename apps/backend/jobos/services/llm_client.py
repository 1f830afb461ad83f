"""OpenRouter chat-completions client.

Provides buffered and streamed completions over httpx. The client never
touches the database; the API key is handed in by the caller (see
``jobos.routers.deps.get_llm_client``).
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from jobos.config import settings

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "OpenRouter API Key is missing. Please configure it in Settings."
DEFAULT_TEMPERATURE = 0.7


class LLMError(Exception):
    """Base class for gateway failures surfaced to the user."""


class ConfigurationError(LLMError):
    """Raised before any network call when the API key is not configured."""


class LLMRequestError(LLMError):
    """Raised on transport failures and non-success HTTP responses."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """Most specific error text available for a failed response.

    Order: ``error.message`` / ``error`` / ``message`` from a JSON body, the
    raw body when it is not JSON, then the status reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text or response.reason_phrase or f"HTTP {response.status_code}"

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])

    return response.reason_phrase or f"HTTP {response.status_code}"


def _first_choice_content(data: Any) -> str:
    """Return ``choices[0].message.content`` or an empty string."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


def parse_stream_line(line: str) -> str | None:
    """Extract the delta text from one server-sent-event line.

    Blank lines, ``data: [DONE]``, comments and non-data fields yield None.
    Malformed JSON is logged and skipped.

    Examples:
        >>> parse_stream_line('data: {"choices": [{"delta": {"content": "Hi"}}]}')
        'Hi'
        >>> parse_stream_line("data: [DONE]") is None
        True
    """
    trimmed = line.strip()
    if not trimmed or not trimmed.startswith("data:"):
        return None

    data = trimmed[len("data:"):].strip()
    if data == "[DONE]":
        return None

    try:
        event = json.loads(data)
    except json.JSONDecodeError as e:
        logger.warning(f"Stream parse error for line {trimmed[:200]!r}: {e}")
        return None

    try:
        content = event["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return None

    if isinstance(content, str) and content:
        return content
    return None


class OpenRouterClient:
    """Async client for the OpenRouter chat-completions API.

    Provides a buffered ``complete`` call and a lazily consumed ``stream``.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str | None = None,
        api_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: Bearer token; a missing key fails on first use, not here
            model: Default model id. Defaults to settings.openrouter_model
            api_url: Chat completions URL. Defaults to settings.openrouter_api_url
            timeout: Request timeout in seconds. Defaults to settings.llm_timeout_seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.model = model or settings.openrouter_model
        self.api_url = api_url or settings.openrouter_api_url
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self.transport = transport

    def require_api_key(self) -> str:
        if not self.api_key:
            logger.error("LLM call rejected: no OpenRouter API key configured")
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        return self.api_key

    def _headers(self, api_key: str, stream: bool = False) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": settings.openrouter_referer,
            "X-Title": settings.openrouter_title,
            "Content-Type": "application/json",
        }
        if stream:
            headers["Accept"] = "text/event-stream"
        return headers

    def _payload(
        self,
        messages: list[dict[str, str]],
        model: str | None,
        temperature: float | None,
        json_mode: bool,
        stream: bool,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
        }
        if stream:
            payload["stream"] = True
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> str:
        """Run a buffered chat completion.

        Args:
            messages: Role-tagged messages (system/user/assistant)
            model: Model id override
            temperature: Sampling temperature (default 0.7)
            json_mode: Ask for a JSON object response

        Returns:
            First choice's message content, or "" when absent

        Raises:
            ConfigurationError: API key missing (no request is sent)
            LLMRequestError: Transport failure or non-success status
        """
        api_key = self.require_api_key()
        payload = self._payload(messages, model, temperature, json_mode, stream=False)

        try:
            async with self._http_client() as client:
                response = await client.post(
                    self.api_url,
                    headers=self._headers(api_key),
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter API error: {type(e).__name__}: {e}")
            raise LLMRequestError(f"AI Request Failed: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            message = _error_message(response)
            logger.error(f"OpenRouter API error: HTTP {response.status_code}: {message}")
            raise LLMRequestError(
                f"AI Request Failed: {message}", status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"OpenRouter returned a non-JSON body: {response.text[:200]!r}")
            raise LLMRequestError("AI Request Failed: response body was not JSON") from e

        return _first_choice_content(data)

    async def stream(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float | None = None,
        json_mode: bool = False,
    ) -> AsyncIterator[str]:
        """Stream a chat completion as text fragments.

        The body is read incrementally; partial lines are buffered across
        reads. Consumers may stop iterating at any point, which closes the
        HTTP response without notifying the server.

        Yields:
            Non-empty ``choices[0].delta.content`` fragments in arrival order

        Raises:
            ConfigurationError: API key missing (no request is sent)
            LLMRequestError: Transport failure or non-success status
        """
        api_key = self.require_api_key()
        payload = self._payload(messages, model, temperature, json_mode, stream=True)

        try:
            async with self._http_client() as client:
                async with client.stream(
                    "POST",
                    self.api_url,
                    headers=self._headers(api_key, stream=True),
                    json=payload,
                ) as response:
                    if not response.is_success:
                        await response.aread()
                        message = _error_message(response)
                        logger.error(
                            f"OpenRouter stream error: HTTP {response.status_code}: {message}"
                        )
                        raise LLMRequestError(
                            f"AI Request Failed: {message}", status_code=response.status_code
                        )

                    buffer = ""
                    async for text in response.aiter_text():
                        buffer += text
                        *lines, buffer = buffer.split("\n")
                        for line in lines:
                            content = parse_stream_line(line)
                            if content:
                                yield content

                    # Body may end without a trailing newline
                    content = parse_stream_line(buffer)
                    if content:
                        yield content
        except httpx.HTTPError as e:
            logger.error(f"OpenRouter stream error: {type(e).__name__}: {e}")
            raise LLMRequestError(f"AI Request Failed: {str(e) or type(e).__name__}") from e
