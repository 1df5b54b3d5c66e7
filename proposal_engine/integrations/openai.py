"""OpenAI chat completions integration."""

import logging
import time
from typing import Optional, Dict, Any

import httpx

from proposal_engine.core.config import get_settings
from proposal_engine.core.exceptions import (
    GenerationServiceError,
    GenerationTransportError,
    RateLimitedError,
    UnauthorizedError,
)
from proposal_engine.models import Completion, Usage

logger = logging.getLogger(__name__)


def classify_error(
    message: str,
    status_code: Optional[int],
    error_type: Optional[str] = None
) -> GenerationTransportError:
    """Pick the typed error for a failed call."""
    if status_code == 429:
        return RateLimitedError(message, status_code, error_type)
    if status_code in (401, 403):
        return UnauthorizedError(message, status_code, error_type)
    return GenerationServiceError(message, status_code, error_type)


class OpenAIClient:
    """
    Client for the OpenAI chat completions API.

    Sends one system + user message pair per call and returns the raw
    content with token usage. Failures are raised as classified
    GenerationTransportError subclasses; nothing is retried here.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        log: Optional[logging.Logger] = None
    ):
        """
        Initialize client.

        Args:
            api_key: Overrides OPENAI_API_KEY from settings
            transport: Custom httpx transport (used by tests)
            log: Logger to report to
        """
        self._settings = None
        self._api_key = api_key
        self._transport = transport
        self.log = log or logger

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def api_key(self) -> str:
        return self._api_key or self.settings.OPENAI_API_KEY

    def build_payload(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool,
        model: str,
        max_tokens: int,
        temperature: float
    ) -> Dict[str, Any]:
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = False,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None
    ) -> Completion:
        """
        Run a single chat completion.

        Args:
            system_prompt: Fixed instructions for the model
            user_prompt: Request-specific content
            json_mode: Ask the API for a JSON object response
            model: Model name, defaults to OPENAI_MODEL
            max_tokens: Output cap, defaults to COMMENTS_MAX_TOKENS
            temperature: Sampling temperature, defaults to COMMENTS_TEMPERATURE
            api_key: Per-call key, overrides the client key

        Returns:
            Completion with the message content and total token usage

        Raises:
            RateLimitedError: API answered 429
            UnauthorizedError: API answered 401 or 403
            GenerationServiceError: timeout, network failure or any other non-2xx
        """
        payload = self.build_payload(
            system_prompt,
            user_prompt,
            json_mode,
            model or self.settings.OPENAI_MODEL,
            max_tokens or self.settings.COMMENTS_MAX_TOKENS,
            temperature if temperature is not None else self.settings.COMMENTS_TEMPERATURE,
        )

        headers = {
            "Authorization": f"Bearer {api_key or self.api_key}",
            "Content-Type": "application/json"
        }

        self.log.debug(
            f"OpenAI request: model={payload['model']} max_tokens={payload['max_tokens']} "
            f"json_mode={json_mode} prompt_chars={len(user_prompt)}"
        )

        started = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.OPENAI_TIMEOUT_SECONDS,
                transport=self._transport
            ) as client:
                response = await client.post(
                    self.settings.OPENAI_API_URL,
                    json=payload,
                    headers=headers
                )
        except httpx.TimeoutException as e:
            self.log.error("OpenAI API timeout")
            raise GenerationServiceError("OpenAI request timed out", None, "timeout") from e
        except httpx.HTTPError as e:
            self.log.error(f"OpenAI network error: {e}")
            raise GenerationServiceError(str(e), None, "network_error") from e

        elapsed_ms = int((time.monotonic() - started) * 1000)

        if response.status_code != 200:
            message, error_type = self._error_details(response)
            self.log.error(
                f"OpenAI API error: {response.status_code} - {message} ({elapsed_ms}ms)"
            )
            raise classify_error(message, response.status_code, error_type)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            self.log.error(f"Unexpected OpenAI response shape: {e}")
            raise GenerationServiceError(
                "Unexpected response from OpenAI",
                response.status_code,
                "bad_response"
            ) from e

        total_tokens = (data.get("usage") or {}).get("total_tokens") or 0
        self.log.info(
            f"OpenAI completion finished in {elapsed_ms}ms "
            f"({total_tokens} tokens, {len(content)} chars)"
        )
        return Completion(content=content, usage=Usage(total_tokens=total_tokens))

    @staticmethod
    def _error_details(response: httpx.Response):
        try:
            body = response.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            # Gateways sometimes send {"error": "<text>"}
            error = {"message": error} if isinstance(error, str) and error.strip() else {}
        message = error.get("message") or f"API request failed with status {response.status_code}"
        return message, error.get("type")


# Singleton instance
openai_client = OpenAIClient()
