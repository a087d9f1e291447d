from __future__ import annotations

from typing import Optional

import requests

from hs_classifier.config.exceptions import ClassificationFailed, ErrorKind
from hs_classifier.config.settings import CompletionSettings
from hs_classifier.utils.logging import get_logger

logger = get_logger(__name__)

# Used when the caller passes no system message
DEFAULT_SYSTEM_MESSAGE = (
    "You are an HS code classification assistant. "
    "Answer only with the JSON object requested."
)


def _status_kind(status_code: int) -> ErrorKind:
    if status_code in (401, 403):
        return ErrorKind.AUTH
    if status_code == 429:
        return ErrorKind.RATE_LIMIT
    return ErrorKind.SERVICE


class CompletionClient:
    """Chat completion client for an OpenAI-compatible endpoint."""

    def __init__(
        self,
        settings: CompletionSettings,
        session: Optional[requests.Session] = None,
    ):
        settings.require()
        self.api_key = settings.api_key
        self.model = settings.model
        self.max_tokens = settings.max_tokens
        self.timeout = settings.timeout
        self.full_endpoint = f"{settings.base_url}/chat/completions"
        self.session = session or requests.Session()

    def send(
        self,
        prompt: str,
        *,
        temperature: float,
        system_message: str | None = None,
    ) -> tuple[str, dict]:
        """Send prompt to the completion service and return text with usage stats.

        Args:
            prompt: User prompt text.
            temperature: Sampling temperature for this call.
            system_message: Optional override for the system message.

        Returns:
            tuple of (response_message, usage_dict)
            usage_dict contains: prompt_tokens, completion_tokens, total_tokens

        Raises:
            ClassificationFailed on transport, auth, rate-limit or service failure.
        """
        sys_msg = system_message or DEFAULT_SYSTEM_MESSAGE

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": sys_msg},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self.max_tokens,
            "temperature": temperature,
        }

        logger.info("Sending request to completion API (model=%s)...", self.model)
        logger.debug(
            "Endpoint: %s, Prompt length: %d chars, temperature=%.1f",
            self.full_endpoint,
            len(prompt),
            temperature,
        )

        try:
            response = self.session.post(
                self.full_endpoint, headers=headers, json=payload, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error("Request failed: %s", e)
            raise ClassificationFailed(
                f"Completion API request failed: {e}", ErrorKind.NETWORK
            ) from e
        except requests.RequestException as e:
            logger.error("Request failed: %s", e)
            raise ClassificationFailed(
                f"Completion API request failed: {e}", ErrorKind.SERVICE
            ) from e

        logger.debug("Response status: %d", response.status_code)

        if response.status_code != 200:
            error_msg = response.text[:500]
            try:
                error_msg = str(response.json().get("error", {}).get("message") or error_msg)
            except (ValueError, AttributeError):
                pass
            logger.error("Completion API error [%d]: %s", response.status_code, error_msg)
            raise ClassificationFailed(
                f"Completion API error [{response.status_code}]: {error_msg}",
                _status_kind(response.status_code),
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ClassificationFailed(
                f"Failed to parse completion API response: {e}", ErrorKind.SERVICE
            ) from e

        if not isinstance(data, dict):
            logger.error("Completion API returned a %s body", type(data).__name__)
            raise ClassificationFailed(
                f"Unexpected completion API response: expected an object, got {type(data).__name__}",
                ErrorKind.SERVICE,
            )

        choices = data.get("choices") or [{}]
        first = choices[0] if isinstance(choices, list) else None
        if not isinstance(first, dict):
            logger.error("Completion API returned malformed choices: %r", choices)
            raise ClassificationFailed(
                "Unexpected completion API response: malformed choices", ErrorKind.SERVICE
            )
        reply = first.get("message")
        content = reply.get("content") if isinstance(reply, dict) else None
        message = content if isinstance(content, str) else ""
        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        if usage:
            logger.info(
                "Tokens used: %d (prompt=%d, completion=%d)",
                usage.get("total_tokens", 0),
                usage.get("prompt_tokens", 0),
                usage.get("completion_tokens", 0),
            )
        logger.debug("Response: %s...", message[:100] if message else "(empty)")

        return message, usage


__all__ = ["CompletionClient"]
