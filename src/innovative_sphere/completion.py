"""Chat-completion client with retry, backoff, and upstream error classification."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from typing import Any

import requests

from innovative_sphere.composer import build_system_prompt
from innovative_sphere.config import Settings
from innovative_sphere.errors import (
    MalformedUpstreamResponse,
    RateLimited,
    Unauthorized,
    UpstreamError,
    UpstreamTimeout,
)

logger = logging.getLogger(__name__)

TEMPERATURE_CENTER = 0.95
TEMPERATURE_JITTER = 0.05
TOP_P_CENTER = 0.96
TOP_P_JITTER = 0.03


def sample_parameters(
    rng: random.Random,
    previous: tuple[float, float] | None = None,
) -> tuple[float, float]:
    """Draw ``(temperature, top_p)`` for one attempt, never repeating ``previous``."""
    while True:
        temperature = round(TEMPERATURE_CENTER + rng.uniform(-TEMPERATURE_JITTER, TEMPERATURE_JITTER), 3)
        top_p = round(TOP_P_CENTER + rng.uniform(-TOP_P_JITTER, TOP_P_JITTER), 3)
        if (temperature, top_p) != previous:
            return temperature, top_p


class CompletionClient:
    """Thin adapter around a Mistral-style ``/chat/completions`` endpoint.

    Retry policy:
    - ``Unauthorized`` is raised immediately.
    - ``RateLimited`` is retried with exponential backoff.
    - Timeouts, malformed replies, connection errors, and other HTTP errors
      are retried with linear backoff.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.mistral.ai/v1",
        model: str = "mistral-small-latest",
        *,
        timeout: float = 30.0,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_tokens: int = 2000,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ):
        if not api_key:
            raise Unauthorized("Mistral API key is not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_tokens = max_tokens
        self.session = session or requests.Session()
        self.sleep = sleep
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> CompletionClient:
        return cls(
            settings.mistral_api_key,
            settings.mistral_api_url,
            settings.mistral_model,
            timeout=settings.upstream_timeout,
            max_attempts=settings.upstream_max_attempts,
            base_delay=settings.upstream_retry_delay,
            max_tokens=settings.max_tokens,
            **kwargs,
        )

    def _post(self, messages: list[dict[str, str]], temperature: float, top_p: float) -> str:
        """Send one request and return the reply content, or raise a classified error."""
        try:
            response = self.session.post(
                f"{self.base_url}/chat/completions",
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self.model,
                    "messages": messages,
                    "temperature": temperature,
                    "top_p": top_p,
                    "max_tokens": self.max_tokens,
                },
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise UpstreamTimeout("Request timeout. Please try again.") from exc

        if response.status_code == 429:
            raise RateLimited("Rate limit exceeded. Please try again later.")
        if response.status_code == 401:
            raise Unauthorized("Invalid API key. Please check your Mistral API configuration.")
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedUpstreamResponse("Mistral AI returned a non-JSON body") from exc

        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise MalformedUpstreamResponse("No response generated from Mistral AI")

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content:
            raise MalformedUpstreamResponse("Invalid response format from Mistral AI")
        return content

    def _backoff(self, attempt: int, exc: Exception) -> float:
        if isinstance(exc, RateLimited):
            return self.base_delay * (2 ** (attempt - 1))
        return self.base_delay * attempt

    def complete(self, prompt_text: str) -> str:
        """Send ``prompt_text`` as the user message and return the raw reply text.

        Raises:
            UpstreamError: A classified subclass when the last failure was
                classified, otherwise a generic one naming the attempt count.
        """
        messages = [
            {"role": "system", "content": build_system_prompt()},
            {"role": "user", "content": prompt_text},
        ]

        params: tuple[float, float] | None = None
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            params = sample_parameters(self.rng, previous=params)
            temperature, top_p = params
            try:
                content = self._post(messages, temperature, top_p)
                logger.info("Completion succeeded on attempt %d/%d", attempt, self.max_attempts)
                return content
            except Unauthorized:
                logger.error("Completion endpoint rejected credentials; not retrying")
                raise
            except (UpstreamError, requests.RequestException) as exc:
                last_error = exc
                logger.warning(
                    "Completion attempt %d/%d failed: %s",
                    attempt,
                    self.max_attempts,
                    exc,
                )
                if attempt < self.max_attempts:
                    self.sleep(self._backoff(attempt, exc))

        if isinstance(last_error, UpstreamError):
            raise last_error
        raise UpstreamError(
            f"Failed to generate idea after {self.max_attempts} attempts: {last_error}"
        ) from last_error
