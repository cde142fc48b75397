"""
Translation Service Module

This module provides the retry-backed translation client:
- TranslationService class wrapping single-item requests
- Retry policy (status class -> wait duration) with jitter
- Tagged attempt results instead of recursive retries

For the HTTP call itself, see remote/providers.py
"""

import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from tabular_i18n import config as cfg
from tabular_i18n.logger import get_logger
from tabular_i18n.remote.exceptions import TranslationError
from tabular_i18n.remote.providers import (
    GENERIC_SERVER_ERROR,
    call_translate_api,
    build_timeout,
)
from tabular_i18n.translation.placeholders import mask, unmask

logger = get_logger(__name__)


class AttemptOutcome(Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass
class TranslationAttempt:
    """Result of one request attempt."""
    outcome: AttemptOutcome
    attempt: int
    text: Optional[str] = None
    error: Optional[TranslationError] = None
    status: Optional[int] = None
    wait_seconds: float = 0.0


def get_retry_delay(
    status: Optional[int],
    retry_delays: Optional[Dict[int, float]] = None,
    default_delay: float = cfg.DEFAULT_RETRY_DELAY,
) -> float:
    """
    Map an error status to the wait before the next attempt.

    Rate limiting waits longest, bad requests shortest, server errors in
    between. A missing status counts as a server error; an unknown status
    falls back to default_delay (the rate-limit wait).
    """
    delays = retry_delays if retry_delays is not None else cfg.RETRY_DELAYS
    if status is None:
        status = GENERIC_SERVER_ERROR
    return delays.get(status, default_delay)


class TranslationService:
    """Client for the remote translation service, with retries."""

    def __init__(
        self,
        api_endpoint: str = cfg.DEFAULT_API_ENDPOINT,
        pro: bool = False,
        max_retries: int = cfg.MAX_RETRIES,
        retry_delays: Optional[Dict[int, float]] = None,
        default_retry_delay: float = cfg.DEFAULT_RETRY_DELAY,
        request_delay: float = cfg.DEFAULT_REQUEST_DELAY,
        pro_request_delay: float = cfg.PRO_REQUEST_DELAY,
        max_jitter: float = cfg.MAX_JITTER,
        timeout: Any = 60,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.api_endpoint = api_endpoint
        self.pro = pro
        self.max_retries = max_retries
        self.retry_delays = dict(retry_delays) if retry_delays is not None else dict(cfg.RETRY_DELAYS)
        self.default_retry_delay = default_retry_delay
        self.request_delay = pro_request_delay if pro else request_delay
        self.max_jitter = max_jitter
        self._client = client or httpx.Client(timeout=build_timeout(timeout))
        self._owns_client = client is None
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.cancel_event = cancel_event
        self.request_count = 0
        logger.info(
            f"Initialized translation service: {self.api_endpoint} "
            f"({'pro' if pro else 'standard'} endpoint, max retries: {max_retries})"
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides) -> "TranslationService":
        """Build a service from a loaded configuration dict."""
        kwargs = dict(
            api_endpoint=config.get("api_endpoint", cfg.DEFAULT_API_ENDPOINT),
            pro=config.get("pro", False),
            max_retries=config.get("max_retries", cfg.MAX_RETRIES),
            retry_delays=cfg.get_retry_delays(config),
            default_retry_delay=config.get("default_retry_delay", cfg.DEFAULT_RETRY_DELAY),
            request_delay=config.get("request_delay", cfg.DEFAULT_REQUEST_DELAY),
            pro_request_delay=config.get("pro_request_delay", cfg.PRO_REQUEST_DELAY),
            max_jitter=config.get("max_jitter", cfg.MAX_JITTER),
            timeout=config.get("timeout", 60),
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def jittered(self, seconds: float) -> float:
        """Add a bounded random extra delay to avoid synchronized retries."""
        return seconds + self._rng.uniform(0, self.max_jitter)

    def wait(self, seconds: float) -> bool:
        """
        Sleep for a jittered duration.

        Returns:
            True if the wait was cut short by a cancellation request
        """
        duration = self.jittered(seconds)
        if self.cancel_event is not None:
            return self.cancel_event.wait(duration)
        self._sleep(duration)
        return False

    def pace(self) -> bool:
        """Inter-request pacing delay; returns True if cancelled meanwhile."""
        return self.wait(self.request_delay)

    def _attempt(self, masked_text: str, source_lang: str, target_lang: str, attempt: int) -> TranslationAttempt:
        """Run one request and tag the result."""
        self.request_count += 1
        try:
            raw = call_translate_api(
                self._client,
                self.api_endpoint,
                masked_text,
                source_lang,
                target_lang,
                pro=self.pro,
            )
        except TranslationError as e:
            status = e.status if e.status is not None else GENERIC_SERVER_ERROR
            if attempt >= self.max_retries:
                return TranslationAttempt(AttemptOutcome.TERMINAL, attempt, error=e, status=status)
            wait_seconds = get_retry_delay(status, self.retry_delays, self.default_retry_delay)
            return TranslationAttempt(
                AttemptOutcome.RETRYABLE, attempt, error=e, status=status, wait_seconds=wait_seconds
            )
        return TranslationAttempt(AttemptOutcome.SUCCESS, attempt, text=raw)

    def attempt_translation(self, text: str, source_lang: str, target_lang: str) -> TranslationAttempt:
        """
        Translate with retries and return the final tagged attempt.

        The placeholder mask is applied before the first request and the
        successful response is unmasked. Never raises for remote failures:
        the last attempt is TERMINAL when the retries are exhausted.
        """
        if not text:
            logger.debug("No text to translate")
            return TranslationAttempt(AttemptOutcome.SUCCESS, 0, text=text)

        masked_text, _ = mask(text)

        attempt = 0
        while True:
            result = self._attempt(masked_text, source_lang, target_lang, attempt)

            if result.outcome is AttemptOutcome.SUCCESS:
                result.text = unmask(result.text)
                return result

            if result.outcome is AttemptOutcome.TERMINAL:
                logger.error(
                    f"Failed to translate after {self.max_retries} retries. Last error: {result.error}"
                )
                return result

            logger.warning(f"Translation error ({result.status}): {result.error}")
            logger.info(
                f"Waiting {result.wait_seconds:.0f}s for retry {attempt + 1}/{self.max_retries}..."
            )
            if self.wait(result.wait_seconds):
                logger.warning("Cancellation requested, giving up on retries")
                cancelled = TranslationError(
                    "Translation cancelled while waiting to retry",
                    code="cancelled",
                    status=result.status,
                    details={"last_error": str(result.error)},
                )
                return TranslationAttempt(
                    AttemptOutcome.TERMINAL, attempt, error=cancelled, status=result.status
                )
            attempt += 1

    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translate one text.

        Raises:
            TranslationError: The last error once the retries are spent
        """
        result = self.attempt_translation(text, source_lang, target_lang)
        if result.outcome is AttemptOutcome.SUCCESS:
            return result.text
        raise result.error
