"""
Remote Translation API Implementation

This module contains the HTTP call for the DeepLX-compatible translation
endpoint. It performs exactly one request and turns every failure into a
TranslationError carrying the HTTP status used for retry classification.
"""

from typing import Any

import httpx

from tabular_i18n.config import STANDARD_TRANSLATE_PATH, PRO_TRANSLATE_PATH
from tabular_i18n.logger import get_logger
from tabular_i18n.remote.exceptions import TranslationError

logger = get_logger(__name__)

# Status used when the failure has no HTTP response of its own
GENERIC_SERVER_ERROR = 500

# Seconds; the connect phase never waits longer than CONNECT_TIMEOUT
DEFAULT_TIMEOUT = 60.0
CONNECT_TIMEOUT = 10.0
TIMEOUT_FIELDS = ("connect", "read", "write", "pool")


def build_timeout(timeout: Any) -> httpx.Timeout:
    """
    Build the client timeout from the "timeout" config value.

    A number limits each phase of a request (connect capped at
    CONNECT_TIMEOUT). A dict sets individual httpx.Timeout fields, the
    others keep DEFAULT_TIMEOUT.
    """
    if isinstance(timeout, dict):
        fields = {name: float(timeout[name]) for name in TIMEOUT_FIELDS if name in timeout}
        return httpx.Timeout(DEFAULT_TIMEOUT, **fields)

    seconds = float(timeout) if timeout else DEFAULT_TIMEOUT
    return httpx.Timeout(seconds, connect=min(CONNECT_TIMEOUT, seconds))


def get_translate_url(api_endpoint: str, pro: bool = False) -> str:
    """Build the request URL for the standard or the elevated-tier path."""
    path = PRO_TRANSLATE_PATH if pro else STANDARD_TRANSLATE_PATH
    return f"{api_endpoint.rstrip('/')}{path}"


def handle_http_error(e: httpx.HTTPStatusError) -> TranslationError:
    """Build a TranslationError from an HTTP error response."""
    status_code = e.response.status_code
    error_text = "Unknown error"

    try:
        error_json = e.response.json()
        if isinstance(error_json, dict) and "message" in error_json:
            error_text = str(error_json["message"])
        else:
            error_text = str(error_json)
    except ValueError:
        error_text = e.response.text[:500] if e.response.text else "No details"

    return TranslationError(
        f"Translation API error ({status_code}): {error_text}",
        code="http_error",
        status=status_code,
    )


def call_translate_api(
    client: httpx.Client,
    api_endpoint: str,
    text: str,
    source_lang: str,
    target_lang: str,
    pro: bool = False,
) -> str:
    """
    POST one text to the translation endpoint and return the raw result.

    Args:
        client: httpx client used for the request
        api_endpoint: Base URL of the service (e.g. http://localhost:1188)
        text: Text to translate (already masked)
        source_lang: Source language code
        target_lang: Target language code
        pro: Use the elevated-tier path

    Returns:
        The translated text exactly as returned by the service

    Raises:
        TranslationError: With status set to the HTTP status, or to
            GENERIC_SERVER_ERROR for transport, decoding and redirect
            failures and for bad payloads
    """
    url = get_translate_url(api_endpoint, pro)
    body = {
        "text": text,
        "source_lang": source_lang.upper(),
        "target_lang": target_lang.upper(),
    }

    logger.debug(f"Posting to {url}")

    try:
        response = client.post(url, json=body)
        response.raise_for_status()
        result = response.json()
    except httpx.HTTPStatusError as e:
        raise handle_http_error(e)
    except httpx.TimeoutException as e:
        raise TranslationError(
            f"Translation API request timeout: {e}",
            code="timeout",
            status=GENERIC_SERVER_ERROR,
        )
    except httpx.TransportError as e:
        raise TranslationError(
            f"Translation API transport error: {e}",
            code="transport_error",
            status=GENERIC_SERVER_ERROR,
        )
    except ValueError as e:
        raise TranslationError(
            f"Translation API returned invalid JSON: {e}",
            code="invalid_response",
            status=GENERIC_SERVER_ERROR,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        # Decoding, redirect and URL errors count as server errors
        raise TranslationError(
            f"Translation API request failed: {type(e).__name__}: {e}",
            code="request_error",
            status=GENERIC_SERVER_ERROR,
        )

    if not isinstance(result, dict) or not isinstance(result.get("data"), str):
        raise TranslationError(
            f"Unexpected translation API response format: {str(result)[:200]}",
            code="invalid_response",
            status=GENERIC_SERVER_ERROR,
            details={"response": result},
        )

    translated = result["data"]
    logger.debug(f"Got response ({len(translated)} characters)")
    return translated
