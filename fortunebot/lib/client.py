"""
Generation client for the text-generation endpoint.

Performs a single request to the OpenAI Responses API and extracts one
fortune. Every outcome is returned as a FetchResult; nothing here raises for
an expected failure (missing key, timeout, HTTP error, unusable body).

Example:
    result = await fortune_generate(prompt, api_key, model)
    if result.status:
        print(result.fortune)
"""

import asyncio
import json
from typing import Any, Final, Optional
import httpx
from fortunebot.config.settings import App
from fortunebot.lib.log import LOG
from fortunebot.models.dataModel import FetchError, FetchErrorKind, FetchResult

SYSTEM_INSTRUCTION: Final[str] = "You are a fortune cookie generator."
MAX_OUTPUT_TOKENS: Final[int] = 60
TEMPERATURE: Final[float] = 0.9
FORTUNE_MARKER: Final[str] = "🤖"


def fetch_fail(kind: FetchErrorKind, message: str, **details: Any) -> FetchResult:
    """Build a failed FetchResult."""
    return FetchResult(
        status=False, error=FetchError(kind=kind, message=message, **details)
    )


def request_build(prompt: str, model: str) -> dict[str, Any]:
    """
    Build the JSON request body.

    Args:
        prompt: User prompt
        model: Model name

    Returns:
        dict[str, Any]: Request payload
    """
    return {
        "model": model,
        "input": [
            {"role": "system", "content": SYSTEM_INSTRUCTION},
            {"role": "user", "content": prompt},
        ],
        "max_output_tokens": MAX_OUTPUT_TOKENS,
        "temperature": TEMPERATURE,
    }


def text_extract(body: dict[str, Any]) -> str:
    """
    Pull the fortune text out of a response body.

    The structured "output" field (first content entry of the first output
    item) is preferred; the flat "output_text" field is the fallback.

    Args:
        body: Decoded JSON response

    Returns:
        str: The extracted text, stripped (empty if none found)
    """
    output: Any = body.get("output")
    if isinstance(output, list) and output and isinstance(output[0], dict):
        content: Any = output[0].get("content")
        if isinstance(content, list) and content and isinstance(content[0], dict):
            text: Any = content[0].get("text")
            return text.strip() if isinstance(text, str) else ""
    output_text: Any = body.get("output_text")
    if isinstance(output_text, str):
        return output_text.strip()
    return ""


async def response_post(
    prompt: str,
    api_key: str,
    model: str,
    settings: App,
    transport: Optional[httpx.AsyncBaseTransport],
) -> httpx.Response:
    """POST the request and read the full response body."""
    headers: dict[str, str] = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    async with httpx.AsyncClient(
        timeout=settings.request_timeout, transport=transport
    ) as client:
        return await client.post(
            settings.endpoint, json=request_build(prompt, model), headers=headers
        )


async def fortune_generate(
    prompt: str,
    api_key: str,
    model: str,
    settings: Optional[App] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FetchResult:
    """
    Request one fortune from the text-generation endpoint.

    Args:
        prompt: User prompt
        api_key: API key; blank fails fast without a request
        model: Model name
        settings: Settings supplying the endpoint and timeout
        transport: Optional httpx transport (used by tests)

    Returns:
        FetchResult: The marked fortune on success, or the failure details
    """
    if not api_key.strip():
        return fetch_fail(FetchErrorKind.NO_KEY, "no API key provided")

    settings = settings or App()
    try:
        # Bounds the whole exchange; httpx timeouts only bound each step
        response: httpx.Response = await asyncio.wait_for(
            response_post(prompt, api_key, model, settings, transport),
            timeout=settings.request_timeout,
        )
    except (httpx.TimeoutException, asyncio.TimeoutError):
        return fetch_fail(
            FetchErrorKind.TIMEOUT,
            f"request timed out after {settings.request_timeout:g}s",
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        return fetch_fail(FetchErrorKind.NETWORK, f"request failed: {e}")

    LOG(f"{settings.endpoint} answered {response.status_code}")
    if response.status_code >= 300:
        return fetch_fail(
            FetchErrorKind.HTTP_STATUS,
            f"API error ({response.status_code}): {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        body: Any = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return fetch_fail(FetchErrorKind.MALFORMED_RESPONSE, f"invalid JSON response: {e}")

    fortune: str = text_extract(body) if isinstance(body, dict) else ""
    if not fortune:
        return fetch_fail(FetchErrorKind.EMPTY_RESPONSE, "empty response from API")
    return FetchResult(status=True, fortune=f"{FORTUNE_MARKER} {fortune}".strip())
