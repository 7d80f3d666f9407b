"""
Client for the external chat-completion API.
"""
import asyncio
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import UpstreamErrorException, UpstreamTimeoutException
from app.core.logging import get_logger
from app.core.validators import is_non_empty_string, truncate

logger = get_logger("relay")

EMPTY_REPLY = "(empty reply)"


def build_messages(message: str, system_prompt: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": message},
    ]


def extract_error_detail(response: httpx.Response) -> str:
    """
    Pick the most specific error message from a failed upstream response:
    the structured error field, else the raw body, else the status code.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and is_non_empty_string(error.get("message")):
            return error["message"].strip()
        if is_non_empty_string(error):
            return error.strip()
        if is_non_empty_string(data.get("message")):
            return data["message"].strip()

    text = response.text.strip()
    if text:
        return text
    return f"Upstream returned HTTP {response.status_code}"


def extract_reply(data: Any) -> str:
    """Return the first completion's text, or a placeholder if there is none."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return EMPTY_REPLY
    if not is_non_empty_string(content):
        return EMPTY_REPLY
    return content


class RelayClient:
    """
    Forwards chat messages to an OpenAI-compatible completion endpoint.

    One call per message, no retries. The timeout bounds the whole call and
    cancelling it closes the outbound connection.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.timeout = settings.OPENAI_TIMEOUT_SECONDS
        self.url = settings.OPENAI_BASE_URL.rstrip("/") + "/chat/completions"
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_payload(self, message: str, system: Optional[str] = None) -> Dict[str, Any]:
        system_prompt = system.strip() if is_non_empty_string(system) else self.settings.DEFAULT_SYSTEM_PROMPT
        return {
            "model": self.settings.OPENAI_MODEL,
            "messages": build_messages(message, system_prompt),
        }

    async def complete(self, message: str, system: Optional[str] = None) -> str:
        """
        Send one chat completion request and return the reply text.

        Raises:
            UpstreamTimeoutException: If no response arrives within the timeout
            UpstreamErrorException: On transport errors or a non-success status
        """
        payload = self.build_payload(message, system)
        headers = {"Authorization": f"Bearer {self.settings.OPENAI_API_KEY}"}
        max_chars = self.settings.UPSTREAM_DETAIL_MAX_CHARS

        try:
            response = await asyncio.wait_for(
                self._client.post(self.url, json=payload, headers=headers),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(f"Upstream timed out after {self.timeout:g}s ({self.url})")
            raise UpstreamTimeoutException(self.timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"Upstream request failed: {type(e).__name__}: {e}")
            raise UpstreamErrorException(truncate(f"{type(e).__name__}: {e}", max_chars)) from e

        if not response.is_success:
            detail = extract_error_detail(response)
            logger.warning(f"Upstream returned HTTP {response.status_code}: {truncate(detail, 200)}")
            raise UpstreamErrorException(
                truncate(detail, max_chars),
                upstream_status=response.status_code
            )

        try:
            data = response.json()
        except ValueError:
            logger.warning(f"Upstream returned HTTP {response.status_code} with a non-JSON body")
            return EMPTY_REPLY

        return extract_reply(data)
