"""
Turns a chat request body into a reply, locally or through the relay.
"""
import json

from app.core.config import Settings
from app.core.exceptions import AppBaseException, InvalidJSONException, MissingMessageException
from app.core.logging import get_logger
from app.core.metrics import CHAT_REPLIES, RELAY_FAILURES
from app.core.validators import is_non_empty_string, is_optional_string
from app.domain.models.chat import ChatRequest, ChatSuccess
from app.services.relay import RelayClient

logger = get_logger("chat")

ECHO_TEMPLATE = 'Bridge received: "{message}"'


def parse_chat_request(body: bytes) -> ChatRequest:
    """
    Validate a raw body. An empty body counts as an empty JSON object.

    Raises:
        InvalidJSONException: If the body is not a JSON object
        MissingMessageException: If message is absent or blank
    """
    try:
        data = json.loads(body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, ValueError):
        raise InvalidJSONException()

    if not isinstance(data, dict):
        raise InvalidJSONException("Request body must be a JSON object")

    message = data.get("message")
    if not is_non_empty_string(message):
        raise MissingMessageException()

    system = data.get("system")
    if not is_optional_string(system):
        system = None

    return ChatRequest(message=message, system=system)


def echo_reply(message: str) -> str:
    return ECHO_TEMPLATE.format(message=message)


async def generate_reply(chat_request: ChatRequest, settings: Settings, relay_client: RelayClient) -> ChatSuccess:
    """
    Echo locally when no API key is configured, otherwise relay upstream.
    """
    if not settings.has_api_key:
        CHAT_REPLIES.labels(mode="echo").inc()
        return ChatSuccess(mode="echo", reply=echo_reply(chat_request.message))

    try:
        reply = await relay_client.complete(chat_request.message, chat_request.system)
    except AppBaseException as e:
        RELAY_FAILURES.labels(kind=e.code).inc()
        raise

    CHAT_REPLIES.labels(mode="relay").inc()
    logger.debug(f"Relayed reply of {len(reply)} chars")
    return ChatSuccess(mode="relay", reply=reply)
