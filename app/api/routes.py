from fastapi import APIRouter, Depends, Request
from datetime import datetime, timezone
import time

from app.auth.auth_utils import require_chat_token
from app.core.config import Settings
from app.core.request_body import read_limited_body
from app.domain.models.chat import ChatFailure, ChatSuccess, RateLimitStatus, StatusResponse
from app.services.chat import generate_reply, parse_chat_request
from app.services.providers import get_relay_client, get_settings
from app.services.relay import RelayClient

router = APIRouter()

@router.api_route("/status", methods=["GET", "HEAD"], response_model=StatusResponse)
async def get_status(request: Request, settings: Settings = Depends(get_settings)):
    """
    Report liveness and configuration summary. Never fails.
    """
    uptime = time.monotonic() - request.app.state.started_at
    return StatusResponse(
        service=settings.APP_NAME,
        version=settings.APP_VERSION,
        uptime_s=round(max(uptime, 0.0), 3),
        has_key=settings.has_api_key,
        model=settings.OPENAI_MODEL,
        time=datetime.now(timezone.utc).isoformat(),
        rate_limit=RateLimitStatus(
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        ),
    )

CHAT_ERROR_RESPONSES = {code: {"model": ChatFailure} for code in (400, 401, 413, 429, 502)}

@router.post(
    "/chat",
    response_model=ChatSuccess,
    responses=CHAT_ERROR_RESPONSES,
    dependencies=[Depends(require_chat_token)],
)
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    relay_client: RelayClient = Depends(get_relay_client),
):
    """
    Answer a chat message, echoing it locally or relaying it upstream.
    Rate limiting has already happened in RateLimitMiddleware.
    """
    body = await read_limited_body(request, settings.MAX_BODY_BYTES)
    chat_request = parse_chat_request(body)
    return await generate_reply(chat_request, settings, relay_client)
