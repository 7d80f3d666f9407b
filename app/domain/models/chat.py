from pydantic import BaseModel, ConfigDict, Field
from typing import Literal, Optional

class ChatRequest(BaseModel):
    """Inbound chat request, validated by the chat route"""
    message: str
    system: Optional[str] = None

class ChatSuccess(BaseModel):
    """Successful chat outcome, tagged with where the reply came from"""
    ok: Literal[True] = True
    mode: Literal["echo", "relay"]
    reply: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "mode": "echo",
                "reply": "Bridge received: \"hello\""
            }
        }
    )

class ChatFailure(BaseModel):
    """Failed chat outcome as sent on the wire"""
    ok: Literal[False] = False
    error: str
    detail: str

class RateLimitStatus(BaseModel):
    window_seconds: int
    max_requests: int

class StatusResponse(BaseModel):
    """Payload of the status endpoint"""
    ok: Literal[True] = True
    status: str = "ok"
    service: str
    version: str
    uptime_s: float = Field(ge=0)
    has_key: bool
    model: str
    time: str
    rate_limit: RateLimitStatus
