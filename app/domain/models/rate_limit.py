from pydantic import BaseModel, ConfigDict

class ClientRateRecord(BaseModel):
    """
    Fixed-window counter for one client identifier.
    """
    count: int
    window_expires_at: float

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "count": 4,
                "window_expires_at": 1590000060.0
            }
        }
    )

class RateLimitInfo(BaseModel):
    """
    Model containing the current rate limit information for the client.
    """
    remaining: int
    reset: int
    total: int

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "remaining": 3,
                "reset": 42,
                "total": 30
            }
        }
    )
