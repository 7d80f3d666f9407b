# app/services/providers.py
"""
Service provider module for dependency injection.

Per-application components live on `app.state` so that every app built by
`create_app` owns its own limiter and relay client.
"""
from fastapi import Request

from app.core.config import Settings
from app.core.rate_limit import FixedWindowRateLimiter
from app.services.relay import RelayClient

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter

def get_relay_client(request: Request) -> RelayClient:
    return request.app.state.relay_client
