"""
Serves the public directory for every path the API does not claim.
"""
from fastapi import Request

from app.services.providers import get_settings
from app.services.static_files import serve_static

# Registered with add_route and no method list, so any method reaches it
FRONTEND_PATH = "/{full_path:path}"


async def frontend(request: Request):
    # scope["path"] is already percent-decoded by the server
    return serve_static(request.scope["path"], get_settings(request))
