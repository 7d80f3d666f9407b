"""
Static file responder with single-page-application fallback.
"""
import os
from typing import Optional

from fastapi.responses import FileResponse

from app.core.config import Settings
from app.core.exceptions import BadPathException, NotFoundException
from app.core.logging import get_logger

logger = get_logger("static_files")

MIME_TYPES = {
    ".html": "text/html; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain; charset=utf-8",
}
DEFAULT_MIME_TYPE = "application/octet-stream"
NO_STORE_HEADERS = {"Cache-Control": "no-store"}


def guess_media_type(path: str) -> str:
    _, ext = os.path.splitext(path)
    return MIME_TYPES.get(ext.lower(), DEFAULT_MIME_TYPE)


def resolve_static_path(request_path: str, public_root: str, index_file: str = "index.html") -> str:
    """
    Map an already percent-decoded request path to an absolute path inside
    public_root. Purely lexical; the filesystem is not touched.

    Raises:
        BadPathException: If the path would leave public_root
    """
    root = os.path.abspath(public_root)
    if "\x00" in request_path or "\\" in request_path:
        raise BadPathException()

    # The query string is not part of scope["path"]; a "?" here is a literal
    relative = request_path.lstrip("/")
    if not relative:
        return os.path.join(root, index_file)

    candidate = os.path.normpath(os.path.join(root, relative))
    if candidate != root and not candidate.startswith(root + os.sep):
        raise BadPathException()
    return candidate


def _file_response(path: str) -> FileResponse:
    return FileResponse(path, media_type=guess_media_type(path), headers=NO_STORE_HEADERS)


def serve_static(request_path: str, settings: Settings) -> FileResponse:
    """
    Stream the file behind request_path, falling back to the index document
    for missing paths and directories.

    Raises:
        BadPathException: If the path escapes the public root
        NotFoundException: If neither the file nor the index document exists
    """
    root = settings.public_root
    resolved = resolve_static_path(request_path, root, settings.INDEX_FILE)

    if os.path.isfile(resolved):
        return _file_response(resolved)

    index_path = _index_path(root, settings.INDEX_FILE)
    if index_path is None:
        logger.warning(f"Index document missing under {root}")
        raise NotFoundException("Index document")

    return _file_response(index_path)


def _index_path(root: str, index_file: str) -> Optional[str]:
    index_path = os.path.join(root, index_file)
    if os.path.isfile(index_path):
        return index_path
    return None
