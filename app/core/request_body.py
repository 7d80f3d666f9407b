from fastapi import Request

from app.core.exceptions import BodyTooLargeException
from app.core.logging import get_logger

logger = get_logger("request_body")


async def read_limited_body(request: Request, max_bytes: int) -> bytes:
    """
    Read the whole request body, giving up as soon as it grows past max_bytes.

    A declared Content-Length over the bound is rejected before anything is
    read; otherwise chunks are counted as they arrive.

    Raises:
        BodyTooLargeException: If the body is larger than max_bytes
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        logger.warning(f"Rejected body with declared length {declared} > {max_bytes}")
        raise BodyTooLargeException(max_bytes)

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            logger.warning(f"Aborted body read after {received} bytes > {max_bytes}")
            raise BodyTooLargeException(max_bytes)
        chunks.append(chunk)

    return b"".join(chunks)
