import time
import logging
from uuid import uuid4

from fastapi import Request

from app.utils.get_actor import SYSTEM_ACTOR

logger = logging.getLogger("access")

REQUEST_ID_HEADER = "X-Request-ID"


async def request_logging_middleware(request: Request, call_next):
    """Access line per request, tagged with the acting user and a request id.

    An incoming X-Request-ID is reused so callers can correlate their own
    logs; otherwise one is minted and echoed back.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex[:16]
    actor = (request.headers.get("X-Actor") or "").strip() or SYSTEM_ACTOR
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    response.headers[REQUEST_ID_HEADER] = request_id

    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        "",
        extra={
            "request_id": request_id,
            "actor": actor,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(elapsed_ms, 2),
        },
    )

    return response
