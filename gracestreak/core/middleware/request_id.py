import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from gracestreak.core.logging import log_event, request_id_ctx_var

REQUEST_ID_HEADER = "x-request-id"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlate every request with an id (client-supplied or generated).

    The id is exposed to handlers as request.state.request_id and to log
    records through the request-id ContextVar; it is echoed back in the
    response header. One `http.request` event is logged per request.
    """

    async def dispatch(self, request, call_next):
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            log_event(
                "info",
                "http.request",
                request_id=rid,
                user_id=request.query_params.get("user_id"),
                event_type="http.request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
            return response
        finally:
            request_id_ctx_var.reset(token)
