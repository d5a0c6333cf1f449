# ErrorEnvelopeMiddleware
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from fastapi import Request, Response
from fastapi.responses import JSONResponse

log = logging.getLogger("facetagger.http")


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.time()
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])
        request.state.rid = request_id
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            log.exception("Unhandled error on %s [%s]", request.url.path, request_id)
            return JSONResponse(
                status_code=500,
                content={"error": str(exc), "path": request.url.path, "request_id": request_id},
                headers={"x-request-id": request_id},
            )
        response.headers.setdefault("x-request-id", request_id)
        response.headers["server-timing"] = f"total;dur={(time.time() - start) * 1000:.2f}"
        return response
