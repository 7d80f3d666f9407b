# Prometheus metrics for FastAPI
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Request
from starlette.responses import Response as StarletteResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time

# Metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'http_status'])
REQUEST_LATENCY = Histogram('http_request_latency_seconds', 'HTTP request latency', ['endpoint'])
CHAT_REPLIES = Counter('chat_replies_total', 'Chat replies served', ['mode'])
RELAY_FAILURES = Counter('relay_failures_total', 'Failed upstream relay calls', ['kind'])
RATE_LIMITED = Counter('rate_limited_requests_total', 'Requests rejected by the rate limiter')


def _endpoint_label(request: Request) -> str:
    # Static paths are unbounded; collapse them into one label
    path = request.url.path
    if path.startswith("/api/") or path == "/metrics":
        return path
    return "static"


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        endpoint = _endpoint_label(request)
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(process_time)
        REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, http_status=response.status_code).inc()
        return response

def metrics_endpoint():
    return StarletteResponse(generate_latest(), media_type=CONTENT_TYPE_LATEST)
