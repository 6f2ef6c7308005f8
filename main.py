""" main.py: FastAPI application entry point and runtime configuration.

This module builds the ASGI app, mounts API routers, configures CORS (Cross-Origin Resource Sharing), records
request metrics, and exposes a Prometheus metrics endpoint. It centralizes web-layer wiring so the rest of the
codebase can focus on the voice pipeline. When executed directly, it starts a Uvicorn server using host/port
values from configuration.
"""

import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
import logging
from config import CONFIG
from monitoring.metrics import REQUEST_COUNT, REQUEST_LATENCY, ERROR_COUNT
from version import __version__

# --- Router Imports ---
from api import voice as voice_router
from api import tasks as tasks_router
from api import usage as usage_router

# Get a logger instance for this module
logger = logging.getLogger(__name__)

app = FastAPI(title="Swift Sage", version=__version__)

# Include routers
app.include_router(voice_router.router, prefix="/api", tags=["Voice"])
app.include_router(tasks_router.router, prefix="/api", tags=["Tasks"])
app.include_router(usage_router.router, prefix="/api", tags=["Usage"])

# Add Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


@app.middleware("http")
async def record_request_metrics(request: Request, call_next):
    """Count every API request and observe its latency (until headers are sent)."""
    if request.url.path.startswith("/metrics"):
        return await call_next(request)
    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception:
        ERROR_COUNT.labels(type='http', location=request.url.path).inc()
        REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status='500').inc()
        raise
    REQUEST_LATENCY.labels(method=request.method, endpoint=request.url.path).observe(time.time() - start_time)
    REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path, status=str(response.status_code)).inc()
    return response


# Configure CORS. The metadata headers must be exposed or browsers hide them.
allow_origins = CONFIG.get('cors', {}).get('allow_origins', ["*"])
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Transcript", "X-Response", "X-TTS-Provider", "X-LLM-Provider", "X-Interaction-Id"],
)

# The uvicorn server is used to run the FastAPI application.
if __name__ == '__main__':
    import uvicorn
    logger.info("[__main__] Starting Uvicorn server for main.py\n")
    uvicorn.run(
        app,
        host=CONFIG.get('server', {}).get('host', '0.0.0.0'),
        port=CONFIG.get('server', {}).get('port', 8080)
    )

# Example requests once the server is running:
# curl -F input="list my tasks" http://localhost:8080/api/voice
# curl -F input=@command.webm -F ttsProvider=cartesia http://localhost:8080/api/voice -o reply.pcm
# curl http://localhost:8080/api/usage
