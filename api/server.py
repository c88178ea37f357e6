"""
Headhunter API Server - REST surface for the dashboard snapshot.
"""
# ruff: noqa: S104
# S104: Development server binding (guarded by __name__ check)

import os
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from api.headhunter_router import headhunter_router
from api.response_models import HealthResponse
from headhunter import config
from headhunter.observability import REGISTRY, CorrelationIdMiddleware, configure_logging

configure_logging(config.LOG_LEVEL)

# FastAPI app initialization
app = FastAPI(
    title="Headhunter Dashboard API",
    description="Workspace-scoped recruiting pipeline snapshots",
    version="1.0.0",
)

# CORS middleware - configurable via CORS_ORIGINS env var
# Dev default: allow all origins; Production: set CORS_ORIGINS to comma-separated list
cors_origins_env = os.getenv("CORS_ORIGINS", "*")
cors_origins = (
    ["*"] if cors_origins_env == "*" else [o.strip() for o in cors_origins_env.split(",")]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(headhunter_router, prefix="/api/headhunter")


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/metrics", response_class=PlainTextResponse)
async def metrics():
    """
    Prometheus-format metrics endpoint.

    Exports application metrics in text format for scraping.
    """
    return PlainTextResponse(REGISTRY.to_prometheus(), media_type="text/plain; version=0.0.4")


# ==== Main ====


def main():
    """Run the server."""
    port = int(os.environ.get("PORT", 8420))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
