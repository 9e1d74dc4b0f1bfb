"""
FastAPI backend for the performance graph viewer.

Serves the performance data file under /api/performance-data and the compiled
single-page frontend for every other path.
"""

import argparse
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, ORJSONResponse
from fastapi.staticfiles import StaticFiles

from api.config import AppConfig
from api.performance import router as performance_router
from api.shared.data_provider import PerformanceDataProvider
from api.shared.logger import get_logger, setup_logging
from api.system import router as system_router

logger = get_logger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI app around an explicit configuration."""
    config = config or AppConfig.from_env()
    setup_logging(config.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Performance graph viewer starting...")
        logger.info("Serving performance data from %s", config.source_path)
        if not config.source_path.is_file():
            logger.warning("Performance data file not found: %s", config.source_path)
        yield

    app = FastAPI(
        title="Performance Graph Viewer API",
        description="Serves performance run data and the viewer frontend",
        version="1.0.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.provider = PerformanceDataProvider(config)

    # ============= Exception Handlers =============

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Log server-side HTTP exceptions and return JSON response."""
        if exc.status_code >= 500:
            logger.error("%s failed: %s", request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Log unexpected exceptions and return JSON response."""
        logger.error(
            "Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Credentials cannot be combined with a wildcard origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(performance_router, prefix="/api", tags=["performance"])
    app.include_router(system_router, prefix="/api", tags=["system"])

    _mount_frontend(app, config.dist_path)
    return app


def _mount_frontend(app: FastAPI, dist_path: Path) -> None:
    """Serve built assets and fall back to index.html for client-side routes."""
    dist_root = dist_path.resolve()

    if (dist_path / "assets").exists():
        app.mount("/assets", StaticFiles(directory=str(dist_path / "assets")), name="assets")

    def _index_response():
        index_file = dist_path / "index.html"
        if index_file.exists():
            return FileResponse(str(index_file))
        return {"message": "dist/index.html not found. Build the frontend first."}

    @app.get("/")
    async def serve_spa():
        """Serve the main SPA HTML file"""
        return _index_response()

    @app.get("/{full_path:path}")
    async def serve_spa_routes(full_path: str):
        """Serve a built file if one matches, otherwise the SPA entry document"""
        candidate = (dist_path / full_path).resolve()
        if candidate.is_file() and candidate.is_relative_to(dist_root):
            return FileResponse(str(candidate))
        return _index_response()


app = create_app()


if __name__ == "__main__":
    defaults = AppConfig.from_env()

    parser = argparse.ArgumentParser(description="Performance graph viewer server")
    parser.add_argument(
        "--port",
        type=int,
        default=defaults.port,
        help="Port to run the server on (default: 3001 or PERFGRAPH_PORT env var)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=defaults.host,
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--source",
        type=Path,
        default=None,
        help="Performance JSON file to serve (default: ./performance.json or PERFGRAPH_SOURCE)",
    )
    parser.add_argument(
        "--reload",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Enable auto-reload (default: off)",
    )
    args = parser.parse_args()

    config = defaults.with_overrides(port=args.port, host=args.host, source_path=args.source)

    if args.reload:
        # The reloader imports main:app, which reads its settings from the environment
        uvicorn.run("main:app", host=config.host, port=config.port, reload=True, log_level="info")
    else:
        uvicorn.run(create_app(config), host=config.host, port=config.port, log_level="info")
