"""
System API routes for the performance graph viewer.

This module provides FastAPI routes for health and configuration info.
"""

import sys

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    config = request.app.state.config
    return {
        "status": "healthy",
        "message": "performance graph viewer is running",
        "source_available": config.source_path.is_file(),
    }


@router.get("/system/info")
async def system_info(request: Request):
    """Get runtime and configuration information."""
    config = request.app.state.config
    return {
        "python": {
            "version": sys.version,
            "platform": sys.platform,
        },
        "config": {
            "source_path": str(config.source_path),
            "port": config.port,
            "base_url": config.base_url,
            "cors_origins": config.cors_origins,
            "dist_available": (config.dist_path / "index.html").is_file(),
        },
    }
