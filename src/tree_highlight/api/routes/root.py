from __future__ import annotations

from typing import Any

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root() -> dict[str, Any]:
    """Root discovery endpoint: API directory for programmatic and human clients."""
    return {
        "meta": {
            "title": "Tree Highlight API",
            "description": "Syntax highlighting spans from tree-sitter queries, with language injections.",
            "version": "0.1.0",
        },
        "links": {
            "self": "/",
            "highlight": "/highlight",
            "languages": "/languages",
            "health": "/health",
            "openapi": "/openapi.json",
            "docs": "/docs",
        },
    }
